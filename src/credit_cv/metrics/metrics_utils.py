"""Binary classification metrics with undefined-value handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, cohen_kappa_score, confusion_matrix, roc_auc_score

SUPPORTED_METRICS = ("roc_auc", "sensitivity", "specificity", "accuracy", "kappa")


class MetricsConfigError(ValueError):
    """Raised for unknown or badly configured metrics."""


@dataclass(frozen=True)
class MetricsConfig:
    primary: str = "roc_auc"
    additional: tuple[str, ...] = ("sensitivity", "specificity")
    threshold: float = 0.5

    def __post_init__(self) -> None:
        for name in self.names:
            if name not in SUPPORTED_METRICS:
                raise MetricsConfigError(
                    f"Unknown metric {name!r}; expected one of {SUPPORTED_METRICS}"
                )
        if not 0.0 < self.threshold < 1.0:
            raise MetricsConfigError("threshold must be between 0 and 1 (exclusive)")

    @property
    def names(self) -> tuple[str, ...]:
        seen: list[str] = [self.primary]
        for name in self.additional:
            if name not in seen:
                seen.append(name)
        return tuple(seen)


def _safe_ratio(num: int, den: int) -> float:
    if den == 0:
        return float("nan")
    return float(num) / float(den)


def score_metrics(
    cfg: MetricsConfig,
    y_true: Iterable[int],
    proba: Iterable[float],
) -> dict[str, float]:
    """Score positive-class probabilities against 0/1 labels.

    A held-out set with a single class cannot define ROC-AUC and one of
    sensitivity/specificity; those come back as NaN instead of raising.
    Kappa is NaN when labels and predictions are all the same class.
    """
    y_arr = np.asarray(y_true).astype(int)
    p_arr = np.asarray(proba, dtype=float)
    if y_arr.shape != p_arr.shape:
        raise ValueError("y_true and proba must have the same shape")
    if len(y_arr) == 0:
        raise ValueError("cannot score an empty held-out set")

    y_pred = (p_arr >= cfg.threshold).astype(int)
    tn, fp, fn, tp = (int(v) for v in confusion_matrix(y_arr, y_pred, labels=[0, 1]).ravel())
    single_class = len(np.unique(y_arr)) < 2

    values: dict[str, float] = {}
    for name in cfg.names:
        if name == "roc_auc":
            values[name] = float("nan") if single_class else float(roc_auc_score(y_arr, p_arr))
        elif name == "sensitivity":
            values[name] = _safe_ratio(tp, tp + fn)
        elif name == "specificity":
            values[name] = _safe_ratio(tn, tn + fp)
        elif name == "accuracy":
            values[name] = float(accuracy_score(y_arr, y_pred))
        elif name == "kappa":
            if len(np.union1d(y_arr, y_pred)) < 2:
                values[name] = float("nan")
            else:
                values[name] = float(cohen_kappa_score(y_arr, y_pred, labels=[0, 1]))
    return values


@dataclass(frozen=True)
class MetricSummary:
    mean: dict[str, float]
    std: dict[str, float]
    n_defined: dict[str, int]
    partial: dict[str, bool] = field(default_factory=dict)

    @property
    def any_partial(self) -> bool:
        return any(self.partial.values())


def aggregate_metrics(frame: pd.DataFrame, metric_columns: Iterable[str]) -> MetricSummary:
    """Mean and sample standard deviation per metric, skipping NaN entries."""
    mean: dict[str, float] = {}
    std: dict[str, float] = {}
    n_defined: dict[str, int] = {}
    partial: dict[str, bool] = {}
    for col in metric_columns:
        values = pd.to_numeric(frame[col], errors="coerce")
        defined = int(values.notna().sum())
        mean[col] = float(values.mean()) if defined else float("nan")
        std[col] = float(values.std(ddof=1)) if defined > 1 else float("nan")
        n_defined[col] = defined
        partial[col] = defined < len(values)
    return MetricSummary(mean=mean, std=std, n_defined=n_defined, partial=partial)
