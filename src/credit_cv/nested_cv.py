"""Nested cross-validation: inner grid search plus independent outer estimate."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Protocol, Sequence

import numpy as np
import pandas as pd

from .errors import EmptyGridError, FoldImbalanceWarning, InsufficientDataError, MetricNotFoundError
from .metrics.metrics_utils import aggregate_metrics

logger = logging.getLogger(__name__)

RESERVED_COLUMNS = ("candidate", "fold")


class FitScorer(Protocol):
    """Fit/score capability the validator treats as a black box."""

    metric_names: tuple[str, ...]

    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        sample_weight: np.ndarray | None,
        params: Mapping[str, Any],
    ) -> Any:
        ...

    def score(self, model: Any, X: pd.DataFrame, y: pd.Series) -> Mapping[str, float]:
        ...


@dataclass(frozen=True)
class Dataset:
    """Features, 0/1 labels (1 = positive class) and optional per-record weights."""

    X: pd.DataFrame
    y: pd.Series
    weights: np.ndarray | None = None

    def __post_init__(self) -> None:
        if len(self.X) != len(self.y):
            raise ValueError("X and y must have the same length")
        if self.weights is not None and len(self.weights) != len(self.y):
            raise ValueError("weights must have one entry per record")
        if not set(pd.unique(self.y)).issubset({0, 1}):
            raise ValueError("y must be binary with values 0/1")

    def __len__(self) -> int:
        return len(self.y)

    def take(self, idx: np.ndarray) -> tuple[pd.DataFrame, pd.Series, np.ndarray | None]:
        X_part = self.X.iloc[idx]
        y_part = self.y.iloc[idx]
        w_part = None if self.weights is None else np.asarray(self.weights)[idx]
        return X_part, y_part, w_part


@dataclass(frozen=True)
class Fold:
    fold_id: int
    train_idx: np.ndarray
    test_idx: np.ndarray


@dataclass(frozen=True)
class ModelSelectionResult:
    metric_name: str
    best_index: int
    best_params: dict[str, Any]
    best_score: float
    per_fold: pd.DataFrame
    summary: pd.DataFrame


@dataclass(frozen=True)
class OuterEvaluationResult:
    params: dict[str, Any]
    per_fold: pd.DataFrame
    table: pd.DataFrame
    mean: dict[str, float]
    std: dict[str, float]
    partial_metrics: tuple[str, ...] = field(default_factory=tuple)

    @property
    def partial(self) -> bool:
        return bool(self.partial_metrics)


@dataclass(frozen=True)
class NestedCVResult:
    selection: ModelSelectionResult
    outer: OuterEvaluationResult
    inner_seed: int
    outer_seed: int


def partition_folds(n_records: int, k: int, seed: int) -> np.ndarray:
    """Randomly assign each record index to a fold id in ``[0, k)``.

    Indices are shuffled with ``seed`` and cut into contiguous blocks, so
    fold sizes differ by at most one.
    """
    if k < 2:
        raise ValueError("k must be >= 2")
    if n_records < k:
        raise InsufficientDataError(n_records, k)

    rng = np.random.default_rng(seed)
    order = rng.permutation(n_records)
    assignment = np.empty(n_records, dtype=int)
    for fold_id, block in enumerate(np.array_split(order, k)):
        assignment[block] = fold_id
    return assignment


def iter_folds(fold_assignment: Sequence[int] | np.ndarray) -> Iterator[Fold]:
    """Yield train/test index splits for each fold id in ascending order."""
    assignment = np.asarray(fold_assignment, dtype=int)
    for fold_id in np.unique(assignment):
        yield Fold(
            fold_id=int(fold_id),
            train_idx=np.flatnonzero(assignment != fold_id),
            test_idx=np.flatnonzero(assignment == fold_id),
        )


def _validate_grid(grid: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    candidates = [dict(params) for params in grid]
    if not candidates:
        raise EmptyGridError("hyperparameter grid must contain at least one candidate")

    seen: list[dict[str, Any]] = []
    for params in candidates:
        if params in seen:
            raise ValueError(f"duplicate hyperparameter candidate: {params}")
        seen.append(params)
        clash = set(params) & set(RESERVED_COLUMNS)
        if clash:
            raise ValueError(f"hyperparameter names clash with result columns: {sorted(clash)}")
    return candidates


def _validate_assignment(dataset: Dataset, fold_assignment: Sequence[int] | np.ndarray) -> np.ndarray:
    assignment = np.asarray(fold_assignment, dtype=int)
    if len(assignment) != len(dataset):
        raise ValueError("fold assignment must have one entry per record")
    n_folds = len(np.unique(assignment))
    if n_folds < 2:
        raise ValueError("fold assignment must contain at least 2 folds")
    return assignment


def _check_declared_metric(capability: FitScorer, metric_name: str) -> None:
    declared = getattr(capability, "metric_names", None)
    if declared is not None and metric_name not in declared:
        raise MetricNotFoundError(metric_name, tuple(declared))


def _fit_and_score(
    dataset: Dataset,
    fold: Fold,
    params: Mapping[str, Any],
    capability: FitScorer,
) -> dict[str, float]:
    X_train, y_train, w_train = dataset.take(fold.train_idx)
    X_test, y_test, _ = dataset.take(fold.test_idx)
    if y_test.nunique() < 2:
        warnings.warn(
            f"fold {fold.fold_id} held-out set has a single class (n={len(y_test)}); "
            "some metrics are undefined",
            FoldImbalanceWarning,
            stacklevel=3,
        )
    model = capability.fit(X_train, y_train, w_train, params)
    return {name: float(value) for name, value in capability.score(model, X_test, y_test).items()}


def _metric_columns(rows: list[dict[str, float]]) -> list[str]:
    columns: list[str] = []
    for metrics in rows:
        for name in metrics:
            if name not in columns:
                columns.append(name)
    return columns


def inner_search(
    dataset: Dataset,
    fold_assignment: Sequence[int] | np.ndarray,
    grid: Sequence[Mapping[str, Any]],
    capability: FitScorer,
    metric_name: str,
) -> ModelSelectionResult:
    """Evaluate every grid candidate on every fold and pick the best mean.

    Ties on the mean of ``metric_name`` go to the candidate seen first.
    """
    candidates = _validate_grid(grid)
    _check_declared_metric(capability, metric_name)
    assignment = _validate_assignment(dataset, fold_assignment)
    folds = list(iter_folds(assignment))

    rows: list[dict[str, Any]] = []
    metric_rows: list[dict[str, float]] = []
    for cand_id, params in enumerate(candidates):
        for fold in folds:
            metrics = _fit_and_score(dataset, fold, params, capability)
            if metric_name not in metrics:
                raise MetricNotFoundError(metric_name, tuple(metrics))
            metric_rows.append(metrics)
            rows.append({"candidate": cand_id, **params, "fold": fold.fold_id, **metrics})
        logger.debug("Candidate %s/%s done params=%s", cand_id + 1, len(candidates), params)

    per_fold = pd.DataFrame(rows)
    metric_cols = _metric_columns(metric_rows)

    summary_rows: list[dict[str, Any]] = []
    for cand_id, params in enumerate(candidates):
        agg = aggregate_metrics(per_fold.loc[per_fold["candidate"] == cand_id], metric_cols)
        row: dict[str, Any] = {"candidate": cand_id, **params}
        for col in metric_cols:
            row[f"{col}_mean"] = agg.mean[col]
            row[f"{col}_sd"] = agg.std[col]
            row[f"{col}_partial"] = agg.partial[col]
        row["partial"] = agg.any_partial
        summary_rows.append(row)
    summary = pd.DataFrame(summary_rows)

    means = summary[f"{metric_name}_mean"].to_numpy(dtype=float)
    if np.all(np.isnan(means)):
        logger.warning("Metric %s undefined for every candidate; keeping first", metric_name)
        best_index = 0
    else:
        best_index = int(np.nanargmax(means))

    best_params = candidates[best_index]
    best_score = float(means[best_index])
    logger.info(
        "Inner search: %s candidates x %s folds, best %s=%.4f params=%s",
        len(candidates),
        len(folds),
        metric_name,
        best_score,
        best_params,
    )
    return ModelSelectionResult(
        metric_name=metric_name,
        best_index=best_index,
        best_params=dict(best_params),
        best_score=best_score,
        per_fold=per_fold,
        summary=summary,
    )


def outer_evaluate(
    dataset: Dataset,
    fold_assignment: Sequence[int] | np.ndarray,
    chosen_params: Mapping[str, Any],
    capability: FitScorer,
) -> OuterEvaluationResult:
    """Estimate performance of fixed params on an independent fold assignment.

    The returned ``table`` is the per-fold table with a ``mean`` and an
    ``sd`` row appended; hyperparameter columns are repeated on those rows.
    """
    params = dict(chosen_params)
    clash = set(params) & set(RESERVED_COLUMNS)
    if clash:
        raise ValueError(f"hyperparameter names clash with result columns: {sorted(clash)}")
    assignment = _validate_assignment(dataset, fold_assignment)

    rows: list[dict[str, Any]] = []
    metric_rows: list[dict[str, float]] = []
    for fold in iter_folds(assignment):
        metrics = _fit_and_score(dataset, fold, params, capability)
        metric_rows.append(metrics)
        rows.append({"fold": fold.fold_id, **params, **metrics})
        logger.info("Outer fold=%s n_test=%s metrics=%s", fold.fold_id, len(fold.test_idx), metrics)

    per_fold = pd.DataFrame(rows)
    metric_cols = _metric_columns(metric_rows)
    agg = aggregate_metrics(per_fold, metric_cols)

    mean_row = {"fold": "mean", **params, **agg.mean}
    sd_row = {"fold": "sd", **params, **agg.std}
    table = pd.concat(
        [per_fold.astype({"fold": object}), pd.DataFrame([mean_row, sd_row])],
        ignore_index=True,
    )
    partial_metrics = tuple(col for col in metric_cols if agg.partial[col])
    if partial_metrics:
        logger.warning("Outer aggregates skipped undefined values for %s", partial_metrics)

    return OuterEvaluationResult(
        params=params,
        per_fold=per_fold,
        table=table,
        mean=agg.mean,
        std=agg.std,
        partial_metrics=partial_metrics,
    )


class NestedCrossValidator:
    """Inner k-fold grid search followed by an independent outer k-fold estimate."""

    def __init__(
        self,
        capability: FitScorer,
        grid: Sequence[Mapping[str, Any]],
        *,
        metric_name: str = "roc_auc",
        inner_folds: int = 10,
        outer_folds: int = 10,
        inner_seed: int = 42,
        outer_seed: int = 43,
    ) -> None:
        if inner_folds < 2 or outer_folds < 2:
            raise ValueError("inner_folds and outer_folds must be >= 2")
        if inner_seed == outer_seed:
            raise ValueError("inner_seed and outer_seed must differ")
        self.grid = _validate_grid(grid)
        _check_declared_metric(capability, metric_name)
        self.capability = capability
        self.metric_name = metric_name
        self.inner_folds = inner_folds
        self.outer_folds = outer_folds
        self.inner_seed = inner_seed
        self.outer_seed = outer_seed

    def run(self, dataset: Dataset) -> NestedCVResult:
        n = len(dataset)
        for k in (self.inner_folds, self.outer_folds):
            if n < k:
                raise InsufficientDataError(n, k)

        inner_assignment = partition_folds(n, self.inner_folds, self.inner_seed)
        outer_assignment = partition_folds(n, self.outer_folds, self.outer_seed)
        logger.info(
            "Nested CV n=%s inner=%s folds (seed=%s) outer=%s folds (seed=%s) grid=%s",
            n,
            self.inner_folds,
            self.inner_seed,
            self.outer_folds,
            self.outer_seed,
            len(self.grid),
        )

        selection = inner_search(
            dataset,
            inner_assignment,
            self.grid,
            self.capability,
            self.metric_name,
        )
        outer = outer_evaluate(dataset, outer_assignment, selection.best_params, self.capability)
        logger.info(
            "Outer estimate %s=%.4f (sd=%.4f) vs inner best=%.4f",
            self.metric_name,
            outer.mean.get(self.metric_name, float("nan")),
            outer.std.get(self.metric_name, float("nan")),
            selection.best_score,
        )
        return NestedCVResult(
            selection=selection,
            outer=outer,
            inner_seed=self.inner_seed,
            outer_seed=self.outer_seed,
        )
