"""Elastic-net logistic regression as a fit/score capability."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import numpy as np
import pandas as pd
import sklearn
from sklearn.linear_model import LogisticRegression

from ..metrics.metrics_utils import MetricsConfig, score_metrics

# scikit-learn 1.8 infers the penalty from l1_ratio and deprecates `penalty`
_SKLEARN_VERSION = tuple(int(part) for part in re.findall(r"\d+", sklearn.__version__)[:2])
_PENALTY_FROM_L1_RATIO = _SKLEARN_VERSION >= (1, 8)


@dataclass(frozen=True)
class ElasticNetResult:
    model: LogisticRegression
    feature_names: list[str]
    params: dict[str, Any]


def to_sklearn_params(alpha: float, lambda_: float, weight_total: float) -> dict[str, Any]:
    """Translate glmnet-style (alpha, lambda) into LogisticRegression kwargs.

    glmnet minimises mean weighted deviance plus ``lambda * penalty``;
    scikit-learn minimises ``C * sum(weighted loss) + penalty``, hence
    ``C = 1 / (lambda * sum(weights))``.
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError("alpha must be within [0, 1]")
    if lambda_ <= 0.0:
        raise ValueError("lambda must be > 0")
    if weight_total <= 0.0:
        raise ValueError("sample weights must sum to a positive value")
    params: dict[str, Any] = {
        "solver": "saga",
        "l1_ratio": float(alpha),
        "C": 1.0 / (float(lambda_) * float(weight_total)),
    }
    if not _PENALTY_FROM_L1_RATIO:
        params["penalty"] = "elasticnet"
    return params


@dataclass
class ElasticNetLogistic:
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    max_iter: int = 5000
    tol: float = 1e-4
    seed: int = 0

    @property
    def metric_names(self) -> tuple[str, ...]:
        return self.metrics.names

    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        sample_weight: np.ndarray | None,
        params: Mapping[str, Any],
    ) -> ElasticNetResult:
        if pd.Series(y).nunique() < 2:
            raise ValueError("training fold must contain both classes")
        weights = np.ones(len(y)) if sample_weight is None else np.asarray(sample_weight, dtype=float)
        sk_params = to_sklearn_params(
            float(params["alpha"]),
            float(params["lambda"]),
            float(weights.sum()),
        )
        model = LogisticRegression(
            **sk_params,
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=self.seed,
        )
        X_frame = pd.DataFrame(X)
        model.fit(X_frame.to_numpy(dtype=float), np.asarray(y).astype(int), sample_weight=weights)
        return ElasticNetResult(
            model=model,
            feature_names=list(X_frame.columns),
            params=dict(params),
        )

    def predict_proba(self, result: ElasticNetResult, X: pd.DataFrame) -> np.ndarray:
        X_frame = pd.DataFrame(X)
        if list(X_frame.columns) != result.feature_names:
            X_frame = X_frame.reindex(columns=result.feature_names, fill_value=0.0)
        return result.model.predict_proba(X_frame.to_numpy(dtype=float))[:, 1]

    def score(self, result: ElasticNetResult, X: pd.DataFrame, y: pd.Series) -> dict[str, float]:
        return score_metrics(self.metrics, np.asarray(y), self.predict_proba(result, X))

    def coefficients(self, result: ElasticNetResult) -> pd.Series:
        return pd.Series(result.model.coef_.ravel(), index=result.feature_names, name="coef")
