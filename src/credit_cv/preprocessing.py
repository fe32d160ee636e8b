"""Whole-dataset preprocessing applied once, before any folds are drawn."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .nested_cv import Dataset

logger = logging.getLogger(__name__)


def numeric_columns(X: pd.DataFrame) -> list[str]:
    return [c for c in X.columns if pd.api.types.is_numeric_dtype(X[c])]


def scale_numeric(X: pd.DataFrame, columns: list[str] | None = None) -> pd.DataFrame:
    """Center and scale numeric columns over the full dataset.

    The scaler is fit once on every record, not refit per fold.
    """
    out = X.copy()
    cols = numeric_columns(out) if columns is None else list(columns)
    if not cols:
        return out
    scaler = StandardScaler()
    scaled = scaler.fit_transform(out[cols].to_numpy(dtype=float))
    for i, col in enumerate(cols):
        out[col] = scaled[:, i]
    logger.debug("Scaled %s numeric columns", len(cols))
    return out


def one_hot_encode(X: pd.DataFrame, *, drop_first: bool = True) -> pd.DataFrame:
    """Dummy-code categorical columns; every output column is float."""
    return pd.get_dummies(X, drop_first=drop_first).astype(float)


def class_weights(
    y: pd.Series,
    *,
    positive_weight: float = 0.66,
    negative_weight: float = 0.34,
) -> np.ndarray:
    """Per-record weights that depend on the label only."""
    if positive_weight <= 0 or negative_weight <= 0:
        raise ValueError("class weights must be positive")
    y_arr = np.asarray(y).astype(int)
    return np.where(y_arr == 1, positive_weight, negative_weight).astype(float)


def make_dataset(
    X_raw: pd.DataFrame,
    y: pd.Series,
    *,
    scale: bool = True,
    drop_first: bool = True,
    positive_weight: float | None = 0.66,
    negative_weight: float | None = 0.34,
) -> Dataset:
    X = scale_numeric(X_raw) if scale else X_raw.copy()
    X = one_hot_encode(X, drop_first=drop_first).reset_index(drop=True)
    y_clean = pd.Series(y).astype(int).reset_index(drop=True)

    weights = None
    if positive_weight is not None and negative_weight is not None:
        weights = class_weights(
            y_clean,
            positive_weight=positive_weight,
            negative_weight=negative_weight,
        )
    logger.info("Dataset ready: %s records x %s features", X.shape[0], X.shape[1])
    return Dataset(X=X, y=y_clean, weights=weights)
