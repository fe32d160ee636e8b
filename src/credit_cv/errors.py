"""Error taxonomy for nested cross-validation."""

from __future__ import annotations


class NestedCVError(Exception):
    """Base class for structural cross-validation errors."""


class InsufficientDataError(NestedCVError):
    """Fewer records than requested folds."""

    def __init__(self, n_records: int, k: int) -> None:
        super().__init__(f"cannot split {n_records} records into {k} folds")
        self.n_records = n_records
        self.k = k


class EmptyGridError(NestedCVError):
    """The hyperparameter grid has no candidates."""


class MetricNotFoundError(NestedCVError, KeyError):
    """The selection metric is not produced by the scorer."""

    def __init__(self, metric_name: str, available: tuple[str, ...] | list[str]) -> None:
        super().__init__(
            f"metric {metric_name!r} not produced by scorer; available: {sorted(available)}"
        )
        self.metric_name = metric_name
        self.available = tuple(available)

    def __str__(self) -> str:
        return str(self.args[0])


class FoldImbalanceWarning(UserWarning):
    """A held-out fold contains a single class; some metrics are undefined."""
