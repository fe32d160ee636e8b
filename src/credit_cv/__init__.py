"""Nested cross-validation for elastic-net credit scoring."""

from .errors import (
    EmptyGridError,
    FoldImbalanceWarning,
    InsufficientDataError,
    MetricNotFoundError,
    NestedCVError,
)
from .nested_cv import (
    Dataset,
    FitScorer,
    Fold,
    ModelSelectionResult,
    NestedCrossValidator,
    NestedCVResult,
    OuterEvaluationResult,
    inner_search,
    iter_folds,
    outer_evaluate,
    partition_folds,
)

__version__ = "0.1.0"

__all__ = [
    "Dataset",
    "EmptyGridError",
    "FitScorer",
    "Fold",
    "FoldImbalanceWarning",
    "InsufficientDataError",
    "MetricNotFoundError",
    "ModelSelectionResult",
    "NestedCVError",
    "NestedCVResult",
    "NestedCrossValidator",
    "OuterEvaluationResult",
    "inner_search",
    "iter_folds",
    "outer_evaluate",
    "partition_folds",
]
