"""Model capabilities and hyperparameter candidate generation."""

from .elastic_net import ElasticNetLogistic, ElasticNetResult, to_sklearn_params
from .hpo_sobol import ElasticNetSpace, suggest_configs
from .hpo_utils import HPOResult, build_grid, tune_and_train

__all__ = [
    "ElasticNetLogistic",
    "ElasticNetResult",
    "ElasticNetSpace",
    "HPOResult",
    "build_grid",
    "suggest_configs",
    "to_sklearn_params",
    "tune_and_train",
]
