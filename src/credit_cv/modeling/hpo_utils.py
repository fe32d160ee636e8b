from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from sklearn.model_selection import ParameterGrid

from ..errors import EmptyGridError
from ..nested_cv import Dataset, FitScorer, ModelSelectionResult, inner_search, partition_folds
from .hpo_sobol import ElasticNetSpace, suggest_configs as sobol_suggest_configs


@dataclass(frozen=True)
class HPOResult:
    best_params: dict[str, Any]
    best_score: float
    model: object
    selection: ModelSelectionResult


def build_grid(param_grid: dict[str, Iterable[Any]]) -> list[dict[str, Any]]:
    """Expand value lists into candidate dicts, dropping repeated combinations."""
    if not param_grid:
        raise EmptyGridError("param_grid must be non-empty")
    expanded = {name: list(values) for name, values in param_grid.items()}
    empty = [name for name, values in expanded.items() if not values]
    if empty:
        raise EmptyGridError(f"param_grid has no values for {empty}")

    out: list[dict[str, Any]] = []
    seen: set[tuple] = set()
    for candidate in ParameterGrid(expanded):
        key = tuple(sorted(candidate.items()))
        if key in seen:
            continue
        seen.add(key)
        out.append(dict(candidate))
    return out


def make_candidates(
    *,
    optimizer: str = "grid",
    param_grid: dict[str, Iterable[Any]] | None = None,
    param_space: ElasticNetSpace | dict[str, Any] | None = None,
    budget: int | None = None,
    seed: int = 0,
) -> list[dict[str, Any]]:
    """
    Build the candidate list searched by the inner loop.

    optimizer:
      - "grid": every combination of param_grid
      - "sobol": up to budget quasi-random (alpha, lambda) points drawn from
        param_space, an ElasticNetSpace or a mapping of its fields
        (defaults to ElasticNetSpace())
    """
    optimizer = optimizer.lower().strip()
    if optimizer == "grid":
        return build_grid(param_grid or {})
    if optimizer == "sobol":
        if budget is None:
            raise ValueError("budget must be provided for optimizer='sobol'")
        space = ElasticNetSpace() if param_space is None else param_space
        return sobol_suggest_configs(space, budget=budget, seed=seed)
    raise ValueError(f"Unknown optimizer: {optimizer}")


def tune_and_train(
    dataset: Dataset,
    *,
    candidates: list[dict[str, Any]],
    capability: FitScorer,
    metric_name: str,
    inner_folds: int,
    seed: int,
) -> HPOResult:
    """Pick params by inner k-fold search, then refit them on every record."""
    assignment = partition_folds(len(dataset), inner_folds, seed)
    selection = inner_search(dataset, assignment, candidates, capability, metric_name)

    model = capability.fit(dataset.X, dataset.y, dataset.weights, selection.best_params)

    return HPOResult(
        best_params=selection.best_params,
        best_score=selection.best_score,
        model=model,
        selection=selection,
    )
