"""YAML experiment configuration."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .metrics.metrics_utils import MetricsConfig
from .modeling.hpo_sobol import ElasticNetSpace

logger = logging.getLogger(__name__)

DEFAULT_PARAM_GRID: dict[str, list[float]] = {
    "alpha": [0.0, 0.25, 0.5, 0.75, 1.0],
    "lambda": [0.001, 0.005, 0.01, 0.05, 0.1],
}


@dataclass(frozen=True)
class ExperimentConfig:
    # data
    data_path: str | None = None
    target_positive: str = "bad"
    min_level_count: int = 20
    # preprocessing
    scale: bool = True
    drop_first: bool = True
    positive_weight: float = 0.66
    negative_weight: float = 0.34
    # cross-validation
    inner_folds: int = 10
    outer_folds: int = 10
    inner_seed: int = 42
    outer_seed: int = 4242
    # search
    metric: str = "roc_auc"
    additional_metrics: tuple[str, ...] = ("sensitivity", "specificity", "accuracy")
    threshold: float = 0.5
    optimizer: str = "grid"
    param_grid: dict[str, list[Any]] = field(default_factory=lambda: dict(DEFAULT_PARAM_GRID))
    param_space: dict[str, Any] | None = None
    budget: int | None = None
    max_iter: int = 5000
    # output
    output_dir: str = "results"
    heatmap: bool = True
    save_model: bool = True

    def __post_init__(self) -> None:
        if self.inner_folds < 2 or self.outer_folds < 2:
            raise ValueError("inner_folds and outer_folds must be >= 2")
        if self.inner_seed == self.outer_seed:
            raise ValueError("inner_seed and outer_seed must differ")
        if self.optimizer not in ("grid", "sobol"):
            raise ValueError(f"Unknown optimizer: {self.optimizer}")
        if self.min_level_count < 1:
            raise ValueError("min_level_count must be >= 1")
        if self.param_space is not None:
            ElasticNetSpace.from_mapping(self.param_space)
        # validates metric names and threshold
        self.metrics_config()

    def metrics_config(self) -> MetricsConfig:
        return MetricsConfig(
            primary=self.metric,
            additional=tuple(self.additional_metrics),
            threshold=self.threshold,
        )

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["additional_metrics"] = list(self.additional_metrics)
        return out


def _coerce(raw: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(ExperimentConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")
    out = dict(raw)
    if "additional_metrics" in out and out["additional_metrics"] is not None:
        out["additional_metrics"] = tuple(out["additional_metrics"])
    return out


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ExperimentConfig:
    """Read a flat YAML mapping into an ``ExperimentConfig``.

    ``overrides`` (e.g. from CLI flags) win over the file; ``None`` values
    are ignored. A relative ``data_path`` is resolved against the YAML file.
    """
    raw: dict[str, Any] = {}
    if path is not None:
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(cfg_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config {path} must contain a mapping")
        data_path = raw.get("data_path")
        if data_path and not Path(data_path).is_absolute():
            resolved = (cfg_path.parent / data_path).resolve()
            if resolved.exists():
                raw["data_path"] = str(resolved)
        logger.info("Loaded config from %s", path)

    config = ExperimentConfig(**_coerce(raw))
    if overrides:
        changes = {k: v for k, v in overrides.items() if v is not None}
        if changes:
            config = replace(config, **_coerce(changes))
    return config


def save_config(config: ExperimentConfig, path: str | Path) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
