"""End-to-end nested CV experiment driven by an ``ExperimentConfig``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import joblib
import pandas as pd

from .config import ExperimentConfig, load_config
from .data import consolidate_levels, load_german_credit
from .experiment_utils import configure_logging, create_run_metadata, generate_run_id, set_global_seed
from .modeling import ElasticNetLogistic
from .modeling.hpo_utils import make_candidates
from .nested_cv import Dataset, NestedCrossValidator, NestedCVResult
from .preprocessing import make_dataset
from .reporting import fmt_mean_std, plot_grid_heatmap, write_results

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunArtifacts:
    run_id: str
    results_dir: Path
    results_path: Path
    result: NestedCVResult


def prepare_dataset(
    config: ExperimentConfig,
    frame: tuple[pd.DataFrame, pd.Series] | None = None,
) -> Dataset:
    """Load (unless ``frame`` is given), consolidate, scale and weight the data."""
    if frame is None:
        X_raw, y = load_german_credit(config.data_path, target_positive=config.target_positive)
    else:
        X_raw, y = frame
    X_raw = consolidate_levels(X_raw, min_count=config.min_level_count)
    return make_dataset(
        X_raw,
        y,
        scale=config.scale,
        drop_first=config.drop_first,
        positive_weight=config.positive_weight,
        negative_weight=config.negative_weight,
    )


def run_experiment(
    config: ExperimentConfig,
    dataset: Dataset,
    results_dir: Path,
) -> NestedCVResult:
    capability = ElasticNetLogistic(
        metrics=config.metrics_config(),
        max_iter=config.max_iter,
        seed=config.inner_seed,
    )
    candidates = make_candidates(
        optimizer=config.optimizer,
        param_grid=config.param_grid,
        param_space=config.param_space,
        budget=config.budget,
        seed=config.inner_seed,
    )
    validator = NestedCrossValidator(
        capability,
        candidates,
        metric_name=config.metric,
        inner_folds=config.inner_folds,
        outer_folds=config.outer_folds,
        inner_seed=config.inner_seed,
        outer_seed=config.outer_seed,
    )
    result = validator.run(dataset)
    write_results(result, results_dir)

    # sampled candidates do not form a complete alpha x lambda matrix
    if (
        config.heatmap
        and config.optimizer == "grid"
        and {"alpha", "lambda"} <= set(result.selection.summary.columns)
    ):
        for metric in config.metrics_config().names:
            plot_grid_heatmap(
                result.selection.summary,
                metric,
                results_dir / f"heatmap_{metric}.png",
                best=result.selection.best_params,
            )

    if config.save_model:
        final = capability.fit(dataset.X, dataset.y, dataset.weights, result.selection.best_params)
        joblib.dump(final, results_dir / "final_model.joblib")
        capability.coefficients(final).to_csv(results_dir / "final_coefficients.csv")

    return result


def run_from_config(
    config: ExperimentConfig | str | Path,
    *,
    output_dir: str | Path | None = None,
    frame: tuple[pd.DataFrame, pd.Series] | None = None,
) -> RunArtifacts:
    if not isinstance(config, ExperimentConfig):
        config = load_config(config)
    set_global_seed(config.inner_seed)

    run_id = generate_run_id(prefix="nested-cv")
    results_dir = Path(output_dir or config.output_dir) / run_id
    results_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(
        run_id=run_id,
        seed=config.inner_seed,
        log_file=results_dir / "run.log",
        force=True,
    )

    dataset = prepare_dataset(config, frame)
    result = run_experiment(config, dataset, results_dir)

    metadata = create_run_metadata(
        run_id=run_id,
        seed=config.inner_seed,
        extra={
            "config": config.to_dict(),
            "n_records": len(dataset),
            "n_features": int(dataset.X.shape[1]),
        },
    )
    (results_dir / "run_metadata.json").write_text(
        json.dumps(metadata, indent=2, default=str), encoding="utf-8"
    )

    metric = config.metric
    logger.info(
        "Selected %s; inner best %s=%.4f; outer %s",
        result.selection.best_params,
        metric,
        result.selection.best_score,
        fmt_mean_std(result.outer.mean[metric], result.outer.std[metric]),
    )
    logger.info("Results written to %s", results_dir)
    return RunArtifacts(
        run_id=run_id,
        results_dir=results_dir,
        results_path=results_dir / "outer_folds.csv",
        result=result,
    )
