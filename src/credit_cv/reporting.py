"""Result tables and grid heatmaps."""

from __future__ import annotations

import json
import os
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .nested_cv import NestedCVResult


def grid_matrix(
    summary: pd.DataFrame,
    metric: str,
    *,
    row_param: str = "alpha",
    col_param: str = "lambda",
) -> pd.DataFrame:
    value_col = f"{metric}_mean"
    missing = {row_param, col_param, value_col} - set(summary.columns)
    if missing:
        raise ValueError(f"summary is missing required columns: {sorted(missing)}")
    return summary.pivot_table(index=row_param, columns=col_param, values=value_col, aggfunc="mean")


def plot_grid_heatmap(
    summary: pd.DataFrame,
    metric: str,
    out_path: str | os.PathLike[str],
    *,
    row_param: str = "alpha",
    col_param: str = "lambda",
    best: dict | None = None,
) -> Path:
    matrix = grid_matrix(summary, metric, row_param=row_param, col_param=col_param)
    values = matrix.to_numpy(dtype=float)

    fig, ax = plt.subplots(figsize=(1.2 * values.shape[1] + 3, 0.6 * values.shape[0] + 2.5))
    im = ax.imshow(values, aspect="auto", cmap="viridis")
    ax.set_xticks(np.arange(values.shape[1]))
    ax.set_xticklabels([f"{v:g}" for v in matrix.columns])
    ax.set_yticks(np.arange(values.shape[0]))
    ax.set_yticklabels([f"{v:g}" for v in matrix.index])
    ax.set_xlabel(col_param)
    ax.set_ylabel(row_param)
    ax.set_title(f"Inner CV mean {metric}")

    for i in range(values.shape[0]):
        for j in range(values.shape[1]):
            if np.isfinite(values[i, j]):
                ax.text(j, i, f"{values[i, j]:.3f}", ha="center", va="center", fontsize=8, color="w")

    if best is not None and row_param in best and col_param in best:
        i = list(matrix.index).index(best[row_param])
        j = list(matrix.columns).index(best[col_param])
        ax.add_patch(plt.Rectangle((j - 0.5, i - 0.5), 1, 1, fill=False, edgecolor="red", linewidth=2))

    fig.colorbar(im, ax=ax)
    fig.tight_layout()
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=150)
    plt.close(fig)
    return out


def write_results(result: NestedCVResult, out_dir: str | os.PathLike[str]) -> dict[str, Path]:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {
        "inner_folds": out / "inner_folds.csv",
        "inner_summary": out / "inner_summary.csv",
        "outer_folds": out / "outer_folds.csv",
        "best_params": out / "best_params.json",
    }
    result.selection.per_fold.to_csv(paths["inner_folds"], index=False)
    result.selection.summary.to_csv(paths["inner_summary"], index=False)
    result.outer.table.to_csv(paths["outer_folds"], index=False)

    best = {
        "metric": result.selection.metric_name,
        "params": result.selection.best_params,
        "inner_best_mean": result.selection.best_score,
        "outer_mean": result.outer.mean,
        "outer_sd": result.outer.std,
        "outer_partial_metrics": list(result.outer.partial_metrics),
        "inner_seed": result.inner_seed,
        "outer_seed": result.outer_seed,
    }
    with open(paths["best_params"], "w", encoding="utf-8") as f:
        json.dump(best, f, indent=2, sort_keys=True, default=float)
    return paths


def fmt_mean_std(mean: float, std: float, ndigits: int = 3) -> str:
    return f"{mean:.{ndigits}f} ± {std:.{ndigits}f}"
