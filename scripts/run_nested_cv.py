"""Run nested CV for elastic-net logistic regression with flags instead of YAML."""

from __future__ import annotations

import argparse

from credit_cv.config import load_config
from credit_cv.single_run import run_from_config


def _floats(text: str) -> list[float]:
    return [float(v) for v in text.split(",") if v.strip()]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nested CV on German Credit")
    parser.add_argument("--config", help="Optional YAML config; flags override it")
    parser.add_argument("--data-path", dest="data_path")
    parser.add_argument("--output-dir", dest="output_dir")
    parser.add_argument("--inner-folds", dest="inner_folds", type=int)
    parser.add_argument("--outer-folds", dest="outer_folds", type=int)
    parser.add_argument("--inner-seed", dest="inner_seed", type=int)
    parser.add_argument("--outer-seed", dest="outer_seed", type=int)
    parser.add_argument("--metric", choices=["roc_auc", "sensitivity", "specificity", "accuracy", "kappa"])
    parser.add_argument("--alphas", type=_floats, help="Comma-separated alpha values")
    parser.add_argument("--lambdas", type=_floats, help="Comma-separated lambda values")
    parser.add_argument("--optimizer", choices=["grid", "sobol"])
    parser.add_argument("--budget", type=int, help="Candidates to draw for optimizer=sobol")
    parser.add_argument("--no-heatmap", dest="heatmap", action="store_false", default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    overrides = {
        key: getattr(args, key)
        for key in (
            "data_path",
            "output_dir",
            "inner_folds",
            "outer_folds",
            "inner_seed",
            "outer_seed",
            "metric",
            "optimizer",
            "budget",
            "heatmap",
        )
    }
    base = load_config(args.config)
    if args.alphas or args.lambdas:
        overrides["param_grid"] = {
            "alpha": args.alphas or base.param_grid["alpha"],
            "lambda": args.lambdas or base.param_grid["lambda"],
        }

    config = load_config(args.config, overrides=overrides)
    artifacts = run_from_config(config)
    outer = artifacts.result.outer
    print(outer.table.to_string(index=False))
    print(f"Wrote results to {artifacts.results_dir}")


if __name__ == "__main__":
    main()
