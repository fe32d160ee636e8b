from __future__ import annotations

import math
import warnings

import numpy as np
import pandas as pd
import pytest

from credit_cv.metrics import MetricsConfig, MetricsConfigError, aggregate_metrics, score_metrics


def test_score_metrics_matches_confusion_matrix() -> None:
    cfg = MetricsConfig(primary="roc_auc", additional=("sensitivity", "specificity", "accuracy", "kappa"))
    y = np.array([1, 1, 1, 0, 0, 0, 0, 0])
    proba = np.array([0.9, 0.6, 0.3, 0.7, 0.2, 0.1, 0.4, 0.05])

    metrics = score_metrics(cfg, y, proba)

    # tp=2 fn=1 fp=1 tn=4
    assert metrics["sensitivity"] == pytest.approx(2 / 3)
    assert metrics["specificity"] == pytest.approx(4 / 5)
    assert metrics["accuracy"] == pytest.approx(6 / 8)
    po = 6 / 8
    pe = (3 * 3 + 5 * 5) / 64
    assert metrics["kappa"] == pytest.approx((po - pe) / (1 - pe))
    assert 0.5 < metrics["roc_auc"] <= 1.0


def test_single_class_returns_nan_without_warning() -> None:
    cfg = MetricsConfig(additional=("sensitivity", "specificity", "kappa"))
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        metrics = score_metrics(cfg, [1, 1, 1], [0.9, 0.2, 0.6])

    assert math.isnan(metrics["roc_auc"])
    assert math.isnan(metrics["specificity"])
    assert metrics["sensitivity"] == pytest.approx(2 / 3)
    assert metrics["kappa"] == pytest.approx(0.0)


def test_kappa_undefined_when_labels_and_predictions_agree_on_one_class() -> None:
    cfg = MetricsConfig(primary="accuracy", additional=("kappa",))

    metrics = score_metrics(cfg, [0, 0, 0], [0.1, 0.2, 0.3])

    assert metrics["accuracy"] == pytest.approx(1.0)
    assert math.isnan(metrics["kappa"])


def test_unknown_metric_rejected() -> None:
    with pytest.raises(MetricsConfigError, match="Unknown metric"):
        MetricsConfig(primary="f1")


def test_config_names_deduplicate_primary() -> None:
    cfg = MetricsConfig(primary="roc_auc", additional=("roc_auc", "accuracy"))
    assert cfg.names == ("roc_auc", "accuracy")


def test_aggregate_skips_nan_and_flags_partial() -> None:
    frame = pd.DataFrame({"a": [0.70, 0.75, 0.80], "b": [0.5, float("nan"), 0.7]})

    summary = aggregate_metrics(frame, ["a", "b"])

    assert summary.mean["a"] == pytest.approx(0.75)
    assert summary.std["a"] == pytest.approx(0.05)
    assert summary.mean["b"] == pytest.approx(0.6)
    assert summary.n_defined == {"a": 3, "b": 2}
    assert summary.partial == {"a": False, "b": True}
    assert summary.any_partial
