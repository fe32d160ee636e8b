from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from _stubs import ColumnScorer, FixedScorer
from credit_cv import (
    Dataset,
    EmptyGridError,
    FoldImbalanceWarning,
    MetricNotFoundError,
    inner_search,
    partition_folds,
)
from credit_cv.metrics import MetricsConfig
from credit_cv.modeling import ElasticNetLogistic


def _toy_dataset(n: int = 20) -> Dataset:
    y = pd.Series([i % 2 for i in range(n)])
    X = pd.DataFrame({"x": np.arange(n, dtype=float)})
    return Dataset(X=X, y=y, weights=np.where(y == 1, 0.66, 0.34))


def _synthetic_dataset(n: int = 120, seed: int = 0) -> Dataset:
    rng = np.random.default_rng(seed)
    X = pd.DataFrame(rng.normal(size=(n, 3)), columns=["a", "b", "c"])
    logits = 2.0 * X["a"] - 1.0 * X["b"]
    y = pd.Series((rng.random(n) < 1.0 / (1.0 + np.exp(-logits))).astype(int))
    return Dataset(X=X, y=y, weights=np.where(y == 1, 0.66, 0.34))


def test_selects_highest_mean_and_records_every_fold() -> None:
    dataset = _toy_dataset()
    scorer = FixedScorer()
    grid = [{"score": 0.6}, {"score": 0.9}, {"score": 0.7}]

    result = inner_search(dataset, partition_folds(20, 4, seed=0), grid, scorer, "roc_auc")

    assert result.best_index == 1
    assert result.best_params == {"score": 0.9}
    assert result.best_score == pytest.approx(0.9)
    assert len(result.per_fold) == 3 * 4
    assert scorer.fit_calls == 12
    assert list(result.summary["candidate"]) == [0, 1, 2]
    assert result.summary["roc_auc_sd"].tolist() == pytest.approx([0.0, 0.0, 0.0])


def test_ties_go_to_first_candidate() -> None:
    dataset = _toy_dataset()
    grid = [{"score": 0.5, "tag": "a"}, {"score": 0.8, "tag": "b"}, {"score": 0.8, "tag": "c"}]

    result = inner_search(dataset, partition_folds(20, 5, seed=3), grid, FixedScorer(), "roc_auc")

    assert result.best_params["tag"] == "b"


def test_training_weights_come_from_dataset() -> None:
    dataset = _toy_dataset()
    scorer = FixedScorer()
    assignment = partition_folds(20, 2, seed=0)

    inner_search(dataset, assignment, [{"score": 0.5}], scorer, "roc_auc")

    for weights in scorer.seen_weights:
        assert weights is not None
        assert set(np.round(weights, 2)) <= {0.66, 0.34}
        assert len(weights) == 10


def test_empty_grid_rejected_before_any_fit() -> None:
    scorer = FixedScorer()

    with pytest.raises(EmptyGridError):
        inner_search(_toy_dataset(), partition_folds(20, 4, seed=0), [], scorer, "roc_auc")
    assert scorer.fit_calls == 0


def test_duplicate_candidates_rejected() -> None:
    with pytest.raises(ValueError, match="duplicate"):
        inner_search(
            _toy_dataset(),
            partition_folds(20, 4, seed=0),
            [{"score": 0.5}, {"score": 0.5}],
            FixedScorer(),
            "roc_auc",
        )


def test_duplicate_list_valued_candidates_rejected() -> None:
    grid = [{"score": 0.5, "layers": [8, 4]}, {"score": 0.5, "layers": [8, 4]}]

    with pytest.raises(ValueError, match="duplicate"):
        inner_search(_toy_dataset(), partition_folds(20, 4, seed=0), grid, FixedScorer(), "roc_auc")


def test_distinct_list_valued_candidates_accepted() -> None:
    grid = [{"score": 0.5, "layers": [8, 4]}, {"score": 0.7, "layers": [16]}]

    result = inner_search(_toy_dataset(), partition_folds(20, 4, seed=0), grid, FixedScorer(), "roc_auc")

    assert result.best_params == {"score": 0.7, "layers": [16]}


def test_unknown_declared_metric_fails_fast() -> None:
    scorer = FixedScorer(metric_names=("roc_auc",))

    with pytest.raises(MetricNotFoundError):
        inner_search(_toy_dataset(), partition_folds(20, 4, seed=0), [{"score": 0.5}], scorer, "kappa")
    assert scorer.fit_calls == 0


def test_metric_missing_from_scorer_output() -> None:
    scorer = FixedScorer(metric_names=None)

    with pytest.raises(MetricNotFoundError) as excinfo:
        inner_search(_toy_dataset(), partition_folds(20, 4, seed=0), [{"score": 0.5}], scorer, "kappa")
    assert excinfo.value.available == ("roc_auc",)


def test_assignment_length_must_match() -> None:
    with pytest.raises(ValueError, match="one entry per record"):
        inner_search(_toy_dataset(), [0, 1, 0, 1], [{"score": 0.5}], FixedScorer(), "roc_auc")


def test_single_class_fold_flags_partial_summary() -> None:
    y = pd.Series([1, 1, 1, 0, 1, 0, 1, 0, 0])
    X = pd.DataFrame({"p": [0.9, 0.8, 0.7, 0.2, 0.6, 0.3, 0.8, 0.4, 0.1]})
    assignment = [0, 0, 0, 1, 1, 1, 2, 2, 2]

    with pytest.warns(UserWarning):
        result = inner_search(Dataset(X=X, y=y), assignment, [{"c": 1}], ColumnScorer(), "roc_auc")

    row = result.summary.iloc[0]
    assert bool(row["partial"]) is True
    assert row["roc_auc_mean"] == pytest.approx(1.0)


def _single_class_fold_dataset() -> tuple[Dataset, list[int]]:
    y = pd.Series([1, 1, 1, 0, 1, 0, 1, 0, 0])
    X = pd.DataFrame({"p": [0.9, 0.8, 0.7, 0.2, 0.6, 0.3, 0.8, 0.4, 0.1]})
    return Dataset(X=X, y=y), [0, 0, 0, 1, 1, 1, 2, 2, 2]


def test_partial_flag_is_tracked_per_metric() -> None:
    dataset, assignment = _single_class_fold_dataset()
    scorer = ColumnScorer(MetricsConfig(primary="sensitivity", additional=("specificity", "roc_auc")))

    with pytest.warns(FoldImbalanceWarning):
        result = inner_search(dataset, assignment, [{"c": 1}], scorer, "sensitivity")

    row = result.summary.iloc[0]
    assert bool(row["sensitivity_partial"]) is False
    assert bool(row["specificity_partial"]) is True
    assert bool(row["roc_auc_partial"]) is True
    assert bool(row["partial"]) is True
    assert row["sensitivity_mean"] == pytest.approx(1.0)


def test_single_class_fold_warned_once_per_evaluation(caplog: pytest.LogCaptureFixture) -> None:
    dataset, assignment = _single_class_fold_dataset()

    with caplog.at_level(logging.WARNING, logger="credit_cv"):
        with pytest.warns(FoldImbalanceWarning) as record:
            inner_search(dataset, assignment, [{"c": 1}, {"c": 2}], ColumnScorer(), "roc_auc")

    imbalance = [w for w in record if issubclass(w.category, FoldImbalanceWarning)]
    assert len(imbalance) == 2
    assert "fold 0" in str(imbalance[0].message)
    assert not [r for r in caplog.records if "single class" in r.getMessage()]


def test_selection_is_deterministic_with_elastic_net() -> None:
    dataset = _synthetic_dataset()
    grid = [
        {"alpha": 0.0, "lambda": 0.01},
        {"alpha": 0.5, "lambda": 0.01},
        {"alpha": 1.0, "lambda": 0.05},
    ]
    assignment = partition_folds(len(dataset), 3, seed=11)

    first = inner_search(dataset, assignment, grid, ElasticNetLogistic(seed=0), "roc_auc")
    second = inner_search(dataset, assignment, grid, ElasticNetLogistic(seed=0), "roc_auc")

    assert first.best_params == second.best_params
    pd.testing.assert_frame_equal(first.per_fold, second.per_fold)
    pd.testing.assert_frame_equal(first.summary, second.summary)
    assert first.best_score > 0.6
