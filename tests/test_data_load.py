from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from credit_cv.data import GERMAN_CREDIT_COLUMNS, consolidate_levels, load_german_credit

ROWS = [
    "A11 6 A34 A43 1169 A65 A75 4 A93 A101 4 A121 67 A143 A152 2 A173 1 A192 A201 1",
    "A12 48 A32 A43 5951 A61 A73 2 A92 A101 2 A121 22 A143 A152 1 A173 1 A191 A201 2",
    "A14 12 A34 A46 2096 A61 A74 2 A93 A101 3 A121 49 A143 A152 1 A172 2 A191 A201 1",
    "A11 42 A32 A42 7882 A61 A74 2 A93 A103 4 A122 45 A143 A153 1 A173 2 A191 A201 1",
    "A11 24 A33 A40 4870 A61 A73 3 A93 A101 4 A124 53 A143 A153 2 A173 2 A191 A201 2",
    "A14 36 A32 A410 9055 A65 A73 2 A93 A101 4 A124 35 A143 A153 1 A172 2 A192 A201 1",
]


def _write(tmp_path: Path, rows: list[str]) -> Path:
    path = tmp_path / "german.data"
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


def test_load_german_credit_shapes_and_labels(tmp_path: Path) -> None:
    X, y = load_german_credit(_write(tmp_path, ROWS), target_positive="bad")

    assert isinstance(X, pd.DataFrame)
    assert isinstance(y, pd.Series)
    assert len(X) == len(y) == 6
    assert list(y) == [0, 1, 0, 0, 1, 0]
    assert list(X.columns) == GERMAN_CREDIT_COLUMNS[:-1]

    for col in ["checking_status", "duration_months", "credit_amount", "age_years"]:
        assert col in X.columns
    assert X.loc[0, "checking_status"] == "lt_0"
    assert X.loc[5, "purpose"] == "other"
    assert X["credit_amount"].dtype.kind == "i"


def test_target_positive_good_flips_labels(tmp_path: Path) -> None:
    _, y = load_german_credit(_write(tmp_path, ROWS), target_positive="good")
    assert list(y) == [1, 0, 1, 1, 0, 1]


def test_rows_with_missing_values_are_dropped(tmp_path: Path) -> None:
    rows = ROWS + ["A11 6 A34 A43 ? A65 A75 4 A93 A101 4 A121 67 A143 A152 2 A173 1 A192 A201 1"]
    X, y = load_german_credit(_write(tmp_path, rows))
    assert len(X) == len(y) == 6


def test_unknown_codes_rejected(tmp_path: Path) -> None:
    rows = [ROWS[0].replace("A11", "A19", 1)]
    with pytest.raises(ValueError, match="checking_status"):
        load_german_credit(_write(tmp_path, rows))


def test_consolidate_levels_merges_rare_categories() -> None:
    X = pd.DataFrame(
        {
            "purpose": ["car"] * 5 + ["tv"] * 4 + ["boat"],
            "amount": range(10),
        }
    )

    out = consolidate_levels(X, min_count=4)

    assert set(out["purpose"]) == {"car", "tv", "other"}
    assert (out["amount"] == X["amount"]).all()
    assert set(X["purpose"]) == {"car", "tv", "boat"}
