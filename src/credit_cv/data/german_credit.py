"""Statlog (German Credit Data): download, parse and tidy categorical levels."""

from __future__ import annotations

import logging
import os
import urllib.request
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

GERMAN_CREDIT_URL = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/statlog/german/german.data"
)
GERMAN_CREDIT_FILENAME = "german.data"

GERMAN_CREDIT_COLUMNS = [
    "checking_status",
    "duration_months",
    "credit_history",
    "purpose",
    "credit_amount",
    "savings_status",
    "employment_since",
    "installment_rate",
    "personal_status_sex",
    "other_debtors",
    "residence_since",
    "property",
    "age_years",
    "other_installment_plans",
    "housing",
    "existing_credits",
    "job",
    "num_dependents",
    "telephone",
    "foreign_worker",
    "class",
]

# UCI attribute codes -> readable levels
CODE_LABELS: dict[str, dict[str, str]] = {
    "checking_status": {
        "A11": "lt_0",
        "A12": "0_to_200",
        "A13": "gt_200",
        "A14": "none",
    },
    "credit_history": {
        "A30": "no_credits",
        "A31": "all_paid_this_bank",
        "A32": "existing_paid",
        "A33": "delayed",
        "A34": "critical",
    },
    "purpose": {
        "A40": "new_car",
        "A41": "used_car",
        "A42": "furniture",
        "A43": "radio_tv",
        "A44": "appliances",
        "A45": "repairs",
        "A46": "education",
        "A47": "vacation",
        "A48": "retraining",
        "A49": "business",
        "A410": "other",
    },
    "savings_status": {
        "A61": "lt_100",
        "A62": "100_to_500",
        "A63": "500_to_1000",
        "A64": "gt_1000",
        "A65": "unknown",
    },
    "employment_since": {
        "A71": "unemployed",
        "A72": "lt_1",
        "A73": "1_to_4",
        "A74": "4_to_7",
        "A75": "gt_7",
    },
    "personal_status_sex": {
        "A91": "male_divorced",
        "A92": "female_div_married",
        "A93": "male_single",
        "A94": "male_married",
        "A95": "female_single",
    },
    "other_debtors": {"A101": "none", "A102": "co_applicant", "A103": "guarantor"},
    "property": {
        "A121": "real_estate",
        "A122": "savings_insurance",
        "A123": "car_other",
        "A124": "unknown",
    },
    "other_installment_plans": {"A141": "bank", "A142": "stores", "A143": "none"},
    "housing": {"A151": "rent", "A152": "own", "A153": "free"},
    "job": {
        "A171": "unskilled_nonresident",
        "A172": "unskilled_resident",
        "A173": "skilled",
        "A174": "management",
    },
    "telephone": {"A191": "none", "A192": "yes"},
    "foreign_worker": {"A201": "yes", "A202": "no"},
}

CLASS_LABELS = {1: "good", 2: "bad"}


def default_data_dir() -> Path:
    return Path(os.environ.get("CREDIT_CV_DATA_DIR", "data"))


def download_german_credit(dest: str | os.PathLike[str] | None = None, *, force: bool = False) -> Path:
    """Fetch ``german.data`` into ``dest`` (a directory) unless already cached."""
    dest_dir = Path(dest) if dest is not None else default_data_dir()
    dest_dir.mkdir(parents=True, exist_ok=True)
    path = dest_dir / GERMAN_CREDIT_FILENAME
    if path.exists() and not force:
        logger.debug("Using cached %s", path)
        return path

    logger.info("Downloading German Credit data from %s", GERMAN_CREDIT_URL)
    tmp_path = path.with_suffix(".part")
    urllib.request.urlretrieve(GERMAN_CREDIT_URL, tmp_path)
    tmp_path.replace(path)
    return path


def load_german_credit(
    path: str | os.PathLike[str] | None = None,
    *,
    target_positive: str = "bad",
) -> tuple[pd.DataFrame, pd.Series]:
    """
    Load the raw 20-attribute file.

    Returns:
      X_raw: categorical columns as readable string levels, numeric as int
      y: int Series named ``class``, 1 for ``target_positive``
    """
    if target_positive not in CLASS_LABELS.values():
        raise ValueError(f"target_positive must be one of {sorted(CLASS_LABELS.values())}")

    data_path = Path(path) if path is not None else download_german_credit()
    frame = pd.read_csv(
        data_path,
        sep=r"\s+",
        header=None,
        names=GERMAN_CREDIT_COLUMNS,
        na_values=["?"],
    )

    n_before = len(frame)
    frame = frame.dropna().reset_index(drop=True)
    if len(frame) < n_before:
        logger.info("Dropped %s rows with missing values", n_before - len(frame))

    for col, mapping in CODE_LABELS.items():
        unknown = set(frame[col].unique()) - set(mapping)
        if unknown:
            raise ValueError(f"Unexpected codes in {col}: {sorted(unknown)}")
        frame[col] = frame[col].map(mapping)

    labels = frame.pop("class").astype(int).map(CLASS_LABELS)
    if labels.isna().any():
        raise ValueError("class column must contain only 1 (good) or 2 (bad)")
    y = (labels == target_positive).astype(int).rename("class")

    logger.info(
        "Loaded %s records, positive (%s) rate %.3f",
        len(frame),
        target_positive,
        float(y.mean()) if len(y) else float("nan"),
    )
    return frame, y


def consolidate_levels(
    X: pd.DataFrame,
    *,
    min_count: int = 20,
    other_label: str = "other",
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """Fold categorical levels seen fewer than ``min_count`` times into ``other_label``."""
    if min_count < 1:
        raise ValueError("min_count must be >= 1")

    out = X.copy()
    if columns is None:
        columns = [c for c in out.columns if not pd.api.types.is_numeric_dtype(out[c])]

    for col in columns:
        counts = out[col].value_counts()
        rare = counts.index[counts < min_count].tolist()
        if rare:
            out[col] = out[col].where(~out[col].isin(rare), other_label)
            logger.debug("Merged levels %s of %s into %r", rare, col, other_label)
    return out
