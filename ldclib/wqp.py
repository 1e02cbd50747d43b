"""
ldclib.wqp - Concentration records from water-quality result exports

Reads delimited result files in the Water Quality Portal layout (one row
per result, ``ActivityStartDate`` / ``ResultMeasureValue`` /
``CharacteristicName`` columns) into a concentration table.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

DATE_COLUMN = "ActivityStartDate"
VALUE_COLUMN = "ResultMeasureValue"
CHARACTERISTIC_COLUMN = "CharacteristicName"


def parse_concentration_table(
    raw: pd.DataFrame,
    characteristic: Optional[str] = None,
    date_column: str = DATE_COLUMN,
    value_column: str = VALUE_COLUMN,
    characteristic_column: str = CHARACTERISTIC_COLUMN,
) -> pd.DataFrame:
    """
    Select date and value columns from a raw result table.

    Parameters
    ----------
    raw : pd.DataFrame
        Result rows as read from the export.
    characteristic : str, optional
        Keep only rows whose characteristic matches (case-insensitive).
    date_column, value_column, characteristic_column : str
        Source column names.

    Returns
    -------
    pd.DataFrame
        Columns date and concentration, sorted by date. Values that are not
        plain numbers (e.g. ``"<1"``) are missing.
    """
    missing = [c for c in (date_column, value_column) if c not in raw.columns]
    if missing:
        raise ValueError(f"Result table is missing columns: {missing}")

    df = raw
    if characteristic is not None:
        if characteristic_column not in df.columns:
            raise ValueError(f"Result table has no {characteristic_column!r} column")
        keep = df[characteristic_column].astype(str).str.strip().str.lower() == characteristic.lower()
        df = df[keep]
        logger.debug("Kept %d of %d rows for %s", len(df), len(raw), characteristic)

    out = pd.DataFrame(
        {
            "date": pd.to_datetime(df[date_column], errors="coerce").dt.normalize(),
            "concentration": pd.to_numeric(df[value_column], errors="coerce"),
        }
    )

    n_undated = int(out["date"].isna().sum())
    if n_undated:
        logger.warning("Dropping %d results without a parseable date", n_undated)
        out = out.dropna(subset=["date"])

    n_censored = int(out["concentration"].isna().sum())
    if n_censored:
        logger.info("%d results have no numeric value and are kept as missing", n_censored)

    return out.sort_values("date", kind="mergesort").reset_index(drop=True)


def read_concentration_records(
    path: Union[str, Path],
    characteristic: Optional[str] = None,
    sep: str = ",",
    date_column: str = DATE_COLUMN,
    value_column: str = VALUE_COLUMN,
    characteristic_column: str = CHARACTERISTIC_COLUMN,
) -> pd.DataFrame:
    """Read a delimited water-quality export into a concentration table."""
    path = Path(path)
    raw = pd.read_csv(path, sep=sep, dtype=str, low_memory=False)
    logger.info("Read %d result rows from %s", len(raw), path)
    return parse_concentration_table(
        raw,
        characteristic=characteristic,
        date_column=date_column,
        value_column=value_column,
        characteristic_column=characteristic_column,
    )
