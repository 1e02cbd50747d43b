"""
ldclib.loads - Flow and concentration to daily load conversion
"""

from __future__ import annotations

import logging
from typing import Union

import numpy as np
import pandas as pd

from .config import DEFAULT_CONVERSION_FACTOR, DUPLICATE_POLICIES, validate_positive
from .core import ConcentrationInput, InvalidConfiguration, InvalidInput, concentration_frame

logger = logging.getLogger(__name__)

STAGE = "load"

ArrayLike = Union[float, np.ndarray, pd.Series]


def _check_factors(standard: float, conversion_factor: float) -> None:
    try:
        validate_positive("standard", standard)
        validate_positive("conversion_factor", conversion_factor)
    except InvalidConfiguration as e:
        e.stage = STAGE
        raise


def allowable_load(
    flow: ArrayLike, standard: float, conversion_factor: float = DEFAULT_CONVERSION_FACTOR
) -> ArrayLike:
    """
    Load at the regulatory standard: (standard / 100) * flow * K.

    Parameters
    ----------
    flow : float or array
        Streamflow (cfs for the default factor).
    standard : float
        Concentration threshold per 100 mL.
    conversion_factor : float
        Unit conversion constant K.

    Raises
    ------
    InvalidConfiguration
        If ``standard`` or ``conversion_factor`` is not positive.
    """
    _check_factors(standard, conversion_factor)
    return standard / 100.0 * flow * conversion_factor


def measured_load(
    flow: ArrayLike, concentration: ArrayLike, conversion_factor: float = DEFAULT_CONVERSION_FACTOR
) -> ArrayLike:
    """Load from an observed concentration: (concentration / 100) * flow * K.

    Missing (NaN) concentrations give a missing load.
    """
    try:
        validate_positive("conversion_factor", conversion_factor)
    except InvalidConfiguration as e:
        e.stage = STAGE
        raise
    return concentration / 100.0 * flow * conversion_factor


def pair_concentrations(
    samples: ConcentrationInput, duplicate_policy: str = "mean"
) -> pd.DataFrame:
    """
    Reduce concentration samples to at most one value per date.

    Missing values are dropped first. Same-day samples are combined by
    ``duplicate_policy``: ``"mean"`` averages them, ``"first"`` keeps the
    earliest listed, ``"reject"`` raises :class:`InvalidInput`.

    Returns
    -------
    pd.DataFrame
        Columns date, concentration, n_samples; sorted by date.
    """
    if duplicate_policy not in DUPLICATE_POLICIES:
        raise InvalidConfiguration(
            f"duplicate_policy must be one of {DUPLICATE_POLICIES}, got {duplicate_policy!r}",
            stage=STAGE,
        )

    df = concentration_frame(samples)

    if df["date"].isna().any():
        row = df[df["date"].isna()].iloc[0]
        raise InvalidInput("concentration sample has no date", stage=STAGE, record=row.to_dict())

    n_missing = int(df["concentration"].isna().sum())
    if n_missing:
        logger.debug("Dropping %d samples with missing concentration", n_missing)
    df = df.dropna(subset=["concentration"])

    values = df["concentration"].to_numpy(dtype=float)
    bad = ~np.isfinite(values) | (values < 0)
    if bad.any():
        row = df.iloc[int(np.argmax(bad))]
        raise InvalidInput(
            "concentration must be finite and non-negative",
            stage=STAGE,
            record={"date": row["date"].date(), "concentration": row["concentration"]},
        )

    dupes = df["date"].duplicated(keep=False)
    if dupes.any() and duplicate_policy == "reject":
        first = df.loc[dupes, "date"].iloc[0]
        raise InvalidInput(
            f"{int(df.loc[dupes, 'date'].nunique())} dates have more than one sample",
            stage=STAGE,
            record={"date": first.date()},
        )

    grouped = df.groupby("date", sort=True)["concentration"]
    agg = "mean" if duplicate_policy == "mean" else "first"
    paired = grouped.agg([agg, "size"]).reset_index()
    paired.columns = ["date", "concentration", "n_samples"]
    paired["concentration"] = paired["concentration"].astype(float)

    if dupes.any():
        logger.info(
            "Combined same-day samples on %d dates (policy=%s)",
            int(df.loc[dupes, "date"].nunique()),
            duplicate_policy,
        )
    return paired


def compute_loads(
    exceedance_table: pd.DataFrame,
    samples: ConcentrationInput,
    standard: float,
    conversion_factor: float = DEFAULT_CONVERSION_FACTOR,
    duplicate_policy: str = "mean",
) -> pd.DataFrame:
    """
    Build the daily load table.

    Every flow date is kept (left join on exact date). Dates without a
    sample have NaN concentration and NaN measured load.

    Parameters
    ----------
    exceedance_table : pd.DataFrame
        Output of :func:`ldclib.duration.rank_exceedance`.
    samples : DataFrame or iterable of ConcentrationRecord
        Concentration samples.
    standard : float
        Regulatory concentration threshold per 100 mL.
    conversion_factor : float
        Unit conversion constant K.
    duplicate_policy : str
        Same-day sample handling, see :func:`pair_concentrations`.

    Returns
    -------
    pd.DataFrame
        exceedance_table columns plus concentration, allowable_load and
        measured_load.
    """
    _check_factors(standard, conversion_factor)

    paired = pair_concentrations(samples, duplicate_policy=duplicate_policy)

    df = exceedance_table.copy()
    df = df.merge(paired[["date", "concentration"]], on="date", how="left", validate="one_to_one")

    df["allowable_load"] = allowable_load(df["flow"], standard, conversion_factor)
    df["measured_load"] = measured_load(df["flow"], df["concentration"], conversion_factor)

    n_matched = int(df["concentration"].notna().sum())
    n_unmatched = len(paired) - n_matched
    logger.info(
        "Paired %d of %d sample dates with daily flow (%d outside the flow record)",
        n_matched,
        len(paired),
        n_unmatched,
    )
    return df
