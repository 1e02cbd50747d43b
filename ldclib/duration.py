"""
ldclib.duration - Flow duration curve (exceedance ranking)
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .config import TIE_METHODS
from .core import FlowInput, InvalidConfiguration, InvalidInput, flow_frame
from .regimes import quantile_type5

logger = logging.getLogger(__name__)

STAGE = "rank"

# Exceedance percentages reported in the flow duration table
FDC_PERCENTS = (1, 5, 10, 25, 50, 75, 90, 95, 99)


def validate_flows(df: pd.DataFrame) -> None:
    """Raise :class:`InvalidInput` for an empty, duplicated or out-of-domain flow table."""
    if len(df) == 0:
        raise InvalidInput("flow series is empty", stage=STAGE)

    missing_dates = df["date"].isna().to_numpy()
    if missing_dates.any():
        i = int(np.argmax(missing_dates))
        raise InvalidInput("flow record has no date", stage=STAGE, record=_record(df, i))

    flows = df["flow"].to_numpy(dtype=float)
    bad = ~np.isfinite(flows)
    if bad.any():
        i = int(np.argmax(bad))
        raise InvalidInput(
            "flow must be finite", stage=STAGE, record=_record(df, i)
        )
    neg = flows < 0
    if neg.any():
        i = int(np.argmax(neg))
        raise InvalidInput(
            "flow must be non-negative", stage=STAGE, record=_record(df, i)
        )

    dupes = df["date"].duplicated()
    if dupes.any():
        i = int(np.argmax(dupes.to_numpy()))
        raise InvalidInput(
            "duplicate flow date; aggregate to one value per day first",
            stage=STAGE,
            record=_record(df, i),
        )


def _record(df: pd.DataFrame, i: int) -> dict:
    row = df.iloc[i]
    return {"date": row["date"].date() if pd.notna(row["date"]) else None, "flow": row["flow"]}


def rank_exceedance(flows: FlowInput, ties: str = "ordinal") -> pd.DataFrame:
    """
    Annotate each daily flow with its exceedance probability.

    exceedance = rank / n, where rank 1 is the largest flow and n the smallest.

    Parameters
    ----------
    flows : DataFrame or iterable of FlowRecord
        Daily flows, one per date.
    ties : str
        ``"ordinal"`` gives tied flows distinct ranks, the earlier record
        taking the lower rank. ``"average"`` gives tied flows their mean rank.

    Returns
    -------
    pd.DataFrame
        New table with columns date, flow, rank, exceedance in input order.

    Raises
    ------
    InvalidInput
        Empty series, duplicate dates, negative or non-finite flow.
    InvalidConfiguration
        Unknown ``ties`` method.
    """
    if ties not in TIE_METHODS:
        raise InvalidConfiguration(f"ties must be one of {TIE_METHODS}, got {ties!r}", stage=STAGE)

    df = flow_frame(flows)
    validate_flows(df)

    n = len(df)
    # Negate so the largest flow ranks first
    ranks = stats.rankdata(-df["flow"].to_numpy(dtype=float), method=ties)

    df["rank"] = ranks if ties == "average" else ranks.astype(int)
    df["exceedance"] = ranks / n

    logger.debug("Ranked %d daily flows (ties=%s)", n, ties)
    return df


def flow_duration_table(
    exceedance_table: pd.DataFrame,
    percents: Sequence[float] = FDC_PERCENTS,
) -> pd.DataFrame:
    """
    Flows at selected exceedance percentages.

    Parameters
    ----------
    exceedance_table : pd.DataFrame
        Output of :func:`rank_exceedance`.
    percents : sequence of float
        Exceedance percentages (0-100).

    Returns
    -------
    pd.DataFrame
        Columns "Exceedance %" and "Flow".
    """
    flows = exceedance_table["flow"].to_numpy(dtype=float)
    rows = []
    for pct in percents:
        if not 0 <= pct <= 100:
            raise InvalidInput(f"exceedance percent must be within [0, 100], got {pct}")
        rows.append(
            {
                "Exceedance %": pct,
                "Flow": quantile_type5(flows, 1 - pct / 100.0),
            }
        )
    return pd.DataFrame(rows)
