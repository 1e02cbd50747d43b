"""
ldclib.core - Core data structures, regime definitions and errors
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

import numpy as np
import pandas as pd


# =============================================================================
# ERRORS
# =============================================================================


class LDCError(Exception):
    """Base class for load duration curve errors.

    Parameters
    ----------
    message : str
        Description of the problem.
    stage : str, optional
        Pipeline stage that failed ("rank", "load" or "summarize").
    record : object, optional
        Offending record (a date, a value or a row), when known.
    """

    def __init__(self, message: str, stage: Optional[str] = None, record: Any = None) -> None:
        self.message = message
        self.stage = stage
        self.record = record
        super().__init__(message)

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        parts.append(self.message)
        if self.record is not None:
            parts.append(f"(record: {self.record!r})")
        return " ".join(parts)


class InvalidInput(LDCError, ValueError):
    """Malformed or out-of-domain input records."""


class InvalidConfiguration(LDCError, ValueError):
    """Bad standard, conversion factor or policy setting."""


class EmptyRegime(UserWarning):
    """Recoverable per-regime condition.

    Collected as a diagnostic; the library never raises it.

    Parameters
    ----------
    regime : str
        Regime label.
    p : float
        Representative exceedance of the regime.
    reason : str
        ``"no_flows"`` or ``"no_samples"``.
    """

    def __init__(self, regime: str, p: float, reason: str) -> None:
        self.regime = regime
        self.p = p
        self.reason = reason
        if reason == "no_flows":
            detail = "no flow records"
        else:
            detail = "no paired concentration samples"
        super().__init__(f"{regime} (p={p}): {detail}; derived fields left undefined")

    @property
    def message(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"EmptyRegime(regime={self.regime!r}, p={self.p}, reason={self.reason!r})"


# =============================================================================
# RECORDS
# =============================================================================


@dataclass(frozen=True)
class FlowRecord:
    """One mean daily streamflow value."""

    date: dt.date
    flow: float


@dataclass(frozen=True)
class ConcentrationRecord:
    """One concentration sample; ``concentration`` may be None (missing)."""

    date: dt.date
    concentration: Optional[float] = None


@dataclass(frozen=True)
class FlowRegime:
    """
    One of the five flow-condition categories of the exceedance axis.

    ``lower`` and ``upper`` are the cut points. The labeling pass treats
    them as ``[lower, upper)`` (``[lower, upper]`` for the last regime);
    the representative-point pass treats them as ``(lower, upper]``.
    """

    label: str
    p: float
    lower: float
    upper: float

    # Both accept a scalar or a numpy array of exceedance values

    def contains_label(self, exceedance):
        if self.upper >= 1.0:
            return (exceedance >= self.lower) & (exceedance <= self.upper)
        return (exceedance >= self.lower) & (exceedance < self.upper)

    def contains_point(self, exceedance):
        return (exceedance > self.lower) & (exceedance <= self.upper)


FLOW_REGIMES: Tuple[FlowRegime, ...] = (
    FlowRegime("Highest Flows", 0.05, 0.0, 0.1),
    FlowRegime("Moist Conditions", 0.25, 0.1, 0.4),
    FlowRegime("Mid-Range Flows", 0.5, 0.4, 0.6),
    FlowRegime("Dry Conditions", 0.75, 0.6, 0.9),
    FlowRegime("Lowest Flows", 0.95, 0.9, 1.0),
)

# Interior cut points, low to high exceedance
REGIME_BOUNDARIES: Tuple[float, ...] = tuple(r.upper for r in FLOW_REGIMES[:-1])


# =============================================================================
# TABLE CONVERSION
# =============================================================================

FlowInput = Union[pd.DataFrame, Iterable[FlowRecord]]
ConcentrationInput = Union[pd.DataFrame, Iterable[ConcentrationRecord]]


def _normalize_dates(values: Any) -> pd.Series:
    return pd.to_datetime(pd.Series(values), errors="coerce").dt.normalize()


def flow_frame(flows: FlowInput) -> pd.DataFrame:
    """
    Return a fresh flow table with columns ``date`` and ``flow``.

    Accepts a DataFrame (with a ``date`` column or a DatetimeIndex, and a
    ``flow`` or ``flow_cfs`` column) or an iterable of :class:`FlowRecord`.
    """
    if isinstance(flows, pd.DataFrame):
        df = flows.copy()
        if "date" not in df.columns:
            if not isinstance(df.index, pd.DatetimeIndex):
                raise InvalidInput("flow table needs a 'date' column or a DatetimeIndex")
            df = df.rename_axis("date").reset_index()
        if "flow" not in df.columns and "flow_cfs" in df.columns:
            df = df.rename(columns={"flow_cfs": "flow"})
        if "flow" not in df.columns:
            raise InvalidInput("flow table needs a 'flow' column")
        df = df[["date", "flow"]].reset_index(drop=True)
    else:
        records = list(flows)
        df = pd.DataFrame(
            {
                "date": [r.date for r in records],
                "flow": [r.flow for r in records],
            }
        )
    df["date"] = _normalize_dates(df["date"]).values
    df["flow"] = pd.to_numeric(df["flow"], errors="coerce").astype(float)
    return df


def concentration_frame(samples: ConcentrationInput) -> pd.DataFrame:
    """Return a fresh concentration table with columns ``date`` and ``concentration``."""
    if isinstance(samples, pd.DataFrame):
        if "date" not in samples.columns or "concentration" not in samples.columns:
            raise InvalidInput("concentration table needs 'date' and 'concentration' columns")
        df = samples[["date", "concentration"]].copy().reset_index(drop=True)
    else:
        records = list(samples)
        df = pd.DataFrame(
            {
                "date": [r.date for r in records],
                "concentration": [
                    np.nan if r.concentration is None else r.concentration for r in records
                ],
            }
        )
    df["date"] = _normalize_dates(df["date"]).values
    df["concentration"] = pd.to_numeric(df["concentration"], errors="coerce").astype(float)
    return df
