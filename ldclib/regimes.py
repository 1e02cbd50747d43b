"""
ldclib.regimes - Flow-regime binning and per-regime load summaries

Each daily record is placed in one of five flow regimes twice:

- the *labeling* pass gives ``flow_condition`` using intervals closed on
  the left: [0, 0.1), [0.1, 0.4), [0.4, 0.6), [0.6, 0.9), [0.9, 1.0]
- the *representative-point* pass gives ``p`` using intervals closed on
  the right: (0, 0.1], (0.1, 0.4], (0.4, 0.6], (0.6, 0.9], (0.9, 1.0]

The two disagree only for exceedance values exactly on an interior cut.
Summary rows are grouped by ``p``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .config import DEFAULT_CONVERSION_FACTOR, validate_positive
from .core import FLOW_REGIMES, EmptyRegime, FlowRegime, InvalidConfiguration, InvalidInput

logger = logging.getLogger(__name__)

STAGE = "summarize"

QUANTILE_DECIMALS = 3

SUMMARY_COLUMNS = [
    "regime",
    "p",
    "n_flows",
    "n_samples",
    "flow",
    "geomean_concentration",
    "allowable_load",
    "load",
]


def label_regime(exceedance: float) -> Optional[str]:
    """Flow-condition label for one exceedance value (labeling pass)."""
    for regime in FLOW_REGIMES:
        if regime.contains_label(exceedance):
            return regime.label
    return None


def representative_exceedance(exceedance: float) -> float:
    """Canonical p for one exceedance value; NaN when outside (0, 1]."""
    for regime in FLOW_REGIMES:
        if regime.contains_point(exceedance):
            return regime.p
    return np.nan


def quantile_type5(values: Sequence[float], q: float) -> float:
    """
    Sample quantile by piecewise linear interpolation at (k - 0.5) / n.

    This is Hyndman & Fan type 5 (numpy's "hazen" method). The result is
    rounded to 3 decimals. Returns NaN for an empty sample.
    """
    arr = np.asarray(values, dtype=float)
    arr = arr[~np.isnan(arr)]
    if arr.size == 0:
        return np.nan
    return round(float(np.quantile(arr, q, method="hazen")), QUANTILE_DECIMALS)


def geometric_mean(values: Sequence[float]) -> float:
    """
    Geometric mean, exp(mean(log(x))), of the non-missing values.

    Returns NaN if nothing remains after dropping missing values.

    Raises
    ------
    InvalidInput
        If any value is zero, negative or infinite.
    """
    arr = np.asarray(values, dtype=float)
    arr = arr[~np.isnan(arr)]
    if arr.size == 0:
        return np.nan
    bad = ~np.isfinite(arr) | (arr <= 0)
    if bad.any():
        raise InvalidInput(
            "geometric mean requires positive finite values",
            stage=STAGE,
            record=float(arr[np.argmax(bad)]),
        )
    return float(stats.gmean(arr))


def assign_regimes(load_table: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of *load_table* with ``flow_condition`` and ``p`` columns.

    Raises
    ------
    InvalidInput
        If an exceedance is missing or outside (0, 1].
    """
    df = load_table.copy()
    exceedance = df["exceedance"].to_numpy(dtype=float)

    # rank >= 1 keeps every exceedance strictly positive
    bad = ~np.isfinite(exceedance) | (exceedance <= 0) | (exceedance > 1)
    if bad.any():
        i = int(np.argmax(bad))
        raise InvalidInput(
            "exceedance must be within (0, 1]",
            stage=STAGE,
            record={"date": df["date"].iloc[i], "exceedance": exceedance[i]},
        )

    labels = np.full(exceedance.size, None, dtype=object)
    ps = np.full(exceedance.size, np.nan)
    for regime in FLOW_REGIMES:
        labels[regime.contains_label(exceedance)] = regime.label
        ps[regime.contains_point(exceedance)] = regime.p
    df["flow_condition"] = labels
    df["p"] = ps
    return df


@dataclass
class RegimeSummaryResult:
    """Output of :func:`summarize_regimes`.

    Parameters
    ----------
    summary : pd.DataFrame
        Five rows, one per regime, in regime order.
    loads : pd.DataFrame
        Daily load table with ``flow_condition`` and ``p``.
    diagnostics : list of EmptyRegime
        Regimes whose derived fields are undefined.
    """

    summary: pd.DataFrame
    loads: pd.DataFrame
    diagnostics: List[EmptyRegime] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every regime has flows and samples."""
        return not self.diagnostics

    def regime(self, label: str) -> Dict[str, object]:
        """Summary row for one regime as a dict."""
        rows = self.summary[self.summary["regime"] == label]
        if rows.empty:
            raise KeyError(label)
        return rows.iloc[0].to_dict()


def _summarize_one(
    regime: FlowRegime,
    flows: np.ndarray,
    concentrations: np.ndarray,
    standard: float,
    conversion_factor: float,
    diagnostics: List[EmptyRegime],
) -> Dict[str, object]:
    row: Dict[str, object] = {
        "regime": regime.label,
        "p": regime.p,
        "n_flows": int(flows.size),
        "n_samples": int(np.count_nonzero(~np.isnan(concentrations))),
        "flow": np.nan,
        "geomean_concentration": np.nan,
        "allowable_load": np.nan,
        "load": np.nan,
    }

    if flows.size == 0:
        diagnostics.append(EmptyRegime(regime.label, regime.p, "no_flows"))
        return row

    flow = quantile_type5(flows, 0.5)
    row["flow"] = flow
    row["allowable_load"] = flow * standard / 100.0 * conversion_factor

    if row["n_samples"] == 0:
        diagnostics.append(EmptyRegime(regime.label, regime.p, "no_samples"))
        return row

    try:
        gm = geometric_mean(concentrations)
    except InvalidInput as e:
        e.message = f"{regime.label}: {e.message}"
        raise
    row["geomean_concentration"] = gm
    row["load"] = flow * gm / 100.0 * conversion_factor
    return row


def summarize_regimes(
    load_table: pd.DataFrame,
    standard: float,
    conversion_factor: float = DEFAULT_CONVERSION_FACTOR,
) -> RegimeSummaryResult:
    """
    Summarize the daily load table by flow regime.

    For each regime: the type-5 median flow (3 decimals), the geometric
    mean of the paired concentrations, and the loads at that flow for the
    standard and for the geometric mean.

    Parameters
    ----------
    load_table : pd.DataFrame
        Output of :func:`ldclib.loads.compute_loads`.
    standard : float
        Regulatory concentration threshold per 100 mL.
    conversion_factor : float
        Unit conversion constant K.

    Returns
    -------
    RegimeSummaryResult
        Always five summary rows. Regimes without flows or without samples
        keep NaN in their derived fields and are reported in ``diagnostics``.

    Raises
    ------
    InvalidInput
        Exceedance outside (0, 1], or a zero concentration in a regime.
    InvalidConfiguration
        Non-positive ``standard`` or ``conversion_factor``.
    """
    try:
        validate_positive("standard", standard)
        validate_positive("conversion_factor", conversion_factor)
    except InvalidConfiguration as e:
        e.stage = STAGE
        raise

    df = assign_regimes(load_table)
    if "concentration" not in df.columns:
        df["concentration"] = np.nan

    p = df["p"].to_numpy(dtype=float)
    flows = df["flow"].to_numpy(dtype=float)
    conc = df["concentration"].to_numpy(dtype=float)

    diagnostics: List[EmptyRegime] = []
    rows = []
    for regime in FLOW_REGIMES:
        # Grouped by the representative-point pass, not flow_condition;
        # records on an interior cut are labeled with the next regime
        mask = p == regime.p
        rows.append(
            _summarize_one(regime, flows[mask], conc[mask], standard, conversion_factor, diagnostics)
        )

    for diag in diagnostics:
        logger.warning("Empty regime: %s", diag)

    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    logger.debug(
        "Summarized %d records into %d regimes (%d diagnostics)",
        len(df),
        len(summary),
        len(diagnostics),
    )
    return RegimeSummaryResult(summary=summary, loads=df, diagnostics=diagnostics)


def regime_table() -> pd.DataFrame:
    """Regime definitions with both interval conventions, for display."""
    rows = []
    for regime in FLOW_REGIMES:
        closing = "]" if regime.upper >= 1.0 else ")"
        rows.append(
            {
                "regime": regime.label,
                "p": regime.p,
                "label_interval": f"[{regime.lower:g}, {regime.upper:g}{closing}",
                "point_interval": f"({regime.lower:g}, {regime.upper:g}]",
            }
        )
    return pd.DataFrame(rows)
