"""
ldclib.engine - Load duration curve pipeline

Runs the three stages in order: exceedance ranking, load conversion and
regime summarization.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import LDCConfig
from .core import ConcentrationInput, EmptyRegime, FlowInput, LDCError
from .duration import rank_exceedance
from .loads import compute_loads
from .regimes import RegimeSummaryResult, summarize_regimes

logger = logging.getLogger(__name__)


class LDCEngine:
    """
    Load duration curve engine for one monitoring site.

    Examples
    --------
    >>> from ldclib import LDCConfig, LDCEngine
    >>> engine = LDCEngine(LDCConfig(standard=126))
    >>> result = engine.fit(flow_df, concentration_df)
    >>> engine.summary_table
    >>> print(engine.summary())
    """

    def __init__(self, config: Optional[LDCConfig] = None):
        self.config = config if config is not None else LDCConfig()
        self.exceedance: Optional[pd.DataFrame] = None
        self.result: Optional[RegimeSummaryResult] = None

    @property
    def loads(self) -> Optional[pd.DataFrame]:
        """Daily load table (with regime columns)."""
        return self.result.loads if self.result else None

    @property
    def summary_table(self) -> Optional[pd.DataFrame]:
        """Five-row regime summary."""
        return self.result.summary if self.result else None

    @property
    def diagnostics(self) -> List[EmptyRegime]:
        return list(self.result.diagnostics) if self.result else []

    def fit(self, flows: FlowInput, concentrations: ConcentrationInput) -> RegimeSummaryResult:
        """
        Compute the load duration curve and regime summary.

        Parameters
        ----------
        flows : DataFrame or iterable of FlowRecord
            Daily streamflow, one value per date.
        concentrations : DataFrame or iterable of ConcentrationRecord
            Concentration samples.

        Returns
        -------
        RegimeSummaryResult

        Raises
        ------
        InvalidInput, InvalidConfiguration
            Tagged with the failing ``stage``; nothing is stored.
        """
        cfg = self.config
        cfg.validate()
        self.exceedance = None
        self.result = None

        try:
            exceedance = rank_exceedance(flows, ties=cfg.ties)
            loads = compute_loads(
                exceedance,
                concentrations,
                standard=cfg.standard,
                conversion_factor=cfg.conversion_factor,
                duplicate_policy=cfg.duplicate_policy,
            )
            result = summarize_regimes(
                loads, standard=cfg.standard, conversion_factor=cfg.conversion_factor
            )
        except LDCError as e:
            logger.error("Load duration computation failed: %s", e)
            raise

        self.exceedance = exceedance
        self.result = result
        logger.info(
            "Computed load duration curve for %s: %d days, %d samples, %d empty regimes",
            cfg.site_no or "unnamed site",
            len(loads),
            int(loads["concentration"].notna().sum()),
            len(result.diagnostics),
        )
        return result

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable view of the configuration, summary and diagnostics."""
        if self.result is None:
            raise RuntimeError("Must call fit() before exporting results")

        def clean(value: Any) -> Any:
            if isinstance(value, float) and math.isnan(value):
                return None
            if hasattr(value, "item"):
                return clean(value.item())
            return value

        rows = [
            {k: clean(v) for k, v in row.items()}
            for row in self.result.summary.to_dict(orient="records")
        ]
        loads = self.result.loads
        return {
            "config": self.config.to_dict(),
            "n_days": int(len(loads)),
            "n_samples": int(loads["concentration"].notna().sum()),
            "period": [
                loads["date"].min().strftime("%Y-%m-%d"),
                loads["date"].max().strftime("%Y-%m-%d"),
            ],
            "regimes": rows,
            "diagnostics": [
                {"regime": d.regime, "p": d.p, "reason": d.reason, "message": d.message}
                for d in self.result.diagnostics
            ],
        }

    def summary(self) -> str:
        """Return a text summary of the regime table."""
        if self.result is None:
            return "Model not fitted. Call fit() first."

        cfg = self.config
        loads = self.result.loads
        lines = [
            "Load Duration Curve - Regime Summary",
            "=" * 78,
            f"Site:                {cfg.site_no or '-'}",
            f"Period:              {loads['date'].min():%Y-%m-%d} to {loads['date'].max():%Y-%m-%d}",
            f"Days of flow:        {len(loads)}",
            f"Paired samples:      {int(loads['concentration'].notna().sum())}",
            f"Standard:            {cfg.standard:g} per 100 mL",
            "",
            f"{'Regime':<18}{'p':>6}{'Flow':>12}{'Geomean':>12}{'Allowable':>15}{'Load':>15}",
            "-" * 78,
        ]

        def fmt(value: float, spec: str) -> str:
            return "-" if pd.isna(value) else format(value, spec)

        for row in self.result.summary.itertuples(index=False):
            lines.append(
                f"{row.regime:<18}{row.p:>6.2f}"
                f"{fmt(row.flow, ',.3f'):>12}"
                f"{fmt(row.geomean_concentration, ',.1f'):>12}"
                f"{fmt(row.allowable_load, '.4e'):>15}"
                f"{fmt(row.load, '.4e'):>15}"
            )

        if self.result.diagnostics:
            lines.append("")
            lines.append("Diagnostics:")
            for diag in self.result.diagnostics:
                lines.append(f"  {diag}")
        return "\n".join(lines)
