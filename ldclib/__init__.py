"""
ldclib - Load duration curves for water-quality monitoring sites

Includes:
- USGS daily streamflow download
- Water Quality Portal concentration exports
- Flow duration (exceedance) ranking
- Allowable and measured daily loads
- Flow-regime summaries with geometric-mean loads
- Flow and load duration curve plotting
"""

import logging
import os

from .config import DEFAULT_CONVERSION_FACTOR, DEFAULT_STANDARD, LDCConfig
from .core import (
    FLOW_REGIMES,
    ConcentrationRecord,
    EmptyRegime,
    FlowRecord,
    FlowRegime,
    InvalidConfiguration,
    InvalidInput,
    LDCError,
    concentration_frame,
    flow_frame,
)
from .duration import flow_duration_table, rank_exceedance
from .engine import LDCEngine
from .loads import allowable_load, compute_loads, measured_load, pair_concentrations
from .regimes import (
    RegimeSummaryResult,
    assign_regimes,
    geometric_mean,
    label_regime,
    quantile_type5,
    representative_exceedance,
    summarize_regimes,
)
from .usgs import USGSgage, fetch_daily_flow
from .wqp import read_concentration_records

logger = logging.getLogger(__name__)


def analyze_site(
    config: LDCConfig,
    concentration_path: str,
    characteristic: str = None,
    sep: str = ",",
    output_dir: str = None,
    plot: bool = False,
) -> dict:
    """
    Complete load duration analysis for a USGS gage.

    Parameters
    ----------
    config : LDCConfig
        Site, standard and date range (``config.site_no`` is required)
    concentration_path : str
        Delimited water-quality result export
    characteristic : str, optional
        CharacteristicName to keep from the export
    sep : str
        Field delimiter of the export
    output_dir : str, optional
        Directory for loads.csv, regime_summary.csv and (with ``plot``) ldc.png
    plot : bool
        Save the load duration curve figure to ``output_dir``
    """
    if not config.site_no:
        raise InvalidConfiguration("site_no is required to download flows")

    gage = USGSgage(config.site_no)
    flows = gage.download_daily_flow(config.start_date, config.end_date)
    samples = read_concentration_records(concentration_path, characteristic=characteristic, sep=sep)

    engine = LDCEngine(config)
    result = engine.fit(flows, samples)

    files = []
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

        loads_path = os.path.join(output_dir, "loads.csv")
        result.loads.to_csv(loads_path, index=False)
        summary_path = os.path.join(output_dir, "regime_summary.csv")
        result.summary.to_csv(summary_path, index=False)
        files.extend([loads_path, summary_path])

        if plot:
            import matplotlib.pyplot as plt

            from .plots import DurationPlot

            fig_path = os.path.join(output_dir, "ldc.png")
            fig = DurationPlot.plot_load_duration_curve(
                result.loads,
                result.summary,
                site_name=gage.site_name,
                site_no=gage.site_no,
                save_path=fig_path,
            )
            plt.close(fig)
            files.append(fig_path)

        logger.info("Wrote %d files to %s", len(files), output_dir)

    return {
        "gage": gage,
        "engine": engine,
        "result": result,
        "files": files,
    }


__version__ = "0.1.0"
__author__ = "ldclib"

__all__ = [
    # Core
    "FlowRecord",
    "ConcentrationRecord",
    "FlowRegime",
    "FLOW_REGIMES",
    "flow_frame",
    "concentration_frame",
    # Errors
    "LDCError",
    "InvalidInput",
    "InvalidConfiguration",
    "EmptyRegime",
    # Config
    "LDCConfig",
    "DEFAULT_CONVERSION_FACTOR",
    "DEFAULT_STANDARD",
    # Stages
    "rank_exceedance",
    "flow_duration_table",
    "allowable_load",
    "measured_load",
    "pair_concentrations",
    "compute_loads",
    "label_regime",
    "representative_exceedance",
    "assign_regimes",
    "quantile_type5",
    "geometric_mean",
    "summarize_regimes",
    "RegimeSummaryResult",
    # Engine
    "LDCEngine",
    # Data retrieval
    "USGSgage",
    "fetch_daily_flow",
    "read_concentration_records",
    # Convenience
    "analyze_site",
]
