"""
ldclib.plots - Flow and load duration curve plotting
"""

from __future__ import annotations

from typing import ClassVar, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .core import FLOW_REGIMES, REGIME_BOUNDARIES


class DurationPlot:
    """Flow and load duration curve figures."""

    REGIME_LINE_STYLE: ClassVar[dict] = dict(color="gray", linestyle="--", linewidth=0.8)

    @staticmethod
    def _title(base: str, site_name: Optional[str], site_no: Optional[str]) -> str:
        if site_name and site_no:
            return f"{base}\nUSGS {site_no} - {site_name}"
        elif site_no:
            return f"{base} - USGS {site_no}"
        return base

    @classmethod
    def _draw_regimes(cls, ax: plt.Axes) -> None:
        """Regime boundaries and labels on an exceedance-percent axis."""
        for cut in REGIME_BOUNDARIES:
            ax.axvline(cut * 100, **cls.REGIME_LINE_STYLE)
        for regime in FLOW_REGIMES:
            ax.text(
                (regime.lower + regime.upper) / 2 * 100,
                0.98,
                regime.label.replace(" ", "\n"),
                transform=ax.get_xaxis_transform(),
                fontsize=8,
                ha="center",
                va="top",
                color="dimgray",
            )

    @classmethod
    def plot_flow_duration_curve(
        cls,
        exceedance_table: pd.DataFrame,
        site_name: str = None,
        site_no: str = None,
        save_path: str = None,
        figsize: Tuple[int, int] = (8, 6),
    ) -> plt.Figure:
        """
        Plot flow against percent of time equaled or exceeded.

        Parameters
        ----------
        exceedance_table : pd.DataFrame
            Output of :func:`ldclib.duration.rank_exceedance`
        site_name : str, optional
            Site name for title
        site_no : str, optional
            Site number for title
        save_path : str, optional
            Path to save figure
        figsize : tuple
            Figure size

        Returns
        -------
        plt.Figure
        """
        df = exceedance_table.sort_values("exceedance")

        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(df["exceedance"] * 100, df["flow"], "b-", linewidth=1.5)
        ax.set_yscale("log")
        ax.set_xlabel("Percent of Time Flow is Equaled or Exceeded", fontsize=11)
        ax.set_ylabel("Discharge (cfs)", fontsize=11)
        ax.set_title(cls._title("Flow Duration Curve", site_name, site_no), fontsize=12, fontweight="bold")
        ax.set_xlim(0, 100)
        ax.grid(True, which="both", alpha=0.3)
        cls._draw_regimes(ax)

        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=300, bbox_inches="tight")

        return fig

    @classmethod
    def plot_load_duration_curve(
        cls,
        loads: pd.DataFrame,
        summary: Optional[pd.DataFrame] = None,
        site_name: str = None,
        site_no: str = None,
        save_path: str = None,
        figsize: Tuple[int, int] = (10, 6),
        load_units: str = "counts/day",
    ) -> plt.Figure:
        """
        Plot the allowable load curve with measured loads and regime loads.

        Missing measured or regime loads are not drawn.

        Parameters
        ----------
        loads : pd.DataFrame
            Daily load table (exceedance, allowable_load, measured_load)
        summary : pd.DataFrame, optional
            Regime summary (p, load)
        load_units : str
            Axis label units

        Returns
        -------
        plt.Figure
        """
        curve = loads.sort_values("exceedance")

        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(
            curve["exceedance"] * 100,
            curve["allowable_load"],
            "b-",
            linewidth=1.5,
            label="Allowable load",
        )

        measured = curve[curve["measured_load"].notna() & (curve["measured_load"] > 0)]
        if len(measured):
            ax.scatter(
                measured["exceedance"] * 100,
                measured["measured_load"],
                s=14,
                color="darkorange",
                edgecolor="black",
                linewidth=0.4,
                zorder=3,
                label="Measured load",
            )

        if summary is not None:
            regime_loads = summary[summary["load"].notna()]
            if len(regime_loads):
                ax.plot(
                    regime_loads["p"] * 100,
                    regime_loads["load"],
                    "rs",
                    markersize=7,
                    zorder=4,
                    label="Regime geomean load",
                )

        ax.set_yscale("log")
        ax.set_xlabel("Flow Duration Interval (%)", fontsize=11)
        ax.set_ylabel(f"Load ({load_units})", fontsize=11)
        ax.set_title(cls._title("Load Duration Curve", site_name, site_no), fontsize=12, fontweight="bold")
        ax.set_xlim(0, 100)
        ax.grid(True, which="both", alpha=0.3)
        cls._draw_regimes(ax)
        ax.legend(loc="lower left", fontsize=9)

        start_yr = loads["date"].min().year
        end_yr = loads["date"].max().year
        n_samples = int(np.count_nonzero(loads["measured_load"].notna()))
        ax.annotate(
            f"Period of Record: {start_yr}-{end_yr}\nSamples: {n_samples}",
            xy=(0.98, 0.02),
            xycoords="axes fraction",
            fontsize=9,
            ha="right",
            va="bottom",
            bbox=dict(boxstyle="round", facecolor="white", alpha=0.8),
        )

        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=300, bbox_inches="tight")

        return fig
