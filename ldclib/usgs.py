"""
ldclib.usgs - USGS daily streamflow retrieval
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import ClassVar, Optional, Tuple

import pandas as pd
import requests

logger = logging.getLogger(__name__)

DISCHARGE_PARAMETER = "00060"
DAILY_MEAN_STATISTIC = "00003"


def parse_daily_rdb(text: str, site_no: str) -> Tuple[pd.DataFrame, Optional[str]]:
    """
    Parse an NWIS daily-values RDB response.

    Parameters
    ----------
    text : str
        Response body (tab-delimited, ``#`` comment header).
    site_no : str
        Site number, used to pull the station name from the header.

    Returns
    -------
    tuple
        (flow table with columns date and flow, site name or None)
    """
    lines = text.split("\n")
    data_lines = [l for l in lines if not l.startswith("#") and l.strip()]

    if len(data_lines) < 2:
        raise ValueError(f"No daily data found for site {site_no}")

    header_idx = 0
    for i, line in enumerate(data_lines):
        if "datetime" in line.lower():
            header_idx = i
            break

    # Second line after the header is the RDB column-format row
    df = pd.read_csv(
        StringIO("\n".join(data_lines[header_idx:])), sep="\t", skiprows=[1], dtype=str
    )

    site_name = None
    for line in lines:
        if line.startswith("#") and site_no in line:
            name_start = line.find(site_no) + len(site_no)
            candidate = line[name_start:].strip()
            if candidate:
                site_name = candidate
                break

    date_cols = [c for c in df.columns if "datetime" in c.lower()]
    flow_cols = [c for c in df.columns if DISCHARGE_PARAMETER in c and not c.lower().endswith("_cd")]

    if not date_cols:
        raise ValueError("Date column not found")
    if not flow_cols:
        raise ValueError("Flow data column not found")

    out = pd.DataFrame(
        {
            "date": pd.to_datetime(df[date_cols[0]], errors="coerce"),
            "flow": pd.to_numeric(df[flow_cols[0]], errors="coerce"),
        }
    )
    n_raw = len(out)
    # Ice, equipment-malfunction and similar codes come through as text
    out = out.dropna().reset_index(drop=True)
    if len(out) < n_raw:
        logger.info("Dropped %d non-numeric daily values for site %s", n_raw - len(out), site_no)
    return out, site_name


class USGSgage:
    """USGS gage daily streamflow retrieval."""

    BASE_URL_DAILY: ClassVar[str] = "https://waterservices.usgs.gov/nwis/dv/"
    TIMEOUT: ClassVar[int] = 60

    def __init__(self, site_no: str):
        self._site_no = str(site_no).zfill(8)
        self._site_name: Optional[str] = None
        self._daily_data: Optional[pd.DataFrame] = None

    @property
    def site_no(self) -> str:
        return self._site_no

    @property
    def site_name(self) -> Optional[str]:
        return self._site_name

    @site_name.setter
    def site_name(self, value: str):
        self._site_name = value

    @property
    def daily_data(self) -> Optional[pd.DataFrame]:
        return self._daily_data

    @daily_data.setter
    def daily_data(self, value: pd.DataFrame):
        self._daily_data = value

    def download_daily_flow(self, start_date: str = None, end_date: str = None) -> pd.DataFrame:
        """Download mean daily streamflow (cfs) from USGS NWIS."""
        params = {
            "format": "rdb",
            "sites": self._site_no,
            "parameterCd": DISCHARGE_PARAMETER,
            "statCd": DAILY_MEAN_STATISTIC,
        }
        if start_date:
            params["startDT"] = start_date
        if end_date:
            params["endDT"] = end_date

        logger.info("Requesting daily flow for USGS %s (%s to %s)", self._site_no, start_date, end_date)
        response = requests.get(self.BASE_URL_DAILY, params=params, timeout=self.TIMEOUT)
        response.raise_for_status()

        df, site_name = parse_daily_rdb(response.text, self._site_no)
        if site_name:
            self._site_name = site_name

        self._daily_data = df
        logger.info("Downloaded %d days of daily flow for USGS %s", len(df), self._site_no)
        return df

    def __repr__(self) -> str:
        return f"USGSgage(site_no='{self._site_no}', name='{self._site_name}')"


def fetch_daily_flow(site_no: str, start_date: str = None, end_date: str = None) -> pd.DataFrame:
    """
    Fetch a daily flow table for one USGS site.

    Parameters
    ----------
    site_no : str
        USGS site number
    start_date, end_date : str, optional
        Period to request (YYYY-MM-DD)

    Returns
    -------
    pd.DataFrame
        Columns date and flow
    """
    gage = USGSgage(site_no)
    return gage.download_daily_flow(start_date, end_date)
