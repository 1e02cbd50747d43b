"""Tests for ldclib.usgs (network calls are faked)."""

from __future__ import annotations

import pandas as pd
import pytest
import requests

from ldclib import usgs
from ldclib.usgs import USGSgage, fetch_daily_flow, parse_daily_rdb

HEADER = [
    "# ---------------------------------- WARNING ----------------------------------------",
    "# Some of the data that you have obtained from this U.S. Geological Survey database",
    "#",
    "# Data for the following 1 site(s) are contained in this file",
    "#    USGS 08068000 W Fk San Jacinto Rv nr Conroe, TX",
    "# -----------------------------------------------------------------------------------",
    "#",
    "# Data provided for site 08068000",
    "#            TS   parameter     statistic     Description",
    "#        45807       00060     00003     Discharge, cubic feet per second (Mean)",
    "#",
]


def rdb_text(rows) -> str:
    """Build an NWIS daily-values RDB body from (date, value) pairs."""
    lines = list(HEADER)
    lines.append("\t".join(["agency_cd", "site_no", "datetime", "45807_00060_00003", "45807_00060_00003_cd"]))
    lines.append("\t".join(["5s", "15s", "20d", "14n", "10s"]))
    for date, value in rows:
        lines.append("\t".join(["USGS", "08068000", date, str(value), "A"]))
    return "\n".join(lines) + "\n"


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class TestParseDailyRdb:
    """Tests for RDB parsing."""

    def test_parse(self) -> None:
        df, name = parse_daily_rdb(
            rdb_text([("2020-01-01", 120), ("2020-01-02", 115.5), ("2020-01-03", "Ice")]),
            "08068000",
        )
        assert list(df.columns) == ["date", "flow"]
        assert list(df["flow"]) == [120.0, 115.5]
        assert df["date"].iloc[0] == pd.Timestamp("2020-01-01")
        assert name == "W Fk San Jacinto Rv nr Conroe, TX"

    def test_no_data(self) -> None:
        with pytest.raises(ValueError, match="No daily data"):
            parse_daily_rdb("\n".join(HEADER), "08068000")


class TestUSGSgage:
    """Tests for the daily flow download."""

    def test_download_daily_flow(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = {}

        def fake_get(url, params=None, timeout=None):
            calls["url"] = url
            calls["params"] = params
            calls["timeout"] = timeout
            return FakeResponse(rdb_text([("2020-01-01", 10), ("2020-01-02", 12)]))

        monkeypatch.setattr(usgs.requests, "get", fake_get)

        gage = USGSgage("8068000")
        df = gage.download_daily_flow("2020-01-01", "2020-01-02")

        assert calls["url"] == USGSgage.BASE_URL_DAILY
        assert calls["params"]["sites"] == "08068000"
        assert calls["params"]["parameterCd"] == "00060"
        assert calls["params"]["statCd"] == "00003"
        assert calls["params"]["startDT"] == "2020-01-01"
        assert calls["timeout"] == USGSgage.TIMEOUT
        assert len(df) == 2
        assert gage.daily_data is df
        assert gage.site_name == "W Fk San Jacinto Rv nr Conroe, TX"

    def test_http_error_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(usgs.requests, "get", lambda *a, **k: FakeResponse("", 404))
        with pytest.raises(requests.HTTPError):
            fetch_daily_flow("08068000")

    def test_repr(self) -> None:
        assert repr(USGSgage("123")) == "USGSgage(site_no='00000123', name='None')"
