"""Tests for ldclib.loads."""

from __future__ import annotations

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from ldclib.config import DEFAULT_CONVERSION_FACTOR
from ldclib.core import ConcentrationRecord, InvalidConfiguration, InvalidInput
from ldclib.duration import rank_exceedance
from ldclib.loads import allowable_load, compute_loads, measured_load, pair_concentrations

K = DEFAULT_CONVERSION_FACTOR


@pytest.fixture
def exceedance_table() -> pd.DataFrame:
    dates = pd.date_range("2020-06-01", periods=4, freq="D")
    return rank_exceedance(pd.DataFrame({"date": dates, "flow": [10.0, 20.0, 30.0, 40.0]}))


def samples(rows) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=["date", "concentration"])


class TestConversions:
    """Tests for the allowable and measured load formulas."""

    def test_conversion_constant(self) -> None:
        assert K == pytest.approx(28316.8 * 86400)

    def test_allowable_load_at_126(self) -> None:
        """flow 100 cfs at 126 per 100 mL."""
        load = allowable_load(100.0, 126.0)
        assert load == pytest.approx(1.26 * 100 * 28316.8 * 86400)
        assert load == pytest.approx(3.08e11, rel=1e-2)

    def test_allowable_load_linear_in_flow(self) -> None:
        assert allowable_load(50.0, 126.0) * 2 == pytest.approx(allowable_load(100.0, 126.0))

    def test_round_trip_recovers_concentration(self) -> None:
        flow, conc = 37.5, 410.0
        load = measured_load(flow, conc)
        assert load / K / flow * 100 == pytest.approx(conc)

    def test_missing_concentration_gives_missing_load(self) -> None:
        assert np.isnan(measured_load(10.0, np.nan))

    def test_custom_conversion_factor(self) -> None:
        assert allowable_load(2.0, 100.0, conversion_factor=5.0) == pytest.approx(10.0)

    @pytest.mark.parametrize("standard", [0.0, -126.0, np.nan])
    def test_bad_standard(self, standard: float) -> None:
        with pytest.raises(InvalidConfiguration):
            allowable_load(100.0, standard)

    @pytest.mark.parametrize("factor", [0.0, -1.0, np.inf])
    def test_bad_conversion_factor(self, factor: float) -> None:
        with pytest.raises(InvalidConfiguration):
            measured_load(100.0, 10.0, conversion_factor=factor)


class TestPairConcentrations:
    """Tests for same-day sample handling."""

    def test_mean_policy(self) -> None:
        paired = pair_concentrations(
            samples([("2020-06-01", 100.0), ("2020-06-01", 300.0), ("2020-06-02", 5.0)])
        )
        assert list(paired["concentration"]) == [200.0, 5.0]
        assert list(paired["n_samples"]) == [2, 1]

    def test_first_policy(self) -> None:
        paired = pair_concentrations(
            samples([("2020-06-01", 100.0), ("2020-06-01", 300.0)]), duplicate_policy="first"
        )
        assert list(paired["concentration"]) == [100.0]

    def test_reject_policy(self) -> None:
        with pytest.raises(InvalidInput) as exc_info:
            pair_concentrations(
                samples([("2020-06-01", 100.0), ("2020-06-01", 300.0)]), duplicate_policy="reject"
            )
        assert exc_info.value.stage == "load"
        assert exc_info.value.record == {"date": dt.date(2020, 6, 1)}

    def test_unknown_policy(self) -> None:
        with pytest.raises(InvalidConfiguration):
            pair_concentrations(samples([("2020-06-01", 1.0)]), duplicate_policy="median")

    def test_missing_values_dropped(self) -> None:
        records = [
            ConcentrationRecord(dt.date(2020, 6, 1), None),
            ConcentrationRecord(dt.date(2020, 6, 2), 12.0),
        ]
        paired = pair_concentrations(records)
        assert len(paired) == 1
        assert paired["date"].iloc[0] == pd.Timestamp("2020-06-02")

    def test_negative_concentration(self) -> None:
        with pytest.raises(InvalidInput, match="non-negative"):
            pair_concentrations(samples([("2020-06-01", -3.0)]))


class TestComputeLoads:
    """Tests for the daily load table."""

    def test_left_join_keeps_every_flow_date(self, exceedance_table: pd.DataFrame) -> None:
        result = compute_loads(
            exceedance_table,
            samples([("2020-06-02", 50.0), ("2020-06-04", 200.0), ("2021-01-01", 9.0)]),
            standard=126.0,
        )
        assert len(result) == 4
        assert result["measured_load"].isna().tolist() == [True, False, True, False]
        assert result["allowable_load"].notna().all()

    def test_unmatched_load_is_nan_not_zero(self, exceedance_table: pd.DataFrame) -> None:
        result = compute_loads(exceedance_table, samples([("2020-06-02", 50.0)]), standard=126.0)
        assert np.isnan(result["measured_load"].iloc[0])

    def test_load_values(self, exceedance_table: pd.DataFrame) -> None:
        result = compute_loads(exceedance_table, samples([("2020-06-02", 50.0)]), standard=126.0)
        row = result.iloc[1]
        assert row["concentration"] == 50.0
        assert row["measured_load"] == pytest.approx(0.5 * 20.0 * K)
        assert row["allowable_load"] == pytest.approx(1.26 * 20.0 * K)

    def test_no_samples(self, exceedance_table: pd.DataFrame) -> None:
        result = compute_loads(exceedance_table, samples([]), standard=126.0)
        assert result["measured_load"].isna().all()

    def test_exceedance_columns_carried(self, exceedance_table: pd.DataFrame) -> None:
        result = compute_loads(exceedance_table, samples([]), standard=126.0)
        assert list(result["exceedance"]) == list(exceedance_table["exceedance"])
        assert "allowable_load" not in exceedance_table.columns

    def test_bad_standard_tagged_with_stage(self, exceedance_table: pd.DataFrame) -> None:
        with pytest.raises(InvalidConfiguration) as exc_info:
            compute_loads(exceedance_table, samples([]), standard=0.0)
        assert exc_info.value.stage == "load"
