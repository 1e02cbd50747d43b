"""Tests for ldclib.duration."""

from __future__ import annotations

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from ldclib.core import FlowRecord, InvalidConfiguration, InvalidInput
from ldclib.duration import flow_duration_table, rank_exceedance


def make_flows(values, start="2020-01-01") -> pd.DataFrame:
    dates = pd.date_range(start, periods=len(values), freq="D")
    return pd.DataFrame({"date": dates, "flow": values})


class TestRankExceedance:
    """Tests for exceedance ranking."""

    def test_four_day_scenario(self) -> None:
        """Largest flow ranks first; exceedance is rank / n."""
        result = rank_exceedance(make_flows([10.0, 20.0, 30.0, 40.0]))
        assert list(result["rank"]) == [4, 3, 2, 1]
        assert list(result["exceedance"]) == [1.0, 0.75, 0.5, 0.25]

    def test_exceedance_is_permutation(self) -> None:
        """Exceedance values are exactly {1/n, ..., 1}."""
        rng = np.random.default_rng(42)
        flows = rng.lognormal(3.0, 1.0, size=365)
        result = rank_exceedance(make_flows(flows))
        n = len(flows)
        expected = np.arange(1, n + 1) / n
        np.testing.assert_array_equal(np.sort(result["exceedance"].to_numpy()), expected)

    def test_monotonic_for_untied_flows(self) -> None:
        """Higher flow never has higher exceedance."""
        rng = np.random.default_rng(7)
        flows = rng.permutation(np.arange(1.0, 101.0))
        result = rank_exceedance(make_flows(flows)).sort_values("flow", ascending=False)
        assert result["exceedance"].is_monotonic_increasing

    def test_ordinal_ties_first_occurrence_wins(self) -> None:
        """Tied flows get distinct ranks in input order."""
        result = rank_exceedance(make_flows([5.0, 5.0, 3.0]))
        assert list(result["rank"]) == [1, 2, 3]
        np.testing.assert_allclose(result["exceedance"], [1 / 3, 2 / 3, 1.0])

    def test_average_ties(self) -> None:
        """Average tie method shares the mean rank."""
        result = rank_exceedance(make_flows([5.0, 5.0, 3.0]), ties="average")
        np.testing.assert_allclose(result["exceedance"], [0.5, 0.5, 1.0])

    def test_unknown_tie_method(self) -> None:
        with pytest.raises(InvalidConfiguration):
            rank_exceedance(make_flows([1.0, 2.0]), ties="dense")

    def test_flow_records_accepted(self) -> None:
        """Sequences of FlowRecord are converted to a table."""
        records = [
            FlowRecord(dt.date(2021, 5, 1), 2.0),
            FlowRecord(dt.date(2021, 5, 2), 8.0),
        ]
        result = rank_exceedance(records)
        assert list(result["exceedance"]) == [1.0, 0.5]
        assert result["date"].iloc[0] == pd.Timestamp("2021-05-01")

    def test_datetime_index_with_flow_cfs(self) -> None:
        """Tables indexed by date with a flow_cfs column are accepted."""
        df = pd.DataFrame(
            {"flow_cfs": [3.0, 1.0]},
            index=pd.DatetimeIndex(["2022-01-01", "2022-01-02"], name="date"),
        )
        result = rank_exceedance(df)
        assert list(result.columns) == ["date", "flow", "rank", "exceedance"]

    def test_input_not_mutated(self) -> None:
        df = make_flows([1.0, 2.0, 3.0])
        rank_exceedance(df)
        assert list(df.columns) == ["date", "flow"]

    def test_zero_flow_allowed(self) -> None:
        result = rank_exceedance(make_flows([0.0, 1.0]))
        assert list(result["exceedance"]) == [1.0, 0.5]


class TestRankExceedanceErrors:
    """Invalid flow series are rejected."""

    def test_empty_series(self) -> None:
        with pytest.raises(InvalidInput) as exc_info:
            rank_exceedance(make_flows([]))
        assert exc_info.value.stage == "rank"

    def test_negative_flow(self) -> None:
        with pytest.raises(InvalidInput) as exc_info:
            rank_exceedance(make_flows([1.0, -2.0, 3.0]))
        assert exc_info.value.record["flow"] == -2.0
        assert exc_info.value.record["date"] == dt.date(2020, 1, 2)

    @pytest.mark.parametrize("bad", [np.nan, np.inf])
    def test_non_finite_flow(self, bad: float) -> None:
        with pytest.raises(InvalidInput):
            rank_exceedance(make_flows([1.0, bad]))

    def test_duplicate_dates(self) -> None:
        df = pd.DataFrame(
            {"date": ["2020-01-01", "2020-01-02", "2020-01-02"], "flow": [1.0, 2.0, 3.0]}
        )
        with pytest.raises(InvalidInput, match="duplicate"):
            rank_exceedance(df)

    def test_missing_flow_column(self) -> None:
        with pytest.raises(InvalidInput):
            rank_exceedance(pd.DataFrame({"date": ["2020-01-01"], "q": [1.0]}))


class TestFlowDurationTable:
    """Tests for the flow duration statistics table."""

    def test_percentiles(self) -> None:
        """Flows at exceedance percentages use the type-5 quantile at 1 - p."""
        table = flow_duration_table(rank_exceedance(make_flows(np.arange(1.0, 101.0))))
        by_pct = dict(zip(table["Exceedance %"], table["Flow"]))
        assert by_pct[50] == pytest.approx(50.5)
        assert by_pct[10] == pytest.approx(90.5)
        assert by_pct[90] == pytest.approx(10.5)

    def test_high_flows_exceed_low_flows(self) -> None:
        table = flow_duration_table(rank_exceedance(make_flows(np.arange(1.0, 366.0))))
        assert table["Flow"].is_monotonic_decreasing

    def test_out_of_range_percent(self) -> None:
        with pytest.raises(InvalidInput):
            flow_duration_table(rank_exceedance(make_flows([1.0, 2.0])), percents=[150])
