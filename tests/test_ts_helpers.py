from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climatecast.ts_helpers import (
    annual_means,
    future_index,
    holdout_split,
    lag_features,
    monthly_climatology,
    normalize_lags,
    regularize_monthly,
    seasonal_cycle,
    year_over_year,
)


def test_regularize_monthly_snaps_sorts_and_fills_interior_gaps() -> None:
    raw = pd.Series(
        [9.0, 1.0, 3.0, 5.0],
        index=pd.to_datetime(["2020-03-01", "2020-01-31", "2020-03-15", "2020-05-02"]),
    )

    result = regularize_monthly(raw)

    assert list(result.index) == list(pd.date_range("2020-01-01", "2020-05-01", freq="MS"))
    assert result.index.freqstr == "MS"
    # the later March row wins; Feb and Apr are interpolated
    assert result["2020-03-01"] == 3.0
    assert result["2020-02-01"] == pytest.approx(2.0)
    assert result["2020-04-01"] == pytest.approx(4.0)


def test_regularize_monthly_leaves_edges_missing() -> None:
    raw = pd.Series([np.nan, 1.0, 2.0, np.nan],
                    index=pd.date_range("2020-01-01", periods=4, freq="MS"))

    result = regularize_monthly(raw)

    assert np.isnan(result.iloc[0])
    assert np.isnan(result.iloc[-1])


def test_future_index_continues_monthly(linear_series) -> None:
    index = future_index(linear_series, 3)

    assert list(index) == list(pd.date_range("2005-01-01", periods=3, freq="MS"))


def test_future_index_infers_missing_freq(linear_series) -> None:
    no_freq = pd.Series(linear_series.to_numpy(), index=list(linear_series.index))

    assert future_index(no_freq, 1)[0] == pd.Timestamp("2005-01-01")


def test_future_index_rejects_non_positive_horizon(linear_series) -> None:
    with pytest.raises(ValueError):
        future_index(linear_series, 0)


def test_holdout_split_keeps_order(linear_series) -> None:
    train, test = holdout_split(linear_series, 12)

    assert len(train) == 48
    assert len(test) == 12
    assert train.index[-1] < test.index[0]


@pytest.mark.parametrize("size", [0, 60, 100])
def test_holdout_split_rejects_bad_sizes(linear_series, size) -> None:
    with pytest.raises(ValueError):
        holdout_split(linear_series, size)


def test_annual_means_drops_incomplete_years() -> None:
    index = pd.date_range("2000-01-01", periods=18, freq="MS")
    series = pd.Series(np.arange(18, dtype=float), index=index)

    annual = annual_means(series)

    assert list(annual.index) == [2000]
    assert annual.loc[2000] == pytest.approx(5.5)
    assert annual.index.name == "year"
    assert list(annual_means(series, min_months=6).index) == [2000, 2001]


def test_year_over_year_uses_twelve_month_difference(linear_series) -> None:
    yoy = year_over_year(linear_series)

    assert len(yoy) == 48
    assert (yoy == 24.0).all()


def test_monthly_climatology_is_year_by_month(monthly_series) -> None:
    table = monthly_climatology(monthly_series)

    assert table.shape == (20, 12)
    assert list(table.columns[:3]) == ["Jan", "Feb", "Mar"]
    assert table.loc[1990, "Jan"] == monthly_series.iloc[0]


def test_seasonal_cycle_recovers_sine_shape(monthly_series) -> None:
    cycle = seasonal_cycle(monthly_series)

    assert list(cycle.columns) == ["mean", "std"]
    assert len(cycle) == 12
    # sin peaks in month index 3 (April) and troughs in month 9 (October)
    assert cycle["mean"].idxmax() in {"Mar", "Apr", "May"}
    assert cycle["mean"].idxmin() in {"Sep", "Oct", "Nov"}


def test_normalize_lags() -> None:
    assert normalize_lags(3) == [1, 2, 3]
    assert normalize_lags([12, 1, 2, 1]) == [1, 2, 12]
    with pytest.raises(ValueError):
        normalize_lags(0)
    with pytest.raises(ValueError):
        normalize_lags([0, 1])
    with pytest.raises(ValueError):
        normalize_lags([])


def test_lag_features_builds_supervised_rows(linear_series) -> None:
    X, y = lag_features(linear_series, [1, 12], calendar=True)

    assert list(X.columns) == ["lag_1", "lag_12", "month"]
    assert len(X) == len(linear_series) - 12
    first = X.index[0]
    assert first == linear_series.index[12]
    assert X.loc[first, "lag_1"] == linear_series.iloc[11]
    assert X.loc[first, "lag_12"] == linear_series.iloc[0]
    assert X.loc[first, "month"] == 1
    assert y.loc[first] == linear_series.iloc[12]
