from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climatecast.stats_helpers import (
    descriptive_stats,
    residual_diagnostics,
    stationarity_tests,
    warming_trend,
)


def test_descriptive_stats(linear_series) -> None:
    stats = descriptive_stats(linear_series)

    assert stats["count"] == 60
    assert stats["min"] == 10.0
    assert stats["max"] == 128.0
    assert stats["mean"] == pytest.approx(69.0)
    assert stats["first"] == pd.Timestamp("2000-01-01")
    assert stats["last"] == pd.Timestamp("2004-12-01")


def test_warming_trend_per_decade() -> None:
    years = np.arange(1950, 2020)
    annual = pd.Series(0.02 * (years - 1950) - 0.3, index=years)

    trend = warming_trend(annual)

    assert trend["slope"] == pytest.approx(0.2)
    assert trend["r_squared"] == pytest.approx(1.0)
    assert trend["ci_low"] <= trend["slope"] <= trend["ci_high"]
    assert trend["fitted"].iloc[0] == pytest.approx(-0.3)


def test_warming_trend_confidence_interval_with_noise() -> None:
    years = np.arange(1950, 2020)
    rng = np.random.default_rng(3)
    annual = pd.Series(0.02 * (years - 1950) + rng.normal(0, 0.1, len(years)), index=years)

    trend = warming_trend(annual)

    assert trend["ci_low"] < trend["slope"] < trend["ci_high"]
    assert trend["p_value"] < 0.001


def test_warming_trend_needs_three_years() -> None:
    with pytest.raises(ValueError):
        warming_trend(pd.Series([0.1, 0.2, np.nan], index=[2000, 2001, 2002]))


def test_stationarity_of_random_walk_and_its_difference() -> None:
    rng = np.random.default_rng(7)
    walk = pd.Series(np.cumsum(rng.normal(0, 1, 400)))

    levels = stationarity_tests(walk)
    changes = stationarity_tests(walk.diff())

    assert levels["stationary"] is False
    assert changes["adf_p"] < 0.05
    assert set(levels) == {"adf_stat", "adf_p", "adf_lags", "kpss_stat", "kpss_p", "stationary"}


def test_residual_diagnostics_flags_autocorrelation() -> None:
    t = np.arange(300)
    resid = pd.Series(np.sin(2 * np.pi * t / 12))

    diag = residual_diagnostics(resid)

    assert diag["lags"] == 24
    assert diag["ljung_box_p"] < 0.01
    assert 0.0 <= diag["shapiro_p"] <= 1.0


def test_residual_diagnostics_caps_lags_for_short_series() -> None:
    values = np.random.default_rng(0).normal(0, 1, 20)

    diag = residual_diagnostics(values)

    assert diag["lags"] == 10
    assert diag["mean"] == pytest.approx(values.mean())
