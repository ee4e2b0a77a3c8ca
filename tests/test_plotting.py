from __future__ import annotations

import pandas as pd

from climatecast.constants import FALLBACK_COLOR, MODEL_COLORS
from climatecast.decomposition import decompose
from climatecast.evaluation import cv_splits
from climatecast.forecasters import drift_forecast, naive_forecast
from climatecast.plotting import (
    cv_splits_chart,
    decomposition_chart,
    forecast_chart,
    metrics_bar_chart,
    model_color,
    series_chart,
    warming_stripes,
)
from climatecast.ts_helpers import holdout_split


def test_model_color_falls_back() -> None:
    assert model_color("ARIMA") == MODEL_COLORS["ARIMA"]
    assert model_color("Something else") == FALLBACK_COLOR


def test_series_chart_adds_one_trace_per_smoothing_window(monthly_series) -> None:
    fig = series_chart(monthly_series, title="CO2", smooth={12: "#000000", 120: "#ff0000"})

    assert [t.name for t in fig.data] == ["Monthly", "12-month mean", "120-month mean"]
    assert fig.layout.title.text == "CO2"


def test_forecast_chart_draws_intervals_only_when_asked(monthly_series) -> None:
    train, test = holdout_split(monthly_series, 12)
    results = [naive_forecast(train, 12), drift_forecast(train, 12)]

    with_bands = forecast_chart(train, results, test, history=24)
    without = forecast_chart(train, results, test, intervals=False)

    assert len(with_bands.data) == 2 + 2 * 2
    assert len(without.data) == 2 + 2
    assert len(with_bands.data[0].x) == 24
    assert "Naive" in [t.name for t in without.data]


def test_decomposition_chart_has_four_panels(monthly_series) -> None:
    fig = decomposition_chart(decompose(monthly_series), title="STL")

    assert len(fig.data) == 4


def test_cv_splits_chart_legend_once_per_role(linear_series) -> None:
    fig = cv_splits_chart(list(cv_splits(linear_series, 6, n_splits=3)))

    assert len(fig.data) == 6
    assert sum(bool(t.showlegend) for t in fig.data) == 2


def test_metrics_bar_chart_and_stripes() -> None:
    table = pd.DataFrame({"Model": ["A", "B"], "RMSE": [1.0, 2.0]})
    assert metrics_bar_chart(table).layout.title.text == "RMSE by Model"

    annual = pd.Series([-0.2, 0.0, 0.5], index=[2000, 2001, 2002])
    stripes = warming_stripes(annual)
    assert stripes.data[0].zmax == 0.5
    assert stripes.data[0].zmin == -0.5
