from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression

from climatecast.forecasters import (
    MODEL_REGISTRY,
    ForecastResult,
    arima_forecast,
    auto_arima_forecast,
    auto_ets_forecast,
    drift_forecast,
    ets_candidates,
    ets_forecast,
    ets_label,
    lag_regression_forecast,
    naive_forecast,
    nnar_forecast,
    prophet_forecast,
    random_forest_forecast,
    recursive_predict,
    seasonal_naive_forecast,
    select_ar_order,
    xgboost_forecast,
)


class PlusOne:
    """Predicts the previous value plus one."""

    def predict(self, X):
        return X["lag_1"].to_numpy() + 1


def _assert_well_formed(result: ForecastResult, train: pd.Series, horizon: int) -> None:
    assert len(result.mean) == horizon
    assert result.mean.index[0] == train.index[-1] + pd.offsets.MonthBegin(1)
    assert np.isfinite(result.mean.to_numpy()).all()
    if result.has_interval:
        assert (result.lower.to_numpy() <= result.upper.to_numpy() + 1e-9).all()


# ── Benchmarks ──────────────────────────────────────────────────────────────

def test_naive_repeats_last_value_with_widening_interval(monthly_series) -> None:
    result = naive_forecast(monthly_series, 6)

    _assert_well_formed(result, monthly_series, 6)
    assert (result.mean == monthly_series.iloc[-1]).all()
    width = (result.upper - result.lower).to_numpy()
    assert width[3] == pytest.approx(width[0] * 2)


def test_seasonal_naive_repeats_last_season(monthly_series) -> None:
    result = seasonal_naive_forecast(monthly_series, 14)

    last_season = monthly_series.iloc[-12:].to_numpy()
    np.testing.assert_allclose(result.mean.to_numpy()[:12], last_season)
    np.testing.assert_allclose(result.mean.to_numpy()[12:], last_season[:2])
    width = (result.upper - result.lower).to_numpy()
    assert width[11] == pytest.approx(width[0])
    assert width[12] == pytest.approx(width[0] * np.sqrt(2))


def test_seasonal_naive_needs_a_full_season(linear_series) -> None:
    with pytest.raises(ValueError):
        seasonal_naive_forecast(linear_series.iloc[:6], 3)


def test_drift_extends_straight_line(linear_series) -> None:
    result = drift_forecast(linear_series, 4)

    np.testing.assert_allclose(result.mean.to_numpy(), linear_series.iloc[-1] + 2.0 * np.arange(1, 5))
    assert result.info["slope"] == pytest.approx(2.0)


def test_drift_needs_two_points(linear_series) -> None:
    with pytest.raises(ValueError):
        drift_forecast(linear_series.iloc[:1], 3)


def test_forecast_result_to_frame(linear_series) -> None:
    frame = naive_forecast(linear_series, 3).to_frame()

    assert list(frame.columns) == ["mean", "lower", "upper"]
    assert len(frame) == 3


# ── Statistical models ──────────────────────────────────────────────────────

def test_arima_forecast_labels_seasonal_order(monthly_series) -> None:
    result = arima_forecast(monthly_series, 12, order=(1, 1, 1), seasonal_order=(0, 1, 1, 12))

    _assert_well_formed(result, monthly_series, 12)
    assert result.model == "ARIMA"
    assert result.info["label"] == "ARIMA(1, 1, 1)(0, 1, 1)[12]"
    assert np.isfinite(result.info["aic"])
    # the seasonal model should track the sine rather than a flat line
    assert result.mean.max() - result.mean.min() > 3


def test_arima_forecast_without_seasonal_terms(linear_series) -> None:
    result = arima_forecast(linear_series + np.sin(np.arange(60)), 3, order=(1, 1, 0))

    assert result.info["label"] == "ARIMA(1, 1, 0)"
    assert result.has_interval


def test_ets_label() -> None:
    assert ets_label("add", "add", True, None) == "ETS(A,Ad,N)"
    assert ets_label("mul", None, True, "mul") == "ETS(M,N,M)"
    assert ets_label("add", "add", False, "add") == "ETS(A,A,A)"


def test_ets_forecast_has_intervals_and_aicc(monthly_series) -> None:
    result = ets_forecast(monthly_series, 12, error="add", trend="add", seasonal="add")

    _assert_well_formed(result, monthly_series, 12)
    assert result.info["label"] == "ETS(A,A,A)"
    assert {"aic", "aicc", "bic"} <= set(result.info)
    assert result.has_interval


def test_ets_candidates_skip_multiplicative_for_negative_data(monthly_series) -> None:
    positive = ets_candidates(monthly_series)
    negative = ets_candidates(monthly_series - 400)

    assert len(positive) == 18
    assert len(negative) == 6
    assert all(c["error"] == "add" and c["seasonal"] != "mul" for c in negative)


def test_ets_candidates_skip_seasonal_for_short_series(linear_series) -> None:
    short = linear_series.iloc[:20]

    assert all(c["seasonal"] is None for c in ets_candidates(short))


def test_auto_ets_picks_lowest_aicc(monthly_series) -> None:
    train = monthly_series.iloc[-120:]

    result = auto_ets_forecast(train, 6)

    candidates = result.info["candidates"]
    assert list(candidates.columns) == ["model", "aicc"]
    assert result.info["label"] == candidates.iloc[0]["model"]
    assert result.info["label"].endswith(",A)") or result.info["label"].endswith(",M)")


# ── Lag-regression models ───────────────────────────────────────────────────

def test_recursive_predict_feeds_predictions_back() -> None:
    history = np.array([[0.0, 1.0, 2.0]])

    assert recursive_predict(PlusOne(), history, [1], 3).tolist() == [[3.0, 4.0, 5.0]]
    noisy = recursive_predict(PlusOne(), history, [1], 3, noise=np.ones((1, 3)))
    assert noisy.tolist() == [[4.0, 6.0, 8.0]]


def test_lag_regression_on_levels_continues_linear_trend(linear_series) -> None:
    result = lag_regression_forecast(linear_series, 5, LinearRegression(), lags=3)

    expected = linear_series.iloc[-1] + 2.0 * np.arange(1, 6)
    np.testing.assert_allclose(result.mean.to_numpy(), expected, atol=1e-6)
    assert result.info["features"] == ["lag_1", "lag_2", "lag_3"]
    assert not result.has_interval


def test_lag_regression_on_differences_sums_back_to_levels(linear_series) -> None:
    result = lag_regression_forecast(linear_series, 4, LinearRegression(), lags=2,
                                     difference=True)

    expected = linear_series.iloc[-1] + 2.0 * np.arange(1, 5)
    np.testing.assert_allclose(result.mean.to_numpy(), expected, atol=1e-6)
    assert result.info["difference"] is True


def test_lag_regression_needs_enough_rows(linear_series) -> None:
    with pytest.raises(ValueError, match="too few"):
        lag_regression_forecast(linear_series.iloc[:10], 3, LinearRegression(), lags=12)


def test_random_forest_uses_calendar_and_simulated_intervals(monthly_series) -> None:
    result = random_forest_forecast(monthly_series, 12, n_estimators=30, n_paths=20)

    _assert_well_formed(result, monthly_series, 12)
    assert result.model == "Random Forest"
    assert "month" in result.info["features"]
    assert result.has_interval
    assert isinstance(result.fitted, RandomForestRegressor)


def test_random_forest_on_levels_cannot_exceed_training_max(monthly_series) -> None:
    result = random_forest_forecast(monthly_series, 24, n_estimators=30, difference=False)

    assert result.mean.max() <= monthly_series.max() + 1e-9


def test_xgboost_forecast(monthly_series) -> None:
    pytest.importorskip("xgboost")

    result = xgboost_forecast(monthly_series, 6, n_estimators=50)

    _assert_well_formed(result, monthly_series, 6)
    assert result.model == "XGBoost"


def test_select_ar_order_is_positive(monthly_series) -> None:
    p = select_ar_order(monthly_series)

    assert isinstance(p, int)
    assert 1 <= p <= 12


def test_nnar_forecast_builds_label_from_orders(monthly_series) -> None:
    result = nnar_forecast(monthly_series, 6, p=2, P=1, repeats=2, n_paths=10)

    _assert_well_formed(result, monthly_series, 6)
    assert result.info["label"] == "NNAR(2,1,2)[12]"
    assert result.info["lags"] == [1, 2, 12]
    assert result.info["size"] == 2
    assert result.has_interval


def test_nnar_forecast_respects_explicit_size(monthly_series) -> None:
    result = nnar_forecast(monthly_series, 3, p=1, P=0, size=3, repeats=1)

    assert result.info["label"] == "NNAR(1,3)"
    assert result.info["lags"] == [1]


# ── Optional heavy stacks ───────────────────────────────────────────────────

def test_prophet_forecast(monthly_series) -> None:
    pytest.importorskip("prophet")

    result = prophet_forecast(monthly_series, 6)

    _assert_well_formed(result, monthly_series, 6)
    assert "yearly" in result.info["components"].columns


def test_auto_arima_forecast(monthly_series) -> None:
    pytest.importorskip("pmdarima")

    result = auto_arima_forecast(monthly_series.iloc[-120:], 6, seasonal=False)

    _assert_well_formed(result, monthly_series, 6)
    assert result.model == "auto ARIMA"
    assert result.info["label"].startswith("ARIMA(")


def test_registry_names_match_result_models(linear_series) -> None:
    assert {"Naive", "Seasonal naive", "Drift", "ARIMA", "ETS", "Prophet",
            "Random Forest", "XGBoost", "NNAR"} == set(MODEL_REGISTRY)
    for name in ("Naive", "Seasonal naive", "Drift"):
        assert MODEL_REGISTRY[name](linear_series, 2).model == name


def test_arima_forecast_reports_singular_fits_as_value_error(monkeypatch, linear_series) -> None:
    from statsmodels.tsa.arima.model import ARIMA

    def singular(self, *args, **kwargs):
        raise np.linalg.LinAlgError("Schur decomposition solver error.")

    monkeypatch.setattr(ARIMA, "fit", singular)

    with pytest.raises(ValueError, match="could not be estimated"):
        arima_forecast(linear_series, 6, order=(2, 1, 2))


@pytest.mark.parametrize("difference", [False, True])
def test_random_forest_rejects_short_history_in_both_modes(linear_series, difference) -> None:
    with pytest.raises(ValueError, match="too few"):
        random_forest_forecast(linear_series.iloc[:20], 6, lags=24, n_estimators=10,
                               difference=difference)


def test_prophet_forecast_needs_a_regular_index() -> None:
    pytest.importorskip("prophet")
    irregular = pd.Series([1.0, 2.0, 3.0, 4.0],
                          index=pd.to_datetime(["2020-01-01", "2020-01-05", "2020-03-01", "2020-03-09"]))

    with pytest.raises(ValueError, match="Cannot infer a frequency"):
        prophet_forecast(irregular, 3)
