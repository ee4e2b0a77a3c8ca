from __future__ import annotations

import numpy as np
import pytest

from climatecast.ml_helpers import run_forecast


def test_run_forecast_dispatches_by_name(linear_series) -> None:
    result = run_forecast("Drift", linear_series, 3)

    assert result.model == "Drift"
    np.testing.assert_allclose(result.mean.to_numpy(), linear_series.iloc[-1] + 2.0 * np.arange(1, 4))


def test_run_forecast_passes_overrides(linear_series) -> None:
    result = run_forecast("Seasonal naive", linear_series, 4, m=4)

    np.testing.assert_allclose(result.mean.to_numpy(), linear_series.iloc[-4:].to_numpy())


def test_run_forecast_registry_arima(monthly_series) -> None:
    result = run_forecast("ARIMA", monthly_series, 6)

    assert result.info["label"] == "ARIMA(1, 1, 1)(0, 1, 1)[12]"


def test_run_forecast_unknown_model(linear_series) -> None:
    with pytest.raises(KeyError, match="Unknown model"):
        run_forecast("LSTM", linear_series, 3)
