"""Cached model-fitting entry points for the chapters."""
import streamlit as st

from climatecast.evaluation import time_series_cv
from climatecast.forecasters import MODEL_REGISTRY


def run_forecast(model_name, train, horizon, **kwargs):
    """Look up a registered forecaster and run it; kwargs override its defaults."""
    try:
        forecaster = MODEL_REGISTRY[model_name]
    except KeyError:
        raise KeyError(
            f"Unknown model {model_name!r}; expected one of {sorted(MODEL_REGISTRY)}"
        ) from None
    return forecaster(train, horizon, **kwargs)


@st.cache_resource(show_spinner="Fitting model...")
def cached_forecast(model_name, train, horizon, **kwargs):
    """Fit and cache a forecast so slider changes elsewhere do not refit it."""
    return run_forecast(model_name, train, horizon, **kwargs)


@st.cache_data(show_spinner="Running cross-validation...")
def cached_cv(model_name, series, horizon, n_splits=5, max_train_size=None):
    """Rolling-origin errors for a registered model, cached per configuration."""
    return time_series_cv(
        series, lambda train, h: run_forecast(model_name, train, h),
        horizon, n_splits=n_splits, max_train_size=max_train_size,
    )
