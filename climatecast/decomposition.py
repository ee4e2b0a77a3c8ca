"""Seasonal decomposition wrappers (STL and classical moving-average)."""
import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL, seasonal_decompose

from climatecast.constants import SEASONAL_PERIOD


def decompose(series, period=SEASONAL_PERIOD, method="stl", model="additive", robust=True):
    """Split a series into trend, seasonal and remainder components.

    Returns a frame with columns observed, trend, seasonal and resid. The
    classical method leaves NaN at both ends of trend and resid where the
    centred moving average is undefined; STL estimates every point.
    """
    if len(series) < 2 * period:
        raise ValueError(
            f"need at least two full cycles ({2 * period} points), got {len(series)}"
        )
    if method == "stl":
        if model != "additive":
            raise ValueError("STL only supports additive decomposition")
        res = STL(series, period=period, robust=robust).fit()
    elif method == "classical":
        if model == "multiplicative" and (series <= 0).any():
            raise ValueError("multiplicative decomposition needs strictly positive values")
        res = seasonal_decompose(series, model=model, period=period)
    else:
        raise ValueError(f"unknown decomposition method {method!r}")
    return pd.DataFrame({
        "observed": res.observed,
        "trend": res.trend,
        "seasonal": res.seasonal,
        "resid": res.resid,
    })


def _strength(component, resid):
    mask = component.notna() & resid.notna()
    denom = np.var(component[mask] + resid[mask])
    if denom == 0:
        return 0.0
    return float(max(0.0, 1 - np.var(resid[mask]) / denom))


def seasonal_strength(components):
    """F_S = max(0, 1 - Var(R) / Var(S + R)); near 1 means strongly seasonal."""
    return _strength(components["seasonal"], components["resid"])


def trend_strength(components):
    """F_T = max(0, 1 - Var(R) / Var(T + R)); near 1 means strongly trended."""
    return _strength(components["trend"], components["resid"])
