"""Reusable statistics and diagnostic helpers."""
import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.stattools import adfuller, kpss


def descriptive_stats(series):
    """Summary statistics for a numeric series."""
    return {
        "count": int(series.count()),
        "mean": series.mean(),
        "median": series.median(),
        "std": series.std(),
        "min": series.min(),
        "max": series.max(),
        "first": series.dropna().index.min(),
        "last": series.dropna().index.max(),
        "skewness": series.skew(),
        "kurtosis": series.kurtosis(),
    }


def warming_trend(annual, per=10):
    """OLS trend of an annual series in units per `per` years, with a 95% CI."""
    clean = annual.dropna()
    if len(clean) < 3:
        raise ValueError("need at least 3 years for a trend")
    years = np.asarray(clean.index, dtype=float)
    fit = stats.linregress(years, clean.to_numpy(dtype=float))
    t_crit = stats.t.ppf(0.975, len(clean) - 2)
    return {
        "slope": fit.slope * per,
        "ci_low": (fit.slope - t_crit * fit.stderr) * per,
        "ci_high": (fit.slope + t_crit * fit.stderr) * per,
        "p_value": fit.pvalue,
        "r_squared": fit.rvalue ** 2,
        "intercept": fit.intercept,
        "fitted": pd.Series(fit.intercept + fit.slope * years, index=clean.index),
    }


def stationarity_tests(series):
    """ADF (null: unit root) and KPSS (null: stationary) on a series."""
    clean = series.dropna()
    adf_stat, adf_p, adf_lags, *_ = adfuller(clean, autolag="AIC")
    kpss_stat, kpss_p, kpss_lags, _ = kpss(clean, regression="c", nlags="auto")
    return {
        "adf_stat": adf_stat,
        "adf_p": adf_p,
        "adf_lags": adf_lags,
        "kpss_stat": kpss_stat,
        "kpss_p": kpss_p,
        "stationary": bool(adf_p < 0.05 and kpss_p > 0.05),
    }


def residual_diagnostics(resid, lags=24):
    """Ljung-Box whiteness and Shapiro-Wilk normality for model residuals."""
    clean = pd.Series(resid).dropna()
    lags = min(lags, len(clean) // 2)
    lb = acorr_ljungbox(clean, lags=[lags])
    sample = clean.to_numpy()
    if len(sample) > 5000:
        sample = np.random.RandomState(42).choice(sample, 5000, replace=False)
    sw_stat, sw_p = stats.shapiro(sample)
    return {
        "ljung_box_stat": float(lb["lb_stat"].iloc[0]),
        "ljung_box_p": float(lb["lb_pvalue"].iloc[0]),
        "lags": lags,
        "shapiro_stat": float(sw_stat),
        "shapiro_p": float(sw_p),
        "mean": float(clean.mean()),
    }
