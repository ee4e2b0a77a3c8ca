"""Time series reshaping helpers shared by every chapter."""
import numpy as np
import pandas as pd

from climatecast.constants import MONTH_ABBR


def regularize_monthly(series):
    """Put a series on a gap-free month-start index, interpolating interior holes."""
    s = series.copy()
    s.index = pd.DatetimeIndex(s.index).to_period("M").to_timestamp()
    s = s.sort_index(kind="mergesort")
    s = s[~s.index.duplicated(keep="last")]
    s = s.asfreq("MS")
    return s.interpolate(method="linear", limit_area="inside")


def infer_freq(series):
    """Return the series frequency, inferring it when the index carries none."""
    freq = getattr(series.index, "freq", None)
    if freq is not None:
        return freq
    inferred = pd.infer_freq(series.index)
    if inferred is None:
        raise ValueError("Cannot infer a frequency from the series index.")
    return pd.tseries.frequencies.to_offset(inferred)


def future_index(series, horizon):
    """The `horizon` time stamps that follow the end of `series`."""
    if horizon < 1:
        raise ValueError("horizon must be at least 1")
    freq = infer_freq(series)
    return pd.date_range(start=series.index[-1] + freq, periods=horizon, freq=freq)


def holdout_split(series, test_size):
    """Split off the last `test_size` observations as a test set."""
    if not 0 < test_size < len(series):
        raise ValueError(
            f"test_size must be between 1 and {len(series) - 1}, got {test_size}"
        )
    return series.iloc[:-test_size], series.iloc[-test_size:]


def annual_means(series, min_months=12):
    """Calendar-year means, keeping only years with at least `min_months` values."""
    clean = series.dropna()
    grouped = clean.groupby(clean.index.year)
    means = grouped.mean()
    counts = grouped.count()
    annual = means[counts >= min_months]
    annual.index.name = "year"
    return annual


def year_over_year(series, periods=12):
    """Change relative to the same month one year earlier."""
    return series.diff(periods).dropna()


def rolling_mean(series, window, center=True):
    return series.rolling(window=window, center=center, min_periods=1).mean()


def monthly_climatology(series):
    """Pivot a monthly series into a year x month table (for heatmaps)."""
    frame = pd.DataFrame({
        "year": series.index.year,
        "month": series.index.month,
        "value": series.to_numpy(),
    })
    table = frame.pivot_table(index="year", columns="month", values="value")
    table = table.reindex(columns=range(1, 13))
    table.columns = MONTH_ABBR
    return table


def seasonal_cycle(series):
    """Mean and standard deviation for each calendar month of a detrended series."""
    detrended = series - rolling_mean(series, 12)
    frame = pd.DataFrame({"month": series.index.month, "value": detrended.to_numpy()})
    cycle = frame.groupby("month")["value"].agg(["mean", "std"])
    cycle.index = [MONTH_ABBR[m - 1] for m in cycle.index]
    return cycle


def normalize_lags(lags):
    """Accept an int (lags 1..n) or an iterable of positive lags; return a sorted list."""
    if isinstance(lags, (int, np.integer)):
        if lags < 1:
            raise ValueError("lags must be a positive integer")
        return list(range(1, int(lags) + 1))
    out = sorted({int(lag) for lag in lags})
    if not out or out[0] < 1:
        raise ValueError("lags must be positive")
    return out


def lag_features(series, lags, calendar=False):
    """Build a supervised learning matrix from a series.

    Each row holds the values `lag_k` steps back for every requested lag
    (plus the calendar month when `calendar` is set); the target is the
    value at that row's time stamp. Rows without a full lag history are
    dropped, so the first `max(lags)` observations never appear as targets.
    """
    lags = normalize_lags(lags)
    frame = pd.DataFrame({"y": series})
    for lag in lags:
        frame[f"lag_{lag}"] = series.shift(lag)
    if calendar:
        frame["month"] = series.index.month
    frame = frame.dropna()
    return frame.drop(columns="y"), frame["y"]
