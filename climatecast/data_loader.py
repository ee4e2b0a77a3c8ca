"""Dataset download, parsing, cached loading and sidebar filtering."""
import logging

import pandas as pd
import requests
import streamlit as st

from climatecast.constants import CO2_COLUMNS, DATASET_KEYS, DATASETS, MONTH_ABBR
from climatecast.settings import get_settings
from climatecast.ts_helpers import regularize_monthly

logger = logging.getLogger(__name__)

_USER_AGENT = "climatecast/0.1 (+course data download)"


class DataFormatError(ValueError):
    """A dataset file does not have the layout its parser expects."""


class DataUnavailableError(RuntimeError):
    """A dataset is not on disk and downloading is disabled."""


def parse_gistemp(source):
    """Parse a GISTEMP global-means CSV into a monthly anomaly series.

    The file opens with a one-line title, then a wide table with one row per
    year and one column per month; months not yet observed are written as
    ``***``. Annual and seasonal summary columns are ignored.
    """
    frame = pd.read_csv(source, skiprows=1, na_values=["***", "****"],
                        skipinitialspace=True)
    frame = frame.rename(columns=lambda c: str(c).strip())
    missing = [c for c in ["Year"] + MONTH_ABBR if c not in frame.columns]
    if missing:
        raise DataFormatError(f"GISTEMP table is missing columns: {', '.join(missing)}")

    frame["Year"] = pd.to_numeric(frame["Year"], errors="coerce")
    frame = frame.dropna(subset=["Year"])
    long = frame.melt(id_vars="Year", value_vars=MONTH_ABBR,
                      var_name="month", value_name="anomaly_c")
    long["anomaly_c"] = pd.to_numeric(long["anomaly_c"], errors="coerce")
    long = long.dropna(subset=["anomaly_c"])
    if long.empty:
        raise DataFormatError("GISTEMP table contains no monthly values")

    long["month"] = long["month"].map({m: i for i, m in enumerate(MONTH_ABBR, 1)})
    long["date"] = pd.to_datetime(pd.DataFrame({
        "year": long["Year"].astype(int), "month": long["month"], "day": 1,
    }))
    series = long.set_index("date")["anomaly_c"]
    return regularize_monthly(series).rename("anomaly_c")


def parse_co2_monthly(source):
    """Parse the NOAA Mauna Loa monthly mean text file.

    Columns are whitespace separated after a ``#`` comment header. Negative
    values are the file's missing-data sentinels and become NaN.
    """
    frame = pd.read_csv(source, sep=r"\s+", comment="#", header=None)
    if frame.shape[1] < 5:
        raise DataFormatError(
            f"CO2 file has {frame.shape[1]} columns, expected at least 5"
        )
    frame = frame.iloc[:, :len(CO2_COLUMNS)]
    frame.columns = CO2_COLUMNS[:frame.shape[1]]
    frame = frame.apply(pd.to_numeric, errors="coerce")
    frame = frame.dropna(subset=["year", "month"])

    for col in ["co2_ppm", "deseasonalized_ppm", "n_days", "day_std", "mean_unc"]:
        if col in frame.columns:
            frame[col] = frame[col].where(frame[col] >= 0)

    frame["date"] = pd.to_datetime(pd.DataFrame({
        "year": frame["year"].astype(int), "month": frame["month"].astype(int), "day": 1,
    }))
    frame = frame.set_index("date").sort_index()
    frame = frame[~frame.index.duplicated(keep="last")].asfreq("MS")
    return frame[["co2_ppm", "deseasonalized_ppm", "n_days"]]


def dataset_path(key):
    """Local file path of a catalogued dataset."""
    return get_settings().data_dir / DATASETS[key]["filename"]


def download_dataset(key, dest=None, timeout=None):
    """Fetch a catalogued dataset over HTTP and write it to `dest`."""
    meta = DATASETS[key]
    dest = dest or dataset_path(key)
    timeout = timeout or get_settings().http_timeout
    logger.info("Downloading dataset", extra={"dataset": key, "url": meta["url"]})
    resp = requests.get(meta["url"], timeout=timeout, headers={"User-Agent": _USER_AGENT})
    resp.raise_for_status()
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(resp.content)
    logger.info("Saved dataset", extra={"dataset": key, "path": dest, "rows": resp.text.count("\n")})
    return dest


def ensure_dataset(key):
    """Return the local path of a dataset, downloading it on first use."""
    path = dataset_path(key)
    if path.exists():
        return path
    if get_settings().offline:
        raise DataUnavailableError(
            f"{path} does not exist and CLIMATECAST_OFFLINE is set; "
            "run climatecast-fetch to download the course data."
        )
    return download_dataset(key, path)


@st.cache_data
def load_temperature():
    """Monthly global land-ocean temperature anomaly (°C)."""
    series = parse_gistemp(ensure_dataset("temperature"))
    logger.info("Loaded temperature anomalies", extra={"dataset": "temperature", "rows": len(series)})
    return series


@st.cache_data
def load_co2():
    """Monthly Mauna Loa CO2 table with interior gaps interpolated."""
    frame = parse_co2_monthly(ensure_dataset("co2"))
    frame["co2_ppm"] = frame["co2_ppm"].interpolate(method="linear", limit_area="inside")
    frame = frame.loc[frame["co2_ppm"].first_valid_index():frame["co2_ppm"].last_valid_index()]
    logger.info("Loaded CO2 record", extra={"dataset": "co2", "rows": len(frame)})
    return frame


def load_series(key):
    """The single monthly series a chapter models for dataset `key`."""
    if key == "temperature":
        return load_temperature()
    if key == "co2":
        return load_co2()["co2_ppm"]
    raise KeyError(f"Unknown dataset {key!r}; expected one of {DATASET_KEYS}")


def chapter_series(key):
    """`load_series` for a chapter page: report a load failure and stop the page."""
    try:
        return load_series(key)
    except (DataUnavailableError, DataFormatError, requests.RequestException) as e:
        st.error(f"Could not load {DATASETS[key]['label']}: {e}")
        st.stop()


def dataset_selector(key="dataset", default="temperature"):
    """Render a sidebar dataset picker; return the chosen dataset key."""
    return st.sidebar.selectbox(
        "Dataset", DATASET_KEYS,
        index=DATASET_KEYS.index(default),
        format_func=lambda k: DATASETS[k]["label"],
        key=key,
    )


def sidebar_filters(series, key="years", default_start=None):
    """Render a sidebar year-range filter; return the filtered series."""
    st.sidebar.header("Filters")
    min_year = int(series.index.min().year)
    max_year = int(series.index.max().year)
    start_default = max(min_year, default_start) if default_start else min_year
    start, end = st.sidebar.slider(
        "Years", min_value=min_year, max_value=max_year,
        value=(start_default, max_year), key=key,
    )
    return series.loc[str(start):str(end)]
