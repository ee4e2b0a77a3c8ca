"""Climate Forecasting Course -- Main Entry Point."""
import requests
import streamlit as st

from climatecast.data_loader import DataUnavailableError, load_co2, load_temperature
from climatecast.logging_config import configure_logging

configure_logging()

st.set_page_config(
    page_title="Forecasting a Warming Planet",
    page_icon="🌡️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("Forecasting a Warming Planet")
st.subheader("Ten chapters of time series forecasting, taught with the two most famous curves in climate science")

st.markdown("""
Every forecasting textbook needs a dataset, and most of them pick airline passengers or retail
sales. We are going to use something with higher stakes: the global temperature record and the
Keeling curve of atmospheric CO2. Both are long, clean, freely available monthly series, and both
have the three things that make forecasting interesting: a trend, a seasonal cycle, and noise.

Nothing in this course invents a new algorithm. The whole point is learning to drive the mature
libraries everyone actually uses -- statsmodels, pmdarima, Prophet, scikit-learn, XGBoost -- and
learning to judge their forecasts honestly.

### The Data

- **NASA GISTEMP v4**: monthly global land-ocean temperature anomaly since 1880, in °C relative
  to the 1951-1980 average.
- **NOAA Mauna Loa CO2**: monthly mean atmospheric CO2 concentration since March 1958, in parts
  per million.

The files are downloaded on first use into the data directory (`CLIMATECAST_DATA_DIR`, default
`./data`). Run `climatecast-fetch` beforehand if you will be offline.

### How to Use This Course

1. **Navigate** via the sidebar. The chapters build on each other, but each one stands alone.
2. **Filter** the years and pick the dataset in the sidebar; every chart refits as you go.
3. **Break things.** Crank the ARIMA orders, shrink the training window, switch off differencing,
   and watch what happens to the forecast.
4. **Quiz yourself** at the end of each chapter.

### Course Outline
""")

parts = {
    "Part I: Exploring Climate Data (Ch 1-3)": "Temperature anomalies, the Keeling curve, seasonal decomposition",
    "Part II: Statistical Forecasting (Ch 4-6)": "Benchmarks and ARIMA, exponential smoothing, Prophet",
    "Part III: Machine Learning Forecasting (Ch 7-8)": "Random forests and XGBoost on lags, neural network autoregression",
    "Part IV: Evaluation & Ensembles (Ch 9-10)": "Time series cross-validation, forecast combination, the final forecast",
}

for part, desc in parts.items():
    st.markdown(f"**{part}** -- {desc}")

st.divider()
st.markdown("**Pick a chapter from the sidebar. The planet is not going to forecast itself.**")

st.subheader("Dataset Preview")

try:
    temp = load_temperature()
    co2 = load_co2()
except (DataUnavailableError, requests.RequestException, ValueError) as e:
    st.error(f"Could not load the course data: {e}")
    st.stop()

col1, col2 = st.columns(2)
with col1:
    st.markdown("**Temperature anomaly (°C)**")
    st.dataframe(temp.tail(12).to_frame(), use_container_width=True)
with col2:
    st.markdown("**Mauna Loa CO2 (ppm)**")
    st.dataframe(co2.tail(12), use_container_width=True)

c1, c2, c3, c4 = st.columns(4)
c1.metric("Temperature months", f"{len(temp):,}")
c2.metric("Temperature span", f"{temp.index.min():%Y} to {temp.index.max():%Y}")
c3.metric("CO2 months", f"{len(co2):,}")
c4.metric("Latest CO2", f"{co2['co2_ppm'].iloc[-1]:.1f} ppm")
