"""Chapter 8 -- Neural Network Autoregression (NNAR)."""
import streamlit as st
import pandas as pd

from climatecast.constants import DATASETS, SEASONAL_PERIOD
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import accuracy, compare_models
from climatecast.forecasters import nnar_forecast, select_ar_order
from climatecast.plotting import forecast_chart, residual_chart
from climatecast.ts_helpers import holdout_split, lag_features
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, metric_row, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(8, "Neural Network Autoregression", part="III")

st.markdown(
    "A neural network autoregression feeds lagged values of the series into a small "
    "feed-forward network with a single hidden layer. It is the nonlinear cousin of "
    "an AR model: the same inputs, but the network can bend the relationship between "
    "past and future. To tame the randomness of network training we fit many "
    "networks from different starting weights and average them."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("NNAR Settings")
key = dataset_selector(key="ch8_dataset", default="temperature")
horizon = horizon_control("ch8_horizon")
auto_p = st.sidebar.checkbox("Choose p automatically (AIC)", value=True, key="ch8_auto_p")
p_manual = st.sidebar.slider("p (non-seasonal lags)", 1, 24, 3, key="ch8_p", disabled=auto_p)
P = st.sidebar.slider("P (seasonal lags)", 0, 2, 1, key="ch8_P")
auto_size = st.sidebar.checkbox("Default hidden size (p + P + 1) / 2", value=True, key="ch8_auto_size")
size_manual = st.sidebar.slider("Hidden nodes k", 1, 20, 4, key="ch8_size", disabled=auto_size)
repeats = st.sidebar.slider("Networks to average", 1, 30, 10, key="ch8_repeats")
n_paths = st.sidebar.select_slider("Simulated paths for intervals", [0, 50, 100], 50, key="ch8_paths")

series = sidebar_filters(chapter_series(key), key="ch8_years", default_start=1960)
meta = DATASETS[key]

try:
    train, test = holdout_split(series, horizon)
except ValueError as e:
    st.error(f"Not enough data for a {horizon}-month test set: {e}")
    st.stop()

concept_box(
    "NNAR(p, P, k)[m]",
    "The inputs are the last <b>p</b> observations plus the values from the same month "
    "in each of the last <b>P</b> years (lags m, 2m, ..., Pm with m = 12). The hidden "
    "layer has <b>k</b> nodes with a logistic activation; by default "
    "k = (p + P + 1) / 2, rounded. Forecasts are made one step at a time, each "
    "prediction becoming an input for the next."
)

formula_box(
    "One Hidden Layer",
    r"\hat{y}_t = b_0 + \sum_{j=1}^{k} w_j \, \sigma\!\left(a_j + \sum_{i} v_{ij} \, y_{t-\ell_i}\right),"
    r"\qquad \sigma(z) = \frac{1}{1 + e^{-z}}",
    "The inputs y at lags l_i are standardised first; the logistic function sigma "
    "squashes each hidden node into (0, 1)."
)

# ── Section 1: Choosing p ────────────────────────────────────────────────────
st.header("1. How Many Lags?")

if auto_p:
    with st.spinner("Selecting AR order..."):
        p = select_ar_order(train, SEASONAL_PERIOD)
    st.markdown(
        f"We seasonally adjust the training data with STL, fit linear AR models of "
        f"increasing order and keep the one with the lowest AIC: **p = {p}**."
    )
else:
    p = p_manual
    st.markdown(f"Using the manually chosen **p = {p}**.")

size = None if auto_size else size_manual

# ── Section 2: Fit ───────────────────────────────────────────────────────────
st.header("2. Fitting the Network Ensemble")

try:
    with st.spinner(f"Training {repeats} networks..."):
        result = nnar_forecast(train, horizon, p=p, P=P, size=size, repeats=repeats,
                               n_paths=n_paths)
except ValueError as e:
    st.error(f"NNAR fitting failed: {e}")
    st.stop()

c1, c2, c3 = st.columns(3)
c1.metric("Model", result.info["label"])
c2.metric("Input lags", len(result.info["lags"]))
c3.metric("Hidden nodes", result.info["size"])

st.plotly_chart(
    forecast_chart(train, [result], test, title=f"{result.info['label']}: {meta['label']}",
                   y_label=meta["axis_label"], intervals=n_paths > 0),
    use_container_width=True,
)
metric_row(accuracy(test, result.mean, train, SEASONAL_PERIOD), meta["units"])

warning_box(
    "A network has no closed-form forecast distribution. The shaded band comes from "
    "simulation: each path adds a resampled training residual at every step and "
    "feeds the noisy value back in. Fewer than about 50 paths gives ragged bands."
)

# ── Section 3: Does Averaging Help? ──────────────────────────────────────────
st.header("3. One Network vs Many")

st.markdown(
    "A single network trained from one random start can land in a poor local "
    "minimum. Averaging many networks smooths that out -- the same idea as a random "
    "forest averaging many trees."
)

comparison = []
for n in sorted({1, max(2, repeats // 2), repeats}):
    try:
        r = nnar_forecast(train, horizon, p=p, P=P, size=size, repeats=n)
    except ValueError as e:
        st.caption(f"{n} networks failed: {e}")
        continue
    r.info["label"] = f"{r.info['label']} x {n}"
    comparison.append(r)
if comparison:
    st.dataframe(compare_models(test, comparison, train, SEASONAL_PERIOD).style.format(precision=3),
                 use_container_width=True, hide_index=True)

# ── Section 4: Residuals ─────────────────────────────────────────────────────
st.header("4. In-Sample Residuals")

X, y = lag_features(train, result.info["lags"])
resid = y - pd.Series(result.fitted.predict(X), index=X.index)
st.plotly_chart(residual_chart(resid, title="NNAR Residuals"), use_container_width=True)

insight_box(
    "On temperature anomalies the network rarely beats a well-chosen ARIMA or ETS "
    "model: there are only a few hundred observations and very little nonlinearity "
    "to find. Neural networks earn their keep on long series with complicated "
    "structure, not on a warming trend plus noise."
)

code_example("""
from sklearn.neural_network import MLPRegressor
from climatecast.forecasters import nnar_forecast, nnar_regressor

result = nnar_forecast(train, 24, p=3, P=1, repeats=20, n_paths=100)
result.info["label"]           # e.g. 'NNAR(3,1,3)[12]'
nnar_regressor(size=3)         # averaged MLPs on standardised inputs and target
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "With p = 3 and P = 1 on monthly data, which lags does NNAR use as inputs?",
    [
        "Lags 1, 2 and 3",
        "Lags 1, 2, 3 and 12",
        "Lags 12, 24 and 36",
        "Lags 1 to 12",
    ],
    1,
    "p = 3 gives the three most recent months; P = 1 adds the value from the same "
    "month one year earlier, lag 12.",
    key="ch8_quiz",
)

st.divider()
takeaways([
    "NNAR feeds p recent lags and P seasonal lags into a single-hidden-layer network.",
    "Averaging many randomly initialised networks stabilises the forecast.",
    "Prediction intervals come from simulating noisy future paths.",
    "On short, mostly linear climate series, NNAR seldom beats ARIMA or ETS.",
])

navigation("Random Forest & XGBoost", "Cross-Validation",
           "07_Tree_Ensembles.py", "09_Cross_Validation.py")
