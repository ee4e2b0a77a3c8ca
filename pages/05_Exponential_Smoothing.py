"""Chapter 5 -- Exponential Smoothing (ETS)."""
import streamlit as st
import numpy as np
import pandas as pd

from climatecast.constants import DATASETS, SEASONAL_PERIOD
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import accuracy, compare_models
from climatecast.forecasters import auto_ets_forecast, ets_forecast, ets_label
from climatecast.plotting import forecast_chart, metrics_bar_chart, residual_chart
from climatecast.stats_helpers import residual_diagnostics
from climatecast.ts_helpers import holdout_split
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, metric_row, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(5, "Exponential Smoothing", part="II")

st.markdown(
    "ARIMA describes a series through its autocorrelations. Exponential smoothing "
    "takes a different view: it keeps running estimates of the **level**, the "
    "**trend** and the **seasonal** pattern, and nudges each of them a little after "
    "every new observation. Recent data counts more than old data, with weights that "
    "decay exponentially. The modern version -- the ETS family of state-space models "
    "-- also gives honest prediction intervals and a likelihood, so we can compare "
    "variants with AIC just like ARIMA orders."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("ETS Settings")
key = dataset_selector(key="ch5_dataset", default="co2")
horizon = horizon_control("ch5_horizon")
error = st.sidebar.radio("Error", ["add", "mul"], key="ch5_error",
                         format_func=lambda v: {"add": "Additive", "mul": "Multiplicative"}[v])
trend = st.sidebar.selectbox("Trend", [None, "add"], index=1, key="ch5_trend",
                             format_func=lambda v: {None: "None", "add": "Additive"}[v])
damped = st.sidebar.checkbox("Damped trend", value=False, key="ch5_damped", disabled=trend is None)
seasonal = st.sidebar.selectbox("Seasonal", [None, "add", "mul"], index=1 if key == "co2" else 0,
                                key="ch5_seasonal",
                                format_func=lambda v: {None: "None", "add": "Additive", "mul": "Multiplicative"}[v])

series = sidebar_filters(chapter_series(key), key="ch5_years", default_start=1960)
meta = DATASETS[key]

try:
    train, test = holdout_split(series, horizon)
except ValueError as e:
    st.error(f"Not enough data for a {horizon}-month test set: {e}")
    st.stop()

concept_box(
    "The ETS Taxonomy",
    "Each model is named ETS(Error, Trend, Seasonal) with every slot taking "
    "<b>N</b> (none), <b>A</b> (additive) or <b>M</b> (multiplicative), plus "
    "<b>Ad</b> for a damped additive trend. ETS(A,N,N) is simple exponential "
    "smoothing, ETS(A,A,N) is Holt's linear method, and ETS(A,A,A) is the additive "
    "Holt-Winters method."
)

formula_box(
    "Holt-Winters Additive Recursions",
    r"\ell_t = \alpha (y_t - s_{t-m}) + (1-\alpha)(\ell_{t-1} + b_{t-1}) \\"
    r"b_t = \beta (\ell_t - \ell_{t-1}) + (1-\beta) b_{t-1} \\"
    r"s_t = \gamma (y_t - \ell_{t-1} - b_{t-1}) + (1-\gamma) s_{t-m}",
    "alpha, beta and gamma are smoothing parameters between 0 and 1. Larger values "
    "react faster to new data; smaller values average over a longer memory."
)

# ── Section 1: Your ETS ──────────────────────────────────────────────────────
label = ets_label(error, trend, damped, seasonal)
st.header(f"1. Fitting {label}")

needs_positive = error == "mul" or seasonal == "mul"
if needs_positive and (train <= 0).any():
    warning_box(
        "Multiplicative components need strictly positive data, and temperature "
        "anomalies go negative. Switch to additive components for this dataset."
    )
    st.stop()

try:
    chosen = ets_forecast(train, horizon, error=error, trend=trend, damped_trend=damped,
                          seasonal=seasonal)
except (ValueError, np.linalg.LinAlgError) as e:
    st.error(f"Model fitting failed: {e}")
    st.stop()

res = chosen.fitted
c1, c2, c3 = st.columns(3)
c1.metric("AICc", f"{res.aicc:.1f}")
c2.metric("alpha (level)", f"{res.smoothing_level:.3f}")
c3.metric("beta (trend)", f"{res.smoothing_trend:.3f}" if trend else "-")

st.plotly_chart(
    forecast_chart(train, [chosen], test, title=f"{label} Forecast: {meta['label']}",
                   y_label=meta["axis_label"]),
    use_container_width=True,
)
metric_row(accuracy(test, chosen.mean, train, SEASONAL_PERIOD), meta["units"])

with st.expander("Model Summary"):
    st.text(str(res.summary()))

insight_box(
    "Turn the seasonal component off for CO2 and watch the forecast become a smooth "
    "line through the middle of the sawtooth; the prediction interval has to widen "
    "to cover the swings the model no longer explains."
)

# ── Section 2: Damping ───────────────────────────────────────────────────────
st.header("2. Damped vs Undamped Trends")

st.markdown(
    "A linear trend extrapolated for decades gets overconfident fast. A **damped** "
    "trend flattens out over the horizon, which is often more accurate for long "
    "forecasts -- but for an accelerating series like CO2, damping is the wrong "
    "direction entirely."
)

variants = []
for is_damped in (False, True):
    try:
        variants.append(ets_forecast(train, horizon, error="add", trend="add",
                                     damped_trend=is_damped, seasonal="add" if seasonal else None))
    except (ValueError, np.linalg.LinAlgError) as e:
        st.caption(f"Variant failed: {e}")
if variants:
    st.plotly_chart(
        forecast_chart(train, variants, test, title="Damped vs Undamped Trend",
                       y_label=meta["axis_label"], intervals=False),
        use_container_width=True,
    )
    st.dataframe(compare_models(test, variants, train, SEASONAL_PERIOD).style.format(precision=3),
                 use_container_width=True, hide_index=True)

# ── Section 3: Automatic Selection ───────────────────────────────────────────
st.header("3. Letting AICc Choose")

try:
    with st.spinner("Fitting every ETS variant..."):
        best = auto_ets_forecast(train, horizon)
    st.success(f"Lowest AICc: **{best.info['label']}**")
    candidates = best.info["candidates"]
    st.dataframe(candidates.style.format({"aicc": "{:.1f}"}), use_container_width=True,
                 hide_index=True)
    st.plotly_chart(metrics_bar_chart(candidates.rename(columns={"model": "Model"}), "aicc",
                                      title="AICc by ETS Variant"),
                    use_container_width=True)
    metric_row(accuracy(test, best.mean, train, SEASONAL_PERIOD), meta["units"])
except ValueError as e:
    st.error(f"Automatic ETS selection failed: {e}")
    best = None

# ── Section 4: Residuals ─────────────────────────────────────────────────────
st.header("4. Residual Check")

resid = pd.Series(res.resid, index=train.index)
st.plotly_chart(residual_chart(resid, title=f"{label} Residuals"), use_container_width=True)
diag = residual_diagnostics(resid)
st.write(
    f"Ljung-Box p-value at lag {diag['lags']}: **{diag['ljung_box_p']:.3f}** "
    f"({'white noise' if diag['ljung_box_p'] > 0.05 else 'leftover autocorrelation'})"
)

warning_box(
    "AICc can only compare models fitted to the same data. Comparing the AICc of an "
    "ETS model with that of an ARIMA model that differenced the series is meaningless, "
    "because the likelihoods are computed on different series. Use a test set or "
    "cross-validation (Chapter 9) to compare across families."
)

code_example("""
from statsmodels.tsa.exponential_smoothing.ets import ETSModel

res = ETSModel(train, error="add", trend="add", seasonal="add",
               seasonal_periods=12).fit(disp=False)
pred = res.get_prediction(start=len(train), end=len(train) + 23)
pred.summary_frame(alpha=0.05)   # mean, pi_lower, pi_upper
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "What does a smoothing parameter alpha close to 1 mean?",
    [
        "The level barely changes after each observation",
        "The level follows the most recent observation almost exactly",
        "The model is multiplicative",
        "The trend is damped",
    ],
    1,
    "With alpha near 1 the new level is almost entirely the latest observation -- "
    "the model has a very short memory.",
    key="ch5_quiz",
)

st.divider()
takeaways([
    "ETS models track level, trend and seasonality with exponentially decaying weights.",
    "The ETS(E,T,S) notation names each component as None, Additive or Multiplicative.",
    "Damped trends help long horizons for series that level off, not for accelerating ones.",
    "AICc compares ETS variants on the same data; use held-out data to compare across families.",
])

navigation("Benchmarks and ARIMA", "Prophet", "04_ARIMA.py", "06_Prophet.py")
