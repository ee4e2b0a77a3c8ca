"""Chapter 4 -- Benchmarks and ARIMA."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from climatecast.constants import DATASETS, SEASONAL_PERIOD
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import accuracy, compare_models
from climatecast.forecasters import (
    arima_forecast, auto_arima_forecast, drift_forecast, naive_forecast,
    seasonal_naive_forecast,
)
from climatecast.plotting import apply_common_layout, forecast_chart, residual_chart
from climatecast.stats_helpers import residual_diagnostics, stationarity_tests
from climatecast.ts_helpers import holdout_split
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, metric_row, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(4, "Benchmarks and ARIMA", part="II")

st.markdown(
    "Every forecasting model should have to beat something embarrassingly simple "
    "before anyone takes it seriously. So we start with three benchmarks that take "
    "one line each, and only then bring in ARIMA -- the workhorse of statistical "
    "forecasting for half a century, which combines autoregression, differencing and "
    "moving-average error correction."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("ARIMA Settings")
key = dataset_selector(key="ch4_dataset", default="co2")
horizon = horizon_control("ch4_horizon")
p = st.sidebar.slider("p (AR order)", 0, 4, 1, key="ch4_p")
d = st.sidebar.slider("d (differencing)", 0, 2, 1, key="ch4_d")
q = st.sidebar.slider("q (MA order)", 0, 4, 1, key="ch4_q")
use_seasonal = st.sidebar.checkbox("Seasonal terms (P, D, Q)[12]", value=(key == "co2"), key="ch4_seasonal")
P = st.sidebar.slider("P", 0, 2, 0, key="ch4_P", disabled=not use_seasonal)
D = st.sidebar.slider("D", 0, 1, 1, key="ch4_D", disabled=not use_seasonal)
Q = st.sidebar.slider("Q", 0, 2, 1, key="ch4_Q", disabled=not use_seasonal)

series = sidebar_filters(chapter_series(key), key="ch4_years", default_start=1960)
meta = DATASETS[key]
units = meta["units"]

try:
    train, test = holdout_split(series, horizon)
except ValueError as e:
    st.error(f"Not enough data for a {horizon}-month test set: {e}")
    st.stop()

# ── Section 1: Benchmarks ────────────────────────────────────────────────────
st.header("1. Three Benchmarks")

concept_box(
    "Naive, Seasonal Naive and Drift",
    "<b>Naive</b>: every future value equals the last observation.<br>"
    "<b>Seasonal naive</b>: every future value equals the value from the same month "
    "last year.<br>"
    "<b>Drift</b>: draw a straight line from the first observation to the last and "
    "keep going. These are not straw men -- for many real series they are very hard "
    "to beat."
)

benchmarks = [
    naive_forecast(train, horizon),
    seasonal_naive_forecast(train, horizon),
    drift_forecast(train, horizon),
]
st.plotly_chart(
    forecast_chart(train, benchmarks, test, title=f"Benchmark Forecasts: {meta['label']}",
                   y_label=meta["axis_label"], intervals=False),
    use_container_width=True,
)
bench_table = compare_models(test, benchmarks, train, SEASONAL_PERIOD)
st.dataframe(bench_table.style.format(precision=3), use_container_width=True, hide_index=True)

insight_box(
    "MASE divides a model's mean absolute error by the in-sample error of the "
    "seasonal naive method. A MASE below 1 means the forecast beats a method that "
    "simply copies last year -- a surprisingly high bar for CO2."
)

# ── Section 2: Stationarity ──────────────────────────────────────────────────
st.header("2. Is the Series Stationary?")

st.markdown(
    "ARIMA models a *stationary* series -- one whose mean and variance do not drift. "
    "Neither of our series is stationary; both trend upward. The **d** in ARIMA "
    "is how many times we difference the series to fix that."
)

rows = []
for label, values in [
    ("Levels", train),
    ("First difference", train.diff()),
    ("Seasonal difference (lag 12)", train.diff(12)),
    ("Both", train.diff(12).diff()),
]:
    try:
        res = stationarity_tests(values)
        rows.append({"Series": label, "ADF p-value": res["adf_p"], "KPSS p-value": res["kpss_p"],
                     "Looks stationary": "yes" if res["stationary"] else "no"})
    except ValueError as e:
        rows.append({"Series": label, "ADF p-value": None, "KPSS p-value": None,
                     "Looks stationary": f"test failed: {e}"})
st.dataframe(pd.DataFrame(rows).style.format(precision=3, na_rep="-"),
             use_container_width=True, hide_index=True)

warning_box(
    "ADF and KPSS have opposite null hypotheses. ADF's null is 'has a unit root' "
    "(small p = stationary); KPSS's null is 'stationary' (small p = not stationary). "
    "Mixing them up is the single most common stationarity mistake."
)

# ── Section 3: Manual ARIMA ──────────────────────────────────────────────────
seasonal_order = (P, D, Q, SEASONAL_PERIOD) if use_seasonal else None
st.header("3. Fitting Your Own ARIMA")

formula_box(
    "ARIMA(p, d, q)",
    r"y'_t = c + \phi_1 y'_{t-1} + \cdots + \phi_p y'_{t-p} + \theta_1 \varepsilon_{t-1} + \cdots + \theta_q \varepsilon_{t-q} + \varepsilon_t",
    "y' is the series after d rounds of differencing (and D seasonal differences "
    "for a seasonal model). phi are AR coefficients, theta MA coefficients."
)

try:
    manual = arima_forecast(train, horizon, order=(p, d, q), seasonal_order=seasonal_order)
    fitted_ok = True
except (ValueError, IndexError, np.linalg.LinAlgError) as e:
    st.error(f"Model fitting failed: {e}. Try different orders.")
    fitted_ok = False

if fitted_ok:
    results = manual.fitted
    c1, c2, c3 = st.columns(3)
    c1.metric("Model", manual.info["label"])
    c2.metric("AIC", f"{results.aic:.1f}")
    c3.metric("BIC", f"{results.bic:.1f}")

    st.plotly_chart(
        forecast_chart(train, [manual], test, title=f"{manual.info['label']} Forecast",
                       y_label=meta["axis_label"]),
        use_container_width=True,
    )
    metric_row(accuracy(test, manual.mean, train, SEASONAL_PERIOD), units)

    with st.expander("Model Summary"):
        st.text(str(results.summary()))

# ── Section 4: auto_arima ────────────────────────────────────────────────────
st.header("4. Automatic Order Selection")

st.markdown(
    "`pmdarima.auto_arima` runs a stepwise search over (p, d, q)(P, D, Q), choosing "
    "d with unit-root tests and the rest by AIC. It does what you would do with "
    "infinite patience."
)

try:
    with st.spinner("Running auto_arima..."):
        auto = auto_arima_forecast(train, horizon, seasonal=use_seasonal)
    st.success(f"Selected {auto.info['label']} with AIC = {auto.info['aic']:.1f}")
    st.plotly_chart(
        forecast_chart(train, [auto], test, title=f"auto_arima: {auto.info['label']}",
                       y_label=meta["axis_label"]),
        use_container_width=True,
    )
    metric_row(accuracy(test, auto.mean, train, SEASONAL_PERIOD), units)
except ImportError:
    st.info("Install `pmdarima` (`pip install pmdarima`) to enable automatic order selection.")
    auto = None

# ── Section 5: Comparing Orders ──────────────────────────────────────────────
st.header("5. Comparing Orders by AIC")

orders_to_try = [(0, 1, 1), (1, 1, 0), (1, 1, 1), (2, 1, 1), (2, 1, 2)]
order_rows = []
for o in orders_to_try:
    try:
        res = arima_forecast(train, horizon, order=o, seasonal_order=seasonal_order)
    except (ValueError, IndexError, np.linalg.LinAlgError) as e:
        st.caption(f"ARIMA{o} could not be fitted: {e}")
        continue
    acc = accuracy(test, res.mean)
    order_rows.append({"Order": res.info["label"], "AIC": round(res.info["aic"], 1),
                       "BIC": round(res.info["bic"], 1), "RMSE (test)": round(acc["RMSE"], 3)})

if order_rows:
    ord_df = pd.DataFrame(order_rows).sort_values("AIC")
    st.dataframe(ord_df, use_container_width=True, hide_index=True)
    fig_aic = go.Figure(go.Bar(x=ord_df["Order"], y=ord_df["AIC"], marker_color="#2E86C1"))
    apply_common_layout(fig_aic, "AIC Across Orders", 380)
    st.plotly_chart(fig_aic, use_container_width=True)

# ── Section 6: Residual Diagnostics ──────────────────────────────────────────
if fitted_ok:
    st.header("6. Residual Diagnostics")
    resid = manual.fitted.resid.iloc[d + (D * SEASONAL_PERIOD if use_seasonal else 0):]
    st.plotly_chart(residual_chart(resid), use_container_width=True)
    diag = residual_diagnostics(resid)
    c1, c2 = st.columns(2)
    c1.metric(f"Ljung-Box p (lag {diag['lags']})", f"{diag['ljung_box_p']:.3f}")
    c2.metric("Shapiro-Wilk p", f"{diag['shapiro_p']:.3f}")
    insight_box(
        "A small Ljung-Box p-value means the residuals are still autocorrelated: the "
        "model left predictable structure on the table. For CO2 without seasonal terms "
        "you will see exactly that -- the annual cycle leaking into the residuals."
    )

code_example("""
from statsmodels.tsa.arima.model import ARIMA
import pmdarima as pm

res = ARIMA(train, order=(1, 1, 1), seasonal_order=(0, 1, 1, 12)).fit()
fc = res.get_forecast(steps=24)
fc.predicted_mean, fc.conf_int(alpha=0.05)

auto = pm.auto_arima(train, seasonal=True, m=12, stepwise=True)
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "In ARIMA(1,1,1)(0,1,1)[12], what does the [12] mean?",
    [
        "Twelve AR lags",
        "The seasonal period: seasonal terms act at lags that are multiples of 12 months",
        "A 12-step forecast horizon",
        "Twelve rounds of differencing",
    ],
    1,
    "The bracketed number is the seasonal period m. Seasonal AR/MA terms and the "
    "seasonal difference operate at lags m, 2m, ...",
    key="ch4_quiz",
)

st.divider()
takeaways([
    "Always compare against naive, seasonal naive and drift benchmarks.",
    "Difference until the series is stationary; ADF and KPSS have opposite nulls.",
    "AIC trades goodness of fit against the number of parameters; auto_arima searches it for you.",
    "Check residuals for leftover autocorrelation with the Ljung-Box test.",
])

navigation("Seasonal Decomposition", "Exponential Smoothing",
           "03_Seasonal_Decomposition.py", "05_Exponential_Smoothing.py")
