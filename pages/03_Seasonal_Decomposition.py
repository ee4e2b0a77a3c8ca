"""Chapter 3 -- Seasonal Decomposition: STL vs classical."""
import streamlit as st
import pandas as pd

from climatecast.constants import DATASETS
from climatecast.data_loader import chapter_series, dataset_selector, load_series, sidebar_filters
from climatecast.decomposition import decompose, seasonal_strength, trend_strength
from climatecast.plotting import decomposition_chart, residual_chart
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(3, "Seasonal Decomposition", part="I")

st.markdown(
    "Decomposition is the act of pulling a series apart into the pieces we believe "
    "it is made of: a slowly moving **trend**, a repeating **seasonal** pattern, and "
    "a **remainder** of everything else. It does not forecast anything by itself, but "
    "nearly every forecasting method in Part II is a more disciplined version of the "
    "same idea, so it is worth seeing the pieces first."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Decomposition Settings")
key = dataset_selector(key="ch3_dataset", default="co2")
method = st.sidebar.radio("Method", ["stl", "classical"],
                          format_func=lambda m: {"stl": "STL (LOESS)", "classical": "Classical"}[m],
                          key="ch3_method")
model_type = "additive"
if method == "classical":
    model_type = st.sidebar.radio("Form", ["additive", "multiplicative"], key="ch3_model")
robust = st.sidebar.checkbox("Robust STL (down-weight outliers)", value=True, key="ch3_robust",
                             disabled=(method != "stl"))

series = sidebar_filters(chapter_series(key), key="ch3_years")
meta = DATASETS[key]

concept_box(
    "Two Ways to Find a Seasonal Pattern",
    "<b>Classical decomposition</b> estimates the trend with a centred 2x12 moving "
    "average, then averages the de-trended values for each calendar month. It is "
    "transparent but loses six months at each end and assumes the seasonal pattern "
    "never changes.<br>"
    "<b>STL</b> (Seasonal-Trend decomposition using LOESS) fits local regressions "
    "instead, estimates every point, lets the seasonal shape drift slowly over the "
    "decades, and can down-weight outliers such as volcanic eruptions."
)

formula_box(
    "Additive Decomposition",
    r"y_t = \underbrace{T_t}_{\text{trend}} + \underbrace{S_t}_{\text{seasonal}} + \underbrace{R_t}_{\text{remainder}}",
    "Multiplicative decomposition replaces + with x and suits series whose seasonal "
    "swing grows with the level. Anomalies can be negative, so multiplicative forms "
    "only make sense for CO2."
)

# ── Section 1: Decomposition ─────────────────────────────────────────────────
st.header(f"1. Decomposing {meta['label']}")

try:
    components = decompose(series, method=method, model=model_type, robust=robust)
except ValueError as e:
    st.error(f"Decomposition failed: {e}")
    st.stop()

st.plotly_chart(
    decomposition_chart(components, title=f"{method.upper()} decomposition: {meta['label']}"),
    use_container_width=True,
)

# ── Section 2: How Seasonal? How Trended? ────────────────────────────────────
st.header("2. Strength of Trend and Seasonality")

formula_box(
    "Strength Measures",
    r"F_T = \max\left(0,\, 1 - \frac{\mathrm{Var}(R_t)}{\mathrm{Var}(T_t + R_t)}\right) \qquad "
    r"F_S = \max\left(0,\, 1 - \frac{\mathrm{Var}(R_t)}{\mathrm{Var}(S_t + R_t)}\right)",
    "Both lie between 0 and 1. Values near 1 mean the component dominates the remainder."
)

if model_type == "additive":
    f_t, f_s = trend_strength(components), seasonal_strength(components)
    c1, c2 = st.columns(2)
    c1.metric("Trend strength F_T", f"{f_t:.3f}")
    c2.metric("Seasonal strength F_S", f"{f_s:.3f}")

    compare = []
    for other in DATASETS:
        other_series = load_series(other).loc[series.index.min():series.index.max()]
        try:
            other_comp = decompose(other_series, method="stl")
        except ValueError:
            continue
        compare.append({
            "Dataset": DATASETS[other]["label"],
            "Trend strength": round(trend_strength(other_comp), 3),
            "Seasonal strength": round(seasonal_strength(other_comp), 3),
        })
    st.dataframe(pd.DataFrame(compare), use_container_width=True, hide_index=True)

    insight_box(
        "Both series are almost entirely trend, but only CO2 is strongly seasonal. "
        "The temperature anomaly's seasonal strength is close to zero because the "
        "anomaly calculation already removed the seasonal cycle. This single table "
        "tells us which models in Part II should bother with seasonal terms."
    )
else:
    st.info("Strength measures are defined for additive components; switch the form to additive.")

# ── Section 3: Remainder ─────────────────────────────────────────────────────
st.header("3. What Is Left Over")

st.plotly_chart(residual_chart(components["resid"], title="Remainder Component"),
                use_container_width=True)

warning_box(
    "A decomposition remainder is not a forecast error. It is computed with the "
    "benefit of hindsight -- the centred moving average and LOESS windows both look "
    "into the future. Do not report remainder variance as forecast accuracy."
)

code_example("""
from statsmodels.tsa.seasonal import STL, seasonal_decompose

stl = STL(co2, period=12, robust=True).fit()
stl.trend, stl.seasonal, stl.resid

classical = seasonal_decompose(co2, model="additive", period=12)
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "Why does classical decomposition have missing trend values at both ends?",
    [
        "The data is missing there",
        "A centred moving average needs observations on both sides of each point",
        "statsmodels drops the first and last year on purpose",
        "The seasonal period does not divide the series length",
    ],
    1,
    "A centred 2x12 moving average needs six months before and after each point, so "
    "the first and last six trend values are undefined.",
    key="ch3_quiz",
)

st.divider()
takeaways([
    "Decomposition splits a series into trend, seasonal and remainder components.",
    "STL is more flexible than classical decomposition and estimates every point.",
    "Strength measures F_T and F_S tell you whether a model needs trend or seasonal terms.",
    "Decomposition uses future data; it describes a series, it does not forecast it.",
])

navigation("The Keeling Curve", "Benchmarks and ARIMA",
           "02_Keeling_Curve.py", "04_ARIMA.py")
