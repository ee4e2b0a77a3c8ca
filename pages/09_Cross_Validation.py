"""Chapter 9 -- Time-Series Cross-Validation."""
import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from climatecast.constants import DATASETS
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import cv_summary, cv_weight_record, validation_splits
from climatecast.ml_helpers import cached_cv
from climatecast.plotting import apply_common_layout, cv_splits_chart, metrics_bar_chart, model_color
from climatecast.ts_helpers import holdout_split
from climatecast.ui_components import (
    chapter_header, concept_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, navigation,
)

FAST_MODELS = ["Naive", "Seasonal naive", "Drift", "ARIMA", "ETS"]
SLOW_MODELS = ["Random Forest", "XGBoost", "Prophet", "NNAR"]

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(9, "Cross-Validation", part="IV")

st.markdown(
    "A single train/test split answers one question: how well did the model do over "
    "*these particular* months? If that stretch happened to contain an El Nino or a "
    "volcanic eruption the answer can be badly misleading. Time-series "
    "cross-validation repeats the experiment from several forecast origins and "
    "averages the errors, which gives a far steadier picture."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Cross-Validation Settings")
key = dataset_selector(key="ch9_dataset", default="co2")
horizon = horizon_control("ch9_horizon", default=12, max_value=36)
n_splits = st.sidebar.slider("Number of folds", 2, 10, 5, key="ch9_folds")
window = st.sidebar.radio("Training window", ["Expanding", "Sliding (20 years)"], key="ch9_window")
max_train_size = 240 if window.startswith("Sliding") else None
models = st.sidebar.multiselect("Models", FAST_MODELS + SLOW_MODELS,
                                default=["Naive", "Seasonal naive", "ARIMA", "ETS"], key="ch9_models")

series = sidebar_filters(chapter_series(key), key="ch9_years", default_start=1960)
meta = DATASETS[key]

# ── Section 1: Splits ────────────────────────────────────────────────────────
st.header("1. Rolling Forecast Origins")

concept_box(
    "Why Not Ordinary K-Fold?",
    "Shuffled k-fold cross-validation lets a model train on 2015 and test on 2010 -- "
    "it gets to peek at the future. Time-series cross-validation only ever trains on "
    "data <b>before</b> the test block. Each fold moves the forecast origin forward "
    "by one horizon; the training set either <b>expands</b> to include everything "
    "before the origin or <b>slides</b> with a fixed length."
)

try:
    history, holdout = holdout_split(series, horizon)
    splits = list(validation_splits(series, horizon, n_splits, max_train_size))
except ValueError as e:
    st.error(f"Cannot make {n_splits} folds of {horizon} months: {e}")
    st.stop()

st.caption(
    f"The final {horizon} months (from {holdout.index[0]:%B %Y}) are held back: Chapter 10 "
    "uses them as its test set and these scores to weight its ensemble."
)
st.plotly_chart(cv_splits_chart(splits), use_container_width=True)
st.dataframe(pd.DataFrame([
    {"Fold": i, "Train from": tr.index[0].strftime("%Y-%m"), "Train to": tr.index[-1].strftime("%Y-%m"),
     "Train months": len(tr), "Test from": te.index[0].strftime("%Y-%m"),
     "Test to": te.index[-1].strftime("%Y-%m")}
    for i, (tr, te) in enumerate(splits, 1)
]), use_container_width=True, hide_index=True)

# ── Section 2: Errors by Model ───────────────────────────────────────────────
st.header("2. Cross-Validated Accuracy")

if not models:
    st.info("Select at least one model in the sidebar.")
    st.stop()

if any(m in SLOW_MODELS for m in models):
    warning_box(
        f"Every slow model is refitted {n_splits} times. Results are cached, so only "
        "the first run is slow."
    )

errors = {}
for name in models:
    try:
        errors[name] = cached_cv(name, history, horizon, n_splits, max_train_size)
    except ImportError as e:
        st.info(f"{name} skipped: {e}")
    except (ValueError, RuntimeError) as e:
        st.error(f"{name} failed during cross-validation: {e}")

if not errors:
    st.stop()

overall = pd.DataFrame([
    {"Model": name, **cv_summary(err).loc["all", ["RMSE", "MAE"]].to_dict()}
    for name, err in errors.items()
]).sort_values("RMSE").reset_index(drop=True)
st.dataframe(overall.style.format(precision=3), use_container_width=True, hide_index=True)
st.plotly_chart(metrics_bar_chart(overall, "RMSE", title=f"Cross-Validated RMSE ({meta['units']})"),
                use_container_width=True)
st.session_state["cv_rmse"] = cv_weight_record(key, series, horizon, errors)

# ── Section 3: Error Grows with Horizon ──────────────────────────────────────
st.header("3. Error by Forecast Step")

fig = go.Figure()
for name, err in errors.items():
    by_step = cv_summary(err).drop(index="all")
    fig.add_trace(go.Scatter(
        x=by_step.index, y=by_step["RMSE"], mode="lines+markers", name=name,
        line=dict(color=model_color(name), width=2),
    ))
fig.update_layout(xaxis_title="Months ahead", yaxis_title=f"RMSE ({meta['units']})")
apply_common_layout(fig, "RMSE by Forecast Horizon", 450)
st.plotly_chart(fig, use_container_width=True)

insight_box(
    "Almost every curve slopes upward: the further ahead, the larger the error. "
    "The interesting question is the slope. A model whose curve stays flat has "
    "captured the structure that persists; a steep one is mostly extrapolating noise."
)

with st.expander("Fold-by-fold errors"):
    chosen = st.selectbox("Model", list(errors), key="ch9_detail")
    detail = errors[chosen]
    per_fold = detail.groupby("fold").apply(
        lambda g: pd.Series({"origin": g["origin"].iloc[0].strftime("%Y-%m"),
                             "RMSE": (g["error"] ** 2).mean() ** 0.5}),
    )
    st.dataframe(per_fold.style.format({"RMSE": "{:.3f}"}), use_container_width=True)

code_example("""
from sklearn.model_selection import TimeSeriesSplit
from climatecast.evaluation import time_series_cv, cv_summary
from climatecast.forecasters import drift_forecast

errors = time_series_cv(series, drift_forecast, horizon=12, n_splits=5)
cv_summary(errors)   # RMSE, MAE and n for each step, plus an 'all' row
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "What makes time-series cross-validation different from ordinary k-fold?",
    [
        "It uses more folds",
        "Each fold trains only on data before its test block",
        "It shuffles the observations first",
        "It never reuses any observation for training",
    ],
    1,
    "Respecting time order is the whole point: a model must never train on data from "
    "after the period it is being tested on.",
    key="ch9_quiz",
)

st.divider()
takeaways([
    "A single holdout can mislead; averaging over several forecast origins is steadier.",
    "Time-series folds always train on the past and test on the future.",
    "Expanding windows use all history; sliding windows adapt to recent behaviour.",
    "Plot error against forecast step to see how quickly each model degrades.",
])

navigation("Neural Network Autoregression", "Ensembles and Comparison",
           "08_Neural_Network_Autoregression.py", "10_Ensembles_and_Comparison.py")
