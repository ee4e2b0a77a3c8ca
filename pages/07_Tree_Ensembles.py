"""Chapter 7 -- Random Forest and XGBoost on Lag Features."""
import streamlit as st
import pandas as pd
import plotly.express as px

from climatecast.constants import DATASETS, SEASONAL_PERIOD
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import compare_models
from climatecast.forecasters import random_forest_forecast, xgboost_forecast
from climatecast.plotting import apply_common_layout, forecast_chart
from climatecast.ts_helpers import holdout_split, lag_features
from climatecast.ui_components import (
    chapter_header, concept_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(7, "Random Forest & XGBoost", part="III")

st.markdown(
    "Tree ensembles win a remarkable share of tabular machine-learning competitions. "
    "They know nothing about time, though. To use them for forecasting we have to "
    "turn the series into a table: each row is a month, each column is the value "
    "some number of months earlier. Then we predict one step ahead, feed the "
    "prediction back in as the newest lag, and repeat. Along the way we will run "
    "into the most important limitation of tree models on trending data."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Tree Model Settings")
key = dataset_selector(key="ch7_dataset", default="co2")
horizon = horizon_control("ch7_horizon")
n_lags = st.sidebar.slider("Number of lags", 1, 36, 12, key="ch7_lags")
n_estimators = st.sidebar.slider("Trees", 50, 600, 300, 50, key="ch7_trees")
difference = st.sidebar.checkbox("Model month-to-month changes (difference first)",
                                 value=True, key="ch7_diff")
n_paths = st.sidebar.select_slider("Simulated paths for intervals", [0, 50, 100, 200], 100,
                                   key="ch7_paths")

series = sidebar_filters(chapter_series(key), key="ch7_years", default_start=1960)
meta = DATASETS[key]

try:
    train, test = holdout_split(series, horizon)
except ValueError as e:
    st.error(f"Not enough data for a {horizon}-month test set: {e}")
    st.stop()

# ── Section 1: Series to Table ───────────────────────────────────────────────
st.header("1. Turning a Series into a Table")

concept_box(
    "Lag Features",
    "For a series y, the feature <b>lag_k</b> at month t is y at month t - k. With "
    "12 lags plus the calendar month as features, a tree can learn both short-term "
    "persistence (lag_1) and the seasonal echo (lag_12). The first 12 months have no "
    "complete history and are dropped."
)

X, y = lag_features(train.diff().dropna() if difference else train,
                    range(1, n_lags + 1), calendar=True)
preview = X.tail(6).copy()
preview.insert(0, "target", y.tail(6))
st.dataframe(preview.style.format(precision=3), use_container_width=True)
st.caption(f"{len(X):,} training rows x {X.shape[1]} features"
           + (" (values are month-to-month changes)" if difference else ""))

# ── Section 2: Fit Both Models ───────────────────────────────────────────────
st.header("2. Random Forest vs XGBoost")

results = []
try:
    with st.spinner("Training random forest..."):
        results.append(random_forest_forecast(train, horizon, lags=n_lags, n_estimators=n_estimators,
                                              difference=difference, n_paths=n_paths))
except ValueError as e:
    st.error(f"Random forest failed: {e}")

try:
    with st.spinner("Training XGBoost..."):
        results.append(xgboost_forecast(train, horizon, lags=n_lags, n_estimators=n_estimators,
                                        difference=difference, n_paths=n_paths))
except ImportError:
    st.info("XGBoost not installed. Showing the random forest only.")
except ValueError as e:
    st.error(f"XGBoost failed: {e}")

if not results:
    st.stop()

st.plotly_chart(
    forecast_chart(train, results, test, title=f"Tree Ensemble Forecasts: {meta['label']}",
                   y_label=meta["axis_label"], intervals=n_paths > 0),
    use_container_width=True,
)
st.dataframe(compare_models(test, results, train, SEASONAL_PERIOD).style.format(precision=3),
             use_container_width=True, hide_index=True)

if n_paths:
    st.caption(
        "Intervals come from simulating future paths: at every step a randomly "
        "resampled training residual is added to the prediction before it is fed "
        "back as a lag."
    )

# ── Section 3: The Extrapolation Problem ─────────────────────────────────────
st.header("3. Trees Cannot Extrapolate")

warning_box(
    "A regression tree predicts the average of training targets in a leaf, so it can "
    "never predict a value higher than the highest value it has seen. Fit a tree on "
    "CO2 <i>levels</i> and every forecast is capped at the record high -- a flat "
    "line while the real curve keeps climbing."
)

try:
    with st.spinner("Refitting on levels for comparison..."):
        on_levels = random_forest_forecast(train, horizon, lags=n_lags, n_estimators=n_estimators,
                                           difference=False)
        on_diffs = random_forest_forecast(train, horizon, lags=n_lags, n_estimators=n_estimators,
                                          difference=True)
except ValueError as e:
    st.error(f"Levels vs differences comparison failed: {e}")
    st.stop()
on_levels.info["label"] = "Random Forest on levels"
on_diffs.info["label"] = "Random Forest on differences"
on_levels.model = "Random Forest (levels)"

st.plotly_chart(
    forecast_chart(train, [on_levels, on_diffs], test, title="Levels vs Differences",
                   y_label=meta["axis_label"], intervals=False, history=60),
    use_container_width=True,
)
st.write(
    f"Highest training value: **{train.max():.2f} {meta['units']}**. "
    f"Highest levels-model forecast: **{on_levels.mean.max():.2f}**. "
    f"Highest differences-model forecast: **{on_diffs.mean.max():.2f}**."
)

insight_box(
    "Differencing turns 'predict the level' into 'predict the change'. Changes stay "
    "in a familiar range even when the level is at a record, so the tree never has "
    "to extrapolate; we add the predicted changes back onto the last observation."
)

# ── Section 4: What Did the Forest Use? ──────────────────────────────────────
st.header("4. Feature Importance")

rf = results[0].fitted
importance = pd.DataFrame({
    "Feature": results[0].info["features"],
    "Importance": rf.feature_importances_,
}).sort_values("Importance", ascending=True)
fig_imp = px.bar(importance.tail(15), x="Importance", y="Feature", orientation="h",
                 color_discrete_sequence=["#264653"])
apply_common_layout(fig_imp, "Random Forest Impurity Importance (top 15)", 450)
st.plotly_chart(fig_imp, use_container_width=True)

top = importance.iloc[-1]["Feature"]
st.markdown(
    f"The most important feature is **{top}**. On CO2 changes, `lag_12` and the "
    "calendar month usually dominate: this month's change looks a lot like the "
    "change in the same month last year, which is the seasonal cycle in disguise."
)

code_example("""
from sklearn.ensemble import RandomForestRegressor
from xgboost import XGBRegressor
from climatecast.forecasters import lag_regression_forecast

rf = RandomForestRegressor(n_estimators=300, random_state=42, n_jobs=-1)
result = lag_regression_forecast(train, 24, rf, lags=12, calendar=True,
                                 difference=True, n_paths=100)
result.mean, result.lower, result.upper
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "Why does a random forest trained on CO2 levels produce a flat forecast?",
    [
        "It needs more trees",
        "Tree predictions are averages of training targets, so they cannot exceed the training maximum",
        "Random forests ignore lag features",
        "The learning rate is too low",
    ],
    1,
    "Each leaf predicts an average of targets it saw in training. When the future "
    "lies above everything in the training set, the best the forest can do is the "
    "highest leaf average.",
    key="ch7_quiz",
)

st.divider()
takeaways([
    "Lag features turn forecasting into supervised regression; recursive prediction rolls it forward.",
    "Trees cannot extrapolate beyond the training range; difference trending series first.",
    "Simulating paths with resampled residuals gives intervals for any regressor.",
    "Feature importance shows which lags and calendar effects the model relies on.",
])

navigation("Prophet", "Neural Network Autoregression",
           "06_Prophet.py", "08_Neural_Network_Autoregression.py")
