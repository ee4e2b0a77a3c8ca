"""Chapter 10 -- Ensembles and the Final Comparison."""
import streamlit as st
import pandas as pd

from climatecast.constants import DATASETS, SEASONAL_PERIOD
from climatecast.data_loader import chapter_series, dataset_selector, sidebar_filters
from climatecast.evaluation import (
    accuracy, compare_models, cv_weight_scores, ensemble_forecast, inverse_rmse_weights,
    validation_splits,
)
from climatecast.forecasters import MODEL_REGISTRY
from climatecast.ml_helpers import cached_forecast
from climatecast.plotting import forecast_chart, metrics_bar_chart
from climatecast.ts_helpers import holdout_split
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, horizon_control, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(10, "Ensembles and Comparison", part="IV")

st.markdown(
    "We have met eight forecasting methods. Rather than crown a single winner, this "
    "final chapter asks a more useful question: what happens if we let them vote? "
    "Forecast combinations are one of the most reliable results in the field -- an "
    "average of reasonable forecasts is usually at least as good as the best single "
    "one, and much less likely to be embarrassingly wrong."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Comparison Settings")
key = dataset_selector(key="ch10_dataset", default="co2")
horizon = horizon_control("ch10_horizon")
members = st.sidebar.multiselect(
    "Models", list(MODEL_REGISTRY),
    default=["Seasonal naive", "ARIMA", "ETS", "Random Forest"], key="ch10_models",
)
future_years = st.sidebar.slider("Final forecast length (years)", 1, 10, 5, key="ch10_future")

series = sidebar_filters(chapter_series(key), key="ch10_years", default_start=1960)
meta = DATASETS[key]

try:
    train, test = holdout_split(series, horizon)
except ValueError as e:
    st.error(f"Not enough data for a {horizon}-month test set: {e}")
    st.stop()

if len(members) < 2:
    st.info("Select at least two models to build an ensemble.")
    st.stop()


def fit_members(data, h):
    fitted, failed = [], {}
    for name in members:
        try:
            fitted.append(cached_forecast(name, data, h))
        except ImportError as e:
            failed[name] = f"not installed ({e})"
        except (ValueError, RuntimeError) as e:
            failed[name] = str(e)
    return fitted, failed


# ── Section 1: Head to Head ──────────────────────────────────────────────────
st.header("1. Every Model on the Same Test Set")

results, failed = fit_members(train, horizon)
for name, reason in failed.items():
    st.caption(f"{name} skipped: {reason}")
if len(results) < 2:
    st.error("Fewer than two models could be fitted; nothing to combine.")
    st.stop()

table = compare_models(test, results, train, SEASONAL_PERIOD)
st.dataframe(table.style.format(precision=3), use_container_width=True, hide_index=True)
st.plotly_chart(metrics_bar_chart(table, "MASE", title="MASE by Model (below 1 beats seasonal naive)"),
                use_container_width=True)

# ── Section 2: Combining ─────────────────────────────────────────────────────
st.header("2. Combining Forecasts")

concept_box(
    "Simple and Weighted Averages",
    "The <b>equal-weight</b> ensemble averages the member forecasts month by month. "
    "The <b>inverse-RMSE</b> ensemble gives each member a weight proportional to "
    "1 / RMSE, so better models count for more. The weights must come from data "
    "the ensemble is not evaluated on; otherwise the comparison is rigged."
)

formula_box(
    "Inverse-RMSE Weights",
    r"\hat{y}^{\text{ens}}_{t} = \sum_{i} w_i \, \hat{y}^{(i)}_{t}, \qquad "
    r"w_i = \frac{1 / \mathrm{RMSE}_i}{\sum_j 1 / \mathrm{RMSE}_j}",
    "Equal weights are the special case where every RMSE is the same."
)

stored = cv_weight_scores(st.session_state.get("cv_rmse"), key, series, horizon) or {}
scores = {m.model: stored[m.model] for m in results if m.model in stored}
source = "cross-validated RMSE from Chapter 9"
if len(scores) < 2:
    # same dataset, horizon and years are needed to reuse Chapter 9
    try:
        ((val_train, val),) = validation_splits(series, horizon)
    except ValueError as e:
        st.error(f"Not enough data for a validation block before the test set: {e}")
        st.stop()
    val_results, _ = fit_members(val_train, horizon)
    scores = {r.model: accuracy(val, r.mean)["RMSE"] for r in val_results}
    source = "a validation block just before the test period"

try:
    weights = inverse_rmse_weights(scores)
except ValueError as e:
    st.error(f"Could not weight the ensemble: {e}")
    st.stop()
equal = ensemble_forecast(results, name="Ensemble")
equal.info["label"] = "Ensemble (equal)"
weighted = ensemble_forecast(results, weights=weights, name="Ensemble")
weighted.info["label"] = "Ensemble (inverse RMSE)"

st.caption(f"Weights are computed from {source}.")
st.dataframe(pd.DataFrame({"Model": list(weighted.info["weights"]),
                           "Weight": list(weighted.info["weights"].values())})
             .style.format({"Weight": "{:.3f}"}), use_container_width=True, hide_index=True)

combined = compare_models(test, results + [equal, weighted], train, SEASONAL_PERIOD)
st.dataframe(combined.style.format(precision=3), use_container_width=True, hide_index=True)

best_single = table.iloc[0]
ens_rmse = combined.loc[combined["Model"].str.startswith("Ensemble"), "RMSE"].min()
if ens_rmse <= best_single["RMSE"]:
    st.success(f"An ensemble beats every single model (RMSE {ens_rmse:.3f} vs "
               f"{best_single['RMSE']:.3f} for {best_single['Model']}).")
else:
    st.info(f"{best_single['Model']} edges out the ensembles here (RMSE {best_single['RMSE']:.3f} "
            f"vs {ens_rmse:.3f}). Try another horizon: the winner changes, the ensemble rarely "
            "does badly.")

st.plotly_chart(
    forecast_chart(train, [equal, weighted] + results, test, title="Members and Ensembles",
                   y_label=meta["axis_label"], intervals=False, history=60),
    use_container_width=True,
)

warning_box(
    "Averaging point forecasts is easy; averaging prediction intervals is not. The "
    "ensemble here reports no interval, because the members' errors are strongly "
    "correlated and simply averaging their bands would overstate the certainty."
)

# ── Section 3: Looking Ahead ─────────────────────────────────────────────────
st.header("3. Forecasting the Future")

st.markdown(
    f"Finally we refit every member on **all** the data and forecast "
    f"{future_years} years beyond the last observation "
    f"({series.index[-1]:%B %Y}), combining them with the same weights."
)

future_h = future_years * 12
future_results, future_failed = fit_members(series, future_h)
for name, reason in future_failed.items():
    st.caption(f"{name} skipped: {reason}")
if future_results:
    future_ens = ensemble_forecast(future_results, weights=weights, name="Ensemble")
    st.plotly_chart(
        forecast_chart(series, future_results + [future_ens],
                       title=f"{meta['label']}: {future_years}-Year Outlook",
                       y_label=meta["axis_label"], history=240),
        use_container_width=True,
    )
    last_year = future_ens.mean.iloc[-12:].mean()
    st.write(
        f"Ensemble mean for the final forecast year: **{last_year:.2f} {meta['units']}** "
        f"(latest 12-month mean: {series.iloc[-12:].mean():.2f})."
    )

insight_box(
    "Every model here extrapolates patterns from the past. None of them knows about "
    "emissions policy, volcanic eruptions or El Nino. Statistical forecasts of "
    "climate series are a statement about momentum, not a climate projection."
)

code_example("""
from climatecast.evaluation import ensemble_forecast, inverse_rmse_weights
from climatecast.ml_helpers import run_forecast

results = [run_forecast(name, train, 24) for name in ["ARIMA", "ETS", "Random Forest"]]
weights = inverse_rmse_weights({"ARIMA": 0.21, "ETS": 0.25, "Random Forest": 0.40})
ens = ensemble_forecast(results, weights=weights)
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "Why should ensemble weights not be computed from the test set?",
    [
        "It is too slow",
        "The ensemble would be tuned on the very data used to judge it, flattering its score",
        "Test-set RMSE is always zero",
        "Weights must sum to more than one",
    ],
    1,
    "Choosing weights with the test data leaks information: the ensemble's test "
    "score would no longer be an honest estimate of future accuracy.",
    key="ch10_quiz",
)

st.divider()
takeaways([
    "Compare every model on the same held-out period with scale-free metrics like MASE.",
    "Averaging forecasts is a cheap, robust way to reduce error.",
    "Weight by inverse RMSE from cross-validation or a validation block, never the test set.",
    "Statistical extrapolation describes momentum; it is not a physical climate projection.",
])

navigation("Cross-Validation", None, "09_Cross_Validation.py", None)
