"""Chapter 1 -- Exploring Temperature Anomalies."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from climatecast.data_loader import chapter_series, sidebar_filters
from climatecast.plotting import (
    apply_common_layout, series_chart, warming_stripes, heatmap_chart,
)
from climatecast.stats_helpers import descriptive_stats, warming_trend
from climatecast.ts_helpers import annual_means, monthly_climatology
from climatecast.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, takeaways, dataset_caption, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(1, "Exploring Temperature Anomalies", part="I")

st.markdown(
    "Before we forecast anything, we have to look at it. This sounds obvious, and "
    "yet an astonishing number of forecasting disasters start with someone feeding "
    "a series into a model without ever plotting it. So this chapter is all plotting. "
    "Our series is the NASA GISTEMP global temperature anomaly: one number per month "
    "since 1880, describing how much warmer or cooler the whole planet was than its "
    "1951-1980 average."
)

# ── Load data ────────────────────────────────────────────────────────────────
temp = chapter_series("temperature")
series = sidebar_filters(temp, key="ch1_years")

concept_box(
    "Why Anomalies, Not Temperatures?",
    "Absolute global mean temperature is surprisingly hard to pin down -- it depends "
    "on how you average mountains, oceans and poles. <b>Changes</b> are much easier "
    "to measure consistently. An anomaly is the difference between a month's value "
    "and the long-term average for that same calendar month, which also removes "
    "most of the seasonal cycle for free."
)

formula_box(
    "Temperature Anomaly",
    r"\underbrace{A_{y,m}}_{\text{anomaly}} = \underbrace{T_{y,m}}_{\text{observed}} - "
    r"\underbrace{\bar{T}_{m}^{\,1951-1980}}_{\text{baseline for month } m}",
    "Each month is compared with the average of the same month over the baseline "
    "period, so January is compared with Januaries and July with Julys."
)

# ── Section 1: The Raw Record ────────────────────────────────────────────────
st.header("1. The Monthly Record")

stats = descriptive_stats(series)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Months", f"{stats['count']:,}")
c2.metric("Mean anomaly", f"{stats['mean']:+.2f} °C")
c3.metric("Coldest month", f"{stats['min']:+.2f} °C")
c4.metric("Warmest month", f"{stats['max']:+.2f} °C")

fig = series_chart(
    series, title="Global Land-Ocean Temperature Anomaly",
    y_label="Anomaly vs 1951-1980 (°C)",
    smooth={12: "#E63946", 120: "#264653"},
)
fig.add_hline(y=0, line_dash="dot", line_color="gray")
st.plotly_chart(fig, use_container_width=True)
dataset_caption("temperature")

insight_box(
    "The monthly values bounce around by a few tenths of a degree -- that is weather, "
    "El Niño and volcanic eruptions. The 10-year rolling mean removes that chatter and "
    "leaves the signal: roughly flat until about 1910, a rise to the 1940s, a plateau, "
    "then a steep and steady climb from the late 1970s onward."
)

# ── Section 2: Annual Means and Warming Stripes ──────────────────────────────
st.header("2. Annual Means and Warming Stripes")

annual = annual_means(series)
st.plotly_chart(warming_stripes(annual, title="Warming Stripes (annual mean anomaly)"),
                use_container_width=True)

st.markdown(
    "Each stripe is one year, colored from deep blue (cool) to deep red (warm). "
    "No axes, no numbers, and somehow it communicates the trend better than any "
    "chart with axes ever has."
)

warning_box(
    "Only complete calendar years are averaged. If the current year is only three "
    "months old, averaging those three months would compare a winter-only mean "
    "with full-year means -- an apples-to-oranges comparison that can mislead."
)

# ── Section 3: Is the Trend Real? ────────────────────────────────────────────
st.header("3. How Fast Is It Warming?")

if len(annual) < 15:
    st.warning("Widen the year filter to at least 15 complete years to fit a trend.")
    st.stop()

start_trend = st.slider(
    "Fit the trend from year", int(annual.index.min()), int(annual.index.max()) - 10,
    max(int(annual.index.min()), 1975), key="ch1_trend_start",
)
recent = annual.loc[start_trend:]

try:
    trend = warming_trend(recent)
    c1, c2, c3 = st.columns(3)
    c1.metric("Trend", f"{trend['slope']:+.3f} °C / decade")
    c2.metric("95% CI", f"{trend['ci_low']:+.3f} to {trend['ci_high']:+.3f}")
    c3.metric("R²", f"{trend['r_squared']:.2f}")

    fig_tr = go.Figure()
    fig_tr.add_trace(go.Scatter(
        x=annual.index, y=annual.values, mode="lines+markers",
        name="Annual mean", line=dict(color="#264653"), marker=dict(size=4),
    ))
    fig_tr.add_trace(go.Scatter(
        x=trend["fitted"].index, y=trend["fitted"].values, mode="lines",
        name=f"OLS trend since {start_trend}", line=dict(color="#E63946", width=3),
    ))
    apply_common_layout(fig_tr, "Annual Anomaly with Linear Trend", 450)
    st.plotly_chart(fig_tr, use_container_width=True)
except ValueError as e:
    st.error(f"Could not fit a trend: {e}")

formula_box(
    "Ordinary Least Squares Trend",
    r"\bar{A}_y = \beta_0 + \beta_1 \, y + \varepsilon_y",
    "We report 10 x beta_1 so the slope reads in °C per decade. The confidence "
    "interval uses the t distribution with n - 2 degrees of freedom."
)

# ── Section 4: Month x Year Heatmap ──────────────────────────────────────────
st.header("4. Every Month at Once")

table = monthly_climatology(series)
st.plotly_chart(
    heatmap_chart(table, x_label="Month", y_label="Year",
                  title="Monthly Anomaly by Year", height=700, zmid=0),
    use_container_width=True,
)

st.markdown(
    "Reading down any column, the colour shifts from blue to red. Reading across "
    "any row, the colour stays roughly the same: anomalies have already removed most "
    "of the seasonal cycle. That second fact matters in Part II -- it means the "
    "temperature series needs little or no seasonal modelling, while the CO2 series "
    "(next chapter) needs a lot."
)

decades = series.groupby((series.index.year // 10) * 10).mean()
st.dataframe(
    pd.DataFrame({"Decade": [f"{d}s" for d in decades.index],
                  "Mean anomaly (°C)": np.round(decades.values, 3)}),
    use_container_width=True, hide_index=True,
)

code_example("""
from climatecast.data_loader import load_temperature
from climatecast.ts_helpers import annual_means
from climatecast.stats_helpers import warming_trend

temp = load_temperature()               # monthly Series, MS index
annual = annual_means(temp)             # complete years only
trend = warming_trend(annual.loc[1975:])
print(f"{trend['slope']:+.3f} °C per decade")
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "Why does the anomaly series show almost no summer/winter cycle?",
    [
        "The Northern and Southern hemispheres cancel out exactly",
        "Each month is measured against the baseline average for that same month",
        "NASA smooths the data with a 12-month moving average",
        "Global temperature has no seasonal cycle",
    ],
    1,
    "Subtracting a month-specific baseline removes the climatological seasonal "
    "cycle. (The hemispheres do partly offset each other, but not exactly -- the "
    "global absolute temperature still has a seasonal cycle of a few degrees.)",
    key="ch1_quiz",
)

st.divider()
takeaways([
    "Always plot the series before modelling it; rolling means separate signal from noise.",
    "Anomalies are differences from a same-month baseline, which removes most seasonality.",
    "Annual means must only use complete years.",
    "The post-1975 warming trend is large relative to its uncertainty.",
])

navigation(next_label="The Keeling Curve", next_page="02_Keeling_Curve.py")
