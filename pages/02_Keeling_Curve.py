"""Chapter 2 -- The Keeling Curve: CO2 trend, seasonal cycle and growth rate."""
import requests
import streamlit as st
import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from climatecast.data_loader import DataFormatError, DataUnavailableError, load_co2, sidebar_filters
from climatecast.plotting import apply_common_layout, series_chart
from climatecast.ts_helpers import annual_means, seasonal_cycle, year_over_year
from climatecast.ui_components import (
    chapter_header, concept_box, insight_box, warning_box,
    code_example, quiz, takeaways, dataset_caption, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
chapter_header(2, "The Keeling Curve", part="I")

st.markdown(
    "In 1958 Charles David Keeling started measuring carbon dioxide on top of a "
    "Hawaiian volcano, far from any city or forest that could contaminate the air. "
    "The record he started has run almost without interruption ever since, and it is "
    "the single cleanest long time series in environmental science. For a forecaster "
    "it is a gift: a strong trend, a crisp seasonal cycle, and very little noise."
)

# ── Load data ────────────────────────────────────────────────────────────────
try:
    co2 = load_co2()
except (DataUnavailableError, DataFormatError, requests.RequestException) as e:
    st.error(f"Could not load the CO2 record: {e}")
    st.stop()
series = sidebar_filters(co2["co2_ppm"], key="ch2_years")
deseason = co2["deseasonalized_ppm"].reindex(series.index)

concept_box(
    "Why Does CO2 Have a Seasonal Cycle?",
    "The Northern Hemisphere holds most of the planet's land and therefore most of "
    "its plants. Every spring and summer those plants pull CO2 out of the air; every "
    "autumn and winter, decaying leaves put it back. Mauna Loa sees this as a "
    "sawtooth riding on top of the long-term rise: a peak in May and a trough in "
    "September or October."
)

# ── Section 1: The Curve ─────────────────────────────────────────────────────
st.header("1. Monthly Mean CO2 at Mauna Loa")

c1, c2, c3 = st.columns(3)
c1.metric("First month", f"{series.iloc[0]:.1f} ppm", help=f"{series.index[0]:%b %Y}")
c2.metric("Latest month", f"{series.iloc[-1]:.1f} ppm", help=f"{series.index[-1]:%b %Y}")
c3.metric("Change", f"{series.iloc[-1] - series.iloc[0]:+.1f} ppm")

fig = series_chart(series, title="Atmospheric CO2 at Mauna Loa",
                   y_label="CO2 (ppm)", color="#E63946")
fig.add_trace(go.Scatter(
    x=deseason.index, y=deseason.values, mode="lines",
    name="Seasonally adjusted (NOAA)", line=dict(color="#264653", width=2),
))
st.plotly_chart(fig, use_container_width=True)
dataset_caption("co2")

n_gaps = int(co2["n_days"].reindex(series.index).isna().sum())
if n_gaps:
    warning_box(
        f"{n_gaps} months in this window have no daily measurements (for example the "
        "2022 Mauna Loa eruption cut the power line to the observatory). The loader "
        "fills interior gaps by linear interpolation; ARIMA and ETS need a regular "
        "index without holes."
    )

# ── Section 2: Seasonal Cycle ────────────────────────────────────────────────
st.header("2. The Seasonal Sawtooth")

cycle = seasonal_cycle(series)
fig_cycle = go.Figure()
fig_cycle.add_trace(go.Bar(
    x=cycle.index, y=cycle["mean"], error_y=dict(type="data", array=cycle["std"]),
    marker_color=["#2A9D8F" if v < 0 else "#E63946" for v in cycle["mean"]],
))
fig_cycle.update_layout(yaxis_title="Departure from 12-month mean (ppm)")
apply_common_layout(fig_cycle, "Average Seasonal Cycle (detrended)", 400)
st.plotly_chart(fig_cycle, use_container_width=True)

amplitude = cycle["mean"].max() - cycle["mean"].min()
insight_box(
    f"The peak-to-trough amplitude is about **{amplitude:.1f} ppm**, peaking in "
    f"**{cycle['mean'].idxmax()}** and bottoming in **{cycle['mean'].idxmin()}**. "
    "Any model we fit to this series must reproduce that shape every single year, "
    "which is why seasonal ARIMA, seasonal ETS and Prophet's Fourier terms all show "
    "up in Part II."
)

# ── Section 3: Growth Rate ───────────────────────────────────────────────────
st.header("3. Is the Rise Accelerating?")

growth = year_over_year(series)
annual = annual_means(series)
annual_growth = annual.diff().dropna()

fig_g = make_subplots(rows=2, cols=1, vertical_spacing=0.15,
                      subplot_titles=["Year-over-year change (monthly)", "Annual growth (ppm / year)"])
fig_g.add_trace(go.Scatter(
    x=growth.index, y=growth.values, mode="lines",
    line=dict(color="#7209B7", width=1), showlegend=False,
), row=1, col=1)
fig_g.add_trace(go.Bar(
    x=annual_growth.index, y=annual_growth.values,
    marker_color="#FB8500", showlegend=False,
), row=2, col=1)
apply_common_layout(fig_g, "CO2 Growth Rate", 600)
st.plotly_chart(fig_g, use_container_width=True)

by_decade = annual_growth.groupby((annual_growth.index // 10) * 10).mean()
st.dataframe(
    {"Decade": [f"{d}s" for d in by_decade.index],
     "Mean growth (ppm / yr)": np.round(by_decade.values, 2)},
    use_container_width=True, hide_index=True,
)

st.markdown(
    "The growth rate itself has grown: well under 1 ppm per year in the 1960s, "
    "above 2 ppm per year in the 2010s. A curve whose slope is increasing is a "
    "curve a straight-line model will under-forecast. Keep this in mind when we "
    "compare the drift benchmark with ARIMA and ETS."
)

code_example("""
from climatecast.data_loader import load_co2
from climatecast.ts_helpers import seasonal_cycle, year_over_year

co2 = load_co2()["co2_ppm"]
print(seasonal_cycle(co2))        # mean/std departure by calendar month
print(year_over_year(co2).tail()) # ppm gained since the same month last year
""")

# ── Quiz ─────────────────────────────────────────────────────────────────────
st.divider()
quiz(
    "Why does Mauna Loa CO2 peak in May and bottom out in autumn?",
    [
        "Ocean temperatures peak in May",
        "Northern Hemisphere vegetation absorbs CO2 during its growing season",
        "Fossil fuel emissions are seasonal",
        "The volcano emits more CO2 in spring",
    ],
    1,
    "Most land vegetation is in the Northern Hemisphere. Photosynthesis draws CO2 down "
    "through the northern summer; decomposition releases it through the winter.",
    key="ch2_quiz",
)

st.divider()
takeaways([
    "The Keeling curve combines a strong, accelerating trend with a stable seasonal cycle.",
    "The seasonal amplitude (~6 ppm) is small next to the trend but must still be modelled.",
    "Year-over-year differences remove the seasonal cycle and expose the growth rate.",
    "Interior gaps are interpolated so the series sits on a regular monthly index.",
])

navigation("Temperature Anomalies", "Seasonal Decomposition",
           "01_Temperature_Anomalies.py", "03_Seasonal_Decomposition.py")
