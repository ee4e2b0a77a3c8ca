"""Shared Plotly plotting helpers."""
import numpy as np
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from climatecast.constants import ACTUAL_COLOR, FALLBACK_COLOR, MODEL_COLORS, TRAIN_COLOR


def apply_common_layout(fig, title=None, height=500):
    """Apply common layout settings to a Plotly figure."""
    fig.update_layout(
        template="plotly_white",
        height=height,
        title=title,
        title_x=0.5,
        margin=dict(t=60, b=40, l=60, r=40),
    )
    return fig


def model_color(name):
    return MODEL_COLORS.get(name, FALLBACK_COLOR)


def _rgba(hex_color, alpha):
    h = hex_color.lstrip("#")
    r, g, b = (int(h[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r},{g},{b},{alpha})"


def series_chart(series, title=None, y_label=None, smooth=None, color=FALLBACK_COLOR, height=450):
    """Line chart of a series, optionally overlaid with centred rolling means."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=series.index, y=series.values, mode="lines", name="Monthly",
        line=dict(color=color, width=1),
    ))
    for window, line_color in (smooth or {}).items():
        rolled = series.rolling(window, center=True, min_periods=1).mean()
        fig.add_trace(go.Scatter(
            x=rolled.index, y=rolled.values, mode="lines",
            name=f"{window}-month mean", line=dict(color=line_color, width=2.5),
        ))
    fig.update_layout(yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def warming_stripes(annual, title="Warming Stripes", height=220):
    """Ed Hawkins style stripes: one colored bar per year, no axes."""
    limit = float(np.nanmax(np.abs(annual.values)))
    fig = go.Figure(go.Heatmap(
        z=[annual.values], x=annual.index, y=[""],
        colorscale="RdBu_r", zmin=-limit, zmax=limit, showscale=True,
        hovertemplate="%{x}: %{z:.2f}<extra></extra>",
    ))
    fig.update_yaxes(visible=False)
    return apply_common_layout(fig, title, height)


def heatmap_chart(data, x_label="", y_label="", title=None, height=500, color_scale="RdBu_r",
                  zmid=None):
    """Heatmap from a DataFrame (e.g. the year x month climatology)."""
    fig = go.Figure(data=go.Heatmap(
        z=data.values, x=data.columns.tolist(), y=data.index.tolist(),
        colorscale=color_scale, zmid=zmid,
    ))
    fig.update_layout(xaxis_title=x_label, yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def _add_interval(fig, result, color, name):
    fig.add_trace(go.Scatter(
        x=list(result.upper.index) + list(result.lower.index[::-1]),
        y=list(result.upper.values) + list(result.lower.values[::-1]),
        fill="toself", fillcolor=_rgba(color, 0.15),
        line=dict(width=0), name=name, showlegend=True, hoverinfo="skip",
    ))


def forecast_chart(train, results, test=None, title=None, history=120, y_label=None,
                   intervals=True, height=500):
    """Training tail, held-out actuals and one dashed line per forecast."""
    fig = go.Figure()
    start = max(0, len(train) - history) if history else 0
    fig.add_trace(go.Scatter(
        x=train.index[start:], y=train.values[start:],
        mode="lines", name="Training Data", line=dict(color=TRAIN_COLOR),
    ))
    if test is not None:
        fig.add_trace(go.Scatter(
            x=test.index, y=test.values, mode="lines", name="Actual",
            line=dict(color=ACTUAL_COLOR, width=2),
        ))
    for result in results:
        color = model_color(result.model)
        label = result.info.get("label", result.model)
        if intervals and result.has_interval:
            _add_interval(fig, result, color, f"{label} interval")
        fig.add_trace(go.Scatter(
            x=result.mean.index, y=result.mean.values, mode="lines", name=label,
            line=dict(color=color, width=2, dash="dash"),
        ))
    fig.update_layout(yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def decomposition_chart(components, title=None, height=750):
    """Four stacked panels: observed, trend, seasonal, remainder."""
    panels = [
        ("observed", "Observed", "#264653"),
        ("trend", "Trend", "#E63946"),
        ("seasonal", "Seasonal", "#2A9D8F"),
        ("resid", "Remainder", "#F4A261"),
    ]
    fig = make_subplots(rows=4, cols=1, shared_xaxes=True, vertical_spacing=0.05,
                        subplot_titles=[label for _, label, _ in panels])
    for i, (col, label, color) in enumerate(panels, 1):
        fig.add_trace(go.Scatter(
            x=components.index, y=components[col], mode="lines", name=label,
            line=dict(color=color, width=1.2), showlegend=False,
        ), row=i, col=1)
    return apply_common_layout(fig, title, height)


def cv_splits_chart(splits, title="Rolling-Origin Splits", height=350):
    """One row per fold: training span in green, test span in red."""
    fig = go.Figure()
    for i, (train, test) in enumerate(splits, 1):
        for span, color, label in ((train, "#2A9D8F", "Train"), (test, "#E63946", "Test")):
            fig.add_trace(go.Scatter(
                x=[span.index[0], span.index[-1]], y=[i, i], mode="lines",
                line=dict(color=color, width=12), name=label,
                legendgroup=label, showlegend=(i == 1),
            ))
    fig.update_layout(yaxis_title="Fold", yaxis=dict(dtick=1))
    return apply_common_layout(fig, title, height)


def metrics_bar_chart(table, metric="RMSE", title=None, height=400):
    """Bar chart comparing one accuracy metric across models."""
    fig = px.bar(table, x="Model", y=metric, color="Model",
                 color_discrete_sequence=px.colors.qualitative.Safe)
    fig.update_layout(showlegend=False, xaxis_tickangle=-20)
    return apply_common_layout(fig, title or f"{metric} by Model", height)


def residual_chart(resid, title="Residual Diagnostics", height=550):
    """Residuals over time above their histogram."""
    resid = resid.dropna()
    fig = make_subplots(rows=2, cols=1, vertical_spacing=0.15,
                        subplot_titles=["Residuals Over Time", "Residual Distribution"])
    fig.add_trace(go.Scatter(
        x=resid.index, y=resid.values, mode="lines",
        line=dict(color=TRAIN_COLOR, width=0.8), showlegend=False,
    ), row=1, col=1)
    fig.add_hline(y=0, line_dash="dash", line_color="red", row=1, col=1)
    fig.add_trace(go.Histogram(
        x=resid.values, nbinsx=50, marker_color=FALLBACK_COLOR, showlegend=False,
    ), row=2, col=1)
    return apply_common_layout(fig, title, height)
