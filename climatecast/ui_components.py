"""Shared UI components: concept boxes, quizzes, navigation, chapter controls."""
import streamlit as st

from climatecast.constants import DATASETS, PART_TITLES
from climatecast.logging_config import configure_logging


def chapter_header(number, title, part=None):
    """Render a chapter header with its part label."""
    configure_logging()
    if part:
        st.caption(f"Part {part}: {PART_TITLES.get(part, '')}")
    st.title(f"Chapter {number}: {title}")
    st.divider()


def dataset_caption(key):
    """Cite the data source under a chart."""
    meta = DATASETS[key]
    st.caption(f"Source: {meta['source']} ({meta['url']})")


def concept_box(title, content):
    """Shaded box for the idea a section is built around."""
    st.markdown(
        '<div style="background:#EAF4F4;padding:18px 20px;border-radius:8px;'
        'border-left:5px solid #2A9D8F;margin:10px 0;">'
        f'<h4 style="color:#264653;margin-top:0;">{title}</h4>'
        f'<p style="color:#264653;">{content}</p></div>',
        unsafe_allow_html=True,
    )


def formula_box(title, formula, explanation=""):
    st.markdown(f"**{title}**")
    st.latex(formula)
    if explanation:
        st.caption(explanation)


def insight_box(text):
    st.info(f"**What the data says:** {text}", icon="🌍")


def warning_box(text):
    st.warning(f"**Forecasting pitfall:** {text}", icon="⚠️")


def code_example(code, language="python"):
    with st.expander("Show the library calls"):
        st.code(code, language=language)


def quiz(question, options, correct_idx, explanation="", key="quiz"):
    """Multiple-choice question. Returns True/False once answered, else None."""
    st.subheader("Check Your Understanding")
    answer = st.radio(question, options, key=key, index=None)
    if answer is None:
        return None
    correct = options.index(answer) == correct_idx
    if correct:
        st.success("Correct!")
    else:
        st.error(f"Not quite. The correct answer is: **{options[correct_idx]}**")
    if explanation:
        st.caption(explanation)
    return correct


def takeaways(points):
    st.subheader("Takeaways")
    st.markdown("\n".join(f"- {p}" for p in points))


def navigation(prev_label=None, next_label=None, prev_page=None, next_page=None):
    """Render prev/next page links."""
    col1, _, col3 = st.columns([1, 2, 1])
    with col1:
        if prev_label:
            st.page_link(f"pages/{prev_page}", label=f"← {prev_label}")
    with col3:
        if next_label:
            st.page_link(f"pages/{next_page}", label=f"{next_label} →")


def horizon_control(key, default=24, max_value=60):
    """Sidebar slider for the forecast horizon in months."""
    return st.sidebar.slider("Forecast horizon (months)", 6, max_value, default, 6, key=key)


def metric_row(metrics, units="", keys=("RMSE", "MAE", "MASE")):
    """One metric card per accuracy measure."""
    cols = st.columns(len(keys))
    for col, name in zip(cols, keys):
        if name not in metrics:
            continue
        suffix = "" if name == "MASE" else f" {units}".rstrip()
        col.metric(name, f"{metrics[name]:.3f}{suffix}")
