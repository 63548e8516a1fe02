import streamlit as st
import plotly.express as px

from egg_quality import ui
from egg_quality.quality_engine import calculate_monthly_averages
from egg_quality.standards import METRIC_CONFIG, METRIC_FIELDS

state, records = ui.bootstrap("Monthly Averages", "📆")
criteria, filtered = ui.filtered_records(records)

st.title("📆 Monthly Averages")

shared_count = st.sidebar.checkbox(
    "Divide by all samples in the month",
    value=False,
    help="Off: each metric is averaged over its own valid values. "
         "On: sums are divided by the month's total sample count (legacy report behaviour).",
)

monthly = calculate_monthly_averages(filtered, METRIC_FIELDS, shared_count=shared_count)
if monthly.empty:
    st.info("No records match the selected filters.")
    st.stop()

# --- Table Output ---
st.subheader("📋 Monthly Summary")
display = monthly.drop(columns=["month"]).rename(
    columns={"label": "Month", **{k: METRIC_CONFIG[k]["name"] for k in METRIC_FIELDS}}
)
st.dataframe(display, use_container_width=True, hide_index=True)

# --- Graphs ---
for key in METRIC_FIELDS:
    config = METRIC_CONFIG[key]
    fig = px.line(
        monthly, x="label", y=key,
        labels={"label": "Month", key: f"{config['name']} ({config['unit']})"},
        title=f"{config['name']} - monthly average",
        markers=True,
    )
    fig.update_traces(line_color=config["color"], connectgaps=False)
    st.plotly_chart(fig, use_container_width=True)
