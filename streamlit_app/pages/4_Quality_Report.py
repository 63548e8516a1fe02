import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from egg_quality import ui
from egg_quality.errors import ReportExportError
from egg_quality.quality_engine import calculate_stats, count_values, summarize_by
from egg_quality.report_pdf import build_quality_report, report_filename
from egg_quality.standards import (
    METRIC_CONFIG,
    METRIC_FIELDS,
    QUALITY_STANDARDS,
    STATUS_COLORS,
    classify_value,
)

state, records = ui.bootstrap("Quality Report", "🧪")
criteria, filtered = ui.filtered_records(records)

st.title("🧪 Quality Report")
st.caption(
    f"{criteria.start_date:%Y-%m-%d} to {criteria.end_date:%Y-%m-%d} • {len(filtered)} verified samples"
)


def gauge(key, value):
    config = METRIC_CONFIG[key]
    standard = QUALITY_STANDARDS[key]
    ranges = standard["ranges"]
    status = classify_value(key, value)
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=value,
        number={"suffix": f" {config['unit']}", "valueformat": ".2f"},
        title={"text": f"{config['name']}<br><span style='font-size:0.8em;color:{STATUS_COLORS[status]}'>{status}</span>"},
        gauge={
            "axis": {"range": [standard["min"], standard["max"]]},
            "bar": {"color": "#1e293b", "thickness": 0.2},
            "steps": [
                {"range": list(ranges["poor"]), "color": STATUS_COLORS["Poor"]},
                {"range": list(ranges["acceptable"]), "color": STATUS_COLORS["Acceptable"]},
                {"range": list(ranges["optimal"]), "color": STATUS_COLORS["Optimal"]},
            ],
        },
    ))
    fig.update_layout(height=250, margin=dict(l=20, r=20, t=60, b=10))
    return fig


# --- PDF Export ---
if st.button("📄 Generate PDF report", type="primary", disabled=filtered.empty):
    with st.spinner("Generating file..."):
        try:
            st.session_state["report_pdf"] = (repr(criteria), build_quality_report(filtered, criteria, METRIC_FIELDS))
        except ReportExportError as e:
            st.error(f"❌ {e}")
report = st.session_state.get("report_pdf")
if report and report[0] == repr(criteria):
    st.download_button(
        "⬇️ Download PDF",
        data=report[1],
        file_name=report_filename(),
        mime="application/pdf",
    )

if filtered.empty:
    st.info("No records match the selected filters.")
    st.stop()

# --- Gauges ---
st.subheader("🎯 Averages vs Quality Standards")
gauge_cols = st.columns(len(METRIC_FIELDS))
for col, key in zip(gauge_cols, METRIC_FIELDS):
    with col:
        if count_values(filtered, key):
            st.plotly_chart(gauge(key, calculate_stats(filtered, key)["mean"]), use_container_width=True)
        else:
            st.metric(METRIC_CONFIG[key]["name"], "No data")

# --- Per-Shed Comparison ---
st.subheader("🏠 Comparison by Shed")
by_shed = summarize_by(filtered, "shed", METRIC_FIELDS)
chart_cols = st.columns(2)
for i, key in enumerate(METRIC_FIELDS):
    config = METRIC_CONFIG[key]
    data = by_shed[by_shed["metric"] == key]
    fig = px.bar(
        data, x="shed", y="mean",
        labels={"shed": "Shed", "mean": f"Mean ({config['unit']})"},
        title=config["name"],
    )
    fig.update_traces(marker_color=config["color"])
    with chart_cols[i % 2]:
        st.plotly_chart(fig, use_container_width=True)

# --- Per-Shed Detail Tables ---
st.subheader("📋 Detail by Shed")
for shed, group in by_shed.groupby("shed", sort=False):
    with st.expander(f"Shed {shed}"):
        detail = pd.DataFrame({
            "Metric": [METRIC_CONFIG[k]["name"] for k in group["metric"]],
            "Mean": group["mean"].round(2).values,
            "Std Dev": group["std"].round(2).values,
            "Min": group["min"].round(2).values,
            "Max": group["max"].round(2).values,
        })
        st.dataframe(detail, use_container_width=True, hide_index=True)
