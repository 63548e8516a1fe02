import streamlit as st
import plotly.express as px

from egg_quality import ui
from egg_quality.quality_engine import build_histogram, calculate_stats
from egg_quality.standards import METRIC_CONFIG, METRIC_FIELDS

state, records = ui.bootstrap("Histograms", "📶")
criteria, filtered = ui.filtered_records(records)

st.title("📶 Distribution Histograms")
st.markdown("Each metric's observed range is split into equal-width bins; the last bin includes the maximum.")

bins = st.sidebar.slider("Number of bins", min_value=4, max_value=30, value=12)

if filtered.empty:
    st.info("No records match the selected filters.")
    st.stop()

for key in METRIC_FIELDS:
    config = METRIC_CONFIG[key]
    hist = build_histogram(filtered, key, bins=bins)
    st.subheader(f"{config['name']} ({config['unit']})")
    if hist.empty:
        st.info(f"No valid {config['name'].lower()} values in the selection.")
        continue

    stats = calculate_stats(filtered, key)
    col1, col2 = st.columns([3, 1])
    with col1:
        fig = px.bar(
            hist, x="range_label", y="count",
            labels={"range_label": f"Range ({config['unit']})", "count": "Samples"},
        )
        fig.update_traces(marker_color=config["color"])
        fig.update_layout(bargap=0.05)
        st.plotly_chart(fig, use_container_width=True)
    with col2:
        st.metric("Mean", f"{stats['mean']:.2f}")
        st.metric("Std Dev", f"{stats['std']:.2f}")
        st.metric("Min / Max", f"{stats['min']:.2f} / {stats['max']:.2f}")
        st.metric("Valid values", int(hist["count"].sum()))
