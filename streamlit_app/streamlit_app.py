import streamlit as st
import plotly.express as px

from egg_quality import ui
from egg_quality.quality_engine import calculate_stats
from egg_quality.standards import METRIC_CONFIG, METRIC_FIELDS

state, records = ui.bootstrap("Dashboard", "📊")
criteria, filtered = ui.filtered_records(records)

st.title("🥚 Egg Quality Dashboard")
st.markdown(f"""
Quality overview for **{criteria.start_date:%Y-%m-%d}** to **{criteria.end_date:%Y-%m-%d}**.
Use the pages on the left for histograms, monthly averages, the quality report and the AI assistant.
""")

ui.show_ingest_warnings(state.dataset)

# --- Key Metrics ---
st.subheader("📊 Key Performance Indicators")
cols = st.columns(len(METRIC_FIELDS) + 1)
cols[0].metric("Samples", f"{len(filtered):,}")
for col, key in zip(cols[1:], METRIC_FIELDS):
    config = METRIC_CONFIG[key]
    stats = calculate_stats(filtered, key)
    col.metric(config["name"], f"{stats['mean']:.2f} {config['unit']}", f"σ {stats['std']:.2f}", delta_color="off")

if filtered.empty:
    st.info("No records match the selected filters.")
    st.stop()

# --- Trend Charts ---
st.subheader("📈 Trends")
for left, right in zip(METRIC_FIELDS[0::2], METRIC_FIELDS[1::2] + [None]):
    chart_cols = st.columns(2)
    for col, key in zip(chart_cols, [left, right]):
        if key is None:
            continue
        config = METRIC_CONFIG[key]
        data = filtered[["date", key]].dropna()
        fig = px.line(
            data, x="date", y=key,
            labels={key: f"{config['name']} ({config['unit']})", "date": "Date"},
            title=config["name"],
            markers=True,
        )
        fig.update_traces(line_color=config["color"], hovertemplate="%{x|%Y-%m-%d}: %{y:.2f}")
        with col:
            st.plotly_chart(fig, use_container_width=True)
            st.download_button(
                "⬇️ Download chart",
                data=fig.to_html(include_plotlyjs="cdn"),
                file_name=f"{config['name'].replace(' ', '-')}.html",
                mime="text/html",
                key=f"download_{key}",
            )
