import streamlit as st

from egg_quality import ui
from egg_quality.quality_engine import summarize_by
from egg_quality.standards import METRIC_CONFIG, METRIC_FIELDS

state, records = ui.bootstrap("Data Summary", "📋")
criteria, filtered = ui.filtered_records(records)

st.title("📋 Data Summary")

COLUMN_NAMES = {
    "date": "Date",
    **ui.FILTER_LABELS,
    **{k: f"{v['name']} ({v['unit']})" for k, v in METRIC_CONFIG.items()},
}

if filtered.empty:
    st.info("No records match the selected filters.")
    st.stop()

# --- Per-Shed Statistics ---
st.subheader("🏠 Statistics by Shed")
metric = st.selectbox("Metric", METRIC_FIELDS, format_func=lambda k: METRIC_CONFIG[k]["name"])
by_shed = summarize_by(filtered, "shed", [metric]).drop(columns=["metric"])
st.dataframe(
    by_shed.rename(columns={"shed": "Shed", "mean": "Mean", "std": "Std Dev", "min": "Min", "max": "Max"}),
    use_container_width=True,
    hide_index=True,
)

# --- Records Table ---
st.subheader(f"🧾 Records ({len(filtered)})")
table = filtered.copy()
table["date"] = table["date"].dt.strftime("%Y-%m-%d")
table = table.rename(columns=COLUMN_NAMES)
st.dataframe(table, use_container_width=True, hide_index=True)

st.download_button(
    "⬇️ Download CSV",
    data=table.to_csv(index=False).encode("utf-8"),
    file_name=f"egg_quality_{criteria.start_date:%Y%m%d}_{criteria.end_date:%Y%m%d}.csv",
    mime="text/csv",
)
