import streamlit as st

from egg_quality import ui

ui.setup_page("Data Source", "🗄️")
state, store, settings_store = ui.get_state()
ui.require_login(state, store)
ui.show_sidebar_account(state, store)

st.title("🗄️ Data Source")
ui.load_dataset(state)

if state.dataset is not None:
    dataset = state.dataset
    col1, col2, col3 = st.columns(3)
    col1.metric("Records", f"{dataset.record_count:,}")
    col2.metric("Skipped (bad date)", dataset.invalid_dates)
    if dataset.record_count:
        col3.metric(
            "Period",
            f"{dataset.records['date'].min():%Y-%m-%d} → {dataset.records['date'].max():%Y-%m-%d}",
        )
    st.caption(f"Source: {dataset.source or 'upload'}")

if state.source_url and st.button("🔄 Refresh from web app"):
    ui.refresh_dataset(state)
    st.rerun()

st.divider()
ui.render_data_source_setup(state, settings_store)
