"""
Shared Streamlit building blocks: page setup, login gate, data loading and
the sidebar filters every page uses.
"""
import logging
from datetime import datetime

import streamlit as st

from egg_quality import config, session
from egg_quality.data_source import fetch_records_from_url, load_records_from_supabase, read_uploaded_file
from egg_quality.errors import DataSourceError
from egg_quality.quality_engine import (
    ALL,
    CATEGORY_COLUMNS,
    FilterCriteria,
    default_date_range,
    filter_options,
    filter_records,
)

logger = logging.getLogger(__name__)

FILTER_LABELS = {
    "farm": "Farm",
    "shed": "Shed",
    "age": "Age",
    "breed": "Breed",
    "client": "Client",
    "metaqualixId": "Metaqualix No.",
}


def configure_logging():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def setup_page(title, icon="🥚"):
    st.set_page_config(page_title=f"{title} - Egg Quality Monitor", page_icon=icon, layout="wide")
    configure_logging()


# --- State ---
@st.cache_resource
def get_settings_store():
    """Supabase-backed settings store, or None when Supabase is not configured."""
    client = config.get_supabase_client()
    if client is None:
        return None
    return session.SupabaseSettingsStore(client, config.get_setting("SETTINGS_TABLE"))


@st.cache_data(ttl=300)
def _stored_source_url():
    store = get_settings_store()
    if store is not None:
        try:
            url = store.get(session.SOURCE_URL_KEY)
            if url:
                return url
        except Exception as e:
            logger.warning("Could not read stored data source URL: %s", e)
    return config.get_setting("DATA_SOURCE_URL")


def get_state():
    """Return (AppState, session store, settings store) for this browser session."""
    store = session.SessionStateStore()
    state = session.get_app_state(store)
    if state.source_url is None and state.dataset is None:
        state.source_url = _stored_source_url()
    return state, store, get_settings_store() or store


# --- Login ---
def show_login_page(state, store):
    st.title("🔐 Egg Quality Monitor")
    st.write("Enter the access code to continue.")

    expected = config.get_setting("ACCESS_CODE")
    if not expected:
        st.error("ACCESS_CODE is not configured. Add it to secrets.toml or the environment.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        with st.form("login_form"):
            code = st.text_input("Access code", type="password")
            submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")
        if submitted:
            if session.login(state, store, code, expected):
                st.rerun()
            else:
                st.error("Incorrect access code.")


def require_login(state, store):
    if not state.authenticated:
        show_login_page(state, store)
        st.stop()


def show_sidebar_account(state, store):
    with st.sidebar:
        st.divider()
        if state.dataset is not None:
            st.caption(f"📊 {state.dataset.record_count} records loaded from {state.dataset.source or 'upload'}")
        if st.button("🚪 Logout", use_container_width=True):
            session.logout(state, store)
            st.rerun()


# --- Data loading ---
@st.cache_data(ttl=600, show_spinner=False)
def load_from_url(url):
    return fetch_records_from_url(url)


def load_dataset(state):
    """Fetch the configured URL once per session; errors are kept on the state."""
    if state.dataset is not None or not state.source_url or state.load_error:
        return
    with st.spinner("Loading data..."):
        try:
            session.replace_records(state, load_from_url(state.source_url))
        except DataSourceError as e:
            session.record_load_error(state, str(e))


def refresh_dataset(state):
    load_from_url.clear()
    state.dataset = None
    state.load_error = None
    load_dataset(state)


def show_ingest_warnings(result):
    if result.invalid_dates:
        st.warning(f"⚠️ {result.invalid_dates} row(s) were skipped because their date could not be read.")


def render_data_source_setup(state, settings_store):
    """URL form, file upload and Supabase import; replaces the dataset on success."""
    if state.load_error:
        st.error(f"❌ Error loading data: {state.load_error}")

    st.subheader("🔗 Connect to Google Sheets")
    st.caption("Paste the URL of your Google Apps Script web app (it must be deployed with access for 'Anyone').")
    with st.form("source_url_form"):
        url = st.text_input(
            "Web app URL",
            value=state.source_url or "",
            placeholder="https://script.google.com/macros/s/.../exec",
        )
        if st.form_submit_button("Save and load data", type="primary"):
            try:
                session.set_data_source_url(state, settings_store, url)
            except Exception as e:
                st.warning(f"⚠️ The URL could not be saved permanently: {e}")
                state.source_url = url.strip() or None
            _stored_source_url.clear()
            load_dataset(state)
            st.rerun()

    st.subheader("📁 Upload a file")
    uploaded = st.file_uploader("Excel or CSV file", type=["xlsx", "xls", "csv", "txt", "tsv"])
    if uploaded is not None and st.button("Load file"):
        try:
            result = read_uploaded_file(uploaded.name, uploaded.getvalue())
        except DataSourceError as e:
            st.error(f"❌ {e}")
        else:
            session.replace_records(state, result)
            st.rerun()

    client = config.get_supabase_client()
    if client is not None:
        st.subheader("🗄️ Load from Supabase")
        table = st.text_input("Table", value=config.get_setting("SUPABASE_TABLE"))
        if st.button("Load table"):
            with st.spinner(f"Loading {table}..."):
                try:
                    result = load_records_from_supabase(client, table)
                except DataSourceError as e:
                    st.error(f"❌ {e}")
                else:
                    session.replace_records(state, result)
                    st.rerun()


def require_data(state, settings_store):
    """Stop the page with the data source setup screen when nothing is loaded."""
    load_dataset(state)
    if state.dataset is None:
        render_data_source_setup(state, settings_store)
        st.stop()
    return state.dataset.records


def bootstrap(title, icon="🥚"):
    """Standard page preamble: config, login gate, data. Returns (state, records)."""
    setup_page(title, icon)
    state, store, settings_store = get_state()
    require_login(state, store)
    show_sidebar_account(state, store)
    records = require_data(state, settings_store)
    return state, records


# --- Filters ---
def _remembered(key, default, valid=None):
    """Seed a widget key from the copy kept across page switches."""
    keep = f"keep_{key}"
    if key not in st.session_state:
        value = st.session_state.get(keep, default)
        if valid is not None and value not in valid:
            value = default
        st.session_state[key] = value
    elif valid is not None and st.session_state[key] not in valid:
        st.session_state[key] = default


def _keep(key):
    st.session_state[f"keep_{key}"] = st.session_state[key]


def sidebar_filters(records):
    """Render the date range and categorical selectors; return the FilterCriteria."""
    st.sidebar.header("📅 Filter Options")

    _remembered("filter_dates", default_date_range(datetime.now().date()))
    dates = st.sidebar.date_input("Date range", key="filter_dates")
    _keep("filter_dates")
    if isinstance(dates, (list, tuple)):
        start_date = dates[0] if dates else default_date_range()[0]
        end_date = dates[1] if len(dates) > 1 else start_date
    else:
        start_date = end_date = dates

    categories = {}
    for column in CATEGORY_COLUMNS:
        options = filter_options(records, column)
        key = f"filter_{column}"
        _remembered(key, ALL, valid=options)
        categories[column] = st.sidebar.selectbox(FILTER_LABELS[column], options, key=key)
        _keep(key)

    return FilterCriteria(start_date=start_date, end_date=end_date, categories=categories)


def filtered_records(records):
    criteria = sidebar_filters(records)
    filtered = filter_records(records, criteria)
    st.sidebar.caption(f"{len(filtered)} of {len(records)} records match")
    if criteria.start_date > criteria.end_date:
        st.sidebar.warning("Start date is after end date.")
    return criteria, filtered
