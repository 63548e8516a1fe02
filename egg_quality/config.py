# egg_quality/config.py
import logging
import os

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULTS = {
    "OPENAI_MODEL": "gpt-4o",
    "SUPABASE_TABLE": "egg_quality_records",
    "SETTINGS_TABLE": "app_settings",
}


def get_setting(name, default=None):
    """Read a setting from Streamlit secrets, then the environment (.env included)."""
    try:
        if name in st.secrets:
            return st.secrets[name]
    except Exception:
        # No secrets.toml: scripts and tests run outside `streamlit run`
        pass
    value = os.getenv(name)
    if value:
        return value
    return DEFAULTS.get(name, default) if default is None else default


def get_supabase_client():
    """Initialize and return a Supabase client, or None when it is not configured."""
    url = get_setting("SUPABASE_URL")
    key = get_setting("SUPABASE_KEY") or get_setting("SUPABASE_ANON_KEY")
    if not url or not key:
        return None
    return create_client(url, key)
