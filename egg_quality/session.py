"""
Application state for one dashboard session.

The state is an explicit AppState object owned by the Streamlit entry point;
the few values that must outlive a browser session (auth flag, data source
URL) go through an injected key-value store.
"""
import logging
import secrets
from dataclasses import dataclass, field
from typing import List, Optional

import streamlit as st

from egg_quality.records import IngestResult

logger = logging.getLogger(__name__)

AUTH_KEY = "egg_monitor_auth"
SOURCE_URL_KEY = "egg_monitor_source_url"
STATE_KEY = "egg_monitor_state"


# --- Key-value stores ---
class KeyValueStore:
    """Minimal get/set/delete storage interface."""

    def get(self, key, default=None):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class SessionStateStore(MemoryStore):
    """Store backed by st.session_state; lives as long as the browser session."""

    def __init__(self, session_state=None):
        self.data = st.session_state if session_state is None else session_state


class SupabaseSettingsStore(KeyValueStore):
    """Store backed by a Supabase table with `key` and `value` text columns."""

    def __init__(self, client, table="app_settings"):
        self.client = client
        self.table = table

    def get(self, key, default=None):
        response = self.client.table(self.table).select("value").eq("key", key).limit(1).execute()
        if response.data:
            return response.data[0]["value"]
        return default

    def set(self, key, value):
        self.client.table(self.table).upsert({"key": key, "value": value}, on_conflict="key").execute()

    def delete(self, key):
        self.client.table(self.table).delete().eq("key", key).execute()


# --- Application state ---
@dataclass
class ChatMessage:
    role: str  # "user" or "model"
    text: str


@dataclass
class AppState:
    """Everything the dashboard needs between reruns."""

    authenticated: bool = False
    source_url: Optional[str] = None
    dataset: Optional[IngestResult] = None
    load_error: Optional[str] = None
    chat_history: List[ChatMessage] = field(default_factory=list)

    @classmethod
    def load(cls, store):
        """Restore the persisted fields from a store."""
        return cls(
            authenticated=store.get(AUTH_KEY) == "true",
            source_url=store.get(SOURCE_URL_KEY) or None,
        )

    @property
    def has_data(self):
        return self.dataset is not None


def get_app_state(store, session_state=None):
    """Return this session's AppState, creating it from the store on first use."""
    session_state = st.session_state if session_state is None else session_state
    if STATE_KEY not in session_state:
        session_state[STATE_KEY] = AppState.load(store)
    return session_state[STATE_KEY]


# --- Access control ---
def check_access_code(code, expected):
    """Compare an access code in constant time; an unset expected code never matches."""
    if not expected or code is None:
        return False
    return secrets.compare_digest(str(code).encode("utf-8"), str(expected).encode("utf-8"))


def login(state, store, code, expected):
    if not check_access_code(code, expected):
        logger.warning("Rejected login attempt")
        return False
    state.authenticated = True
    store.set(AUTH_KEY, "true")
    return True


def logout(state, store):
    """Clear the auth flag and drop the in-memory dataset and chat history."""
    state.authenticated = False
    state.dataset = None
    state.load_error = None
    state.chat_history = []
    store.delete(AUTH_KEY)


# --- Data source ---
def set_data_source_url(state, store, url):
    """Remember a new data source URL; the previous dataset is discarded."""
    url = (url or "").strip()
    state.source_url = url or None
    state.dataset = None
    state.load_error = None
    if url:
        store.set(SOURCE_URL_KEY, url)
    else:
        store.delete(SOURCE_URL_KEY)


def replace_records(state, result):
    """Swap in a freshly ingested dataset; nothing from the previous one is kept."""
    state.dataset = result
    state.load_error = None


def record_load_error(state, message):
    state.dataset = None
    state.load_error = message
