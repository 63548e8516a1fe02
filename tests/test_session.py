"""Tests for egg_quality.session."""

import pandas as pd

from egg_quality import session
from egg_quality.records import IngestResult

from .fakes import FakeSupabase


def _dataset():
    return IngestResult(records=pd.DataFrame({"weight": [60.0]}), source="test")


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


def test_memory_store_round_trip():
    store = session.MemoryStore({"a": "1"})
    assert store.get("a") == "1"
    store.set("b", "2")
    store.delete("a")
    store.delete("missing")
    assert store.data == {"b": "2"}
    assert store.get("a", "default") == "default"


def test_session_state_store_wraps_given_mapping():
    state = {}
    store = session.SessionStateStore(state)
    store.set(session.AUTH_KEY, "true")
    assert state == {session.AUTH_KEY: "true"}


def test_supabase_settings_store():
    client = FakeSupabase()
    store = session.SupabaseSettingsStore(client, "settings")

    assert store.get(session.SOURCE_URL_KEY) is None
    store.set(session.SOURCE_URL_KEY, "https://a/exec")
    store.set(session.SOURCE_URL_KEY, "https://b/exec")
    assert store.get(session.SOURCE_URL_KEY) == "https://b/exec"
    assert client.tables["settings"] == [{"key": session.SOURCE_URL_KEY, "value": "https://b/exec"}]
    assert client.upsert_conflicts == ["key", "key"]

    store.delete(session.SOURCE_URL_KEY)
    assert store.get(session.SOURCE_URL_KEY, "gone") == "gone"


# ---------------------------------------------------------------------------
# AppState
# ---------------------------------------------------------------------------


def test_app_state_load_from_store():
    store = session.MemoryStore({session.AUTH_KEY: "true", session.SOURCE_URL_KEY: "https://x/exec"})
    state = session.AppState.load(store)
    assert state.authenticated
    assert state.source_url == "https://x/exec"
    assert state.dataset is None
    assert not state.has_data


def test_app_state_load_defaults():
    state = session.AppState.load(session.MemoryStore())
    assert not state.authenticated
    assert state.source_url is None
    assert state.chat_history == []


def test_get_app_state_is_created_once_per_session():
    session_state = {}
    store = session.MemoryStore({session.AUTH_KEY: "true"})
    first = session.get_app_state(store, session_state)
    store.delete(session.AUTH_KEY)
    second = session.get_app_state(store, session_state)
    assert first is second
    assert second.authenticated


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------


def test_check_access_code():
    assert session.check_access_code("s3cret", "s3cret")
    assert not session.check_access_code("wrong", "s3cret")
    assert not session.check_access_code("", "")
    assert not session.check_access_code(None, "s3cret")
    assert not session.check_access_code("anything", None)


def test_login_success_persists_flag():
    store = session.MemoryStore()
    state = session.AppState()
    assert session.login(state, store, "s3cret", "s3cret")
    assert state.authenticated
    assert store.get(session.AUTH_KEY) == "true"


def test_login_failure(caplog):
    store = session.MemoryStore()
    state = session.AppState()
    with caplog.at_level("WARNING"):
        assert not session.login(state, store, "nope", "s3cret")
    assert not state.authenticated
    assert session.AUTH_KEY not in store.data
    assert "Rejected login" in caplog.text


def test_logout_clears_session_data():
    store = session.MemoryStore({session.AUTH_KEY: "true", session.SOURCE_URL_KEY: "https://x/exec"})
    state = session.AppState.load(store)
    state.dataset = _dataset()
    state.chat_history.append(session.ChatMessage("user", "hi"))

    session.logout(state, store)

    assert not state.authenticated
    assert state.dataset is None
    assert state.chat_history == []
    assert session.AUTH_KEY not in store.data
    assert store.get(session.SOURCE_URL_KEY) == "https://x/exec"


# ---------------------------------------------------------------------------
# Data source
# ---------------------------------------------------------------------------


def test_set_data_source_url_discards_dataset():
    store = session.MemoryStore()
    state = session.AppState(dataset=_dataset(), load_error="old")
    session.set_data_source_url(state, store, "  https://x/exec ")
    assert state.source_url == "https://x/exec"
    assert state.dataset is None
    assert state.load_error is None
    assert store.get(session.SOURCE_URL_KEY) == "https://x/exec"


def test_set_empty_data_source_url_forgets_it():
    store = session.MemoryStore({session.SOURCE_URL_KEY: "https://x/exec"})
    state = session.AppState.load(store)
    session.set_data_source_url(state, store, "   ")
    assert state.source_url is None
    assert session.SOURCE_URL_KEY not in store.data


def test_replace_records_and_load_error():
    state = session.AppState()
    session.record_load_error(state, "HTTP error 404")
    assert state.load_error == "HTTP error 404"
    assert not state.has_data

    dataset = _dataset()
    session.replace_records(state, dataset)
    assert state.dataset is dataset
    assert state.load_error is None
    assert state.has_data
