# ==============================================================================
# Tests for Record Stores
# ==============================================================================
"""
Tests for the session and counter store implementations.

Tests cover:
- JSON files: missing file, indented output, atomic replace, corrupt data
- Records that do not parse are carried over unchanged by update()
- Valkey: whole-collection keys, optimistic update retried on conflicts
- In-memory: isolation from caller-held models
- Store factory dispatch on the configured backend
"""

import json
from datetime import timedelta

import pytest
from redis.exceptions import WatchError

from sitepulse.base.stores import StoreError
from sitepulse.core.models import Counter
from sitepulse.infrastructure.stores import (
    InMemoryCounterStore,
    InMemorySessionStore,
    JsonFileCounterStore,
    JsonFileSessionStore,
    get_stores,
)
from sitepulse.infrastructure.stores.valkey import ValkeyCounterStore, ValkeySessionStore
from sitepulse.utils.config import Settings, StoreSettings


# Record written by older tracking scripts: numeric sessionId, click count
LEGACY_RECORD = {
    "sessionId": 12345,
    "pageType": "index",
    "eventType": "page_view",
    "ip": "9.9.9.9",
    "userAgent": {"source": "Mozilla/5.0"},
    "location": None,
    "startTime": "2024-01-01T10:00:00.000Z",
    "lastUpdate": "2024-01-01T10:05:00.000Z",
    "totalTimeOnPage": 300,
    "clicks": 4,
}


def _add_view(counter: Counter) -> Counter:
    counter.record_view("1.1.1.1")
    return counter


# ==============================================================================
# JSON Files
# ==============================================================================


class TestJsonFileSessionStore:
    """Tests for the analytics_data.json store."""

    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFileSessionStore(tmp_path / "analytics_data.json")
        assert store.read_all() == []

    def test_write_then_read(self, tmp_path, make_session):
        store = JsonFileSessionStore(tmp_path / "analytics_data.json")
        sessions = [make_session(ip="1.1.1.1"), make_session(ip="2.2.2.2")]
        store.write_all(sessions)
        assert [s.ip for s in store.read_all()] == ["1.1.1.1", "2.2.2.2"]

    def test_file_is_indented_camel_case_array(self, tmp_path, make_session):
        path = tmp_path / "analytics_data.json"
        JsonFileSessionStore(path).write_all([make_session()])
        text = path.read_text()
        assert text.startswith("[\n  {")
        assert "startTime" in json.loads(text)[0]

    def test_no_temp_files_left(self, tmp_path, make_session):
        store = JsonFileSessionStore(tmp_path / "analytics_data.json")
        store.write_all([make_session()])
        store.write_all([])
        assert [p.name for p in tmp_path.iterdir()] == ["analytics_data.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "analytics_data.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            JsonFileSessionStore(path).read_all()

    def test_non_array_raises(self, tmp_path):
        path = tmp_path / "analytics_data.json"
        path.write_text('{"a": 1}')
        with pytest.raises(StoreError):
            JsonFileSessionStore(path).read_all()

    def test_invalid_record_left_out_of_reads(self, tmp_path, make_session):
        path = tmp_path / "analytics_data.json"
        good = make_session().to_record()
        path.write_text(json.dumps([good, {"ip": "9.9.9.9"}]))
        sessions = JsonFileSessionStore(path).read_all()
        assert len(sessions) == 1

    def test_invalid_record_kept_verbatim_on_update(self, tmp_path, make_session):
        path = tmp_path / "analytics_data.json"
        path.write_text(json.dumps([{"ip": "9.9.9.9"}]))
        JsonFileSessionStore(path).update(lambda sessions: [*sessions, make_session()])
        records = json.loads(path.read_text())
        assert records[0] == {"ip": "9.9.9.9"}
        assert records[1]["ip"] == "1.1.1.1"

    def test_legacy_record_survives_update(self, tmp_path, make_session):
        path = tmp_path / "analytics_data.json"
        path.write_text(json.dumps([LEGACY_RECORD]))
        store = JsonFileSessionStore(path)
        store.update(lambda sessions: [*sessions, make_session()])
        sessions = store.read_all()
        assert [s.ip for s in sessions] == ["9.9.9.9", "1.1.1.1"]
        assert sessions[0].session_id == "12345"
        assert sessions[0].clicks is None

    def test_update(self, tmp_path, make_session):
        store = JsonFileSessionStore(tmp_path / "analytics_data.json")
        store.update(lambda sessions: [*sessions, make_session()])
        store.update(lambda sessions: [*sessions, make_session(ip="2.2.2.2")])
        assert len(store.read_all()) == 2

    def test_update_does_not_write_when_read_fails(self, tmp_path, make_session):
        path = tmp_path / "analytics_data.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            JsonFileSessionStore(path).update(lambda sessions: [make_session()])
        assert path.read_text() == "{not json"

    def test_unwritable_location_raises(self, tmp_path, make_session):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = JsonFileSessionStore(blocker / "analytics_data.json")
        with pytest.raises(StoreError):
            store.write_all([make_session()])

    def test_clear(self, tmp_path, make_session):
        store = JsonFileSessionStore(tmp_path / "analytics_data.json")
        store.write_all([make_session()])
        store.clear()
        assert store.read_all() == []


class TestJsonFileCounterStore:
    """Tests for the counters.json store."""

    def test_missing_file_reads_zero(self, tmp_path):
        counter = JsonFileCounterStore(tmp_path / "counters.json").read()
        assert counter.page_views == 0
        assert counter.unique_visitors == []

    def test_record_keys(self, tmp_path):
        path = tmp_path / "counters.json"
        JsonFileCounterStore(path).write(Counter(page_views=2, unique_visitors=["1.1.1.1"]))
        assert json.loads(path.read_text()) == {"pageViews": 2, "uniqueVisitors": ["1.1.1.1"]}

    def test_update(self, tmp_path):
        store = JsonFileCounterStore(tmp_path / "counters.json")
        store.update(_add_view)
        store.update(_add_view)
        counter = store.read()
        assert counter.page_views == 2
        assert counter.unique_visitors == ["1.1.1.1"]

    def test_duplicates_in_file_collapsed(self, tmp_path):
        path = tmp_path / "counters.json"
        path.write_text('{"pageViews": 3, "uniqueVisitors": ["a", "b", "a"]}')
        assert JsonFileCounterStore(path).read().unique_visitors == ["a", "b"]

    def test_invalid_counter_raises(self, tmp_path):
        path = tmp_path / "counters.json"
        path.write_text('{"pageViews": "many"}')
        with pytest.raises(StoreError):
            JsonFileCounterStore(path).read()


# ==============================================================================
# Valkey
# ==============================================================================


class TestValkeySessionStore:
    """Tests for the Valkey session store backed by fakeredis."""

    def test_missing_key_reads_empty(self, fake_redis):
        assert ValkeySessionStore(fake_redis, "test").read_all() == []

    def test_key_layout(self, fake_redis, make_session):
        store = ValkeySessionStore(fake_redis, "test")
        store.write_all([make_session()])
        assert store.key == "test:sessions"
        assert json.loads(fake_redis.get("test:sessions"))[0]["ip"] == "1.1.1.1"

    def test_update_appends(self, fake_redis, make_session):
        store = ValkeySessionStore(fake_redis, "test")
        store.update(lambda sessions: [*sessions, make_session()])
        result = store.update(lambda sessions: [*sessions, make_session(ip="2.2.2.2")])
        assert [s.ip for s in result] == ["1.1.1.1", "2.2.2.2"]
        assert len(store.read_all()) == 2

    def test_update_retries_after_concurrent_write(self, fake_redis, make_session):
        store = ValkeySessionStore(fake_redis, "test")
        other = ValkeySessionStore(fake_redis, "test")
        attempts = []

        def _append(sessions):
            attempts.append(len(sessions))
            if len(attempts) == 1:
                # Another writer commits between our read and our commit
                other.write_all([make_session(ip="9.9.9.9")])
            return [*sessions, make_session(ip="1.1.1.1")]

        store.update(_append)
        assert attempts == [0, 1]
        assert [s.ip for s in store.read_all()] == ["9.9.9.9", "1.1.1.1"]

    def test_legacy_record_survives_update(self, fake_redis, make_session):
        fake_redis.set("test:sessions", json.dumps([LEGACY_RECORD]))
        store = ValkeySessionStore(fake_redis, "test")
        store.update(lambda sessions: [*sessions, make_session()])
        sessions = store.read_all()
        assert [s.ip for s in sessions] == ["9.9.9.9", "1.1.1.1"]
        assert sessions[0].session_id == "12345"

    def test_invalid_record_kept_verbatim_on_update(self, fake_redis, make_session):
        fake_redis.set("test:sessions", json.dumps([{"ip": "9.9.9.9"}]))
        store = ValkeySessionStore(fake_redis, "test")
        result = store.update(lambda sessions: [*sessions, make_session()])
        assert [s.ip for s in result] == ["1.1.1.1"]
        records = json.loads(fake_redis.get("test:sessions"))
        assert records[0] == {"ip": "9.9.9.9"}
        assert len(records) == 2

    def test_corrupt_value_raises(self, fake_redis):
        fake_redis.set("test:sessions", "{oops")
        with pytest.raises(StoreError):
            ValkeySessionStore(fake_redis, "test").read_all()

    def test_clear_deletes_key(self, fake_redis, make_session):
        store = ValkeySessionStore(fake_redis, "test")
        store.write_all([make_session()])
        store.clear()
        assert fake_redis.exists("test:sessions") == 0


class TestValkeyCounterStore:
    """Tests for the Valkey counter store backed by fakeredis."""

    def test_missing_key_reads_zero(self, fake_redis):
        assert ValkeyCounterStore(fake_redis, "test").read().page_views == 0

    def test_update(self, fake_redis):
        store = ValkeyCounterStore(fake_redis, "test")
        store.update(_add_view)
        counter = store.update(_add_view)
        assert counter.page_views == 2
        assert json.loads(fake_redis.get("test:counters")) == {
            "pageViews": 2,
            "uniqueVisitors": ["1.1.1.1"],
        }

    def test_exhausted_conflicts_raise_store_error(self, fake_redis, monkeypatch):
        store = ValkeyCounterStore(fake_redis, "test")
        monkeypatch.setattr("sitepulse.utils.retry.CONFLICT_ATTEMPTS", 3)

        def _always_conflict(counter):
            fake_redis.set("test:counters", json.dumps({"pageViews": 0}))
            return counter

        with pytest.raises(StoreError) as excinfo:
            store.update(_always_conflict)
        assert isinstance(excinfo.value.__cause__, WatchError)


# ==============================================================================
# In-Memory
# ==============================================================================


class TestInMemoryStores:
    def test_sessions_isolated_from_caller(self, make_session):
        session = make_session()
        store = InMemorySessionStore([session])
        session.ip = "changed"
        assert store.read_all()[0].ip == "1.1.1.1"

    def test_counter_update(self):
        store = InMemoryCounterStore()
        store.update(_add_view)
        assert store.read().page_views == 1

    def test_clear(self, make_session):
        sessions = InMemorySessionStore([make_session()])
        counters = InMemoryCounterStore(Counter(page_views=5))
        sessions.clear()
        counters.clear()
        assert sessions.read_all() == []
        assert counters.read().page_views == 0


# ==============================================================================
# Factory
# ==============================================================================


class TestGetStores:
    """Tests for backend selection."""

    def test_json_backend(self, tmp_path):
        settings = Settings(
            store=StoreSettings(
                backend="json",
                data_file=tmp_path / "data.json",
                counters_file=tmp_path / "counters.json",
            )
        )
        sessions, counters = get_stores(settings)
        assert isinstance(sessions, JsonFileSessionStore)
        assert isinstance(counters, JsonFileCounterStore)
        assert sessions.path == tmp_path / "data.json"

    def test_memory_backend(self):
        sessions, counters = get_stores(Settings(store=StoreSettings(backend="memory")))
        assert isinstance(sessions, InMemorySessionStore)
        assert isinstance(counters, InMemoryCounterStore)

    def test_valkey_backend(self, monkeypatch, fake_redis):
        monkeypatch.setattr(
            "sitepulse.infrastructure.stores.valkey.get_valkey_client",
            lambda settings=None: fake_redis,
        )
        settings = Settings(store=StoreSettings(backend="valkey", key_prefix="site"))
        sessions, counters = get_stores(settings)
        assert isinstance(sessions, ValkeySessionStore)
        assert sessions.key == "site:sessions"
        assert counters.key == "site:counters"
