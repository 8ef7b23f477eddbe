# ==============================================================================
# JSON File Store Implementation
# ==============================================================================
"""
Flat-file implementation of the SessionStore and CounterStore interfaces.

Each store owns one indented JSON file that is read and rewritten in full:
- analytics_data.json: array of session records
- counters.json: the counter object

Writes go to a temporary file in the same directory which then replaces the
target, so a crash mid-write never leaves a truncated file behind. Writers in
one process are serialized by a lock; writers in separate processes are not
coordinated and can lose updates.

Records in analytics_data.json that do not parse as sessions are left out of
reads but written back unchanged by update().
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sitepulse.base.stores import CounterStore, SessionStore, StoreError, decode_sessions
from sitepulse.core.models import Counter, Session
from sitepulse.utils.config import get_settings

logger = logging.getLogger(__name__)


def _read_json(path: Path, default: Any) -> Any:
    """Read a JSON document, returning ``default`` when the file does not exist."""
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (OSError, json.JSONDecodeError) as e:
        raise StoreError(f"Failed to read {path}: {e}") from e


def _write_json(path: Path, data: Any) -> None:
    """Atomically replace ``path`` with the JSON encoding of ``data``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise StoreError(f"Failed to write {path}: {e}") from e


class JsonFileSessionStore(SessionStore):
    """Session collection stored as a JSON array in a single file."""

    def __init__(self, path: Path | None = None):
        """
        Initialize the store.

        Args:
            path: JSON file path. If None, uses settings.
        """
        self._path = path or get_settings().store.data_file_path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> list[Session]:
        sessions, _ = decode_sessions(_read_json(self._path, []), self._path)
        return sessions

    def write_all(self, sessions: list[Session]) -> None:
        _write_json(self._path, [s.to_record() for s in sessions])

    def update(self, fn: Callable[[list[Session]], list[Session]]) -> list[Session]:
        with self._lock:
            sessions, unparsed = decode_sessions(_read_json(self._path, []), self._path)
            result = fn(sessions)
            _write_json(self._path, unparsed + [s.to_record() for s in result])
            return result


class JsonFileCounterStore(CounterStore):
    """Counter singleton stored as a JSON object in a single file."""

    def __init__(self, path: Path | None = None):
        """
        Initialize the store.

        Args:
            path: JSON file path. If None, uses settings.
        """
        self._path = path or get_settings().store.counters_file_path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Counter:
        raw = _read_json(self._path, {})
        try:
            return Counter.model_validate(raw)
        except ValidationError as e:
            raise StoreError(f"Invalid counters in {self._path}: {e}") from e

    def write(self, counter: Counter) -> None:
        _write_json(self._path, counter.to_record())

    def update(self, fn: Callable[[Counter], Counter]) -> Counter:
        with self._lock:
            return super().update(fn)
