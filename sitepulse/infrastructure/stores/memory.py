# ==============================================================================
# In-Memory Store Implementation
# ==============================================================================
"""
In-process implementation of the SessionStore and CounterStore interfaces.

Records are kept in their serialized form, so callers never share model
instances with the store. Nothing survives a restart.
"""

import threading
from collections.abc import Callable

from sitepulse.base.stores import CounterStore, SessionStore
from sitepulse.core.models import Counter, Session


class InMemorySessionStore(SessionStore):
    """Session collection held in a list of records."""

    def __init__(self, sessions: list[Session] | None = None):
        self._records = [s.to_record() for s in sessions or []]
        self._lock = threading.Lock()

    def read_all(self) -> list[Session]:
        return [Session.model_validate(r) for r in self._records]

    def write_all(self, sessions: list[Session]) -> None:
        self._records = [s.to_record() for s in sessions]

    def update(self, fn: Callable[[list[Session]], list[Session]]) -> list[Session]:
        with self._lock:
            return super().update(fn)


class InMemoryCounterStore(CounterStore):
    """Counter singleton held as a record."""

    def __init__(self, counter: Counter | None = None):
        self._record = (counter or Counter()).to_record()
        self._lock = threading.Lock()

    def read(self) -> Counter:
        return Counter.model_validate(self._record)

    def write(self, counter: Counter) -> None:
        self._record = counter.to_record()

    def update(self, fn: Callable[[Counter], Counter]) -> Counter:
        with self._lock:
            return super().update(fn)
