# ==============================================================================
# Record Store Abstract Base Classes
# ==============================================================================
"""
Store ABCs for analytics persistence.

Both stores work on whole collections: a read returns everything and a write
replaces everything. There is no row-level update. ``update()`` wraps one
read-modify-write cycle; the default implementation offers no protection
against concurrent writers, and backends that can do better override it.

Includes:
- SessionStore: the Session collection ("analytics data")
- CounterStore: the Counter singleton ("counters")
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from sitepulse.core.models import Counter, Session

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store cannot read or write its records."""


def decode_sessions(raw: Any, source: object) -> tuple[list[Session], list[Any]]:
    """
    Split a decoded JSON array into sessions and records that do not parse.

    Unparseable records are returned as-is so that a rewrite can carry them
    over unchanged instead of dropping them.

    Args:
        raw: Decoded JSON document
        source: File path or key, used in log and error messages

    Returns:
        Tuple of (sessions, unparsed records)

    Raises:
        StoreError: If the document is not an array
    """
    if not isinstance(raw, list):
        raise StoreError(f"Expected a JSON array in {source}")

    sessions: list[Session] = []
    unparsed: list[Any] = []
    for index, record in enumerate(raw):
        try:
            sessions.append(Session.model_validate(record))
        except ValidationError as e:
            logger.warning("Invalid session record %d in %s: %s", index, source, e)
            unparsed.append(record)
    return sessions, unparsed


class SessionStore(ABC):
    """Store for the Session collection."""

    @abstractmethod
    def read_all(self) -> list[Session]:
        """
        Read every stored session.

        Returns:
            Sessions in stored order (empty when nothing is persisted)

        Raises:
            StoreError: If the records cannot be read or decoded
        """
        ...

    @abstractmethod
    def write_all(self, sessions: list[Session]) -> None:
        """
        Replace the stored collection.

        Args:
            sessions: The full collection to persist

        Raises:
            StoreError: If the records cannot be written
        """
        ...

    def update(self, fn: Callable[[list[Session]], list[Session]]) -> list[Session]:
        """
        Run one read-modify-write cycle.

        Args:
            fn: Receives the current collection and returns the new one

        Returns:
            The collection that was written
        """
        sessions = fn(self.read_all())
        self.write_all(sessions)
        return sessions

    def clear(self) -> None:
        """Remove every stored session."""
        self.write_all([])


class CounterStore(ABC):
    """Store for the Counter singleton."""

    @abstractmethod
    def read(self) -> Counter:
        """
        Read the counter.

        Returns:
            The stored counter, or a zeroed one when nothing is persisted

        Raises:
            StoreError: If the record cannot be read or decoded
        """
        ...

    @abstractmethod
    def write(self, counter: Counter) -> None:
        """
        Replace the stored counter.

        Raises:
            StoreError: If the record cannot be written
        """
        ...

    def update(self, fn: Callable[[Counter], Counter]) -> Counter:
        """Run one read-modify-write cycle on the counter."""
        counter = fn(self.read())
        self.write(counter)
        return counter

    def clear(self) -> None:
        """Reset the counter to zero."""
        self.write(Counter())
