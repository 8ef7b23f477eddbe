# ==============================================================================
# Valkey Store Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the SessionStore and CounterStore interfaces.

Each store keeps its whole collection as one JSON string:
- {prefix}:sessions: array of session records
- {prefix}:counters: the counter object

update() runs an optimistic transaction: the key is WATCHed, read, rewritten
inside MULTI/EXEC, and the whole cycle is retried when another writer changed
the key in between. Concurrent processes therefore never lose updates.
Session records that do not parse are carried over unchanged.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, Optional

import redis
from pydantic import ValidationError
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from sitepulse.base.stores import CounterStore, SessionStore, StoreError, decode_sessions
from sitepulse.core.models import Counter, Session
from sitepulse.utils.config import Settings, get_settings
from sitepulse.utils.retry import (
    REDIS_RETRY_EXCEPTIONS,
    VALKEY_RETRIES,
    retry_conflict,
    retry_connection,
)

logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"
COUNTERS_KEY = "counters"


def get_valkey_client(settings: Settings | None = None) -> redis.Redis:
    """
    Get a Valkey/Redis client connection.

    Configured with:
    - 10 second socket timeouts for fast failure detection
    - Automatic retries with exponential backoff for transient failures
    - Health check interval to keep connections alive

    Args:
        settings: Application settings. If None, uses the cached settings.

    Returns:
        redis.Redis client instance
    """
    settings = settings or get_settings()

    retry = Retry(ExponentialBackoff(cap=8, base=1), retries=VALKEY_RETRIES)

    return redis.from_url(
        settings.valkey.url,
        decode_responses=True,
        socket_timeout=10,
        socket_connect_timeout=10,
        retry=retry,
        retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
        health_check_interval=30,
    )


def check_valkey_connection(client: redis.Redis | None = None) -> bool:
    """
    Check if Valkey is reachable.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    try:
        return bool((client or get_valkey_client()).ping())
    except RedisError:
        return False


class _ValkeyRecord:
    """One JSON document stored under a single key."""

    def __init__(self, name: str, client: redis.Redis | None = None, prefix: str | None = None):
        """
        Initialize the record.

        Args:
            name: Key suffix (sessions, counters)
            client: Redis client instance. If None, creates a new connection.
            prefix: Key prefix. If None, uses settings.
        """
        self._client = client or get_valkey_client()
        self._key = f"{prefix or get_settings().store.key_prefix}:{name}"

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client."""
        return self._client

    @property
    def key(self) -> str:
        return self._key

    @retry_connection(REDIS_RETRY_EXCEPTIONS, logger)
    def _get(self) -> Optional[str]:
        return self._client.get(self._key)

    @retry_connection(REDIS_RETRY_EXCEPTIONS, logger)
    def _set(self, value: str) -> None:
        self._client.set(self._key, value)

    def _load(self, raw: Optional[str], default: Any) -> Any:
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Failed to decode JSON for key {self._key}: {e}") from e

    def read_document(self, default: Any) -> Any:
        try:
            return self._load(self._get(), default)
        except RedisError as e:
            raise StoreError(f"Failed to read {self._key}: {e}") from e

    def write_document(self, document: Any) -> None:
        try:
            self._set(json.dumps(document))
        except RedisError as e:
            raise StoreError(f"Failed to write {self._key}: {e}") from e

    def transact(self, default: Any, fn: Callable[[Any], Any]) -> Any:
        """
        Rewrite the document with compare-and-swap semantics.

        Args:
            default: Document used when the key does not exist
            fn: Receives the current document and returns the new one

        Returns:
            The document that was committed
        """

        @retry_conflict(logger)
        def _attempt() -> Any:
            with self._client.pipeline() as pipe:
                pipe.watch(self._key)
                document = fn(self._load(pipe.get(self._key), default))
                pipe.multi()
                pipe.set(self._key, json.dumps(document))
                pipe.execute()
                return document

        try:
            return _attempt()
        except RedisError as e:
            raise StoreError(f"Failed to update {self._key}: {e}") from e

    def delete(self) -> None:
        try:
            self._client.delete(self._key)
        except RedisError as e:
            raise StoreError(f"Failed to delete {self._key}: {e}") from e


def _decode_counter(raw: Any, key: str) -> Counter:
    try:
        return Counter.model_validate(raw)
    except ValidationError as e:
        raise StoreError(f"Invalid counters under {key}: {e}") from e


class ValkeySessionStore(SessionStore):
    """Session collection stored as one JSON array in Valkey."""

    def __init__(self, client: redis.Redis | None = None, prefix: str | None = None):
        self._record = _ValkeyRecord(SESSIONS_KEY, client, prefix)

    @property
    def key(self) -> str:
        return self._record.key

    def read_all(self) -> list[Session]:
        sessions, _ = decode_sessions(self._record.read_document([]), self.key)
        return sessions

    def write_all(self, sessions: list[Session]) -> None:
        self._record.write_document([s.to_record() for s in sessions])

    def update(self, fn: Callable[[list[Session]], list[Session]]) -> list[Session]:
        result: list[Session] = []

        def _apply(raw: Any) -> list[dict]:
            nonlocal result
            sessions, unparsed = decode_sessions(raw, self.key)
            result = fn(sessions)
            return unparsed + [s.to_record() for s in result]

        self._record.transact([], _apply)
        return result

    def clear(self) -> None:
        self._record.delete()


class ValkeyCounterStore(CounterStore):
    """Counter singleton stored as one JSON object in Valkey."""

    def __init__(self, client: redis.Redis | None = None, prefix: str | None = None):
        self._record = _ValkeyRecord(COUNTERS_KEY, client, prefix)

    @property
    def key(self) -> str:
        return self._record.key

    def read(self) -> Counter:
        return _decode_counter(self._record.read_document({}), self.key)

    def write(self, counter: Counter) -> None:
        self._record.write_document(counter.to_record())

    def update(self, fn: Callable[[Counter], Counter]) -> Counter:
        document = self._record.transact(
            {}, lambda raw: fn(_decode_counter(raw, self.key)).to_record()
        )
        return Counter.model_validate(document)

    def clear(self) -> None:
        self._record.delete()
