# ==============================================================================
# Store Infrastructure
# ==============================================================================
"""
Record store implementations for the ports-and-adapters architecture.

Available implementations:
- JSON files (default): analytics_data.json and counters.json
- Valkey: whole-collection JSON documents with optimistic transactions
- In-memory: for tests and throwaway runs
"""

from sitepulse.base.stores import CounterStore, SessionStore
from sitepulse.infrastructure.stores.json_file import JsonFileCounterStore, JsonFileSessionStore
from sitepulse.infrastructure.stores.memory import InMemoryCounterStore, InMemorySessionStore
from sitepulse.utils.config import Settings, get_settings


def get_stores(settings: Settings | None = None) -> tuple[SessionStore, CounterStore]:
    """
    Get the session and counter stores based on configuration.

    The backend is determined by the STORE_BACKEND environment variable:
    - "json" (default): flat JSON files
    - "valkey": Valkey/Redis keys
    - "memory": in-process, lost on restart

    Args:
        settings: Application settings. If None, uses the cached settings.

    Returns:
        (session store, counter store) pair

    Raises:
        ValueError: If an unknown backend is configured
    """
    settings = settings or get_settings()
    store = settings.store
    backend = store.backend

    match backend:
        case "json":
            return (
                JsonFileSessionStore(store.data_file_path),
                JsonFileCounterStore(store.counters_file_path),
            )
        case "valkey":
            from sitepulse.infrastructure.stores.valkey import (
                ValkeyCounterStore,
                ValkeySessionStore,
                get_valkey_client,
            )

            client = get_valkey_client(settings)
            return (
                ValkeySessionStore(client, store.key_prefix),
                ValkeyCounterStore(client, store.key_prefix),
            )
        case "memory":
            return InMemorySessionStore(), InMemoryCounterStore()
        case _:
            raise ValueError(
                f"Unknown store backend: '{backend}'.\nValid options are: json, valkey, memory"
            )


__all__ = [
    "InMemoryCounterStore",
    "InMemorySessionStore",
    "JsonFileCounterStore",
    "JsonFileSessionStore",
    "get_stores",
]
