"""Process wide default store and module level record helpers."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from .consts import DATA_DIR, WRITE_DELAY
from .shutdown import install_shutdown_hooks
from .store import TableStore

_store: Optional[TableStore] = None
_store_lock = threading.Lock()


def init_store() -> TableStore:
    """Create the default store and its shutdown hooks.

    Hosts should call this at startup: it creates the data directory, and an
    ``OSError`` from that is fatal for the process. Calling it again returns
    the existing store.
    """
    global _store
    with _store_lock:
        if _store is None:
            _store = TableStore(DATA_DIR, WRITE_DELAY)
            install_shutdown_hooks(_store)
        return _store


def get_store() -> TableStore:
    """Return the default store, creating it on first use."""
    if _store is not None:
        return _store
    return init_store()


def reset_store() -> None:
    """Flush and forget the default store."""
    global _store
    with _store_lock:
        store, _store = _store, None
    if store is not None:
        store.close()


def db_get(table: str, key: str, default: Any = None) -> Any:
    return get_store().get(table, key, default)


def db_set(table: str, key: str, value: Any) -> None:
    get_store().set(table, key, value)


def db_delete(table: str, key: str) -> None:
    get_store().delete(table, key)


def db_get_all(table: str) -> Dict[str, Any]:
    return get_store().get_all(table)


def flush_all() -> List[str]:
    if _store is None:
        return []
    return _store.flush_all()


__all__ = [
    "init_store",
    "get_store",
    "reset_store",
    "db_get",
    "db_set",
    "db_delete",
    "db_get_all",
    "flush_all",
]
