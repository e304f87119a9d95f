"""File backed table store with an in-memory cache and debounced writes.

Every table lives in memory as a plain ``dict`` once it has been touched and
is mirrored to ``<data_dir>/<table>.json``. Mutations only change memory and
arm a write deadline; the file catches up when the table has been quiet for
``write_delay`` seconds, or at shutdown through :meth:`TableStore.flush_all`.
"""

from __future__ import annotations

import json
import re
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .consts import DATA_DIR, TABLE_NAME_PATTERN, TABLE_SUFFIX, WRITE_DELAY
from .logging import logger
from .scheduler import WriteScheduler

_TABLE_NAME_RE = re.compile(TABLE_NAME_PATTERN)

LOADED = "loaded"
MISSING = "missing"
CORRUPT = "corrupt"


class InvalidTableName(ValueError):
    """Raised for table names that cannot map safely onto a file name."""


@dataclass
class LoadResult:
    """Outcome of reading a table file."""

    data: Dict[str, Any]
    status: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == LOADED


@dataclass
class _Table:
    data: Optional[Dict[str, Any]] = None
    dirty: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock)


def _atomic_write(path: Path, text: str) -> None:
    """Replace *path* with *text* without ever leaving a partial file."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(text)
        Path(tmp).replace(path)
    except Exception:
        Path(tmp).unlink(missing_ok=True)
        raise


class TableStore:
    """Named tables of key → record, cached in memory and persisted as JSON."""

    def __init__(
        self,
        data_dir: Union[str, Path] = DATA_DIR,
        write_delay: float = WRITE_DELAY,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ):
        self.data_dir = Path(data_dir)
        # Without the directory nothing can ever be persisted: let it raise.
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.on_error = on_error
        self.scheduler = WriteScheduler(write_delay, self.flush)
        self._tables: Dict[str, _Table] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> "TableStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Write everything still pending and let the writer thread exit."""
        self.flush_all()
        self.scheduler.stop()

    # Table store -----------------------------------------------------------
    def resolve_path(self, name: str) -> Path:
        """Return the file backing table *name*."""
        if not isinstance(name, str) or not _TABLE_NAME_RE.fullmatch(name):
            raise InvalidTableName(f"invalid table name: {name!r}")
        return self.data_dir / f"{name}{TABLE_SUFFIX}"

    def read_table(self, name: str) -> LoadResult:
        """Read table *name* from disk, falling back to an empty table."""
        path = self.resolve_path(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return LoadResult({}, MISSING)
        except (OSError, ValueError) as e:
            return LoadResult({}, CORRUPT, e)
        if not isinstance(data, dict):
            err = ValueError(f"expected a JSON object, got {type(data).__name__}")
            return LoadResult({}, CORRUPT, err)
        return LoadResult(data, LOADED)

    def load_table(self, name: str) -> Dict[str, Any]:
        """Return the cached mapping for *name*, loading it on first use."""
        entry = self._entry(name)
        with entry.lock:
            return self._load(name, entry)

    def tables(self) -> List[str]:
        """Names of the tables loaded so far."""
        with self._lock:
            return [n for n, e in self._tables.items() if e.data is not None]

    def is_dirty(self, name: str) -> bool:
        with self._lock:
            entry = self._tables.get(name)
        return entry is not None and entry.dirty

    def _entry(self, name: str) -> _Table:
        with self._lock:
            entry = self._tables.get(name)
            if entry is None:
                self.resolve_path(name)
                entry = self._tables[name] = _Table()
            return entry

    def _load(self, name: str, entry: _Table) -> Dict[str, Any]:
        # caller holds entry.lock
        if entry.data is None:
            result = self.read_table(name)
            if result.status == CORRUPT:
                logger.warning(
                    "Table %r could not be read (%s); starting empty", name, result.error
                )
            entry.data = result.data
        return entry.data

    # Persistence -----------------------------------------------------------
    def flush(self, name: str) -> bool:
        """Write table *name* to disk now. Returns ``False`` if that failed.

        Errors are logged and handed to ``on_error``; they never propagate.
        The table stays dirty after a failure.
        """
        with self._lock:
            entry = self._tables.get(name)
        if entry is None:
            return True
        with entry.lock:
            if entry.data is None:
                return True
            try:
                text = json.dumps(entry.data, ensure_ascii=False, indent=2)
                _atomic_write(self.resolve_path(name), text)
            except (OSError, TypeError, ValueError) as e:
                logger.error("Could not write table %r: %s", name, e)
                self._report(name, e)
                return False
            entry.dirty = False
        logger.debug("Wrote table %r", name)
        return True

    def flush_all(self) -> List[str]:
        """Write every table with a pending or failed write, bypassing the delay."""
        with self._lock:
            dirty = [n for n, e in self._tables.items() if e.dirty]
        return self.scheduler.flush_all(extra=dirty)

    def _report(self, name: str, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(name, error)
        except Exception:
            logger.exception("Error hook failed for table %r", name)

    # Record API ------------------------------------------------------------
    def get(self, table: str, key: str, default: Any = None) -> Any:
        """Return the record stored under *key*, or *default*."""
        entry = self._entry(table)
        with entry.lock:
            return self._load(table, entry).get(key, default)

    def set(self, table: str, key: str, value: Any) -> None:
        """Store *value* under *key*.

        A mapping is shallow-merged into an existing dict record, so callers
        can update one field without reading the record first. Lists and
        scalars replace whatever was there.
        """
        entry = self._entry(table)
        with entry.lock:
            data = self._load(table, entry)
            if isinstance(value, Mapping):
                old = data.get(key)
                data[key] = {**old, **value} if isinstance(old, dict) else dict(value)
            elif isinstance(value, list):
                data[key] = list(value)
            else:
                data[key] = value
            entry.dirty = True
            self.scheduler.schedule(table)

    def delete(self, table: str, key: str) -> None:
        """Remove *key* from *table*; missing keys are ignored."""
        entry = self._entry(table)
        with entry.lock:
            self._load(table, entry).pop(key, None)
            entry.dirty = True
            self.scheduler.schedule(table)

    def get_all(self, table: str) -> Dict[str, Any]:
        """Return the live mapping of *table*. Treat it as read-only."""
        return self.load_table(table)


__all__ = [
    "CORRUPT",
    "LOADED",
    "MISSING",
    "InvalidTableName",
    "LoadResult",
    "TableStore",
]
