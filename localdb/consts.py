"""Project wide constants."""

from __future__ import annotations

from .config import get_setting

# Storage
DATA_DIR: str = get_setting("LOCALDB_DATA_DIR", "./data")
# Debounce window for table writes in seconds
WRITE_DELAY: float = float(get_setting("LOCALDB_WRITE_DELAY", "0.5"))
TABLE_SUFFIX: str = ".json"
# Lowercase only: table files must stay distinct on case-insensitive filesystems.
TABLE_NAME_PATTERN: str = r"[a-z0-9_-]+"

# Logging
LOG_FILE: str = get_setting("LOCALDB_LOG_FILE", "localdb.log")
LOG_LEVEL: str = get_setting("LOCALDB_LOG_LEVEL", "INFO")

# Domain
TOP_LIMIT: int = int(get_setting("LOCALDB_TOP_LIMIT", "10"))

__all__ = [
    "DATA_DIR",
    "WRITE_DELAY",
    "TABLE_SUFFIX",
    "TABLE_NAME_PATTERN",
    "LOG_FILE",
    "LOG_LEVEL",
    "TOP_LIMIT",
]
