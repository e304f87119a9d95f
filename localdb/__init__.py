"""Embedded JSON table store providing configuration, logging, debounced
persistence and the bot's data helpers."""

from .config import get_setting
from .logging import logger
from .scheduler import WriteScheduler
from .store import InvalidTableName, LoadResult, TableStore
from .shutdown import install_shutdown_hooks
from .db import (
    db_delete,
    db_get,
    db_get_all,
    db_set,
    flush_all,
    get_store,
    init_store,
    reset_store,
)
from .database import Database
from . import consts

__all__ = [
    "get_setting",
    "logger",
    "WriteScheduler",
    "InvalidTableName",
    "LoadResult",
    "TableStore",
    "install_shutdown_hooks",
    "db_get",
    "db_set",
    "db_delete",
    "db_get_all",
    "flush_all",
    "init_store",
    "get_store",
    "reset_store",
    "Database",
    "consts",
]
