"""Flush pending table writes when the host process goes away."""

from __future__ import annotations

import atexit
import signal
import sys
import threading

from .logging import logger
from .store import TableStore

# The exit hook holds each store until the process ends.
_installed: set = set()


def _flush(store: TableStore) -> None:
    try:
        names = store.flush_all()
    except Exception:
        logger.exception("Shutdown flush failed")
        return
    if names:
        logger.info("Flushed %d table(s) on shutdown: %s", len(names), ", ".join(names))


def install_shutdown_hooks(store: TableStore) -> bool:
    """Flush *store* on normal exit, SIGINT and SIGTERM.

    The signal handlers flush and then exit the process. They can only be
    installed from the main thread; anywhere else only the exit hook is
    registered. Returns ``False`` if *store* already had its hooks.
    """
    if store in _installed:
        return False
    _installed.add(store)

    atexit.register(_flush, store)

    def _on_signal(signum, frame):
        logger.info("Received %s, flushing tables", signal.Signals(signum).name)
        _flush(store)
        sys.exit(0)

    if threading.current_thread() is not threading.main_thread():
        logger.warning("Not on the main thread; SIGINT/SIGTERM will not flush tables")
        return True

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _on_signal)
    return True


__all__ = ["install_shutdown_hooks"]
