"""Debounced write-back of tables to disk."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from .logging import logger


class WriteScheduler:
    """Coalesce bursts of table mutations into one write per quiet window.

    Each table has at most one pending deadline. Scheduling a table that
    already has one moves the deadline out again, so a burst of mutations ends
    in a single call to ``flush`` with the state at that moment. One daemon
    worker thread sleeps until the earliest deadline and writes the due tables.
    """

    def __init__(self, delay: float, flush: Callable[[str], object]):
        self.delay = delay
        self._flush = flush
        self._deadlines: Dict[str, float] = {}
        self._cond = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._stopped = False

    def schedule(self, name: str) -> None:
        """Arm (or re-arm) the write deadline for table *name*."""
        with self._cond:
            self._deadlines[name] = time.monotonic() + self.delay
            self._stopped = False
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="localdb-writer", daemon=True
                )
                self._worker.start()
            self._cond.notify()

    def cancel(self, name: str) -> bool:
        """Drop the pending write for *name* without writing."""
        with self._cond:
            return self._deadlines.pop(name, None) is not None

    def is_pending(self, name: str) -> bool:
        with self._cond:
            return name in self._deadlines

    def pending(self) -> List[str]:
        with self._cond:
            return list(self._deadlines)

    def stop(self) -> None:
        """Let the worker thread exit once nothing is pending."""
        with self._cond:
            self._stopped = True
            self._cond.notify()

    def _take_due(self, now: float) -> List[str]:
        # caller holds self._cond
        due = [name for name, deadline in self._deadlines.items() if deadline <= now]
        for name in due:
            del self._deadlines[name]
        return due

    def _run(self) -> None:
        while True:
            with self._cond:
                while True:
                    now = time.monotonic()
                    due = self._take_due(now)
                    if due:
                        break
                    if not self._deadlines:
                        if self._stopped:
                            self._worker = None
                            return
                        self._cond.wait()
                    else:
                        self._cond.wait(min(self._deadlines.values()) - now)
            for name in due:
                try:
                    self._flush(name)
                except Exception:
                    logger.exception("Scheduled write of table %r failed", name)

    def flush_all(self, extra: Iterable[str] = ()) -> List[str]:
        """Drop every pending deadline and write those tables now.

        Tables named in *extra* are written too. Each table is handled on its
        own: a failure is logged and the remaining tables are still written.
        Returns the names that were flushed.
        """
        with self._cond:
            names = list(self._deadlines)
            self._deadlines.clear()
        for name in extra:
            if name not in names:
                names.append(name)

        for name in names:
            try:
                self._flush(name)
            except Exception:
                logger.exception("Forced write of table %r failed", name)
        return names


__all__ = ["WriteScheduler"]
