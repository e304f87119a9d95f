"""Logging configuration for localdb."""

from __future__ import annotations

import logging

from .consts import LOG_FILE, LOG_LEVEL

_handlers: list[logging.Handler] = [logging.StreamHandler()]
if LOG_FILE:
    _handlers.insert(0, logging.FileHandler(LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=_handlers,
)

logger = logging.getLogger("localdb")

__all__ = ["logger"]
