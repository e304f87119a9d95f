"""Configuration helpers for localdb."""

from __future__ import annotations

import os
from dotenv import load_dotenv

# Load environment variables from a .env file if present.
load_dotenv()


def get_setting(key: str, default: str = "") -> str:
    """Return a setting from the environment, or ``default``.

    Values from a local ``.env`` file are already in the environment once this
    module is imported. An empty value counts as set, so ``LOCALDB_LOG_FILE=``
    can switch a feature off.
    """

    value = os.getenv(key)
    if value is not None:
        return value
    return default


__all__ = ["get_setting"]
