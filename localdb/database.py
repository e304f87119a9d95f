"""Bot level data helpers built on the four record primitives.

Every method reads one record, adjusts it and writes it back. Object records
are merged by :meth:`TableStore.set`, so only the changed fields are passed.
"""

from __future__ import annotations

import re
import time
from typing import Any, Dict, List, Optional

from .consts import TOP_LIMIT
from .store import TableStore

USERS = "users"
GROUPS = "groups"
WARNS = "warns"
BANNED = "banned"
BLACKLIST = "blacklist"
ACTIVITY = "activity"
AFK = "afk"
CARDS = "cards"
SPAWNS = "spawns"
COOLDOWNS = "cooldowns"
CONFIG = "config"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _member_key(jid: str, group_id: str) -> str:
    return f"{group_id}_{jid}"


def _safe_key(key: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", key)


def _field(record: Any, name: str, default: Any) -> Any:
    """Field *name* of a dict record; missing, null and empty all read as *default*."""
    if not isinstance(record, dict):
        return default
    return record.get(name) or default


def _unique(items: List[Any]) -> List[Any]:
    return list(dict.fromkeys(items))


class Database:
    """Users, economy, moderation and mini-game state for the bot."""

    def __init__(self, store: TableStore):
        self.store = store

    # Users -------------------------------------------------------------------
    def get_user(self, jid: str) -> Optional[Dict[str, Any]]:
        return self.store.get(USERS, jid)

    def set_user(self, jid: str, data: Dict[str, Any]) -> None:
        self.store.set(USERS, jid, data)

    def update_user(self, jid: str, data: Dict[str, Any]) -> None:
        self.store.set(USERS, jid, data)

    # Economy -----------------------------------------------------------------
    def get_balance(self, jid: str) -> int:
        user = self.store.get(USERS, jid)
        return _field(user, "balance", 0)

    def add_balance(self, jid: str, amount: int) -> int:
        balance = self.get_balance(jid) + amount
        self.store.set(USERS, jid, {"balance": balance})
        return balance

    def remove_balance(self, jid: str, amount: int) -> int:
        """Take *amount* from the balance, never going below zero."""
        balance = max(0, self.get_balance(jid) - amount)
        self.store.set(USERS, jid, {"balance": balance})
        return balance

    def get_stardust(self, jid: str) -> int:
        user = self.store.get(USERS, jid)
        return _field(user, "stardust", 0)

    def add_stardust(self, jid: str, amount: int) -> int:
        stardust = self.get_stardust(jid) + amount
        self.store.set(USERS, jid, {"stardust": stardust})
        return stardust

    def get_richlist(self, group_id: Optional[str] = None) -> List[Dict[str, Any]]:
        # Users are not tracked per group, so this is the global list.
        return self.get_global_richlist()

    def get_global_richlist(self) -> List[Dict[str, Any]]:
        users = [
            {"jid": jid, **user}
            for jid, user in self.store.get_all(USERS).items()
            if isinstance(user, dict) and user.get("registered")
        ]
        users.sort(key=lambda u: u.get("balance") or 0, reverse=True)
        return users[:TOP_LIMIT]

    # Groups ------------------------------------------------------------------
    def get_group(self, group_id: str) -> Dict[str, Any]:
        return self.store.get(GROUPS, group_id) or {}

    def set_group(self, group_id: str, data: Dict[str, Any]) -> None:
        self.store.set(GROUPS, group_id, data)

    # Warns -------------------------------------------------------------------
    def get_warns(self, jid: str, group_id: str) -> int:
        data = self.store.get(WARNS, _member_key(jid, group_id))
        return _field(data, "warns", 0)

    def add_warn(self, jid: str, group_id: str, reason: str) -> int:
        """Record a warning and return the member's new warning count."""
        key = _member_key(jid, group_id)
        data = self.store.get(WARNS, key)
        warns = _field(data, "warns", 0) + 1
        reasons = list(_field(data, "reasons", [])) + [reason]
        self.store.set(WARNS, key, {"warns": warns, "reasons": reasons})
        return warns

    def reset_warns(self, jid: str, group_id: str) -> None:
        self.store.delete(WARNS, _member_key(jid, group_id))

    # Bans --------------------------------------------------------------------
    def is_banned(self, jid: str) -> bool:
        return self.store.get(BANNED, jid) is not None

    def ban_user(self, jid: str) -> None:
        self.store.set(BANNED, jid, {"banned": True, "at": _now_ms()})

    def unban_user(self, jid: str) -> None:
        self.store.delete(BANNED, jid)

    # Blacklist ---------------------------------------------------------------
    def get_blacklist(self, group_id: str) -> List[str]:
        data = self.store.get(BLACKLIST, group_id)
        return _field(data, "words", [])

    def add_blacklist(self, group_id: str, word: str) -> List[str]:
        words = _unique(self.get_blacklist(group_id) + [word.lower()])
        self.store.set(BLACKLIST, group_id, {"words": words})
        return words

    def remove_blacklist(self, group_id: str, word: str) -> List[str]:
        word = word.lower()
        words = [w for w in self.get_blacklist(group_id) if w != word]
        self.store.set(BLACKLIST, group_id, {"words": words})
        return words

    # Activity ----------------------------------------------------------------
    def log_activity(self, jid: str, group_id: str) -> int:
        key = _member_key(jid, group_id)
        data = self.store.get(ACTIVITY, key)
        count = _field(data, "count", 0) + 1
        self.store.set(
            ACTIVITY,
            key,
            {"jid": jid, "groupId": group_id, "count": count, "last": _now_ms()},
        )
        return count

    def get_group_activity(self, group_id: str) -> List[Dict[str, Any]]:
        """Most active members of *group_id*, busiest first."""
        rows = [
            row
            for row in self.store.get_all(ACTIVITY).values()
            if isinstance(row, dict) and row.get("groupId") == group_id
        ]
        rows.sort(key=lambda r: r.get("count") or 0, reverse=True)
        return rows[:TOP_LIMIT]

    # AFK ---------------------------------------------------------------------
    def set_afk(self, jid: str, reason: str) -> None:
        self.store.set(AFK, jid, {"reason": reason, "since": _now_ms()})

    def get_afk(self, jid: str) -> Optional[Dict[str, Any]]:
        return self.store.get(AFK, jid)

    def remove_afk(self, jid: str) -> None:
        self.store.delete(AFK, jid)

    # Cards -------------------------------------------------------------------
    def get_cards(self, jid: str) -> List[Any]:
        data = self.store.get(CARDS, jid)
        return _field(data, "cards", [])

    def add_card(self, jid: str, card: Any) -> None:
        self.store.set(CARDS, jid, {"cards": self.get_cards(jid) + [card]})

    # Spawns ------------------------------------------------------------------
    def set_spawn(self, spawn_id: str, data: Dict[str, Any]) -> None:
        self.store.set(SPAWNS, spawn_id, data)

    def get_spawn(self, spawn_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(SPAWNS, spawn_id)

    def get_spawn_by_short_id(self, short_id: str) -> Optional[Dict[str, Any]]:
        """Find the unclaimed spawn whose ``shortId`` matches, ignoring case."""
        short_id = short_id.upper()
        for spawn_id, data in self.store.get_all(SPAWNS).items():
            if not isinstance(data, dict):
                continue
            if data.get("shortId") == short_id and not data.get("claimed"):
                return {"id": spawn_id, **data}
        return None

    def claim_spawn(self, spawn_id: str) -> None:
        self.store.set(SPAWNS, spawn_id, {"claimed": True, "claimedAt": _now_ms()})

    # Cooldowns ---------------------------------------------------------------
    def get_daily_cooldown(self, jid: str) -> int:
        data = self.store.get(COOLDOWNS, f"daily_{jid}")
        return _field(data, "timestamp", 0)

    def set_daily_cooldown(self, jid: str) -> None:
        self.store.set(COOLDOWNS, f"daily_{jid}", {"timestamp": _now_ms()})

    def get_cooldown(self, key: str) -> int:
        data = self.store.get(COOLDOWNS, _safe_key(key))
        return _field(data, "timestamp", 0)

    def set_cooldown(self, key: str, timestamp: int) -> None:
        self.store.set(COOLDOWNS, _safe_key(key), {"timestamp": timestamp})

    # Sudo --------------------------------------------------------------------
    def get_sudo_list(self) -> List[str]:
        data = self.store.get(CONFIG, "sudo")
        return _field(data, "numbers", [])

    def add_sudo(self, number: str) -> List[str]:
        numbers = _unique(self.get_sudo_list() + [number])
        self.store.set(CONFIG, "sudo", {"numbers": numbers})
        return numbers

    def remove_sudo(self, number: str) -> List[str]:
        numbers = [n for n in self.get_sudo_list() if n != number]
        self.store.set(CONFIG, "sudo", {"numbers": numbers})
        return numbers


__all__ = ["Database"]
