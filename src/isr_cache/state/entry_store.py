"""Key-value stores holding cache entries with a per-entry retention TTL."""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import time
from collections.abc import Callable
from threading import Lock
from typing import Any, Protocol

from isr_cache.contracts import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class EntryStore(Protocol):
    """Interface for cache entry persistence."""

    def get(self, key: str) -> CacheEntry | None:
        """Get one entry by key, returning None when not present."""

    def put(self, key: str, entry: CacheEntry, ttl: int) -> None:
        """Insert or replace one entry, retaining it for ``ttl`` seconds."""

    def delete(self, key: str) -> None:
        """Remove one entry; missing keys are ignored."""


def _decode_entry(key: str, raw: Any) -> CacheEntry | None:
    """Decode a stored record, treating partially-populated records as absent."""
    try:
        return CacheEntry.from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"Ignoring malformed cache record for {key}: {exc}")
        return None


class InMemoryEntryStore(EntryStore):
    """Dict-backed store; retention is measured with its own clock."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._lock = Lock()
        self._items: dict[str, tuple[dict[str, Any], float]] = {}

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for key unless it is missing or past retention."""
        now = self._clock()
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            raw, expires_at = item
            if expires_at <= now:
                del self._items[key]
                logger.debug(f"Retention elapsed for {key}")
                return None
        return _decode_entry(key, copy.deepcopy(raw))

    def put(self, key: str, entry: CacheEntry, ttl: int) -> None:
        """Insert or replace one entry."""
        with self._lock:
            self._items[key] = (copy.deepcopy(entry.to_dict()), self._clock() + ttl)

    def delete(self, key: str) -> None:
        """Remove one entry if present."""
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SQLiteEntryStore(EntryStore):
    """Thread-safe SQLite entry store using deterministic JSON payload serialization."""

    def __init__(self, path: str, clock: Clock = time.time) -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._clock = clock
        self._lock = Lock()
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    cache_key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    expires_at INTEGER NOT NULL
                )
                """
            )
            self._conn.commit()

    def get(self, key: str) -> CacheEntry | None:
        """Return entry by key, deleting the row when its retention has passed."""
        now = int(self._clock())
        with self._lock:
            row = self._conn.execute(
                "SELECT payload_json, expires_at FROM cache_entries WHERE cache_key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            if int(row[1]) <= now:
                self._conn.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
                self._conn.commit()
                logger.debug(f"Retention elapsed for {key}")
                return None
        try:
            raw = json.loads(str(row[0]))
        except json.JSONDecodeError as exc:
            logger.warning(f"Ignoring undecodable cache record for {key}: {exc}")
            return None
        return _decode_entry(key, raw)

    def put(self, key: str, entry: CacheEntry, ttl: int) -> None:
        """Insert or replace one entry."""
        self._write(key, entry.to_dict(), ttl)

    def delete(self, key: str) -> None:
        """Remove one entry if present."""
        with self._lock:
            self._conn.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
            self._conn.commit()

    def clear_expired(self) -> int:
        """Delete every row past its retention and return how many were removed."""
        now = int(self._clock())
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM cache_entries WHERE expires_at <= ?",
                (now,),
            )
            self._conn.commit()
            cleared = cursor.rowcount
        if cleared > 0:
            logger.info(f"Cleared {cleared} expired cache entries")
        return cleared

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def _write(self, key: str, raw: dict[str, Any], ttl: int) -> None:
        payload_json = json.dumps(raw, sort_keys=True, separators=(",", ":"))
        expires_at = int(self._clock()) + int(ttl)
        with self._lock:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO cache_entries (cache_key, payload_json, expires_at)
                VALUES (?, ?, ?)
                """,
                (key, payload_json, expires_at),
            )
            self._conn.commit()
