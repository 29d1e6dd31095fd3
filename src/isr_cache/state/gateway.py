"""Gateway translating caller parameters into entry store operations."""

from __future__ import annotations

import logging

from isr_cache.contracts import CacheEntry, Payload, cache_key_for
from isr_cache.state.entry_store import EntryStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_MULTIPLIER = 10


class CacheGateway:
    """Fetch, store and evict cache entries under a prefixed key.

    Entries are handed to the store with a retention of
    ``ttl * retention_multiplier`` seconds. The store must keep an entry past
    its freshness window, otherwise an expired entry could never be compared
    against a regenerated payload.
    """

    def __init__(self, store: EntryStore, retention_multiplier: int = DEFAULT_RETENTION_MULTIPLIER) -> None:
        if retention_multiplier < 1:
            raise ValueError("retention_multiplier must be >= 1")
        self._store = store
        self._retention_multiplier = retention_multiplier

    def retention_for(self, ttl: int) -> int:
        """Return how long the store should keep an entry with freshness ``ttl``."""
        return ttl * self._retention_multiplier

    def fetch(self, param: str) -> CacheEntry | None:
        """Return the current entry for a parameter, or None when never generated."""
        return self._store.get(cache_key_for(param))

    def save(self, param: str, payload: Payload, stored_at: int, ttl: int) -> CacheEntry:
        """Store a freshly produced payload stamped with ``stored_at``."""
        key = cache_key_for(param)
        entry = CacheEntry(payload=dict(payload), stored_at=stored_at)
        self._store.put(key, entry, self.retention_for(ttl))
        logger.debug(f"Stored {key} at {stored_at} (ttl={ttl}s)")
        return entry

    def evict(self, param: str) -> None:
        """Remove the entry for a parameter."""
        self._store.delete(cache_key_for(param))
        logger.debug(f"Evicted {cache_key_for(param)}")
