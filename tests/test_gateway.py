"""Tests for the cache gateway key derivation and retention handling."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from isr_cache.contracts import CacheEntry
from isr_cache.state.gateway import CacheGateway


@dataclass
class _RecordingStore:
    items: dict[str, CacheEntry] = field(default_factory=dict)
    ttls: dict[str, int] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    def get(self, key: str) -> CacheEntry | None:
        return self.items.get(key)

    def put(self, key: str, entry: CacheEntry, ttl: int) -> None:
        self.items[key] = entry
        self.ttls[key] = ttl

    def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.items.pop(key, None)


def test_gateway_uses_prefixed_keys() -> None:
    store = _RecordingStore()
    gateway = CacheGateway(store)

    saved = gateway.save("p1", {"x": 1}, stored_at=7, ttl=10)

    assert saved == CacheEntry(payload={"x": 1}, stored_at=7)
    assert list(store.items) == ["data_p1"]
    assert gateway.fetch("p1") == saved

    gateway.evict("p1")
    assert store.deleted == ["data_p1"]
    assert gateway.fetch("p1") is None


def test_gateway_retains_entries_beyond_freshness_window() -> None:
    """The store should keep entries long enough to compare them after expiry."""
    store = _RecordingStore()
    gateway = CacheGateway(store, retention_multiplier=3)

    gateway.save("p1", {"x": 1}, stored_at=0, ttl=10)

    assert gateway.retention_for(10) == 30
    assert store.ttls["data_p1"] == 30


def test_gateway_copies_payload_on_save() -> None:
    store = _RecordingStore()
    payload = {"x": 1}

    CacheGateway(store).save("p1", payload, stored_at=0, ttl=10)
    payload["x"] = 2

    assert store.items["data_p1"].payload == {"x": 1}


def test_gateway_rejects_retention_shorter_than_ttl() -> None:
    with pytest.raises(ValueError, match="retention_multiplier"):
        CacheGateway(_RecordingStore(), retention_multiplier=0)
