"""Tests for the lazy regeneration policy decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from isr_cache.contracts import CacheEntry, OutcomeKind, cache_key_for
from isr_cache.policy.regeneration import RegenerationPolicy
from isr_cache.state.entry_store import InMemoryEntryStore
from isr_cache.state.gateway import CacheGateway


@dataclass
class _RecordingProducer:
    result: Any
    calls: list[str] = field(default_factory=list)

    def __call__(self, param: str) -> Any:
        self.calls.append(param)
        return self.result


@dataclass
class _RaisingProducer:
    calls: int = 0

    def __call__(self, param: str) -> Any:
        self.calls += 1
        raise RuntimeError("upstream unavailable")


def _policy() -> tuple[RegenerationPolicy, InMemoryEntryStore]:
    # A frozen store clock keeps retention out of the way of policy timestamps.
    store = InMemoryEntryStore(clock=lambda: 0.0)
    return RegenerationPolicy(CacheGateway(store)), store


def test_absent_entry_invokes_producer_once_and_stores_result() -> None:
    """A never-generated key should be produced once and stored at `now`."""
    policy, store = _policy()
    producer = _RecordingProducer({"title": "Hello"})

    outcome = policy.resolve("p1", producer, ttl=10, now=100)

    assert outcome.kind is OutcomeKind.SERVE_FRESH
    assert outcome.payload == {"title": "Hello"}
    assert producer.calls == ["p1"]
    assert store.get(cache_key_for("p1")) == CacheEntry(payload={"title": "Hello"}, stored_at=100)


def test_absent_entry_with_empty_result_is_not_found_without_store_write() -> None:
    """Empty production for a new key should report NotFound and store nothing."""
    policy, store = _policy()

    outcome = policy.resolve("p1", _RecordingProducer({}), ttl=10, now=0)

    assert outcome.kind is OutcomeKind.NOT_FOUND
    assert outcome.payload is None
    assert len(store) == 0


def test_none_result_is_treated_as_empty() -> None:
    """A producer returning None should be treated the same as an empty mapping."""
    policy, store = _policy()

    outcome = policy.resolve("p1", _RecordingProducer(None), ttl=10, now=0)

    assert outcome.kind is OutcomeKind.NOT_FOUND
    assert len(store) == 0


def test_unexpired_entry_is_served_without_calling_producer() -> None:
    """A cache hit must not invoke the producer and must return the stored payload."""
    policy, _ = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=10, now=0)
    producer = _RecordingProducer({"x": 99})

    outcome = policy.resolve("p1", producer, ttl=10, now=9)

    assert outcome.kind is OutcomeKind.SERVE_CACHED
    assert outcome.payload == {"x": 1}
    assert producer.calls == []


def test_expiry_boundary_is_inclusive() -> None:
    """An entry exactly `ttl` seconds old should be re-checked."""
    policy, _ = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=10, now=0)
    producer = _RecordingProducer({"x": 2})

    outcome = policy.resolve("p1", producer, ttl=10, now=10)

    assert outcome.kind is OutcomeKind.SERVE_FRESH
    assert producer.calls == ["p1"]


def test_expired_unchanged_data_keeps_original_timestamp() -> None:
    """Unchanged regeneration should not rewrite the entry, so it stays expired."""
    policy, store = _policy()
    policy.resolve("p1", _RecordingProducer({"a": 1, "b": 2}), ttl=10, now=0)
    producer = _RecordingProducer({"b": 2, "a": 1})

    first = policy.resolve("p1", producer, ttl=10, now=12)
    second = policy.resolve("p1", producer, ttl=10, now=12)

    assert first.kind is OutcomeKind.SERVE_STALE_UNCHANGED
    assert second.kind is OutcomeKind.SERVE_STALE_UNCHANGED
    assert first.payload == {"a": 1, "b": 2}
    assert producer.calls == ["p1", "p1"]
    stored = store.get(cache_key_for("p1"))
    assert stored is not None
    assert stored.stored_at == 0


def test_expired_changed_data_replaces_entry() -> None:
    """Changed regeneration should store the new payload stamped with `now`."""
    policy, store = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=10, now=0)

    outcome = policy.resolve("p1", _RecordingProducer({"x": 2}), ttl=10, now=25)

    assert outcome.kind is OutcomeKind.SERVE_FRESH
    assert outcome.payload == {"x": 2}
    assert store.get(cache_key_for("p1")) == CacheEntry(payload={"x": 2}, stored_at=25)


def test_expired_entry_with_empty_result_is_evicted() -> None:
    """Empty regeneration should delete the entry and behave as never generated after."""
    policy, store = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=10, now=0)

    outcome = policy.resolve("p1", _RecordingProducer({}), ttl=10, now=30)

    assert outcome.kind is OutcomeKind.NOT_FOUND
    assert store.get(cache_key_for("p1")) is None

    producer = _RecordingProducer({"x": 3})
    again = policy.resolve("p1", producer, ttl=10, now=31)
    assert again.kind is OutcomeKind.SERVE_FRESH
    assert producer.calls == ["p1"]


def test_end_to_end_timeline() -> None:
    """Walk one key through fresh, cached, unchanged, changed and deleted states."""
    policy, store = _policy()
    producer = _RecordingProducer({"x": 1})

    t0 = policy.resolve("p1", producer, ttl=10, now=0)
    assert (t0.kind, t0.payload) == (OutcomeKind.SERVE_FRESH, {"x": 1})

    t5 = policy.resolve("p1", producer, ttl=10, now=5)
    assert (t5.kind, t5.payload) == (OutcomeKind.SERVE_CACHED, {"x": 1})

    t12 = policy.resolve("p1", producer, ttl=10, now=12)
    assert (t12.kind, t12.payload) == (OutcomeKind.SERVE_STALE_UNCHANGED, {"x": 1})
    assert store.get(cache_key_for("p1")).stored_at == 0

    producer.result = {"x": 2}
    t25 = policy.resolve("p1", producer, ttl=10, now=25)
    assert (t25.kind, t25.payload) == (OutcomeKind.SERVE_FRESH, {"x": 2})
    assert store.get(cache_key_for("p1")).stored_at == 25

    producer.result = {}
    t40 = policy.resolve("p1", producer, ttl=10, now=40)
    assert t40.kind is OutcomeKind.NOT_FOUND
    assert store.get(cache_key_for("p1")) is None
    assert len(producer.calls) == 4


def test_ttl_is_applied_retroactively_to_stored_timestamp() -> None:
    """A shorter TTL on a later call should expire an entry stored under a longer one."""
    policy, _ = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=100, now=0)
    producer = _RecordingProducer({"x": 1})

    outcome = policy.resolve("p1", producer, ttl=10, now=20)

    assert outcome.kind is OutcomeKind.SERVE_STALE_UNCHANGED
    assert producer.calls == ["p1"]


def test_partially_populated_record_is_treated_as_absent() -> None:
    """A stored record missing its timestamp should be regenerated like a new key."""
    policy, store = _policy()
    store._items[cache_key_for("p1")] = ({"data": {"x": 1}}, 10.0)
    producer = _RecordingProducer({"x": 5})

    outcome = policy.resolve("p1", producer, ttl=10, now=3)

    assert outcome.kind is OutcomeKind.SERVE_FRESH
    assert producer.calls == ["p1"]
    assert store.get(cache_key_for("p1")) == CacheEntry(payload={"x": 5}, stored_at=3)


def test_producer_failure_propagates_and_leaves_entry_untouched() -> None:
    """Producer errors should surface unchanged with no store mutation."""
    policy, store = _policy()
    policy.resolve("p1", _RecordingProducer({"x": 1}), ttl=10, now=0)
    producer = _RaisingProducer()

    with pytest.raises(RuntimeError, match="upstream unavailable"):
        policy.resolve("p1", producer, ttl=10, now=15)

    assert producer.calls == 1
    assert store.get(cache_key_for("p1")) == CacheEntry(payload={"x": 1}, stored_at=0)


def test_non_mapping_result_is_rejected() -> None:
    """A producer returning a non-mapping value violates its contract."""
    policy, store = _policy()

    with pytest.raises(TypeError, match="mapping"):
        policy.resolve("p1", _RecordingProducer(["x", 1]), ttl=10, now=0)

    assert len(store) == 0


@dataclass
class _Clock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now


def test_unchanged_regeneration_does_not_extend_retention() -> None:
    """Stale-unchanged serving lasts only until the original retention runs out."""
    clock = _Clock()
    store = InMemoryEntryStore(clock=clock)
    policy = RegenerationPolicy(CacheGateway(store))
    producer = _RecordingProducer({"x": 1})

    kinds = []
    for now in (0, 12, 99, 100):
        clock.now = now
        kinds.append(policy.resolve("p1", producer, ttl=10, now=now).kind)

    assert kinds == [
        OutcomeKind.SERVE_FRESH,
        OutcomeKind.SERVE_STALE_UNCHANGED,
        OutcomeKind.SERVE_STALE_UNCHANGED,
        OutcomeKind.SERVE_FRESH,
    ]
    assert store.get(cache_key_for("p1")) == CacheEntry(payload={"x": 1}, stored_at=100)
