"""Core data contracts for the incremental regeneration cache."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeAlias

Payload: TypeAlias = dict[str, Any]
Producer: TypeAlias = Callable[[str], Mapping[str, Any] | None]

CACHE_KEY_PREFIX = "data_"


def cache_key_for(param: str) -> str:
    """Derive the store key for a caller-supplied parameter."""
    return f"{CACHE_KEY_PREFIX}{param}"


def is_empty_payload(payload: Mapping[str, Any] | None) -> bool:
    """Return True when a producer result means "no data for this key"."""
    return payload is None or len(payload) == 0


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached payload together with the UNIX second it was produced."""

    payload: Payload
    stored_at: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entry to a JSON-compatible dictionary."""
        return {"data": dict(self.payload), "timestamp": int(self.stored_at)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CacheEntry":
        """Deserialize an entry produced by :meth:`to_dict`.

        Raises ``KeyError`` when either field is missing and ``TypeError`` when
        either field is null or has the wrong shape.
        """
        payload = data["data"]
        stored_at = data["timestamp"]
        if not isinstance(payload, dict):
            raise TypeError("entry data must be a JSON object")
        if stored_at is None or isinstance(stored_at, bool):
            raise TypeError("entry timestamp must be an integer")
        return cls(payload=dict(payload), stored_at=int(stored_at))

    def age(self, now: int) -> int:
        """Return seconds elapsed since the entry was stored."""
        return now - self.stored_at

    def is_expired(self, now: int, ttl: int) -> bool:
        """Return True once ``ttl`` seconds have elapsed since storage."""
        return self.age(now) >= ttl


class OutcomeKind(StrEnum):
    """Tagged result of one resolve call."""

    SERVE_FRESH = "serve_fresh"
    SERVE_CACHED = "serve_cached"
    SERVE_STALE_UNCHANGED = "serve_stale_unchanged"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Decision made by the regeneration policy and the payload to serve."""

    kind: OutcomeKind
    payload: Payload | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate that only NotFound outcomes lack a payload."""
        if self.kind is OutcomeKind.NOT_FOUND and self.payload is not None:
            raise ValueError("not_found outcome must not carry a payload")
        if self.kind is not OutcomeKind.NOT_FOUND and self.payload is None:
            raise ValueError(f"{self.kind.value} outcome requires a payload")

    @property
    def found(self) -> bool:
        return self.kind is not OutcomeKind.NOT_FOUND

    @classmethod
    def fresh(cls, payload: Payload) -> "Outcome":
        return cls(OutcomeKind.SERVE_FRESH, payload)

    @classmethod
    def cached(cls, payload: Payload) -> "Outcome":
        return cls(OutcomeKind.SERVE_CACHED, payload)

    @classmethod
    def stale_unchanged(cls, payload: Payload) -> "Outcome":
        return cls(OutcomeKind.SERVE_STALE_UNCHANGED, payload)

    @classmethod
    def not_found(cls) -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND)
