"""Key-order-insensitive change detection for cached payloads."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def canonicalize(payload: Mapping[str, Any]) -> str:
    """Serialize a payload deterministically with keys sorted at every depth.

    Values must be JSON-serializable; anything else raises ``TypeError``.
    """
    return json.dumps(
        dict(payload),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def payload_digest(payload: Mapping[str, Any]) -> str:
    """Return the SHA-256 hex digest of the canonical payload form."""
    return hashlib.sha256(canonicalize(payload).encode("utf-8")).hexdigest()


def changed(old: Mapping[str, Any], new: Mapping[str, Any]) -> bool:
    """Return True when two payloads differ once key order is ignored."""
    return payload_digest(old) != payload_digest(new)
