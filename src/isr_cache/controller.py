"""Caller-facing entrypoint combining validation, regeneration and rendering."""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable
from threading import Lock
from typing import Any

from isr_cache.contracts import Outcome, OutcomeKind, Producer
from isr_cache.policy.regeneration import RegenerationPolicy
from isr_cache.state.entry_store import EntryStore
from isr_cache.state.gateway import DEFAULT_RETENTION_MULTIPLIER, CacheGateway
from isr_cache.validation import validate_resolve_args
from isr_cache.view.renderer import RenderedView, ViewRenderer

logger = logging.getLogger(__name__)


class ISRController:
    """Serve keyed page data through the lazy regeneration cache.

    Design:
    - Arguments are validated before the store is touched
    - Time comes from an injected clock, truncated to whole seconds
    - Every outcome is counted for the stats endpoint
    """

    def __init__(
        self,
        store: EntryStore,
        renderer: ViewRenderer | None = None,
        clock: Callable[[], float] = time.time,
        retention_multiplier: int = DEFAULT_RETENTION_MULTIPLIER,
    ) -> None:
        self.gateway = CacheGateway(store, retention_multiplier)
        self.policy = RegenerationPolicy(self.gateway)
        self.renderer = renderer or ViewRenderer()
        self._clock = clock
        self._lock = Lock()
        self._counts: Counter[str] = Counter()
        self._started_at = clock()

    def resolve(self, param: str, producer: Producer, ttl: int) -> Outcome:
        """Validate arguments and resolve ``param`` at the current clock time."""
        validate_resolve_args(param, producer, ttl)
        return self._resolve(param, producer, ttl)

    def resolve_and_render(
        self,
        param: str,
        producer: Producer,
        ttl: int,
        view: str,
        field_name: str,
    ) -> RenderedView:
        """Resolve ``param`` and render the payload under ``field_name`` with ``view``.

        A missing or deleted source renders the not-found view with status 404.
        """
        validate_resolve_args(param, producer, ttl, view, field_name, render=True)
        outcome = self._resolve(param, producer, ttl)
        if not outcome.found:
            logger.info(f"No data for {param}; rendering {self.renderer.not_found_view}")
        return self.renderer.render_outcome(outcome, view, field_name)

    def stats(self) -> dict[str, Any]:
        """Return outcome counters since construction."""
        with self._lock:
            counts = {kind.value: self._counts[kind.value] for kind in OutcomeKind}
        total = sum(counts.values())
        served_from_cache = counts[OutcomeKind.SERVE_CACHED.value] + counts[
            OutcomeKind.SERVE_STALE_UNCHANGED.value
        ]
        hit_rate = (served_from_cache / total * 100) if total > 0 else 0.0
        return {
            "outcomes": counts,
            "total_requests": total,
            "hit_rate_percent": round(hit_rate, 1),
            "uptime_seconds": int(self._clock() - self._started_at),
        }

    def _resolve(self, param: str, producer: Producer, ttl: int) -> Outcome:
        now = int(self._clock())
        outcome = self.policy.resolve(param, producer, ttl, now)
        with self._lock:
            self._counts[outcome.kind.value] += 1
        return outcome
