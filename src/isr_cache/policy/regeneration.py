"""Lazy regeneration policy deciding between cached, fresh and evicted data.

The policy holds no locks. Two callers that both observe an expired entry will
both invoke the producer and both write; the last write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from isr_cache.contracts import CacheEntry, Outcome, Payload, Producer, is_empty_payload
from isr_cache.policy.change_detector import changed
from isr_cache.state.gateway import CacheGateway

logger = logging.getLogger(__name__)


def _produce(producer: Producer, param: str) -> Payload | None:
    """Invoke the producer and normalize its result to a plain dict or None."""
    result = producer(param)
    if result is not None and not isinstance(result, Mapping):
        raise TypeError(
            f"producer must return a mapping or None, got {type(result).__name__}"
        )
    if is_empty_payload(result):
        return None
    return dict(result)


class RegenerationPolicy:
    """Serve cached data while valid and regenerate it lazily once expired.

    ``ttl`` is re-supplied on every call and is compared against the stored
    timestamp at read time, so a caller changing ``ttl`` changes the expiry of
    entries that are already stored.

    An unchanged regeneration writes nothing: ``stored_at`` and the store's
    retention (``ttl * retention_multiplier`` from the original save) both stay
    as they were. Once that retention passes the store drops the entry, and the
    next call populates it again as fresh even if the data never changed.
    """

    def __init__(self, gateway: CacheGateway) -> None:
        self._gateway = gateway

    def resolve(self, key: str, producer: Producer, ttl: int, now: int) -> Outcome:
        """Decide what to serve for ``key`` at time ``now``."""
        entry = self._gateway.fetch(key)
        if entry is None:
            outcome = self._populate(key, producer, ttl, now)
        elif not entry.is_expired(now, ttl):
            outcome = Outcome.cached(entry.payload)
        else:
            outcome = self._regenerate(key, entry, producer, ttl, now)

        logger.debug(f"Resolved {key} -> {outcome.kind.value}")
        return outcome

    def _populate(self, key: str, producer: Producer, ttl: int, now: int) -> Outcome:
        fresh = _produce(producer, key)
        if fresh is None:
            return Outcome.not_found()
        self._gateway.save(key, fresh, now, ttl)
        return Outcome.fresh(fresh)

    def _regenerate(
        self,
        key: str,
        entry: CacheEntry,
        producer: Producer,
        ttl: int,
        now: int,
    ) -> Outcome:
        fresh = _produce(producer, key)
        if fresh is None:
            # Source removed.
            self._gateway.evict(key)
            logger.info(f"Source for {key} is gone; entry evicted")
            return Outcome.not_found()
        if not changed(entry.payload, fresh):
            # stored_at stays put, so every later call re-checks until data changes.
            return Outcome.stale_unchanged(entry.payload)
        self._gateway.save(key, fresh, now, ttl)
        return Outcome.fresh(fresh)
