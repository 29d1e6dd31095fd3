"""FastAPI app serving lazily regenerated pages and administering their sources."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from isr_cache.config import Settings
from isr_cache.contracts import cache_key_for
from isr_cache.controller import ISRController
from isr_cache.sources.factory import create_page_source
from isr_cache.sources.interfaces import PageSource
from isr_cache.state.entry_store import EntryStore, InMemoryEntryStore, SQLiteEntryStore
from isr_cache.validation import InvalidArgumentError

logger = logging.getLogger(__name__)


class SourceUpdateRequest(BaseModel):
    """Request schema for creating or replacing page source data."""

    data: dict[str, Any] = Field(min_length=1)


class SourceUpdateResponse(BaseModel):
    """Acknowledgement of a page source write."""

    param: str
    keys: list[str]


class CacheEntryResponse(BaseModel):
    """Inspection view of one stored cache entry."""

    key: str
    stored_at: int
    payload: dict[str, Any]


class OutcomeStatsResponse(BaseModel):
    """Outcome counters reported by the controller."""

    outcomes: dict[str, int]
    total_requests: int
    hit_rate_percent: float
    uptime_seconds: int


def _build_store(settings: Settings, clock: Callable[[], float]) -> EntryStore:
    """Build the entry store for configured runtime settings."""
    if settings.store_path:
        logger.info(f"Using SQLite entry store at {settings.store_path}")
        return SQLiteEntryStore(settings.store_path, clock=clock)
    return InMemoryEntryStore(clock=clock)


def _build_page_source(settings: Settings) -> PageSource:
    return create_page_source(settings.page_source_mode, settings.page_source_dir)


def create_app(
    settings: Settings | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create and configure the FastAPI app."""
    app = FastAPI(title="ISR Cache API", version="0.1.0")

    resolved = settings or Settings.from_env()
    store = _build_store(resolved, clock)
    page_source = _build_page_source(resolved)
    controller = ISRController(
        store,
        clock=clock,
        retention_multiplier=resolved.retention_multiplier,
    )

    app.state.settings = resolved
    app.state.store = store
    app.state.page_source = page_source
    app.state.controller = controller

    @app.get("/pages/{param}")
    def get_page(
        param: str,
        ttl: int | None = Query(default=None, ge=1),
    ) -> JSONResponse:
        """Serve page data for ``param``, regenerating it when expired."""
        try:
            rendered = controller.resolve_and_render(
                param,
                page_source.get_page_data,
                ttl or resolved.default_ttl_seconds,
                resolved.page_view,
                resolved.page_field,
            )
        except InvalidArgumentError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return JSONResponse(
            status_code=rendered.status_code,
            content=rendered.to_dict(),
            headers={"X-Cache-Outcome": rendered.outcome or ""},
        )

    @app.put("/sources/{param}", response_model=SourceUpdateResponse)
    def put_source(param: str, payload: SourceUpdateRequest) -> SourceUpdateResponse:
        """Create or replace source data; cached copies refresh on next expiry."""
        try:
            page_source.set_page(param, payload.data)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return SourceUpdateResponse(param=param, keys=sorted(payload.data))

    @app.delete("/sources/{param}", status_code=204)
    def delete_source(param: str) -> Response:
        """Remove source data; the cached entry is evicted on next expired read."""
        try:
            page_source.delete_page(param)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return Response(status_code=204)

    @app.get("/cache/{param}", response_model=CacheEntryResponse)
    def get_cache_entry(param: str) -> CacheEntryResponse:
        """Inspect the stored entry without triggering regeneration."""
        entry = controller.gateway.fetch(param)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"no cache entry for {param}")
        return CacheEntryResponse(
            key=cache_key_for(param),
            stored_at=entry.stored_at,
            payload=entry.payload,
        )

    @app.delete("/cache/{param}", status_code=204)
    def delete_cache_entry(param: str) -> Response:
        """Evict the stored entry so the next read regenerates it."""
        controller.gateway.evict(param)
        return Response(status_code=204)

    @app.get("/stats", response_model=OutcomeStatsResponse)
    def get_stats() -> OutcomeStatsResponse:
        """Report outcome counters."""
        return OutcomeStatsResponse(**controller.stats())

    return app


app = create_app()
