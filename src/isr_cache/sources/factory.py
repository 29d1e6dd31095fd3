"""Page source factory selecting a backend by mode."""

from __future__ import annotations

import os

from isr_cache.sources.interfaces import PageSource
from isr_cache.sources.page_sources import InMemoryPageSource, JsonDirectoryPageSource


def _resolve_mode(mode: str | None) -> str:
    """Resolve page source mode from argument or environment."""
    raw = mode or os.getenv("ISR_PAGE_SOURCE", "memory")
    resolved = raw.strip().lower()
    if resolved not in {"memory", "json"}:
        raise ValueError("ISR_PAGE_SOURCE must be one of: memory, json")
    return resolved


def create_page_source(mode: str | None = None, root: str | None = None) -> PageSource:
    """Create a page source for the selected mode."""
    resolved = _resolve_mode(mode)
    if resolved == "memory":
        return InMemoryPageSource()

    directory = root or os.getenv("ISR_PAGE_SOURCE_DIR")
    if not directory:
        raise ValueError("ISR_PAGE_SOURCE_DIR is required when ISR_PAGE_SOURCE=json")
    return JsonDirectoryPageSource(directory)
