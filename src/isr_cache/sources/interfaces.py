"""Producer interfaces for keyed page data."""

from __future__ import annotations

from typing import Any, Protocol


class PageSource(Protocol):
    """Interface for regenerating page data identified by a parameter."""

    def get_page_data(self, param: str) -> dict[str, Any]:
        """Return page data for ``param``; an empty dict means the page is gone."""

    def set_page(self, param: str, data: dict[str, Any]) -> None:
        """Create or replace page data for ``param``."""

    def delete_page(self, param: str) -> None:
        """Remove page data for ``param``; missing pages are ignored."""
