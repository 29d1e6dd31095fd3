"""Materialize resolve outcomes into named views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from isr_cache.contracts import Outcome

NOT_FOUND_VIEW = "404"


@dataclass(frozen=True, slots=True)
class RenderedView:
    """A named view, the context it was rendered with and its status code."""

    view: str
    context: dict[str, Any] = field(default_factory=dict)
    status_code: int = 200
    outcome: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the rendered view to a JSON-compatible dictionary."""
        return {
            "view": self.view,
            "status_code": self.status_code,
            "outcome": self.outcome,
            "context": dict(self.context),
        }


class ViewRenderer:
    """Render payload-carrying outcomes with a caller view, NotFound with a fixed one."""

    def __init__(self, not_found_view: str = NOT_FOUND_VIEW) -> None:
        self.not_found_view = not_found_view

    def render_outcome(self, outcome: Outcome, view: str, field_name: str) -> RenderedView:
        """Wrap the outcome payload under ``field_name`` and render ``view``."""
        if not outcome.found:
            return RenderedView(
                view=self.not_found_view,
                status_code=404,
                outcome=outcome.kind.value,
            )
        return RenderedView(
            view=view,
            context={field_name: outcome.payload},
            status_code=200,
            outcome=outcome.kind.value,
        )
