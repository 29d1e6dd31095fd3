"""Precondition checks for caller-facing operations."""

from __future__ import annotations

from typing import Any


class InvalidArgumentError(ValueError):
    """Raised when a caller violates a resolve/render precondition."""


def validate_resolve_args(
    param: Any,
    producer: Any,
    ttl: Any,
    view: Any = None,
    field_name: Any = None,
    *,
    render: bool = False,
) -> None:
    """Fail fast on invalid arguments before any store access.

    ``view`` and ``field_name`` are only checked when ``render`` is True.
    """
    if not isinstance(param, str) or param == "":
        raise InvalidArgumentError("param must be a non-empty string")
    if not callable(producer):
        raise InvalidArgumentError("producer must be callable")
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
        raise InvalidArgumentError("ttl must be a positive integer number of seconds")
    if render:
        if not isinstance(view, str) or view == "":
            raise InvalidArgumentError("view must be a non-empty string")
        if not isinstance(field_name, str) or field_name == "":
            raise InvalidArgumentError("field_name must be a non-empty string")
