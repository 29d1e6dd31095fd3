"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _positive_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def _non_empty_env(name: str, default: str) -> str:
    value = os.getenv(name, default).strip()
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the API app."""

    store_path: str | None = None
    default_ttl_seconds: int = 60
    page_source_mode: str = "memory"
    page_source_dir: str | None = None
    page_view: str = "page"
    page_field: str = "page"
    retention_multiplier: int = 10

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``ISR_*`` environment variables."""
        return cls(
            store_path=os.getenv("ISR_STORE_PATH") or None,
            default_ttl_seconds=_positive_int_env("ISR_DEFAULT_TTL_SECONDS", 60),
            page_source_mode=os.getenv("ISR_PAGE_SOURCE", "memory").strip().lower(),
            page_source_dir=os.getenv("ISR_PAGE_SOURCE_DIR") or None,
            page_view=_non_empty_env("ISR_PAGE_VIEW", "page"),
            page_field=_non_empty_env("ISR_PAGE_FIELD", "page"),
            retention_multiplier=_positive_int_env("ISR_RETENTION_MULTIPLIER", 10),
        )
