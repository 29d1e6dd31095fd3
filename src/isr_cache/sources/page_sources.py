"""Page sources backed by process memory or a directory of JSON documents.

``JsonDirectoryPageSource`` is meant for pages generated offline and dropped
into a directory as ``<param>.json``. Removing a file is how a page is deleted.
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any

from isr_cache.sources.interfaces import PageSource
from isr_cache.validation import InvalidArgumentError


class InMemoryPageSource(PageSource):
    """Page data held in a dict, mainly for tests and demos."""

    def __init__(self, pages: dict[str, dict[str, Any]] | None = None) -> None:
        self._lock = Lock()
        self._pages: dict[str, dict[str, Any]] = {k: dict(v) for k, v in (pages or {}).items()}
        self.calls = 0

    def get_page_data(self, param: str) -> dict[str, Any]:
        with self._lock:
            self.calls += 1
            return dict(self._pages.get(param, {}))

    def set_page(self, param: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._pages[param] = dict(data)

    def delete_page(self, param: str) -> None:
        with self._lock:
            self._pages.pop(param, None)


def _validate_param(param: str) -> str:
    # Params map 1:1 to file names inside the root.
    if not param or param.startswith(".") or "/" in param or "\\" in param or "\x00" in param:
        raise InvalidArgumentError(f"invalid page parameter: {param!r}")
    return param


class JsonDirectoryPageSource(PageSource):
    """Read page data from ``<root>/<param>.json`` documents."""

    def __init__(self, root: str) -> None:
        self._root = Path(root)
        if self._root.exists() and not self._root.is_dir():
            raise ValueError(f"page source root is not a directory: {root}")
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, param: str) -> Path:
        return self._root / f"{_validate_param(param)}.json"

    def get_page_data(self, param: str) -> dict[str, Any]:
        """Return the document for ``param``, or an empty dict when no file exists."""
        path = self._path_for(param)
        if not path.exists():
            return {}
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"page document must be a JSON object: {path}")
        return payload

    def set_page(self, param: str, data: dict[str, Any]) -> None:
        path = self._path_for(param)
        path.write_text(json.dumps(data, sort_keys=True, indent=2), encoding="utf-8")

    def delete_page(self, param: str) -> None:
        self._path_for(param).unlink(missing_ok=True)
