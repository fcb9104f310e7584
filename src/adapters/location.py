"""In-app URL location.

Implements ``LocationPort``. The console has no browser, so each list tab
keeps its own path and query string and shows it in a location bar that
can be copied, or edited to open a shared view.
"""

from __future__ import annotations

from typing import Tuple


def split_route(route: str) -> Tuple[str, str]:
    """Split ``/products?search=shoe`` into ``("/products", "search=shoe")``."""

    path, _, query_string = (route or "").strip().partition("?")
    path = "/" + path.strip("/")
    return path, query_string


class MemoryLocation:
    """Path plus the current query string."""

    def __init__(self, path: str, query_string: str = "") -> None:
        self.path = path
        self._query_string = query_string.lstrip("?")

    def read(self) -> str:
        return self._query_string

    def replace(self, query_string: str) -> None:
        self._query_string = query_string.lstrip("?")

    @property
    def url(self) -> str:
        return f"{self.path}?{self._query_string}" if self._query_string else self.path
