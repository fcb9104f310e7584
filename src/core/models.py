"""Core domain models.

These dataclasses are shared across the core, the adapters and the frontend
to avoid coupling list and form logic to transport or widget types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

FilterValue = Union[str, int, bool]

# Field name (or "global") -> ordered messages. Empty lists are never stored.
FieldErrors = Dict[str, List[str]]

GLOBAL_ERROR_KEY = "global"

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortSpec:
    """Sort column and direction for a list page."""

    field: str
    direction: str = "desc"


@dataclass(frozen=True)
class Query:
    """Canonical list query: search text, filters, sort and page."""

    search: str = ""
    filters: Mapping[str, FilterValue] = field(default_factory=dict)
    sort: Optional[SortSpec] = None
    page: int = 1

    def __post_init__(self) -> None:
        # Frozen, so normalize through object.__setattr__.
        if self.page < 1:
            object.__setattr__(self, "page", 1)
        object.__setattr__(self, "filters", MappingProxyType(dict(self.filters)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return (
            self.search == other.search
            and dict(self.filters) == dict(other.filters)
            and self.sort == other.sort
            and self.page == other.page
        )

    def __hash__(self) -> int:
        return hash((self.search, tuple(sorted(self.filters.items())), self.sort, self.page))

    @property
    def request_search(self) -> str:
        """Search text as it is sent to the list endpoint."""

        return self.search.strip()


@dataclass(frozen=True)
class ListResult:
    """One page of items as applied by the list data source."""

    items: Tuple[Any, ...] = ()
    total: int = 0
    page_count: int = 1


@dataclass
class FormSnapshot:
    """Initial and current values of one open form dialog."""

    initial: Dict[str, Any]
    current: Dict[str, Any]

    @property
    def dirty(self) -> bool:
        return self.initial != self.current
