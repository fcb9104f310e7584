"""URL query-string codec for list queries.

Decoding is total: malformed or out-of-range values fall back to the
schema default instead of failing, so any shared or hand-edited URL still
opens a valid list view. Encoding omits every value equal to its default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from core.models import SORT_DIRECTIONS, FilterValue, Query, SortSpec

FILTER_KINDS = ("string", "integer", "enum", "boolean")

PAGE_PARAM = "page"
SEARCH_PARAM = "search"
SORT_BY_PARAM = "sortBy"
SORT_DIR_PARAM = "sortDir"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class FilterSpec:
    """One filter of a list page.

    ``wire_name`` and ``wire_values`` describe how the value is sent to the
    list endpoint when that differs from the URL form (e.g. the URL keeps
    ``verified=not-verified`` while the endpoint expects ``isVerified=0``).
    """

    name: str
    kind: str = "string"
    default: Optional[FilterValue] = None
    choices: Tuple[str, ...] = ()
    minimum: Optional[int] = None
    wire_name: Optional[str] = None
    wire_values: Optional[Mapping[Any, Any]] = None

    def __post_init__(self) -> None:
        if self.kind not in FILTER_KINDS:
            raise ValueError(f"Unsupported filter kind: {self.kind}")

    def coerce(self, raw: Any) -> Optional[FilterValue]:
        """Return ``raw`` as a valid value of this filter, or the default."""

        if raw is None:
            return self.default
        if self.kind == "integer":
            return self._coerce_int(raw)
        if self.kind == "boolean":
            return self._coerce_bool(raw)
        value = str(raw).strip()
        # Blank is "not set"; the URL cannot tell it apart from the default.
        if not value:
            return self.default
        if self.kind == "enum" and value not in self.choices:
            return self.default
        return value

    def encode(self, value: Any) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)

    def to_wire(self, value: Any) -> Any:
        if self.wire_values is not None:
            return self.wire_values.get(value, value)
        if isinstance(value, bool):
            return 1 if value else 0
        return value

    @property
    def param(self) -> str:
        return self.wire_name or self.name

    def _coerce_int(self, raw: Any) -> Optional[FilterValue]:
        if isinstance(raw, bool):
            return self.default
        if isinstance(raw, int):
            value = raw
        else:
            try:
                value = int(str(raw).strip())
            except ValueError:
                return self.default
        if self.minimum is not None and value < self.minimum:
            return self.default
        return value

    def _coerce_bool(self, raw: Any) -> Optional[FilterValue]:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        return self.default


@dataclass(frozen=True)
class QuerySchema:
    """Closed set of filters and sort fields of one list page."""

    filters: Tuple[FilterSpec, ...] = ()
    sort_fields: Tuple[str, ...] = ()
    default_sort: Optional[SortSpec] = None
    search_param: str = SEARCH_PARAM
    _by_name: Dict[str, FilterSpec] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_name", {spec.name: spec for spec in self.filters})

    def filter_spec(self, name: str) -> Optional[FilterSpec]:
        return self._by_name.get(name)

    def default_filters(self) -> Dict[str, Optional[FilterValue]]:
        return {spec.name: spec.default for spec in self.filters}

    def default_query(self) -> Query:
        return Query(search="", filters=self.default_filters(), sort=self.default_sort, page=1)

    def coerce_sort(self, sort_field: Optional[str], direction: Optional[str]) -> Optional[SortSpec]:
        default = self.default_sort
        if sort_field not in self.sort_fields:
            sort_field = default.field if default else None
        if sort_field is None:
            return None
        if direction not in SORT_DIRECTIONS:
            direction = default.direction if default else "asc"
        return SortSpec(sort_field, direction)


def normalize(query: Query, schema: QuerySchema) -> Query:
    """Return ``query`` with defaults filled in and invalid values replaced."""

    filters = {spec.name: spec.coerce(query.filters.get(spec.name)) for spec in schema.filters}
    if query.sort is None:
        sort = schema.default_sort
    else:
        sort = schema.coerce_sort(query.sort.field, query.sort.direction)
    return Query(search=query.search.strip(), filters=filters, sort=sort, page=max(1, int(query.page)))


def encode(query: Query, schema: QuerySchema) -> str:
    """Serialize ``query`` to a URL query string without the leading ``?``."""

    query = normalize(query, schema)
    params: List[Tuple[str, str]] = []
    if query.page != 1:
        params.append((PAGE_PARAM, str(query.page)))
    if query.search:
        params.append((SEARCH_PARAM, query.search))
    for spec in schema.filters:
        value = query.filters.get(spec.name)
        if value is None or value == spec.default:
            continue
        params.append((spec.name, spec.encode(value)))

    default = schema.default_sort
    if query.sort is not None:
        if default is None or query.sort.field != default.field:
            params.append((SORT_BY_PARAM, query.sort.field))
        if default is None or query.sort.direction != default.direction:
            params.append((SORT_DIR_PARAM, query.sort.direction))
    return urlencode(params)


def decode(query_string: str, schema: QuerySchema) -> Query:
    """Parse a URL query string into a query valid for ``schema``.

    Never raises for malformed input; unknown keys are ignored.
    """

    raw: Dict[str, str] = dict(parse_qsl((query_string or "").lstrip("?")))

    try:
        page = int(raw.get(PAGE_PARAM, "1"))
    except ValueError:
        page = 1
    if page < 1:
        page = 1

    filters = {spec.name: spec.coerce(raw.get(spec.name)) for spec in schema.filters}
    sort = schema.coerce_sort(raw.get(SORT_BY_PARAM), raw.get(SORT_DIR_PARAM))
    return Query(search=raw.get(SEARCH_PARAM, "").strip(), filters=filters, sort=sort, page=page)


def build_wire_params(query: Query, schema: QuerySchema, page_size: int) -> Dict[str, Any]:
    """Return the list endpoint parameters for ``query``."""

    params: Dict[str, Any] = {"page": query.page, "limit": page_size}
    term = query.request_search
    if term:
        params[schema.search_param] = term
    if query.sort is not None:
        params[SORT_BY_PARAM] = query.sort.field
        params[SORT_DIR_PARAM] = query.sort.direction
    for spec in schema.filters:
        value = query.filters.get(spec.name, spec.default)
        if value is None or value == spec.default or value == "":
            continue
        params[spec.param] = spec.to_wire(value)
    return params
