"""List-query controller.

Owns the canonical query of one list page and keeps the list source and the
URL location consistent with it:

1) mount decodes the location before any interaction
2) free-text search is debounced, filters, sort and paging apply at once
3) every change that alters the query goes to the source, then to the URL
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
import logging
from typing import Any, Optional

from core.config import ListConfig
from core.debounce import Debouncer
from core.errors import ConsoleError
from core.models import Query
from core.ports import ListSourcePort, LocationPort, SchedulerPort
from core.query_codec import QuerySchema, decode, encode

LOGGER = logging.getLogger(__name__)


class ListState(str, Enum):
    IDLE = "idle"
    PENDING_FETCH = "pending_fetch"
    ERROR = "error"


class ListQueryController:
    """Search, filter, sort and page state for one list view."""

    def __init__(
        self,
        schema: QuerySchema,
        source: ListSourcePort,
        location: LocationPort,
        scheduler: SchedulerPort,
        config: ListConfig = ListConfig(),
    ) -> None:
        self._schema = schema
        self._source = source
        self._location = location
        self._config = config
        self._query = schema.default_query()
        self._search_text = ""
        self._debouncer: Debouncer[str] = Debouncer(scheduler, self._apply_search)
        self._mounted = False

    @property
    def query(self) -> Query:
        return self._query

    @property
    def schema(self) -> QuerySchema:
        return self._schema

    @property
    def search_text(self) -> str:
        """Raw search text as typed, possibly ahead of ``query.search``."""

        return self._search_text

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def state(self) -> ListState:
        if self._source.loading:
            return ListState.PENDING_FETCH
        if self._source.error is not None:
            return ListState.ERROR
        return ListState.IDLE

    @property
    def error(self) -> Optional[ConsoleError]:
        return self._source.error

    def mount(self) -> None:
        """Restore the query from the location and issue the first load."""

        self._query = decode(self._location.read(), self._schema)
        self._search_text = self._query.search
        self._mounted = True
        LOGGER.debug("Mounted list with %s", self._query)
        self._source.request(self._query)

    def teardown(self) -> None:
        self._debouncer.cancel()
        self._source.detach()
        self._mounted = False

    def sync_from_location(self) -> None:
        """Adopt a location changed from outside (back/forward navigation)."""

        query = decode(self._location.read(), self._schema)
        if query == self._query:
            return
        self._debouncer.cancel()
        self._query = query
        self._search_text = query.search
        self._source.request(query)

    def set_search_text(self, raw: str) -> None:
        self._search_text = raw
        self._debouncer.schedule(raw, self._config.search_delay)

    def set_filter(self, key: str, value: Any) -> None:
        spec = self._schema.filter_spec(key)
        if spec is None:
            LOGGER.warning("Ignoring unknown filter %s", key)
            return
        value = spec.coerce(value)
        if self._query.filters.get(key) == value:
            return
        filters = dict(self._query.filters)
        filters[key] = value
        self._publish(replace(self._query, filters=filters, page=1))

    def set_sort(self, field: str, direction: str) -> None:
        if field not in self._schema.sort_fields:
            LOGGER.warning("Ignoring unknown sort field %s", field)
            return
        sort = self._schema.coerce_sort(field, direction)
        if sort == self._query.sort:
            return
        self._publish(replace(self._query, sort=sort, page=1))

    def set_page(self, page: int) -> None:
        self._publish(replace(self._query, page=max(1, int(page))))

    def clear_filters(self) -> None:
        """Reset filters and sort to their defaults; search is kept."""

        self._publish(
            Query(
                search=self._query.search,
                filters=self._schema.default_filters(),
                sort=self._schema.default_sort,
                page=1,
            )
        )

    def refresh(self) -> None:
        """Re-issue the current query, e.g. after a save or delete."""

        self._source.request(self._query)

    def _apply_search(self, raw: str) -> None:
        search = raw.strip()
        if search == self._query.search:
            return
        self._publish(replace(self._query, search=search, page=1))

    def _publish(self, query: Query) -> None:
        if query == self._query:
            return
        self._query = query
        self._source.request(query)
        self._location.replace(encode(query, self._schema))
