"""Remote list data source with stale-response protection.

Every issued request gets a token from a monotonically increasing counter.
A response is applied only if its token is still the latest issued one, so
a slow reply to an older query can never overwrite a newer result.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import math
from typing import Any, Callable, Optional, Set, Tuple

from core.config import ListConfig
from core.errors import ConsoleError, ServerFailure, StaleResponse, classify
from core.models import ListResult, Query
from core.ports import ListFetcher
from core.query_codec import QuerySchema, build_wire_params

LOGGER = logging.getLogger(__name__)


def normalize_list_payload(payload: Any, page: int, page_size: int) -> ListResult:
    """Turn a list endpoint payload into a ``ListResult``.

    Paginated payloads are ``{"items", "total", "pages"}``; the page count is
    always derived from ``total`` and the page size. A bare list means
    the endpoint ignored paging, so the requested page is cut client-side.
    """

    if isinstance(payload, (list, tuple)):
        total = len(payload)
        page_count = max(1, math.ceil(total / page_size))
        start = (page - 1) * page_size
        return ListResult(items=tuple(payload[start : start + page_size]), total=total, page_count=page_count)

    if not isinstance(payload, dict):
        raise ServerFailure(payload=payload, message="Unexpected list response.")

    items = payload.get("items")
    if items is None:
        items = payload.get("data", [])
    if not isinstance(items, (list, tuple)):
        raise ServerFailure(payload=payload, message="Unexpected list response.")

    total = payload.get("total")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        total = len(items)
    pages = max(1, math.ceil(total / page_size))
    if payload.get("pages") not in (None, pages):
        LOGGER.debug("Ignoring server page count %r, %s items make %s pages", payload.get("pages"), total, pages)
    return ListResult(items=tuple(items[:page_size]), total=total, page_count=pages)


class ListDataSource:
    """Loads pages from a list endpoint and owns the last applied result."""

    def __init__(
        self,
        fetch: ListFetcher,
        schema: QuerySchema,
        config: ListConfig = ListConfig(),
        on_change: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._fetch = fetch
        self._schema = schema
        self._config = config
        self._on_change = on_change
        self._tokens = itertools.count(1)
        self._latest = 0
        self._detached = False
        self._tasks: Set[asyncio.Task] = set()
        self._result = ListResult()
        self.loading = False
        self.error: Optional[ConsoleError] = None
        self.has_loaded = False
        self.last_query: Optional[Query] = None

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._result.items

    @property
    def total(self) -> int:
        return self._result.total

    @property
    def page_count(self) -> int:
        return self._result.page_count

    @property
    def latest_token(self) -> int:
        return self._latest

    @property
    def result(self) -> ListResult:
        return self._result

    def set_listener(self, on_change: Optional[Callable[[], Any]]) -> None:
        self._on_change = on_change

    async def load(self, query: Query) -> Optional[ListResult]:
        """Fetch ``query`` and apply the response unless it went stale.

        Returns the applied result, or ``None`` when the request failed or
        was superseded.
        """

        token = next(self._tokens)
        self._latest = token
        self._detached = False
        self.last_query = query
        self.loading = True
        self._notify()

        params = build_wire_params(query, self._schema, self._config.page_size)
        LOGGER.debug("List request %s: %s", token, params)
        try:
            payload = await self._fetch(params)
            result = normalize_list_payload(payload, query.page, self._config.page_size)
        except asyncio.CancelledError:
            if self._check_stale(token) is None:
                LOGGER.debug("List request %s cancelled", token)
                self.loading = False
                self._notify()
            raise
        except Exception as exc:
            stale = self._check_stale(token)
            if stale is not None:
                LOGGER.debug("Discarded failed %s", stale)
                return None
            self.error = classify(exc)
            LOGGER.warning("List request %s failed: %s", token, self.error.message)
            if not self.has_loaded:
                self._result = ListResult()
            self.loading = False
            self._notify()
            return None

        stale = self._check_stale(token)
        if stale is not None:
            LOGGER.debug("Discarded %s", stale)
            return None

        self._result = result
        self.error = None
        self.has_loaded = True
        self.loading = False
        self._notify()
        return result

    def request(self, query: Query) -> asyncio.Task:
        """Issue ``load(query)`` as a tracked task on the running loop."""

        task = asyncio.get_running_loop().create_task(self.load(query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def reload(self) -> Optional[asyncio.Task]:
        if self.last_query is None:
            return None
        return self.request(self.last_query)

    async def drain(self) -> None:
        """Wait until every outstanding request has settled."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def detach(self) -> None:
        """Drop every in-flight response; used when the list view unmounts."""

        self._detached = True
        for task in list(self._tasks):
            task.cancel()
        self.loading = False

    def _check_stale(self, token: int) -> Optional[StaleResponse]:
        if self._detached or token != self._latest:
            return StaleResponse(token, self._latest)
        return None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
