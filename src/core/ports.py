"""Ports (interfaces) used by the core controllers.

Ports define the minimal contracts for timers, the URL location and the REST
collaborator so the core can run under Textual, a plain asyncio loop or a
manual scheduler in tests.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol


class CancellableHandle(Protocol):
    def cancel(self) -> None:
        ...


class SchedulerPort(Protocol):
    """Timer source. ``asyncio.AbstractEventLoop`` satisfies it as is."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> CancellableHandle:
        ...


class LocationPort(Protocol):
    """The single URL query string a list page mirrors its state into."""

    def read(self) -> str:
        ...

    def replace(self, query_string: str) -> None:
        ...


# Called with wire params, returns the raw list endpoint payload.
ListFetcher = Callable[[Mapping[str, Any]], Awaitable[Any]]

# Called with the form payload, returns the persisted entity.
SaveCallable = Callable[[dict], Awaitable[Any]]


class ResourcePort(Protocol):
    """CRUD operations of one REST resource."""

    async def list(self, params: Mapping[str, Any]) -> Any:
        ...

    async def create(self, payload: dict) -> Any:
        ...

    async def update(self, entity_id: Any, payload: dict) -> Any:
        ...

    async def delete(self, entity_id: Any) -> None:
        ...


class ListSourcePort(Protocol):
    """What the list controller needs from a list data source."""

    loading: bool
    error: Any

    def request(self, query: Any) -> Any:
        ...

    def detach(self) -> None:
        ...
