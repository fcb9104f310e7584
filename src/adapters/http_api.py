"""REST API adapter.

Implements ``ResourcePort`` on top of ``httpx.AsyncClient`` and translates
transport errors and HTTP statuses into the core error kinds.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from core.config import ApiConfig
from core.errors import NetworkFailure, ServerFailure, ValidationFailure

LOGGER = logging.getLogger(__name__)

VALIDATION_STATUSES = {400, 422}


def build_async_client(
    config: ApiConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the console defaults.

    The token is optional; sessions based on cookies work without it.
    """

    headers = {"Accept": "application/json"}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=httpx.Timeout(config.timeout_seconds),
        headers=headers,
        transport=transport,
    )


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text or None


class RestResource:
    """CRUD calls for one collection, e.g. ``/products``."""

    def __init__(self, client: httpx.AsyncClient, path: str) -> None:
        self._client = client
        self._path = "/" + path.strip("/")

    @property
    def path(self) -> str:
        return self._path

    async def list(self, params: Mapping[str, Any]) -> Any:
        return await self._request("GET", self._path, params=dict(params))

    async def create(self, payload: dict) -> Any:
        return await self._request("POST", self._path, json=payload)

    async def update(self, entity_id: Any, payload: dict) -> Any:
        return await self._request("PATCH", f"{self._path}/{entity_id}", json=payload)

    async def delete(self, entity_id: Any) -> None:
        await self._request("DELETE", f"{self._path}/{entity_id}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            LOGGER.warning("%s %s failed: %s", method, url, exc)
            raise NetworkFailure() from exc

        if response.is_success:
            return _json_or_none(response)

        payload = _json_or_none(response)
        status = response.status_code
        LOGGER.info("%s %s returned %s", method, url, status)
        if status in VALIDATION_STATUSES and isinstance(payload, dict) and isinstance(payload.get("errors"), dict):
            raise ValidationFailure(payload, status=status)
        raise ServerFailure(status=status, payload=payload)


class AdminApi:
    """The console's REST resources sharing one client."""

    RESOURCES = {
        "sections": "/sections",
        "categories": "/categories",
        "products": "/products",
        "promocodes": "/promocodes",
        "users": "/users",
    }

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._resources = {name: RestResource(client, path) for name, path in self.RESOURCES.items()}

    def resource(self, name: str) -> RestResource:
        try:
            return self._resources[name]
        except KeyError:
            raise ValueError(f"Unknown resource: {name}") from None

    async def aclose(self) -> None:
        await self._client.aclose()
