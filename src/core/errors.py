"""Error kinds raised by collaborators and handled by the core.

Collaborator adapters translate their own failures into these classes so the
list source and the form controller never see transport-specific exceptions.
"""

from __future__ import annotations

from typing import Any, Optional

UNEXPECTED_ERROR_MESSAGE = "Unexpected error. Please try again later."
NETWORK_ERROR_MESSAGE = "Network error. Check your connection and try again."


class ConsoleError(Exception):
    """Base class for every failure the console surfaces or recovers from."""

    default_message = UNEXPECTED_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NetworkFailure(ConsoleError):
    """No response was received. Retried only by user action."""

    default_message = NETWORK_ERROR_MESSAGE


class ValidationFailure(ConsoleError):
    """Structured 4xx carrying per-field errors."""

    def __init__(self, payload: Any, status: int = 422) -> None:
        self.payload = payload
        self.status = status
        message = None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            message = payload["message"]
        super().__init__(message or "Validation failed.")


class ServerFailure(ConsoleError):
    """5xx or unstructured 4xx, surfaced as a single global message."""

    def __init__(self, status: Optional[int] = None, payload: Any = None, message: Optional[str] = None) -> None:
        self.status = status
        self.payload = payload
        super().__init__(message or _payload_message(payload))


class StaleResponse(ConsoleError):
    """A response for a request that is no longer the latest one."""

    def __init__(self, token: int, latest: int) -> None:
        self.token = token
        self.latest = latest
        super().__init__(f"response {token} superseded by {latest}")


def _payload_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return None


def classify(exc: BaseException) -> ConsoleError:
    """Return the console error for any exception raised by a collaborator."""

    if isinstance(exc, ConsoleError):
        return exc
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return NetworkFailure(str(exc) or None)
    return ServerFailure(message=UNEXPECTED_ERROR_MESSAGE)
