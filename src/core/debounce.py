"""Debouncer built on a scheduler port."""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from core.ports import CancellableHandle, SchedulerPort

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Emit only the latest scheduled value after a quiet period.

    ``schedule`` never emits synchronously; each call replaces the pending
    value and restarts the delay. Owners must call ``cancel`` on teardown.
    """

    def __init__(self, scheduler: SchedulerPort, on_emit: Callable[[T], Any]) -> None:
        self._scheduler = scheduler
        self._on_emit = on_emit
        self._handle: Optional[CancellableHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, value: T, delay: float) -> None:
        self.cancel()
        self._handle = self._scheduler.call_later(delay, self._fire, value)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, value: T) -> None:
        self._handle = None
        self._on_emit(value)
