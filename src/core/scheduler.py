"""Explicit scheduler with a virtual clock.

Satisfies ``SchedulerPort`` without an event loop: callbacks run only when
``advance`` moves the clock past their due time. Useful for scripted runs
and for tests that need exact control over debounce windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import itertools
from typing import Any, Callable, List, Tuple


@dataclass
class ManualHandle:
    due: float
    seq: int
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    cancelled: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Run scheduled callbacks in due-time order as the clock advances."""

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._handles: List[ManualHandle] = []

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        handle = ManualHandle(self._now + max(0.0, delay), next(self._seq), callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._handles if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run everything that became due.

        Returns the number of callbacks that ran. Callbacks scheduled while
        advancing run too if they fall inside the window.
        """

        target = self._now + seconds
        ran = 0
        while True:
            due = [h for h in self._handles if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self._handles.remove(handle)
            self._now = handle.due
            handle.callback(*handle.args)
            ran += 1
        self._now = target
        self._handles = [h for h in self._handles if not h.cancelled]
        return ran
