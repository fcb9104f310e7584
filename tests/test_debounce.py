from __future__ import annotations

import asyncio

from core.debounce import Debouncer
from core.scheduler import ManualScheduler


def test_emits_only_the_latest_value_after_quiet_period() -> None:
    scheduler = ManualScheduler()
    emitted: list[str] = []
    debouncer: Debouncer[str] = Debouncer(scheduler, emitted.append)

    debouncer.schedule("s", 0.4)
    scheduler.advance(0.1)
    debouncer.schedule("sh", 0.4)
    scheduler.advance(0.1)
    debouncer.schedule("shoe", 0.4)

    assert scheduler.advance(0.3) == 0
    assert emitted == []
    assert debouncer.pending

    scheduler.advance(0.2)
    assert emitted == ["shoe"]
    assert not debouncer.pending


def test_schedule_never_emits_synchronously() -> None:
    scheduler = ManualScheduler()
    emitted: list[int] = []
    debouncer: Debouncer[int] = Debouncer(scheduler, emitted.append)

    debouncer.schedule(1, 0)

    assert emitted == []
    scheduler.advance(0)
    assert emitted == [1]


def test_cancel_discards_pending_emission() -> None:
    scheduler = ManualScheduler()
    emitted: list[int] = []
    debouncer: Debouncer[int] = Debouncer(scheduler, emitted.append)

    debouncer.schedule(1, 0.3)
    debouncer.cancel()
    scheduler.advance(1)

    assert emitted == []
    assert scheduler.pending == 0


def test_delay_is_per_call() -> None:
    scheduler = ManualScheduler()
    emitted: list[str] = []
    debouncer: Debouncer[str] = Debouncer(scheduler, emitted.append)

    debouncer.schedule("slow", 1.0)
    debouncer.schedule("fast", 0.1)
    scheduler.advance(0.2)

    assert emitted == ["fast"]


def test_runs_on_asyncio_loop() -> None:
    async def scenario() -> list[str]:
        emitted: list[str] = []
        debouncer: Debouncer[str] = Debouncer(asyncio.get_running_loop(), emitted.append)
        debouncer.schedule("a", 0.01)
        debouncer.schedule("b", 0.01)
        await asyncio.sleep(0.05)
        return emitted

    assert asyncio.run(scenario()) == ["b"]
