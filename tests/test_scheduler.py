# tests/test_scheduler.py

from __future__ import annotations

import asyncio
import time

import pytest

from pulsegrid.leases.scheduler import Scheduler

from .fakes import ScriptedGenerator, add_tasks, add_workers


@pytest.mark.asyncio
async def test_scheduler_ticks_immediately_then_every_interval() -> None:
    gen = ScriptedGenerator()
    stop = asyncio.Event()
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 3:
            stop.set()

    scheduler = Scheduler(gen, interval_seconds=300, sleep=fake_sleep)
    await scheduler.run_forever(stop)

    # One immediate cycle plus one per elapsed interval.
    assert gen.calls == 3
    assert sleeps == [300.0, 300.0, 300.0]
    assert scheduler.cycles_run == 3


@pytest.mark.asyncio
async def test_failed_cycle_does_not_stop_the_loop() -> None:
    gen = ScriptedGenerator(fail_on={1})
    stop = asyncio.Event()

    async def fake_sleep(seconds: float) -> None:
        if gen.calls >= 2:
            stop.set()

    scheduler = Scheduler(gen, interval_seconds=1, sleep=fake_sleep)
    await scheduler.run_forever(stop)

    assert gen.calls == 2
    assert scheduler.last_result is not None
    assert scheduler.last_result.success


@pytest.mark.asyncio
async def test_scheduler_can_be_cancelled() -> None:
    gen = ScriptedGenerator()
    scheduler = Scheduler(gen, interval_seconds=0.01)

    runner = asyncio.create_task(scheduler.run_forever(asyncio.Event()))
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert gen.calls >= 1


def test_trigger_once_returns_result_even_on_crash() -> None:
    gen = ScriptedGenerator(fail_on={1})
    scheduler = Scheduler(gen)

    crashed = scheduler.trigger_once()
    assert not crashed.success
    assert "boom" in (crashed.reason or "")

    ok = scheduler.trigger_once()
    assert ok.as_dict() == {"success": True, "assignments_created": 2, "workers_involved": 1}


def test_trigger_once_runs_the_real_generator(state) -> None:
    add_workers(state, 3)
    add_tasks(state, 10)

    result = state.scheduler.trigger_once()

    assert result.success
    assert result.workers_involved == 3
    assert state.scheduler.last_result == result


def test_background_thread_start_stop() -> None:
    gen = ScriptedGenerator()
    scheduler = Scheduler(gen, interval_seconds=0.01)

    scheduler.start()
    try:
        deadline = time.monotonic() + 5.0
        while gen.calls < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert scheduler.running
    finally:
        scheduler.stop()
        scheduler.join(timeout=5.0)

    assert gen.calls >= 2
    assert not scheduler.running
    # Stopping twice is harmless.
    scheduler.stop()
