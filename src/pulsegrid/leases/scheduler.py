# src/pulsegrid/leases/scheduler.py

from __future__ import annotations

"""
Assignment scheduler.

Drives the generator:
- once immediately at start,
- then every interval_seconds,
- and on demand via trigger_once() (ops / tests).

A failing cycle is logged and the loop keeps going; the next tick reruns the
whole cycle from scratch. There is no retry inside a cycle.

The loop runs on its own asyncio event loop in a daemon thread, so the
blocking console REPL can run in parallel. Scheduled ticks and manual
triggers are not serialized here; the generator's guard handles overlap.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Awaitable, Callable

from ..core.ports import Clock
from .generator import AssignmentGenerator
from .lease_models import GenerationResult

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class Scheduler:
    def __init__(
        self,
        generator: AssignmentGenerator,
        *,
        interval_seconds: float = 300.0,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self._generator = generator
        self.interval_seconds = max(0.01, float(interval_seconds))
        self._clock: Clock = clock or time.time
        self._sleep = sleep

        self.cycles_run = 0
        self.last_result: GenerationResult | None = None
        self.last_run_at: float | None = None

        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None

    # ---- cycle ----

    def trigger_once(self) -> GenerationResult:
        """Run one cycle now and hand its result to the caller."""
        logger.info("Running assignment cycle manually")
        return self._tick()

    def _tick(self) -> GenerationResult:
        self.last_run_at = self._clock()
        try:
            result = self._generator.run()
        except Exception as e:
            # Unexpected failure: log it and let the next tick retry.
            logger.exception("Assignment cycle crashed")
            result = GenerationResult.failed(f"unexpected error: {e}")

        self.cycles_run += 1
        self.last_result = result

        if result.success:
            logger.info(
                "Scheduler: created %d assignments for %d workers",
                result.assignments_created,
                result.workers_involved,
            )
        else:
            logger.warning("Scheduler: cycle failed: %s", result.reason)
        return result

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """
        Tick immediately, then every interval_seconds until stop_event is set.

        To stop the loop, set stop_event (or cancel the coroutine).
        """
        logger.info("Assignment scheduler started (every %.0fs)", self.interval_seconds)
        while not stop_event.is_set():
            self._tick()
            await self._wait(stop_event)
        logger.info("Assignment scheduler stopped after %d cycles", self.cycles_run)

    async def _wait(self, stop_event: asyncio.Event) -> None:
        if self._sleep is not None:
            await self._sleep(self.interval_seconds)
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)

    # ---- background thread lifecycle ----

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start run_forever() on a private event loop in a daemon thread."""
        if self.running:
            return

        ready = threading.Event()

        def runner() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            stop_event = asyncio.Event()

            self._loop = loop
            self._stop_event = stop_event
            ready.set()

            try:
                loop.run_until_complete(self.run_forever(stop_event))
            finally:
                with contextlib.suppress(Exception):
                    loop.close()

        t = threading.Thread(target=runner, name="pulsegrid-scheduler", daemon=True)
        self._thread = t
        t.start()

        if not ready.wait(timeout=5.0):
            logger.error("Scheduler thread did not initialize properly.")
            return
        logger.info("Scheduler background thread started.")

    def stop(self) -> None:
        loop, stop_event = self._loop, self._stop_event
        if loop is None or stop_event is None:
            return
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            # Loop already closed.
            logger.debug("Scheduler loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)
