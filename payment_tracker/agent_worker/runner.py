"""
Periodic runner: invokes TrackingEngine.track() on a fixed interval.

Each tick is awaited to completion before the next one is scheduled, so
cycles never overlap. A failing tick is logged and the loop carries on;
the checkpoint makes the next tick resume from the first unprocessed block.
Started and stopped by the FastAPI lifespan (or main.py in worker-only mode).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from payment_tracker.tracker_logging import get_logger, tracking_context

logger = get_logger(__name__)

DEFAULT_INTERVAL_SEC = 30.0
SHUTDOWN_TIMEOUT_SEC = 15.0


@dataclass
class RunnerState:
    """Mutable state for health reporting."""

    tick_count: int = 0
    error_count: int = 0
    last_tick_at: float | None = None
    last_error: str | None = None
    last_investments: int = 0


class PeriodicTracker:
    """Async ticker around an object exposing `async track() -> int`."""

    def __init__(
        self,
        engine: Any,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        *,
        name: str = "transaction-tracker",
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._engine = engine
        self._interval = interval_sec
        self._name = name
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.state = RunnerState()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        """Run one tracking cycle; exceptions are logged, never raised."""
        self.state.tick_count += 1
        self.state.last_tick_at = time.time()
        try:
            with tracking_context(runner=self._name, tick=self.state.tick_count):
                self.state.last_investments = await self._engine.track()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.state.error_count += 1
            self.state.last_error = str(e)
            logger.exception(
                "periodic_tick_failed",
                runner=self._name,
                tick=self.state.tick_count,
                error=str(e),
            )

    async def run(self) -> None:
        """Tick until stop() is requested."""
        logger.info("periodic_runner_started", runner=self._name, interval_sec=self._interval)
        while not self._stop_event.is_set():
            tick_start = time.monotonic()
            await self.tick()
            remaining = self._interval - (time.monotonic() - tick_start)
            if remaining <= 0:
                continue
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass
        logger.info("periodic_runner_stopped", runner=self._name, tick_count=self.state.tick_count)

    def start(self) -> "asyncio.Task[None]":
        """Schedule run() on the current event loop."""
        if self.running:
            raise RuntimeError(f"{self._name} is already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name=self._name)
        return self._task

    async def stop(self, timeout_sec: float = SHUTDOWN_TIMEOUT_SEC) -> None:
        """Request shutdown; wait for the in-flight tick, cancel if it overruns."""
        self._stop_event.set()
        task = self._task
        if task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("periodic_runner_shutdown_timeout", runner=self._name, timeout_sec=timeout_sec)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
