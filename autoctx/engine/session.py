"""
Recording-session orchestration.

A RecordingSession owns one ContextEngine and, while running:
- one task per sensor provider, feeding events into the engine as they arrive
- one tick task, sampling the engine at the recording cadence

Everything runs on a single asyncio loop; the estimators never block and
publish immutable snapshots, so a tick never sees a half-applied sample.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import AsyncIterable, Awaitable, Callable, Optional

from autoctx.engine.cadence import first_tick_delay_ms, should_record_at_frequency
from autoctx.engine.config import EngineConfig
from autoctx.engine.engine import ContextEngine
from autoctx.engine.types import AccelSample, AutomaticContext, ContextSample, GpsFix
from autoctx.utils.clock import Clock, MonotonicClock
from autoctx.utils.log import get_logger

logger = get_logger(__name__)

SampleCallback = Callable[[ContextSample], None]
Sleep = Callable[[float], Awaitable[None]]


class RecordingSession:
    """
    Runs the context engine for the lifetime of one recording.

    Parameters
    ----------
    frequency
        Recording cadence, e.g. "10s" or "1m"; drives the tick period.
    location_provider
        Async iterable of GpsFix events, or None when location is unavailable.
    motion_provider
        Async iterable of AccelSample events, or None without accelerometer.
    on_sample
        Called with every ContextSample resolved at a tick.
    cfg
        Engine thresholds.
    clock
        Time source for ticks and for stamping sensor arrivals; providers may
        stamp their events on any clock.
    sleep
        Coroutine used to wait between ticks (injectable for tests).
    align_to_wall
        Align the first tick to a wall-clock multiple of the period.
    """
    def __init__(
        self,
        frequency: str,
        location_provider: Optional[AsyncIterable[GpsFix]] = None,
        motion_provider: Optional[AsyncIterable[AccelSample]] = None,
        on_sample: Optional[SampleCallback] = None,
        cfg: EngineConfig | None = None,
        clock: Clock | None = None,
        sleep: Sleep = asyncio.sleep,
        align_to_wall: bool = True,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self._log_extra = {"session": self.session_id}
        self.engine = ContextEngine.for_frequency(frequency, cfg)
        self.frequency = frequency
        self._location_provider = location_provider
        self._motion_provider = motion_provider
        self._on_sample = on_sample
        self._clock = clock or MonotonicClock()
        self._sleep = sleep
        self._align = align_to_wall
        self._tasks: list[asyncio.Task] = []
        self._is_running = False
        self._latest: Optional[ContextSample] = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def latest(self) -> Optional[ContextSample]:
        """Last resolved sample; held over until the next tick."""
        return self._latest

    @property
    def context(self) -> AutomaticContext:
        return self.engine.context

    async def start(self) -> None:
        """Reset the engine and start the provider and tick tasks."""
        if self._is_running:
            logger.warning("Session %s is already running", self.session_id, extra=self._log_extra)
            return

        self.engine.reset()
        self._latest = None
        self._is_running = True
        if self._location_provider is not None:
            self._tasks.append(asyncio.create_task(self._consume_gps(self._location_provider)))
        else:
            logger.warning("Session %s has no location provider", self.session_id, extra=self._log_extra)
        if self._motion_provider is not None:
            self._tasks.append(asyncio.create_task(self._consume_motion(self._motion_provider)))
        else:
            logger.warning(
                "Session %s has no motion provider, walking detection disabled",
                self.session_id,
                extra=self._log_extra,
            )
        self._tasks.append(asyncio.create_task(self._tick_loop()))
        logger.info("Session %s started (frequency=%s)", self.session_id, self.frequency, extra=self._log_extra)

    async def stop(self) -> None:
        """Cancel every task and discard the engine state."""
        if not self._is_running:
            return

        self._is_running = False
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.engine.reset()
        logger.info("Session %s stopped", self.session_id, extra=self._log_extra)

    async def __aenter__(self) -> "RecordingSession":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    def tick(self) -> ContextSample:
        """Sample the engine now and notify the callback."""
        sample = self.engine.sample_context(self._clock.now_ms())
        self._latest = sample
        if self._on_sample is not None:
            try:
                self._on_sample(sample)
            except Exception:
                logger.exception("Context sample callback failed", extra=self._log_extra)
        return sample

    async def _consume_gps(self, provider: AsyncIterable[GpsFix]) -> None:
        try:
            async for fix in provider:
                self.engine.on_gps_fix(fix, received_ms=self._clock.now_ms())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Location provider failed: %s", e, extra=self._log_extra)
        else:
            logger.info("Location provider ended for session %s", self.session_id, extra=self._log_extra)

    async def _consume_motion(self, provider: AsyncIterable[AccelSample]) -> None:
        try:
            async for sample in provider:
                self.engine.on_accel_sample(sample, received_ms=self._clock.now_ms())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Motion provider failed: %s", e, extra=self._log_extra)
        else:
            logger.info("Motion provider ended for session %s", self.session_id, extra=self._log_extra)

    async def _tick_loop(self) -> None:
        period = self.engine.period_ms
        delay = first_tick_delay_ms(self._clock.wall_ms(), period) if self._align else period
        deadline = self._clock.now_ms() + delay
        while self._is_running:
            wait_ms = deadline - self._clock.now_ms()
            await self._sleep(max(0.0, wait_ms) / 1000.0)
            if not self._is_running:
                break
            if should_record_at_frequency(deadline - period, period, self._clock.now_ms()):
                self.tick()
                # fixed increments keep ticks from drifting
                deadline += period
