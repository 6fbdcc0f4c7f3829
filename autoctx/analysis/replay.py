"""
Replay a recorded sensor log through a fresh context engine.

Reproduces what a live recording session would have attached to each
measurement:
- Pass 0: drop events without a usable timestamp, order the rest by time
- Pass 1: feed events into the engine, ticking at every period boundary
- Pass 2: summarise time spent in each context
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from autoctx.engine.cadence import DEFAULT_FREQUENCY, parse_frequency_to_ms
from autoctx.engine.config import EngineConfig
from autoctx.engine.engine import ContextEngine
from autoctx.engine.types import AutomaticContext, ContextSample, DataQuality, GpsFix
from autoctx.parsers.sensor_log import SensorEvent
from autoctx.utils.log import get_logger

logger = get_logger(__name__)


@dataclass
class ReplayResult:
    """
    Outcome of one replay.

    Parameters
    ----------
    samples : list[ContextSample]
        One sample per tick, in time order.
    period_ms : float
        Tick period used.
    dropped : int
        Events discarded for lacking a finite timestamp.
    """
    samples: list[ContextSample] = field(default_factory=list)
    period_ms: float = 0.0
    dropped: int = 0

    @property
    def transitions(self) -> int:
        return sum(1 for a, b in zip(self.samples, self.samples[1:]) if a.context is not b.context)

    def seconds_by_context(self) -> dict[AutomaticContext, float]:
        counts = Counter(s.context for s in self.samples)
        return {ctx: counts[ctx] * self.period_ms / 1000.0 for ctx in AutomaticContext if counts[ctx]}

    def seconds_by_quality(self) -> dict[DataQuality, float]:
        counts = Counter(s.quality for s in self.samples)
        return {q: counts[q] * self.period_ms / 1000.0 for q in DataQuality if counts[q]}


class ReplayPipeline:
    """
    Deterministic offline driver for ContextEngine.
    """
    def __init__(self, cfg: EngineConfig | None = None, frequency: str = DEFAULT_FREQUENCY) -> None:
        self.cfg = cfg or EngineConfig.default()
        self.frequency = frequency
        self.period_ms = parse_frequency_to_ms(frequency)

    def run(self, events: Iterable[SensorEvent]) -> ReplayResult:
        logger.info("Starting replay (frequency=%s)", self.frequency)
        ordered, dropped = self._order(events)
        logger.info("Ordered %d events, dropped %d", len(ordered), dropped)
        result = ReplayResult(period_ms=self.period_ms, dropped=dropped)
        if not ordered:
            logger.warning("Nothing to replay")
            return result

        engine = ContextEngine(self.cfg, self.period_ms)
        next_tick = ordered[0].timestamp_ms + self.period_ms
        for ev in ordered:
            # events stamped exactly on a tick are applied before it
            while next_tick < ev.timestamp_ms:
                result.samples.append(engine.sample_context(next_tick))
                next_tick += self.period_ms
            if isinstance(ev, GpsFix):
                engine.on_gps_fix(ev)
            else:
                engine.on_accel_sample(ev)

        last_ts = ordered[-1].timestamp_ms
        while next_tick <= last_ts:
            result.samples.append(engine.sample_context(next_tick))
            next_tick += self.period_ms

        logger.info(
            "Replay complete: %d ticks, %d transitions", len(result.samples), result.transitions
        )
        return result

    def _order(self, events: Iterable[SensorEvent]) -> tuple[list[SensorEvent], int]:
        """
        Drop events with a non-finite timestamp and sort the rest by time.

        The sort is stable, so simultaneous events keep their log order.
        """
        kept: list[SensorEvent] = []
        dropped = 0
        for ev in events:
            if math.isfinite(ev.timestamp_ms):
                kept.append(ev)
            else:
                dropped += 1
        kept.sort(key=lambda e: e.timestamp_ms)
        return kept, dropped
