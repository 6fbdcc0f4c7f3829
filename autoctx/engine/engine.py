"""
Per-session context inference engine.

Bundles one instance of each estimator with the rule resolver and exposes
the API consumed by the measurement recorder:
- on_gps_fix / on_accel_sample: continuous sensor path
- sample_context: once per recording tick
- reset: at session start
"""

from __future__ import annotations

import math
from typing import Optional

from autoctx.engine.cadence import DEFAULT_FREQUENCY, parse_frequency_to_ms
from autoctx.engine.config import EngineConfig
from autoctx.engine.quality import combine
from autoctx.engine.resolver import ContextRuleResolver
from autoctx.engine.speed import GeoSpeedEstimator
from autoctx.engine.types import (
    AccelSample,
    AutomaticContext,
    ContextSample,
    DataQuality,
    GpsFix,
    SpeedEstimate,
    WalkingState,
)
from autoctx.engine.walking import WalkingSignatureDetector
from autoctx.utils.log import get_logger

logger = get_logger(__name__)


class ContextEngine:
    """
    Owns the estimator state of exactly one recording session.
    """
    def __init__(
        self,
        cfg: EngineConfig | None = None,
        period_ms: float | None = None,
    ) -> None:
        self.cfg = cfg or EngineConfig.default()
        self.period_ms = period_ms if period_ms is not None else parse_frequency_to_ms(DEFAULT_FREQUENCY)
        if self.period_ms <= 0:
            raise ValueError("sampling period must be positive")
        self.speed = GeoSpeedEstimator(self.cfg)
        self.walking = WalkingSignatureDetector(self.cfg)
        self.resolver = ContextRuleResolver(self.cfg)
        self._last_fix_ms: Optional[float] = None
        self._context = AutomaticContext.STATIONARY
        self._quality = DataQuality.POOR

    @classmethod
    def for_frequency(cls, frequency: str, cfg: EngineConfig | None = None) -> "ContextEngine":
        """Build an engine sampled at a recording frequency such as "10s"."""
        return cls(cfg, parse_frequency_to_ms(frequency))

    @property
    def context(self) -> AutomaticContext:
        """Label held since the last tick."""
        return self._context

    @property
    def quality(self) -> DataQuality:
        return self._quality

    def reset(self) -> None:
        self.speed.reset()
        self.walking.reset()
        self._last_fix_ms = None
        self._context = AutomaticContext.STATIONARY
        self._quality = DataQuality.POOR

    def on_gps_fix(self, fix: GpsFix, received_ms: float | None = None) -> SpeedEstimate:
        """
        Feed one location fix.

        `received_ms` is the arrival time on the clock `sample_context` is
        called with; GPS freshness is measured from it. Without it the fix
        timestamp stands in, which only works when both share a clock.
        """
        estimate = self.speed.update(fix)
        arrival = received_ms if received_ms is not None else fix.timestamp_ms
        if math.isfinite(arrival) and (self._last_fix_ms is None or arrival >= self._last_fix_ms):
            self._last_fix_ms = arrival
        return estimate

    def on_accel_sample(self, sample: AccelSample, received_ms: float | None = None) -> WalkingState:
        return self.walking.on_sample(sample, received_ms)

    def gps_fresh(self, now_ms: float) -> bool:
        if self._last_fix_ms is None or self.speed.estimate is None:
            return False
        age = now_ms - self._last_fix_ms
        return age <= self.cfg.gps_stale_ms(self.period_ms)

    def sample_context(self, now_ms: float) -> ContextSample:
        """
        Resolve the label for one sampling tick.

        Parameters
        ----------
        now_ms
            Tick time, on the clock sensor arrivals were stamped with.

        Returns
        -------
        ContextSample
            The resolved context and the combined data quality.
        """
        accel_stale = self.walking.check_timeout(now_ms)
        gps_fresh = self.gps_fresh(now_ms)
        estimate = self.speed.estimate
        walking = self.walking.state

        context = self.resolver.resolve(
            estimate, walking, self._context, gps_fresh, accel_stale
        )
        quality = combine(estimate.gps_quality if gps_fresh else None, walking.active)

        if context is not self._context:
            logger.info(
                "Context %s -> %s (speed=%.1f km/h, walking=%s, gps_fresh=%s)",
                self._context.value,
                context.value,
                self.speed.current_speed_kmh,
                walking.active,
                gps_fresh,
            )
        self._context = context
        self._quality = quality
        return ContextSample(context=context, quality=quality, timestamp_ms=now_ms)
