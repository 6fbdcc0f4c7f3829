"""
GPS speed estimation.

Turns successive GPS fixes into an EMA-smoothed ground speed plus a
good/poor quality flag. Glitches (teleports, bad accuracy, malformed
fixes) degrade the quality flag instead of raising.
"""

from __future__ import annotations

import math
from typing import Optional

from autoctx.engine.config import EngineConfig
from autoctx.engine.types import GpsFix, GpsQuality, SpeedEstimate
from autoctx.utils.geo import clamp, haversine, is_valid_coord, ms_to_kmh
from autoctx.utils.log import get_logger

logger = get_logger(__name__)


class GeoSpeedEstimator:
    """
    Stateful speed estimator owned by a single recording session.
    """
    def __init__(self, cfg: EngineConfig | None = None) -> None:
        self.cfg = cfg or EngineConfig.default()
        self._prev: Optional[GpsFix] = None
        self._ema = 0.0
        self._estimate: Optional[SpeedEstimate] = None

    @property
    def current_speed_kmh(self) -> float:
        return self._ema

    @property
    def estimate(self) -> Optional[SpeedEstimate]:
        """Last published estimate, None before the first fix."""
        return self._estimate

    def reset(self) -> None:
        self._prev = None
        self._ema = 0.0
        self._estimate = None

    def update(self, fix: GpsFix) -> SpeedEstimate:
        """
        Fold one fix into the speed estimate.

        Parameters
        ----------
        fix
            The newly received GPS fix.

        Returns
        -------
        SpeedEstimate
            Smoothed speed (km/h) and the quality of this fix.
        """
        quality = self._fix_quality(fix)

        if not math.isfinite(fix.timestamp_ms):
            logger.debug("Dropping GPS fix with non-finite timestamp")
            return self._publish(GpsQuality.POOR)

        prev = self._prev
        if prev is None:
            self._prev = fix
            return self._publish(quality)

        if fix.timestamp_ms < prev.timestamp_ms:
            # out of order: keep the newer prev
            logger.debug(
                "Out-of-order GPS fix (%.0f < %.0f)", fix.timestamp_ms, prev.timestamp_ms
            )
            return self._publish(GpsQuality.POOR)

        dt = (fix.timestamp_ms - prev.timestamp_ms) / 1000.0
        self._prev = fix
        if dt <= self.cfg.min_dt_s:
            return self._publish(quality)

        if self._fix_quality(prev) is GpsQuality.POOR:
            quality = GpsQuality.POOR

        d = haversine((prev.lat, prev.lon), (fix.lat, fix.lon))
        v_kmh = ms_to_kmh(d / dt)
        if not math.isfinite(v_kmh):
            return self._publish(GpsQuality.POOR)

        # anti-spike (signal loss / recovery)
        if v_kmh > self.cfg.max_jump_kmh:
            logger.debug("GPS jump of %.1f km/h clamped", v_kmh)
            quality = GpsQuality.POOR
        v_kmh = clamp(v_kmh, 0.0, self.cfg.max_jump_kmh)

        if self._ema == 0:
            self._ema = v_kmh
        else:
            a = self.cfg.ema_alpha
            self._ema = a * v_kmh + (1 - a) * self._ema

        return self._publish(quality)

    def _fix_quality(self, fix: GpsFix) -> GpsQuality:
        if not is_valid_coord(fix.lat, fix.lon):
            return GpsQuality.POOR
        acc = fix.accuracy_m
        if acc is None:
            return GpsQuality.GOOD
        if not math.isfinite(acc) or acc < 0 or acc > self.cfg.gps_accuracy_max_m:
            return GpsQuality.POOR
        return GpsQuality.GOOD

    def _publish(self, quality: GpsQuality) -> SpeedEstimate:
        self._estimate = SpeedEstimate(speed_kmh=self._ema, gps_quality=quality)
        return self._estimate
