"""
Rule-based resolution of the automatic context label.

Evaluated once per sampling tick, never on raw sensor events.
"""

from __future__ import annotations

from typing import Optional

from autoctx.engine.config import EngineConfig
from autoctx.engine.types import AutomaticContext, SpeedEstimate, WalkingState


class ContextRuleResolver:
    """
    Precedence rules over (speed, walking state, previous label, staleness).

    The resolver itself is stateless; the previous label is passed in so the
    same rules can be replayed or unit tested in isolation.
    """
    def __init__(self, cfg: EngineConfig | None = None) -> None:
        self.cfg = cfg or EngineConfig.default()

    def resolve(
        self,
        speed: Optional[SpeedEstimate],
        walking: WalkingState,
        previous: AutomaticContext,
        gps_fresh: bool,
        accel_stale: bool,
    ) -> AutomaticContext:
        """
        Resolve one label; first matching rule wins.

        1. fresh GPS at driving speed -> driving
        2. fresh GPS near standstill right after driving -> redLight
        3. no fresh GPS and no live accelerometer -> unknown
        4. walking detected -> walking
        5. otherwise -> stationary
        """
        gps_fresh = gps_fresh and speed is not None
        if gps_fresh:
            if speed.speed_kmh >= self.cfg.speed_driving_enter_kmh:
                return AutomaticContext.DRIVING
            if (
                speed.speed_kmh <= self.cfg.speed_red_light_max_kmh
                and previous is AutomaticContext.DRIVING
            ):
                return AutomaticContext.RED_LIGHT
        elif accel_stale:
            return AutomaticContext.UNKNOWN

        if walking.active:
            return AutomaticContext.WALKING
        return AutomaticContext.STATIONARY
