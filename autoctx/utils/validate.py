"""
Pydantic schemas to validate sensor records and API payloads.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from autoctx.engine.cadence import DEFAULT_FREQUENCY
from autoctx.engine.types import (
    AccelSample,
    AutomaticContext,
    ContextSample,
    DataQuality,
    GpsFix,
    GpsQuality,
    SpeedEstimate,
    WalkingState,
)


class GpsRecord(BaseModel):
    """
    One GPS fix as recorded in a sensor log or posted to the API.

    Coordinates are not range-checked here: malformed fixes still reach the
    estimator, which downgrades them to poor quality.
    """
    kind: Literal["gps"] = "gps"
    ts: float
    lat: float
    lon: float
    accuracy: Optional[float] = None

    def to_fix(self) -> GpsFix:
        return GpsFix(lat=self.lat, lon=self.lon, accuracy_m=self.accuracy, timestamp_ms=self.ts)


class AccelRecord(BaseModel):
    """
    One gravity-removed accelerometer magnitude sample.
    """
    kind: Literal["accel"] = "accel"
    ts: float
    magnitude: float

    def to_sample(self) -> AccelSample:
        return AccelSample(magnitude=self.magnitude, timestamp_ms=self.ts)


class SpeedEstimateOut(BaseModel):
    speed_kmh: float
    gps_quality: GpsQuality

    @classmethod
    def from_estimate(cls, est: SpeedEstimate) -> "SpeedEstimateOut":
        return cls(speed_kmh=est.speed_kmh, gps_quality=est.gps_quality)


class WalkingStateOut(BaseModel):
    active: bool
    last_raw_true: bool
    consecutive_true_ms: float
    consecutive_false_ms: float
    last_sample_timestamp_ms: Optional[float]

    @classmethod
    def from_state(cls, state: WalkingState) -> "WalkingStateOut":
        return cls(
            active=state.active,
            last_raw_true=state.last_raw_true,
            consecutive_true_ms=state.consecutive_true_ms,
            consecutive_false_ms=state.consecutive_false_ms,
            last_sample_timestamp_ms=state.last_sample_timestamp_ms,
        )


class ContextSampleOut(BaseModel):
    """
    Context label and data quality resolved at one tick.
    """
    context: AutomaticContext
    quality: DataQuality
    timestamp_ms: float

    @classmethod
    def from_sample(cls, sample: ContextSample) -> "ContextSampleOut":
        return cls(context=sample.context, quality=sample.quality, timestamp_ms=sample.timestamp_ms)


class SessionCreate(BaseModel):
    frequency: str = DEFAULT_FREQUENCY
    preset: Literal["default", "low_power"] = "default"


class SessionCreated(BaseModel):
    session_id: str
    frequency: str
    period_ms: float


class ContextRequest(BaseModel):
    now_ms: float = Field(description="Tick time on the sensor clock")
