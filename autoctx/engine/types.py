# autoctx/engine/types.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GpsQuality(str, Enum):
    GOOD = "good"
    POOR = "poor"


class DataQuality(str, Enum):
    """
    Overall data-quality tier surfaced to status indicators.
    """
    GOOD = "good"
    PARTIAL = "partial"
    POOR = "poor"


class AutomaticContext(str, Enum):
    """
    Label attached to every recorded measurement.
    """
    STATIONARY = "stationary"
    WALKING = "walking"
    DRIVING = "driving"
    RED_LIGHT = "redLight"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GpsFix:
    """
    One location sample.

    Parameters
    ----------
    lat : float
        Latitude in decimal degrees.
    lon : float
        Longitude in decimal degrees.
    accuracy_m : Optional[float]
        Reported horizontal accuracy in metres, if the provider gives one.
    timestamp_ms : float
        Time the fix was taken, in milliseconds.
    """
    lat: float
    lon: float
    accuracy_m: Optional[float]
    timestamp_ms: float


@dataclass(frozen=True)
class SpeedEstimate:
    """
    Smoothed speed published after every fix.

    Parameters
    ----------
    speed_kmh : float
        EMA-smoothed ground speed, 0 <= speed_kmh <= max jump.
    gps_quality : GpsQuality
        Quality of the fix (pair) that produced this estimate.
    """
    speed_kmh: float
    gps_quality: GpsQuality


@dataclass(frozen=True)
class AccelSample:
    """
    One motion sample.

    Parameters
    ----------
    magnitude : float
        Gravity-removed acceleration magnitude in m/s^2.
    timestamp_ms : float
        Sample time in milliseconds.
    """
    magnitude: float
    timestamp_ms: float


@dataclass(frozen=True)
class WalkingState:
    """
    Published snapshot of the walking detector's hysteresis state.
    """
    active: bool = False
    last_raw_true: bool = False
    consecutive_true_ms: float = 0.0
    consecutive_false_ms: float = 0.0
    last_sample_timestamp_ms: Optional[float] = None


@dataclass(frozen=True)
class ContextSample:
    """
    Result of one sampling tick.

    Parameters
    ----------
    context : AutomaticContext
        Resolved activity label.
    quality : DataQuality
        Combined quality of the GPS and accelerometer signals.
    timestamp_ms : float
        Tick time the label was resolved at.
    """
    context: AutomaticContext
    quality: DataQuality
    timestamp_ms: float
