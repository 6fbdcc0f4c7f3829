# autoctx/engine/config.py

from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class EngineConfig:
    """
    Thresholds for the automatic context inference engine.

    Attributes
    ----------
    ema_alpha
        Weight of the newest speed sample in the EMA.
    min_dt_s
        Fixes closer than this (s) to the previous one do not update speed.
    gps_accuracy_max_m
        Reported accuracy (m) above which a fix is "poor".
    max_jump_kmh
        Speed ceiling (km/h); faster readings are clamped and flagged poor.
    acc_win_sec
        Length (s) of the rolling accelerometer window.
    acc_peak_thr
        Magnitude (m/s^2) a sample must exceed to count as a step peak.
    acc_refrac_ms
        Minimum spacing (ms) between two counted peaks.
    cadence_min, cadence_max
        Step cadence band (steps/min) accepted as walking.
    cv_max
        Maximum coefficient of variation of inter-peak intervals.
    rms_min, rms_max
        RMS magnitude band (m/s^2) accepted as walking.
    acc_hold_enter_ms
        Raw walking must hold this long (ms) before the detector goes active.
    acc_hold_exit_ms
        Raw not-walking must hold this long (ms) before it goes inactive.
    acc_timeout_ms
        Silence (ms) after which the accelerometer is considered gone.
    speed_driving_enter_kmh
        Speed (km/h) at or above which the context is "driving".
    speed_red_light_max_kmh
        Speed (km/h) at or below which a driving user is "at a red light".
    gps_stale_factor
        GPS is fresh while the last fix is within this many sampling periods.
    gps_stale_min_ms
        Lower bound (ms) on the GPS freshness window.
    """
    ema_alpha:               float = 0.25
    min_dt_s:                float = 0.5
    gps_accuracy_max_m:      float = 20.0
    max_jump_kmh:            float = 100.0

    acc_win_sec:             float = 6.0
    acc_peak_thr:            float = 0.8
    acc_refrac_ms:           float = 300.0
    cadence_min:             float = 70.0
    cadence_max:             float = 180.0
    cv_max:                  float = 0.30
    rms_min:                 float = 0.5
    rms_max:                 float = 3.5
    acc_hold_enter_ms:       float = 10_000.0
    acc_hold_exit_ms:        float = 30_000.0
    acc_timeout_ms:          float = 5_000.0

    speed_driving_enter_kmh: float = 20.0
    speed_red_light_max_kmh: float = 5.0
    gps_stale_factor:        float = 1.5
    gps_stale_min_ms:        float = 5_000.0

    @classmethod
    def default(cls):
        """Preset used by recording sessions (source thresholds)."""
        return cls()

    @classmethod
    def low_power(cls):
        """Preset for long cadences where the location provider is throttled."""
        return cls(
            gps_stale_factor=2.0,
            gps_stale_min_ms=30_000.0,
        )

    @classmethod
    def preset(cls, name: str):
        """Look up a preset by name ("default" or "low_power")."""
        presets = {"default": cls.default, "low_power": cls.low_power}
        try:
            return presets[name]()
        except KeyError:
            raise ValueError(f"unknown preset {name!r}, expected one of {sorted(presets)}") from None

    def with_overrides(self, **overrides) -> "EngineConfig":
        """Return a copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"unknown config fields: {sorted(unknown)}")
        return replace(self, **overrides)

    def gps_stale_ms(self, period_ms: float) -> float:
        """Freshness window for GPS fixes at the given sampling period."""
        return max(period_ms * self.gps_stale_factor, self.gps_stale_min_ms)
