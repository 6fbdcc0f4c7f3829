# autoctx/engine/cadence.py

"""
Recording cadence helpers: frequency strings and tick scheduling.
"""

import re

# presets offered by the recording dialog
RECORDING_FREQUENCIES = ("1s", "5s", "10s", "30s", "1m", "5m")
DEFAULT_FREQUENCY = "5s"

_UNIT_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}
_FREQ_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)\s*$", re.IGNORECASE)

# scheduling tolerance for timer jitter
JITTER_MS = 1


def parse_frequency_to_ms(frequency: str) -> int:
    """
    Parse a recording frequency such as "10s" or "1m" into milliseconds.

    Raises
    ------
    ValueError
        If the string is not `<number><ms|s|m|h>` or yields a non-positive period.
    """
    m = _FREQ_RE.match(frequency or "")
    if not m:
        raise ValueError(f"invalid recording frequency: {frequency!r}")
    value, unit = m.groups()
    period_ms = int(round(float(value) * _UNIT_MS[unit.lower()]))
    if period_ms <= 0:
        raise ValueError(f"recording frequency must be positive: {frequency!r}")
    return period_ms


def first_tick_delay_ms(wall_ms: float, period_ms: float) -> float:
    """
    Delay until the next wall-clock multiple of the period.

    Aligning the first tick keeps measurement timestamps on round boundaries
    (e.g. :00, :10, :20 for "10s"). A wall time already on a boundary waits a
    full period.
    """
    if period_ms <= 0:
        raise ValueError("period must be positive")
    return period_ms - (wall_ms % period_ms)


def should_record_at_frequency(
    last_mono_ms: float | None,
    period_ms: float,
    now_mono_ms: float,
) -> bool:
    """
    True once at least one period (minus jitter) has elapsed since the last record.
    """
    if last_mono_ms is None:
        return True
    return now_mono_ms - last_mono_ms >= period_ms - JITTER_MS
