# autoctx/engine/quality.py

"""
Data-quality tier from the GPS and accelerometer signals.
"""

from autoctx.engine.types import DataQuality, GpsQuality


def combine(gps_quality: GpsQuality | None, accel_active: bool) -> DataQuality:
    """
    Combine the two sensor signals into one quality tier.

    The accelerometer counts as "good" only while walking is detected, so a
    stationary user with a healthy accelerometer still reads at most
    `partial`.

    Parameters
    ----------
    gps_quality
        Quality of the latest fresh GPS estimate, None when GPS is absent/stale.
    accel_active
        Walking detector's `active` flag.

    Returns
    -------
    DataQuality
        `good` if both signals are good, `partial` if exactly one is, else `poor`.
    """
    gps_ok = gps_quality is GpsQuality.GOOD
    match (gps_ok, bool(accel_active)):
        case (True, True):
            return DataQuality.GOOD
        case (True, False) | (False, True):
            return DataQuality.PARTIAL
        case _:
            return DataQuality.POOR
