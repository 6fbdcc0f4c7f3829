# autoctx/utils/geo.py

"""
Geospatial utility functions.
"""

import math
from typing import Tuple

EARTH_RADIUS_M = 6371000.0


def haversine(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """
    Compute the great-circle distance between two points on the Earth.

    Parameters
    ----------
    a
        (latitude, longitude) of point A, in decimal degrees.
    b
        (latitude, longitude) of point B, in decimal degrees.

    Returns
    -------
    float
        Distance between A and B in metres. NaN if any coordinate is NaN.
    """
    lat1, lon1 = a
    lat2, lon2 = b
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lam = math.radians(lon2 - lon1)
    h = math.sin(d_phi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(d_lam/2)**2
    # float error can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h)) if math.isfinite(h) else h
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def is_valid_coord(lat: float, lon: float) -> bool:
    """
    True if (lat, lon) is a finite position inside the WGS84 ranges.
    """
    return (
        math.isfinite(lat) and math.isfinite(lon)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lon <= 180.0
    )


def ms_to_kmh(v_ms: float) -> float:
    """Convert metres/second to km/h."""
    return v_ms * 3.6


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))
