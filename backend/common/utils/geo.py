"""
Geographic utility functions.

Plain Haversine distance; there is no spatial index behind it.
"""

from math import radians, cos, sin, asin, sqrt

EARTH_RADIUS_M = 6371000


def calculate_distance(lat1, lon1, lat2, lon2) -> float:
    """
    Calculate distance between two points in meters using Haversine formula.

    Accepts floats or Decimals (model coordinate fields).

    Returns:
        Distance in meters
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return c * EARTH_RADIUS_M


def is_valid_coordinate(lat, lon) -> bool:
    try:
        return -90 <= float(lat) <= 90 and -180 <= float(lon) <= 180
    except (TypeError, ValueError):
        return False
