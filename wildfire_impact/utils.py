"""Utility functions: distances, CRS checks."""
import math

from pyproj import CRS


def km_to_meters(distance_km: float) -> float:
    """Convert a buffer radius in kilometers to meters."""
    return distance_km * 1000.0


def is_positive_number(value) -> bool:
    """True for finite numbers above zero (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def is_geographic(crs) -> bool:
    """True when the CRS is in degrees of longitude/latitude."""
    return CRS.from_user_input(crs).is_geographic
