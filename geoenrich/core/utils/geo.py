"""
Coordinate presence and range checks.
"""

from typing import Any, Optional


def has_coordinate_pair(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """
    Check whether both coordinate fields are present.

    Presence is tested explicitly, so a latitude or longitude of 0.0
    (equator, prime meridian) counts as present.
    """
    return latitude is not None and longitude is not None


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """
    Check that a latitude/longitude pair is numeric and within WGS84 range.

    Example:
        >>> is_valid_coordinate(40.4195, -80.0611)
        True
        >>> is_valid_coordinate("40.4", None)
        False
    """
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False

    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0
