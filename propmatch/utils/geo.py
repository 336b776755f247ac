"""Geodesic helpers for radius filtering of candidate listings."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000
METERS_PER_DEGREE_LAT = 111_000


def is_valid_coordinate(latitude: float | None, longitude: float | None) -> bool:
    if latitude is None or longitude is None:
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounding_box(latitude: float, longitude: float, radius_m: float) -> tuple[float, float, float, float]:
    """Approximate (min_lat, max_lat, min_lng, max_lng) enclosing the radius.

    Used as a cheap SQL prefilter; callers confirm with ``haversine_m``.
    """
    lat_delta = radius_m / METERS_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(latitude))
    # Near the poles every longitude is within reach.
    lng_delta = 180.0 if cos_lat < 1e-9 else radius_m / (METERS_PER_DEGREE_LAT * cos_lat)
    return (
        max(-90.0, latitude - lat_delta),
        min(90.0, latitude + lat_delta),
        max(-180.0, longitude - lng_delta),
        min(180.0, longitude + lng_delta),
    )
