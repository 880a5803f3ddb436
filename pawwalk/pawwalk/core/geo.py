"""Great-circle distance helpers.

Pure functions, no state. NaN coordinates propagate NaN; callers must not
feed invalid coordinates.
"""

from __future__ import annotations

import math
from typing import Iterable, Protocol, Sequence

# Earth radius in meters (for Haversine).
EARTH_RADIUS_M = 6_371_000.0


class HasLatLon(Protocol):
    latitude: float
    longitude: float


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points."""
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_m(a: HasLatLon, b: HasLatLon) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def cumulative_distance(points: Sequence[HasLatLon]) -> float:
    """Sum of segment distances over consecutive points; 0 for fewer than two."""
    if len(points) < 2:
        return 0.0
    return sum(distance_m(points[i - 1], points[i]) for i in range(1, len(points)))


def path_to_coordinates(points: Iterable[HasLatLon]) -> tuple[tuple[float, float], ...]:
    """Convert points to (lon, lat) pairs, the order map widgets expect."""
    return tuple((p.longitude, p.latitude) for p in points)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.2f}km"
