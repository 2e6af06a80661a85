# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no state.

import math
from typing import Sequence

from .models import Coord


EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coord, b: Coord) -> float:
    """
    Great-circle (haversine) distance between two points in kilometres.

    Args:
        a: Origin.
        b: Destination.

    Returns:
        Distance in kilometres.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length_km(points: Sequence[Coord]) -> float:
    """Sum of distance_km over consecutive points (0 for fewer than two)."""
    return sum(distance_km(p, q) for p, q in zip(points, points[1:]))
