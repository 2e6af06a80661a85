# route_synthesizer.py
# Builds a plausible-looking winding path between two coordinates.
# The path is a visual approximation, never real driving directions.

import logging
from typing import Optional

import numpy as np

from .models import Coord, Route
from .geo_utils import distance_km
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

_DEFAULTS = TrackConfig()


def generate(
    start: Coord,
    end: Coord,
    point_count: int = _DEFAULTS.point_count,
    rng: Optional[np.random.Generator] = None,
    wobble_factor: float = _DEFAULTS.wobble_factor,
    wobble_cap_deg: float = _DEFAULTS.wobble_cap_deg,
) -> Route:
    """
    Interpolate point_count - 1 jittered waypoints between start and end.

    Args:
        start:          First waypoint, returned unperturbed.
        end:            Last waypoint, returned unperturbed.
        point_count:    Number of legs; the route has point_count + 1 points.
        rng:            Random source for the jitter. A fresh unseeded
                        generator is used when omitted.
        wobble_factor:  Jitter scale per kilometre of straight-line distance.
        wobble_cap_deg: Upper bound for the jitter span in degrees.

    Returns:
        Tuple of Coord, first == start and last == end.
    """
    if point_count < 1:
        raise ValueError("point_count must be at least 1.")
    if rng is None:
        rng = np.random.default_rng()

    wobble = min(distance_km(start, end) * wobble_factor, wobble_cap_deg)

    progress = np.arange(1, point_count) / point_count
    lats = start.lat + (end.lat - start.lat) * progress
    lngs = start.lng + (end.lng - start.lng) * progress

    if wobble > 0:
        half = wobble / 2
        lats = lats + rng.uniform(-half, half, size=progress.size)
        lngs = lngs + rng.uniform(-half, half, size=progress.size)

    middle = tuple(Coord(float(lat), float(lng)) for lat, lng in zip(lats, lngs))
    return (start,) + middle + (end,)


class RouteSynthesizer:
    """
    Route generator bound to a TrackConfig and one random source.

    Usage:
        synth = RouteSynthesizer(config, rng=np.random.default_rng(7))
        route = synth.generate(mechanic, customer)
    """

    def __init__(
        self,
        config: Optional[TrackConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.config = config or TrackConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)

    def generate(self, start: Coord, end: Coord, point_count: Optional[int] = None) -> Route:
        count = point_count if point_count is not None else self.config.point_count
        route = generate(
            start,
            end,
            count,
            self.rng,
            wobble_factor=self.config.wobble_factor,
            wobble_cap_deg=self.config.wobble_cap_deg,
        )
        logger.debug(f"Synthesized route {start} → {end} with {len(route)} waypoints.")
        return route
