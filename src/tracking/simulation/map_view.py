# map_view.py
# Data handed to the external map surface. Nothing here draws.

from dataclasses import dataclass
from typing import Optional, Tuple

from shapely.geometry import LineString

from .models import Coord, Route, SimulationState

# Keeps a viewport around routes that collapse to a single point.
MIN_SPAN_DEG = 0.002

# (south, west, north, east)
Bounds = Tuple[float, float, float, float]


@dataclass(frozen=True)
class MapFrame:
    route: Route
    current_position: Coord
    source_marker: Coord
    destination_marker: Coord
    bounds: Bounds

    def to_dict(self) -> dict:
        south, west, north, east = self.bounds
        return {
            "route": [[p.lat, p.lng] for p in self.route],
            "current_position": self.current_position.to_dict(),
            "source_marker": self.source_marker.to_dict(),
            "destination_marker": self.destination_marker.to_dict(),
            "bounds": [[south, west], [north, east]],
        }


def padded_bounds(route: Route, padding: float = 0.25) -> Bounds:
    """
    Bounding box of the route, grown by padding * span on every side.

    Shapely works in (x, y) so lng goes first.
    """
    if len(set(route)) > 1:
        min_lng, min_lat, max_lng, max_lat = LineString([(p.lng, p.lat) for p in route]).bounds
    else:
        min_lng = max_lng = route[0].lng
        min_lat = max_lat = route[0].lat

    lat_pad = max(max_lat - min_lat, MIN_SPAN_DEG) * padding
    lng_pad = max(max_lng - min_lng, MIN_SPAN_DEG) * padding
    return (min_lat - lat_pad, min_lng - lng_pad, max_lat + lat_pad, max_lng + lng_pad)


def build_map_frame(
    route: Route,
    state: Optional[SimulationState] = None,
    padding: float = 0.25,
) -> MapFrame:
    """Snapshot of everything the map needs for one render."""
    position = state.current_position if state is not None else route[0]
    return MapFrame(
        route=route,
        current_position=position,
        source_marker=route[0],
        destination_marker=route[-1],
        bounds=padded_bounds(route, padding),
    )
