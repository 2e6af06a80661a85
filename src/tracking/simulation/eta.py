# eta.py
# ETA arithmetic and the short strings the tracking views display.

import math
from typing import Optional

from .models import Coord, SimulationState
from .geo_utils import distance_km
from .track_config import DIRECTIONS_SPEED_KMH, DISPLAY_ARRIVED_KM


def eta_minutes(remaining_km: float, speed_kmh: float) -> int:
    """Whole minutes needed to cover remaining_km at speed_kmh, rounded up."""
    if remaining_km <= 0:
        return 0
    return math.ceil(remaining_km / speed_kmh * 60)


def straight_line_eta(
    mechanic: Coord,
    destination: Coord,
    speed_kmh: float = DIRECTIONS_SPEED_KMH,
    manual_eta: Optional[int] = None,
) -> int:
    """
    Quick ETA for booking cards: crow-flies distance, never below one minute.

    An ETA entered by the mechanic always wins over the estimate.
    """
    if manual_eta is not None:
        return manual_eta
    return max(1, eta_minutes(distance_km(mechanic, destination), speed_kmh))


# ---------------------------------------------------------------------------
# Display text
# ---------------------------------------------------------------------------

def _is_here(state: SimulationState) -> bool:
    return state.arrived or state.remaining_distance_km < DISPLAY_ARRIVED_KM


def format_distance(state: SimulationState) -> str:
    if _is_here(state):
        return "Arrived"
    return f"{state.remaining_distance_km:.1f} km"


def format_eta(state: SimulationState) -> str:
    if _is_here(state):
        return "Now"
    return f"{state.eta_minutes} min"


def format_arrival(state: SimulationState) -> str:
    """Directions-screen wording of the ETA."""
    if state.eta_minutes > 1:
        return f"Est. Arrival: {state.eta_minutes} mins"
    if state.eta_minutes == 1:
        return "Est. Arrival: ~1 min"
    return "Arriving now"
