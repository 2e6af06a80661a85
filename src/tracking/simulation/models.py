# models.py
# Shared data structures and enums used across all modules.

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate in decimal degrees."""
    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    @staticmethod
    def from_dict(d: Optional[dict]) -> Optional["Coord"]:
        """Build a Coord from {lat, lng}; None when either field is missing."""
        if not d:
            return None
        lat, lng = d.get("lat"), d.get("lng")
        if lat is None or lng is None:
            return None
        return Coord(float(lat), float(lng))


# Ordered waypoints, first = start, last = destination.
Route = Tuple[Coord, ...]


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class StepMode(Enum):
    DISCRETE     = "discrete"       # jump one waypoint per tick
    INTERPOLATED = "interpolated"   # glide a fraction of the way per tick


class SimulatorStatus(Enum):
    RUNNING   = "running"
    ARRIVED   = "arrived"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SimulationState:
    """Read-only snapshot returned by PositionSimulator.tick() every interval."""
    current_position: Coord
    waypoint_index: int
    remaining_distance_km: float
    eta_minutes: int
    arrived: bool = False

    def to_dict(self) -> dict:
        return {
            "current_position": self.current_position.to_dict(),
            "waypoint_index": self.waypoint_index,
            "remaining_distance_km": self.remaining_distance_km,
            "eta_minutes": self.eta_minutes,
            "arrived": self.arrived,
        }


class SessionStatus(Enum):
    INACTIVE    = "inactive"
    RUNNING     = "running"
    ARRIVED     = "arrived"
    STOPPED     = "stopped"
    UNAVAILABLE = "unavailable"


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------

class BookingStatus(Enum):
    UPCOMING             = "Upcoming"
    BOOKING_CONFIRMED    = "Booking Confirmed"
    MECHANIC_ASSIGNED    = "Mechanic Assigned"
    EN_ROUTE             = "En Route"
    IN_PROGRESS          = "In Progress"
    COMPLETED            = "Completed"
    CANCELLED            = "Cancelled"
    RESCHEDULE_REQUESTED = "Reschedule Requested"


def parse_status(raw) -> Optional[BookingStatus]:
    """Map a backend status string onto BookingStatus, None if unknown."""
    if isinstance(raw, BookingStatus):
        return raw
    try:
        return BookingStatus(raw)
    except ValueError:
        return None


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


@dataclass(frozen=True)
class TimelineEntry:
    status: BookingStatus
    timestamp: datetime


@dataclass
class Booking:
    """
    The subset of a booking record the tracking engine reads.

    Owned by the booking backend; nothing here mutates it.
    """
    booking_id: str
    status: BookingStatus
    status_history: List[TimelineEntry] = field(default_factory=list)
    mechanic_coord: Optional[Coord] = None
    destination: Optional[Coord] = None
    service_name: Optional[str] = None
    manual_eta_minutes: Optional[int] = None

    @staticmethod
    def from_dict(d: dict) -> "Booking":
        status = parse_status(d["status"])
        if status is None:
            raise ValueError(f"Unknown booking status: {d['status']!r}")

        history: List[TimelineEntry] = []
        for entry in d.get("statusHistory") or []:
            entry_status = parse_status(entry.get("status"))
            if entry_status is None:
                logger.warning(
                    f"Skipping unknown status {entry.get('status')!r} in history of booking {d.get('id')}"
                )
                continue
            history.append(TimelineEntry(entry_status, parse_timestamp(entry["timestamp"])))

        service = d.get("service") or {}
        return Booking(
            booking_id=str(d["id"]),
            status=status,
            status_history=history,
            mechanic_coord=Coord.from_dict(d.get("mechanic")),
            destination=Coord.from_dict(d.get("location")),
            service_name=service.get("name"),
            manual_eta_minutes=d.get("eta"),
        )
