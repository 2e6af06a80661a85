# booking_timeline.py
# Maps a booking's status and history onto the fixed progress milestones
# shown by the booking card and the tracking view.

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .models import BookingStatus, TimelineEntry, parse_status


MILESTONES = (
    BookingStatus.BOOKING_CONFIRMED,
    BookingStatus.MECHANIC_ASSIGNED,
    BookingStatus.EN_ROUTE,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETED,
)

# Statuses during which a live position simulation makes sense.
TRACKABLE_STATUSES = frozenset({BookingStatus.EN_ROUTE, BookingStatus.IN_PROGRESS})

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# Rendered through their own branch, never as a stage.
OFF_TIMELINE_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.RESCHEDULE_REQUESTED})


def is_trackable(status: BookingStatus) -> bool:
    return status in TRACKABLE_STATUSES


def is_off_timeline(status: BookingStatus) -> bool:
    return status in OFF_TIMELINE_STATUSES


def milestone_index(status: BookingStatus) -> int:
    """Position of status in MILESTONES, -1 if it is not a milestone."""
    try:
        return MILESTONES.index(status)
    except ValueError:
        return -1


def current_stage_index(status: BookingStatus, history: Iterable[TimelineEntry] = ()) -> int:
    """
    Highest milestone reached by the booking.

    Looks at every status in the history plus the current one and keeps
    the furthest milestone, so out-of-order or skipped entries do not move
    the progress bar backwards.

    Returns:
        Index into MILESTONES, or -1 when nothing matches (e.g. Cancelled).
    """
    highest = milestone_index(status)
    for entry in history:
        highest = max(highest, milestone_index(entry.status))
    return highest


# ---------------------------------------------------------------------------
# Timeline rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimelineStage:
    status: BookingStatus
    completed: bool
    timestamp: Optional[datetime]
    subtitle: str


def format_stage_time(ts: datetime) -> str:
    """'Mar 5, 2:30 PM' style label."""
    hour = ts.hour % 12 or 12
    return f"{ts.strftime('%b')} {ts.day}, {hour}:{ts.minute:02d} {'AM' if ts.hour < 12 else 'PM'}"


def build_timeline(status: BookingStatus, history: Iterable[TimelineEntry] = ()) -> List[TimelineStage]:
    """One TimelineStage per milestone, ready for the status card."""
    history = list(history)
    reached = current_stage_index(status, history)

    stages: List[TimelineStage] = []
    for index, milestone in enumerate(MILESTONES):
        completed = index <= reached
        first = next((e for e in history if e.status is milestone), None)

        if first is not None:
            subtitle = format_stage_time(first.timestamp)
        elif milestone is BookingStatus.MECHANIC_ASSIGNED and not completed:
            subtitle = "Waiting for assignment"
        else:
            subtitle = "Pending"

        stages.append(TimelineStage(
            status=milestone,
            completed=completed,
            timestamp=first.timestamp if first is not None else None,
            subtitle=subtitle,
        ))
    return stages


__all__ = [
    "MILESTONES",
    "TRACKABLE_STATUSES",
    "TERMINAL_STATUSES",
    "OFF_TIMELINE_STATUSES",
    "TimelineStage",
    "build_timeline",
    "current_stage_index",
    "format_stage_time",
    "is_off_timeline",
    "is_trackable",
    "milestone_index",
    "parse_status",
]
