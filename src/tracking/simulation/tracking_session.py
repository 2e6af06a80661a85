# tracking_session.py
# Public entry point for one open "track this booking" view.
# Owns the route, the simulator and the timer; delegates the work to them.

import logging
from typing import Callable, Optional

import numpy as np

from .models import Booking, BookingStatus, Coord, Route, SessionStatus, SimulationState
from .booking_timeline import TERMINAL_STATUSES, is_trackable
from .errors import SessionStateError
from .map_view import MapFrame, build_map_frame
from .position_simulator import PositionSimulator
from .route_synthesizer import RouteSynthesizer
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

NO_DESTINATION_MESSAGE = "Customer location data is not available for tracking."
NO_MECHANIC_MESSAGE = "Mechanic location data is not available for tracking."


class TrackingSession:
    """
    Live tracking facade for a single view.

    Typical lifecycle:
        session = TrackingSession(CUSTOMER_TRACKING, on_update=render)
        status = session.start(mechanic_coord, customer_coord)
        if status is SessionStatus.UNAVAILABLE:
            show(session.message)
        ...
        session.stop()              # on view teardown

    Args:
        config:    Optional TrackConfig; defaults to TrackConfig().
        scheduler: Timer source; defaults to the running asyncio loop.
        rng:       Random source for the route jitter; seeded from the
                   config when omitted.
        on_update: Called with the new SimulationState after each tick.
    """

    def __init__(
        self,
        config: Optional[TrackConfig] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        on_update: Optional[Callable[[SimulationState], None]] = None,
    ) -> None:
        self.config = config or TrackConfig()
        self._scheduler = scheduler or AsyncioScheduler()
        self._synthesizer = RouteSynthesizer(self.config, rng)
        self._on_update = on_update

        self._status = SessionStatus.INACTIVE
        self._message = ""
        self._route: Optional[Route] = None
        self._simulator: Optional[PositionSimulator] = None
        self._timer: Optional[TimerHandle] = None
        self._booking_status: Optional[BookingStatus] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, mechanic_coord: Optional[Coord], destination_coord: Optional[Coord]) -> SessionStatus:
        """
        Build a route and begin the simulation.

        Args:
            mechanic_coord:    Mechanic's current position, or None.
            destination_coord: Customer's location, or None.

        The mover departs immediately: by the time start() returns, the
        first snapshot is already one step along the route, and each timer
        interval after that moves it one more step.

        Returns:
            RUNNING, ARRIVED for a zero-length trip, or UNAVAILABLE when a
            coordinate is missing.

        Raises:
            SessionStateError: the session was already started.
            RuntimeError:      the scheduler could not arm a timer (e.g. no
                               running event loop). The session is left STOPPED.
        """
        if self._status is not SessionStatus.INACTIVE:
            raise SessionStateError(f"Session already started (status: {self._status.value}).")

        if destination_coord is None or mechanic_coord is None:
            self._status = SessionStatus.UNAVAILABLE
            self._message = NO_DESTINATION_MESSAGE if destination_coord is None else NO_MECHANIC_MESSAGE
            logger.warning(f"Tracking unavailable: {self._message}")
            return self._status

        self._route = self._synthesizer.generate(mechanic_coord, destination_coord)
        self._simulator = PositionSimulator(self._route, self.config)
        logger.info(
            f"Tracking started: {mechanic_coord} → {destination_coord}, "
            f"{len(self._route)} waypoints, {self._simulator.state.remaining_distance_km:.2f} km."
        )

        if not self._simulator.is_running:
            self._mark_arrived()
            return self._status

        try:
            self._timer = self._scheduler.call_every(self.config.tick_interval_s, self._tick)
        except RuntimeError:
            self._simulator.cancel()
            self._status = SessionStatus.STOPPED
            self._message = "Tracking could not be scheduled"
            logger.error("Tracking not started: no timer could be armed.")
            raise

        self._status = SessionStatus.RUNNING
        self._message = "Tracking"
        # The mover leaves as soon as the view opens, then moves once per interval.
        self._tick()
        return self._status

    def start_for_booking(self, booking: Booking, destination: Optional[Coord] = None) -> SessionStatus:
        """Start from a booking record; destination defaults to the booking location."""
        self._booking_status = booking.status
        return self.start(booking.mechanic_coord, destination or booking.destination)

    def stop(self) -> None:
        """Cancel the simulator and the timer. Safe to call any number of times."""
        self._cancel_timer()
        if self._simulator is not None:
            self._simulator.cancel()
        if self._status is SessionStatus.RUNNING:
            self._status = SessionStatus.STOPPED
            self._message = "Tracking stopped"
            logger.info("Tracking stopped.")

    def update_booking_status(self, status: BookingStatus) -> None:
        """
        Feed a fresh booking status from the data layer.

        Stops the session once the job is finished or no longer en route.
        """
        previous, self._booking_status = self._booking_status, status
        left_trackable = previous is not None and is_trackable(previous) and not is_trackable(status)
        if left_trackable or status in TERMINAL_STATUSES:
            logger.info(f"Booking status changed to '{status.value}', stopping tracking.")
            self.stop()

    def __enter__(self) -> "TrackingSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def message(self) -> str:
        return self._message

    @property
    def is_active(self) -> bool:
        return self._status is SessionStatus.RUNNING

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def simulator(self) -> Optional[PositionSimulator]:
        return self._simulator

    @property
    def state(self) -> Optional[SimulationState]:
        return self._simulator.state if self._simulator is not None else None

    def map_frame(self) -> Optional[MapFrame]:
        """Map payload for the current state, None while nothing is tracked."""
        if self._route is None:
            return None
        return build_map_frame(self._route, self.state, self.config.bounds_padding)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        if self._status is not SessionStatus.RUNNING:
            return
        before = self._simulator.state
        state = self._simulator.tick()

        if state.arrived:
            self._mark_arrived()
        if state != before and self._on_update is not None:
            try:
                self._on_update(state)
            except Exception:
                # The timer will not fire again after a raising callback.
                logger.exception("on_update failed, stopping tracking.")
                self.stop()
                raise

    def _mark_arrived(self) -> None:
        self._cancel_timer()
        self._status = SessionStatus.ARRIVED
        self._message = "Mechanic has arrived"
        logger.info("Tracking finished: mechanic arrived.")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
