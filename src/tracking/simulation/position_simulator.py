# position_simulator.py
# State machine that moves a simulated mechanic along a synthesized route.
# Construct once per route, then call tick() on every timer interval.

import logging
from typing import List, Optional, Sequence

from .models import Coord, Route, SimulationState, SimulatorStatus, StepMode
from .errors import InvalidRoute
from .eta import eta_minutes
from .geo_utils import distance_km
from .track_config import TrackConfig

logger = logging.getLogger(__name__)


class PositionSimulator:
    """
    Time-stepped mover for a single tracking session.

    Usage:
        sim = PositionSimulator(route, config)

        # Inside the timer callback:
        state = sim.tick()
        if state.arrived:
            ...

    Raises:
        InvalidRoute: route has fewer than two waypoints.
    """

    def __init__(self, route: Sequence[Coord], config: Optional[TrackConfig] = None) -> None:
        if len(route) < 2:
            raise InvalidRoute(f"A route needs at least 2 waypoints, got {len(route)}.")

        self.config = config or TrackConfig()
        self._route: Route = tuple(route)
        self._last_index = len(self._route) - 1
        self._suffix_km = self._suffix_distances(self._route)
        self._status = SimulatorStatus.RUNNING

        remaining = self._suffix_km[0]
        self._state = SimulationState(
            current_position=self._route[0],
            waypoint_index=0,
            remaining_distance_km=remaining,
            eta_minutes=eta_minutes(remaining, self.config.assumed_speed_kmh),
        )

        # Start == end (or closer than the threshold) is already an arrival.
        if remaining < self.config.arrival_threshold_km:
            self._arrive()

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def status(self) -> SimulatorStatus:
        return self._status

    @property
    def route(self) -> Route:
        return self._route

    @property
    def is_running(self) -> bool:
        return self._status is SimulatorStatus.RUNNING

    def remaining_distance_at(self, waypoint_index: int) -> float:
        """Path length from route[waypoint_index] to the destination, in km."""
        return self._suffix_km[waypoint_index]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Freeze the simulator. Safe to call any number of times."""
        if self._status is SimulatorStatus.RUNNING:
            self._status = SimulatorStatus.CANCELLED
            logger.debug("Simulator cancelled.")

    # ------------------------------------------------------------------
    # Core method: call on every timer interval
    # ------------------------------------------------------------------

    def tick(self) -> SimulationState:
        """
        Advance the mover one step and recompute distance and ETA.

        Returns:
            The new snapshot, or the unchanged one when not running.
        """
        if self._status is not SimulatorStatus.RUNNING:
            return self._state

        if self.config.step_mode is StepMode.DISCRETE:
            index = self._state.waypoint_index + 1
            position = self._route[index]
        else:
            index, position = self._glide()

        if index >= self._last_index:
            self._arrive()
            return self._state

        remaining = distance_km(position, self._route[index + 1]) + self._suffix_km[index + 1]
        # remaining never grows
        remaining = min(remaining, self._state.remaining_distance_km)

        if remaining < self.config.arrival_threshold_km:
            self._arrive()
            return self._state

        self._state = SimulationState(
            current_position=position,
            waypoint_index=index,
            remaining_distance_km=remaining,
            eta_minutes=eta_minutes(remaining, self.config.assumed_speed_kmh),
        )
        logger.debug(
            f"Tick: waypoint {index}/{self._last_index}, "
            f"{remaining:.2f} km left, ETA {self._state.eta_minutes} min"
        )
        return self._state

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _glide(self):
        """Close speed_fraction of the gap to the next waypoint, snapping when near."""
        index = self._state.waypoint_index
        current = self._state.current_position
        target = self._route[index + 1]
        fraction = self.config.speed_fraction

        position = Coord(
            current.lat + (target.lat - current.lat) * fraction,
            current.lng + (target.lng - current.lng) * fraction,
        )
        if distance_km(position, target) < self.config.arrival_threshold_km:
            return index + 1, target
        return index, position

    def _arrive(self) -> None:
        self._status = SimulatorStatus.ARRIVED
        self._state = SimulationState(
            current_position=self._route[-1],
            waypoint_index=self._last_index,
            remaining_distance_km=0.0,
            eta_minutes=0,
            arrived=True,
        )
        logger.info(f"Simulated mover arrived at {self._route[-1]}.")

    @staticmethod
    def _suffix_distances(route: Route) -> List[float]:
        suffix = [0.0] * len(route)
        for i in range(len(route) - 2, -1, -1):
            suffix[i] = distance_km(route[i], route[i + 1]) + suffix[i + 1]
        return suffix
