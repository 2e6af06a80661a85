import numpy as np
import pytest

from tracking.simulation.errors import SessionStateError
from tracking.simulation.models import Booking, BookingStatus, Coord, SessionStatus
from tracking.simulation.scheduler import ManualScheduler
from tracking.simulation.track_config import CUSTOMER_TRACKING, MECHANIC_DIRECTIONS
from tracking.simulation.tracking_session import (
    NO_DESTINATION_MESSAGE,
    NO_MECHANIC_MESSAGE,
    TrackingSession,
)

MECHANIC = Coord(14.5995, 120.9842)
CUSTOMER = Coord(14.6091, 121.0223)


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def session(clock):
    return TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(7))


def test_end_to_end_arrival_and_stop(session, clock):
    assert session.start(MECHANIC, CUSTOMER) is SessionStatus.RUNNING
    assert len(session.route) == 21
    assert session.route[0] == MECHANIC
    assert session.route[-1] == CUSTOMER

    clock.advance(19 * CUSTOMER_TRACKING.tick_interval_s)

    state = session.state
    assert state.arrived
    assert state.remaining_distance_km == 0
    assert state.eta_minutes == 0
    assert session.status is SessionStatus.ARRIVED
    assert clock.pending == 0

    session.stop()
    before = session.state
    session.simulator.tick()
    assert session.state == before


def test_missing_destination_is_unavailable(session, clock):
    assert session.start(MECHANIC, None) is SessionStatus.UNAVAILABLE
    assert session.message == NO_DESTINATION_MESSAGE
    assert session.route is None
    assert session.state is None
    assert session.map_frame() is None
    assert clock.pending == 0

    session.stop()
    assert session.status is SessionStatus.UNAVAILABLE


def test_missing_mechanic_is_unavailable(session):
    assert session.start(None, CUSTOMER) is SessionStatus.UNAVAILABLE
    assert session.message == NO_MECHANIC_MESSAGE


def test_session_starts_once(session):
    session.start(MECHANIC, CUSTOMER)
    with pytest.raises(SessionStateError):
        session.start(MECHANIC, CUSTOMER)


def test_same_point_arrives_immediately(session, clock):
    assert session.start(CUSTOMER, CUSTOMER) is SessionStatus.ARRIVED
    assert session.state.arrived
    assert session.state.eta_minutes == 0
    assert clock.pending == 0


def test_departure_tick_then_one_step_per_interval(session, clock):
    session.start(MECHANIC, CUSTOMER)
    assert session.state.waypoint_index == 1

    clock.advance(3.0)
    assert session.state.waypoint_index == 4
    assert session.state.current_position == session.route[4]


def test_stop_halts_ticks(session, clock):
    session.start(MECHANIC, CUSTOMER)
    clock.advance(3.0)
    session.stop()
    frozen = session.state

    clock.advance(10.0)
    assert session.state is frozen
    assert session.status is SessionStatus.STOPPED
    assert not session.is_active
    assert clock.pending == 0

    session.stop()
    assert session.status is SessionStatus.STOPPED


def test_on_update_receives_each_state(clock):
    received = []
    session = TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(1), on_update=received.append)
    session.start(MECHANIC, CUSTOMER)
    assert len(received) == 1

    clock.advance(3.0)
    assert len(received) == 4
    assert received[-1] == session.state


def test_context_manager_stops(clock):
    with TrackingSession(CUSTOMER_TRACKING, clock) as session:
        session.start(MECHANIC, CUSTOMER)
        assert session.is_active
    assert session.status is SessionStatus.STOPPED
    assert clock.pending == 0


def _booking(status):
    return Booking(
        booking_id="bk_1",
        status=status,
        mechanic_coord=MECHANIC,
        destination=CUSTOMER,
    )


def test_booking_completion_stops_session(session, clock):
    session.start_for_booking(_booking(BookingStatus.EN_ROUTE))
    session.update_booking_status(BookingStatus.IN_PROGRESS)
    assert session.is_active

    session.update_booking_status(BookingStatus.COMPLETED)
    assert session.status is SessionStatus.STOPPED
    assert clock.pending == 0


def test_leaving_trackable_set_stops_session(session):
    session.start_for_booking(_booking(BookingStatus.EN_ROUTE))
    session.update_booking_status(BookingStatus.RESCHEDULE_REQUESTED)
    assert session.status is SessionStatus.STOPPED


def test_pre_departure_status_keeps_running_until_cancelled(session):
    session.start_for_booking(_booking(BookingStatus.MECHANIC_ASSIGNED))
    session.update_booking_status(BookingStatus.MECHANIC_ASSIGNED)
    assert session.is_active

    session.update_booking_status(BookingStatus.CANCELLED)
    assert session.status is SessionStatus.STOPPED


def test_booking_without_location_is_unavailable(session):
    booking = Booking(booking_id="bk_2", status=BookingStatus.EN_ROUTE, mechanic_coord=MECHANIC)
    assert session.start_for_booking(booking) is SessionStatus.UNAVAILABLE
    assert session.message == NO_DESTINATION_MESSAGE


def test_explicit_destination_overrides_booking(session):
    booking = Booking(booking_id="bk_3", status=BookingStatus.EN_ROUTE, mechanic_coord=MECHANIC)
    assert session.start_for_booking(booking, destination=CUSTOMER) is SessionStatus.RUNNING
    assert session.route[-1] == CUSTOMER


def test_map_frame_tracks_mover(session, clock):
    session.start(MECHANIC, CUSTOMER)
    clock.advance(2.0)
    frame = session.map_frame()

    assert frame.source_marker == MECHANIC
    assert frame.destination_marker == CUSTOMER
    assert frame.current_position == session.state.current_position
    south, west, north, east = frame.bounds
    assert south < MECHANIC.lat < north
    assert west < CUSTOMER.lng < east


def test_interpolated_session_reaches_customer(clock):
    states = []
    session = TrackingSession(MECHANIC_DIRECTIONS, clock, rng=np.random.default_rng(5), on_update=states.append)
    session.start(MECHANIC, CUSTOMER)

    for _ in range(1000):
        if not session.is_active:
            break
        clock.advance(1.0)

    assert session.status is SessionStatus.ARRIVED
    assert states[-1].current_position == CUSTOMER
    for before, after in zip(states, states[1:]):
        assert after.remaining_distance_km <= before.remaining_distance_km


def test_sessions_do_not_share_state(clock):
    a = TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(1))
    b = TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(1))
    a.start(MECHANIC, CUSTOMER)
    b.start(MECHANIC, CUSTOMER)

    clock.advance(2.0)
    a.stop()
    clock.advance(2.0)

    assert a.state.waypoint_index == 3
    assert b.state.waypoint_index == 5
    assert b.is_active


def test_start_without_event_loop_leaves_session_stopped():
    session = TrackingSession(CUSTOMER_TRACKING, rng=np.random.default_rng(7))

    with pytest.raises(RuntimeError):
        session.start(MECHANIC, CUSTOMER)

    assert session.status is SessionStatus.STOPPED
    assert not session.is_active
    assert session.state.waypoint_index == 0
    assert not session.simulator.is_running


def _failing_update(fail_on):
    calls = []

    def on_update(state):
        calls.append(state)
        if len(calls) == fail_on:
            raise ValueError("render failed")

    return on_update


def test_failing_update_on_departure_stops_session(clock):
    session = TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(7), on_update=_failing_update(1))

    with pytest.raises(ValueError):
        session.start(MECHANIC, CUSTOMER)

    assert session.status is SessionStatus.STOPPED
    assert clock.pending == 0
    frozen = session.state
    clock.advance(5.0)
    assert session.state is frozen


def test_failing_update_on_later_tick_stops_session(clock):
    session = TrackingSession(CUSTOMER_TRACKING, clock, rng=np.random.default_rng(7), on_update=_failing_update(3))
    session.start(MECHANIC, CUSTOMER)

    with pytest.raises(ValueError):
        clock.advance(5.0)

    assert session.status is SessionStatus.STOPPED
    assert session.state.waypoint_index == 3
    assert clock.pending == 0
