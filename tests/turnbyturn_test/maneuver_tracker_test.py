import math

import pytest

from turnbyturn.maneuver_tracker import ManeuverEvent, ManeuverTracker
from turnbyturn.models import Coord, TrackingState
from turnbyturn.nav_config import NavConfig

from nav_helpers import east_route, l_route, offset


@pytest.fixture
def tracker():
    return ManeuverTracker(NavConfig(approach_threshold_m=20, exit_threshold_m=25, arrival_threshold_m=40))


def run(tracker, state, route, distances_east):
    """Feed positions at the given signed distances from the first maneuver point."""
    events = []
    for d in distances_east:
        update = tracker.update(state, route, offset(Coord(0, 0), east_m=d))
        events.append((update.event, state.active_step_index))
    return events


def test_advances_only_when_exit_threshold_crossed(tracker):
    route = east_route(2000)
    state = TrackingState()

    events = run(tracker, state, route, [-100, -50, -15, 20, 30])

    assert [e for e, _ in events] == [ManeuverEvent.NONE] * 4 + [ManeuverEvent.ADVANCED]
    assert [i for _, i in events] == [0, 0, 0, 0, 1]
    assert state.min_approach_distance == math.inf


def test_no_advance_without_exit(tracker):
    route = east_route(2000)
    state = TrackingState()

    events = run(tracker, state, route, [-100, -50, -15, 18, 20, -19, 17])

    assert all(e == ManeuverEvent.NONE for e, _ in events)
    assert state.active_step_index == 0
    assert state.min_approach_distance == pytest.approx(15, abs=0.01)


def test_passing_alongside_without_getting_close_does_not_advance(tracker):
    route = east_route(2000)
    state = TrackingState()
    for d in (-100, -40, 0, 40, 100):
        tracker.update(state, route, offset(Coord(0, 0), east_m=d, north_m=22))
    assert state.active_step_index == 0


def test_advance_resets_polyline_hint(tracker):
    route = east_route(2000)
    state = TrackingState(closest_polyline_index=2, tracked_segment_index=1)
    run(tracker, state, route, [0, 30])
    assert state.active_step_index == 1
    assert state.closest_polyline_index == 0
    assert state.tracked_segment_index == 0


def test_arrival_is_latched(tracker):
    route = l_route()
    state = TrackingState(active_step_index=2)
    destination = Coord(1, 1)

    first = tracker.update(state, route, offset(destination, north_m=-30))
    again = tracker.update(state, route, destination)

    assert first.event == ManeuverEvent.ARRIVED
    assert state.has_arrived
    assert again.event == ManeuverEvent.NONE


def test_no_transition_while_recalculating(tracker):
    route = east_route(2000)
    state = TrackingState(is_recalculating=True)
    run(tracker, state, route, [0, 100])
    assert state.active_step_index == 0
    assert state.min_approach_distance == math.inf


def test_step_index_never_exceeds_last_step(tracker):
    route = l_route()
    state = TrackingState()
    path = [Coord(0, 0), Coord(0, 0.5), Coord(0, 1), Coord(0.5, 1), Coord(1, 1), Coord(0.5, 1), Coord(0, 0)]
    seen = []
    for p in path:
        tracker.update(state, route, p)
        seen.append(state.active_step_index)
    assert seen == sorted(seen)
    assert max(seen) == len(route.steps) - 1


def test_route_without_steps_is_ignored(tracker):
    route = east_route(2000)
    empty = type(route)(steps=(), coordinates=route.coordinates, distance_meters=0, duration_seconds=0)
    assert tracker.update(TrackingState(), empty, Coord(0, 0)) is None
