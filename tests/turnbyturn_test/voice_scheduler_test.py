import pytest

from turnbyturn.maneuver_tracker import ManeuverEvent, ManeuverUpdate
from turnbyturn.models import Coord, ManeuverType, RouteStep, TrackingState
from turnbyturn.nav_config import NavConfig
from turnbyturn.voice_scheduler import VoiceScheduler

LEFT = RouteStep("Turn left onto Main Street", ManeuverType.LEFT, Coord(0, 0))
RIGHT = RouteStep("Turn right onto Oak Avenue", ManeuverType.RIGHT, Coord(0, 0.01))


def at(step: RouteStep, index: int, distance: float) -> ManeuverUpdate:
    return ManeuverUpdate(ManeuverEvent.NONE, index, step, distance)


@pytest.fixture
def scheduler():
    return VoiceScheduler(NavConfig(voice_close_range_m=90, units="metric"))


def test_early_then_close_announcement_only(scheduler):
    state = TrackingState()
    spoken = [scheduler.next_utterance(state, at(LEFT, 0, d)) for d in range(500, -1, -10)]
    spoken = [s for s in spoken if s]

    assert spoken == ["In 500 meters, turn left onto Main Street", "Turn left onto Main Street"]


def test_close_on_activation_is_spoken_once(scheduler):
    state = TrackingState()
    spoken = [scheduler.next_utterance(state, at(LEFT, 0, d)) for d in (60, 40, 20, 5)]
    assert spoken == ["Turn left onto Main Street", None, None, None]


def test_new_step_is_announced(scheduler):
    state = TrackingState()
    scheduler.next_utterance(state, at(LEFT, 0, 50))
    assert scheduler.next_utterance(state, at(RIGHT, 1, 1200)) == "In 1.2 kilometers, turn right onto Oak Avenue"
    assert state.last_spoken_step_index == 1


def test_changed_text_at_same_index_is_announced(scheduler):
    state = TrackingState()
    scheduler.next_utterance(state, at(LEFT, 0, 50))
    changed = RouteStep("Turn left onto Elm Street", ManeuverType.LEFT, Coord(0, 0))
    assert scheduler.next_utterance(state, at(changed, 0, 50)) == "Turn left onto Elm Street"


@pytest.mark.parametrize("flag", ["is_recalculating", "has_arrived"])
def test_suppressed_while_recalculating_or_arrived(scheduler, flag):
    state = TrackingState(**{flag: True})
    assert scheduler.next_utterance(state, at(LEFT, 0, 50)) is None
    assert state.last_spoken_step_index == -1


def test_imperial_units():
    scheduler = VoiceScheduler(NavConfig(units="imperial"))
    state = TrackingState()
    assert scheduler.next_utterance(state, at(LEFT, 0, 804.67)) == "In 0.5 miles, turn left onto Main Street"
