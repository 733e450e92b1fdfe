# maneuver_tracker.py
# State machine that decides which maneuver step is active.
# Call update() on every GPS update; the session owns the TrackingState it mutates.

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .geo_utils import distance_between
from .models import Coord, Route, RouteStep, TrackingState
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class ManeuverEvent(Enum):
    NONE     = "none"
    ADVANCED = "advanced"
    ARRIVED  = "arrived"


@dataclass
class ManeuverUpdate:
    """Returned by ManeuverTracker.update() every GPS update."""
    event: ManeuverEvent
    step_index: int
    step: RouteStep
    distance_to_maneuver: float     # metres, straight line to step.location


class ManeuverTracker:
    """
    APPROACHING(step) → ARRIVED state machine with approach/exit hysteresis.

    A step is passed only once the user came within approach_threshold_m of
    its maneuver point and afterwards moved beyond exit_threshold_m. Driving
    alongside a maneuver point without taking the turn therefore never
    advances the step.

    Usage:
        maneuvers = ManeuverTracker(config)

        # Inside GPS loop:
        update = maneuvers.update(state, route, position)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    def update(self, state: TrackingState, route: Route, position: Coord) -> Optional[ManeuverUpdate]:
        """
        Advance or arrive based on the new position.

        Transitions are frozen while recalculating and after arrival; the
        returned update still carries the live distance to the active step.

        Args:
            state:    Session state (mutated).
            route:    Active route.
            position: Current position.

        Returns:
            ManeuverUpdate, or None when the route has no steps.
        """
        if not route.steps:
            return None

        index = state.active_step_index
        step = route.steps[index]
        dist = distance_between(position, step.location)

        if state.is_recalculating or state.has_arrived:
            return ManeuverUpdate(ManeuverEvent.NONE, index, step, dist)

        state.min_approach_distance = min(state.min_approach_distance, dist)

        # 1. Final step: latched arrival
        if index == len(route.steps) - 1:
            if dist < self.config.arrival_threshold_m:
                state.has_arrived = True
                logger.info(f"Arrived: {dist:.1f} m from destination.")
                return ManeuverUpdate(ManeuverEvent.ARRIVED, index, step, dist)
            return ManeuverUpdate(ManeuverEvent.NONE, index, step, dist)

        # 2. Got close, then moved away → step passed
        if (
            state.min_approach_distance < self.config.approach_threshold_m
            and dist > self.config.exit_threshold_m
        ):
            logger.info(
                f"Step {index} passed (closest {state.min_approach_distance:.1f} m, now {dist:.1f} m)."
            )
            state.active_step_index = index + 1
            state.min_approach_distance = math.inf
            state.closest_polyline_index = 0
            state.tracked_segment_index = 0

            next_step = route.steps[state.active_step_index]
            return ManeuverUpdate(
                ManeuverEvent.ADVANCED,
                state.active_step_index,
                next_step,
                distance_between(position, next_step.location),
            )

        # 3. Still approaching
        return ManeuverUpdate(ManeuverEvent.NONE, index, step, dist)
