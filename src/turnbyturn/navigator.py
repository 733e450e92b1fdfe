# navigator.py
# Public entry point for the guidance engine.
# Owns no business logic; runs the specialist modules in order on every fix.

import logging
import threading
import time
from typing import Callable, Optional, Protocol, Tuple

from .heading import HeadingAdvisor
from .maneuver_tracker import ManeuverEvent, ManeuverTracker, ManeuverUpdate
from .models import (
    Coord,
    LiveFix,
    NavigationSnapshot,
    NavStatus,
    ProgressResult,
    Route,
    TrackingState,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .off_route import OffRouteDetector
from .route_progress import RouteProgressTracker
from .voice_scheduler import ARRIVAL_PHRASE, RECALCULATING_PHRASE, VoiceScheduler

logger = logging.getLogger(__name__)


class VoiceOutput(Protocol):
    """Voice-output collaborator. A new utterance interrupts the current one."""

    def speak(self, text: str, locale: str, rate: int) -> None: ...

    def stop(self) -> None: ...


# (origin, destination, travel_mode) → None; must return without waiting for the route.
RouteRequester = Callable[[Coord, Coord, str], None]


class NavigationSession:
    """
    One active navigation session.

    Typical lifecycle:
        session = NavigationSession(config, voice=Pyttsx3Voice(), route_requester=requester)
        session.start(route)

        # GPS loop:
        snapshot = session.update(LiveFix(Coord(lat, lon), speed=speed))

        # Routing collaborator, later:
        session.supply_route(new_route)       # or session.report_route_failure("...")

        session.end()

    Entry points are serialised with a lock, so a routing collaborator may
    deliver its result from another thread. Failures of collaborators are
    logged and never propagate out of an entry point.

    Args:
        config:          Optional NavConfig; defaults to NavConfig().
        voice:           Voice output, or None for silent guidance.
        route_requester: Non-blocking recalculation trigger.
        on_snapshot:     Called with the snapshot after each processed fix.
        on_arrived:      Called exactly once when the destination is reached.
        nav_logger:      Optional NavLogger for route/event persistence.
        clock:           Time source for fixes without a timestamp.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        voice: Optional[VoiceOutput] = None,
        route_requester: Optional[RouteRequester] = None,
        on_snapshot: Optional[Callable[[NavigationSnapshot], None]] = None,
        on_arrived: Optional[Callable[[], None]] = None,
        nav_logger: Optional[NavLogger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or NavConfig()
        self._voice = voice
        self._route_requester = route_requester
        self._on_snapshot = on_snapshot
        self._on_arrived = on_arrived
        self._nav_logger = nav_logger
        self._clock = clock

        # Specialist modules
        self._progress = RouteProgressTracker(self.config)
        self._maneuvers = ManeuverTracker(self.config)
        self._off_route = OffRouteDetector(self.config)
        self._voice_scheduler = VoiceScheduler(self.config)
        self._heading = HeadingAdvisor(self.config)

        self._lock = threading.RLock()
        self._active = False
        self._route: Optional[Route] = None
        self._destination: Optional[Coord] = None
        self._state: Optional[TrackingState] = None
        self._failure: Optional[str] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, route: Route, destination: Optional[Coord] = None) -> Tuple[bool, str]:
        """
        Begin tracking a route with fresh state.

        Args:
            route:       Route from the routing collaborator.
            destination: Target used for recalculation; defaults to the
                         route's last point.

        Returns:
            (success, message)
        """
        with self._lock:
            if self._active:
                logger.info("Starting a new session over an active one.")

            self._route = route
            self._destination = destination or route.destination
            self._state = TrackingState()
            self._failure = None
            self._active = True
            self._generation += 1

            if not route.is_navigable:
                logger.warning(
                    f"Route has {len(route.coordinates)} points and {len(route.steps)} steps; "
                    "fixes will be ignored until a usable route arrives."
                )
                return False, "Route has no usable geometry."

            if self._nav_logger:
                self._nav_logger.save_route(route)
            logger.info(
                f"Navigation started: {len(route.steps)} steps, "
                f"{route.distance_meters:.0f} m. First: {route.steps[0].text}"
            )
            return True, f"Route ready. {len(route.steps)} steps."

    def supply_route(self, route: Route, generation: Optional[int] = None) -> bool:
        """
        Hand over a replacement route (recalculation result or mode change).

        A route with a new identity token resets all tracking state. The same
        route handed over again keeps the state and only ends a pending
        recalculation.

        Args:
            route:      Replacement route.
            generation: Value of `generation` when the recalculation was
                        requested. A result from another session, or one
                        arriving when no request is pending, is dropped.

        Returns:
            True when the route replaced the tracked one.
        """
        with self._lock:
            if not self._active or self._state is None:
                logger.info("Ignoring route supplied after the session ended.")
                return False
            if self._is_stale(generation):
                return False

            state = self._state
            if self._route is not None and route.token == self._route.token:
                logger.debug("Supplied route matches the tracked one; keeping state.")
                state.is_recalculating = False
                state.recalculation_pending = False
                self._failure = None
                return False

            self._route = route
            state.reset()
            self._failure = None
            if self._nav_logger and route.is_navigable:
                self._nav_logger.save_route(route)
            logger.info(f"New route supplied: {len(route.steps)} steps; tracking state reset.")
            return True

    def report_route_failure(self, reason: str, generation: Optional[int] = None) -> None:
        """
        Report that a recalculation produced no route.

        The session stays in the recalculating state; the next attempt is
        gated by the usual rate limit and continued deviation. `generation`
        is handled as in supply_route().
        """
        with self._lock:
            if not self._active or self._state is None:
                return
            if self._is_stale(generation):
                return
            self._state.recalculation_pending = False
            self._failure = reason or "No route found."
            logger.warning(f"Recalculation failed: {self._failure}")
            self._publish(self._status_snapshot(NavStatus.NO_ROUTE, self._failure), None)

    def end(self) -> None:
        """
        End the session. Pending voice output is stopped unless the arrival
        announcement is playing; later fixes are ignored.
        """
        with self._lock:
            if not self._active:
                return
            arrived = self._state is not None and self._state.has_arrived
            if not arrived:
                self._stop_voice()
            self._active = False
            self._generation += 1
            self._state = None
            self._route = None
            self._destination = None
            logger.info("Navigation ended.")

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def state(self) -> Optional[TrackingState]:
        return self._state

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def generation(self) -> int:
        """Changes on every start() and end(); pass it back with a recalculation result."""
        return self._generation

    # ------------------------------------------------------------------
    # GPS update: call this on every position fix
    # ------------------------------------------------------------------

    def update(self, fix: LiveFix) -> NavigationSnapshot:
        """
        Process a new position fix.

        Args:
            fix: Current position sample.

        Returns:
            NavigationSnapshot for the presentation layer.
        """
        with self._lock:
            if not self._active or self._route is None or self._state is None:
                return NavigationSnapshot(status=NavStatus.INACTIVE, message="Navigation is not active.")

            route = self._route
            state = self._state
            if not route.is_navigable:
                return NavigationSnapshot(status=NavStatus.INACTIVE, message="Waiting for a usable route.")

            now = fix.timestamp if fix.timestamp is not None else self._clock()

            # 1. Snap onto the route
            progress = self._progress.track(state, route, fix.coord)

            # 2. Advance / arrive
            update = self._maneuvers.update(state, route, fix.coord)
            arrived_now = update.event == ManeuverEvent.ARRIVED
            if arrived_now:
                self._announce(ARRIVAL_PHRASE)

            # 3. Off-route check, then regular voice guidance
            if self._off_route.check(state, progress, fix, now):
                self._failure = None
                self._announce(RECALCULATING_PHRASE)
                self._request_route(fix.coord)
                if self._route is not route or self._state is not state:
                    return self._handover_snapshot(fix)
            else:
                utterance = self._voice_scheduler.next_utterance(state, update)
                if utterance:
                    self._announce(utterance)

            # 4. Display heading
            heading = self._heading.heading(route, fix, progress, state.last_heading)
            state.last_heading = heading
            state.last_fix = fix

            snapshot = self._snapshot(route, state, update, progress, heading)
            self._publish(snapshot, fix)

            if arrived_now:
                self._notify_arrived()
            return snapshot

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _current_status(self, state: TrackingState) -> NavStatus:
        if state.has_arrived:
            return NavStatus.ARRIVED
        if state.is_recalculating:
            return NavStatus.NO_ROUTE if self._failure else NavStatus.RECALCULATING
        return NavStatus.NAVIGATING

    def _snapshot(
        self,
        route: Route,
        state: TrackingState,
        update: ManeuverUpdate,
        progress: ProgressResult,
        heading: float,
    ) -> NavigationSnapshot:
        status = self._current_status(state)
        if status == NavStatus.ARRIVED:
            message = ARRIVAL_PHRASE
        elif status == NavStatus.NO_ROUTE:
            message = self._failure
        elif status == NavStatus.RECALCULATING:
            message = "Recalculating route..."
        else:
            message = update.step.text

        remaining = progress.remaining_distance_m
        if route.distance_meters > 0:
            remaining_duration = route.duration_seconds * min(1.0, remaining / route.distance_meters)
        else:
            remaining_duration = 0.0

        return NavigationSnapshot(
            status=status,
            message=message,
            step_index=update.step_index,
            instruction=update.step.text,
            maneuver=update.step.maneuver,
            vehicle_label=update.step.vehicle_label,
            distance_to_maneuver_m=update.distance_to_maneuver,
            remaining_distance_m=remaining,
            remaining_duration_s=remaining_duration,
            display_position=progress.display_position,
            on_route=progress.on_route,
            remaining_polyline=tuple(progress.remaining_polyline),
            heading=heading,
        )

    def _handover_snapshot(self, fix: LiveFix) -> NavigationSnapshot:
        """Snapshot for a fix during which the route requester handed over a result."""
        if not self._active or self._route is None or self._state is None:
            return NavigationSnapshot(status=NavStatus.INACTIVE, message="Navigation is not active.")
        self._state.last_fix = fix

        status = self._current_status(self._state)
        if status == NavStatus.NO_ROUTE:
            message = self._failure
        elif status == NavStatus.RECALCULATING:
            message = "Recalculating route..."
        elif self._route.is_navigable:
            message = self._route.steps[0].text
        else:
            message = "Waiting for a usable route."

        snapshot = self._status_snapshot(status, message)
        self._publish(snapshot, fix)
        return snapshot

    def _status_snapshot(self, status: NavStatus, message: str) -> NavigationSnapshot:
        last_fix = self._state.last_fix if self._state else None
        return NavigationSnapshot(
            status=status,
            message=message,
            step_index=self._state.active_step_index if self._state else None,
            display_position=last_fix.coord if last_fix else None,
            heading=self._state.last_heading if self._state else None,
        )

    # ------------------------------------------------------------------
    # Collaborator calls: never raise
    # ------------------------------------------------------------------

    def _publish(self, snapshot: NavigationSnapshot, fix: Optional[LiveFix]) -> None:
        if self._on_snapshot:
            try:
                self._on_snapshot(snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}")
        if self._nav_logger and fix is not None:
            self._nav_logger.log_event(snapshot, fix.coord.lat, fix.coord.lon)

    def _announce(self, text: str) -> None:
        logger.info(f"[Voice] {text}")
        if not self._voice:
            return
        try:
            self._voice.speak(text, self.config.voice_locale, self.config.voice_rate)
        except Exception as e:
            logger.warning(f"Voice output failed, guidance continues: {e}")

    def _stop_voice(self) -> None:
        if not self._voice:
            return
        try:
            self._voice.stop()
        except Exception as e:
            logger.warning(f"Failed to stop voice output: {e}")

    def _is_stale(self, generation: Optional[int]) -> bool:
        if generation is None:
            return False
        if generation != self._generation:
            logger.info(f"Dropping route result from session {generation} (current {self._generation}).")
            return True
        if not self._state.recalculation_pending:
            logger.info("Dropping route result; no recalculation is pending.")
            return True
        return False

    def _request_route(self, origin: Coord) -> None:
        state = self._state
        destination = self._destination
        if self._route_requester is None or destination is None:
            logger.warning("No route provider configured; staying in recalculating state.")
            state.recalculation_pending = False
            self._failure = "Rerouting is unavailable."
            return
        try:
            self._route_requester(origin, destination, self.config.travel_mode)
        except Exception as e:
            logger.error(f"Route request failed: {e}")
            state.recalculation_pending = False
            self._failure = f"Route request failed: {e}"

    def _notify_arrived(self) -> None:
        if not self._on_arrived:
            return
        try:
            self._on_arrived()
        except Exception as e:
            logger.error(f"Arrival listener failed: {e}")
