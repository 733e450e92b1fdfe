# route_progress.py
# Snaps a live position onto the route polyline.
# Call track() on every GPS update; it keeps the polyline indices in TrackingState current.

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .geo_utils import (
    distance_between,
    project_onto_segment,
    segment_lengths,
    squared_planar_distance,
    squared_planar_distances,
)
from .models import Coord, ProgressResult, Route, TrackingState
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class RouteProgressTracker:
    """
    Finds where on the route the user is.

    The whole polyline is scanned on every update, so U-turns are followed.

    Usage:
        progress = RouteProgressTracker(config)
        result = progress.track(state, route, fix.coord)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._token: Optional[str] = None
        self._points: np.ndarray = np.zeros((0, 2))
        self._cumulative: np.ndarray = np.zeros(0)

    # ------------------------------------------------------------------
    # Per-route caches
    # ------------------------------------------------------------------

    def _prepare(self, route: Route) -> None:
        if route.token == self._token:
            return
        self._points = np.array([[c.lat, c.lon] for c in route.coordinates], dtype=float)
        self._cumulative = np.concatenate(([0.0], np.cumsum(segment_lengths(self._points))))
        self._token = route.token
        logger.debug(f"Prepared polyline with {len(self._points)} points ({self._cumulative[-1]:.0f} m).")

    # ------------------------------------------------------------------
    # Core methods
    # ------------------------------------------------------------------

    def track(self, state: TrackingState, route: Route, position: Coord) -> Optional[ProgressResult]:
        """
        Locate position on the route and record the segment and nearest vertex in state.

        Within one maneuver step the tracked segment only moves forward while
        the fix stays within snap tolerance of it, and the nearest vertex never
        moves back while the segment is unchanged. The maneuver tracker resets
        both indices to 0 when the step changes.

        Returns:
            ProgressResult, or None when the route has fewer than two points.
        """
        previous = state.tracked_segment_index
        result = self.locate(route, position, hint=previous)
        if result is None:
            return None

        state.tracked_segment_index = result.segment_index
        if result.segment_index != previous or result.closest_index > state.closest_polyline_index:
            state.closest_polyline_index = result.closest_index
        return result

    def locate(self, route: Route, position: Coord, hint: int = 0) -> Optional[ProgressResult]:
        """
        Snap position onto the route polyline.

        Args:
            route:    Active route.
            position: Raw GPS position.
            hint:     Segment index tracked so far; a scan result behind it is
                      treated as jitter while the fix still fits the hinted segment.

        Returns:
            ProgressResult, or None when the route has fewer than two points.
        """
        coords = route.coordinates
        if len(coords) < 2:
            return None
        self._prepare(route)

        closest = int(np.argmin(squared_planar_distances(self._points, position)))
        segment, snapped, snap_dist = self._best_adjacent_segment(coords, closest, position)

        hint = min(hint, len(coords) - 2)
        if segment < hint:
            hinted = project_onto_segment(position, coords[hint], coords[hint + 1])
            hinted_dist = distance_between(position, hinted)
            if hinted_dist <= self.config.snap_tolerance_m:
                segment, snapped, snap_dist = hint, hinted, hinted_dist
                closest = min(
                    (hint, hint + 1),
                    key=lambda i: squared_planar_distance(coords[i], position),
                )

        on_route = snap_dist <= self.config.snap_tolerance_m
        far_end = segment + 1
        remaining = distance_between(snapped, coords[far_end]) + float(
            self._cumulative[-1] - self._cumulative[far_end]
        )

        return ProgressResult(
            closest_index=closest,
            segment_index=segment,
            snapped=snapped,
            snap_distance_m=snap_dist,
            on_route=on_route,
            display_position=snapped if on_route else position,
            remaining_polyline=[snapped] + list(coords[far_end:]),
            remaining_distance_m=remaining,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _best_adjacent_segment(
        coords: Sequence[Coord], closest: int, position: Coord
    ) -> Tuple[int, Coord, float]:
        """Project onto the segments before and after the closest vertex, keep the nearer."""
        best: Optional[Tuple[int, Coord, float]] = None
        for start in (closest - 1, closest):
            if start < 0 or start + 1 >= len(coords):
                continue
            projected = project_onto_segment(position, coords[start], coords[start + 1])
            dist = distance_between(position, projected)
            # ties resolve to the later segment
            if best is None or dist <= best[2]:
                best = (start, projected, dist)
        return best
