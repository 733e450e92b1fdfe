# off_route.py
# Decides when the user has left the route and a new one must be requested.

import logging
from typing import Optional

from .geo_utils import distance_between
from .models import LiveFix, ProgressResult, TrackingState
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


def estimate_speed(previous: Optional[LiveFix], fix: LiveFix) -> Optional[float]:
    """
    Speed in m/s derived from two timestamped fixes.

    Returns:
        Estimated speed, or None when either fix lacks a timestamp or no time
        has passed between them.
    """
    if previous is None or previous.timestamp is None or fix.timestamp is None:
        return None
    elapsed = fix.timestamp - previous.timestamp
    if elapsed <= 0:
        return None
    return distance_between(previous.coord, fix.coord) / elapsed


class OffRouteDetector:
    """
    Rate-limited deviation check.

    Only a moving user (reported or estimated speed above moving_speed_mps) is
    checked, so GPS drift while parked never triggers a recalculation. At most
    one request is in flight, and requests are at least
    recalculation_interval_s apart.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    def check(
        self,
        state: TrackingState,
        progress: ProgressResult,
        fix: LiveFix,
        now: float,
    ) -> bool:
        """
        Evaluate the fix and enter the recalculating state when off route.

        Args:
            state:    Session state (mutated when a recalculation starts).
            progress: Snap result for this fix; its snap distance is the deviation.
            fix:      Current fix.
            now:      Current time in seconds.

        Returns:
            True when the caller must issue a route request now.
        """
        if state.has_arrived or state.recalculation_pending:
            return False

        last = state.last_recalculation_time
        if last is not None and now - last < self.config.recalculation_interval_s:
            return False

        speed = fix.speed if fix.speed is not None else estimate_speed(state.last_fix, fix)
        if speed is None or speed < self.config.moving_speed_mps:
            return False

        deviation = progress.snap_distance_m
        if deviation <= self.config.off_route_threshold_m:
            return False

        logger.warning(
            f"Off route: {deviation:.0f} m from route at {speed:.1f} m/s. Requesting a new route."
        )
        state.is_recalculating = True
        state.recalculation_pending = True
        state.last_recalculation_time = now
        return True
