# heading.py
# Display heading for map orientation. Advisory output only.

from typing import Optional

from .geo_utils import bearing_between
from .models import Coord, LiveFix, ProgressResult, Route
from .nav_config import NavConfig


class HeadingAdvisor:
    """
    Prefers the device heading; otherwise points at a vertex
    heading_lookahead_vertices ahead of the snapped segment.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    def heading(
        self,
        route: Route,
        fix: LiveFix,
        progress: Optional[ProgressResult],
        previous: Optional[float] = None,
    ) -> float:
        """
        Returns:
            Heading in degrees [0, 360); the previous heading (or 0.0) when no
            direction can be derived.
        """
        if fix.heading is not None:
            return fix.heading % 360

        fallback = previous if previous is not None else 0.0
        if progress is None:
            return fallback

        coords = route.coordinates
        origin: Coord = progress.display_position
        target_index = min(
            progress.segment_index + self.config.heading_lookahead_vertices,
            len(coords) - 1,
        )
        target = coords[target_index]
        if target == origin:
            return fallback
        return bearing_between(origin, target)
