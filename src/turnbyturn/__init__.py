"""Turn-by-turn guidance engine: route tracking, off-route detection and voice guidance."""

from .models import Coord, LiveFix, ManeuverType, NavigationSnapshot, NavStatus, Route, RouteStep
from .nav_config import NavConfig
from .navigator import NavigationSession

__all__ = [
    "Coord",
    "LiveFix",
    "ManeuverType",
    "NavConfig",
    "NavigationSession",
    "NavigationSnapshot",
    "NavStatus",
    "Route",
    "RouteStep",
]
