# models.py
# Shared data structures and enums used across all modules.

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate (WGS84, degrees)."""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(d: dict) -> "Coord":
        return Coord(float(d["lat"]), float(d["lon"]))


# ---------------------------------------------------------------------------
# Route step
# ---------------------------------------------------------------------------

class ManeuverType(Enum):
    LEFT         = "left"
    RIGHT        = "right"
    SHARP_LEFT   = "sharp_left"
    SHARP_RIGHT  = "sharp_right"
    SLIGHT_LEFT  = "slight_left"
    SLIGHT_RIGHT = "slight_right"
    STRAIGHT     = "straight"
    U_TURN       = "u_turn"
    MERGE        = "merge"
    RAMP         = "ramp"
    ROUNDABOUT   = "roundabout"
    FORK         = "fork"
    ARRIVE       = "arrive"
    TRANSIT      = "transit"


@dataclass(frozen=True)
class RouteStep:
    """A single maneuver of a route."""
    text: str                       # human-readable instruction
    maneuver: ManeuverType
    location: Coord                 # where the maneuver happens
    vehicle_label: Optional[str] = None   # transit line, e.g. "Bus 42"
    road_name: Optional[str] = None
    distance_meters: float = 0.0    # length of the step leading away from location

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "maneuver": self.maneuver.value,
            "location": self.location.to_dict(),
            "vehicle_label": self.vehicle_label,
            "road_name": self.road_name,
            "distance_meters": self.distance_meters,
        }

    @staticmethod
    def from_dict(d: dict) -> "RouteStep":
        return RouteStep(
            text=d["text"],
            maneuver=ManeuverType(d["maneuver"]),
            location=Coord.from_dict(d["location"]),
            vehicle_label=d.get("vehicle_label"),
            road_name=d.get("road_name"),
            distance_meters=d.get("distance_meters", 0.0),
        )


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Route:
    """
    A navigable route handed to the engine by the routing collaborator.

    `identity` is an opaque token (typically the encoded polyline) that tells a
    genuinely new route apart from the same route handed over again.
    """
    steps: Tuple[RouteStep, ...]
    coordinates: Tuple[Coord, ...]
    distance_meters: float
    duration_seconds: float
    identity: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "coordinates", tuple(self.coordinates))

    @property
    def token(self) -> str:
        if self.identity is not None:
            return self.identity
        return f"{len(self.coordinates)}:{len(self.steps)}:{hash(self.coordinates)}"

    @property
    def is_navigable(self) -> bool:
        return len(self.coordinates) >= 2 and len(self.steps) > 0

    @property
    def destination(self) -> Optional[Coord]:
        if self.coordinates:
            return self.coordinates[-1]
        return None

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "distance_meters": self.distance_meters,
            "duration_seconds": self.duration_seconds,
            "coordinates": [[c.lat, c.lon] for c in self.coordinates],
            "steps": [s.to_dict() for s in self.steps],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        return Route(
            steps=tuple(RouteStep.from_dict(s) for s in d["steps"]),
            coordinates=tuple(Coord(lat, lon) for lat, lon in d["coordinates"]),
            distance_meters=d["distance_meters"],
            duration_seconds=d["duration_seconds"],
            identity=d.get("identity"),
        )


# ---------------------------------------------------------------------------
# Live position
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiveFix:
    """One position sample from the location collaborator."""
    coord: Coord
    heading: Optional[float] = None     # degrees, direction of travel
    speed: Optional[float] = None       # m/s
    timestamp: Optional[float] = None   # seconds, monotonic


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

@dataclass
class TrackingState:
    """Mutable state of exactly one navigation session."""
    active_step_index: int = 0
    closest_polyline_index: int = 0     # nearest route vertex, non-decreasing within a step
    tracked_segment_index: int = 0      # segment the fix is snapped onto
    min_approach_distance: float = math.inf
    is_recalculating: bool = False
    recalculation_pending: bool = False
    last_recalculation_time: Optional[float] = None
    last_spoken_step_index: int = -1
    last_spoken_text: Optional[str] = None
    spoken_close: bool = False
    has_arrived: bool = False
    last_fix: Optional[LiveFix] = None
    last_heading: Optional[float] = None

    def reset(self) -> None:
        """Full reinitialisation for a new route."""
        self.active_step_index = 0
        self.closest_polyline_index = 0
        self.tracked_segment_index = 0
        self.min_approach_distance = math.inf
        self.is_recalculating = False
        self.recalculation_pending = False
        self.last_spoken_step_index = -1
        self.last_spoken_text = None
        self.spoken_close = False
        self.has_arrived = False


# ---------------------------------------------------------------------------
# Per-fix results
# ---------------------------------------------------------------------------

@dataclass
class ProgressResult:
    """Returned by RouteProgressTracker.locate() every GPS update."""
    closest_index: int                  # nearest polyline vertex
    segment_index: int                  # snapped segment is coordinates[i] → [i + 1]
    snapped: Coord
    snap_distance_m: float
    on_route: bool                      # snap_distance_m within tolerance
    display_position: Coord             # snapped when on route, raw fix otherwise
    remaining_polyline: List[Coord] = field(default_factory=list)
    remaining_distance_m: float = 0.0


class NavStatus(Enum):
    INACTIVE      = "inactive"
    NAVIGATING    = "navigating"
    RECALCULATING = "recalculating"
    NO_ROUTE      = "no_route"
    ARRIVED       = "arrived"


@dataclass(frozen=True)
class NavigationSnapshot:
    """Read-only view handed to the presentation layer after each fix."""
    status: NavStatus
    message: str = ""
    step_index: Optional[int] = None
    instruction: Optional[str] = None
    maneuver: Optional[ManeuverType] = None
    vehicle_label: Optional[str] = None
    distance_to_maneuver_m: Optional[float] = None
    remaining_distance_m: Optional[float] = None
    remaining_duration_s: Optional[float] = None
    display_position: Optional[Coord] = None
    on_route: bool = False
    remaining_polyline: Tuple[Coord, ...] = ()
    heading: Optional[float] = None

    @property
    def is_arrived(self) -> bool:
        return self.status == NavStatus.ARRIVED

    @property
    def is_recalculating(self) -> bool:
        return self.status in (NavStatus.RECALCULATING, NavStatus.NO_ROUTE)
