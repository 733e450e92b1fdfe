# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Unit systems (used by formatting)
# ---------------------------------------------------------------------------

UNIT_SYSTEMS: frozenset = frozenset({"metric", "imperial", "imperial_uk"})

FEET_PER_METER: float = 3.28084
YARDS_PER_METER: float = 1.09361
METERS_PER_MILE: float = 1609.34


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Route snapping
    snap_tolerance_m: float = 30.0          # beyond this the raw fix is shown

    # Maneuver hysteresis
    approach_threshold_m: float = 20.0      # "got close" to the maneuver point
    exit_threshold_m: float = 25.0          # "moved away again" → step passed
    arrival_threshold_m: float = 40.0       # distance to final step that counts as arrived

    # Off-route detection
    off_route_threshold_m: float = 80.0     # deviation from route geometry
    recalculation_interval_s: float = 10.0  # min seconds between recalculation requests
    moving_speed_mps: float = 2.0           # below this GPS jitter is ignored

    # Voice guidance
    voice_close_range_m: float = 90.0       # ~300 ft, "right before the turn"
    voice_locale: str = "en-US"
    voice_rate: int = 165

    # Camera / heading
    heading_lookahead_vertices: int = 3

    # Presentation / routing hints
    units: str = "metric"                   # "metric" | "imperial" | "imperial_uk"
    travel_mode: str = "driving"

    # Logging
    log_dir: str = "logs"                   # directory for saved JSON files
    route_filename: str = "active_route.json"
    events_filename: str = "nav_session.jsonl"

    def __post_init__(self) -> None:
        if self.exit_threshold_m < self.approach_threshold_m:
            raise ValueError(
                f"exit_threshold_m ({self.exit_threshold_m}) must not be smaller than "
                f"approach_threshold_m ({self.approach_threshold_m})"
            )
        if self.units not in UNIT_SYSTEMS:
            raise ValueError(f"Unknown unit system: {self.units!r}")

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def events_filepath(self) -> str:
        return os.path.join(self.log_dir, self.events_filename)
