# osrm_adapter.py
# Turns an OSRM /route/v1 response into a Route.
# Request with overview=full&geometries=polyline&steps=true.

import html
import logging
import re
from typing import Optional, Tuple

import polyline

from .models import Coord, ManeuverType, Route, RouteStep

logger = logging.getLogger(__name__)


_TAG_RE = re.compile(r"<[^>]+>")

_MODIFIERS = {
    "left": ManeuverType.LEFT,
    "right": ManeuverType.RIGHT,
    "sharp left": ManeuverType.SHARP_LEFT,
    "sharp right": ManeuverType.SHARP_RIGHT,
    "slight left": ManeuverType.SLIGHT_LEFT,
    "slight right": ManeuverType.SLIGHT_RIGHT,
    "straight": ManeuverType.STRAIGHT,
    "uturn": ManeuverType.U_TURN,
}

_ROUNDABOUT_TYPES = frozenset({"roundabout", "rotary", "roundabout turn"})
_TRANSIT_MODES = frozenset({"train", "ferry"})
_COMPASS = ("north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def strip_html(text: Optional[str]) -> str:
    """Drop markup and entities from a road name or instruction."""
    if not text:
        return ""
    return " ".join(html.unescape(_TAG_RE.sub(" ", text)).split())


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _side(modifier: Optional[str]) -> str:
    if modifier and "left" in modifier:
        return "left"
    if modifier and "right" in modifier:
        return "right"
    return "straight"


def classify_maneuver(maneuver_type: str, modifier: Optional[str], mode: Optional[str] = None) -> ManeuverType:
    """Map OSRM maneuver type / modifier / travel mode to a ManeuverType."""
    if maneuver_type == "arrive":
        return ManeuverType.ARRIVE
    if mode in _TRANSIT_MODES:
        return ManeuverType.TRANSIT
    if maneuver_type in _ROUNDABOUT_TYPES or maneuver_type in ("exit roundabout", "exit rotary"):
        return ManeuverType.ROUNDABOUT
    if maneuver_type == "merge":
        return ManeuverType.MERGE
    if maneuver_type in ("on ramp", "off ramp"):
        return ManeuverType.RAMP
    if maneuver_type == "fork":
        return ManeuverType.FORK
    if maneuver_type == "depart":
        return ManeuverType.STRAIGHT
    return _MODIFIERS.get(modifier or "", ManeuverType.STRAIGHT)


def build_instruction(
    maneuver_type: str,
    modifier: Optional[str],
    name: Optional[str],
    exit_number: Optional[int] = None,
    bearing_after: Optional[float] = None,
    vehicle_label: Optional[str] = None,
) -> str:
    """Human-readable instruction for one OSRM step."""
    onto = f" onto {name}" if name else ""

    if vehicle_label:
        return f"Take the {vehicle_label}{onto}"

    if maneuver_type == "depart":
        heading = _COMPASS[int(((bearing_after or 0.0) + 22.5) % 360 // 45)]
        return f"Head {heading}" + (f" on {name}" if name else "")

    if maneuver_type == "arrive":
        side = _side(modifier)
        if side == "straight":
            return "Arrive at your destination"
        return f"Arrive at your destination, on the {side}"

    if maneuver_type in _ROUNDABOUT_TYPES:
        if exit_number:
            return f"Enter the roundabout and take the {_ordinal(exit_number)} exit{onto}"
        return f"Enter the roundabout{onto}"

    if maneuver_type in ("exit roundabout", "exit rotary"):
        return f"Exit the roundabout{onto}"

    if maneuver_type == "merge":
        side = _side(modifier)
        return f"Merge{onto}" if side == "straight" else f"Merge {side}{onto}"

    if maneuver_type == "on ramp":
        return f"Take the ramp on the {_side(modifier)}{onto}"

    if maneuver_type == "off ramp":
        return f"Take the exit on the {_side(modifier)}{onto}"

    if maneuver_type == "fork":
        return f"Keep {_side(modifier)} at the fork{onto}"

    if modifier == "uturn":
        return f"Make a U-turn{onto}"

    if maneuver_type in ("turn", "end of road"):
        if modifier in (None, "straight"):
            return f"Continue straight{onto}"
        return f"Turn {modifier}{onto}"

    # continue / new name / notification / anything newer OSRM adds
    if modifier and modifier.startswith("slight"):
        return f"Keep {_side(modifier)}{onto}"
    return f"Continue{onto}"


def _parse_step(raw: dict) -> RouteStep:
    maneuver = raw["maneuver"]
    lon, lat = maneuver["location"]
    maneuver_type = maneuver.get("type", "turn")
    modifier = maneuver.get("modifier")
    mode = raw.get("mode")
    name = strip_html(raw.get("name")) or None

    kind = classify_maneuver(maneuver_type, modifier, mode)
    vehicle_label = None
    if kind == ManeuverType.TRANSIT:
        vehicle_label = strip_html(raw.get("ref")) or mode

    return RouteStep(
        text=build_instruction(
            maneuver_type,
            modifier,
            name,
            exit_number=maneuver.get("exit"),
            bearing_after=maneuver.get("bearing_after"),
            vehicle_label=vehicle_label,
        ),
        maneuver=kind,
        location=Coord(float(lat), float(lon)),
        vehicle_label=vehicle_label,
        road_name=name,
        distance_meters=float(raw.get("distance", 0.0)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def route_from_osrm(response: dict, precision: int = 5) -> Tuple[Optional[Route], str]:
    """
    Build a Route from the first route of an OSRM response.

    The encoded polyline doubles as the route identity token.

    Args:
        response:  Decoded JSON body of an OSRM route request.
        precision: Polyline precision (5 for polyline, 6 for polyline6).

    Returns:
        (route, message): route is None on failure.
    """
    if not isinstance(response, dict):
        return None, "Routing response is not a JSON object."

    code = response.get("code")
    if code != "Ok":
        msg = response.get("message") or f"Routing failed ({code})."
        logger.warning(f"OSRM returned {code}: {msg}")
        return None, msg

    routes = response.get("routes") or []
    if not routes:
        return None, "No route found."
    raw = routes[0]

    try:
        geometry = raw["geometry"]
        if isinstance(geometry, dict):
            points = [(lat, lon) for lon, lat in geometry["coordinates"]]
            encoded = polyline.encode(points, precision)
        else:
            encoded = geometry
            points = polyline.decode(encoded, precision)
        steps = [_parse_step(s) for leg in raw.get("legs", []) for s in leg.get("steps", [])]
        distance = float(raw.get("distance", 0.0))
        duration = float(raw.get("duration", 0.0))
    except (KeyError, TypeError, ValueError, IndexError) as e:
        logger.error(f"Malformed OSRM route: {e}")
        return None, f"Malformed routing response: {e}"

    if len(points) < 2:
        return None, "Route geometry is empty."
    if not steps:
        return None, "Route has no steps."

    route = Route(
        steps=tuple(steps),
        coordinates=tuple(Coord(lat, lon) for lat, lon in points),
        distance_meters=distance,
        duration_seconds=duration,
        identity=encoded,
    )
    logger.info(f"Parsed OSRM route: {len(steps)} steps, {len(points)} points, {distance:.0f} m.")
    return route, "OK"
