# formatting.py
# Distance formatting for speech and display in metric / imperial / imperial_uk units.

from typing import Tuple

from .nav_config import FEET_PER_METER, METERS_PER_MILE, UNIT_SYSTEMS, YARDS_PER_METER


_SHORT = {"m": "m", "km": "km", "ft": "ft", "yd": "yd", "mi": "mi"}
_LONG = {
    "m": ("meter", "meters"),
    "km": ("kilometer", "kilometers"),
    "ft": ("foot", "feet"),
    "yd": ("yard", "yards"),
    "mi": ("mile", "miles"),
}


def _round_to(value: float, step: int) -> int:
    return max(step, int(round(value / step)) * step)


def _split(meters: float, units: str) -> Tuple[float, str]:
    """Pick a unit and a rounded value for a distance."""
    if units not in UNIT_SYSTEMS:
        raise ValueError(f"Unknown unit system: {units!r}")
    meters = max(0.0, meters)

    if units == "metric":
        if meters < 1000:
            return _round_to(meters, 50 if meters >= 300 else 10), "m"
        return round(meters / 1000, 1), "km"

    miles = meters / METERS_PER_MILE
    if miles >= 0.1:
        return round(miles, 1), "mi"
    if units == "imperial":
        return _round_to(meters * FEET_PER_METER, 50), "ft"
    return _round_to(meters * YARDS_PER_METER, 10), "yd"


def _number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def format_distance(meters: float, units: str = "metric") -> str:
    """
    Compact display form, e.g. "450 m", "1.2 km", "300 ft", "0.4 mi".

    Raises:
        ValueError: for an unknown unit system.
    """
    value, unit = _split(meters, units)
    return f"{_number(value)} {_SHORT[unit]}"


def describe_distance(meters: float, units: str = "metric") -> str:
    """
    Spoken form, e.g. "450 meters", "1 mile", "300 feet".

    Raises:
        ValueError: for an unknown unit system.
    """
    value, unit = _split(meters, units)
    singular, plural = _LONG[unit]
    return f"{_number(value)} {singular if value == 1 else plural}"
