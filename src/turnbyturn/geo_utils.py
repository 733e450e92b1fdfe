# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects; the only project import is the Coord value type.

import math

import numpy as np

from .models import Coord


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: Coord, b: Coord) -> float:
    """haversine_distance() for two Coord values."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Forward azimuth (bearing) from point 1 to point 2 in degrees [0, 360).

    Identical points have no direction; 0.0 is returned so that callers never
    see NaN.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Bearing in degrees.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def bearing_between(a: Coord, b: Coord) -> float:
    """calculate_bearing() for two Coord values."""
    return calculate_bearing(a.lat, a.lon, b.lat, b.lon)


def project_onto_segment(p: Coord, v: Coord, w: Coord) -> Coord:
    """
    Nearest point to p on the segment v → w, clamped to the segment.

    Works in a local equirectangular frame (longitude scaled by cos(lat)) so
    that an offset of N metres east weighs the same as N metres north.

    Args:
        p: Point to project.
        v: Segment start.
        w: Segment end.

    Returns:
        The projected Coord; v itself when the segment has zero length.
    """
    if v == w:
        return v

    k = math.cos(math.radians(p.lat))
    dx = (w.lon - v.lon) * k
    dy = w.lat - v.lat
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return v

    t = ((p.lon - v.lon) * k * dx + (p.lat - v.lat) * dy) / len_sq
    if t <= 0:
        return v
    if t >= 1:
        return w
    return Coord(v.lat + t * (w.lat - v.lat), v.lon + t * (w.lon - v.lon))


def squared_planar_distance(a: Coord, b: Coord) -> float:
    """
    Squared Euclidean difference in raw degrees.

    Only meaningful for ranking nearby points against each other, never as a
    distance in metres.
    """
    d_lat = a.lat - b.lat
    d_lon = a.lon - b.lon
    return d_lat * d_lat + d_lon * d_lon


# ---------------------------------------------------------------------------
# Vectorised helpers for polyline scans
# ---------------------------------------------------------------------------

def squared_planar_distances(points: np.ndarray, p: Coord) -> np.ndarray:
    """squared_planar_distance() from p to every row of an (N, 2) lat/lon array."""
    diff = points - np.array([p.lat, p.lon])
    return np.einsum("ij,ij->i", diff, diff)


def segment_lengths(points: np.ndarray) -> np.ndarray:
    """Haversine length in metres of each consecutive pair in an (N, 2) array."""
    if len(points) < 2:
        return np.zeros(0)
    lat = np.radians(points[:, 0])
    lon = np.radians(points[:, 1])
    d_lat = np.diff(lat)
    d_lon = np.diff(lon)
    a = np.sin(d_lat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
