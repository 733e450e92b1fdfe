# main.py
# Entry point: replays a route as a stream of GPS fixes through NavigationSession.
# In production, replace the simulated fixes with your real location source.
#
# Usage: python -m turnbyturn.main [osrm_response.json]
# Without an argument a small built-in route (Sıhhiye → Kurtuluş, Ankara) is used.

import json
import logging
import sys
import time
from typing import Iterator, List

from .geo_utils import distance_between
from .models import Coord, LiveFix, ManeuverType, NavStatus, Route, RouteStep
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .navigator import NavigationSession
from .osrm_adapter import route_from_osrm
from .voice import Pyttsx3Voice

# ------------------------------------------------------------------
# Logging setup: configure once here, all modules inherit
# ------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("turnbyturn.main")

# ------------------------------------------------------------------
# Config: tweak thresholds or paths here, not inside the modules
# ------------------------------------------------------------------
config = NavConfig(
    arrival_threshold_m=40.0,
    off_route_threshold_m=80.0,
    units="metric",
    log_dir="logs",
)

SIM_SPEED_MPS = 12.0
SIM_INTERVAL_S = 1.0


def demo_route() -> Route:
    polyline_points = [
        Coord(39.92409, 32.845382),
        Coord(39.9240467, 32.8451522),
        Coord(39.9232599, 32.8441792),
        Coord(39.9240102, 32.8452347),
        Coord(39.9249406, 32.8462865),
        Coord(39.9254588, 32.8477125),
    ]
    steps = (
        RouteStep("Head southwest", ManeuverType.STRAIGHT, polyline_points[0]),
        RouteStep("Make a U-turn", ManeuverType.U_TURN, polyline_points[2]),
        RouteStep("Arrive at your destination", ManeuverType.ARRIVE, polyline_points[-1]),
    )
    total = sum(distance_between(a, b) for a, b in zip(polyline_points, polyline_points[1:]))
    return Route(steps, tuple(polyline_points), total, total / 1.4, identity="demo")


def simulate_fixes(points: List[Coord], speed: float, interval: float) -> Iterator[LiveFix]:
    """Walk the polyline at a constant speed, emitting one fix per interval."""
    t = 0.0
    step_m = speed * interval
    for a, b in zip(points, points[1:]):
        seg = distance_between(a, b)
        n = max(1, int(seg // step_m))
        for i in range(n):
            f = i / n
            yield LiveFix(Coord(a.lat + (b.lat - a.lat) * f, a.lon + (b.lon - a.lon) * f), speed=speed, timestamp=t)
            t += interval
    yield LiveFix(points[-1], speed=0.0, timestamp=t)


def main() -> None:
    # 1. Obtain a route
    if len(sys.argv) > 1:
        with open(sys.argv[1], "r", encoding="utf-8") as f:
            route, msg = route_from_osrm(json.load(f))
        if route is None:
            print(f"[Main] Could not load route: {msg}")
            return
    else:
        route = demo_route()

    # 2. Wire the session
    voice = Pyttsx3Voice()
    session = NavigationSession(
        config,
        voice=voice,
        nav_logger=NavLogger(config),
        on_arrived=lambda: print("  ✓  Destination reached. Navigation ended."),
    )
    success, msg = session.start(route)
    print(f"[Main] {msg}")
    if not success:
        return

    print("\n--- GPS Loop Active ---")

    # 3. GPS loop: replace with real GPS feed in production
    for fix in simulate_fixes(list(route.coordinates), SIM_SPEED_MPS, SIM_INTERVAL_S):
        snapshot = session.update(fix)
        print(
            f"  GPS {fix.coord.lat:.6f},{fix.coord.lon:.6f} → [{snapshot.status.name}] "
            f"step {snapshot.step_index}: {snapshot.message} "
            f"({snapshot.distance_to_maneuver_m or 0:.0f} m, heading {snapshot.heading or 0:.0f}°)"
        )
        if snapshot.status == NavStatus.ARRIVED:
            break

        # Simulate GPS poll interval (remove in real use)
        time.sleep(0.05)

    session.end()
    voice.wait(timeout=10)

    print("\n--- Session complete ---")
    print(f"    Log files written to: {config.log_dir}/")


if __name__ == "__main__":
    main()
