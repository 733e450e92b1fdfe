# recalculation.py
# Runs a blocking route fetch on a worker thread and reports back to the session.

import logging
import threading
from typing import Callable, Optional, Tuple

from .models import Coord, Route

logger = logging.getLogger(__name__)


# (origin, destination, travel_mode) → (route, message); route is None on failure.
RouteFetcher = Callable[[Coord, Coord, str], Tuple[Optional[Route], str]]


class BackgroundRouteRequester:
    """
    Non-blocking route requester for NavigationSession.

    Usage:
        requester = BackgroundRouteRequester(fetch_route)
        session = NavigationSession(config, route_requester=requester)
        requester.bind(session)

    Args:
        fetch:   Blocking route computation, e.g. an OSRM client call.
        session: Session receiving the result; can be bound later.

    Results are tagged with the session generation of the request, so a
    fetch that outlives its session cannot touch the next one.
    """

    def __init__(self, fetch: RouteFetcher, session=None) -> None:
        self._fetch = fetch
        self._session = session
        self._thread: Optional[threading.Thread] = None

    def bind(self, session) -> None:
        self._session = session

    def __call__(self, origin: Coord, destination: Coord, travel_mode: str) -> None:
        if self._session is None:
            raise RuntimeError("BackgroundRouteRequester is not bound to a session.")
        generation = self._session.generation
        logger.info(f"Requesting route: {origin} → {destination} ({travel_mode})")
        self._thread = threading.Thread(
            target=self._run,
            args=(origin, destination, travel_mode, generation),
            name="route-recalculation",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the request in flight, if any."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, origin: Coord, destination: Coord, travel_mode: str, generation: int) -> None:
        try:
            route, msg = self._fetch(origin, destination, travel_mode)
        except Exception as e:
            logger.error(f"Route fetch raised: {e}")
            self._session.report_route_failure(f"Route request failed: {e}", generation)
            return

        if route is None or not route.is_navigable:
            self._session.report_route_failure(msg or "No route found.", generation)
            return
        self._session.supply_route(route, generation)
