import json

from turnbyturn.models import NavigationSnapshot, NavStatus
from turnbyturn.nav_config import NavConfig
from turnbyturn.nav_logger import NavLogger

from nav_helpers import l_route


def test_route_round_trip(tmp_path):
    nav_logger = NavLogger(NavConfig(log_dir=str(tmp_path)))
    route = l_route()

    assert nav_logger.save_route(route)
    loaded = nav_logger.load_route()

    assert loaded == route
    assert loaded.token == route.token


def test_load_missing_route_returns_none(tmp_path):
    nav_logger = NavLogger(NavConfig(log_dir=str(tmp_path)))
    assert nav_logger.load_route(str(tmp_path / "missing.json")) is None


def test_load_corrupt_route_returns_none(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"route": {"steps": []}}', encoding="utf-8")
    assert NavLogger(NavConfig(log_dir=str(tmp_path))).load_route(str(path)) is None


def test_events_are_appended_as_json_lines(tmp_path):
    config = NavConfig(log_dir=str(tmp_path))
    nav_logger = NavLogger(config)
    snapshot = NavigationSnapshot(status=NavStatus.NAVIGATING, message="Turn left", step_index=0,
                                  instruction="Turn left", distance_to_maneuver_m=12.5)

    nav_logger.log_event(snapshot, 1.0, 2.0)
    nav_logger.log_event(snapshot, 1.5, 2.5)

    lines = (tmp_path / config.events_filename).read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[1])
    assert entry["status"] == "navigating"
    assert entry["lat"] == 1.5
    assert entry["distance_to_maneuver"] == 12.5


def test_session_persists_route_and_events(tmp_path):
    from turnbyturn.models import Coord, LiveFix
    from turnbyturn.navigator import NavigationSession

    config = NavConfig(log_dir=str(tmp_path))
    session = NavigationSession(config, nav_logger=NavLogger(config))
    session.start(l_route())
    session.update(LiveFix(Coord(0, 0)))

    assert (tmp_path / config.route_filename).exists()
    assert len((tmp_path / config.events_filename).read_text(encoding="utf-8").splitlines()) == 1
