import os

import pytest

from turnbyturn.nav_config import NavConfig


def test_defaults_are_consistent():
    config = NavConfig()
    assert config.approach_threshold_m < config.exit_threshold_m
    assert config.snap_tolerance_m < config.off_route_threshold_m
    assert config.route_filepath == os.path.join("logs", "active_route.json")


def test_exit_below_approach_rejected():
    with pytest.raises(ValueError):
        NavConfig(approach_threshold_m=30, exit_threshold_m=25)


def test_unknown_units_rejected():
    with pytest.raises(ValueError):
        NavConfig(units="nautical")
