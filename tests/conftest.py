"""Shared fixtures for the simulator tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from sim.boat import Boat
from sim.env import SailingEnv
from sim.vector import Vec2


@pytest.fixture
def still_boat():
    """A boat at the origin facing +y with no sail area, so wind cannot push it."""
    return Boat(sail_area=0.0)


@pytest.fixture
def far_track():
    """Waypoints well away from the origin."""
    return [Vec2(10.0, 10.0), Vec2(-10.0, 10.0), Vec2(0.0, -10.0)]


@pytest.fixture
def calm_env(far_track):
    """One default boat, no wind."""
    return SailingEnv(far_track, [Boat.default()], wind=Vec2(0.0, 0.0))
