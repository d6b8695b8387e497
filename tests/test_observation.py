import math

import pytest

from sim.boat import Boat
from sim.observation import OBSERVATION_FIELDS, OBSERVATION_VERSION, Observation, ObservationBuilder
from sim.vector import Vec2


class TestObservationContract:
    def test_field_order(self):
        assert OBSERVATION_FIELDS == (
            "sail",
            "rudder",
            "velocity_forward",
            "velocity_lateral",
            "angular_velocity",
            "wind_forward",
            "wind_lateral",
            "target_forward",
            "target_lateral",
        )
        assert OBSERVATION_VERSION == 1

    def test_vector_follows_field_order(self):
        observation = Observation(*[float(i) for i in range(9)])
        assert observation.to_vector() == [float(i) for i in range(9)]
        assert list(observation.to_dict()) == list(OBSERVATION_FIELDS)


class TestObservationBuilder:
    def test_uses_the_boat_frame(self):
        # Facing -x, so a target at -x is dead ahead and +y is to starboard.
        boat = Boat(rotation=math.pi / 2)
        observation = ObservationBuilder().build(boat, Vec2(0.0, 0.0), Vec2(-5.0, 0.0))
        assert observation.target_forward == pytest.approx(math.tanh(1.0))
        assert observation.target_lateral == pytest.approx(0.0, abs=1e-12)

    def test_wind_from_behind(self):
        boat = Boat()
        observation = ObservationBuilder().build(boat, Vec2(0.0, 3.0), Vec2(0.0, 1.0))
        assert observation.wind_forward == pytest.approx(math.tanh(3.0 / 5))
        assert observation.wind_lateral == pytest.approx(0.0)
