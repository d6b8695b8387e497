import math

import pytest

from sim.boat import Boat, Pose
from sim.vector import Vec2


class TestBoat:
    def test_default_parameters(self):
        boat = Boat.default()
        assert boat.sail_area == 1.0
        assert boat.drag_forward == 0.1
        assert boat.drag_back == 2.0
        assert boat.drag_perp == 4.0
        assert boat.angular_drag == 20.0
        assert boat.rudder_force == 0.3
        assert boat.length == 1.0
        assert boat.max_sail_angle == pytest.approx(math.pi / 2)
        assert boat.max_rudder_angle == pytest.approx(math.pi / 2)
        assert boat.target_index == 0
        assert boat.waypoints_reached == 0

    @pytest.mark.parametrize("field", ["length", "drag_forward", "drag_back", "drag_perp", "angular_drag"])
    def test_rejects_non_positive_parameters(self, field):
        with pytest.raises(ValueError):
            Boat(**{field: 0.0})

    def test_clamp_controls(self):
        boat = Boat(sail_angle=4.0, rudder_angle=-4.0)
        boat.clamp_controls()
        assert boat.sail_angle == pytest.approx(math.pi / 2)
        assert boat.rudder_angle == pytest.approx(-math.pi / 2)

    def test_axes_follow_heading(self):
        boat = Boat(rotation=-math.pi / 2)
        forward = boat.forward_axis()
        lateral = boat.lateral_axis()
        assert forward.x == pytest.approx(1.0)
        assert forward.y == pytest.approx(0.0, abs=1e-12)
        assert lateral.x == pytest.approx(0.0, abs=1e-12)
        assert lateral.y == pytest.approx(-1.0)


class TestPoses:
    def test_hull_pose_scales_rotates_and_moves(self):
        boat = Boat(position=Vec2(3.0, 4.0), rotation=math.pi / 2, length=2.0)
        (x, y), = boat.hull_pose().apply([(0.0, 1.0)])
        assert x == pytest.approx(1.0)
        assert y == pytest.approx(4.0)

    def test_sail_pose_adds_sail_angle(self):
        boat = Boat(rotation=0.25, sail_angle=0.5)
        assert boat.sail_pose().rotation == pytest.approx(0.75)

    def test_rudder_sits_at_the_stern(self):
        boat = Boat(position=Vec2(1.0, 1.0), length=2.0, rudder_angle=0.3)
        pose = boat.rudder_pose()
        assert pose.position.x == pytest.approx(1.0)
        assert pose.position.y == pytest.approx(0.0)
        assert pose.rotation == pytest.approx(0.3)

    def test_identity_pose(self):
        assert Pose(Vec2(), 0.0).apply([(1.0, 2.0)]) == [(1.0, 2.0)]
