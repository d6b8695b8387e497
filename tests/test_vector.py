import math

import pytest

from sim.vector import Vec2


class TestVec2:
    def test_arithmetic(self):
        a = Vec2(1.0, 2.0)
        b = Vec2(3.0, -1.0)
        assert a + b == Vec2(4.0, 1.0)
        assert a - b == Vec2(-2.0, 3.0)
        assert -a == Vec2(-1.0, -2.0)
        assert a.scaled(2.0) == Vec2(2.0, 4.0)
        assert a.dot(b) == pytest.approx(1.0)

    def test_rotation_is_counter_clockwise(self):
        rotated = Vec2(1.0, 0.0).rotated(math.pi / 2)
        assert rotated.x == pytest.approx(0.0, abs=1e-12)
        assert rotated.y == pytest.approx(1.0)

    def test_unit_of_zero_vector_is_zero(self):
        assert Vec2().unit() == Vec2()

    def test_unit_has_length_one(self):
        assert Vec2(3.0, 4.0).unit().length() == pytest.approx(1.0)

    def test_from_sequence_requires_two_values(self):
        assert Vec2.from_sequence([1, 2]) == Vec2(1.0, 2.0)
        with pytest.raises(ValueError):
            Vec2.from_sequence([1, 2, 3])
