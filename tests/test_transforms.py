import math

import pytest

from sim.transforms import centered_rolloff, clamp


class TestCenteredRolloff:
    @pytest.mark.parametrize("value", [0.1, 1.0, 5.0, 42.0, 1e6])
    def test_is_odd(self, value):
        assert centered_rolloff(-value, 5.0) == -centered_rolloff(value, 5.0)

    @pytest.mark.parametrize("value", [-50.0, -5.0, 0.5, 5.0, 50.0])
    def test_is_bounded(self, value):
        assert abs(centered_rolloff(value, 5.0)) < 1.0

    def test_zero_maps_to_zero(self):
        assert centered_rolloff(0.0, math.pi / 2) == 0.0

    def test_nominal_range_maps_to_tanh_one(self):
        assert centered_rolloff(5.0, 5.0) == pytest.approx(math.tanh(1.0))

    def test_monotonic(self):
        values = [centered_rolloff(x / 10, 5.0) for x in range(-100, 101)]
        assert values == sorted(values)


class TestClamp:
    def test_clamp(self):
        assert clamp(5.0, -1.0, 1.0) == 1.0
        assert clamp(-5.0, -1.0, 1.0) == -1.0
        assert clamp(0.25, -1.0, 1.0) == 0.25
