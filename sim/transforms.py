"""Scalar helpers shared by the physics core and its controllers."""

import math


def clamp(value: float, lower: float, upper: float) -> float:
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value


def centered_rolloff(value: float, nominal_range: float) -> float:
    """Squash ``value`` into ``(-1, 1)`` with a scaled tanh.

    ``nominal_range`` should sit on the high side of what the input normally
    reaches; an input of that size maps to ``tanh(1)``, roughly 0.76.
    """

    return math.tanh(value / nominal_range)
