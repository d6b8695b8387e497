"""Minimal immutable 2D vector used by the physics core.

Angles are in radians and rotations are counter-clockwise, so ``Vec2(1, 0)``
rotated by ``pi / 2`` points along ``+y``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Vec2":
        if len(values) != 2:
            raise ValueError(f"Vectors must have two elements, got {values}")
        return cls(float(values[0]), float(values[1]))

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def scaled(self, factor: float) -> "Vec2":
        return Vec2(self.x * factor, self.y * factor)

    def dot(self, other: "Vec2") -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def unit(self) -> "Vec2":
        """Return the unit vector, or the zero vector when the length is zero."""

        norm = self.length()
        if norm == 0.0:
            return Vec2()
        return Vec2(self.x / norm, self.y / norm)

    def rotated(self, angle: float) -> "Vec2":
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Vec2(self.x * cos_a - self.y * sin_a, self.x * sin_a + self.y * cos_a)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)
