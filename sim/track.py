"""Random waypoint tracks.

A track is an ordered, circular sequence of waypoints: boats head for each
point in turn and return to the first point after the last one. Points are
scattered uniformly over a disk around the origin so that a fresh track can be
drawn for every training episode.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Optional

from .vector import Vec2


def generate_track(distance: float, count: int, rng: Optional[random.Random] = None) -> List[Vec2]:
    """Sample ``count`` waypoints inside a disk of radius ``distance``.

    The radius is drawn as ``distance * sqrt(U)`` so points have a uniform
    area density instead of bunching up near the centre. Pass a seeded
    ``rng`` for a reproducible track.
    """

    if count < 1:
        raise ValueError(f"Track count must be at least 1, got {count}")
    if distance < 0.0:
        raise ValueError(f"Track distance must be non-negative, got {distance}")

    rng = rng or random.Random()
    track: List[Vec2] = []
    for _ in range(count):
        radius = math.sqrt(rng.random()) * distance
        angle = rng.random() * 2 * math.pi
        track.append(Vec2(0.0, radius).rotated(angle))
    return track


@dataclass
class TrackSpec:
    """Parameters for procedurally generated tracks.

    Attributes:
        distance: Radius of the disk waypoints are drawn from.
        count: Number of waypoints on the track.
    """

    distance: float = 12.0
    count: int = 10

    def generate(self, rng: Optional[random.Random] = None) -> List[Vec2]:
        return generate_track(self.distance, self.count, rng)
