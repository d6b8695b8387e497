"""Observation utilities for the boat simulator.

Controllers receive a fixed-size vector per boat. The order below is the
contract a trained network binds to; changing it invalidates every saved
genome, so bump :data:`OBSERVATION_VERSION` when it changes.

``sail``
    Sail angle divided by the maximum sail angle.
``rudder``
    Rudder angle divided by the maximum rudder angle.
``velocity_forward``
    Velocity along the hull's forward axis, rolled off with range 5.
``velocity_lateral``
    Velocity along the hull's starboard axis, rolled off with range 5.
``angular_velocity``
    Yaw rate, rolled off with range ``pi / 2``.
``wind_forward``
    True wind along the forward axis, rolled off with range 5.
``wind_lateral``
    True wind along the starboard axis, rolled off with range 5.
``target_forward``
    Offset to the current waypoint along the forward axis, rolled off with
    range 5.
``target_lateral``
    Offset to the current waypoint along the starboard axis, rolled off with
    range 5.

All values lie in ``[-1, 1]``.
"""

import math
from dataclasses import astuple, dataclass
from typing import Dict, List, Tuple

from .boat import Boat
from .transforms import centered_rolloff
from .vector import Vec2

OBSERVATION_VERSION = 1

OBSERVATION_FIELDS: Tuple[str, ...] = (
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

SPEED_RANGE = 5.0
ANGULAR_RANGE = math.pi / 2
DISTANCE_RANGE = 5.0


@dataclass
class Observation:
    sail: float
    rudder: float
    velocity_forward: float
    velocity_lateral: float
    angular_velocity: float
    wind_forward: float
    wind_lateral: float
    target_forward: float
    target_lateral: float

    def to_vector(self) -> List[float]:
        return [float(value) for value in astuple(self)]

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(OBSERVATION_FIELDS, self.to_vector()))


class ObservationBuilder:
    """Build observations in the boat's own frame."""

    def build(self, boat: Boat, wind: Vec2, target: Vec2) -> Observation:
        forward = boat.forward_axis()
        lateral = boat.lateral_axis()
        to_target = target - boat.position
        return Observation(
            sail=boat.sail_angle / boat.max_sail_angle,
            rudder=boat.rudder_angle / boat.max_rudder_angle,
            velocity_forward=centered_rolloff(boat.velocity.dot(forward), SPEED_RANGE),
            velocity_lateral=centered_rolloff(boat.velocity.dot(lateral), SPEED_RANGE),
            angular_velocity=centered_rolloff(boat.angular_velocity, ANGULAR_RANGE),
            wind_forward=centered_rolloff(wind.dot(forward), SPEED_RANGE),
            wind_lateral=centered_rolloff(wind.dot(lateral), SPEED_RANGE),
            target_forward=centered_rolloff(to_target.dot(forward), DISTANCE_RANGE),
            target_lateral=centered_rolloff(to_target.dot(lateral), DISTANCE_RANGE),
        )
