import math
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .transforms import clamp
from .vector import Vec2


@dataclass(frozen=True)
class Pose:
    """World placement of a rigid shape: scale, then rotate, then translate."""

    position: Vec2
    rotation: float
    scale: float = 1.0

    def apply(self, points: Iterable[Tuple[float, float]]) -> List[Tuple[float, float]]:
        """Map local shape coordinates into world coordinates."""

        world: List[Tuple[float, float]] = []
        for x, y in points:
            local = Vec2(x * self.scale, y * self.scale).rotated(self.rotation)
            world.append((local + self.position).to_tuple())
        return world


@dataclass
class Boat:
    """A single sailing dinghy.

    The hull's forward axis is ``(0, 1)`` rotated by ``rotation`` and its
    starboard (lateral) axis is ``(1, 0)`` rotated by ``rotation``. Hull
    parameters are fixed once the boat exists; the control angles are written
    by a pilot before each environment step and clamped by the environment.

    Attributes:
        position: Position in world units.
        rotation: Heading in radians, counter-clockwise.
        velocity: Linear velocity in world units per second.
        angular_velocity: Yaw rate in radians per second.
        sail_area: Sail area presented to the wind. 1 works fine.
        drag_forward: Drag coefficient when moving forwards.
        drag_back: Drag coefficient when moving backwards.
        drag_perp: Drag coefficient when moving sideways.
        angular_drag: Damping applied to the yaw rate.
        rudder_force: Turning torque produced per unit of forward speed.
        length: Hull length, also used as the drawing scale.
        max_sail_angle: Sail angle limit in radians.
        max_rudder_angle: Rudder angle limit in radians.
        sail_angle: Control input, ``[-max_sail_angle, max_sail_angle]``.
        rudder_angle: Control input, ``[-max_rudder_angle, max_rudder_angle]``.
        target_index: Index of the waypoint this boat is heading for.
        waypoints_reached: Waypoints reached since the boat was created.
    """

    position: Vec2 = field(default_factory=Vec2)
    rotation: float = 0.0
    velocity: Vec2 = field(default_factory=Vec2)
    angular_velocity: float = 0.0

    sail_area: float = 1.0
    drag_forward: float = 0.1
    drag_back: float = 2.0
    drag_perp: float = 4.0
    angular_drag: float = 20.0
    rudder_force: float = 0.3
    length: float = 1.0
    max_sail_angle: float = math.pi / 2
    max_rudder_angle: float = math.pi / 2

    sail_angle: float = 0.0
    rudder_angle: float = 0.0

    target_index: int = 0
    waypoints_reached: int = 0

    def __post_init__(self) -> None:
        if self.length <= 0.0:
            raise ValueError(f"Boat length must be positive, got {self.length}")
        for name in ("drag_forward", "drag_back", "drag_perp", "angular_drag"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"Boat {name} must be positive, got {getattr(self, name)}")
        if self.max_sail_angle <= 0.0 or self.max_rudder_angle <= 0.0:
            raise ValueError("Boat max sail and rudder angles must be positive")

    @classmethod
    def default(cls) -> "Boat":
        """Create a boat with physics that sail reasonably."""

        return cls()

    def forward_axis(self) -> Vec2:
        return Vec2(0.0, 1.0).rotated(self.rotation)

    def lateral_axis(self) -> Vec2:
        return Vec2(1.0, 0.0).rotated(self.rotation)

    def clamp_controls(self) -> None:
        self.sail_angle = clamp(self.sail_angle, -self.max_sail_angle, self.max_sail_angle)
        self.rudder_angle = clamp(self.rudder_angle, -self.max_rudder_angle, self.max_rudder_angle)

    def hull_pose(self) -> Pose:
        return Pose(self.position, self.rotation, self.length)

    def sail_pose(self) -> Pose:
        return Pose(self.position, self.rotation + self.sail_angle, self.length)

    def rudder_pose(self) -> Pose:
        # Rudder hangs off the stern, half a hull length behind the centre.
        stern = Vec2(0.0, -self.length / 2).rotated(self.rotation)
        return Pose(self.position + stern, self.rotation + self.rudder_angle, self.length)
