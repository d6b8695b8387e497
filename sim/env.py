import json
import logging
import os
from typing import Dict, List, Optional, Sequence

from .boat import Boat
from .observation import OBSERVATION_VERSION, ObservationBuilder
from .vector import Vec2

logger = logging.getLogger(__name__)

TRACE_FORMAT = "boatsim.v1"


def reflect(direction: Vec2, normal: Vec2) -> Vec2:
    """Reflect ``direction`` off the plane with unit ``normal``."""

    return direction - normal.scaled(2 * direction.dot(normal))


def damp(value: float, coefficient: float, dt: float) -> float:
    """Remove ``value * coefficient * dt`` without crossing zero."""

    adjustment = value * coefficient * dt
    if abs(adjustment) > abs(value):
        adjustment = value
    return value - adjustment


def sail_force(boat: Boat, wind: Vec2) -> Vec2:
    """Force of the apparent wind on the sail, before ``dt`` and multipliers.

    The sail normal is flipped to face into the apparent wind, the wind is
    reflected off the sail, and the change in the wind vector is scaled by the
    sail area projected into the wind.
    """

    relative_wind = wind - boat.velocity
    if relative_wind.length() == 0.0:
        return Vec2()
    relative_unit = relative_wind.unit()

    sail_normal = Vec2(1.0, 0.0).rotated(boat.rotation + boat.sail_angle)
    if sail_normal.dot(relative_unit) > 0:
        sail_normal = -sail_normal

    reflected = reflect(relative_wind, sail_normal)
    wind_change = reflected - relative_wind
    visible_area = -boat.sail_area * (-sail_normal).dot(relative_unit)
    return wind_change.scaled(visible_area)


def fitness(boat: Boat, track: Sequence[Vec2]) -> float:
    distance = (boat.position - track[boat.target_index]).length()
    return 1 / (distance + 1) + boat.waypoints_reached


class SailingEnv:
    """Multi-boat sailing environment on a circular waypoint track.

    Boats do not interact; they share the wind and the track. Every boat keeps
    its own waypoint progress. Create a fresh environment per episode.

    Args:
        track: Ordered waypoints; must not be empty.
        boats: Boats to simulate. Their list index is their agent id.
        wind: True wind vector.
        wind_force_multiplier: Scale applied to the sail force.
        hit_distance: Distance at which a waypoint counts as reached.
        trace_path: Optional JSONL file receiving one record per step.
        boat_names: Optional display names written to the trace metadata.
    """

    def __init__(
        self,
        track: Sequence[Vec2],
        boats: Sequence[Boat],
        wind: Vec2 = Vec2(2.0, 0.0),
        wind_force_multiplier: float = 1.0,
        hit_distance: float = 1.0,
        trace_path: Optional[str] = None,
        boat_names: Optional[Sequence[str]] = None,
    ) -> None:
        if not track:
            raise ValueError("SailingEnv requires a track with at least one waypoint")
        if hit_distance < 0.0:
            raise ValueError(f"hit_distance must be non-negative, got {hit_distance}")
        for index, boat in enumerate(boats):
            if not 0 <= boat.target_index < len(track):
                raise ValueError(f"Boat {index} targets waypoint {boat.target_index} outside the track")
        if boat_names is not None and len(boat_names) != len(boats):
            raise ValueError("boat_names must have one entry per boat")

        self.track = tuple(track)
        self.boats: List[Boat] = list(boats)
        self.wind = wind
        self.wind_force_multiplier = wind_force_multiplier
        self.hit_distance = hit_distance
        self.ocean_offset = Vec2()
        self.observer = ObservationBuilder()
        self.steps = 0
        self.time = 0.0
        self.trace_path = trace_path
        self.boat_names = list(boat_names) if boat_names is not None else [f"boat{i}" for i in range(len(boats))]
        self._metadata_logged = False
        if trace_path:
            os.makedirs(os.path.dirname(trace_path) or ".", exist_ok=True)

    def target(self, boat: Boat) -> Vec2:
        return self.track[boat.target_index]

    def _step_boat(self, boat: Boat, dt: float) -> None:
        boat.clamp_controls()

        force = sail_force(boat, self.wind)
        boat.velocity = boat.velocity + force.scaled(dt * self.wind_force_multiplier)

        # Drag differs along and across the hull.
        forward_axis = boat.forward_axis()
        lateral_axis = boat.lateral_axis()
        forward = boat.velocity.dot(forward_axis)
        lateral = boat.velocity.dot(lateral_axis)
        forward_drag = boat.drag_forward if forward > 0 else boat.drag_back
        forward = damp(forward, forward_drag, dt)
        lateral = damp(lateral, boat.drag_perp, dt)
        boat.velocity = forward_axis.scaled(forward) + lateral_axis.scaled(lateral)

        boat.angular_velocity += -boat.rudder_angle * forward * boat.rudder_force
        boat.angular_velocity = damp(boat.angular_velocity, boat.angular_drag, dt)

        # The velocity follows the hull as it turns.
        boat.velocity = boat.velocity.rotated(boat.angular_velocity * dt)

        boat.position = boat.position + boat.velocity.scaled(dt)
        boat.rotation += boat.angular_velocity * dt

        if (boat.position - self.target(boat)).length() <= self.hit_distance:
            boat.target_index = (boat.target_index + 1) % len(self.track)
            boat.waypoints_reached += 1
            logger.debug("Boat reached waypoint, now targeting %d (%d reached)", boat.target_index, boat.waypoints_reached)

    def step(self, dt: float) -> None:
        """Advance every boat by ``dt`` seconds."""

        # Only used to scroll the sea in the play window.
        self.ocean_offset = self.ocean_offset + self.wind.scaled(dt)
        for boat in self.boats:
            self._step_boat(boat, dt)
        self.steps += 1
        self.time += dt
        self._log_trace()

    def get_inputs(self) -> Dict[int, List[float]]:
        return {
            index: self.observer.build(boat, self.wind, self.target(boat)).to_vector()
            for index, boat in enumerate(self.boats)
        }

    def get_fitnesses(self) -> Dict[int, float]:
        return {index: fitness(boat, self.track) for index, boat in enumerate(self.boats)}

    def _log_metadata(self) -> None:
        if not self.trace_path or self._metadata_logged:
            return

        record = {
            "meta": TRACE_FORMAT,
            "track": [list(point.to_tuple()) for point in self.track],
            "hit_distance": self.hit_distance,
            "wind": list(self.wind.to_tuple()),
            "boats": self.boat_names,
            "observation_version": OBSERVATION_VERSION,
        }
        with open(self.trace_path, "w", encoding="utf-8") as fp:
            fp.write(json.dumps(record))
            fp.write("\n")
        logger.debug("Writing trace to %s", self.trace_path)

        self._metadata_logged = True

    def _log_trace(self) -> None:
        if not self.trace_path:
            return

        if not self._metadata_logged:
            self._log_metadata()

        record = {
            "step": self.steps,
            "time": self.time,
            "boats": [
                {
                    "position": list(boat.position.to_tuple()),
                    "rotation": boat.rotation,
                    "sail_angle": boat.sail_angle,
                    "rudder_angle": boat.rudder_angle,
                    "target_index": boat.target_index,
                    "waypoints_reached": boat.waypoints_reached,
                    "inputs": self.observer.build(boat, self.wind, self.target(boat)).to_dict(),
                }
                for boat in self.boats
            ],
        }
        with open(self.trace_path, "a", encoding="utf-8") as fp:
            fp.write(json.dumps(record))
            fp.write("\n")


def basic_env(track: Sequence[Vec2], boats: Sequence[Boat], **kwargs) -> SailingEnv:
    """Environment used for training and play: wind ``(2, 0)``, hit distance 1."""

    return SailingEnv(track, boats, wind=Vec2(2.0, 0.0), wind_force_multiplier=1.0, hit_distance=1.0, **kwargs)
