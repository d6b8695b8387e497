"""Baseline hand-coded controller to validate environment wiring.

This script spins up a single-boat :class:`sim.env.SailingEnv`, sails it
around a track with a simple steer-to-waypoint controller, and saves a JSONL
trace for inspection with ``python -m viz.replay``.
Use ``python -m sim.run_episode --help`` for options.
"""

from __future__ import annotations

import argparse
import logging
import math
import random
from pathlib import Path
from typing import Tuple

from .actions import ControlAction
from .boat import Boat
from .env import SailingEnv, basic_env, sail_force
from .map_io import TrackConfig, build_env, load_track, save_track
from .track import TrackSpec
from .transforms import clamp
from .vector import Vec2

logger = logging.getLogger(__name__)


class BaselineController:
    """Steer toward the current waypoint and trim the sail for forward drive.

    The rudder is set proportionally to the bearing of the waypoint in the
    boat frame. The sail angle is picked by evaluating ``sail_candidates``
    evenly spaced settings against the sail force model and keeping the one
    that pushes the hull forward hardest.
    """

    def __init__(self, sail_candidates: int = 19, rudder_gain: float = 1.0) -> None:
        if sail_candidates < 2:
            raise ValueError("sail_candidates must be at least 2")
        self.sail_candidates = sail_candidates
        self.rudder_gain = rudder_gain

    def _best_sail(self, boat: Boat, wind: Vec2) -> float:
        forward = boat.forward_axis()
        best_fraction, best_drive = 0.0, -math.inf
        original = boat.sail_angle
        for i in range(self.sail_candidates):
            fraction = -1.0 + 2.0 * i / (self.sail_candidates - 1)
            boat.sail_angle = fraction * boat.max_sail_angle
            drive = sail_force(boat, wind).dot(forward)
            if drive > best_drive:
                best_fraction, best_drive = fraction, drive
        boat.sail_angle = original
        return best_fraction

    def act(self, boat: Boat, wind: Vec2, target: Vec2) -> ControlAction:
        to_target = target - boat.position
        # Positive rudder turns the bow clockwise, toward starboard.
        bearing = math.atan2(to_target.dot(boat.lateral_axis()), to_target.dot(boat.forward_axis()))
        rudder = clamp(self.rudder_gain * bearing / boat.max_rudder_angle, -1.0, 1.0)
        return ControlAction(sail=self._best_sail(boat, wind), rudder=rudder)


def run_episode(
    steps: int,
    dt: float,
    trace_path: Path,
    seed: int | None,
    track_file: Path | None,
    track_distance: float,
    track_count: int,
    wind: Tuple[float, float] | None,
    save_track_path: Path | None = None,
) -> SailingEnv:
    options = {"trace_path": str(trace_path), "boat_names": ["baseline"]}
    if track_file:
        env = build_env(load_track(track_file), [Boat.default()], **options)
    else:
        spec = TrackSpec(distance=track_distance, count=track_count)
        env = basic_env(spec.generate(random.Random(seed)), [Boat.default()], **options)
    if wind is not None:
        env.wind = Vec2(*wind)
    if save_track_path:
        save_track(
            save_track_path,
            TrackConfig(
                track=list(env.track),
                wind=env.wind,
                hit_distance=env.hit_distance,
                wind_force_multiplier=env.wind_force_multiplier,
            ),
        )
        logger.info("Saved track to %s", save_track_path)

    controller = BaselineController()
    boat = env.boats[0]
    logger.info("Running %d steps on a %d-waypoint track", steps, len(env.track))

    for _ in range(steps):
        controller.act(boat, env.wind, env.target(boat)).apply(boat)
        env.step(dt)

    fitness = env.get_fitnesses()[0]
    print(f"Episode finished: waypoints={boat.waypoints_reached}, fitness={fitness:.3f}")
    print(f"Trace saved to: {trace_path.resolve()}")
    return env


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--steps", type=int, default=60 * 20, help="number of steps to run, 60 steps is 1 second")
    parser.add_argument("--dt", type=float, default=1 / 60, help="time step in seconds")
    parser.add_argument(
        "--trace",
        type=Path,
        default=Path("data/traces/episode.jsonl"),
        help="output JSONL trace path",
    )
    parser.add_argument("--track-file", type=Path, default=None, help="Path to a JSON track file")
    parser.add_argument("--track-distance", type=float, default=12.0, help="radius of generated tracks")
    parser.add_argument("--track-count", type=int, default=10, help="number of waypoints on generated tracks")
    parser.add_argument("--wind", type=float, nargs=2, default=None, metavar=("X", "Y"), help="override the wind vector")
    parser.add_argument("--save-track", type=Path, default=None, help="write the track used to this JSON file")
    parser.add_argument("--seed", type=int, default=None, help="random seed for generated tracks")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.track_file and args.seed is not None:
        raise ValueError("Use either --track-file or --seed, not both")

    run_episode(
        steps=args.steps,
        dt=args.dt,
        trace_path=args.trace,
        seed=args.seed,
        track_file=args.track_file,
        track_distance=args.track_distance,
        track_count=args.track_count,
        wind=tuple(args.wind) if args.wind else None,
        save_track_path=args.save_track,
    )


if __name__ == "__main__":
    main()
