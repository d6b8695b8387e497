"""Race trained pilots interactively.

Boat 0 is yours: hold ``q``/``e`` to ease or sheet the sail and ``a``/``d``
to move the rudder. Every genome passed with ``--genomes`` sails its own boat.
"""

from __future__ import annotations

import argparse
import logging
import math
import random
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

import matplotlib.pyplot as plt
import neat
from matplotlib import animation, patches
from mpl_toolkits.axes_grid1.inset_locator import inset_axes

from sim.actions import apply_outputs
from sim.boat import Boat
from sim.env import SailingEnv, basic_env
from sim.map_io import build_env, load_track
from sim.track import TrackSpec
from sim.transforms import clamp
from sim.vector import Vec2
from train.neat_train import DEFAULT_CONFIG, load_genome, load_neat_config
from viz.network import draw_genome
from viz.replay import SEA_COLOR, BoatArtist, boat_color

logger = logging.getLogger(__name__)

DT = 1 / 60
CONTROL_RATE = math.pi / 60
ZOOM = 35.0
WIND_CELL = 50 / ZOOM
TARGET_RING_STEP = 4 / ZOOM


class KeyboardPilot:
    """Turns held keys into control changes for one boat."""

    SAIL_KEYS = {"e": 1.0, "q": -1.0}
    RUDDER_KEYS = {"d": 1.0, "a": -1.0}

    def __init__(self, rate: float = CONTROL_RATE) -> None:
        self.rate = rate
        self.pressed: Set[str] = set()

    def on_press(self, event) -> None:
        if event.key:
            self.pressed.add(event.key.lower())

    def on_release(self, event) -> None:
        if event.key:
            self.pressed.discard(event.key.lower())

    def _direction(self, keys: dict) -> float:
        for key, direction in keys.items():
            if key in self.pressed:
                return direction
        return 0.0

    def apply(self, boat: Boat) -> None:
        boat.sail_angle += self._direction(self.SAIL_KEYS) * self.rate
        boat.rudder_angle += self._direction(self.RUDDER_KEYS) * self.rate
        boat.sail_angle = clamp(boat.sail_angle, -boat.max_sail_angle, boat.max_sail_angle)
        boat.rudder_angle = clamp(boat.rudder_angle, -boat.max_rudder_angle, boat.max_rudder_angle)


def wrap_offset(offset: Vec2, cell: float) -> Vec2:
    """Keep the scrolling sea offset within one grid cell."""

    def _wrap(value: float) -> float:
        if value > cell:
            value -= cell
        if value < -cell:
            value += cell
        return value

    return Vec2(_wrap(offset.x), _wrap(offset.y))


def target_rings(env: SailingEnv, ring_step: float = TARGET_RING_STEP) -> List[Tuple[Tuple[float, float], float, int]]:
    """Circle per boat around its target, growing when boats share a target."""

    radius_adds = [0.0] * len(env.track)
    rings = []
    for index, boat in enumerate(env.boats):
        point = env.track[boat.target_index]
        rings.append((point.to_tuple(), env.hit_distance + radius_adds[boat.target_index], index))
        radius_adds[boat.target_index] += ring_step
    return rings


class PlayWindow:
    def __init__(
        self,
        env: SailingEnv,
        networks: Sequence[neat.nn.FeedForwardNetwork],
        names: Sequence[str],
        view_radius: float = 12.0,
        brain: Optional[Tuple[neat.DefaultGenome, neat.Config]] = None,
    ) -> None:
        self.env = env
        self.networks = list(networks)
        self.pilot = KeyboardPilot()
        self.fig, self.ax = plt.subplots(figsize=(8, 8))
        self.fig.canvas.manager.set_window_title("Very physics-based boat sim")
        self.fig.canvas.mpl_connect("key_press_event", self.pilot.on_press)
        self.fig.canvas.mpl_connect("key_release_event", self.pilot.on_release)

        extent = view_radius + 2.0
        self.ax.set_facecolor(SEA_COLOR)
        self.ax.set_aspect("equal", adjustable="box")
        self.ax.set_xlim(-extent, extent)
        self.ax.set_ylim(-extent, extent)

        grid = [i * WIND_CELL for i in range(-int(extent / WIND_CELL) - 1, int(extent / WIND_CELL) + 2)]
        self.grid = [(x, y) for x in grid for y in grid]
        self.wind_dots = self.ax.scatter([x for x, _ in self.grid], [y for _, y in self.grid], s=8, color="#0087bc", zorder=0)
        track = [point.to_tuple() for point in env.track]
        self.ax.add_patch(patches.Polygon(track, closed=True, fill=False, edgecolor="black", alpha=0.5, linewidth=2))

        self.rings = []
        self.boats = []
        for index, name in enumerate(names):
            ring = patches.Circle((0.0, 0.0), env.hit_distance, fill=False, edgecolor=boat_color(index), linewidth=2)
            self.ax.add_patch(ring)
            self.rings.append(ring)
            self.boats.append(BoatArtist(self.ax, boat_color(index), name))

        self.brain_ax = None
        if brain is not None:
            genome, config = brain
            self.brain_ax = inset_axes(self.ax, width="35%", height="30%", loc="lower right", borderpad=0.5)
            self.brain_ax.set_facecolor("white")
            draw_genome(self.brain_ax, genome, config.genome_config)

    def update(self, _frame: int) -> list:
        self.pilot.apply(self.env.boats[0])
        inputs = self.env.get_inputs()
        apply_outputs(self.env, {index: network.activate(inputs[index]) for index, network in enumerate(self.networks, start=1)})
        self.env.step(DT)

        self.env.ocean_offset = wrap_offset(self.env.ocean_offset, WIND_CELL)
        offset = self.env.ocean_offset
        self.wind_dots.set_offsets([(x + offset.x, y + offset.y) for x, y in self.grid])

        drawn = [self.wind_dots]
        for center, radius, index in target_rings(self.env):
            self.rings[index].center = center
            self.rings[index].set_radius(radius)
            drawn.append(self.rings[index])
        for boat, artist in zip(self.env.boats, self.boats):
            drawn.extend(artist.update(boat))
        return drawn

    def run(self) -> None:
        anim = animation.FuncAnimation(self.fig, self.update, interval=1000 * DT, blit=False, cache_frame_data=False)
        _ = anim
        plt.show()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--genomes",
        default="",
        help="colon separated champion pickles to race against, e.g. a.pkl:b.pkl",
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="NEAT config the genomes were trained with")
    parser.add_argument("--track-file", type=Path, default=None, help="Path to a JSON track file")
    parser.add_argument("--seed", type=int, default=None, help="random seed for the generated track")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    genome_paths = [Path(part) for part in args.genomes.split(":") if part]
    networks = []
    names = ["user"]
    brain = None
    if genome_paths:
        config = load_neat_config(args.config)
        for path in genome_paths:
            genome = load_genome(path)
            networks.append(neat.nn.FeedForwardNetwork.create(genome, config))
            names.append(path.name)
            if brain is None:
                brain = (genome, config)
            logger.info("Loaded pilot %s", path)

    boats = [Boat.default() for _ in names]
    if args.track_file:
        env = build_env(load_track(args.track_file), boats, boat_names=names)
    else:
        env = basic_env(TrackSpec().generate(random.Random(args.seed)), boats, boat_names=names)
    view_radius = max(point.length() for point in env.track)
    PlayWindow(env, networks, names, view_radius=max(view_radius, 1.0), brain=brain).run()


if __name__ == "__main__":
    main()
