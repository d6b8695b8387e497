"""Replay a recorded JSONL trace of one or more boats."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

import matplotlib.pyplot as plt
from matplotlib import animation, patches

from sim.boat import Boat
from sim.vector import Vec2

logger = logging.getLogger(__name__)

# Local shapes in hull lengths, bow along +y.
HULL_SHAPE = [(0.0, 0.5), (0.2, 0.15), (0.18, -0.5), (-0.18, -0.5), (-0.2, 0.15)]
SAIL_SHAPE = [(-0.03, 0.1), (0.03, 0.1), (0.03, -0.55), (-0.03, -0.55)]
RUDDER_SHAPE = [(-0.02, 0.0), (0.02, 0.0), (0.02, -0.25), (-0.02, -0.25)]

BOAT_COLORS = [
    "#ffffff",
    "#ff0000",
    "#800000",
    "#00ff00",
    "#008000",
    "#0000ff",
    "#000080",
    "#ff00ff",
    "#800080",
    "#00ffff",
    "#008080",
    "#ffff00",
    "#808000",
]
SEA_COLOR = "#006994"


def boat_color(index: int) -> str:
    return BOAT_COLORS[index % len(BOAT_COLORS)]


@dataclass
class BoatFrame:
    position: Tuple[float, float]
    rotation: float
    sail_angle: float
    rudder_angle: float
    target_index: int
    waypoints_reached: int

    def to_boat(self) -> Boat:
        return Boat(
            position=Vec2(*self.position),
            rotation=self.rotation,
            sail_angle=self.sail_angle,
            rudder_angle=self.rudder_angle,
        )


@dataclass
class TraceRecord:
    step: int
    time: float
    boats: List[BoatFrame]


@dataclass
class TraceData:
    track: List[Tuple[float, float]]
    hit_distance: float
    wind: Tuple[float, float]
    names: List[str]
    records: List[TraceRecord]


def _parse_frame(raw: dict) -> BoatFrame:
    return BoatFrame(
        position=(float(raw["position"][0]), float(raw["position"][1])),
        rotation=float(raw["rotation"]),
        sail_angle=float(raw.get("sail_angle", 0.0)),
        rudder_angle=float(raw.get("rudder_angle", 0.0)),
        target_index=int(raw.get("target_index", 0)),
        waypoints_reached=int(raw.get("waypoints_reached", 0)),
    )


def load_trace(path: Path) -> TraceData:
    """Load a trace written by :class:`sim.env.SailingEnv`."""

    meta: dict | None = None
    records: List[TraceRecord] = []
    with open(path, "r", encoding="utf-8") as fp:
        for line_no, line in enumerate(fp, start=1):
            line = line.strip()
            if not line:
                continue
            payload = json.loads(line)
            if "meta" in payload:
                meta = payload
                continue
            try:
                records.append(
                    TraceRecord(
                        step=int(payload["step"]),
                        time=float(payload["time"]),
                        boats=[_parse_frame(raw) for raw in payload["boats"]],
                    )
                )
            except (KeyError, TypeError, IndexError) as exc:
                raise ValueError(f"Malformed trace record on line {line_no} of {path}") from exc

    if meta is None:
        raise ValueError(f"Trace {path} has no metadata line")
    if not records:
        raise ValueError(f"Trace {path} has no records")

    return TraceData(
        track=[(float(x), float(y)) for x, y in meta["track"]],
        hit_distance=float(meta["hit_distance"]),
        wind=(float(meta["wind"][0]), float(meta["wind"][1])),
        names=[str(name) for name in meta.get("boats", [])],
        records=records,
    )


def boat_polygons(boat: Boat) -> Tuple[list, list, list]:
    """World-space hull, sail and rudder outlines for ``boat``."""

    return (
        boat.hull_pose().apply(HULL_SHAPE),
        boat.sail_pose().apply(SAIL_SHAPE),
        boat.rudder_pose().apply(RUDDER_SHAPE),
    )


def _calc_bounds(records: Sequence[TraceRecord], track: Sequence[Tuple[float, float]], padding: float = 2.0):
    xs = [point[0] for point in track]
    ys = [point[1] for point in track]
    for record in records:
        for frame in record.boats:
            xs.append(frame.position[0])
            ys.append(frame.position[1])
    return min(xs) - padding, max(xs) + padding, min(ys) - padding, max(ys) + padding


class BoatArtist:
    """The patches that draw one boat."""

    def __init__(self, ax: plt.Axes, color: str, name: str) -> None:
        empty = [(0.0, 0.0)] * 3
        self.hull = patches.Polygon(empty, closed=True, facecolor=color, edgecolor="black", zorder=3)
        self.sail = patches.Polygon(empty, closed=True, facecolor="#cc0080", edgecolor="none", zorder=4)
        self.rudder = patches.Polygon(empty, closed=True, facecolor="#4d00e6", edgecolor="none", zorder=2)
        for patch in (self.hull, self.sail, self.rudder):
            ax.add_patch(patch)
        self.label = ax.text(0.0, 0.0, name, color=color, fontsize=8, ha="center", zorder=5)

    def update(self, boat: Boat) -> list:
        hull, sail, rudder = boat_polygons(boat)
        self.hull.set_xy(hull)
        self.sail.set_xy(sail)
        self.rudder.set_xy(rudder)
        self.label.set_position((boat.position.x, boat.position.y + 0.65))
        return [self.hull, self.sail, self.rudder, self.label]


def animate_trace(trace: TraceData, interval_ms: int = 1000 // 60):
    fig, ax = plt.subplots(figsize=(8, 8))
    bounds = _calc_bounds(trace.records, trace.track)
    ax.set_facecolor(SEA_COLOR)
    ax.set_aspect("equal", adjustable="box")
    ax.set_xlim(bounds[0], bounds[1])
    ax.set_ylim(bounds[2], bounds[3])

    ax.add_patch(patches.Polygon(trace.track, closed=True, fill=False, edgecolor="black", alpha=0.5, linewidth=2))
    boat_count = len(trace.records[0].boats)
    names = trace.names or [f"boat{i}" for i in range(boat_count)]
    target_patches = []
    artists = []
    for index in range(boat_count):
        target = patches.Circle((0.0, 0.0), trace.hit_distance, fill=False, edgecolor=boat_color(index), linewidth=2)
        ax.add_patch(target)
        target_patches.append(target)
        artists.append(BoatArtist(ax, boat_color(index), names[index]))
    status = ax.text(0.02, 0.97, "", transform=ax.transAxes, ha="left", va="top", color="white")

    def _update(idx: int):
        record = trace.records[idx]
        drawn = [status]
        for index, frame in enumerate(record.boats):
            target_patches[index].center = trace.track[frame.target_index]
            drawn.append(target_patches[index])
            drawn.extend(artists[index].update(frame.to_boat()))
        reached = ", ".join(f"{names[i]}: {frame.waypoints_reached}" for i, frame in enumerate(record.boats))
        status.set_text(f"t={record.time:.2f}s  {reached}")
        return drawn

    anim = animation.FuncAnimation(fig, _update, frames=len(trace.records), interval=interval_ms, blit=False, repeat=False)
    return fig, anim


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("trace", type=Path, help="Path to a JSONL trace")
    parser.add_argument("--interval-ms", type=int, default=1000 // 60, help="delay between frames in milliseconds")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    trace = load_trace(args.trace)
    logger.info("Loaded %d frames of %d boats", len(trace.records), len(trace.records[0].boats))
    _, anim = animate_trace(trace, args.interval_ms)
    _ = anim
    plt.show()


if __name__ == "__main__":
    main()
