"""Utilities for loading and saving fixed waypoint tracks.

Track files are JSON. Two formats are accepted:

```
# Shorthand: a list of coordinate pairs, default wind and hit distance
[[0, 5], [4, -3], [-6, 2]]

# Explicit: optional wind vector, hit distance and wind force multiplier
{
  "track": [[0, 5], [4, -3], [-6, 2]],
  "wind": [2.0, 0.0],
  "hit_distance": 1.0,
  "wind_force_multiplier": 1.0
}
```

The wind is a vector pointing where the wind blows to, in world units per
second.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from .boat import Boat
from .env import SailingEnv
from .vector import Vec2


@dataclass
class TrackConfig:
    track: List[Vec2]
    wind: Vec2 = field(default_factory=lambda: Vec2(2.0, 0.0))
    hit_distance: float = 1.0
    wind_force_multiplier: float = 1.0


def _parse_vector(raw: object, context: str) -> Vec2:
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{context} must be a pair of numbers, got {raw}")
    try:
        return Vec2.from_sequence([float(value) for value in raw])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context} must be a pair of numbers, got {raw}") from exc


def _parse_track(raw_track: object) -> List[Vec2]:
    if not isinstance(raw_track, list):
        raise ValueError("track must be a list of coordinate pairs")
    return [_parse_vector(point, f"track point {idx}") for idx, point in enumerate(raw_track)]


def parse_track_payload(payload: object) -> TrackConfig:
    if isinstance(payload, list):
        config = TrackConfig(track=_parse_track(payload))
    elif isinstance(payload, dict):
        if "track" not in payload:
            raise ValueError("Track file object must include a 'track' key")
        config = TrackConfig(track=_parse_track(payload["track"]))
        if "wind" in payload:
            config.wind = _parse_vector(payload["wind"], "wind")
        if "hit_distance" in payload:
            config.hit_distance = float(payload["hit_distance"])
        if "wind_force_multiplier" in payload:
            config.wind_force_multiplier = float(payload["wind_force_multiplier"])
    else:
        raise ValueError("Track file must be a list of coordinates or an object with a 'track' key")

    if not config.track:
        raise ValueError("Track file contains no waypoints")
    if config.hit_distance < 0.0:
        raise ValueError(f"hit_distance must be non-negative, got {config.hit_distance}")
    return config


def load_track(path: Path) -> TrackConfig:
    """Load waypoints and wind settings from a JSON track file."""

    with open(path, "r", encoding="utf-8") as fp:
        payload = json.load(fp)
    return parse_track_payload(payload)


def save_track(path: Path, config: TrackConfig) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "track": [list(point.to_tuple()) for point in config.track],
        "wind": list(config.wind.to_tuple()),
        "hit_distance": config.hit_distance,
        "wind_force_multiplier": config.wind_force_multiplier,
    }
    with open(path, "w", encoding="utf-8") as fp:
        json.dump(payload, fp, indent=2)


def build_env(config: TrackConfig, boats: Sequence[Boat], **kwargs) -> SailingEnv:
    """Create an environment for ``boats`` on the loaded track."""

    return SailingEnv(
        config.track,
        boats,
        wind=config.wind,
        wind_force_multiplier=config.wind_force_multiplier,
        hit_distance=config.hit_distance,
        **kwargs,
    )
