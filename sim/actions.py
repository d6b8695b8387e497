"""Action schema for the boat simulator.

Controllers emit two values per step, ``[sail, rudder]``, each nominally in
``[-1, 1]``. :class:`ControlAction` scales them by the boat's maximum angles.
Values that are not finite are sanitized here so a misbehaving network cannot
poison the boat state: NaN becomes zero and infinities clamp to the limits.
"""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Sequence

from .boat import Boat
from .transforms import clamp

if TYPE_CHECKING:  # pragma: no cover
    from .env import SailingEnv

logger = logging.getLogger(__name__)

NUM_OUTPUTS = 2


def _sanitize(value: float) -> float:
    value = float(value)
    if math.isnan(value):
        logger.debug("Replacing NaN controller output with 0.0")
        return 0.0
    return clamp(value, -1.0, 1.0)


@dataclass
class ControlAction:
    """Normalized sail and rudder command.

    Attributes:
        sail: Fraction of the maximum sail angle, ``[-1, 1]``.
        rudder: Fraction of the maximum rudder angle, ``[-1, 1]``.
    """

    sail: float
    rudder: float

    @classmethod
    def from_outputs(cls, outputs: Sequence[float]) -> "ControlAction":
        if len(outputs) != NUM_OUTPUTS:
            raise ValueError(f"Controllers must emit {NUM_OUTPUTS} outputs, got {len(outputs)}")
        return cls(sail=_sanitize(outputs[0]), rudder=_sanitize(outputs[1]))

    def apply(self, boat: Boat) -> None:
        boat.sail_angle = self.sail * boat.max_sail_angle
        boat.rudder_angle = self.rudder * boat.max_rudder_angle


def apply_outputs(env: "SailingEnv", outputs_by_boat: Mapping[int, Sequence[float]]) -> None:
    """Route raw controller outputs, keyed by boat index, onto the boats."""

    for index, outputs in outputs_by_boat.items():
        ControlAction.from_outputs(outputs).apply(env.boats[index])
