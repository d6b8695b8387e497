"""Draw a pilot genome as a layered network diagram.

Inputs sit in the left column, labelled with the observation fields; outputs
sit in the right column. Hidden nodes are placed by their longest path from
the inputs. Enabled connections are drawn blue for positive and red for
negative weights, wider for larger magnitudes.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import neat

from sim.observation import OBSERVATION_FIELDS

OUTPUT_LABELS = ("sail", "rudder")
POSITIVE_COLOR = "#1f77b4"
NEGATIVE_COLOR = "#d62728"


def _enabled_connections(genome: neat.DefaultGenome) -> List[Tuple[int, int]]:
    return [key for key, conn in genome.connections.items() if conn.enabled]


def _node_depths(genome: neat.DefaultGenome, genome_config) -> Dict[int, int]:
    depths = {key: 0 for key in genome_config.input_keys}
    connections = _enabled_connections(genome)
    # Feed-forward, so the longest path settles within one pass per node.
    for _ in range(len(genome.nodes) + 1):
        changed = False
        for source, target in connections:
            if source in depths and depths.get(target, -1) < depths[source] + 1:
                depths[target] = depths[source] + 1
                changed = True
        if not changed:
            break
    return depths


def network_layout(genome: neat.DefaultGenome, genome_config) -> Dict[int, Tuple[float, float]]:
    """Position every input and node of ``genome`` in the unit square."""

    outputs = list(genome_config.output_keys)
    depths = _node_depths(genome, genome_config)
    hidden = [key for key in genome.nodes if key not in outputs]
    hidden_depths = {key: max(depths.get(key, 1), 1) for key in hidden}
    output_column = max(hidden_depths.values(), default=0) + 1

    columns: Dict[int, List[int]] = {0: list(genome_config.input_keys), output_column: outputs}
    for key in sorted(hidden):
        columns.setdefault(hidden_depths[key], []).append(key)

    layout = {}
    for column, keys in columns.items():
        x = column / output_column
        for row, key in enumerate(keys):
            y = 1.0 - (row + 1) / (len(keys) + 1)
            layout[key] = (x, y)
    return layout


def draw_genome(ax: plt.Axes, genome: neat.DefaultGenome, genome_config) -> list:
    """Draw ``genome`` on ``ax`` and return the connection lines."""

    layout = network_layout(genome, genome_config)
    ax.set_xlim(-0.35, 1.2)
    ax.set_ylim(0.0, 1.0)
    ax.set_xticks([])
    ax.set_yticks([])

    lines = []
    for source, target in _enabled_connections(genome):
        if source not in layout or target not in layout:
            continue
        weight = genome.connections[(source, target)].weight
        (x0, y0), (x1, y1) = layout[source], layout[target]
        (line,) = ax.plot(
            [x0, x1],
            [y0, y1],
            color=POSITIVE_COLOR if weight >= 0 else NEGATIVE_COLOR,
            linewidth=0.5 + min(abs(weight), 5.0) * 0.5,
            alpha=0.7,
            zorder=1,
        )
        lines.append(line)

    xs = [x for x, _ in layout.values()]
    ys = [y for _, y in layout.values()]
    ax.scatter(xs, ys, s=20, color="black", zorder=2)

    for key, label in zip(genome_config.input_keys, OBSERVATION_FIELDS):
        x, y = layout[key]
        ax.text(x - 0.03, y, label, fontsize=6, ha="right", va="center")
    for key, label in zip(genome_config.output_keys, OUTPUT_LABELS):
        x, y = layout[key]
        ax.text(x + 0.03, y, label, fontsize=6, ha="left", va="center")
    return lines
