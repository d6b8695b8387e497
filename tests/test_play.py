from types import SimpleNamespace

import matplotlib.pyplot as plt
import neat
import pytest

from sim.actions import ControlAction
from sim.boat import Boat
from sim.env import SailingEnv, basic_env
from sim.vector import Vec2
from train.neat_train import DEFAULT_CONFIG, TrainingConfig, build_neat_config
from viz.play import CONTROL_RATE, KeyboardPilot, PlayWindow, target_rings, wrap_offset


class TestKeyboardPilot:
    def test_held_keys_move_controls(self):
        pilot = KeyboardPilot()
        boat = Boat.default()
        pilot.on_press(SimpleNamespace(key="e"))
        pilot.on_press(SimpleNamespace(key="a"))
        pilot.apply(boat)
        pilot.apply(boat)
        assert boat.sail_angle == pytest.approx(2 * CONTROL_RATE)
        assert boat.rudder_angle == pytest.approx(-2 * CONTROL_RATE)

    def test_release_stops_changes(self):
        pilot = KeyboardPilot()
        boat = Boat.default()
        pilot.on_press(SimpleNamespace(key="q"))
        pilot.on_release(SimpleNamespace(key="q"))
        pilot.apply(boat)
        assert boat.sail_angle == 0.0

    def test_controls_stay_in_range(self):
        pilot = KeyboardPilot(rate=1.0)
        boat = Boat.default()
        pilot.on_press(SimpleNamespace(key="d"))
        for _ in range(5):
            pilot.apply(boat)
        assert boat.rudder_angle == pytest.approx(boat.max_rudder_angle)


def test_wrap_offset():
    wrapped = wrap_offset(Vec2(1.5, -1.5), 1.0)
    assert wrapped.x == pytest.approx(0.5)
    assert wrapped.y == pytest.approx(-0.5)
    assert wrap_offset(Vec2(0.25, 0.0), 1.0) == Vec2(0.25, 0.0)


def test_target_rings_grow_when_shared():
    boats = [Boat.default(), Boat.default(), Boat(target_index=1)]
    env = SailingEnv([Vec2(5.0, 5.0), Vec2(-5.0, 5.0)], boats, hit_distance=1.0)
    rings = target_rings(env, ring_step=0.1)
    assert rings[0] == ((5.0, 5.0), 1.0, 0)
    assert rings[1][1] == pytest.approx(1.1)
    assert rings[2] == ((-5.0, 5.0), 1.0, 2)


def test_play_window_steps_genome_pilots():
    config = build_neat_config(DEFAULT_CONFIG, TrainingConfig(pop_size=2, activations=("tanh",)))
    _, genome = next(iter(neat.Population(config).population.items()))
    network = neat.nn.FeedForwardNetwork.create(genome, config)
    env = basic_env([Vec2(5.0, 5.0)], [Boat.default(), Boat.default()], boat_names=["user", "pilot"])

    window = PlayWindow(env, [network], ["user", "pilot"], brain=(genome, config))
    try:
        inputs = env.get_inputs()
        expected = ControlAction.from_outputs(network.activate(inputs[1]))
        window.update(0)
        assert env.steps == 1
        assert env.boats[0].sail_angle == 0.0
        assert env.boats[1].sail_angle == pytest.approx(expected.sail * env.boats[1].max_sail_angle)
        assert window.brain_ax is not None
    finally:
        plt.close(window.fig)
