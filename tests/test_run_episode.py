import math

import pytest

from sim.boat import Boat
from sim.env import sail_force
from sim.map_io import TrackConfig, load_track, save_track
from sim.run_episode import BaselineController, run_episode
from sim.vector import Vec2


class TestBaselineController:
    def test_steers_toward_a_starboard_target(self):
        action = BaselineController().act(Boat.default(), Vec2(2.0, 0.0), Vec2(5.0, 5.0))
        assert action.rudder > 0.0

    def test_steers_toward_a_port_target(self):
        action = BaselineController().act(Boat.default(), Vec2(2.0, 0.0), Vec2(-5.0, 5.0))
        assert action.rudder < 0.0

    def test_trims_for_forward_drive_on_a_reach(self):
        boat = Boat.default()
        action = BaselineController().act(boat, Vec2(2.0, 0.0), Vec2(0.0, 10.0))
        assert action.sail > 0.0
        assert boat.sail_angle == 0.0
        action.apply(boat)
        assert sail_force(boat, Vec2(2.0, 0.0)).dot(boat.forward_axis()) > 0.0

    def test_rejects_single_candidate(self):
        with pytest.raises(ValueError):
            BaselineController(sail_candidates=1)


class TestRunEpisode:
    def test_generated_track_writes_trace(self, tmp_path, capsys):
        trace = tmp_path / "episode.jsonl"
        env = run_episode(
            steps=120,
            dt=1 / 60,
            trace_path=trace,
            seed=0,
            track_file=None,
            track_distance=12.0,
            track_count=10,
            wind=None,
        )
        assert trace.exists()
        assert len(trace.read_text(encoding="utf-8").splitlines()) == 121
        assert env.boats[0].position != Vec2()
        assert "Episode finished" in capsys.readouterr().out

    def test_track_file_and_wind_override(self, tmp_path):
        track_file = tmp_path / "course.json"
        save_track(track_file, TrackConfig(track=[Vec2(0.0, 3.0)]))
        env = run_episode(
            steps=10,
            dt=1 / 60,
            trace_path=tmp_path / "episode.jsonl",
            seed=None,
            track_file=track_file,
            track_distance=12.0,
            track_count=10,
            wind=(0.0, -2.0),
        )
        assert env.track == (Vec2(0.0, 3.0),)
        assert env.wind == Vec2(0.0, -2.0)
        assert math.isfinite(env.get_fitnesses()[0])

    def test_saved_track_reloads(self, tmp_path):
        saved = tmp_path / "tracks" / "generated.json"
        env = run_episode(
            steps=1,
            dt=1 / 60,
            trace_path=tmp_path / "episode.jsonl",
            seed=3,
            track_file=None,
            track_distance=12.0,
            track_count=4,
            wind=None,
            save_track_path=saved,
        )
        config = load_track(saved)
        assert tuple(config.track) == env.track
        assert config.wind == Vec2(2.0, 0.0)
        assert config.hit_distance == 1.0
