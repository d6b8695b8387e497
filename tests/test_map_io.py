import json

import pytest

from sim.boat import Boat
from sim.map_io import TrackConfig, build_env, load_track, parse_track_payload, save_track
from sim.vector import Vec2


class TestParseTrackPayload:
    def test_shorthand_list(self):
        config = parse_track_payload([[0, 5], [4, -3]])
        assert config.track == [Vec2(0.0, 5.0), Vec2(4.0, -3.0)]
        assert config.wind == Vec2(2.0, 0.0)
        assert config.hit_distance == 1.0
        assert config.wind_force_multiplier == 1.0

    def test_explicit_object(self):
        config = parse_track_payload(
            {"track": [[1, 1]], "wind": [0, -3], "hit_distance": 0.5, "wind_force_multiplier": 2}
        )
        assert config.track == [Vec2(1.0, 1.0)]
        assert config.wind == Vec2(0.0, -3.0)
        assert config.hit_distance == 0.5
        assert config.wind_force_multiplier == 2.0

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"wind": [1, 0]},
            {"track": [[1, 2, 3]]},
            {"track": [["a", "b"]]},
            {"track": [[0, 0]], "wind": 3},
            {"track": [[0, 0]], "hit_distance": -1},
            "track",
        ],
    )
    def test_rejects_malformed_payloads(self, payload):
        with pytest.raises(ValueError):
            parse_track_payload(payload)


class TestTrackFiles:
    def test_save_then_load(self, tmp_path):
        path = tmp_path / "tracks" / "course.json"
        config = TrackConfig(track=[Vec2(1.0, 2.0), Vec2(-3.0, 4.0)], wind=Vec2(0.0, 1.5), hit_distance=0.75)
        save_track(path, config)
        assert load_track(path) == config

    def test_load_shorthand_file(self, tmp_path):
        path = tmp_path / "course.json"
        path.write_text(json.dumps([[3, 4]]), encoding="utf-8")
        assert load_track(path).track == [Vec2(3.0, 4.0)]

    def test_build_env_uses_track_settings(self):
        config = TrackConfig(track=[Vec2(1.0, 0.0)], wind=Vec2(0.0, 1.0), hit_distance=0.5, wind_force_multiplier=3.0)
        env = build_env(config, [Boat.default()])
        assert env.track == (Vec2(1.0, 0.0),)
        assert env.wind == Vec2(0.0, 1.0)
        assert env.hit_distance == 0.5
        assert env.wind_force_multiplier == 3.0
