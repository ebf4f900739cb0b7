"""Tests for the command line entry point."""

import json

import pytest

from phoebe.cli import apply_overrides, load_config, main, parse_args
from phoebe.config import RenderConfig


def _tiny_args(tmp_path, *extra):
    return [
        "--width", "8",
        "--height", "6",
        "--samples", "1",
        "--workers", "2",
        "--output", str(tmp_path / "render.png"),
        *extra,
    ]


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.config is None
        assert args.preset == "default"
        assert args.tone_map == "none"
        assert args.gamma == 2.2
        assert args.exposure == 1.0
        assert args.rows_per_batch == 32

    def test_unknown_preset(self):
        with pytest.raises(SystemExit):
            parse_args(["--preset", "garden"])

    def test_overrides(self, tmp_path):
        args = parse_args(["--width", "10", "--seed", "4", "--output", str(tmp_path / "a.png")])
        config = apply_overrides(RenderConfig(file_name="x.png"), args)
        assert config.width == 10
        assert config.height == 800
        assert config.seed == 4
        assert config.file_name == str(tmp_path / "a.png")


class TestLoadConfig:
    def test_missing_file_falls_back(self, tmp_path, capsys):
        config = load_config(str(tmp_path / "missing.json"))
        assert config.width == 800
        assert "Rendering with default configuration..." in capsys.readouterr().out

    def test_bad_config_falls_back(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"bogus": 1}), encoding="utf-8")
        config = load_config(str(path))
        assert config == RenderConfig(num_workers=config.num_workers, file_name=config.file_name)
        assert "bogus" in capsys.readouterr().out

    def test_non_utf8_file_falls_back(self, tmp_path, capsys):
        path = tmp_path / "latin.json"
        path.write_bytes(b"\xff\xfe\x00{")
        config = load_config(str(path))
        assert config.width == 800
        out = capsys.readouterr().out
        assert "not UTF-8" in out
        assert "Rendering with default configuration..." in out

    def test_worker_count_in_file_falls_back(self, tmp_path, capsys):
        path = tmp_path / "workers.json"
        path.write_text(json.dumps({"numWorkers": 64, "width": 20}), encoding="utf-8")
        config = load_config(str(path))
        assert config.width == 800
        assert "--workers" in capsys.readouterr().out

    def test_loads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"width": 20, "traceDepth": 2}), encoding="utf-8")
        config = load_config(str(path))
        assert (config.width, config.trace_depth) == (20, 2)


class TestMain:
    def test_renders_png(self, tmp_path, capsys):
        assert main(_tiny_args(tmp_path)) == 0
        assert (tmp_path / "render.png").exists()
        out = capsys.readouterr().out
        assert "Configuration Summary" in out
        assert "Saved to:" in out

    def test_runtime_initialized_once(self, tmp_path):
        from phoebe.runtime import init_runtime, is_initialized

        assert is_initialized()
        # The session already initialized Taichi; a second call keeps existing fields
        init_runtime(1)
        assert main(_tiny_args(tmp_path)) == 0

    def test_lit_room_preset(self, tmp_path):
        assert main(_tiny_args(tmp_path, "--preset", "lit-room", "--tone-map", "reinhard")) == 0
        assert (tmp_path / "render.png").exists()

    def test_scene_file(self, tmp_path):
        from phoebe.scene import create_default_scene, save_scene

        scene_path = tmp_path / "scene.json"
        save_scene(create_default_scene(), scene_path)
        assert main(_tiny_args(tmp_path, "--scene", str(scene_path))) == 0

    def test_config_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"traceDepth": 2, "intersectSampleSize": 1}), encoding="utf-8")
        assert main([str(config_path), *_tiny_args(tmp_path)]) == 0

    def test_invalid_width(self, tmp_path, capsys):
        assert main(_tiny_args(tmp_path, "--width", "0")) == 1
        assert "Invalid configuration" in capsys.readouterr().err
        assert not (tmp_path / "render.png").exists()

    def test_bad_scene_file(self, tmp_path, capsys):
        scene_path = tmp_path / "scene.json"
        scene_path.write_text(json.dumps({"objects": [{"type": "cone"}]}), encoding="utf-8")
        assert main(_tiny_args(tmp_path, "--scene", str(scene_path))) == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_scene_file(self, tmp_path):
        assert main(_tiny_args(tmp_path, "--scene", str(tmp_path / "nope.json"))) == 1

    @pytest.mark.parametrize(
        "scene",
        [
            {"bounds": {"min": [0, 0, 0]}},
            {"bounds": [0, 0, 0]},
            {"objects": {"type": "sphere"}},
            {"objects": ["sphere"]},
            {
                "objects": [
                    {
                        "type": "sphere",
                        "center": [0, 0, -10],
                        "radius": "big",
                        "material": {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
                    }
                ]
            },
            {
                "objects": [
                    {
                        "type": "plane",
                        "point": [0, -1, 0],
                        "normal": [0, 1, 0],
                        "material": {"type": "metal", "albedo": [0.5, 0.5, 0.5], "roughness": "rough"},
                    }
                ]
            },
        ],
    )
    def test_malformed_scene_file(self, tmp_path, capsys, scene):
        scene_path = tmp_path / "scene.json"
        scene_path.write_text(json.dumps(scene), encoding="utf-8")
        assert main(_tiny_args(tmp_path, "--scene", str(scene_path))) == 1
        assert "Error:" in capsys.readouterr().err
        assert not (tmp_path / "render.png").exists()

    def test_non_utf8_scene_file(self, tmp_path, capsys):
        scene_path = tmp_path / "scene.json"
        scene_path.write_bytes(b"\xff\xfe\x00{")
        assert main(_tiny_args(tmp_path, "--scene", str(scene_path))) == 1
        assert "not UTF-8" in capsys.readouterr().err

    def test_non_utf8_config_renders_defaults(self, tmp_path, capsys):
        config_path = tmp_path / "config.json"
        config_path.write_bytes(b"\xff\xfe\x00{")
        assert main([str(config_path), *_tiny_args(tmp_path)]) == 0
        assert "Rendering with default configuration..." in capsys.readouterr().out
        assert (tmp_path / "render.png").exists()

    def test_zero_trace_depth_renders_black(self, tmp_path):
        from PIL import Image

        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"traceDepth": 0}), encoding="utf-8")
        assert main([str(config_path), *_tiny_args(tmp_path)]) == 0
        with Image.open(tmp_path / "render.png") as image:
            assert image.size == (8, 6)
            assert image.getextrema() == ((0, 0), (0, 0), (0, 0))

    @pytest.mark.parametrize(
        "extra",
        [
            ("--gamma", "0"),
            ("--gamma", "-2"),
            ("--gamma", "nan"),
            ("--tone-map", "exposure", "--exposure", "0"),
            ("--exposure", "inf"),
        ],
    )
    def test_bad_display_settings_rejected_before_render(self, tmp_path, capsys, extra):
        assert main(_tiny_args(tmp_path, *extra)) == 1
        captured = capsys.readouterr()
        assert "Invalid display settings" in captured.err
        assert "Configuration Summary" not in captured.out
        assert not (tmp_path / "render.png").exists()
