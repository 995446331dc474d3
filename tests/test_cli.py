"""Tests for the command-line interface."""

import tempfile
from pathlib import Path

import pytest

from chat_engine.cli import build_parser, load_placeholder_file, parse_overrides, run
from chat_engine.config import RenderConfig
from chat_engine.errors import ConfigurationError


def _run(*argv) -> int:
    return run(build_parser().parse_args(list(argv)))


class TestParseOverrides:
    def test_scalar_values(self):
        changes = parse_overrides(["width_px=360", "seed=7", "theme=midnight"])
        assert changes == {"width_px": 360, "seed": 7, "theme": "midnight"}

    def test_avatar_fields(self):
        changes = parse_overrides(["avatars.shape=square", "avatars.enabled=false"])
        assert changes == {"avatars": {"shape": "square", "enabled": False}}
        config = RenderConfig().with_overrides(**changes)
        assert config.avatars.shape == "square"
        assert not config.avatars.enabled

    def test_paths(self):
        changes = parse_overrides(["output=out/chat.svg"])
        assert changes["output"] == Path("out/chat.svg")

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown config setting"):
            parse_overrides(["colour=red"])

    def test_unknown_avatar_key(self):
        with pytest.raises(ConfigurationError, match="Unknown avatar setting"):
            parse_overrides(["avatars.sparkle=1"])

    def test_malformed_pair(self):
        with pytest.raises(ConfigurationError, match="KEY=VALUE"):
            parse_overrides(["width_px"])


class TestPlaceholderFile:
    def test_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "values.yaml"
            path.write_text("name: Dana\nyears: 5\n", encoding="utf-8")
            assert load_placeholder_file(path) == {"name": "Dana", "years": "5"}

    def test_not_a_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "values.yaml"
            path.write_text("- one\n- two\n", encoding="utf-8")
            with pytest.raises(ConfigurationError):
                load_placeholder_file(path)


class TestRun:
    def test_list_commands(self, capsys):
        assert _run("--list-themes") == 0
        assert "ios" in capsys.readouterr().out
        assert _run("--list-presets") == 0
        assert "relaxed" in capsys.readouterr().out
        assert _run("--list-conversations") == 0
        assert "profile" in capsys.readouterr().out

    def test_dry_run(self, capsys):
        assert _run("--conversation", "profile", "--seed", "1", "--dry-run") == 0
        out = capsys.readouterr().out
        assert "timeline preview" in out
        assert "Dan Johnson" in out

    def test_writes_svg(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output = Path(tmpdir) / "nested" / "chat.svg"
            code = _run("--theme", "android", "--preset", "brisk", "--seed", "2", "--output", str(output))
            assert code == 0
            svg = output.read_text(encoding="utf-8")
        assert svg.startswith("<svg")
        assert 'class="event"' in svg

    def test_placeholder_file_applied(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "values.yaml"
            path.write_text("name: Robin Vega\n", encoding="utf-8")
            code = _run("--conversation", "profile", "--placeholders", str(path), "--dry-run")
        assert code == 0
        assert "Robin Vega" in capsys.readouterr().out

    def test_unknown_theme_fails(self, capsys):
        assert _run("--theme", "nope", "--dry-run") == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_override_fails(self, capsys):
        assert _run("--set", "width_px=-5", "--dry-run") == 1
        assert "width_px" in capsys.readouterr().err

    def test_missing_conversation_fails(self, capsys):
        assert _run("--conversation", "no_such_chat", "--dry-run") == 1
        assert "not found" in capsys.readouterr().err
