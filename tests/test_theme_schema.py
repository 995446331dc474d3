"""Tests for theme loading, validation, and schema compliance."""

import copy
import json
import pytest
import tempfile
from pathlib import Path

from chat_engine.config import THEMES_DIR
from chat_engine.errors import ConfigurationError
from chat_engine.themes import (
    Theme,
    ThemeError,
    list_themes,
    load_theme,
    load_theme_from_dict,
    parse_theme,
    validate_theme_data,
)


def _ios_data() -> dict:
    """Raw data of the bundled ios theme, safe to mutate."""
    path = THEMES_DIR / "ios.json"
    return copy.deepcopy(json.loads(path.read_text(encoding="utf-8")))


class TestThemeValidation:
    def test_valid_theme(self):
        assert validate_theme_data(_ios_data()) == []

    def test_missing_id(self):
        data = _ios_data()
        del data["id"]
        errors = validate_theme_data(data)
        assert any("'id'" in e for e in errors)

    def test_missing_section(self):
        data = _ios_data()
        del data["reaction"]
        errors = validate_theme_data(data)
        assert any("reaction" in e for e in errors)

    def test_missing_nested_field(self):
        data = _ios_data()
        del data["chart"]["donut"]["legend_gap_px"]
        errors = validate_theme_data(data)
        assert any("legend_gap_px" in e for e in errors)

    def test_missing_sender_chart_color(self):
        data = _ios_data()
        del data["chart"]["other"]["label_color"]
        errors = validate_theme_data(data)
        assert any("chart.other" in e and "label_color" in e for e in errors)

    def test_invalid_color_format(self):
        data = _ios_data()
        data["bubble"]["self_color"] = "blue-ish"
        errors = validate_theme_data(data)
        assert any("hex" in e.lower() for e in errors)

    def test_unknown_field_rejected(self):
        data = _ios_data()
        data["bubble"]["glow"] = True
        errors = validate_theme_data(data)
        assert any("unknown" in e and "glow" in e for e in errors)

    def test_unknown_top_level_field_rejected(self):
        data = _ios_data()
        data["effects"] = {}
        errors = validate_theme_data(data)
        assert any("unknown field 'effects'" in e for e in errors)

    def test_wrong_number_type(self):
        data = _ios_data()
        data["bubble"]["font_size_px"] = "14"
        errors = validate_theme_data(data)
        assert any("font_size_px" in e for e in errors)

    def test_bool_is_not_a_number(self):
        data = _ios_data()
        data["typing"]["width_px"] = True
        errors = validate_theme_data(data)
        assert any("width_px" in e for e in errors)

    def test_non_positive_size(self):
        data = _ios_data()
        data["bubble"]["line_height_px"] = 0
        errors = validate_theme_data(data)
        assert any("line_height_px" in e and "positive" in e for e in errors)

    def test_ratio_out_of_range(self):
        data = _ios_data()
        data["reaction"]["bg_opacity"] = 1.5
        errors = validate_theme_data(data)
        assert any("bg_opacity" in e for e in errors)

    def test_signed_offsets_allowed(self):
        data = _ios_data()
        data["reaction"]["offset_x_px"] = -4
        data["reaction"]["offset_y_px"] = -20
        assert validate_theme_data(data) == []

    def test_non_finite_numbers_rejected(self):
        for bad in (float("nan"), float("inf"), float("-inf")):
            data = _ios_data()
            data["bubble"]["line_height_px"] = bad
            errors = validate_theme_data(data)
            assert any("line_height_px" in e and "finite" in e for e in errors)

    def test_nan_from_json_file_rejected(self):
        data = _ios_data()
        text = json.dumps(data).replace('"bg_opacity": 0.95', '"bg_opacity": NaN')
        assert "NaN" in text
        with pytest.raises(ThemeError, match="bg_opacity"):
            parse_theme(json.loads(text))

    def test_min_width_above_max(self):
        data = _ios_data()
        data["bubble"]["min_width_px"] = 300
        errors = validate_theme_data(data)
        assert any("min_width_px" in e for e in errors)

    def test_not_an_object(self):
        assert validate_theme_data(["ios"]) != []


class TestThemeLoading:
    def test_load_builtin_themes(self):
        """All built-in themes should load without errors."""
        for name in list_themes():
            theme = load_theme(name)
            assert theme.id == name
            assert theme.bubble.self_color.startswith("#")
            assert theme.chart.self.title_color.startswith("#")

    def test_theme_not_found(self):
        with pytest.raises(ThemeError, match="not found"):
            load_theme("nonexistent_theme_xyz")

    def test_theme_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_theme("nonexistent_theme_xyz")

    def test_load_from_dict(self):
        data = _ios_data()
        data["id"] = "custom"
        data["name"] = "Custom Theme"
        data["chart"]["bar"]["height_px"] = 12
        theme = load_theme_from_dict(data)
        assert isinstance(theme, Theme)
        assert theme.id == "custom"
        assert theme.name == "Custom Theme"
        assert theme.chart.bar.height_px == 12

    def test_parse_theme_collects_errors(self):
        data = _ios_data()
        del data["status"]["read_text"]
        data["bubble"]["self_color"] = "nope"
        with pytest.raises(ThemeError) as excinfo:
            parse_theme(data)
        assert len(excinfo.value.errors) == 2

    def test_theme_is_immutable(self):
        theme = load_theme("ios")
        with pytest.raises(Exception):
            theme.bubble.font_size_px = 20


class TestThemeAccessors:
    def test_sender_colors(self):
        theme = load_theme("ios")
        assert theme.bubble_color(True) == theme.bubble.self_color
        assert theme.bubble_color(False) == theme.bubble.other_color
        assert theme.text_color(True) == theme.bubble.self_text_color
        assert theme.chart.colors_for(False) is theme.chart.other

    def test_derived_metrics(self):
        theme = load_theme("ios")
        assert theme.bubble.char_width_px == pytest.approx(14 * 0.6)
        assert theme.chart.title_line_height == pytest.approx(15 * 1.3)
        assert theme.reaction.pill_width == 14 + 2 * 6


class TestThemeRegistry:
    def test_list_themes_returns_names(self):
        themes = list_themes()
        assert len(themes) >= 3
        assert "ios" in themes
        assert "android" in themes
        assert "midnight" in themes

    def test_theme_swap_produces_different_colors(self):
        t1 = load_theme("ios")
        t2 = load_theme("android")
        assert t1.bubble.self_color != t2.bubble.self_color

    def test_missing_dir_lists_nothing(self):
        assert list_themes(Path("/nonexistent/themes/dir")) == []


class TestThemeFile:
    def test_invalid_json_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bad.json"
            path.write_text("not json at all {{{")
            with pytest.raises(ThemeError, match="Invalid JSON"):
                load_theme("bad", themes_dir=Path(tmpdir))

    def test_validation_failure_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "incomplete.json"
            path.write_text(json.dumps({"id": "incomplete", "bubble": {}}))
            with pytest.raises(ThemeError, match="validation failed"):
                load_theme("incomplete", themes_dir=Path(tmpdir))
