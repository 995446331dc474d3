"""Tests for color helpers."""

import copy
import json

import pytest

from chat_engine.colors import (
    contrast_ratio,
    darken,
    is_hex_color,
    lighten,
    parse_hex,
    theme_contrast_warnings,
    to_hex,
)
from chat_engine.config import THEMES_DIR
from chat_engine.themes import load_theme, load_theme_from_dict


def _ios_data() -> dict:
    return copy.deepcopy(json.loads((THEMES_DIR / "ios.json").read_text(encoding="utf-8")))


class TestHexColors:
    def test_valid_forms(self):
        for value in ("#fff", "#FFFF", "#0B93F6", "#0B93F6CC"):
            assert is_hex_color(value)

    def test_invalid_forms(self):
        for value in ("0B93F6", "#12", "#GGGGGG", "blue", None, 123):
            assert not is_hex_color(value)

    def test_parse_and_format(self):
        assert parse_hex("#0B93F6") == (11, 147, 246)
        assert parse_hex("#fff") == (255, 255, 255)
        assert to_hex((11, 147, 246)) == "#0b93f6"

    def test_to_hex_clamps(self):
        assert to_hex((-5, 300, 128)) == "#00ff80"


class TestContrast:
    def test_black_on_white(self):
        assert contrast_ratio("#000000", "#FFFFFF") == pytest.approx(21.0)

    def test_symmetric(self):
        assert contrast_ratio("#0B93F6", "#FFFFFF") == pytest.approx(contrast_ratio("#FFFFFF", "#0B93F6"))

    def test_same_color(self):
        assert contrast_ratio("#777777", "#777777") == pytest.approx(1.0)


class TestShades:
    def test_darken(self):
        assert darken("#FFFFFF", 0.5) == "#7f7f7f"
        assert darken("#123456", 0) == "#123456"

    def test_lighten(self):
        assert lighten("#000000", 1.0) == "#ffffff"
        assert lighten("#000000", 0.5) == "#7f7f7f"


class TestThemeContrast:
    def test_bundled_themes_readable(self):
        for name in ("ios", "android", "midnight"):
            assert theme_contrast_warnings(load_theme(name)) == []

    def test_low_contrast_reported(self):
        data = _ios_data()
        data["bubble"]["self_text_color"] = "#0C94F7"
        warnings = theme_contrast_warnings(load_theme_from_dict(data))
        assert len(warnings) == 1
        assert "self text on self bubble" in warnings[0]
