"""Theme loader, validator, and registry.

Themes are JSON files in the bundled data/themes/ directory that define:
  - Bubble palette and geometry for both senders
  - Typing indicator, status line, and reaction pill styling
  - Chart styling, split into bar and donut subsets with per-sender colors

The schema is closed: every field is required and unknown fields are
rejected, so rendering never has to guess a default.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from chat_engine.colors import is_hex_color
from chat_engine.config import THEMES_DIR
from chat_engine.errors import ConfigurationError


# ── Schema for validation ─────────────────────────────────────────────────

# Field kinds:
#   color  hex color string
#   px     number > 0
#   nonneg number >= 0
#   signed any number
#   ratio  number in (0, 1]
#   text   non-empty string

SENDER_CHART_SCHEMA = {
    "title_color": "color",
    "label_color": "color",
    "value_color": "color",
    "center_text_color": "color",
    "legend_text_color": "color",
}

THEME_SCHEMA: dict[str, Any] = {
    "background": {"light": "color", "dark": "color"},
    "bubble": {
        "self_color": "color",
        "other_color": "color",
        "self_text_color": "color",
        "other_text_color": "color",
        "radius_px": "nonneg",
        "font_size_px": "px",
        "line_height_px": "px",
        "padding_x_px": "nonneg",
        "padding_y_px": "nonneg",
        "min_width_px": "px",
        "max_width_px": "px",
        "char_width_ratio": "ratio",
    },
    "typing": {"width_px": "px", "height_px": "px", "dot_radius_px": "px"},
    "status": {
        "delivered_text": "text",
        "read_text": "text",
        "font_size_px": "px",
        "offset_y_px": "nonneg",
        "color": "color",
    },
    "reaction": {
        "font_size_px": "px",
        "bg_color": "color",
        "bg_opacity": "ratio",
        "text_color": "color",
        "padding_x_px": "nonneg",
        "padding_y_px": "nonneg",
        "border_radius_px": "nonneg",
        "offset_x_px": "signed",
        "offset_y_px": "signed",
    },
    "chart": {
        "padding_x_px": "nonneg",
        "padding_y_px": "nonneg",
        "title_font_family": "text",
        "title_font_size_px": "px",
        "title_line_height_multiplier": "px",
        "title_bottom_margin_px": "nonneg",
        "label_font_size_px": "px",
        "label_gap_px": "nonneg",
        "value_font_size_px": "px",
        "bar": {
            "height_px": "px",
            "spacing_px": "nonneg",
            "corner_radius_px": "nonneg",
            "track_color": "color",
            "default_color": "color",
        },
        "donut": {
            "max_diameter_px": "px",
            "stroke_width_px": "px",
            "legend_gap_px": "nonneg",
            "legend_font_size_px": "px",
            "legend_item_spacing_px": "nonneg",
            "legend_marker_size_px": "px",
            "center_font_size_px": "px",
        },
        "self": SENDER_CHART_SCHEMA,
        "other": SENDER_CHART_SCHEMA,
    },
}

TOP_LEVEL_FIELDS = {"id", "name", "font_family"} | set(THEME_SCHEMA)


class ThemeError(ConfigurationError):
    """Raised when a theme is invalid."""

    pass


@dataclass(frozen=True)
class BackgroundStyle:
    light: str
    dark: str


@dataclass(frozen=True)
class BubbleStyle:
    """Bubble palette and text geometry."""

    self_color: str
    other_color: str
    self_text_color: str
    other_text_color: str
    radius_px: float
    font_size_px: float
    line_height_px: float
    padding_x_px: float
    padding_y_px: float
    min_width_px: float
    max_width_px: float
    char_width_ratio: float

    @property
    def char_width_px(self) -> float:
        """Estimated average glyph advance for bubble text."""
        return self.font_size_px * self.char_width_ratio


@dataclass(frozen=True)
class TypingStyle:
    width_px: float
    height_px: float
    dot_radius_px: float


@dataclass(frozen=True)
class StatusStyle:
    delivered_text: str
    read_text: str
    font_size_px: float
    offset_y_px: float
    color: str


@dataclass(frozen=True)
class ReactionStyle:
    font_size_px: float
    bg_color: str
    bg_opacity: float
    text_color: str
    padding_x_px: float
    padding_y_px: float
    border_radius_px: float
    offset_x_px: float
    offset_y_px: float

    @property
    def pill_width(self) -> float:
        return self.font_size_px + 2 * self.padding_x_px

    @property
    def pill_height(self) -> float:
        return self.font_size_px + 2 * self.padding_y_px


@dataclass(frozen=True)
class BarStyle:
    height_px: float
    spacing_px: float
    corner_radius_px: float
    track_color: str
    default_color: str


@dataclass(frozen=True)
class DonutStyle:
    max_diameter_px: float
    stroke_width_px: float
    legend_gap_px: float
    legend_font_size_px: float
    legend_item_spacing_px: float
    legend_marker_size_px: float
    center_font_size_px: float


@dataclass(frozen=True)
class ChartColors:
    """Chart text colors for one sender."""

    title_color: str
    label_color: str
    value_color: str
    center_text_color: str
    legend_text_color: str


@dataclass(frozen=True)
class ChartStyle:
    padding_x_px: float
    padding_y_px: float
    title_font_family: str
    title_font_size_px: float
    title_line_height_multiplier: float
    title_bottom_margin_px: float
    label_font_size_px: float
    label_gap_px: float
    value_font_size_px: float
    bar: BarStyle
    donut: DonutStyle
    self: ChartColors
    other: ChartColors

    @property
    def title_line_height(self) -> float:
        return self.title_font_size_px * self.title_line_height_multiplier

    def colors_for(self, is_self: bool) -> ChartColors:
        return self.self if is_self else self.other


@dataclass(frozen=True)
class Theme:
    """A fully resolved theme."""

    id: str
    name: str
    font_family: str
    background: BackgroundStyle
    bubble: BubbleStyle
    typing: TypingStyle
    status: StatusStyle
    reaction: ReactionStyle
    chart: ChartStyle

    def bubble_color(self, is_self: bool) -> str:
        return self.bubble.self_color if is_self else self.bubble.other_color

    def text_color(self, is_self: bool) -> str:
        return self.bubble.self_text_color if is_self else self.bubble.other_text_color


# ── Loader ────────────────────────────────────────────────────────────────

def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool) and math.isfinite(val)


def _check_field(kind: str, val: Any, path: str) -> Optional[str]:
    if kind == "color":
        if not is_hex_color(val):
            return f"{path} must be a hex color string (got {val!r})"
    elif kind == "text":
        if not isinstance(val, str) or not val.strip():
            return f"{path} must be a non-empty string (got {val!r})"
    else:
        if not _is_number(val):
            return f"{path} must be a finite number (got {val!r})"
        if kind == "px" and val <= 0:
            return f"{path} must be positive (got {val})"
        if kind == "nonneg" and val < 0:
            return f"{path} must not be negative (got {val})"
        if kind == "ratio" and not 0 < val <= 1:
            return f"{path} must be within (0, 1] (got {val})"
    return None


def _validate_section(data: Any, schema: dict, path: str, errors: list[str]) -> None:
    if not isinstance(data, dict):
        errors.append(f"{path} must be an object")
        return

    for key, kind in schema.items():
        if key not in data:
            errors.append(f"{path}: missing required field '{key}'")
            continue
        if isinstance(kind, dict):
            _validate_section(data[key], kind, f"{path}.{key}", errors)
            continue
        problem = _check_field(kind, data[key], f"{path}.{key}")
        if problem:
            errors.append(problem)

    for key in data:
        if key not in schema:
            errors.append(f"{path}: unknown field '{key}'")


def validate_theme_data(data: dict, source: str = "<unknown>") -> list[str]:
    """Validate theme JSON data. Returns list of error messages (empty = valid)."""
    if not isinstance(data, dict):
        return [f"{source}: theme must be a JSON object"]

    errors = []

    for key in ("id", "name", "font_family"):
        if key not in data:
            errors.append(f"{source}: missing required field '{key}'")
        elif not isinstance(data[key], str) or not data[key].strip():
            errors.append(f"{source}: '{key}' must be a non-empty string")

    for section, schema in THEME_SCHEMA.items():
        if section not in data:
            errors.append(f"{source}: missing required section '{section}'")
            continue
        _validate_section(data[section], schema, f"{source}: {section}", errors)

    for key in data:
        if key not in TOP_LEVEL_FIELDS:
            errors.append(f"{source}: unknown field '{key}'")

    if not errors:
        bubble = data["bubble"]
        if bubble["min_width_px"] > bubble["max_width_px"]:
            errors.append(f"{source}: bubble.min_width_px exceeds bubble.max_width_px")

    return errors


def load_theme_from_dict(data: dict) -> Theme:
    """Load a Theme from a validated dict."""
    chart = data["chart"]
    chart_fields = {k: v for k, v in chart.items() if k not in ("bar", "donut", "self", "other")}

    return Theme(
        id=data["id"],
        name=data["name"],
        font_family=data["font_family"],
        background=BackgroundStyle(**data["background"]),
        bubble=BubbleStyle(**data["bubble"]),
        typing=TypingStyle(**data["typing"]),
        status=StatusStyle(**data["status"]),
        reaction=ReactionStyle(**data["reaction"]),
        chart=ChartStyle(
            **chart_fields,
            bar=BarStyle(**chart["bar"]),
            donut=DonutStyle(**chart["donut"]),
            self=ChartColors(**chart["self"]),
            other=ChartColors(**chart["other"]),
        ),
    )


def parse_theme(data: dict, source: str = "<unknown>") -> Theme:
    """Validate and load theme data in one step."""
    errors = validate_theme_data(data, source=source)
    if errors:
        raise ThemeError("Theme validation failed:\n  " + "\n  ".join(errors), errors)
    return load_theme_from_dict(data)


def load_theme(name: str, themes_dir: Optional[Path] = None) -> Theme:
    """Load a theme by name from the themes directory."""
    themes_dir = themes_dir or THEMES_DIR
    path = themes_dir / f"{name}.json"

    if not path.exists():
        available = list_themes(themes_dir)
        raise ThemeError(
            f"Theme '{name}' not found at {path}. "
            f"Available: {', '.join(available) or 'none'}"
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ThemeError(f"Invalid JSON in {path}: {e}") from e

    return parse_theme(data, source=str(path))


def list_themes(themes_dir: Optional[Path] = None) -> list[str]:
    """List available theme names."""
    themes_dir = themes_dir or THEMES_DIR
    if not themes_dir.exists():
        return []
    return sorted(p.stem for p in themes_dir.glob("*.json"))
