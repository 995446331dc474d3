"""Color helpers: hex parsing, contrast checks, and shade adjustment."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from PIL import ImageColor

if TYPE_CHECKING:
    from chat_engine.themes import Theme


HEX_RE = re.compile(r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{4}|[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")

# Below this ratio text on a bubble is hard to read at chat font sizes
MIN_CONTRAST = 3.0


def is_hex_color(value: object) -> bool:
    """True for #RGB, #RGBA, #RRGGBB and #RRGGBBAA strings."""
    return isinstance(value, str) and bool(HEX_RE.match(value))


def parse_hex(color: str) -> tuple[int, int, int]:
    """Parse a hex color into an RGB tuple (alpha is dropped)."""
    rgb = ImageColor.getrgb(color)
    return rgb[0], rgb[1], rgb[2]


def to_hex(rgb: tuple[int, int, int]) -> str:
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in rgb)


def _channel(c: int) -> float:
    s = c / 255
    return s / 12.92 if s <= 0.03928 else ((s + 0.055) / 1.055) ** 2.4


def luminance(color: str) -> float:
    """Relative luminance per WCAG."""
    r, g, b = parse_hex(color)
    return 0.2126 * _channel(r) + 0.7152 * _channel(g) + 0.0722 * _channel(b)


def contrast_ratio(color1: str, color2: str) -> float:
    """WCAG contrast ratio between two colors (1.0–21.0)."""
    l1, l2 = luminance(color1), luminance(color2)
    hi, lo = max(l1, l2), min(l1, l2)
    return (hi + 0.05) / (lo + 0.05)


def darken(color: str, amount: float) -> str:
    """Darken a color by ``amount`` (0–1)."""
    r, g, b = parse_hex(color)
    return to_hex((int(r * (1 - amount)), int(g * (1 - amount)), int(b * (1 - amount))))


def lighten(color: str, amount: float) -> str:
    """Lighten a color by ``amount`` (0–1)."""
    r, g, b = parse_hex(color)
    return to_hex((
        int(r + (255 - r) * amount),
        int(g + (255 - g) * amount),
        int(b + (255 - b) * amount),
    ))


def theme_contrast_warnings(theme: "Theme") -> list[str]:
    """List text/bubble color pairs in a theme that fall below MIN_CONTRAST."""
    bubble = theme.bubble
    pairs = [
        ("self text on self bubble", bubble.self_text_color, bubble.self_color),
        ("other text on other bubble", bubble.other_text_color, bubble.other_color),
        ("self chart labels", theme.chart.self.label_color, bubble.self_color),
        ("other chart labels", theme.chart.other.label_color, bubble.other_color),
    ]
    warnings = []
    for label, fg, bg in pairs:
        ratio = contrast_ratio(fg, bg)
        if ratio < MIN_CONTRAST:
            warnings.append(f"{theme.id}: low contrast for {label} ({ratio:.2f}:1)")
    return warnings
