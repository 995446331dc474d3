"""Bubble and chart measurement.

Everything here is a pure function of (event, theme, width): no randomness,
no caching, so measuring the same event twice gives identical results.
Text width is estimated from the theme's average glyph advance rather than
real font metrics, which keeps output independent of installed fonts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat_engine.conversation import ChartData, ConversationEvent

if TYPE_CHECKING:
    from chat_engine.config import RenderConfig
    from chat_engine.themes import Theme


# Horizontal room kept free for the bubble tail on either side of the column
TAIL_ALLOWANCE_PX = 10


@dataclass(frozen=True)
class LayoutResult:
    """Rendered footprint of one event.

    For text, ``lines`` are the wrapped bubble lines. For charts, ``lines`` are
    the wrapped title lines and ``row_count`` is the number of chart items.
    """

    width: float
    height: float
    line_count: int
    lines: tuple[str, ...] = ()
    row_count: int = 0


# ── Text helpers ──────────────────────────────────────────────────────────

def measure_text_width(text: str, char_width: float) -> float:
    """Estimated pixel width of a single line."""
    return len(text) * char_width


def _split_word(word: str, max_chars: int) -> list[str]:
    return [word[i:i + max_chars] for i in range(0, len(word), max_chars)]


def wrap_text(text: str, max_width: float, char_width: float) -> list[str]:
    """Greedy word wrap.

    Explicit newlines always break. Words wider than ``max_width`` on their
    own are split into chunks that fit. Always returns at least one line.
    """
    max_chars = max(1, int(max_width // char_width)) if char_width > 0 else 1
    lines: list[str] = []

    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            pieces = [word]
            if measure_text_width(word, char_width) > max_width:
                pieces = _split_word(word, max_chars)

            for piece in pieces:
                candidate = f"{current} {piece}" if current else piece
                if measure_text_width(candidate, char_width) <= max_width:
                    current = candidate
                else:
                    if current:
                        lines.append(current)
                    current = piece
        if current:
            lines.append(current)

    return lines or [""]


# ── Measurement ───────────────────────────────────────────────────────────

def available_content_width(config: "RenderConfig", theme: "Theme") -> float:
    """Widest bubble that fits beside the avatar columns and tails."""
    width = config.width_px - 2 * (config.avatars.gutter_px + TAIL_ALLOWANCE_PX)
    return max(0.0, min(float(width), float(theme.bubble.max_width_px)))


def measure_text(text: str, theme: "Theme", available_width: float) -> LayoutResult:
    bubble = theme.bubble
    char_width = bubble.char_width_px
    limit = min(available_width, bubble.max_width_px) - 2 * bubble.padding_x_px

    lines = wrap_text(text, limit, char_width)
    longest = max(measure_text_width(line, char_width) for line in lines)

    width = min(max(longest + 2 * bubble.padding_x_px, bubble.min_width_px), bubble.max_width_px)
    height = max(
        len(lines) * bubble.line_height_px + 2 * bubble.padding_y_px,
        bubble.line_height_px + 2 * bubble.padding_y_px,
    )
    return LayoutResult(width=width, height=height, line_count=len(lines), lines=tuple(lines))


def chart_title_lines(chart: ChartData, theme: "Theme", available_width: float) -> list[str]:
    """Wrapped title lines, empty when the chart has no title."""
    if not chart.title:
        return []
    style = theme.chart
    title_char_width = style.title_font_size_px * theme.bubble.char_width_ratio
    return wrap_text(chart.title, available_width - 2 * style.padding_x_px, title_char_width)


def title_block_height(line_count: int, theme: "Theme") -> float:
    if line_count == 0:
        return 0.0
    style = theme.chart
    return line_count * style.title_line_height + style.title_bottom_margin_px


def bar_row_height(theme: "Theme") -> float:
    """Label line, gap, and bar of one bar-chart row."""
    style = theme.chart
    return style.label_font_size_px + style.label_gap_px + style.bar.height_px


def bar_row_spacing(index: int, row_count: int, theme: "Theme") -> float:
    """Spacing after row ``index``; the last row has none."""
    return theme.chart.bar.spacing_px if index < row_count - 1 else 0.0


def donut_diameter(theme: "Theme", available_width: float) -> float:
    style = theme.chart
    return max(0.0, min(available_width - 2 * style.padding_x_px, style.donut.max_diameter_px))


def donut_legend_height(item_count: int, theme: "Theme") -> float:
    if item_count == 0:
        return 0.0
    donut = theme.chart.donut
    return donut.legend_gap_px + item_count * (donut.legend_font_size_px + donut.legend_item_spacing_px)


def measure_chart(chart: ChartData, theme: "Theme", available_width: float) -> LayoutResult:
    style = theme.chart
    title_lines = chart_title_lines(chart, theme, available_width)
    rows = len(chart.items)

    height = style.padding_y_px + title_block_height(len(title_lines), theme)

    if chart.type == "bar":
        height += sum(bar_row_height(theme) + bar_row_spacing(i, rows, theme) for i in range(rows))
    elif chart.type == "donut":
        height += donut_diameter(theme, available_width) + donut_legend_height(rows, theme)

    height += style.padding_y_px

    return LayoutResult(
        width=available_width,
        height=height,
        line_count=len(title_lines),
        lines=tuple(title_lines),
        row_count=rows,
    )


def measure(event: ConversationEvent, theme: "Theme", available_width: float) -> LayoutResult:
    """Measure one event. Placeholders must already be expanded."""
    if event.is_chart:
        return measure_chart(event.chart, theme, available_width)
    return measure_text(event.text, theme, available_width)
