"""Chart blocks rendered inside chat bubbles.

Bar charts grow each bar from zero width; donut charts scale each wedge in
from its center. Rows and segments start one stagger step apart, beginning
a fixed delay after the bubble is revealed. Geometry mirrors the layout
module so the rendered block fills exactly the measured height.
"""

from __future__ import annotations

import logging
import math
from html import escape
from typing import TYPE_CHECKING, Optional

from chat_engine.colors import lighten
from chat_engine.layout import (
    bar_row_height,
    bar_row_spacing,
    donut_diameter,
    title_block_height,
)

if TYPE_CHECKING:
    from chat_engine.conversation import ChartData
    from chat_engine.presets import TimingPreset
    from chat_engine.themes import Theme
    from chat_engine.timeline import TimedEvent

logger = logging.getLogger(__name__)


def fmt_begin(seconds: float) -> str:
    """Absolute SMIL begin/dur value."""
    return f"{max(0.0, seconds):.2f}s"


def format_value(value: float, suffix: str = "") -> str:
    text = str(int(value)) if float(value).is_integer() else f"{value:.1f}"
    return f"{text}{suffix}"


def row_begin(timed: "TimedEvent", index: int, preset: "TimingPreset") -> float:
    """Start of the grow animation of row/segment ``index``, in seconds."""
    return timed.reveal_sec + preset.chart_animation_delay_sec + index * preset.chart_stagger_sec


def _title(timed: "TimedEvent", theme: "Theme") -> list[str]:
    style = theme.chart
    colors = style.colors_for(timed.is_self)
    parts = []
    for i, line in enumerate(timed.layout.lines):
        y = style.padding_y_px + style.title_font_size_px + i * style.title_line_height
        parts.append(
            f'<text x="{style.padding_x_px}" y="{y:.1f}" font-family="{escape(style.title_font_family)}" '
            f'font-size="{style.title_font_size_px}" font-weight="bold" fill="{colors.title_color}">'
            f"{escape(line)}</text>"
        )
    return parts


def render_bar_chart(timed: "TimedEvent", theme: "Theme", preset: "TimingPreset") -> str:
    chart: "ChartData" = timed.event.chart
    style = theme.chart
    colors = style.colors_for(timed.is_self)
    width = timed.layout.width
    track_w = max(0.0, width - 2 * style.padding_x_px)
    scale_max = chart.scale_max
    rows = len(chart.items)

    parts = _title(timed, theme)
    y = style.padding_y_px + title_block_height(timed.layout.line_count, theme)

    for i, item in enumerate(chart.items):
        begin = row_begin(timed, i, preset)
        label_y = y + style.label_font_size_px
        bar_y = label_y + style.label_gap_px
        fill_w = track_w * min(1.0, max(0.0, item.value) / scale_max)
        color = item.color or style.bar.default_color
        radius = min(style.bar.corner_radius_px, style.bar.height_px / 2)

        parts.append(
            f'<text x="{style.padding_x_px}" y="{label_y:.1f}" font-size="{style.label_font_size_px}" '
            f'fill="{colors.label_color}">{escape(item.label)}</text>'
        )
        parts.append(
            f'<text x="{width - style.padding_x_px:.1f}" y="{label_y:.1f}" text-anchor="end" '
            f'font-size="{style.value_font_size_px}" fill="{colors.value_color}" opacity="0">'
            f"{escape(format_value(item.value, chart.value_suffix))}"
            f'<animate attributeName="opacity" from="0" to="1" begin="{fmt_begin(begin + preset.bar_grow_sec)}" '
            f'dur="{fmt_begin(preset.value_fade_sec)}" fill="freeze"/></text>'
        )
        parts.append(
            f'<rect x="{style.padding_x_px}" y="{bar_y:.1f}" width="{track_w:.1f}" height="{style.bar.height_px}" '
            f'rx="{radius}" fill="{style.bar.track_color}"/>'
        )
        parts.append(
            f'<rect class="bar" x="{style.padding_x_px}" y="{bar_y:.1f}" width="0" height="{style.bar.height_px}" '
            f'rx="{radius}" fill="{color}">'
            f'<animate attributeName="width" from="0" to="{fill_w:.1f}" begin="{fmt_begin(begin)}" '
            f'dur="{fmt_begin(preset.bar_grow_sec)}" fill="freeze" calcMode="spline" '
            f'keyTimes="0;1" keySplines="0.25 0.1 0.25 1"/></rect>'
        )
        y += bar_row_height(theme) + bar_row_spacing(i, rows, theme)

    return "".join(parts)


def wedge_path(radius: float, inner: float, start_deg: float, sweep_deg: float) -> str:
    """Ring segment around the origin, starting at 12 o'clock and running clockwise."""
    # A single arc cannot draw a full circle; split it in two
    if sweep_deg >= 359.99:
        half = wedge_path(radius, inner, start_deg, 180.0)
        return half + " " + wedge_path(radius, inner, start_deg + 180.0, 180.0)

    a0 = math.radians(start_deg - 90)
    a1 = math.radians(start_deg + sweep_deg - 90)
    large = 1 if sweep_deg > 180 else 0

    x1, y1 = radius * math.cos(a0), radius * math.sin(a0)
    x2, y2 = radius * math.cos(a1), radius * math.sin(a1)
    x3, y3 = inner * math.cos(a1), inner * math.sin(a1)
    x4, y4 = inner * math.cos(a0), inner * math.sin(a0)

    return (
        f"M {x1:.2f} {y1:.2f} A {radius:.2f} {radius:.2f} 0 {large} 1 {x2:.2f} {y2:.2f} "
        f"L {x3:.2f} {y3:.2f} A {inner:.2f} {inner:.2f} 0 {large} 0 {x4:.2f} {y4:.2f} Z"
    )


def segment_color(index: int, color: Optional[str], theme: "Theme") -> str:
    if color:
        return color
    return lighten(theme.chart.bar.default_color, min(0.7, 0.18 * index))


def render_donut_chart(timed: "TimedEvent", theme: "Theme", preset: "TimingPreset") -> str:
    chart: "ChartData" = timed.event.chart
    style = theme.chart
    donut = style.donut
    colors = style.colors_for(timed.is_self)
    width = timed.layout.width

    diameter = donut_diameter(theme, width)
    radius = diameter / 2
    inner = max(0.0, radius - donut.stroke_width_px)
    top = style.padding_y_px + title_block_height(timed.layout.line_count, theme)
    cx, cy = width / 2, top + radius
    total = chart.total

    parts = _title(timed, theme)
    parts.append(f'<g transform="translate({cx:.1f},{cy:.1f})">')
    parts.append(
        f'<circle r="{(radius + inner) / 2:.2f}" fill="none" stroke="{style.bar.track_color}" '
        f'stroke-width="{radius - inner:.2f}"/>'
    )

    angle = 0.0
    for i, item in enumerate(chart.items):
        if total <= 0 or item.value <= 0:
            continue
        sweep = item.value / total * 360
        begin = fmt_begin(row_begin(timed, i, preset))
        dur = fmt_begin(preset.donut_segment_sec)
        parts.append(
            f'<path class="segment" d="{wedge_path(radius, inner, angle, sweep)}" '
            f'fill="{segment_color(i, item.color, theme)}" opacity="0">'
            f'<animate attributeName="opacity" from="0" to="1" begin="{begin}" dur="{dur}" fill="freeze"/>'
            f'<animateTransform attributeName="transform" type="scale" from="0.7" to="1" '
            f'begin="{begin}" dur="{dur}" fill="freeze"/></path>'
        )
        angle += sweep

    if chart.center_text:
        parts.append(
            f'<text text-anchor="middle" dominant-baseline="central" font-size="{donut.center_font_size_px}" '
            f'font-weight="bold" fill="{colors.center_text_color}">{escape(chart.center_text)}</text>'
        )
    parts.append("</g>")

    legend_y = top + diameter + donut.legend_gap_px
    marker = donut.legend_marker_size_px
    for i, item in enumerate(chart.items):
        share = round(item.value / total * 100) if total > 0 else 0
        baseline = legend_y + donut.legend_font_size_px
        begin = fmt_begin(row_begin(timed, i, preset))
        parts.append(
            f'<g opacity="0"><animate attributeName="opacity" from="0" to="1" begin="{begin}" '
            f'dur="{fmt_begin(preset.value_fade_sec)}" fill="freeze"/>'
            f'<rect x="{style.padding_x_px}" y="{baseline - marker:.1f}" width="{marker}" height="{marker}" '
            f'rx="2" fill="{segment_color(i, item.color, theme)}"/>'
            f'<text x="{style.padding_x_px + marker + 6}" y="{baseline:.1f}" '
            f'font-size="{donut.legend_font_size_px}" fill="{colors.legend_text_color}">'
            f"{escape(item.label)} ({share}%)</text></g>"
        )
        legend_y += donut.legend_font_size_px + donut.legend_item_spacing_px

    return "".join(parts)


CHART_RENDERERS = {
    "bar": render_bar_chart,
    "donut": render_donut_chart,
}


def render_chart(timed: "TimedEvent", theme: "Theme", preset: "TimingPreset") -> Optional[str]:
    """Chart block markup, or None when the chart type has no renderer."""
    renderer = CHART_RENDERERS.get(timed.event.chart.type)
    if renderer is None:
        logger.warning(
            "message %d: unsupported chart type %r, skipping it",
            timed.index,
            timed.event.chart.type,
        )
        return None
    return renderer(timed, theme, preset)
