"""SVG emitter — converts a scheduled conversation into one animated document.

Renders every timed event as a positioned group with:
  - Avatar (fades in at reveal)
  - Typing indicator (visible from typing start to reveal)
  - Bubble shell with tail, text lines or a chart block
  - Delivered/Read status chain (self messages only)
  - Reaction pill

Every animation uses an absolute ``begin`` offset from document start, so
the document is scheduled once and nothing runs at playback time. The
scroll track is driven by a single CSS keyframe rule.
"""

from __future__ import annotations

import logging
from html import escape
from typing import TYPE_CHECKING, Optional

from chat_engine.charts import fmt_begin, render_chart
from chat_engine.config import RenderConfig
from chat_engine.fonts import GENERIC_FONT, FontFace
from chat_engine.layout import TAIL_ALLOWANCE_PX
from chat_engine.scroll import ScrollPlan, keyframes_css

if TYPE_CHECKING:
    from chat_engine.presets import TimingPreset
    from chat_engine.themes import Theme
    from chat_engine.timeline import TimedEvent, TimelineResult

logger = logging.getLogger(__name__)


SCROLL_ANIMATION = "scroll"
SLIDE_IN_PX = 6

SHADOW_FILTER = (
    '<filter id="shadow" x="-20%" y="-20%" width="140%" height="140%">'
    '<feGaussianBlur in="SourceAlpha" stdDeviation="1"/>'
    '<feOffset dx="0" dy="1" result="offsetblur"/>'
    '<feComponentTransfer><feFuncA type="linear" slope="0.15"/></feComponentTransfer>'
    '<feMerge><feMergeNode/><feMergeNode in="SourceGraphic"/></feMerge>'
    "</filter>"
)


def _num(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _fade_in(begin: float, dur: float) -> str:
    return (
        f'<animate attributeName="opacity" from="0" to="1" begin="{fmt_begin(begin)}" '
        f'dur="{fmt_begin(dur)}" fill="freeze"/>'
    )


class SvgEmitter:
    """Renders a TimelineResult and ScrollPlan into SVG markup."""

    def __init__(
        self,
        config: RenderConfig,
        theme: "Theme",
        preset: "TimingPreset",
        font_face: Optional[FontFace] = None,
    ) -> None:
        self.config = config
        self.theme = theme
        self.preset = preset
        self.font_face = font_face or GENERIC_FONT
        self.avatars = config.avatars

    # ── Document ──────────────────────────────────────────────────────

    def emit(self, timeline: "TimelineResult", scroll: ScrollPlan) -> str:
        """Render the complete document."""
        body = []
        for timed in timeline.timed_events:
            group = self.render_event(timed)
            if group:
                body.append(group)

        w, h = self.config.width_px, self.config.height_px
        return "\n".join([
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}" '
            f'font-family="{escape(self.font_face.stack(self.theme.font_family))}" '
            f'font-size="{_num(self.theme.bubble.font_size_px)}" role="img">',
            self._defs(),
            f"<style>{self._css(scroll)}</style>",
            '<g class="track">',
            *body,
            "</g>",
            "</svg>",
        ])

    def _defs(self) -> str:
        parts = ["<defs>", SHADOW_FILTER]
        if self.avatars.enabled:
            size = self.avatars.size_px
            if self.avatars.shape == "circle":
                shape = f'<circle cx="{size / 2}" cy="{size / 2}" r="{size / 2}"/>'
            else:
                shape = f'<rect width="{size}" height="{size}" rx="4" ry="4"/>'
            parts.append(f'<clipPath id="avatar-clip">{shape}</clipPath>')
        parts.append("</defs>")
        return "".join(parts)

    def _css(self, scroll: ScrollPlan) -> str:
        cycle = self.preset.typing_dot_cycle_sec
        bg = self.theme.background
        rules = []
        if self.font_face.css:
            rules.append(self.font_face.css)
        rules += [
            "@keyframes typingDot{0%,60%,100%{opacity:.4}30%{opacity:1}}",
            f".dot{{animation:typingDot {_num(cycle)}s infinite}}",
            f".dot2{{animation-delay:{_num(cycle / 7)}s}}",
            f".dot3{{animation-delay:{_num(2 * cycle / 7)}s}}",
            ".bubble,.typing,.reaction{filter:url(#shadow)}",
            keyframes_css(scroll, SCROLL_ANIMATION),
        ]
        if scroll.scroll_distance > 0:
            rules.append(
                f".track{{animation:{SCROLL_ANIMATION} {scroll.scroll_duration_sec:.2f}s linear "
                f"{scroll.scroll_delay_sec:.2f}s forwards}}"
            )
        rules += [
            f"svg{{background:{bg.light}}}",
            f"@media(prefers-color-scheme:dark){{svg{{background:{bg.dark}}}}}",
        ]
        return "\n".join(rules)

    # ── Per-event groups ──────────────────────────────────────────────

    def bubble_x(self, timed: "TimedEvent", width: float) -> float:
        inset = self.avatars.gutter_px + TAIL_ALLOWANCE_PX
        if timed.is_self:
            return self.config.width_px - inset - width
        return inset

    def render_event(self, timed: "TimedEvent") -> str:
        """Render one event group, or an empty string if it cannot be drawn."""
        content = self._content(timed)
        if content is None:
            return ""

        parts = [f'<g class="event" data-index="{timed.index}" data-reveal="{timed.reveal_sec:.2f}">']
        if self.avatars.enabled:
            parts.append(self._avatar(timed))
        parts.append(self._typing(timed))
        parts.append(self._bubble(timed, content))
        parts.append("</g>")
        return "".join(parts)

    def _content(self, timed: "TimedEvent") -> Optional[str]:
        if timed.is_chart:
            return render_chart(timed, self.theme, self.preset)
        return self._text_lines(timed)

    def _avatar(self, timed: "TimedEvent") -> str:
        av = self.avatars
        size = av.size_px
        x = self.config.width_px - av.x_offset_px - size if timed.is_self else av.x_offset_px
        y = timed.y + av.y_offset_px
        image = av.image_for(timed.is_self)

        if image:
            inner = (
                f'<image href="{escape(image)}" width="{size}" height="{size}" '
                f'clip-path="url(#avatar-clip)"/>'
            )
        else:
            radius = size / 2 if av.shape == "circle" else 4
            inner = (
                f'<rect width="{size}" height="{size}" rx="{radius}" ry="{radius}" '
                f'fill="{self.theme.bubble_color(timed.is_self)}"/>'
                f'<text x="{size / 2}" y="{size / 2}" text-anchor="middle" dominant-baseline="central" '
                f'font-size="{size / 2.5:.1f}" fill="{self.theme.text_color(timed.is_self)}">'
                f"{escape(av.fallback_for(timed.is_self))}</text>"
            )

        return (
            f'<g class="avatar" transform="translate({_num(x)},{_num(y)})" opacity="0">'
            f"{_fade_in(timed.reveal_sec, self.preset.avatar_reveal_sec)}{inner}</g>"
        )

    def _typing(self, timed: "TimedEvent") -> str:
        typing = self.theme.typing
        x = self.bubble_x(timed, typing.width_px)
        fill = self.theme.bubble_color(timed.is_self)
        dot_fill = self.theme.text_color(timed.is_self)
        cx, cy, dx = typing.width_px / 2, typing.height_px / 2, typing.width_px / 4
        radius = min(self.theme.bubble.radius_px, typing.height_px / 2)

        dots = "".join(
            f'<circle class="dot dot{i + 1}" cx="{_num(cx + (i - 1) * dx)}" cy="{_num(cy)}" '
            f'r="{_num(typing.dot_radius_px)}" fill="{dot_fill}"/>'
            for i in range(3)
        )
        return (
            f'<g class="typing" transform="translate({_num(x)},{_num(timed.y)})" opacity="0">'
            f'<animate attributeName="opacity" values="0;1;1;0" keyTimes="0;0.1;0.9;1" '
            f'begin="{fmt_begin(timed.typing_start_ms / 1000)}" '
            f'dur="{fmt_begin(timed.typing_duration_ms / 1000)}" fill="freeze"/>'
            f'<rect width="{_num(typing.width_px)}" height="{_num(typing.height_px)}" '
            f'rx="{_num(radius)}" fill="{fill}"/>{dots}</g>'
        )

    def _tail(self, timed: "TimedEvent", width: float) -> str:
        fill = self.theme.bubble_color(timed.is_self)
        if timed.is_self:
            w = _num(width)
            d = f"M{w},10 C{_num(width + 4)},14 {_num(width + 7)},18 {_num(width + 6)},22 C{_num(width + 5)},18 {_num(width + 2)},14 {w},16 Z"
        else:
            d = "M0,10 C-4,14 -7,18 -6,22 C-5,18 -2,14 0,16 Z"
        return f'<path d="{d}" fill="{fill}"/>'

    def _bubble(self, timed: "TimedEvent", content: str) -> str:
        width, height = timed.layout.width, timed.layout.height
        x = self.bubble_x(timed, width)
        begin = fmt_begin(timed.reveal_sec)
        dur = fmt_begin(self.preset.bubble_reveal_sec)
        radius = min(self.theme.bubble.radius_px, height / 2)
        side = "self" if timed.is_self else "other"

        parts = [
            f'<g class="bubble {side}" transform="translate({_num(x)},{_num(timed.y)})" opacity="0">',
            f'<animate attributeName="opacity" from="0" to="1" begin="{begin}" dur="{dur}" fill="freeze"/>',
            f'<animateTransform attributeName="transform" type="translate" '
            f'from="{_num(x)} {_num(timed.y + SLIDE_IN_PX)}" to="{_num(x)} {_num(timed.y)}" '
            f'begin="{begin}" dur="{dur}" fill="freeze"/>',
            f'<rect width="{_num(width)}" height="{_num(height)}" rx="{_num(radius)}" '
            f'fill="{self.theme.bubble_color(timed.is_self)}"/>',
            self._tail(timed, width),
            content,
        ]
        if timed.is_self:
            parts.append(self._status(timed, width, height))
        if timed.reaction:
            parts.append(self._reaction(timed, width))
        parts.append("</g>")
        return "".join(parts)

    def _text_lines(self, timed: "TimedEvent") -> str:
        bubble = self.theme.bubble
        color = self.theme.text_color(timed.is_self)
        parts = []
        for i, line in enumerate(timed.layout.lines):
            y = bubble.padding_y_px + i * bubble.line_height_px + bubble.line_height_px / 2
            parts.append(
                f'<text x="{_num(bubble.padding_x_px)}" y="{_num(y)}" dominant-baseline="central" '
                f'fill="{color}">{escape(line)}</text>'
            )
        return "".join(parts)

    # ── Decorations ───────────────────────────────────────────────────

    def status_begins(self, timed: "TimedEvent") -> tuple[float, float]:
        """(delivered, read) begin offsets in seconds."""
        p = self.preset
        delivered = timed.reveal_sec + p.bubble_reveal_sec + p.status_delay_sec
        return delivered, delivered + p.status_read_delay_sec

    def reaction_begin(self, timed: "TimedEvent") -> float:
        p = self.preset
        begin = timed.reveal_sec + p.bubble_reveal_sec
        if timed.is_self:
            begin += p.status_chain_sec
        return begin + p.reaction_delay_sec

    def _status(self, timed: "TimedEvent", width: float, height: float) -> str:
        status = self.theme.status
        delivered, read = self.status_begins(timed)
        x = _num(width - self.theme.bubble.padding_x_px)
        y = _num(height + status.offset_y_px)
        attrs = f'x="{x}" y="{y}" text-anchor="end" font-size="{_num(status.font_size_px)}" fill="{status.color}" opacity="0"'
        return (
            f'<text class="status delivered" {attrs}>'
            f'<animate attributeName="opacity" values="0;1;1;0" keyTimes="0;0.15;0.85;1" '
            f'begin="{fmt_begin(delivered)}" dur="{fmt_begin(self.preset.status_read_delay_sec)}" fill="freeze"/>'
            f"{escape(status.delivered_text)}</text>"
            f'<text class="status read" {attrs}>'
            f"{_fade_in(read, self.preset.status_read_transition_sec)}"
            f"{escape(status.read_text)}</text>"
        )

    def _reaction(self, timed: "TimedEvent", width: float) -> str:
        style = self.theme.reaction
        pill_w, pill_h = style.pill_width, style.pill_height
        x = (-pill_w / 2 if timed.is_self else width - pill_w / 2) + style.offset_x_px
        y = style.offset_y_px
        return (
            f'<g class="reaction" transform="translate({_num(x)},{_num(y)})" opacity="0">'
            f"{_fade_in(self.reaction_begin(timed), self.preset.reaction_duration_sec)}"
            f'<rect width="{_num(pill_w)}" height="{_num(pill_h)}" rx="{_num(style.border_radius_px)}" '
            f'fill="{style.bg_color}" fill-opacity="{_num(style.bg_opacity)}"/>'
            f'<text x="{_num(pill_w / 2)}" y="{_num(pill_h / 2)}" text-anchor="middle" '
            f'dominant-baseline="central" font-size="{_num(style.font_size_px)}" '
            f'fill="{style.text_color}">{escape(timed.reaction)}</text></g>'
        )


# ── Dry-run output ────────────────────────────────────────────────────────

def render_schedule_table(timeline: "TimelineResult", max_rows: int = 40) -> str:
    """Plain-text dump of the timeline, one row per typing/message entry."""
    lines = []
    for entry in timeline.timeline.entries[:max_rows]:
        d = entry.to_dict()
        text = d["text"].replace("\n", " ")
        lines.append(
            f"  [{d['t_ms']:8.0f}ms] {d['type']:8s} #{d['index']:<3d} {d['sender']:5s} "
            f"{d['duration_ms']:6.0f}ms  {text[:48]}"
        )
    if len(timeline.timeline) > max_rows:
        lines.append(f"  ... and {len(timeline.timeline) - max_rows} more entries")

    lines.append(
        f"  content: {timeline.total_content_height:.0f}px / viewport {timeline.viewport_height:.0f}px, "
        f"scroll {timeline.scroll_distance:.0f}px"
    )
    lines.append(
        f"  typing: {timeline.total_typing_time_ms / 1000:.1f}s, "
        f"scroll: +{timeline.scroll_delay_sec:.1f}s for {timeline.scroll_duration_sec:.1f}s, "
        f"total: {timeline.total_duration_ms / 1000:.1f}s"
    )
    return "\n".join(lines)
