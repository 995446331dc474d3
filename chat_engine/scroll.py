"""Scroll track synthesis.

Derives how far, how fast, and when the conversation track scrolls, and
the keyframe curve that drives it. The curve is clamped so it never
passes the final resting offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from chat_engine.presets import TimingPreset, get_preset
from chat_engine.timeline import TimelineResult, chart_complexity

if TYPE_CHECKING:
    from chat_engine.themes import Theme


# Ease-out intermediates between two keyframes: (fraction of gap, fraction of travel)
EASE_STEPS = ((1 / 3, 0.4), (2 / 3, 0.7))


@dataclass(frozen=True)
class Keyframe:
    """Scroll track position at a point of the scroll animation.

    ``offset`` is the upward scroll in pixels (>= 0); it renders as a
    negative translateY.
    """

    percent: float
    offset: float


@dataclass(frozen=True)
class ScrollPlan:
    scroll_distance: float
    scroll_delay_sec: float
    scroll_duration_sec: float
    pixels_per_sec: float
    final_offset: float
    keyframes: tuple[Keyframe, ...]

    @property
    def is_static(self) -> bool:
        return self.scroll_distance <= 0


IDENTITY_KEYFRAMES = (Keyframe(0.0, 0.0), Keyframe(100.0, 0.0))


def chart_speed_factor(timeline: TimelineResult, preset: TimingPreset) -> float:
    """Scroll speed multiplier for chart-heavy conversations (1.0 without charts)."""
    charts = [t for t in timeline.timed_events if t.is_chart]
    if not charts:
        return 1.0
    avg_complexity = sum(chart_complexity(t.layout, preset) for t in charts) / len(charts)
    factor = (
        1.0
        + len(charts) * preset.chart_speed_step
        + (avg_complexity - 1.0) * preset.complexity_speed_step
    )
    return min(factor, preset.max_speed_factor)


def _collapse(frames: list[Keyframe]) -> list[Keyframe]:
    """Sort by percent; for equal percents keep the later value."""
    by_percent: dict[float, Keyframe] = {}
    for frame in frames:
        by_percent[frame.percent] = frame
    return [by_percent[p] for p in sorted(by_percent)]


def build_keyframes(
    timeline: TimelineResult,
    duration_sec: float,
    final_offset: float,
    preset: TimingPreset,
) -> tuple[Keyframe, ...]:
    """Offsets are measured from the first message, not from the top of the track."""
    window_ms = duration_sec * 1000
    events = timeline.timed_events
    first_y = events[0].y if events else 0.0

    steps = []
    for timed in events:
        percent = min(100.0, round(timed.reveal_start_ms / window_ms * 100, 2))
        offset = min(max(0.0, timed.y - first_y), final_offset)
        steps.append(Keyframe(percent, offset))

    frames = [Keyframe(0.0, 0.0)]
    for i, step in enumerate(steps):
        frames.append(step)
        if i + 1 >= len(steps):
            break
        nxt = steps[i + 1]
        gap = nxt.percent - step.percent
        if gap > preset.keyframe_min_gap_pct and nxt.offset != step.offset:
            travel = nxt.offset - step.offset
            for frac, weight in EASE_STEPS:
                frames.append(Keyframe(round(step.percent + gap * frac, 2), step.offset + travel * weight))

    frames.append(Keyframe(100.0, final_offset))

    clamped = [Keyframe(f.percent, min(f.offset, final_offset)) for f in frames]
    return tuple(_collapse(clamped))


def synthesize(
    timeline: TimelineResult,
    viewport_height: Optional[float] = None,
    theme: Optional["Theme"] = None,
    *,
    preset: Optional[TimingPreset] = None,
) -> ScrollPlan:
    """Derive the scroll plan for a scheduled conversation.

    ``theme`` is accepted for symmetry with the other stages; scroll motion
    depends only on geometry and timing.
    """
    preset = preset or get_preset("standard")
    viewport = timeline.viewport_height if viewport_height is None else float(viewport_height)
    distance = max(0.0, timeline.total_content_height - viewport)

    if distance == 0:
        return ScrollPlan(
            scroll_distance=0.0,
            scroll_delay_sec=0.0,
            scroll_duration_sec=0.0,
            pixels_per_sec=0.0,
            final_offset=0.0,
            keyframes=IDENTITY_KEYFRAMES,
        )

    delay = timeline.total_typing_time_ms / 1000 + preset.scroll_pre_buffer_sec
    speed = preset.scroll_px_per_sec * chart_speed_factor(timeline, preset)
    duration = max(preset.min_scroll_duration_sec, distance / speed)

    resting_margin = viewport if preset.resting_margin_px is None else preset.resting_margin_px
    final_offset = min(distance, max(0.0, timeline.total_content_height - resting_margin))

    return ScrollPlan(
        scroll_distance=distance,
        scroll_delay_sec=delay,
        scroll_duration_sec=duration,
        pixels_per_sec=speed,
        final_offset=final_offset,
        keyframes=build_keyframes(timeline, duration, final_offset, preset),
    )


def keyframes_css(plan: ScrollPlan, name: str = "scroll") -> str:
    """Render the plan as a CSS @keyframes rule."""
    body = " ".join(
        f"{_fmt(k.percent)}% {{ transform: translateY({_fmt(-k.offset)}px); }}"
        for k in plan.keyframes
    )
    return f"@keyframes {name} {{ {body} }}"


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text
