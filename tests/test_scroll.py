"""Tests for scroll track synthesis."""

import random

import pytest

from chat_engine.config import RenderConfig
from chat_engine.conversation import ChartData, ChartItem, ContentKind, ConversationEvent, Sender
from chat_engine.presets import get_preset
from chat_engine.scroll import (
    IDENTITY_KEYFRAMES,
    Keyframe,
    ScrollPlan,
    build_keyframes,
    chart_speed_factor,
    keyframes_css,
    synthesize,
)
from chat_engine.themes import load_theme
from chat_engine.timeline import schedule


def _chart(title="Split") -> ConversationEvent:
    return ConversationEvent(
        Sender.SELF,
        kind=ContentKind.CHART,
        chart=ChartData(type="bar", title=title, items=(ChartItem("a", 3), ChartItem("b", 1))),
    )


def _long_conversation(count=12, charts=0) -> list[ConversationEvent]:
    events = []
    for i in range(count):
        sender = Sender.SELF if i % 2 else Sender.OTHER
        events.append(ConversationEvent(sender, text=f"Message number {i} with a few words"))
    events.extend(_chart() for _ in range(charts))
    return events


def _scheduled(events, height_px=300):
    return schedule(events, load_theme("ios"), config=RenderConfig(height_px=height_px), rng=random.Random(3))


class TestNoScroll:
    def test_fits_in_viewport(self):
        events = [ConversationEvent(Sender.OTHER, text="Hi"), ConversationEvent(Sender.SELF, text="Hello")]
        timeline = _scheduled(events, height_px=450)
        plan = synthesize(timeline)
        assert plan.scroll_distance == 0
        assert plan.is_static
        assert plan.keyframes == IDENTITY_KEYFRAMES
        assert plan.scroll_duration_sec == 0

    def test_empty_conversation(self):
        plan = synthesize(_scheduled([]))
        assert plan.is_static
        assert plan.keyframes == IDENTITY_KEYFRAMES


class TestScrollPlan:
    def test_distance_and_final_offset(self):
        timeline = _scheduled(_long_conversation())
        plan = synthesize(timeline)
        assert plan.scroll_distance == pytest.approx(timeline.total_content_height - 300)
        assert plan.final_offset == pytest.approx(plan.scroll_distance)
        assert plan.keyframes[-1] == Keyframe(100.0, plan.final_offset)

    def test_keyframes_never_overshoot(self):
        plan = synthesize(_scheduled(_long_conversation(20)))
        for frame in plan.keyframes:
            assert 0 <= frame.offset <= plan.final_offset

    def test_keyframes_ordered(self):
        plan = synthesize(_scheduled(_long_conversation(20)))
        percents = [k.percent for k in plan.keyframes]
        assert percents[0] == 0.0
        assert percents[-1] == 100.0
        assert percents == sorted(percents)
        assert len(set(percents)) == len(percents)

    def test_delay_follows_typing_time(self):
        preset = get_preset("standard")
        timeline = _scheduled(_long_conversation())
        plan = synthesize(timeline, preset=preset)
        assert plan.scroll_delay_sec == pytest.approx(
            timeline.total_typing_time_ms / 1000 + preset.scroll_pre_buffer_sec
        )

    def test_duration_at_least_minimum(self):
        preset = get_preset("standard")
        timeline = _scheduled(_long_conversation(6), height_px=280)
        plan = synthesize(timeline, preset=preset)
        assert plan.scroll_duration_sec >= preset.min_scroll_duration_sec
        assert plan.scroll_duration_sec == pytest.approx(
            max(preset.min_scroll_duration_sec, plan.scroll_distance / plan.pixels_per_sec)
        )

    def test_viewport_override(self):
        timeline = _scheduled(_long_conversation(), height_px=300)
        plan = synthesize(timeline, viewport_height=200)
        assert plan.scroll_distance == pytest.approx(timeline.total_content_height - 200)

    def test_with_scroll_extends_duration(self):
        timeline = _scheduled(_long_conversation())
        plan = synthesize(timeline)
        merged = timeline.with_scroll(plan)
        assert merged.scroll_delay_sec == plan.scroll_delay_sec
        assert merged.total_duration_ms >= (plan.scroll_delay_sec + plan.scroll_duration_sec) * 1000
        assert merged.total_duration_ms >= timeline.total_duration_ms


class TestChartSpeed:
    def test_no_charts(self):
        preset = get_preset("standard")
        assert chart_speed_factor(_scheduled(_long_conversation()), preset) == 1.0

    def test_charts_speed_up(self):
        preset = get_preset("standard")
        factor = chart_speed_factor(_scheduled(_long_conversation(4, charts=1)), preset)
        assert factor >= 1.0 + preset.chart_speed_step

    def test_factor_capped(self):
        preset = get_preset("standard")
        factor = chart_speed_factor(_scheduled(_long_conversation(2, charts=12)), preset)
        assert factor == preset.max_speed_factor


class TestKeyframes:
    def test_intermediates_added_for_wide_gaps(self):
        preset = get_preset("standard")
        timeline = _scheduled(_long_conversation(12))
        frames = build_keyframes(timeline, timeline.total_duration_ms / 1000, 10_000.0, preset)
        assert len(frames) > len(timeline.timed_events) + 2
        offsets = [k.offset for k in frames]
        assert offsets == sorted(offsets)

        first, second = timeline.timed_events[0], timeline.timed_events[1]
        travel = second.y - first.y
        assert any(k.offset == pytest.approx(0.4 * travel) for k in frames)
        assert any(k.offset == pytest.approx(0.7 * travel) for k in frames)

    def test_offsets_relative_to_first_message(self):
        preset = get_preset("standard")
        timeline = _scheduled(_long_conversation(12))
        first = timeline.timed_events[0]
        assert first.y == preset.top_margin_px > 0
        frames = build_keyframes(timeline, timeline.total_duration_ms / 1000, 10_000.0, preset)
        first_reveal = round(first.reveal_start_ms / (timeline.total_duration_ms) * 100, 2)
        assert Keyframe(first_reveal, 0.0) in frames

    def test_late_reveals_collapse_to_end(self):
        preset = get_preset("standard")
        timeline = _scheduled(_long_conversation(3), height_px=60)
        frames = build_keyframes(timeline, 1.0, 1000.0, preset)
        assert frames[0] == Keyframe(0.0, 0.0)
        assert [k.percent for k in frames] == [0.0, 100.0]
        assert frames[-1].offset == 1000.0

    def test_css_rule(self):
        plan = ScrollPlan(
            scroll_distance=120,
            scroll_delay_sec=4,
            scroll_duration_sec=12,
            pixels_per_sec=10,
            final_offset=120,
            keyframes=(Keyframe(0.0, 0.0), Keyframe(50.5, 60.0), Keyframe(100.0, 120.0)),
        )
        css = keyframes_css(plan, "scroll")
        assert css.startswith("@keyframes scroll {")
        assert "0% { transform: translateY(0px); }" in css
        assert "50.5% { transform: translateY(-60px); }" in css
        assert "100% { transform: translateY(-120px); }" in css

    def test_identity_css(self):
        plan = synthesize(_scheduled([]))
        css = keyframes_css(plan)
        assert "translateY(-" not in css
