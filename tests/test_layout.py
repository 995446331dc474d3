"""Tests for bubble and chart measurement."""

import pytest

from chat_engine.config import AvatarConfig, RenderConfig
from chat_engine.conversation import ChartData, ChartItem, ContentKind, ConversationEvent, Sender
from chat_engine.layout import (
    TAIL_ALLOWANCE_PX,
    available_content_width,
    bar_row_height,
    bar_row_spacing,
    measure,
    measure_chart,
    measure_text,
    title_block_height,
    wrap_text,
)
from chat_engine.themes import load_theme


def _chart_event(chart_type="bar", title="Skills", count=5) -> ConversationEvent:
    items = tuple(ChartItem(f"Item {i}", 10 * (i + 1)) for i in range(count))
    return ConversationEvent(
        Sender.SELF,
        kind=ContentKind.CHART,
        chart=ChartData(type=chart_type, items=items, title=title),
    )


class TestWrapText:
    def test_short_text_single_line(self):
        assert wrap_text("Hi there", 100, 10) == ["Hi there"]

    def test_wraps_on_word_boundary(self):
        assert wrap_text("aaaa bbbb cccc", 90, 10) == ["aaaa bbbb", "cccc"]

    def test_long_word_is_split(self):
        lines = wrap_text("x" * 50, 100, 10)
        assert lines == ["x" * 10] * 5

    def test_explicit_newline(self):
        assert wrap_text("one\ntwo", 500, 10) == ["one", "two"]

    def test_empty_text_has_one_line(self):
        assert wrap_text("", 100, 10) == [""]
        assert wrap_text("   ", 100, 10) == [""]


class TestAvailableWidth:
    def test_default_config(self):
        theme = load_theme("ios")
        config = RenderConfig()
        gutter = config.avatars.size_px + 2 * config.avatars.x_offset_px
        expected = config.width_px - 2 * (gutter + TAIL_ALLOWANCE_PX)
        assert available_content_width(config, theme) == expected

    def test_without_avatars_capped_by_max_width(self):
        theme = load_theme("ios")
        config = RenderConfig(width_px=600, avatars=AvatarConfig(enabled=False))
        assert available_content_width(config, theme) == theme.bubble.max_width_px

    def test_never_negative(self):
        theme = load_theme("ios")
        config = RenderConfig(width_px=50)
        assert available_content_width(config, theme) == 0.0


class TestMeasureText:
    def test_short_text(self):
        theme = load_theme("ios")
        result = measure_text("Hi", theme, 212)
        assert result.line_count == 1
        assert result.lines == ("Hi",)
        assert result.width == pytest.approx(2 * 14 * 0.6 + 2 * 12)
        assert result.height == 20 + 2 * 8

    def test_empty_text_gets_min_bubble(self):
        theme = load_theme("ios")
        result = measure_text("", theme, 212)
        assert result.line_count == 1
        assert result.width == theme.bubble.min_width_px
        assert result.height == theme.bubble.line_height_px + 2 * theme.bubble.padding_y_px

    def test_long_text_wraps_within_bounds(self):
        theme = load_theme("ios")
        text = "This message is long enough that it has to wrap over several lines of the bubble."
        result = measure_text(text, theme, 212)
        assert result.line_count > 1
        assert result.width <= 212
        assert result.height == result.line_count * 20 + 16
        char_width = theme.bubble.char_width_px
        for line in result.lines:
            assert len(line) * char_width <= 212 - 2 * theme.bubble.padding_x_px

    def test_idempotent(self):
        theme = load_theme("ios")
        event = ConversationEvent(Sender.OTHER, text="Hello there, how are you today?")
        assert measure(event, theme, 212) == measure(event, theme, 212)


class TestMeasureChart:
    def test_bar_chart_height_formula(self):
        theme = load_theme("ios")
        style = theme.chart
        event = _chart_event("bar", "Skills", 5)
        result = measure(event, theme, 212)

        rows = sum(bar_row_height(theme) + bar_row_spacing(i, 5, theme) for i in range(5))
        expected = style.padding_y_px + title_block_height(1, theme) + rows + style.padding_y_px
        assert result.height == pytest.approx(expected)
        assert result.height == pytest.approx(14 + (15 * 1.3 + 10) + 5 * (13 + 4 + 18) + 4 * 10 + 14)
        assert result.row_count == 5
        assert result.line_count == 1
        assert result.width == 212

    def test_bar_chart_without_title(self):
        theme = load_theme("ios")
        result = measure(_chart_event("bar", "", 2), theme, 212)
        assert result.line_count == 0
        assert result.height == pytest.approx(14 + 2 * (13 + 4 + 18) + 10 + 14)

    def test_donut_chart_height(self):
        theme = load_theme("ios")
        result = measure(_chart_event("donut", "", 3), theme, 212)
        diameter = min(212 - 2 * 16, 200)
        legend = 30 + 3 * (12 + 8)
        assert result.height == pytest.approx(14 + diameter + legend + 14)

    def test_long_title_wraps(self):
        theme = load_theme("ios")
        chart = ChartData(type="bar", items=(ChartItem("a", 1),), title="A rather long chart title that wraps")
        result = measure_chart(chart, theme, 212)
        assert result.line_count == 2
        assert result.height == pytest.approx(14 + 2 * 15 * 1.3 + 10 + (13 + 4 + 18) + 14)

    def test_unsupported_type_has_no_rows_block(self):
        theme = load_theme("ios")
        result = measure(_chart_event("scatter", "", 4), theme, 212)
        assert result.height == pytest.approx(2 * 14)
