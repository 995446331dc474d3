"""Conversation scheduling and the timeline event model.

The scheduler walks the conversation once, in order, and turns every
message into a positioned, timed event:

    typing_start ─► typing indicator ─► reveal ─► reading ─► next sender delay

All timing is in milliseconds from timeline zero (the moment the document
starts playing). Nothing here is relative to another element, so the
emitter can write every begin offset as an absolute value.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from chat_engine.config import RenderConfig
from chat_engine.conversation import ChartData, ConversationEvent, expand_placeholders
from chat_engine.layout import LayoutResult, available_content_width, measure
from chat_engine.presets import TimingPreset, get_preset

if TYPE_CHECKING:
    from chat_engine.scroll import ScrollPlan
    from chat_engine.themes import Theme


class EntryType(Enum):
    """Types of timeline entries."""

    TYPING = "typing"
    MESSAGE = "message"


@dataclass(frozen=True)
class TimelineEntry:
    """A single entry in the flattened timeline.

    Attributes:
        t_ms: Absolute start time in milliseconds.
        entry_type: Typing phase or revealed message.
        index: Index of the conversation event this entry belongs to.
        duration_ms: Typing duration, or reading time for messages.
        sender: Sender value ("self" / "other").
        text: Resolved message text (empty for charts).
    """

    t_ms: float
    entry_type: EntryType
    index: int
    duration_ms: float = 0.0
    sender: str = ""
    text: str = ""

    def to_dict(self) -> dict:
        """Serialize to dict for debugging/export."""
        return {
            "t_ms": self.t_ms,
            "type": self.entry_type.value,
            "index": self.index,
            "duration_ms": self.duration_ms,
            "sender": self.sender,
            "text": self.text,
        }


class Timeline:
    """Ordered sequence of timeline entries: typing(0), message(0), typing(1), ..."""

    def __init__(self) -> None:
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        self._entries.append(entry)

    def add_typing(self, timed: "TimedEvent") -> float:
        """Add the typing phase of an event and return its end time."""
        self.add(
            TimelineEntry(
                t_ms=timed.typing_start_ms,
                entry_type=EntryType.TYPING,
                index=timed.index,
                duration_ms=timed.typing_duration_ms,
                sender=timed.event.sender.value,
            )
        )
        return timed.typing_end_ms

    def add_message(self, timed: "TimedEvent") -> float:
        """Add the reveal of an event and return the end of its reading time."""
        self.add(
            TimelineEntry(
                t_ms=timed.reveal_start_ms,
                entry_type=EntryType.MESSAGE,
                index=timed.index,
                duration_ms=timed.reading_time_ms,
                sender=timed.event.sender.value,
                text=timed.text,
            )
        )
        return timed.reveal_start_ms + timed.reading_time_ms

    @property
    def entries(self) -> list[TimelineEntry]:
        """Get all entries in order."""
        return list(self._entries)

    @property
    def duration_ms(self) -> float:
        if not self._entries:
            return 0.0
        return max(e.t_ms + e.duration_ms for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


@dataclass(frozen=True)
class TimedEvent:
    """One conversation event with its position and absolute timing."""

    index: int
    event: ConversationEvent  # placeholders already expanded
    layout: LayoutResult
    y: float
    typing_start_ms: float
    typing_duration_ms: float
    reveal_start_ms: float
    reading_time_ms: float
    sender_delay_ms: float
    rendered_height: float
    reaction: Optional[str] = None

    @property
    def text(self) -> str:
        return self.event.text

    @property
    def is_self(self) -> bool:
        return self.event.is_self

    @property
    def is_chart(self) -> bool:
        return self.event.is_chart

    @property
    def typing_end_ms(self) -> float:
        return self.typing_start_ms + self.typing_duration_ms

    @property
    def reveal_sec(self) -> float:
        return self.reveal_start_ms / 1000


@dataclass(frozen=True)
class TimelineResult:
    """Aggregate output of one scheduling pass."""

    timed_events: tuple[TimedEvent, ...]
    timeline: Timeline
    total_content_height: float
    total_typing_time_ms: float
    viewport_height: float
    scroll_distance: float
    total_duration_ms: float
    scroll_delay_sec: float = 0.0
    scroll_duration_sec: float = 0.0

    def with_scroll(self, plan: "ScrollPlan") -> "TimelineResult":
        """Return a copy carrying the scroll timing of ``plan``."""
        scroll_end_ms = (plan.scroll_delay_sec + plan.scroll_duration_sec) * 1000
        return replace(
            self,
            scroll_distance=plan.scroll_distance,
            scroll_delay_sec=plan.scroll_delay_sec,
            scroll_duration_sec=plan.scroll_duration_sec,
            total_duration_ms=max(self.total_duration_ms, scroll_end_ms),
        )

    def __len__(self) -> int:
        return len(self.timed_events)


# ── Timing models ─────────────────────────────────────────────────────────

def chart_typing_length(chart: ChartData, preset: TimingPreset) -> int:
    """Character-equivalent length of a chart, used for its typing time."""
    return len(chart.items) * preset.chart_item_chars + len(chart.title)


def typing_duration(event: ConversationEvent, preset: TimingPreset) -> float:
    """Clamp(length x per-char time) into the preset's typing window."""
    if event.is_chart:
        length = chart_typing_length(event.chart, preset)
    else:
        length = len(event.text)
    raw = length * preset.typing_char_ms
    return min(max(raw, preset.typing_min_ms), preset.typing_max_ms)


def chart_complexity(layout: LayoutResult, preset: TimingPreset) -> float:
    """Rendered chart height relative to the preset's reference height, at least 1."""
    return max(1.0, layout.height / preset.chart_reference_height_px)


def reading_time(
    event: ConversationEvent,
    layout: LayoutResult,
    preset: TimingPreset,
    rng: random.Random,
) -> float:
    """Time a viewer needs for this event before the next one may start.

    The random jitter is drawn here and nowhere else.
    """
    if event.is_chart:
        words = len(event.chart.title.split()) + 2 * len(event.chart.items)
        base = words * preset.ms_per_word * preset.chart_reading_multiplier * chart_complexity(layout, preset)
    else:
        words = len(event.text.split())
        base = words * preset.ms_per_word * preset.text_reading_multiplier

    return max(preset.min_reading_ms, base) + rng.uniform(0, preset.reading_jitter_ms)


def sender_delay(event: ConversationEvent, previous: Optional[ConversationEvent], preset: TimingPreset) -> float:
    if previous is None or previous.sender is not event.sender:
        return preset.turn_taking_delay_ms
    return preset.same_sender_delay_ms


def resolve_event(event: ConversationEvent, placeholders: Optional[Mapping[str, Any]]) -> ConversationEvent:
    """Expand placeholders in text and chart captions, returning a new event."""
    if not placeholders:
        return event
    if event.is_chart:
        chart = replace(
            event.chart,
            title=expand_placeholders(event.chart.title, placeholders),
            center_text=expand_placeholders(event.chart.center_text, placeholders),
        )
        return replace(event, chart=chart)
    return replace(event, text=expand_placeholders(event.text, placeholders))


# ── Scheduler ─────────────────────────────────────────────────────────────

def schedule(
    events: Iterable[ConversationEvent],
    theme: "Theme",
    placeholders: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[RenderConfig] = None,
    preset: Optional[TimingPreset] = None,
    rng: Optional[random.Random] = None,
) -> TimelineResult:
    """Schedule a conversation in a single forward pass.

    Args:
        events: Conversation events in display order.
        theme: Resolved theme (bubble metrics feed layout).
        placeholders: Substitution map for {key} tokens.
        config: Viewport and avatar settings; defaults to RenderConfig().
        preset: Timing preset; defaults to the one named by config.
        rng: Random source for reading jitter; defaults to config.rng().
    """
    config = config or RenderConfig()
    preset = preset or get_preset(config.preset)
    rng = rng or config.rng()
    width = available_content_width(config, theme)

    timeline = Timeline()
    timed_events: list[TimedEvent] = []

    cursor_y = float(preset.top_margin_px)
    total_typing = 0.0
    previous: Optional[TimedEvent] = None

    for index, raw in enumerate(events):
        event = resolve_event(raw, placeholders)
        layout = measure(event, theme, width)

        delay = sender_delay(event, previous.event if previous else None, preset)
        if previous is None:
            typing_start = delay
        else:
            typing_start = previous.reveal_start_ms + previous.reading_time_ms + delay

        typing = typing_duration(event, preset)
        outer = preset.chart_outer_padding_px if event.is_chart else 0

        timed = TimedEvent(
            index=index,
            event=event,
            layout=layout,
            y=cursor_y,
            typing_start_ms=typing_start,
            typing_duration_ms=typing,
            reveal_start_ms=typing_start + typing,
            reading_time_ms=reading_time(event, layout, preset, rng),
            sender_delay_ms=delay,
            rendered_height=layout.height + outer,
            reaction=event.reaction,
        )
        timeline.add_typing(timed)
        timeline.add_message(timed)
        timed_events.append(timed)

        total_typing += typing
        cursor_y += timed.rendered_height + preset.vertical_spacing_px
        previous = timed

    total_height = cursor_y + preset.bottom_margin_px
    viewport = float(config.height_px)

    if previous is not None:
        total_duration = previous.reveal_start_ms + previous.reading_time_ms + preset.end_buffer_ms
    else:
        total_duration = preset.end_buffer_ms

    return TimelineResult(
        timed_events=tuple(timed_events),
        timeline=timeline,
        total_content_height=total_height,
        total_typing_time_ms=total_typing,
        viewport_height=viewport,
        scroll_distance=max(0.0, total_height - viewport),
        total_duration_ms=total_duration,
    )
