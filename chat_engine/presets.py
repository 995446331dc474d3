"""Timing preset profiles.

Presets control the pacing of the conversation animation:
  - brisk:     short typing bursts, quick turns, fast scroll
  - standard:  natural chat rhythm
  - relaxed:   long reading pauses and a slow, gentle scroll

Every constant here is tunable; only the relationships between them
(typing min <= max, same-sender delay <= turn-taking delay) are load-bearing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from chat_engine.errors import ConfigurationError


class PresetError(ConfigurationError, ValueError):
    """Raised when an unknown preset is requested."""

    pass


@dataclass(frozen=True)
class TimingPreset:
    """Timing preset configuration."""

    name: str

    # Typing model (milliseconds)
    typing_char_ms: float          # Typing time per character
    typing_min_ms: float
    typing_max_ms: float
    chart_item_chars: int          # Character-equivalent of one chart row

    # Reading model (milliseconds)
    min_reading_ms: float
    ms_per_word: float
    reading_jitter_ms: float       # Upper bound of the random reading offset
    text_reading_multiplier: float
    chart_reading_multiplier: float
    chart_reference_height_px: float  # Chart height with complexity 1.0

    # Turn taking (milliseconds)
    same_sender_delay_ms: float
    turn_taking_delay_ms: float

    # Vertical stacking (pixels)
    top_margin_px: int
    vertical_spacing_px: int
    bottom_margin_px: int
    chart_outer_padding_px: int

    # Scroll
    scroll_px_per_sec: float
    scroll_pre_buffer_sec: float
    min_scroll_duration_sec: float
    max_speed_factor: float
    chart_speed_step: float        # Speed-up per chart event
    complexity_speed_step: float   # Speed-up per unit of extra chart complexity
    keyframe_min_gap_pct: float

    # Element animations (seconds)
    bubble_reveal_sec: float
    avatar_reveal_sec: float
    status_delay_sec: float
    status_read_delay_sec: float
    status_read_transition_sec: float
    reaction_delay_sec: float
    reaction_duration_sec: float
    chart_animation_delay_sec: float
    chart_stagger_sec: float
    bar_grow_sec: float
    donut_segment_sec: float
    value_fade_sec: float
    typing_dot_cycle_sec: float

    end_buffer_ms: float = 2000.0
    resting_margin_px: Optional[int] = None  # None = viewport height

    @property
    def status_chain_sec(self) -> float:
        """Time from bubble reveal end until the Read status is fully shown."""
        return self.status_delay_sec + self.status_read_delay_sec + self.status_read_transition_sec


# ── Built-in presets ──────────────────────────────────────────────────────

PRESETS: dict[str, TimingPreset] = {
    "brisk": TimingPreset(
        name="brisk",
        typing_char_ms=25,
        typing_min_ms=800,
        typing_max_ms=1800,
        chart_item_chars=10,
        min_reading_ms=600,
        ms_per_word=160,
        reading_jitter_ms=400,
        text_reading_multiplier=1.0,
        chart_reading_multiplier=1.3,
        chart_reference_height_px=150,
        same_sender_delay_ms=300,
        turn_taking_delay_ms=900,
        top_margin_px=20,
        vertical_spacing_px=22,
        bottom_margin_px=40,
        chart_outer_padding_px=8,
        scroll_px_per_sec=20,
        scroll_pre_buffer_sec=2.0,
        min_scroll_duration_sec=1.0,
        max_speed_factor=2.0,
        chart_speed_step=0.15,
        complexity_speed_step=0.1,
        keyframe_min_gap_pct=3.0,
        bubble_reveal_sec=0.28,
        avatar_reveal_sec=0.24,
        status_delay_sec=0.15,
        status_read_delay_sec=0.8,
        status_read_transition_sec=0.25,
        reaction_delay_sec=0.15,
        reaction_duration_sec=0.25,
        chart_animation_delay_sec=0.2,
        chart_stagger_sec=0.08,
        bar_grow_sec=0.6,
        donut_segment_sec=0.4,
        value_fade_sec=0.3,
        typing_dot_cycle_sec=1.2,
        end_buffer_ms=1200,
    ),
    "standard": TimingPreset(
        name="standard",
        typing_char_ms=40,
        typing_min_ms=1600,
        typing_max_ms=3000,
        chart_item_chars=10,
        min_reading_ms=1000,
        ms_per_word=250,
        reading_jitter_ms=1000,
        text_reading_multiplier=1.0,
        chart_reading_multiplier=1.5,
        chart_reference_height_px=150,
        same_sender_delay_ms=600,
        turn_taking_delay_ms=1800,
        top_margin_px=20,
        vertical_spacing_px=22,
        bottom_margin_px=40,
        chart_outer_padding_px=8,
        scroll_px_per_sec=10,
        scroll_pre_buffer_sec=3.5,
        min_scroll_duration_sec=1.2,
        max_speed_factor=2.0,
        chart_speed_step=0.15,
        complexity_speed_step=0.1,
        keyframe_min_gap_pct=3.0,
        bubble_reveal_sec=0.36,
        avatar_reveal_sec=0.3,
        status_delay_sec=0.2,
        status_read_delay_sec=1.2,
        status_read_transition_sec=0.3,
        reaction_delay_sec=0.2,
        reaction_duration_sec=0.3,
        chart_animation_delay_sec=0.3,
        chart_stagger_sec=0.1,
        bar_grow_sec=0.8,
        donut_segment_sec=0.5,
        value_fade_sec=0.4,
        typing_dot_cycle_sec=1.4,
        end_buffer_ms=2000,
    ),
    "relaxed": TimingPreset(
        name="relaxed",
        typing_char_ms=55,
        typing_min_ms=2200,
        typing_max_ms=4200,
        chart_item_chars=12,
        min_reading_ms=1600,
        ms_per_word=320,
        reading_jitter_ms=1400,
        text_reading_multiplier=1.0,
        chart_reading_multiplier=1.6,
        chart_reference_height_px=150,
        same_sender_delay_ms=900,
        turn_taking_delay_ms=2600,
        top_margin_px=20,
        vertical_spacing_px=24,
        bottom_margin_px=48,
        chart_outer_padding_px=8,
        scroll_px_per_sec=8,
        scroll_pre_buffer_sec=5.0,
        min_scroll_duration_sec=2.0,
        max_speed_factor=2.0,
        chart_speed_step=0.12,
        complexity_speed_step=0.08,
        keyframe_min_gap_pct=3.0,
        bubble_reveal_sec=0.45,
        avatar_reveal_sec=0.36,
        status_delay_sec=0.3,
        status_read_delay_sec=1.6,
        status_read_transition_sec=0.4,
        reaction_delay_sec=0.3,
        reaction_duration_sec=0.4,
        chart_animation_delay_sec=0.4,
        chart_stagger_sec=0.14,
        bar_grow_sec=1.0,
        donut_segment_sec=0.6,
        value_fade_sec=0.5,
        typing_dot_cycle_sec=1.6,
        end_buffer_ms=3000,
    ),
}


def get_preset(name: str) -> TimingPreset:
    """Get a preset by name."""
    if name not in PRESETS:
        available = ", ".join(PRESETS.keys())
        raise PresetError(f"Unknown preset '{name}'. Available: {available}")
    return PRESETS[name]


def list_presets() -> list[str]:
    """List available preset names."""
    return list(PRESETS.keys())
