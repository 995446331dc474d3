"""One-call generation: conversation in, SVG document out.

    svg = generate_chat_svg(events, {"name": "Dan"}, config=RenderConfig(theme="android"))

Configuration is validated before any layout or scheduling. A configuration
problem never escapes this module: it is logged and replaced by a small
labeled error graphic, so callers always get a document back.
"""

from __future__ import annotations

import logging
import random
from html import escape
from typing import Any, Iterable, Mapping, Optional, Union

from chat_engine.colors import theme_contrast_warnings
from chat_engine.config import RenderConfig
from chat_engine.conversation import ConversationEvent, builtin_placeholders
from chat_engine.errors import ConfigurationError
from chat_engine.fonts import FontFace, load_font_face
from chat_engine.presets import TimingPreset, get_preset
from chat_engine.renderer import SvgEmitter
from chat_engine.scroll import ScrollPlan, synthesize
from chat_engine.themes import Theme, ThemeError, load_theme, parse_theme
from chat_engine.timeline import TimelineResult, schedule

logger = logging.getLogger(__name__)


ERROR_SVG_WIDTH = 320
ERROR_SVG_HEIGHT = 100


def render_error_svg(message: str, width: int = ERROR_SVG_WIDTH, height: int = ERROR_SVG_HEIGHT) -> str:
    """Small, clearly labeled graphic shown instead of the conversation."""
    detail = message.strip().splitlines()[0] if message.strip() else "unknown problem"
    if len(detail) > 60:
        detail = detail[:57] + "..."
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" role="img" font-family="sans-serif">'
        f'<rect width="{width}" height="{height}" rx="8" fill="#FFF0F0" stroke="#FF3B30"/>'
        f'<text x="{width / 2}" y="40" text-anchor="middle" font-size="16" font-weight="bold" '
        f'fill="#FF3B30">Configuration Error!</text>'
        f'<text x="{width / 2}" y="66" text-anchor="middle" font-size="10" fill="#333333">'
        f"{escape(detail)}</text></svg>"
    )


def resolve_theme(config: RenderConfig, theme: Union[Theme, Mapping[str, Any], str, None] = None) -> Theme:
    """Use the given theme (object, raw data, or name) or load the one named by config."""
    if theme is None:
        return load_theme(config.theme)
    if isinstance(theme, Theme):
        return theme
    if isinstance(theme, str):
        return load_theme(theme)
    if not isinstance(theme, Mapping):
        raise ThemeError(f"Theme override must be a Theme, mapping, or name (got {type(theme).__name__})")
    return parse_theme(dict(theme), source="<theme override>")


def validate_config(config: RenderConfig) -> None:
    errors = config.validate()
    if errors:
        raise ConfigurationError("Invalid configuration:\n  " + "\n  ".join(errors), errors)


def build_timeline(
    events: Iterable[ConversationEvent],
    theme: Theme,
    placeholders: Optional[Mapping[str, Any]] = None,
    *,
    config: RenderConfig,
    preset: TimingPreset,
    rng: Optional[random.Random] = None,
) -> tuple[TimelineResult, ScrollPlan]:
    """Schedule the conversation and derive its scroll plan."""
    result = schedule(events, theme, placeholders, config=config, preset=preset, rng=rng)
    plan = synthesize(result, config.height_px, theme, preset=preset)
    return result.with_scroll(plan), plan


def generate_chat_svg(
    events: Iterable[ConversationEvent],
    placeholders: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[RenderConfig] = None,
    theme: Union[Theme, Mapping[str, Any], str, None] = None,
    font_face: Optional[FontFace] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Generate the complete animated SVG.

    Args:
        events: Conversation events in display order.
        placeholders: Substitution map; merged over the built-in date placeholders.
        config: Render configuration; defaults to RenderConfig().
        theme: Theme object, raw theme data, or theme name overriding ``config.theme``.
        font_face: Pre-loaded font; defaults to loading ``config.font_path``.
        rng: Random source for reading jitter; defaults to ``config.rng()``.

    Returns:
        SVG markup. On configuration failure, a small error graphic.
    """
    config = config or RenderConfig()

    try:
        validate_config(config)
        resolved_theme = resolve_theme(config, theme)
        preset = get_preset(config.preset)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return render_error_svg(str(e))

    for warning in theme_contrast_warnings(resolved_theme):
        logger.warning(warning)

    mapping = {**builtin_placeholders(), **(placeholders or {})}
    timeline, scroll = build_timeline(
        events, resolved_theme, mapping, config=config, preset=preset, rng=rng
    )
    logger.debug(
        "Scheduled %d events: content %.0fpx, scroll %.0fpx over %.2fs",
        len(timeline),
        timeline.total_content_height,
        scroll.scroll_distance,
        scroll.scroll_duration_sec,
    )

    emitter = SvgEmitter(config, resolved_theme, preset, font_face or load_font_face(config.font_path))
    return emitter.emit(timeline, scroll)
