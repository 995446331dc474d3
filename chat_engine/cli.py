"""CLI entrypoint for the chat engine.

Usage:
    chat-engine --conversation profile --theme ios --output dist/chat.svg
    python scripts/render-chat.py --theme android --preset brisk --seed 7 --dry-run
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from chat_engine import __version__
from chat_engine.avatars import with_embedded_avatars
from chat_engine.config import DEFAULT_OUTPUT, AvatarConfig, RenderConfig
from chat_engine.conversation import (
    builtin_placeholders,
    generate_default_conversation,
    list_conversations,
    load_conversation,
)
from chat_engine.errors import ConfigurationError
from chat_engine.fonts import load_font_face
from chat_engine.generator import build_timeline, generate_chat_svg, validate_config
from chat_engine.presets import get_preset, list_presets
from chat_engine.renderer import render_schedule_table
from chat_engine.themes import list_themes, load_theme


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chat-engine",
        description="Chat Engine — self-playing chat conversation SVG generation",
        epilog="Examples:\n"
        "  %(prog)s --conversation profile --theme ios\n"
        "  %(prog)s --theme android --preset brisk --avatars off --output chat.svg\n"
        "  %(prog)s --set avatars.shape=square --set width_px=360 --dry-run\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    # Content
    parser.add_argument(
        "--conversation",
        default=None,
        help=f"Conversation name or YAML path ({', '.join(list_conversations())})",
    )
    parser.add_argument(
        "--placeholders",
        type=Path,
        default=None,
        help="YAML file with extra {placeholder} values",
    )

    # Look & timing
    parser.add_argument(
        "--theme",
        default="ios",
        help=f"Visual theme ({', '.join(list_themes())})",
    )
    parser.add_argument(
        "--preset",
        default="standard",
        help=f"Timing preset ({', '.join(list_presets())})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for deterministic reading pauses",
    )

    # Viewport
    parser.add_argument("--width", type=int, default=320, help="Viewport width in px (default: 320)")
    parser.add_argument("--height", type=int, default=450, help="Viewport height in px (default: 450)")

    # Avatars & font
    parser.add_argument(
        "--avatars",
        choices=["on", "off"],
        default="on",
        help="Show sender avatars (default: on)",
    )
    parser.add_argument("--self-avatar", type=Path, default=None, help="Image for the self avatar")
    parser.add_argument("--other-avatar", type=Path, default=None, help="Image for the other avatar")
    parser.add_argument("--font", type=Path, default=None, help="TTF/OTF/WOFF file to embed")

    # Overrides
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a config field, e.g. width_px=360 or avatars.shape=square (repeatable)",
    )

    # Output
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Output SVG path (default: {DEFAULT_OUTPUT})",
    )

    # Debug
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Schedule the conversation and print the timeline without writing SVG",
    )
    parser.add_argument("--list-themes", action="store_true", help="List available themes and exit")
    parser.add_argument(
        "--list-conversations", action="store_true", help="List bundled conversations and exit"
    )
    parser.add_argument("--list-presets", action="store_true", help="List timing presets and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return parser


def parse_overrides(pairs: list[str]) -> dict[str, Any]:
    """Turn KEY=VALUE strings into RenderConfig.with_overrides() arguments.

    Values are parsed as YAML scalars; ``avatars.<field>`` targets AvatarConfig.
    """
    config_fields = {f.name for f in dataclasses.fields(RenderConfig)}
    avatar_fields = {f.name for f in dataclasses.fields(AvatarConfig)}
    changes: dict[str, Any] = {}
    avatar_changes: dict[str, Any] = {}

    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Override must look like KEY=VALUE (got {pair!r})")
        value = yaml.safe_load(raw) if raw.strip() else ""

        if key.startswith("avatars."):
            name = key.split(".", 1)[1]
            if name not in avatar_fields:
                raise ConfigurationError(f"Unknown avatar setting '{name}'")
            avatar_changes[name] = value
        elif key in config_fields and key != "avatars":
            changes[key] = Path(value) if key in ("output", "font_path") else value
        else:
            raise ConfigurationError(f"Unknown config setting '{key}'")

    if avatar_changes:
        changes["avatars"] = avatar_changes
    return changes


def load_placeholder_file(path: Path) -> dict[str, str]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Placeholder file must be a YAML mapping: {path}")
    return {str(k): str(v) for k, v in data.items()}


def run(args: argparse.Namespace) -> int:
    """Execute the chat engine pipeline."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # List commands
    if args.list_themes:
        print("Available themes:")
        for t in list_themes():
            print(f"  {t}")
        return 0

    if args.list_conversations:
        print("Available conversations:")
        for c in list_conversations():
            print(f"  {c}")
        return 0

    if args.list_presets:
        print("Available presets:")
        for p in list_presets():
            print(f"  {p}")
        return 0

    try:
        # Build config
        config = RenderConfig(
            theme=args.theme,
            preset=args.preset,
            conversation=args.conversation,
            seed=args.seed,
            width_px=args.width,
            height_px=args.height,
            avatars=AvatarConfig(enabled=args.avatars == "on"),
            font_path=args.font,
            output=args.output,
        )
        if args.overrides:
            config = config.with_overrides(**parse_overrides(args.overrides))
        validate_config(config)

        print(f"▸ Loading theme: {config.theme}")
        theme = load_theme(config.theme)
        preset = get_preset(config.preset)
        print(f"  {theme.name} | preset: {preset.name} | viewport: {config.width_px}x{config.height_px}")

        if config.avatars.enabled and (args.self_avatar or args.other_avatar):
            print("▸ Embedding avatars")
            config = config.with_overrides(
                avatars=with_embedded_avatars(config.avatars, args.self_avatar, args.other_avatar)
            )

        # Load or generate conversation
        if config.conversation:
            print(f"▸ Loading conversation: {config.conversation}")
            conversation = load_conversation(config.conversation)
        else:
            print("▸ Using default conversation")
            conversation = generate_default_conversation()
        print(f"  conversation: {conversation.id} ({len(conversation)} messages)")

        placeholders = {**builtin_placeholders(), **conversation.placeholders}
        if args.placeholders:
            placeholders.update(load_placeholder_file(args.placeholders))

        if args.dry_run:
            timeline, _ = build_timeline(
                conversation.events, theme, placeholders, config=config, preset=preset, rng=config.rng()
            )
            print("\n▸ Dry run — timeline preview:")
            print(render_schedule_table(timeline))
            return 0

        font_face = load_font_face(config.font_path)
        if font_face.embedded:
            print(f"▸ Embedding font: {font_face.family}")

        svg = generate_chat_svg(
            conversation.events,
            placeholders,
            config=config,
            theme=theme,
            font_face=font_face,
        )

        config.output.parent.mkdir(parents=True, exist_ok=True)
        config.output.write_text(svg, encoding="utf-8")
        print(f"\n▸ Wrote {config.output} ({len(svg) / 1024:.1f} KiB)")
        return 0

    except Exception as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main() -> None:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
