"""Central configuration for the chat engine."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional


# Resolve bundled data relative to this file
PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"
THEMES_DIR = DATA_DIR / "themes"
CONVERSATIONS_DIR = DATA_DIR / "conversations"
DEFAULT_OUTPUT = Path("dist") / "chat.svg"

AVATAR_SHAPES = ("circle", "square")


@dataclass(frozen=True)
class AvatarConfig:
    """Avatar settings for both parties of the conversation."""

    enabled: bool = True
    size_px: int = 32
    shape: str = "circle"  # circle | square
    x_offset_px: int = 6
    y_offset_px: int = 0
    self_fallback_text: str = "ME"
    other_fallback_text: str = "?"
    self_image: str = ""  # data URI or URL
    other_image: str = ""

    @property
    def gutter_px(self) -> int:
        """Horizontal space reserved beside bubbles for the avatar column."""
        if not self.enabled:
            return 0
        return self.size_px + 2 * self.x_offset_px

    def image_for(self, is_self: bool) -> str:
        return self.self_image if is_self else self.other_image

    def fallback_for(self, is_self: bool) -> str:
        return self.self_fallback_text if is_self else self.other_fallback_text

    def validate(self) -> list[str]:
        """Type and range checks. Types are checked before any comparison."""
        errors = []

        if not isinstance(self.enabled, bool):
            errors.append(f"config: avatar 'enabled' must be true or false (got {self.enabled!r})")

        if not _is_int(self.size_px):
            errors.append(f"config: avatar 'size_px' must be an integer (got {self.size_px!r})")
        elif self.size_px <= 0:
            errors.append(f"config: avatar size must be positive (got {self.size_px})")

        if not _is_int(self.x_offset_px):
            errors.append(f"config: avatar 'x_offset_px' must be an integer (got {self.x_offset_px!r})")
        elif self.x_offset_px < 0:
            errors.append(f"config: avatar x offset must not be negative (got {self.x_offset_px})")

        if not _is_int(self.y_offset_px):
            errors.append(f"config: avatar 'y_offset_px' must be an integer (got {self.y_offset_px!r})")

        if not isinstance(self.shape, str) or self.shape not in AVATAR_SHAPES:
            errors.append(
                f"config: avatar shape must be one of {', '.join(AVATAR_SHAPES)} (got {self.shape!r})"
            )

        for name in ("self_fallback_text", "other_fallback_text", "self_image", "other_image"):
            val = getattr(self, name)
            if not isinstance(val, str):
                errors.append(f"config: avatar '{name}' must be a string (got {val!r})")

        return errors


@dataclass(frozen=True)
class RenderConfig:
    """Full render configuration assembled from CLI flags and defaults.

    Immutable for the duration of a run. Per-request overrides go through
    :meth:`with_overrides`, which builds a new value.
    """

    # Core
    theme: str = "ios"
    preset: str = "standard"
    conversation: Optional[str] = None
    seed: Optional[int] = None

    # Viewport
    width_px: int = 320
    height_px: int = 450

    # Decorations
    avatars: AvatarConfig = field(default_factory=AvatarConfig)
    font_path: Optional[Path] = None

    # Output
    output: Path = DEFAULT_OUTPUT

    def rng(self) -> random.Random:
        """Fresh random source for the reading-time jitter of one run."""
        if self.seed is not None:
            return random.Random(self.seed)
        return random.Random()

    def with_overrides(self, **changes: Any) -> "RenderConfig":
        """Return a copy with the given fields replaced.

        ``avatars`` may be passed as a dict of AvatarConfig field overrides.
        """
        avatars = changes.get("avatars")
        if isinstance(avatars, dict):
            changes["avatars"] = replace(self.avatars, **avatars)
        return replace(self, **changes)

    def validate(self) -> list[str]:
        """Validate the configuration. Returns list of error messages (empty = valid)."""
        errors = []

        for name in ("width_px", "height_px"):
            val = getattr(self, name)
            if not _is_int(val) or val <= 0:
                errors.append(f"config: '{name}' must be a positive integer (got {val!r})")

        if not isinstance(self.theme, str) or not self.theme:
            errors.append("config: 'theme' must be a non-empty string")
        if not isinstance(self.preset, str) or not self.preset:
            errors.append("config: 'preset' must be a non-empty string")
        if self.seed is not None and not _is_int(self.seed):
            errors.append(f"config: 'seed' must be an integer (got {self.seed!r})")

        av = self.avatars
        if not isinstance(av, AvatarConfig):
            errors.append(f"config: 'avatars' must be an AvatarConfig (got {type(av).__name__})")
            return errors

        errors.extend(av.validate())
        if not errors and self.width_px - 2 * av.gutter_px <= 0:
            errors.append(
                f"config: viewport width {self.width_px}px leaves no room beside the avatars"
            )

        return errors


def _is_int(val: Any) -> bool:
    return isinstance(val, int) and not isinstance(val, bool)
