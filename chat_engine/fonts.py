"""Embedded font resource.

A font file given on the command line is inlined into the SVG as a base64
@font-face rule so the animation looks the same on machines without it.
Any problem with the file degrades to the theme's own font stack, which
always ends in a generic family.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)


FONT_FORMATS: dict[str, tuple[str, str]] = {
    ".ttf": ("font/ttf", "truetype"),
    ".otf": ("font/otf", "opentype"),
    ".woff": ("font/woff", "woff"),
    ".woff2": ("font/woff2", "woff2"),
}

GENERIC_FAMILY = "sans-serif"


@dataclass(frozen=True)
class FontFace:
    """Resolved font for one render.

    Attributes:
        family: Embedded family name, or None when only the theme stack is used.
        css: @font-face rule to place in the style block (may be empty).
        source: Path of the embedded file, or "<generic>".
    """

    family: Optional[str] = None
    css: str = ""
    source: str = "<generic>"

    @property
    def embedded(self) -> bool:
        return self.family is not None

    def stack(self, fallback: str = GENERIC_FAMILY) -> str:
        """font-family value with the embedded family (if any) first."""
        if not self.embedded:
            return fallback
        return f"'{self.family}', {fallback}"


GENERIC_FONT = FontFace()


def _family_name(path: Path) -> str:
    """Read the family name from the font file, falling back to the file stem."""
    try:
        family, _style = ImageFont.truetype(str(path), 12).getname()
    except OSError:
        return path.stem
    return family or path.stem


def load_font_face(path: Optional[Path]) -> FontFace:
    """Load a font file for embedding. Never raises for a missing or bad file."""
    if path is None:
        return GENERIC_FONT

    path = Path(path)
    fmt = FONT_FORMATS.get(path.suffix.lower())
    if fmt is None:
        logger.warning("Unsupported font format %s, using generic font family", path.suffix or path.name)
        return GENERIC_FONT

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.warning("Font %s could not be read (%s), using generic font family", path, e)
        return GENERIC_FONT

    if not data:
        logger.warning("Font %s is empty, using generic font family", path)
        return GENERIC_FONT

    family = _family_name(path)
    mime, css_format = fmt
    encoded = base64.b64encode(data).decode("ascii")
    css = (
        f"@font-face{{font-family:'{family}';font-style:normal;font-weight:400;"
        f"src:url(data:{mime};base64,{encoded}) format('{css_format}');}}"
    )
    logger.debug("Embedded font %s (%s, %d bytes)", family, path, len(data))
    return FontFace(family=family, css=css, source=str(path))
