"""Avatar image embedding.

Avatar pictures are center-cropped to a square, downscaled to twice the
rendered size, and inlined as PNG data URIs. A side whose image cannot be
used keeps its fallback initials.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from chat_engine.config import AvatarConfig

logger = logging.getLogger(__name__)


def embed_avatar_image(path: Path, size_px: int) -> Optional[str]:
    """Return a PNG data URI for the image at ``path``, or None if it is unusable."""
    path = Path(path)
    if not path.exists():
        logger.warning("Avatar image not found: %s", path)
        return None

    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img).convert("RGBA")
            side = max(1, size_px * 2)
            fitted = ImageOps.fit(img, (side, side), method=Image.Resampling.LANCZOS)
    except (OSError, UnidentifiedImageError) as e:
        logger.warning("Failed to embed avatar %s: %s", path, e)
        return None

    buf = io.BytesIO()
    fitted.save(buf, format="PNG", optimize=True)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    logger.debug("Embedded avatar %s (%dx%d)", path, side, side)
    return f"data:image/png;base64,{encoded}"


def with_embedded_avatars(
    avatars: AvatarConfig,
    self_path: Optional[Path] = None,
    other_path: Optional[Path] = None,
) -> AvatarConfig:
    """Return a new AvatarConfig with the given images embedded."""
    changes = {}
    if self_path is not None:
        changes["self_image"] = embed_avatar_image(self_path, avatars.size_px) or ""
    if other_path is not None:
        changes["other_image"] = embed_avatar_image(other_path, avatars.size_px) or ""
    if not changes:
        return avatars
    return replace(avatars, **changes)
