"""Error taxonomy shared by the generation pipeline."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when theme, preset, or render configuration is invalid.

    Detected before any layout or timeline work begins. The generator turns
    it into a labeled error graphic instead of propagating it.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class ContentError(Exception):
    """Raised when a conversation source cannot be read at all.

    Individual malformed events never raise; they degrade locally.
    """

    pass
