"""Chat Engine — self-playing chat conversation SVG generation."""

__version__ = "0.4.0"
