"""Valkyrie scenario auto-translator."""

__version__ = "1.0.0"
