"""Mood-aware conversational companion."""

__version__ = "0.1.0"
