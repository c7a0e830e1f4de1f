"""Gamepad and HTTP front end for an mpv-backed internet radio."""

__version__ = "1.0.0"
