"""Wallpaper catalog sync and on-device recommendations."""

__version__ = "0.1.0"
