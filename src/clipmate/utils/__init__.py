"""Utility helpers for ClipMate."""

from .config_persistence import save_config_to_file

__all__ = ["save_config_to_file"]
