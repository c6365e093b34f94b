"""Clipboard integration for ClipMate."""

from .backends import ClipboardBackend, WaylandClipboard, X11Clipboard
from .clipboard_manager import ClipboardManager, create_backend, detect_session_type
from .frontmost import FrontmostAppResolver
from .monitor import ClipboardMonitor, PollOutcome

__all__ = [
    "ClipboardBackend",
    "WaylandClipboard",
    "X11Clipboard",
    "ClipboardManager",
    "create_backend",
    "detect_session_type",
    "FrontmostAppResolver",
    "ClipboardMonitor",
    "PollOutcome",
]
