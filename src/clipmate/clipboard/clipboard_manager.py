"""Clipboard management for ClipMate."""

import logging
import os
import shutil

from ..config import ClipboardConfig
from ..exceptions import ClipboardError, ClipboardNotAvailableError
from ..persistence.models import ClipboardItem
from .backends import ClipboardBackend, WaylandClipboard, X11Clipboard

logger = logging.getLogger(__name__)


def detect_session_type() -> str:
    """
    Detect the current display server session type.

    Returns:
        'wayland', 'x11', or 'unknown'
    """
    if os.getenv('WAYLAND_DISPLAY'):
        return 'wayland'
    elif os.getenv('DISPLAY'):
        return 'x11'
    else:
        return 'unknown'


def create_backend(config: ClipboardConfig) -> ClipboardBackend:
    """
    Build the clipboard backend for this session.

    Args:
        config: Clipboard configuration

    Returns:
        WaylandClipboard or X11Clipboard

    Raises:
        ClipboardNotAvailableError: If no display session or tool is available
    """
    backend = config.preferred_backend
    if backend == 'auto':
        backend = detect_session_type()
        # XWayland sessions without wl-clipboard can still use xclip
        if backend == 'wayland' and not shutil.which('wl-paste') and os.getenv('DISPLAY'):
            logger.warning("wl-paste not found, falling back to xclip. Install: sudo apt install wl-clipboard")
            backend = 'x11'

    if backend == 'wayland':
        return WaylandClipboard(config.timeout_seconds)
    elif backend == 'x11':
        return X11Clipboard(config.timeout_seconds)
    raise ClipboardNotAvailableError("No Wayland or X11 display session detected")


class ClipboardManager:
    """Writes history items back onto the system clipboard."""

    def __init__(self, backend: ClipboardBackend):
        """
        Initialize clipboard manager.

        Args:
            backend: Clipboard backend to write through
        """
        self.backend = backend
        logger.info(f"Clipboard manager initialized for {backend.name} session")

    def copy_item(self, item: ClipboardItem) -> bool:
        """
        Put a history item back on the clipboard in its native representation.

        Args:
            item: Item to copy

        Returns:
            True if successful, False otherwise
        """
        try:
            if item.is_text:
                if not item.text:
                    logger.warning(f"Item {item.id} has no text to copy")
                    return False
                self.backend.write_text(item.text)
            else:
                if not item.image_data:
                    logger.warning(f"Item {item.id} has no image to copy")
                    return False
                self.backend.write_image(item.image_data)
        except ClipboardError as e:
            logger.error(f"Copy of item {item.id} failed: {e}")
            return False

        logger.info(f"✓ Copied {item.content_type.value} item {item.id} to clipboard")
        return True
