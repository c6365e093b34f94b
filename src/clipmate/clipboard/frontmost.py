"""Identify the application that owns the foreground window."""

import logging
import os
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)


class FrontmostAppResolver:
    """
    Resolve the foreground window's class name with xdotool.

    Works on X11 and for XWayland windows. Returns None whenever the
    foreground application cannot be determined.
    """

    def __init__(self, timeout_seconds: float = 1.0):
        self.timeout_seconds = timeout_seconds
        self._warned_missing = False

    def __call__(self) -> Optional[str]:
        return self.frontmost_app_id()

    def frontmost_app_id(self) -> Optional[str]:
        if not os.getenv('DISPLAY'):
            return None

        try:
            result = subprocess.run(
                ['xdotool', 'getactivewindow', 'getwindowclassname'],
                capture_output=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            if not self._warned_missing:
                logger.warning("xdotool not found, application exclusions disabled. Install: sudo apt install xdotool")
                self._warned_missing = True
            return None
        except subprocess.TimeoutExpired:
            logger.debug(f"xdotool timeout after {self.timeout_seconds}s")
            return None

        if result.returncode != 0:
            return None
        app_id = result.stdout.decode('utf-8', errors='ignore').strip()
        return app_id or None
