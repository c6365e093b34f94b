"""D-Bus client for the ClipMate daemon."""

import logging
from typing import Callable, List, Optional, Tuple

from pydbus import SessionBus

logger = logging.getLogger(__name__)


class ClipmateClient:
    """D-Bus client for the ClipMate daemon.

    Connects to org.clipmate.History on the session bus and provides
    Pythonic wrappers for the daemon methods and signal subscriptions.
    Every wrapper returns a neutral value when the daemon is unreachable
    or fails; get_history and delete_item return None so that a failure
    is not mistaken for an empty history or a missing item.
    """

    BUS_NAME = "org.clipmate.History"

    def __init__(self):
        """Connect to daemon via D-Bus. Sets is_connected=False if unavailable."""
        self._proxy = None
        self._bus = None
        self._connected = False
        self._subscriptions = []
        self.last_error = ""

        self._try_connect()

    def _try_connect(self) -> bool:
        """Internal: attempt to connect to the daemon."""
        try:
            if self._bus is None:
                self._bus = SessionBus()
            self._proxy = self._bus.get(self.BUS_NAME)
            self._connected = True
            logger.info("Connected to ClipMate daemon via D-Bus")
            return True
        except Exception as e:
            logger.warning(f"Could not connect to ClipMate daemon: {e}")
            self._proxy = None
            self._connected = False
            return False

    def connect(self) -> bool:
        """Retry connecting to the daemon. Returns True on success."""
        return self._try_connect()

    @property
    def is_connected(self) -> bool:
        """Whether the client is connected to the daemon."""
        return self._connected

    # ─── Method wrappers ─────────────────────────────────────────────────

    def get_history(self, search: str = "") -> Optional[List[Tuple[int, str, str, str]]]:
        """Recent items as (id, type, text, created_at), newest first. None on failure."""
        if not self._connected or not self._proxy:
            return None
        try:
            return [tuple(row) for row in self._proxy.GetHistory(search)]
        except Exception as e:
            logger.warning(f"get_history failed: {e}")
            self.last_error = str(e)
            return None

    def get_image(self, item_id: int) -> bytes:
        """PNG bytes of an image item, empty if unavailable."""
        if not self._connected or not self._proxy:
            return b""
        try:
            return bytes(self._proxy.GetImage(item_id))
        except Exception as e:
            logger.warning(f"get_image failed: {e}")
            return b""

    def delete_item(self, item_id: int) -> Optional[bool]:
        """
        Delete a history item by id.

        Returns:
            True if deleted, False if no such item, None if the daemon failed
        """
        if not self._connected or not self._proxy:
            return None
        try:
            return self._proxy.DeleteItem(item_id)
        except Exception as e:
            logger.warning(f"delete_item failed: {e}")
            self.last_error = str(e)
            return None

    def clear_history(self) -> int:
        """Remove every history item. Returns -1 on failure."""
        if not self._connected or not self._proxy:
            return -1
        try:
            return self._proxy.ClearHistory()
        except Exception as e:
            logger.warning(f"clear_history failed: {e}")
            return -1

    def copy_item(self, item_id: int) -> bool:
        """Put a history item back on the clipboard."""
        if not self._connected or not self._proxy:
            return False
        try:
            return self._proxy.CopyItem(item_id)
        except Exception as e:
            logger.warning(f"copy_item failed: {e}")
            return False

    def get_status(self) -> str:
        """Get current service status."""
        if not self._connected or not self._proxy:
            return ""
        try:
            return self._proxy.GetStatus()
        except Exception as e:
            logger.warning(f"get_status failed: {e}")
            return ""

    def quit_daemon(self) -> bool:
        """Request the daemon to quit."""
        if not self._connected or not self._proxy:
            return False
        try:
            self._proxy.Quit()
            return True
        except Exception as e:
            logger.warning(f"quit_daemon failed: {e}")
            return False

    # ─── Signal subscriptions ────────────────────────────────────────────

    def on_history_changed(self, callback: Callable) -> None:
        """Subscribe to HistoryChanged signal (no arguments)."""
        self._subscribe_signal("HistoryChanged", callback)

    def on_error(self, callback: Callable) -> None:
        """Subscribe to ErrorOccurred signal (message)."""
        self._subscribe_signal("ErrorOccurred", callback)

    def _subscribe_signal(self, signal_name: str, callback: Callable) -> None:
        """Internal: subscribe to a D-Bus signal by name."""
        if not self._connected or not self._proxy:
            logger.warning(f"Cannot subscribe to {signal_name}: not connected")
            return
        try:
            sig = getattr(self._proxy, signal_name)
            self._subscriptions.append(sig.connect(callback))
        except Exception as e:
            logger.warning(f"Failed to subscribe to {signal_name}: {e}")

    def disconnect(self) -> None:
        """Disconnect and clean up signal subscriptions."""
        for sub in self._subscriptions:
            try:
                sub.disconnect()
            except Exception as e:
                logger.debug(f"Signal unsubscribe failed: {e}")
        self._subscriptions.clear()
        self._proxy = None
        self._bus = None
        self._connected = False
        logger.info("Disconnected from ClipMate daemon")
