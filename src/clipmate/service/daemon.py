"""D-Bus daemon service for ClipMate."""

import logging
import signal as signal_module
from typing import List, Optional, Tuple

from gi.repository import GLib
from pydbus import SessionBus
from pydbus.generic import signal

from ..clipboard.backends import ClipboardBackend
from ..clipboard.clipboard_manager import ClipboardManager, create_backend
from ..clipboard.frontmost import FrontmostAppResolver
from ..clipboard.monitor import ClipboardMonitor
from ..config import ClipmateConfig
from ..exceptions import ClipmateError
from ..exclusions import ExclusionSet
from ..persistence import HistoryStore

logger = logging.getLogger(__name__)

BUS_NAME = "org.clipmate.History"


class ClipmateService:
    """
    <node>
      <interface name="org.clipmate.History">
        <method name="GetHistory">
          <arg type="s" name="search" direction="in"/>
          <arg type="a(xsss)" direction="out"/>
        </method>
        <method name="GetImage">
          <arg type="x" name="item_id" direction="in"/>
          <arg type="ay" direction="out"/>
        </method>
        <method name="DeleteItem">
          <arg type="x" name="item_id" direction="in"/>
          <arg type="b" direction="out"/>
        </method>
        <method name="ClearHistory">
          <arg type="i" direction="out"/>
        </method>
        <method name="CopyItem">
          <arg type="x" name="item_id" direction="in"/>
          <arg type="b" direction="out"/>
        </method>
        <method name="GetExclusions">
          <arg type="as" direction="out"/>
        </method>
        <method name="AddExclusion">
          <arg type="s" name="app_id" direction="in"/>
          <arg type="b" direction="out"/>
        </method>
        <method name="RemoveExclusion">
          <arg type="s" name="app_id" direction="in"/>
          <arg type="b" direction="out"/>
        </method>
        <method name="ReloadExclusions">
          <arg type="i" direction="out"/>
        </method>
        <method name="GetStatus">
          <arg type="s" direction="out"/>
        </method>
        <method name="Quit"/>
        <signal name="HistoryChanged"/>
        <signal name="ErrorOccurred">
          <arg type="s"/>
        </signal>
      </interface>
    </node>
    """

    def __init__(
        self,
        config: Optional[ClipmateConfig] = None,
        store: Optional[HistoryStore] = None,
        backend: Optional[ClipboardBackend] = None,
    ):
        """Initialize the service and wire its components."""
        self.config = config or ClipmateConfig.load()

        self.store = store or HistoryStore(self.config.store)
        self.backend = backend or create_backend(self.config.clipboard)
        self.exclusions = ExclusionSet.load(
            self.config.monitor.exclusions_path,
            self.config.monitor.excluded_apps,
        )
        self.clipboard_manager = ClipboardManager(self.backend)
        self.monitor = ClipboardMonitor(
            self.backend,
            self.store,
            self.exclusions,
            self.config.monitor,
            frontmost_app=FrontmostAppResolver(self.config.clipboard.timeout_seconds),
        )

        self.store.subscribe(self._on_history_changed)

        logger.info("ClipmateService initialized")

    def run(self) -> None:
        """Run the D-Bus service."""
        try:
            bus = SessionBus()
            bus.publish(BUS_NAME, self)
            logger.info("D-Bus service published")

            def signal_handler(signum, frame):
                logger.info("Received signal, shutting down")
                self.Quit()

            signal_module.signal(signal_module.SIGTERM, signal_handler)
            signal_module.signal(signal_module.SIGINT, signal_handler)

            self.monitor.start()

            loop = GLib.MainLoop()
            self._loop = loop
            loop.run()

        except Exception as e:
            logger.error(f"Service failed to start: {e}")
            raise
        finally:
            self._cleanup()

    # ─── D-Bus methods ──────────────────────────────────────────────────

    def GetHistory(self, search: str) -> List[Tuple[int, str, str, str]]:
        """Recent items, newest first, as (id, type, text, created_at)."""
        try:
            items = self.store.query(search)
        except ClipmateError as e:
            self.ErrorOccurred(str(e))
            raise
        return [
            (item.id, item.content_type.value, item.text or "", item.created_at.isoformat())
            for item in items
        ]

    def GetImage(self, item_id: int) -> bytes:
        """PNG bytes of an image item, empty if missing or not an image."""
        try:
            item = self.store.get_by_id(item_id)
        except ClipmateError as e:
            self.ErrorOccurred(str(e))
            raise
        if item is None or not item.is_image:
            return b""
        return item.image_data

    def DeleteItem(self, item_id: int) -> bool:
        """Delete an item; True if it existed."""
        try:
            return self.store.delete(item_id)
        except ClipmateError as e:
            self.ErrorOccurred(str(e))
            raise

    def ClearHistory(self) -> int:
        """Remove every item; returns the number removed."""
        try:
            return self.store.clear_all()
        except ClipmateError as e:
            self.ErrorOccurred(str(e))
            raise

    def CopyItem(self, item_id: int) -> bool:
        """Put a history item back on the clipboard."""
        try:
            item = self.store.get_by_id(item_id)
        except ClipmateError as e:
            self.ErrorOccurred(str(e))
            raise
        if item is None:
            logger.warning(f"CopyItem: no item {item_id}")
            return False
        success = self.clipboard_manager.copy_item(item)
        if not success:
            self.ErrorOccurred(f"Could not copy item {item_id} to the clipboard")
        return success

    def GetExclusions(self) -> List[str]:
        return self.exclusions.snapshot()

    def AddExclusion(self, app_id: str) -> bool:
        """Exclude an application and persist the list."""
        added = self.exclusions.add(app_id)
        if added:
            self._save_exclusions()
        return added

    def RemoveExclusion(self, app_id: str) -> bool:
        """Stop excluding an application and persist the list."""
        removed = self.exclusions.remove(app_id)
        if removed:
            self._save_exclusions()
        return removed

    def ReloadExclusions(self) -> int:
        """Re-read the exclusion list file; returns the number of entries."""
        reloaded = ExclusionSet.load(
            self.config.monitor.exclusions_path,
            self.config.monitor.excluded_apps,
        )
        self.exclusions.replace(reloaded.snapshot())
        logger.info(f"Exclusion list reloaded ({len(self.exclusions)} entries)")
        return len(self.exclusions)

    def GetStatus(self) -> str:
        """Get current status."""
        return "monitoring" if self.monitor.is_running else "idle"

    def Quit(self) -> None:
        """Quit the service."""
        logger.info("Quit requested via D-Bus")
        self.monitor.stop()

        if hasattr(self, '_loop'):
            self._loop.quit()

    HistoryChanged = signal()
    ErrorOccurred = signal()

    # ─── Internals ──────────────────────────────────────────────────────

    def _on_history_changed(self) -> None:
        """Store observer; may run on the monitor thread."""
        GLib.idle_add(self._emit_history_changed)

    def _emit_history_changed(self):
        self.HistoryChanged()
        return GLib.SOURCE_REMOVE

    def _save_exclusions(self) -> None:
        try:
            self.exclusions.save(self.config.monitor.exclusions_path)
        except OSError as e:
            logger.error(f"Failed to save exclusion list: {e}")
            self.ErrorOccurred(f"Failed to save exclusion list: {e}")

    def _cleanup(self) -> None:
        """Clean up resources."""
        logger.info("Cleaning up service resources")
        self.monitor.stop()
        self.store.unsubscribe(self._on_history_changed)
        logger.info("Service cleanup complete")
