"""Polling clipboard monitor feeding the history store."""

import hashlib
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from ..config import MonitorConfig
from ..exceptions import ClipboardError
from ..exclusions import ExclusionSet
from ..persistence.history_store import HistoryStore
from ..persistence.models import ContentType
from .backends import ClipboardBackend

logger = logging.getLogger(__name__)

TEXT_PREFIX = "text:"
IMAGE_PREFIX = "img:"


class PollOutcome(Enum):
    """Result of a single monitor tick."""
    UNCHANGED = "unchanged"
    EXCLUDED = "excluded"
    UNSUPPORTED = "unsupported"
    EMPTY = "empty"
    DUPLICATE = "duplicate"
    INSERTED = "inserted"
    CAPTURE_FAILED = "capture_failed"
    STORE_FAILED = "store_failed"


def content_signature(data: bytes, content_type: ContentType) -> str:
    """
    Signature used for immediate-repeat suppression.

    The type tag keeps identical bytes of different types apart.
    """
    prefix = TEXT_PREFIX if content_type is ContentType.TEXT else IMAGE_PREFIX
    return prefix + hashlib.sha256(data).hexdigest()


class ClipboardMonitor:
    """
    Polls the clipboard and inserts new content into the history store.

    Only an immediate repeat of the last accepted content is suppressed;
    re-copying an older entry creates a new entry at the top.
    """

    def __init__(
        self,
        backend: ClipboardBackend,
        store: HistoryStore,
        exclusions: ExclusionSet,
        config: MonitorConfig,
        frontmost_app: Optional[Callable[[], Optional[str]]] = None,
    ):
        """
        Initialize the monitor.

        Args:
            backend: Clipboard backend to poll
            store: History store receiving accepted items
            exclusions: Application ids whose copies are ignored
            config: Monitor configuration (interval, own app id)
            frontmost_app: Returns the foreground application id or None
        """
        self.backend = backend
        self.store = store
        self.exclusions = exclusions
        self.config = config
        self.frontmost_app = frontmost_app or (lambda: None)

        self._poll_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._last_change_count: Optional[int] = None
        self._last_signature: Optional[str] = None

        logger.debug(f"ClipboardMonitor created ({backend.name} backend, {config.poll_interval_ms}ms)")

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._thread is not None and self._thread.is_alive()

    @property
    def last_signature(self) -> Optional[str]:
        return self._last_signature

    def start(self) -> bool:
        """
        Start polling on a background thread.

        Returns:
            True if started, False if already running
        """
        with self._state_lock:
            if self._thread is not None and self._thread.is_alive():
                logger.debug("Monitor already running")
                return False

            # Content already on the clipboard at startup is not captured
            try:
                with self._poll_lock:
                    self._last_change_count = self.backend.change_count()
            except ClipboardError as e:
                logger.warning(f"Initial clipboard probe failed: {e}")

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                daemon=True,
                name="ClipboardMonitor",
            )
            self._thread.start()

        logger.info(f"Clipboard monitor started (every {self.config.poll_interval_ms}ms)")
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop polling. Safe to call when not running.

        An in-flight tick is allowed to finish.

        Args:
            timeout: Seconds to wait for the polling thread, None for one interval
        """
        with self._state_lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()

        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout if timeout is not None else self.config.poll_interval + 1.0)
        logger.info("Clipboard monitor stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.config.poll_interval):
            try:
                self.poll()
            except Exception as e:
                # A single bad tick must never end the loop
                logger.exception(f"Unexpected error in clipboard poll: {e}")

    def poll(self) -> PollOutcome:
        """
        Run one tick: detect, filter, classify, dedupe and store.

        Returns:
            What happened to the clipboard content on this tick
        """
        with self._poll_lock:
            return self._poll_locked()

    def _poll_locked(self) -> PollOutcome:
        try:
            change_count = self.backend.change_count()
        except ClipboardError as e:
            logger.debug(f"Clipboard probe failed: {e}")
            return PollOutcome.CAPTURE_FAILED

        if change_count == self._last_change_count:
            return PollOutcome.UNCHANGED
        self._last_change_count = change_count

        app_id = self.frontmost_app()
        if app_id is not None and (app_id == self.config.app_id or app_id in self.exclusions):
            logger.debug(f"Ignoring clipboard change from {app_id}")
            return PollOutcome.EXCLUDED

        try:
            types = self.backend.available_types()
            if any(t.lower().startswith("image/") for t in types):
                content_type = ContentType.IMAGE
                content = self.backend.read_image()
                raw = content
            else:
                content_type = ContentType.TEXT
                content = self.backend.read_text()
                raw = content.encode("utf-8") if content is not None else None
        except ClipboardError as e:
            logger.warning(f"Could not read clipboard content: {e}")
            return PollOutcome.CAPTURE_FAILED

        if content is None:
            logger.debug(f"Unsupported clipboard types: {types}")
            return PollOutcome.UNSUPPORTED

        if not raw:
            return PollOutcome.EMPTY

        signature = content_signature(raw, content_type)
        if signature == self._last_signature:
            logger.debug("Ignoring repeated clipboard content")
            return PollOutcome.DUPLICATE
        self._last_signature = signature

        try:
            self.store.insert(content, content_type)
        except Exception as e:
            # Best-effort persistence: keep polling
            logger.error(f"Failed to store clipboard {content_type.value}: {e}")
            return PollOutcome.STORE_FAILED

        return PollOutcome.INSERTED
