"""Bounded clipboard history with change notifications."""

import json
import logging
import threading
from typing import Callable, List, Optional, Union
from pathlib import Path

from .database import ClipboardDatabase
from .models import ClipboardItem, ContentType
from ..config import StoreConfig

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]


class HistoryStore:
    """
    Durable, capacity-bounded clipboard history.

    Thread-safe: mutations are serialized by a single writer lock and each
    runs in its own database transaction. Reads take no lock.

    Observers registered with subscribe() are called without arguments after
    every successful insert, delete or clear, and are expected to re-query.
    """

    def __init__(
        self,
        config: StoreConfig,
        db: Optional[ClipboardDatabase] = None
    ):
        """
        Initialize HistoryStore.

        Args:
            config: Store configuration
            db: Optional database instance (for testing/dependency injection)
        """
        self.config = config
        self.capacity = config.capacity
        self.db = db if db else ClipboardDatabase(config.db_path)

        self._write_lock = threading.Lock()
        self._observers_lock = threading.Lock()
        self._observers: List[ChangeCallback] = []

        logger.info(f"HistoryStore initialized with database: {self.db.db_path} (capacity {self.capacity})")

    # Observers

    def subscribe(self, callback: ChangeCallback) -> ChangeCallback:
        """
        Register a change observer.

        Args:
            callback: Called with no arguments after every mutation

        Returns:
            The callback, for use with unsubscribe()
        """
        with self._observers_lock:
            self._observers.append(callback)
        return callback

    def unsubscribe(self, callback: ChangeCallback) -> bool:
        """
        Remove a change observer.

        Returns:
            True if the observer was registered
        """
        with self._observers_lock:
            try:
                self._observers.remove(callback)
            except ValueError:
                return False
        return True

    def _notify(self) -> None:
        with self._observers_lock:
            observers = list(self._observers)
        for callback in observers:
            try:
                callback()
            except Exception as e:
                logger.error(f"History observer {callback!r} failed: {e}")

    # Mutations

    def insert(self, content: Union[str, bytes], content_type: ContentType) -> int:
        """
        Append a new item, evicting the oldest beyond capacity.

        Args:
            content: Text for TEXT items, PNG bytes for IMAGE items
            content_type: Kind of content

        Returns:
            ID of the new item

        Raises:
            ValueError: If content does not match content_type
            StorageError: If the database write fails
        """
        if content_type is ContentType.TEXT:
            if not isinstance(content, str) or not content:
                raise ValueError("Text items require a non-empty string")
            text, image_data = content, None
        elif content_type is ContentType.IMAGE:
            if not isinstance(content, (bytes, bytearray)) or not content:
                raise ValueError("Image items require non-empty PNG bytes")
            text, image_data = None, bytes(content)
        else:
            raise ValueError(f"Unsupported content type: {content_type!r}")

        with self._write_lock:
            item_id, evicted = self.db.insert_bounded(content_type, text, image_data, self.capacity)

        if evicted:
            logger.info(f"Added {content_type.value} item {item_id}, evicted {evicted} oldest")
        else:
            logger.info(f"Added {content_type.value} item {item_id}")
        self._notify()
        return item_id

    def delete(self, item_id: int) -> bool:
        """
        Delete an item. Deleting a missing id is not an error.

        Args:
            item_id: ID of item to delete

        Returns:
            True if a row was removed, False if the id was not present
        """
        with self._write_lock:
            removed = self.db.delete(item_id)

        if removed:
            logger.info(f"Deleted item {item_id}")
        else:
            logger.debug(f"Delete of missing item {item_id} ignored")
        self._notify()
        return removed

    def clear_all(self) -> int:
        """
        Remove every item.

        Returns:
            Number of items removed
        """
        with self._write_lock:
            removed = self.db.clear()

        logger.info(f"Cleared history ({removed} items)")
        self._notify()
        return removed

    # Reads

    def query(self, search: Optional[str] = None) -> List[ClipboardItem]:
        """
        Recent items, newest first, at most capacity of them.

        Args:
            search: Optional case-sensitive substring. When non-empty, only
                text items containing it are returned and images are
                excluded.

        Returns:
            List of ClipboardItem instances
        """
        return self.db.recent(self.capacity, search or None)

    def get_by_id(self, item_id: int) -> Optional[ClipboardItem]:
        """
        Get item by ID.

        Args:
            item_id: ID of item to retrieve

        Returns:
            ClipboardItem if found, None otherwise
        """
        return self.db.get_by_id(item_id)

    def count(self) -> int:
        """Number of items currently stored."""
        return self.db.count()

    # Export methods

    def export_json(self, items: List[ClipboardItem], path: Path) -> None:
        """
        Export items to JSON.

        Args:
            items: List of ClipboardItem instances to export
            path: Destination file path
        """
        data = [item.to_dict() for item in items]

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Exported {len(items)} items to JSON: {path}")

    def export_text(self, items: List[ClipboardItem], path: Path) -> None:
        """
        Export items to plain text. Images are written as a placeholder line.

        Args:
            items: List of ClipboardItem instances to export
            path: Destination file path
        """
        lines = []

        for item in items:
            timestamp_str = item.created_at.strftime("%Y-%m-%d %H:%M:%S")
            lines.append(f"[{timestamp_str}] #{item.id}")
            lines.append(item.text if item.is_text else item.preview())
            lines.append("")

        with open(path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines))

        logger.info(f"Exported {len(items)} items to text: {path}")
