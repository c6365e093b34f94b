"""SQLite database for clipboard history."""

import sqlite3
import logging
from pathlib import Path
from typing import List, Optional
from datetime import datetime, timezone
from contextlib import contextmanager

from ..exceptions import StorageError
from .models import ClipboardItem, ContentType

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ids grow in insertion order; created_at follows the wall clock and may step back
NEWEST_FIRST = "ORDER BY id DESC"
OLDEST_FIRST = "ORDER BY id ASC"


class ClipboardDatabase:
    """SQLite database holding the clipboard history table."""

    def __init__(self, db_path: Optional[Path] = None, busy_timeout: float = 5.0):
        """
        Initialize database connection and schema.

        Args:
            db_path: Optional path to database file. Defaults to XDG data directory.
            busy_timeout: Seconds to wait for a locked database
        """
        if db_path is None:
            db_path = Path.home() / ".local/share/clipmate/history.db"

        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.db_path.parent}: {e}") from e

        self._init_schema()
        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def _connection(self):
        """
        Context manager for database connections.

        Commits on success, rolls back on failure. SQLite errors are
        re-raised as StorageError.

        Yields:
            sqlite3.Connection with Row factory
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.busy_timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self):
        """Initialize database schema with table and index."""
        with self._connection() as conn:
            cursor = conn.cursor()

            current_version = cursor.execute("PRAGMA user_version").fetchone()[0]

            if current_version == 0:
                logger.info(f"Creating fresh database schema (version {SCHEMA_VERSION})")
                self._create_tables(cursor)
                cursor.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            else:
                logger.debug(f"Database schema version {current_version} is up to date")

    def _create_tables(self, cursor):
        """
        Create the items table and its index.

        Args:
            cursor: sqlite3.Cursor
        """
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                type TEXT NOT NULL,
                text TEXT,
                image BLOB,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at DESC)")

        logger.debug("Database schema created successfully")

    def _row_to_item(self, row: sqlite3.Row) -> ClipboardItem:
        """
        Convert database row to ClipboardItem.

        Args:
            row: sqlite3.Row from query

        Returns:
            ClipboardItem instance
        """
        return ClipboardItem(
            id=row['id'],
            content_type=ContentType(row['type']),
            text=row['text'],
            image_data=bytes(row['image']) if row['image'] is not None else None,
            created_at=datetime.fromisoformat(row['created_at']),
        )

    def insert_bounded(
        self,
        content_type: ContentType,
        text: Optional[str],
        image_data: Optional[bytes],
        capacity: int,
    ) -> tuple[int, int]:
        """
        Insert an item and evict the oldest rows beyond capacity.

        Both steps run in one IMMEDIATE transaction, so the row count seen
        by the eviction cannot be changed by another writer in between.

        Args:
            content_type: Kind of content
            text: Text content (TEXT items)
            image_data: PNG bytes (IMAGE items)
            capacity: Maximum number of rows to keep

        Returns:
            Tuple of (new item id, number of evicted rows)
        """
        created_at = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute(
                "INSERT INTO items (type, text, image, created_at) VALUES (?, ?, ?, ?)",
                (
                    content_type.value,
                    text,
                    sqlite3.Binary(image_data) if image_data is not None else None,
                    created_at,
                )
            )
            item_id = cursor.lastrowid

            count = cursor.execute("SELECT COUNT(*) FROM items").fetchone()[0]
            evicted = 0
            if count > capacity:
                overflow = count - capacity
                cursor.execute(
                    f"DELETE FROM items WHERE id IN "
                    f"(SELECT id FROM items {OLDEST_FIRST} LIMIT ?)",
                    (overflow,)
                )
                evicted = cursor.rowcount
                logger.debug(f"Evicted {evicted} oldest items (capacity {capacity})")

            logger.debug(f"Inserted {content_type.value} item {item_id}")
            return item_id, evicted

    def delete(self, item_id: int) -> bool:
        """
        Delete item by ID.

        Args:
            item_id: ID of item to delete

        Returns:
            True if a row was removed, False if item not found
        """
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM items WHERE id = ?", (item_id,))
            success = cursor.rowcount > 0
            if success:
                logger.debug(f"Deleted item {item_id}")
            return success

    def clear(self) -> int:
        """
        Delete every item.

        Returns:
            Number of rows removed
        """
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM items")
            return cursor.rowcount

    def get_by_id(self, item_id: int) -> Optional[ClipboardItem]:
        """
        Get item by ID.

        Args:
            item_id: ID of item to retrieve

        Returns:
            ClipboardItem if found, None otherwise
        """
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM items WHERE id = ?", (item_id,))
            row = cursor.fetchone()
            return self._row_to_item(row) if row else None

    def recent(self, limit: int, search: Optional[str] = None) -> List[ClipboardItem]:
        """
        Get most recent items, newest first.

        Args:
            limit: Maximum number of items to return
            search: Optional case-sensitive substring; when non-empty only
                text items containing it are returned

        Returns:
            List of ClipboardItem instances
        """
        with self._connection() as conn:
            cursor = conn.cursor()
            if search:
                cursor.execute(
                    f"""
                    SELECT * FROM items
                    WHERE type = ? AND text IS NOT NULL AND instr(text, ?) > 0
                    {NEWEST_FIRST}
                    LIMIT ?
                    """,
                    (ContentType.TEXT.value, search, limit)
                )
            else:
                cursor.execute(f"SELECT * FROM items {NEWEST_FIRST} LIMIT ?", (limit,))
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def count(self) -> int:
        """Number of stored items."""
        with self._connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
