"""Set of application identifiers whose clipboard activity is ignored."""

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class ExclusionSet:
    """
    Mutable, thread-safe set of excluded application identifiers.

    The set may be edited at any time from another thread; the monitor
    reads it on every poll.
    """

    def __init__(self, app_ids: Optional[Iterable[str]] = None):
        self._lock = threading.Lock()
        self._app_ids = {a for a in (app_ids or []) if a}

    @classmethod
    def load(cls, path: Optional[Path], defaults: Optional[Iterable[str]] = None) -> 'ExclusionSet':
        """
        Load exclusions from a JSON list file.

        Args:
            path: File holding a JSON list of identifiers
            defaults: Identifiers to use when the file does not exist

        Returns:
            ExclusionSet; empty if the file exists but cannot be read
        """
        if path is None or not Path(path).exists():
            return cls(defaults)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError("expected a JSON list of application ids")
            app_ids = [str(a) for a in data]
            logger.info(f"Loaded {len(app_ids)} excluded applications from {path}")
            return cls(app_ids)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable exclusion list {path}: {e}. Excluding nothing")
            return cls()

    def save(self, path: Path) -> None:
        """Write the identifiers to a JSON list file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.snapshot(), f, indent=2)
        logger.debug(f"Saved exclusion list to {path}")

    def add(self, app_id: str) -> bool:
        """Add an identifier. Returns False if blank or already present."""
        app_id = app_id.strip()
        if not app_id:
            return False
        with self._lock:
            if app_id in self._app_ids:
                return False
            self._app_ids.add(app_id)
        return True

    def remove(self, app_id: str) -> bool:
        with self._lock:
            if app_id not in self._app_ids:
                return False
            self._app_ids.discard(app_id)
        return True

    def replace(self, app_ids: Iterable[str]) -> None:
        """Swap in a new set of identifiers."""
        new_ids = {a for a in app_ids if a}
        with self._lock:
            self._app_ids = new_ids

    def snapshot(self) -> List[str]:
        """Sorted copy of the current identifiers."""
        with self._lock:
            return sorted(self._app_ids)

    def __contains__(self, app_id: object) -> bool:
        with self._lock:
            return app_id in self._app_ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._app_ids)
