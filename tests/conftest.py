"""Shared pytest fixtures for ClipMate tests."""

import io
import tempfile
from pathlib import Path
from typing import List

import pytest
from PIL import Image

from clipmate.clipboard.backends import ClipboardBackend
from clipmate.config import MonitorConfig, StoreConfig
from clipmate.persistence.database import ClipboardDatabase
from clipmate.persistence.history_store import HistoryStore


class FakeClipboard(ClipboardBackend):
    """In-memory clipboard owned by the test."""

    name = "fake"

    def __init__(self):
        super().__init__(timeout_seconds=1.0)
        self.targets = {}
        self.probes = 0
        self.fail_next_read = None
        self.written = []

    def set_text(self, text: str) -> None:
        self.targets = {
            "text/plain;charset=utf-8": text.encode("utf-8"),
            "UTF8_STRING": text.encode("utf-8"),
        }

    def set_image(self, data: bytes, mime: str = "image/png") -> None:
        self.targets = {mime: data}

    def set_targets(self, targets: dict) -> None:
        self.targets = dict(targets)

    def _list_types(self) -> List[str]:
        self.probes += 1
        return list(self.targets)

    def _read(self, target: str) -> bytes:
        if self.fail_next_read is not None:
            error, self.fail_next_read = self.fail_next_read, None
            raise error
        return self.targets.get(target, b"")

    def _write(self, data: bytes, target: str) -> None:
        self.written.append((target, data))
        self.targets = {target: data}


def make_png(color=(255, 0, 0), size=(4, 4), fmt: str = "PNG") -> bytes:
    """Encode a solid-color image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def temp_db_path():
    """Temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def db(temp_db_path):
    """Initialized test database."""
    database = ClipboardDatabase(temp_db_path)
    yield database
    # Cleanup handled by temp_db_path fixture


@pytest.fixture
def store(temp_db_path):
    """History store with the default capacity."""
    return HistoryStore(StoreConfig(db_path=temp_db_path))


@pytest.fixture
def small_store(temp_db_path):
    """History store holding at most three items."""
    return HistoryStore(StoreConfig(db_path=temp_db_path, capacity=3))


@pytest.fixture
def fake_clipboard():
    """In-memory clipboard backend."""
    return FakeClipboard()


@pytest.fixture
def monitor_config(tmp_path):
    """Monitor configuration with a fast interval and no exclusion file."""
    return MonitorConfig(
        poll_interval_ms=50,
        app_id="clipmate",
        excluded_apps=[],
        exclusions_path=tmp_path / "excluded_apps.json",
    )


@pytest.fixture
def png_bytes():
    """Small PNG image."""
    return make_png()


@pytest.fixture
def image_factory():
    """Function encoding solid-color images: (color, size, fmt) -> bytes."""
    return make_png
