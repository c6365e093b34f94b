"""Tests for ClipMate D-Bus daemon service."""
import importlib
import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from clipmate.config import ClipmateConfig, StoreConfig
from clipmate.exceptions import StorageError
from clipmate.persistence.models import ContentType

# ── Bootstrap: patch pydbus and GLib before daemon module loads ──────────
# pydbus signal() is a descriptor that prevents instance-level assignment.
# We replace it with a simple factory so tests can inspect signal calls.

class _FakeSignal:
    """Drop-in for pydbus.generic.signal that allows per-instance mocking."""

    def __init__(self):
        self._store = {}
        self.name = "anon"

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        key = id(obj)
        if key not in self._store:
            self._store[key] = MagicMock(name=f"signal_{self.name}")
        return self._store[key]

    def __set__(self, obj, value):
        self._store[id(obj)] = value


def _build_stub_modules():
    """Build local stubs used for daemon imports and runtime checks."""
    fake_pydbus_generic = MagicMock()
    fake_pydbus_generic.signal = _FakeSignal
    fake_pydbus = MagicMock()
    fake_pydbus.generic = fake_pydbus_generic
    fake_pydbus.SessionBus = MagicMock

    fake_glib = MagicMock()
    # GLib.idle_add should invoke the callback immediately in tests
    fake_glib.idle_add = lambda fn, *args: fn(*args)
    fake_glib.SOURCE_REMOVE = False

    fake_gi_repo = MagicMock()
    fake_gi_repo.GLib = fake_glib
    fake_gi = MagicMock()
    fake_gi.repository = fake_gi_repo

    return {
        "pydbus": fake_pydbus,
        "pydbus.generic": fake_pydbus_generic,
        "gi": fake_gi,
        "gi.repository": fake_gi_repo,
    }


def _import_daemon_module(stub_modules):
    """Import daemon module with local D-Bus/GLib stubs."""

    with patch.dict(
        sys.modules,
        stub_modules,
    ):
        sys.modules.pop("clipmate.service.daemon", None)
        module = importlib.import_module("clipmate.service.daemon")
    return module


@pytest.fixture
def daemon_module():
    return _import_daemon_module(_build_stub_modules())


@pytest.fixture
def service(daemon_module, temp_db_path, monitor_config, fake_clipboard):
    """Service over a real store and the in-memory clipboard."""
    monitor_config.excluded_apps = ["KeePassXC"]
    config = ClipmateConfig(
        monitor=monitor_config,
        store=StoreConfig(db_path=temp_db_path, capacity=3),
    )
    svc = daemon_module.ClipmateService(config=config, backend=fake_clipboard)
    svc.monitor.frontmost_app = lambda: None
    yield svc
    svc.monitor.stop(timeout=2.0)


class TestServiceWiring:
    """Tests for component construction."""

    def test_components_share_backend_and_store(self, service, fake_clipboard):
        assert service.backend is fake_clipboard
        assert service.monitor.backend is fake_clipboard
        assert service.monitor.store is service.store
        assert service.clipboard_manager.backend is fake_clipboard
        assert service.store.capacity == 3

    def test_default_exclusions_loaded(self, service):
        assert service.GetExclusions() == ["KeePassXC"]

    def test_exclusions_file_overrides_defaults(self, daemon_module, temp_db_path, monitor_config, fake_clipboard):
        monitor_config.exclusions_path.write_text(json.dumps(["Bitwarden"]))
        config = ClipmateConfig(monitor=monitor_config, store=StoreConfig(db_path=temp_db_path))

        svc = daemon_module.ClipmateService(config=config, backend=fake_clipboard)

        assert svc.GetExclusions() == ["Bitwarden"]

    def test_backend_created_from_config(self, daemon_module, temp_db_path, monitor_config):
        config = ClipmateConfig(monitor=monitor_config, store=StoreConfig(db_path=temp_db_path))
        with patch.object(daemon_module, "create_backend") as mock_create:
            svc = daemon_module.ClipmateService(config=config)

        mock_create.assert_called_once_with(config.clipboard)
        assert svc.backend is mock_create.return_value


class TestHistoryMethods:
    """Tests for history D-Bus methods (without actual D-Bus)."""

    def test_get_history(self, service, png_bytes):
        first = service.store.insert("hello", ContentType.TEXT)
        second = service.store.insert(png_bytes, ContentType.IMAGE)

        rows = service.GetHistory("")

        assert [(r[0], r[1], r[2]) for r in rows] == [
            (second, "image", ""),
            (first, "text", "hello"),
        ]
        assert all(isinstance(r[3], str) for r in rows)

    def test_get_history_search(self, service, png_bytes):
        service.store.insert("foo", ContentType.TEXT)
        service.store.insert("Foo", ContentType.TEXT)
        service.store.insert(png_bytes, ContentType.IMAGE)

        rows = service.GetHistory("foo")

        assert [r[2] for r in rows] == ["foo"]

    def test_get_image(self, service, png_bytes):
        image_id = service.store.insert(png_bytes, ContentType.IMAGE)
        text_id = service.store.insert("t", ContentType.TEXT)

        assert service.GetImage(image_id) == png_bytes
        assert service.GetImage(text_id) == b""
        assert service.GetImage(999) == b""

    def test_delete_item(self, service):
        item_id = service.store.insert("a", ContentType.TEXT)

        assert service.DeleteItem(item_id) is True
        assert service.DeleteItem(item_id) is False
        assert service.GetHistory("") == []

    def test_clear_history(self, service):
        service.store.insert("a", ContentType.TEXT)
        service.store.insert("b", ContentType.TEXT)

        assert service.ClearHistory() == 2
        assert service.GetHistory("") == []

    def test_store_error_emits_error_signal(self, service):
        with patch.object(service.store, "query", side_effect=StorageError("database is locked")):
            with pytest.raises(StorageError):
                service.GetHistory("")

        service.ErrorOccurred.assert_called_once_with("database is locked")


class TestHistoryChangedSignal:
    """HistoryChanged must follow every store mutation."""

    def test_insert_emits(self, service):
        service.store.insert("a", ContentType.TEXT)
        service.HistoryChanged.assert_called_once_with()

    def test_delete_and_clear_emit(self, service):
        item_id = service.store.insert("a", ContentType.TEXT)
        service.HistoryChanged.reset_mock()

        service.DeleteItem(item_id)
        service.ClearHistory()

        assert service.HistoryChanged.call_count == 2

    def test_monitor_capture_emits(self, service, fake_clipboard):
        fake_clipboard.set_text("copied")
        service.monitor.poll()

        service.HistoryChanged.assert_called_once_with()

    def test_cleanup_unsubscribes(self, service):
        service._cleanup()
        service.store.insert("a", ContentType.TEXT)

        service.HistoryChanged.assert_not_called()


class TestCopyItem:
    """Tests for writing history back to the clipboard."""

    def test_copy_text(self, service, fake_clipboard):
        item_id = service.store.insert("hello", ContentType.TEXT)

        assert service.CopyItem(item_id) is True
        assert fake_clipboard.written[-1][1] == b"hello"

    def test_copy_image(self, service, fake_clipboard, png_bytes):
        item_id = service.store.insert(png_bytes, ContentType.IMAGE)

        assert service.CopyItem(item_id) is True
        assert fake_clipboard.written[-1] == ("image/png", png_bytes)

    def test_copy_missing(self, service, fake_clipboard):
        assert service.CopyItem(42) is False
        assert fake_clipboard.written == []

    def test_copy_failure_emits_error(self, service):
        item_id = service.store.insert("hello", ContentType.TEXT)
        with patch.object(service.clipboard_manager, "copy_item", return_value=False):
            assert service.CopyItem(item_id) is False

        service.ErrorOccurred.assert_called_once()


class TestExclusionMethods:
    """Tests for editing the exclusion list over D-Bus."""

    def test_add_exclusion_persists(self, service, monitor_config):
        assert service.AddExclusion("Bitwarden") is True
        assert service.AddExclusion("Bitwarden") is False

        saved = json.loads(monitor_config.exclusions_path.read_text())
        assert saved == ["Bitwarden", "KeePassXC"]

    def test_remove_exclusion_persists(self, service, monitor_config):
        assert service.RemoveExclusion("KeePassXC") is True
        assert service.RemoveExclusion("KeePassXC") is False

        assert json.loads(monitor_config.exclusions_path.read_text()) == []

    def test_added_exclusion_applies_to_monitor(self, service, fake_clipboard):
        service.monitor.frontmost_app = lambda: "Bitwarden"
        service.AddExclusion("Bitwarden")
        fake_clipboard.set_text("secret")

        service.monitor.poll()

        assert service.GetHistory("") == []

    def test_reload_exclusions(self, service, monitor_config):
        monitor_config.exclusions_path.write_text(json.dumps(["A", "B"]))

        assert service.ReloadExclusions() == 2
        assert service.GetExclusions() == ["A", "B"]

    def test_reload_unreadable_file_clears(self, service, monitor_config):
        monitor_config.exclusions_path.write_text("{{{")

        assert service.ReloadExclusions() == 0

    def test_save_failure_emits_error(self, service):
        with patch.object(service.exclusions, "save", side_effect=OSError("read-only")):
            assert service.AddExclusion("Bitwarden") is True

        service.ErrorOccurred.assert_called_once()


class TestLifecycle:
    """Tests for status, run and quit."""

    def test_status_idle(self, service):
        assert service.GetStatus() == "idle"

    def test_status_monitoring(self, service):
        service.monitor.start()
        assert service.GetStatus() == "monitoring"

    def test_quit_stops_monitor_and_loop(self, service):
        service.monitor.start()
        service._loop = MagicMock()

        service.Quit()

        assert service.GetStatus() == "idle"
        service._loop.quit.assert_called_once()

    def test_quit_without_loop(self, service):
        service.Quit()
        assert service.GetStatus() == "idle"

    def test_run_publishes_and_cleans_up(self, daemon_module, service):
        with patch.object(daemon_module, "SessionBus") as mock_bus_cls, \
             patch.object(daemon_module, "GLib") as mock_glib, \
             patch.object(daemon_module.signal_module, "signal") as mock_signal:
            mock_glib.MainLoop.return_value.run.side_effect = lambda: None

            service.run()

        mock_bus_cls.return_value.publish.assert_called_once_with("org.clipmate.History", service)
        assert mock_signal.call_count == 2
        mock_glib.MainLoop.return_value.run.assert_called_once()
        assert service.GetStatus() == "idle"

    def test_run_failure_propagates(self, daemon_module, service):
        with patch.object(daemon_module, "SessionBus", side_effect=Exception("no session bus")):
            with pytest.raises(Exception, match="no session bus"):
                service.run()

        assert service.GetStatus() == "idle"
