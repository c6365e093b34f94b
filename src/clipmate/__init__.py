"""ClipMate - Clipboard history for the Linux desktop."""

__version__ = "0.1.0"

from .config import (
    ClipmateConfig,
    MonitorConfig,
    StoreConfig,
    ClipboardConfig,
)
from .exceptions import (
    ClipmateError,
    ConfigurationError,
    StorageError,
    ClipboardError,
    ClipboardNotAvailableError,
    ClipboardReadError,
    ImageDecodeError,
)
from .exclusions import ExclusionSet
from .persistence import (
    ClipboardItem,
    ContentType,
    ClipboardDatabase,
    HistoryStore,
)
from .clipboard import (
    ClipboardBackend,
    ClipboardManager,
    ClipboardMonitor,
    FrontmostAppResolver,
    PollOutcome,
)

__all__ = [
    # Configuration
    "ClipmateConfig",
    "MonitorConfig",
    "StoreConfig",
    "ClipboardConfig",
    # Exceptions
    "ClipmateError",
    "ConfigurationError",
    "StorageError",
    "ClipboardError",
    "ClipboardNotAvailableError",
    "ClipboardReadError",
    "ImageDecodeError",
    # History
    "ExclusionSet",
    "ClipboardItem",
    "ContentType",
    "ClipboardDatabase",
    "HistoryStore",
    # Clipboard subsystem
    "ClipboardBackend",
    "ClipboardManager",
    "ClipboardMonitor",
    "FrontmostAppResolver",
    "PollOutcome",
]
