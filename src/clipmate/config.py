"""Configuration management for ClipMate."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_BACKENDS = ["auto", "wayland", "x11"]


def parse_bool_env(env_var: str, default: bool) -> bool:
    """Parse boolean environment variable with validation."""
    value = os.getenv(env_var)
    if value is None:
        return default

    value_lower = value.lower().strip()
    if value_lower in ('true', '1', 'yes', 'on'):
        return True
    elif value_lower in ('false', '0', 'no', 'off', ''):
        return False
    else:
        logger.warning(
            f"Invalid boolean value '{value}' for {env_var}. "
            f"Valid: true/false, 1/0, yes/no, on/off. Using default: {default}"
        )
        return default


def parse_int_env(env_var: str, default: int) -> int:
    """Parse integer environment variable with validation."""
    value = os.getenv(env_var)
    if value is None:
        return default

    try:
        return int(value)
    except ValueError:
        logger.warning(
            f"Invalid integer value '{value}' for {env_var}. "
            f"Using default: {default}"
        )
        return default


def parse_float_env(env_var: str, default: float) -> float:
    """Parse float environment variable with validation."""
    value = os.getenv(env_var)
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        logger.warning(
            f"Invalid float value '{value}' for {env_var}. "
            f"Using default: {default}"
        )
        return default


def default_config_dir() -> Path:
    """Return the configuration directory for the current HOME."""
    return Path.home() / ".config" / "clipmate"


@dataclass
class MonitorConfig:
    """Configuration for the clipboard monitor."""
    poll_interval_ms: int = 750               # Clipboard polling interval
    app_id: str = "clipmate"                  # Our own window class, never captured
    excluded_apps: List[str] = field(default_factory=lambda: ["KeePassXC", "keepassxc"])
    exclusions_path: Optional[Path] = None    # JSON list of excluded app ids

    def __post_init__(self):
        """Set default paths if not provided."""
        if self.exclusions_path is None:
            self.exclusions_path = default_config_dir() / "excluded_apps.json"

    @property
    def poll_interval(self) -> float:
        """Polling interval in seconds."""
        return self.poll_interval_ms / 1000.0


@dataclass
class StoreConfig:
    """Configuration for the history store."""
    db_path: Optional[Path] = None
    capacity: int = 100

    def __post_init__(self):
        """Set default paths if not provided."""
        if self.db_path is None:
            self.db_path = Path.home() / ".local/share/clipmate/history.db"


@dataclass
class ClipboardConfig:
    """Configuration for clipboard access."""
    timeout_seconds: float = 2.0          # Command timeout
    preferred_backend: str = "auto"       # auto, wayland or x11


@dataclass
class ClipmateConfig:
    """Main configuration for ClipMate."""
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    clipboard: ClipboardConfig = field(default_factory=ClipboardConfig)

    @classmethod
    def load(cls) -> 'ClipmateConfig':
        """Load configuration from file and environment variables."""
        # Start with defaults as dict
        config_dict = {
            "monitor": {
                "poll_interval_ms": 750,
                "app_id": "clipmate",
                "excluded_apps": ["KeePassXC", "keepassxc"],
                "exclusions_path": None,
            },
            "store": {
                "db_path": None,
                "capacity": 100,
            },
            "clipboard": {
                "timeout_seconds": 2.0,
                "preferred_backend": "auto",
            },
        }

        # Load from config file if exists
        config_path = default_config_dir() / "config.json"
        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    file_config = json.load(f)
                logger.info(f"Loading configuration from {config_path}")

                for section, values in file_config.items():
                    if section in config_dict and isinstance(values, dict):
                        config_dict[section].update(values)

            except json.JSONDecodeError as e:
                logger.error(
                    f"Configuration file is corrupted or contains invalid JSON:\n"
                    f"  File: {config_path}\n"
                    f"  Error: {e}\n"
                    f"  Using default configuration instead."
                )

            except Exception as e:
                # Other errors (permissions, etc.)
                logger.warning(f"Failed to load config from file: {e}")

        # Override with environment variables
        monitor = config_dict["monitor"]
        monitor["poll_interval_ms"] = parse_int_env('CLIPMATE_POLL_INTERVAL_MS', monitor["poll_interval_ms"])
        monitor["app_id"] = os.getenv('CLIPMATE_APP_ID', monitor["app_id"])

        store = config_dict["store"]
        store["db_path"] = os.getenv('CLIPMATE_DB_PATH') or store["db_path"]
        store["capacity"] = parse_int_env('CLIPMATE_CAPACITY', store["capacity"])

        clipboard = config_dict["clipboard"]
        clipboard["timeout_seconds"] = parse_float_env('CLIPMATE_CLIPBOARD_TIMEOUT_SECONDS', clipboard["timeout_seconds"])
        clipboard["preferred_backend"] = os.getenv('CLIPMATE_CLIPBOARD_BACKEND', clipboard["preferred_backend"])

        # Paths arrive as strings from JSON and the environment
        for section, key in (("monitor", "exclusions_path"), ("store", "db_path")):
            if config_dict[section][key] is not None:
                config_dict[section][key] = Path(config_dict[section][key]).expanduser()

        config = cls(
            monitor=MonitorConfig(**config_dict["monitor"]),
            store=StoreConfig(**config_dict["store"]),
            clipboard=ClipboardConfig(**config_dict["clipboard"]),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration values."""
        if not (50 <= self.monitor.poll_interval_ms <= 60000):
            raise ConfigurationError(
                f"Invalid poll interval {self.monitor.poll_interval_ms}ms. "
                "Must be between 50 and 60000"
            )

        if not self.monitor.app_id:
            raise ConfigurationError("Application id must not be empty")

        if self.store.capacity < 1:
            raise ConfigurationError(
                f"Invalid history capacity {self.store.capacity}. "
                "Must be at least 1"
            )

        if self.clipboard.timeout_seconds <= 0:
            raise ConfigurationError(
                f"Invalid clipboard timeout {self.clipboard.timeout_seconds}. "
                "Must be greater than 0"
            )

        if self.clipboard.preferred_backend not in VALID_BACKENDS:
            raise ConfigurationError(
                f"Invalid clipboard backend '{self.clipboard.preferred_backend}'. "
                f"Valid options: {', '.join(VALID_BACKENDS)}"
            )
