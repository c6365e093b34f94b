"""Configuration persistence utilities."""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import ClipmateConfig

logger = logging.getLogger(__name__)


def save_config_to_file(config: "ClipmateConfig") -> Path:
    """Save configuration to JSON file."""
    from ..config import default_config_dir

    config_dir = default_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.json"

    config_dict = {
        "monitor": {
            "poll_interval_ms": config.monitor.poll_interval_ms,
            "app_id": config.monitor.app_id,
            "excluded_apps": list(config.monitor.excluded_apps),
            "exclusions_path": str(config.monitor.exclusions_path) if config.monitor.exclusions_path else None
        },
        "store": {
            "db_path": str(config.store.db_path) if config.store.db_path else None,
            "capacity": config.store.capacity
        },
        "clipboard": {
            "timeout_seconds": config.clipboard.timeout_seconds,
            "preferred_backend": config.clipboard.preferred_backend
        }
    }

    with open(config_path, "w") as f:
        json.dump(config_dict, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path
