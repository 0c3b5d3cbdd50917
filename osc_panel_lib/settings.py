"""
Settings

Application settings loaded from a YAML file. Missing or broken files
fall back to defaults.
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .model import DEFAULT_HOST, DEFAULT_PORT
from .storage import DEFAULT_STATE_PATH

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "osc_panel_lib" / "config.yaml"


@dataclass
class PanelSettings:
    """
    Settings for the panel shell.

    Attributes:
        host: Destination host used for a fresh state
        port: Default destination port used for a fresh state
        state_path: Where the application state is persisted
        log_level: Logging level name
    """
    host: str = DEFAULT_HOST
    port: str = DEFAULT_PORT
    state_path: Path = field(default_factory=lambda: DEFAULT_STATE_PATH)
    log_level: str = "INFO"


def load_settings(path: Optional[Path] = None) -> PanelSettings:
    """
    Load settings from YAML.

    Args:
        path: File path (default: ~/.config/osc_panel_lib/config.yaml)

    Returns:
        PanelSettings (defaults for anything missing)
    """
    path = path or DEFAULT_CONFIG_PATH
    settings = PanelSettings()

    if not path.exists():
        logger.info(f"No config file at {path}")
        return settings

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config at {path}: expected a mapping")
            return settings

        if "host" in data:
            settings.host = str(data["host"])
        if "port" in data:
            settings.port = str(data["port"])
        if data.get("state_path"):
            settings.state_path = Path(data["state_path"]).expanduser()
        if "log_level" in data:
            settings.log_level = str(data["log_level"]).upper()

        logger.info(f"Loaded settings from {path}")
        return settings

    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        return PanelSettings()


def save_settings(settings: PanelSettings, path: Optional[Path] = None) -> bool:
    """
    Save settings to YAML.

    Returns:
        True if saved successfully
    """
    path = path or DEFAULT_CONFIG_PATH
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = asdict(settings)
        data["state_path"] = str(settings.state_path)
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        logger.info(f"Saved settings to {path}")
        return True
    except Exception as e:
        logger.error(f"Failed to save config: {e}")
        return False
