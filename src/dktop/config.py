"""
Configuration management for dktop.

This module provides configuration file support with YAML format,
user preferences, and default settings.

Features:
- YAML configuration file at ~/.config/dktop/config.yaml
  (%APPDATA%\\dktop\\config.yaml on Windows)
- Default values with user overrides
- Autostart list shared by the dashboard and the daemon
- Log level / location override

Architecture:
- ConfigManager: Main configuration interface
- Merges user config with defaults
- Provides typed access to settings
- Handles missing/invalid config gracefully on load, raises on save
"""

import os
import sys
import yaml
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

VIEWS = ("containers", "images")


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class AppConfig:
    """Main application configuration."""
    refresh_rate: int = 1000  # milliseconds
    default_view: str = "containers"
    autostart_list: List[str] = field(default_factory=list)
    log_lines: int = 100
    logging: LogConfig = field(default_factory=LogConfig)


def get_config_dir() -> Path:
    """Platform config directory for dktop."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        base = Path(app_data) if app_data else Path.home() / "AppData" / "Roaming"
        return base / "dktop"
    return Path.home() / ".config" / "dktop"


def get_config_path() -> Path:
    return get_config_dir() / "config.yaml"


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, path: Optional[Path] = None):
        self.config_file = Path(path) if path else get_config_path()
        self.config_dir = self.config_file.parent
        self._config: AppConfig = AppConfig()
        self.load_config()

    @property
    def config(self) -> AppConfig:
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from YAML file.

        A missing file or unreadable YAML leaves the defaults in place.
        """
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r') as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ValueError("top level of config must be a mapping")
                self._config = self._merge_configs(AppConfig(), user_config)
                logger.debug(f"Loaded configuration from {self.config_file}")
            else:
                self._config = AppConfig()
                logger.debug(f"No configuration at {self.config_file}, using defaults")
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()
        return self._config

    def save_config(self) -> None:
        """Save current configuration to YAML file.

        Raises:
            OSError: the directory or file could not be written.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)
        config_dict = self._config_to_dict(self._config)
        with open(self.config_file, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)
        logger.debug(f"Saved configuration to {self.config_file}")

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        logging_section = user.get('logging')
        if isinstance(logging_section, dict):
            self._merge_dataclass(default.logging, logging_section)

        top_level = {k: v for k, v in user.items() if k != 'logging'}
        self._merge_dataclass(default, top_level)

        if default.default_view not in VIEWS:
            logger.warning(f"Unknown default_view {default.default_view!r}, using containers")
            default.default_view = "containers"
        default.autostart_list = [str(entry) for entry in (default.autostart_list or [])]
        default.refresh_rate = max(int(default.refresh_rate), 100)
        default.log_lines = max(int(default.log_lines), 1)
        return default

    def _merge_dataclass(self, obj: Any, updates: Dict[str, Any]) -> None:
        """Merge updates into dataclass object, ignoring unknown keys."""
        for key, value in updates.items():
            if hasattr(obj, key):
                setattr(obj, key, value)
            else:
                logger.debug(f"Ignoring unknown config key {key!r}")

    def _config_to_dict(self, config: AppConfig) -> Dict[str, Any]:
        """Convert config dataclass to dictionary."""
        return {
            'refresh_rate': config.refresh_rate,
            'default_view': config.default_view,
            'autostart_list': list(config.autostart_list),
            'log_lines': config.log_lines,
            'logging': {
                'level': config.logging.level,
                'file_path': config.logging.file_path,
                'max_size_mb': config.logging.max_size_mb,
                'backup_count': config.logging.backup_count,
            },
        }

    # --- autostart membership ---------------------------------------------

    def is_autostart(self, id_or_name: str) -> bool:
        return id_or_name in self._config.autostart_list

    def add_autostart(self, id_or_name: str) -> None:
        if id_or_name not in self._config.autostart_list:
            self._config.autostart_list.append(id_or_name)

    def remove_autostart(self, id_or_name: str) -> None:
        if id_or_name in self._config.autostart_list:
            self._config.autostart_list.remove(id_or_name)

    # --- typed accessors ---------------------------------------------------

    def get_log_level(self) -> str:
        """Get configured log level."""
        return self._config.logging.level.upper()

    def get_custom_log_path(self) -> Optional[str]:
        """Get custom log file path if configured."""
        return self._config.logging.file_path

    def get_refresh_interval(self) -> float:
        """Refresh interval in seconds."""
        return self._config.refresh_rate / 1000.0
