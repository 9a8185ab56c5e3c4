"""
Configuration management for Atelier.

This module handles loading and accessing configuration values from config.yaml.
Missing files or keys fall back to built-in defaults.
"""

import yaml
from pathlib import Path
from typing import Any, Dict
import logging


class ConfigManager:
    """
    Manages configuration loading and access for Atelier.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Using default configuration: {e}")
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "store": {
                "filename": "atelier.db",
                "workspace_key": "atelier-projects"
            },
            "persistence": {
                "saving_dwell": 1.5,
                "commit_quiet": 0.5
            },
            "paths": {
                "log_file": "atelier.log",
                "export_dir": "exports"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "workspace": {
                "seed_on_first_run": True
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "store.filename")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("store.workspace_key")  # Returns "atelier-projects"
            config.get("persistence.saving_dwell")  # Returns 1.5
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def database_filename(self) -> str:
        """Get the workspace store filename."""
        return self.get("store.filename", "atelier.db")

    @property
    def workspace_key(self) -> str:
        """Get the key the workspace is stored under."""
        return self.get("store.workspace_key", "atelier-projects")

    @property
    def saving_dwell(self) -> float:
        """Seconds without writes before the saving indicator settles."""
        return float(self.get("persistence.saving_dwell", 1.5))

    @property
    def commit_quiet(self) -> float:
        """Seconds without edits before a draft is committed."""
        return float(self.get("persistence.commit_quiet", 0.5))

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "atelier.log")

    @property
    def export_directory(self) -> str:
        """Get the default export directory."""
        return self.get("paths.export_dir", "exports")

    @property
    def seed_on_first_run(self) -> bool:
        """Whether an empty store is filled with the welcome workspace."""
        return bool(self.get("workspace.seed_on_first_run", True))


# Global configuration instance
config = ConfigManager()

