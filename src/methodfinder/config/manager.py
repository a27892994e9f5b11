"""
Configuration Manager.

Handles persistence of user settings: which catalog and rule files to use,
logging, and display defaults for the command line.
"""

import os
import json
import shutil
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from methodfinder.utils.logger import log


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConfigManager:
    """
    JSON-backed configuration with schema versioning.

    Features:
    - Default structure back-fill for missing or mistyped sections
    - Nested key access via dot notation
    - Timestamp tracking (created_at, updated_at)
    - Backup of the previous file on every save
    """

    CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".methodfinder")
    CONFIG_FILENAME = "config.json"
    CURRENT_SCHEMA_VERSION = 1

    DEFAULT_CONFIG = {
        "version": "1.0",
        "schema_version": 1,
        "created_at": None,  # Set on creation
        "updated_at": None,  # Set on every save

        "paths": {
            "catalog": None,  # None = bundled data/methods_data.json
            "rules": None,    # None = bundled data/semantic_rules.yaml
        },

        "logging": {
            "level": "INFO",
            "file": None,
        },

        "display": {
            "show_excluded": False,
            "show_unlisted": False,
        },
    }

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the config manager and load config.

        Args:
            config_dir: Directory holding config.json. Falls back to the
                        METHODFINDER_CONFIG_DIR env var, then ~/.methodfinder
        """
        self.config_dir = config_dir or os.getenv("METHODFINDER_CONFIG_DIR") or self.CONFIG_DIR
        self.config_file = os.path.join(self.config_dir, self.CONFIG_FILENAME)
        self._ensure_config_dir()
        self.config = self._load_config()
        self._validate_and_migrate()

    def _ensure_config_dir(self) -> None:
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

    def _load_config(self) -> Dict[str, Any]:
        """Load config from file or create default."""
        if not os.path.exists(self.config_file):
            config = self._create_default_config()
            self._save_config(config)
            return config

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load config: {e}. Creating new config.")
            loaded = None

        if not isinstance(loaded, dict):
            config = self._create_default_config()
            self._save_config(config)
            return config

        return loaded

    def _create_default_config(self) -> Dict[str, Any]:
        config = self._deep_copy(self.DEFAULT_CONFIG)
        now = _now()
        config["created_at"] = now
        config["updated_at"] = now
        return config

    def _save_config(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Save config to file with backup."""
        if config is None:
            config = self.config

        config["updated_at"] = _now()

        if os.path.exists(self.config_file):
            try:
                shutil.copy2(self.config_file, self.config_file + ".bak")
            except IOError as e:
                log.warning(f"Failed to backup config: {e}")

        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            log.error(f"Failed to save config: {e}")

    def _validate_and_migrate(self) -> None:
        schema_version = self.config.get("schema_version", self.CURRENT_SCHEMA_VERSION)

        if not isinstance(schema_version, int) or schema_version > self.CURRENT_SCHEMA_VERSION:
            log.warning(
                f"Config schema version {schema_version!r} is not supported; "
                f"expected {self.CURRENT_SCHEMA_VERSION}. Unknown keys are kept as-is."
            )

        self.config["schema_version"] = self.CURRENT_SCHEMA_VERSION
        if not self.config.get("created_at"):
            self.config["created_at"] = _now()

        self._validate_structure()
        self._save_config()

    def _validate_structure(self) -> None:
        """Ensure config has all required keys with correct types."""
        for key, default in self.DEFAULT_CONFIG.items():
            if key not in self.config:
                self.config[key] = self._deep_copy(default)
            elif isinstance(default, dict) and not isinstance(self.config[key], dict):
                self.config[key] = self._deep_copy(default)
            elif isinstance(default, dict):
                for subkey, subdefault in default.items():
                    if subkey not in self.config[key]:
                        self.config[key][subkey] = self._deep_copy(subdefault)

    def _deep_copy(self, obj: Any) -> Any:
        """Deep copy a JSON-serializable object."""
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(i) for i in obj]
        return obj

    # =========================================================================
    # Public API - Get/Set
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value by key.

        Supports dot notation for nested keys:
            manager.get("paths.catalog")
            manager.get("logging.level")
        """
        parts = key.split(".")
        value = self.config

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a config value by key and save.

        Supports dot notation for nested keys:
            manager.set("logging.level", "DEBUG")
        """
        parts = key.split(".")

        parent = self.config
        for part in parts[:-1]:
            if not isinstance(parent.get(part), dict):
                parent[part] = {}
            parent = parent[part]

        parent[parts[-1]] = value
        self._save_config()

    def save_config(self, config: Optional[Dict[str, Any]] = None) -> None:
        self._save_config(config)

    def load_config(self) -> Dict[str, Any]:
        """Reload config from disk."""
        self.config = self._load_config()
        return self.config

    # =========================================================================
    # Path API
    # =========================================================================

    def get_catalog_path(self) -> Optional[str]:
        """Configured catalog file, or None for the bundled catalog."""
        return self.get("paths.catalog")

    def set_catalog_path(self, path: Optional[str]) -> None:
        self.set("paths.catalog", path)

    def get_rules_path(self) -> Optional[str]:
        """Configured rule file, or None for the bundled rules."""
        return self.get("paths.rules")

    def set_rules_path(self, path: Optional[str]) -> None:
        self.set("paths.rules", path)

    def get_log_level(self) -> str:
        return self.get("logging.level") or self.DEFAULT_CONFIG["logging"]["level"]

    def set_log_level(self, level: str) -> None:
        """
        Set the log level.

        Raises:
            ValueError: If level is not a standard logging level name
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {level}. Must be one of {valid_levels}")
        self.set("logging.level", level.upper())


# =============================================================================
# Module-level singleton
# =============================================================================

_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the shared ConfigManager, creating it on first use."""
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager
