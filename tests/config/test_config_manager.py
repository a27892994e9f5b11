"""
Unit tests for ConfigManager.

Tests cover:
- Default config creation
- Dot-notation get/set and persistence
- Structure back-fill and corrupt file recovery
- Backups on save
"""

import json

import pytest

from methodfinder.config import manager as manager_module
from methodfinder.config.manager import ConfigManager


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".methodfinder"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(temp_config_dir):
    """Path to the config file."""
    return temp_config_dir / "config.json"


# =============================================================================
# Creation
# =============================================================================

class TestDefaultConfig:

    def test_creates_file_with_defaults(self, temp_config_dir, config_file):
        manager = ConfigManager(str(temp_config_dir))

        assert config_file.exists()
        assert manager.get("schema_version") == ConfigManager.CURRENT_SCHEMA_VERSION
        assert manager.get("logging.level") == "INFO"
        assert manager.get_catalog_path() is None
        assert manager.get_rules_path() is None
        assert manager.get("display.show_excluded") is False

    def test_timestamps_set(self, temp_config_dir):
        manager = ConfigManager(str(temp_config_dir))

        assert manager.get("created_at")
        assert manager.get("updated_at")

    def test_creates_missing_directory(self, tmp_path):
        config_dir = tmp_path / "nested" / "dir"

        ConfigManager(str(config_dir))

        assert (config_dir / "config.json").exists()

    def test_env_var_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("METHODFINDER_CONFIG_DIR", str(tmp_path))

        manager = ConfigManager()

        assert manager.config_file == str(tmp_path / "config.json")

    def test_defaults_not_shared_between_instances(self, tmp_path):
        first = ConfigManager(str(tmp_path / "a"))
        first.set("paths.catalog", "/data/a.json")

        second = ConfigManager(str(tmp_path / "b"))

        assert second.get_catalog_path() is None
        assert ConfigManager.DEFAULT_CONFIG["paths"]["catalog"] is None


# =============================================================================
# Get / Set
# =============================================================================

class TestGetSet:

    def test_get_missing_returns_default(self, temp_config_dir):
        manager = ConfigManager(str(temp_config_dir))

        assert manager.get("paths.nothing", "fallback") == "fallback"
        assert manager.get("logging.level.deeper") is None

    def test_set_persists(self, temp_config_dir, config_file):
        manager = ConfigManager(str(temp_config_dir))

        manager.set_catalog_path("/data/methods.json")
        manager.set_rules_path("/data/rules.yaml")

        saved = json.loads(config_file.read_text(encoding="utf-8"))
        assert saved["paths"]["catalog"] == "/data/methods.json"
        assert saved["paths"]["rules"] == "/data/rules.yaml"

        reloaded = ConfigManager(str(temp_config_dir))
        assert reloaded.get_catalog_path() == "/data/methods.json"

    def test_set_creates_intermediate_sections(self, temp_config_dir):
        manager = ConfigManager(str(temp_config_dir))

        manager.set("extra.section.value", 3)

        assert manager.get("extra.section.value") == 3

    def test_set_log_level(self, temp_config_dir):
        manager = ConfigManager(str(temp_config_dir))

        manager.set_log_level("debug")

        assert manager.get_log_level() == "DEBUG"

    def test_invalid_log_level(self, temp_config_dir):
        manager = ConfigManager(str(temp_config_dir))

        with pytest.raises(ValueError):
            manager.set_log_level("LOUD")


# =============================================================================
# Validation and Recovery
# =============================================================================

class TestValidation:

    def test_missing_sections_back_filled(self, temp_config_dir, config_file):
        config_file.write_text(json.dumps({"paths": {"catalog": "/x.json"}}), encoding="utf-8")

        manager = ConfigManager(str(temp_config_dir))

        assert manager.get_catalog_path() == "/x.json"
        assert manager.get_rules_path() is None
        assert manager.get("logging.level") == "INFO"
        assert manager.get("display.show_unlisted") is False

    def test_mistyped_section_replaced(self, temp_config_dir, config_file):
        config_file.write_text(json.dumps({"logging": "verbose"}), encoding="utf-8")

        manager = ConfigManager(str(temp_config_dir))

        assert manager.get("logging.level") == "INFO"

    def test_corrupt_file_replaced(self, temp_config_dir, config_file):
        config_file.write_text("{not json", encoding="utf-8")

        manager = ConfigManager(str(temp_config_dir))

        assert manager.get("schema_version") == ConfigManager.CURRENT_SCHEMA_VERSION
        assert json.loads(config_file.read_text(encoding="utf-8"))["logging"]["level"] == "INFO"

    def test_unknown_keys_kept(self, temp_config_dir, config_file):
        config_file.write_text(json.dumps({"custom": {"a": 1}}), encoding="utf-8")

        manager = ConfigManager(str(temp_config_dir))

        assert manager.get("custom.a") == 1

    def test_backup_written_on_save(self, temp_config_dir, config_file):
        manager = ConfigManager(str(temp_config_dir))

        manager.set("logging.file", "/tmp/methodfinder.log")

        backup = temp_config_dir / "config.json.bak"
        assert backup.exists()


# =============================================================================
# Singleton
# =============================================================================

class TestSingleton:

    def test_get_config_manager_is_cached(self, tmp_path, monkeypatch):
        monkeypatch.setenv("METHODFINDER_CONFIG_DIR", str(tmp_path))
        monkeypatch.setattr(manager_module, "_config_manager", None)

        first = manager_module.get_config_manager()

        assert manager_module.get_config_manager() is first
        assert first.config_dir == str(tmp_path)
