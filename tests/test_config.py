"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import yaml

from catalog.config import AppConfig, LoggingConfig, configure_logging, load_config


class TestAppConfigDefaults:
    """Test that AppConfig provides sensible defaults."""

    def test_default_config_creates_successfully(self) -> None:
        config = AppConfig()
        assert config.app.name == "Book Catalog"
        assert config.app.version == "1.0.0"

    def test_default_import_config(self) -> None:
        config = AppConfig()
        assert config.importer.chunk_size == 100
        assert config.importer.max_upload_bytes == 10 * 1024 * 1024
        assert config.importer.allowed_extensions == [".csv", ".txt"]
        assert "text/csv" in config.importer.allowed_content_types
        assert config.importer.delete_after_import is True

    def test_default_dispatcher_config(self) -> None:
        config = AppConfig()
        assert config.dispatcher.max_workers == 2
        assert config.dispatcher.job_timeout_seconds == 3600

    def test_default_storage_config(self) -> None:
        config = AppConfig()
        assert config.storage.sqlite_path == "./db/catalog.db"
        assert config.storage.uploads_dir == "./data/imports"

    def test_default_logging_config(self) -> None:
        config = AppConfig()
        assert config.logging.level == "INFO"


class TestLoadConfig:
    """Test loading config from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_data = {
            "app": {"name": "Test App", "version": "0.1.0"},
            "import": {"chunk_size": 25},
            "dispatcher": {"max_workers": 4},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(yaml_data))

        config = load_config(config_file)
        assert config.app.name == "Test App"
        assert config.app.version == "0.1.0"
        assert config.importer.chunk_size == 25
        assert config.dispatcher.max_workers == 4
        # Other fields keep defaults
        assert config.importer.max_upload_bytes == 10 * 1024 * 1024

    def test_load_missing_yaml_uses_defaults(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("CATALOG_DB_PATH", raising=False)
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.app.name == "Book Catalog"
        assert config.storage.sqlite_path == "./db/catalog.db"

    def test_env_vars_override_storage(self, tmp_path: Path, monkeypatch) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("{}")

        monkeypatch.setenv("CATALOG_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("CATALOG_UPLOADS_DIR", "/tmp/uploads")
        monkeypatch.setenv("CATALOG_LOG_LEVEL", "DEBUG")

        config = load_config(config_file)
        assert config.storage.sqlite_path == "/tmp/other.db"
        assert config.storage.uploads_dir == "/tmp/uploads"
        assert config.logging.level == "DEBUG"

    def test_load_project_config_yaml(self, monkeypatch) -> None:
        """Test loading the actual project config.yaml."""
        monkeypatch.delenv("CATALOG_DB_PATH", raising=False)
        config_file = Path(__file__).parent.parent / "config.yaml"
        config = load_config(config_file)
        assert config.app.name == "Book Catalog"
        assert config.importer.chunk_size == 100
        assert config.storage.sqlite_path == "./db/catalog.db"


class TestConfigureLogging:
    def test_passes_level_and_format(self) -> None:
        with patch("catalog.config.logging.basicConfig") as basic_config:
            configure_logging(LoggingConfig(level="debug", format="%(message)s"))
        basic_config.assert_called_once_with(level="DEBUG", format="%(message)s")
