"""Configuration loader for the book catalog import service."""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Book Catalog"
    version: str = "1.0.0"


class ApiConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


class ImportConfig(BaseModel):
    """Bulk CSV import configuration."""

    chunk_size: int = Field(default=100, ge=1)
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: list[str] = Field(default_factory=lambda: [".csv", ".txt"])
    allowed_content_types: list[str] = Field(
        default_factory=lambda: [
            "text/csv",
            "text/plain",
            "application/csv",
            "application/vnd.ms-excel",
        ]
    )
    delete_after_import: bool = True


class DispatcherConfig(BaseModel):
    """Background worker pool configuration."""

    max_workers: int = Field(default=2, ge=1)
    job_timeout_seconds: int = 3600


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/catalog.db"
    uploads_dir: str = "./data/imports"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    api: ApiConfig = Field(default_factory=ApiConfig)
    # "import" is a keyword, so the section is exposed as ``importer``.
    importer: ImportConfig = Field(default_factory=ImportConfig, alias="import")
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"populate_by_name": True}


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment overrides for deployment-specific paths
    config.storage.sqlite_path = os.getenv("CATALOG_DB_PATH", config.storage.sqlite_path)
    config.storage.uploads_dir = os.getenv(
        "CATALOG_UPLOADS_DIR", config.storage.uploads_dir
    )
    config.logging.level = os.getenv("CATALOG_LOG_LEVEL", config.logging.level)

    return config


def configure_logging(config: LoggingConfig) -> None:
    """Configure root logging from the logging section."""
    logging.basicConfig(level=config.level.upper(), format=config.format)
