"""Entry point for the book catalog import service."""

from pathlib import Path

import uvicorn

from catalog.api import create_app
from catalog.config import configure_logging, load_config
from catalog.storage.database import initialize_database


def main() -> None:
    """Initialize storage and serve the import API."""
    config = load_config()
    configure_logging(config.logging)

    # Ensure required directories exist
    Path(config.storage.uploads_dir).mkdir(parents=True, exist_ok=True)

    # Initialize SQLite database
    initialize_database(config.storage.sqlite_path)

    uvicorn.run(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
