"""FastAPI application factory for the import service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from catalog.api.routes import router
from catalog.config import AppConfig, load_config
from catalog.dispatcher import ImportDispatcher
from catalog.ingestion.orchestrator import ImportOrchestrator
from catalog.storage.database import initialize_database
from catalog.storage.jobs import JobStatusStore

logger = logging.getLogger(__name__)


def build_dispatcher(config: AppConfig, job_store: JobStatusStore) -> ImportDispatcher:
    orchestrator = ImportOrchestrator(
        db_path=config.storage.sqlite_path,
        job_store=job_store,
        chunk_size=config.importer.chunk_size,
        delete_after_import=config.importer.delete_after_import,
    )
    return ImportDispatcher(
        orchestrator=orchestrator,
        job_store=job_store,
        max_workers=config.dispatcher.max_workers,
        job_timeout_seconds=config.dispatcher.job_timeout_seconds,
    )


def create_app(
    config: AppConfig | None = None,
    dispatcher: ImportDispatcher | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        config: Application configuration; loaded from config.yaml if omitted.
        dispatcher: Dispatcher for background imports; built from config
            if omitted.

    Returns:
        Configured FastAPI instance.
    """
    config = config or load_config()
    job_store = JobStatusStore(config.storage.sqlite_path)
    dispatcher = dispatcher or build_dispatcher(config, job_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        initialize_database(config.storage.sqlite_path)
        Path(config.storage.uploads_dir).mkdir(parents=True, exist_ok=True)
        dispatcher.start()
        logger.info("%s %s ready", config.app.name, config.app.version)
        yield
        dispatcher.shutdown()

    app = FastAPI(
        title=config.app.name,
        description="Catalog service with asynchronous bulk CSV import of books.",
        version=config.app.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.jobs = job_store
    app.state.dispatcher = dispatcher
    app.include_router(router)
    return app
