"""Bulk CSV import: parsing, entity resolution, persistence and orchestration."""

from catalog.ingestion.csv_reader import (
    EXPECTED_HEADERS,
    CsvImportReader,
    CsvSchemaError,
)
from catalog.ingestion.orchestrator import ImportOrchestrator, iter_chunks
from catalog.ingestion.persister import BatchPersister
from catalog.ingestion.resolver import EntityKind, EntityResolver

__all__ = [
    "EXPECTED_HEADERS",
    "BatchPersister",
    "CsvImportReader",
    "CsvSchemaError",
    "EntityKind",
    "EntityResolver",
    "ImportOrchestrator",
    "iter_chunks",
]
