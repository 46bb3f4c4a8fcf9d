"""Shared fixtures for the import pipeline tests."""

from pathlib import Path

import pytest

from catalog.storage.database import initialize_database
from catalog.storage.jobs import JobStatusStore


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.db"
    initialize_database(path)
    return path


@pytest.fixture
def job_store(db_path: Path) -> JobStatusStore:
    return JobStatusStore(db_path)
