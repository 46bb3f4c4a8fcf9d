"""Data models for the book catalog import service."""

from catalog.models.book import Author, Book, Genre
from catalog.models.import_job import (
    ImportJob,
    ImportStatus,
    InvalidTransitionError,
    RowError,
)
from catalog.models.row import BookCreated, CsvRow, MalformedRow, RowFailure

__all__ = [
    "Author",
    "Book",
    "BookCreated",
    "CsvRow",
    "Genre",
    "ImportJob",
    "ImportStatus",
    "InvalidTransitionError",
    "MalformedRow",
    "RowError",
    "RowFailure",
]
