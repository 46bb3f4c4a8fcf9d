"""Tests for data models."""

from datetime import date

import pytest

from catalog.models import (
    Book,
    CsvRow,
    ImportJob,
    ImportStatus,
    InvalidTransitionError,
    RowError,
)


class TestBook:
    def test_create_book(self) -> None:
        book = Book(id=1, title="The Hobbit", isbn="9780261102217", year=date(1937, 1, 1))
        assert book.title == "The Hobbit"
        assert book.year == date(1937, 1, 1)
        assert book.author_ids == []
        assert book.genre_ids == []

    def test_book_defaults(self) -> None:
        book = Book(id=1, title="Test", isbn="1")
        assert book.description is None
        assert book.pages is None
        assert book.created_at is None

    def test_book_serialization(self) -> None:
        book = Book(id=3, title="Test Book", isbn="42", author_ids=[1, 2])
        data = book.model_dump()
        assert data["title"] == "Test Book"
        restored = Book(**data)
        assert restored == book


class TestCsvRow:
    def test_cells_default_to_empty_strings(self) -> None:
        row = CsvRow(row_number=2, title="T", isbn="1")
        assert row.authors == ""
        assert row.pages == ""


class TestImportJob:
    def test_defaults(self) -> None:
        job = ImportJob(id=1, filename="books.csv")
        assert job.status is ImportStatus.PENDING
        assert job.imported_count == 0
        assert job.failed_count == 0
        assert job.errors == []
        assert job.started_at is None
        assert not job.is_terminal

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ImportStatus.PENDING, ImportStatus.PROCESSING),
            (ImportStatus.PENDING, ImportStatus.FAILED),
            (ImportStatus.PROCESSING, ImportStatus.COMPLETED),
            (ImportStatus.PROCESSING, ImportStatus.FAILED),
        ],
    )
    def test_allowed_transitions(self, current: ImportStatus, target: ImportStatus) -> None:
        job = ImportJob(id=1, filename="f.csv", status=current)
        assert job.can_transition_to(target)
        job.ensure_transition(target)  # Should not raise

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ImportStatus.PENDING, ImportStatus.COMPLETED),
            (ImportStatus.PROCESSING, ImportStatus.PENDING),
            (ImportStatus.PROCESSING, ImportStatus.PROCESSING),
            (ImportStatus.COMPLETED, ImportStatus.PROCESSING),
            (ImportStatus.COMPLETED, ImportStatus.FAILED),
            (ImportStatus.FAILED, ImportStatus.PROCESSING),
            (ImportStatus.FAILED, ImportStatus.COMPLETED),
        ],
    )
    def test_forbidden_transitions(self, current: ImportStatus, target: ImportStatus) -> None:
        job = ImportJob(id=7, filename="f.csv", status=current)
        assert not job.can_transition_to(target)
        with pytest.raises(InvalidTransitionError, match="Import 7 cannot move"):
            job.ensure_transition(target)

    def test_terminal_statuses(self) -> None:
        assert ImportJob(id=1, filename="f", status=ImportStatus.COMPLETED).is_terminal
        assert ImportJob(id=1, filename="f", status=ImportStatus.FAILED).is_terminal
        assert not ImportJob(id=1, filename="f", status=ImportStatus.PROCESSING).is_terminal

    def test_status_serializes_as_string(self) -> None:
        job = ImportJob(id=1, filename="f.csv", errors=[RowError(row=2, error="bad")])
        data = job.model_dump(mode="json")
        assert data["status"] == "pending"
        assert data["errors"] == [{"row": 2, "error": "bad"}]
