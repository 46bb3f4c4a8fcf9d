"""Creates books from parsed CSV rows inside a chunk's unit of work."""

import logging
import re
import sqlite3
from datetime import date

from catalog.ingestion.resolver import EntityKind, EntityResolver
from catalog.models.book import Book
from catalog.models.row import BookCreated, CsvRow, RowFailure
from catalog.storage.catalog import isbn_exists

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title and ISBN are required fields."

_YEAR_ONLY = re.compile(r"\d{4}")


class InvalidYearError(ValueError):
    """Raised for a non-empty Year cell that is not a year or ISO date."""


def parse_year(value: str) -> date | None:
    """Convert a Year cell to a date.

    A bare four-digit year maps to January 1st of that year; an ISO date
    (``YYYY-MM-DD``) is kept as is. Empty cells are null.

    Raises:
        InvalidYearError: For any other non-empty value.
    """
    value = value.strip()
    if not value:
        return None
    if _YEAR_ONLY.fullmatch(value):
        year = int(value)
        if year < 1:
            raise InvalidYearError(f"Invalid year value '{value}'.")
        return date(year, 1, 1)
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidYearError(f"Invalid year value '{value}'.") from exc


def parse_pages(value: str) -> int | None:
    """Convert a Pages cell to a positive integer, or None when it isn't one.

    Only plain ASCII digits count; ``int()`` alone would also accept
    ``"1_000"`` or non-ASCII digits.
    """
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    pages = int(value)
    return pages if pages > 0 else None


def _optional(value: str) -> str | None:
    value = value.strip()
    return value or None


class BatchPersister:
    """Persists one CSV row as a Book with its author/genre links.

    Business-rule violations come back as RowFailure and leave the
    transaction usable. Storage errors other than the ISBN uniqueness
    conflict propagate so the caller can roll back the whole chunk.

    Args:
        conn: Connection of the chunk's unit of work.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._resolver = EntityResolver(conn)

    def persist_row(self, row: CsvRow) -> BookCreated | RowFailure:
        title = row.title.strip()
        isbn = row.isbn.strip()
        if not title or not isbn:
            return RowFailure(row_number=row.row_number, message=REQUIRED_FIELDS_MESSAGE)

        if isbn_exists(self._conn, isbn):
            return self._duplicate_isbn(row, isbn)

        try:
            year = parse_year(row.year)
        except InvalidYearError as exc:
            return RowFailure(row_number=row.row_number, message=str(exc))

        author_ids = self._resolver.resolve(EntityKind.AUTHOR, row.authors)
        genre_ids = self._resolver.resolve(EntityKind.GENRE, row.genre)

        book = Book(
            id=0,
            title=title,
            description=_optional(row.description),
            edition=_optional(row.edition),
            publisher=_optional(row.publisher),
            year=year,
            format=_optional(row.format),
            pages=parse_pages(row.pages),
            country=_optional(row.country),
            isbn=isbn,
            author_ids=author_ids,
            genre_ids=genre_ids,
        )

        try:
            cursor = self._conn.execute(
                "INSERT INTO books (title, description, edition, publisher, year, "
                "format, pages, country, isbn) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    book.title,
                    book.description,
                    book.edition,
                    book.publisher,
                    book.year.isoformat() if book.year else None,
                    book.format,
                    book.pages,
                    book.country,
                    book.isbn,
                ),
            )
        except sqlite3.IntegrityError:
            # Another import committed the same ISBN since the check above.
            if isbn_exists(self._conn, isbn):
                return self._duplicate_isbn(row, isbn)
            raise

        book.id = cursor.lastrowid
        self._conn.executemany(
            "INSERT INTO book_author (book_id, author_id) VALUES (?, ?)",
            [(book.id, author_id) for author_id in author_ids],
        )
        self._conn.executemany(
            "INSERT INTO book_genre (book_id, genre_id) VALUES (?, ?)",
            [(book.id, genre_id) for genre_id in genre_ids],
        )
        return BookCreated(row_number=row.row_number, book=book)

    def _duplicate_isbn(self, row: CsvRow, isbn: str) -> RowFailure:
        return RowFailure(
            row_number=row.row_number,
            message=f"Book with ISBN {isbn} already exists in database.",
        )
