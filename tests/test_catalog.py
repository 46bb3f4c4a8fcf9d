"""Tests for catalog lookups and guarded deletes."""

import sqlite3
from pathlib import Path

import pytest

from catalog.ingestion.persister import BatchPersister
from catalog.ingestion.resolver import EntityKind, EntityResolver
from catalog.models.row import CsvRow
from catalog.storage.catalog import (
    EntityInUseError,
    count_books,
    delete_author,
    delete_genre,
    get_author,
    get_book,
    get_book_by_isbn,
    get_genre,
)
from catalog.storage.database import get_connection


@pytest.fixture
def conn(db_path: Path) -> sqlite3.Connection:
    connection = get_connection(db_path)
    yield connection
    connection.close()


def _add_book(conn: sqlite3.Connection, isbn: str = "1") -> int:
    row = CsvRow(row_number=2, title="Dune", isbn=isbn, authors="Herbert", genre="SF")
    return BatchPersister(conn).persist_row(row).book.id


class TestLookups:
    def test_get_book_and_by_isbn(self, conn: sqlite3.Connection) -> None:
        book_id = _add_book(conn)
        assert get_book(conn, book_id).isbn == "1"
        assert get_book_by_isbn(conn, "1").id == book_id
        assert get_book(conn, 999) is None
        assert get_book_by_isbn(conn, "missing") is None
        assert count_books(conn) == 1

    def test_get_author_and_genre(self, conn: sqlite3.Connection) -> None:
        resolver = EntityResolver(conn)
        author_id = resolver.get_or_create(EntityKind.AUTHOR, "Herbert")
        genre_id = resolver.get_or_create(EntityKind.GENRE, "SF")

        assert get_author(conn, author_id).name == "Herbert"
        assert get_genre(conn, genre_id).name == "SF"
        assert get_author(conn, 999) is None


class TestGuardedDeletes:
    def test_refuses_to_delete_referenced_author(self, conn: sqlite3.Connection) -> None:
        book = get_book(conn, _add_book(conn))
        with pytest.raises(EntityInUseError, match="Cannot delete author"):
            delete_author(conn, book.author_ids[0])
        assert get_author(conn, book.author_ids[0]) is not None

    def test_refuses_to_delete_referenced_genre(self, conn: sqlite3.Connection) -> None:
        book = get_book(conn, _add_book(conn))
        with pytest.raises(EntityInUseError, match="Cannot delete genre"):
            delete_genre(conn, book.genre_ids[0])

    def test_deletes_unreferenced_entities(self, conn: sqlite3.Connection) -> None:
        resolver = EntityResolver(conn)
        author_id = resolver.get_or_create(EntityKind.AUTHOR, "Nobody")
        genre_id = resolver.get_or_create(EntityKind.GENRE, "Nothing")

        assert delete_author(conn, author_id) is True
        assert delete_genre(conn, genre_id) is True
        assert delete_author(conn, author_id) is False
