"""Catalog lookups and guarded deletes shared with the CRUD layer."""

import sqlite3
from datetime import date

from catalog.models.book import Author, Book, Genre
from catalog.storage.database import from_db_timestamp


class EntityInUseError(ValueError):
    """Raised when deleting an author or genre that books still reference."""


def get_book(conn: sqlite3.Connection, book_id: int) -> Book | None:
    row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
    return _row_to_book(conn, row) if row else None


def get_book_by_isbn(conn: sqlite3.Connection, isbn: str) -> Book | None:
    row = conn.execute("SELECT * FROM books WHERE isbn = ?", (isbn,)).fetchone()
    return _row_to_book(conn, row) if row else None


def isbn_exists(conn: sqlite3.Connection, isbn: str) -> bool:
    row = conn.execute("SELECT 1 FROM books WHERE isbn = ? LIMIT 1", (isbn,)).fetchone()
    return row is not None


def count_books(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]


def get_author(conn: sqlite3.Connection, author_id: int) -> Author | None:
    row = conn.execute(
        "SELECT id, name FROM authors WHERE id = ?", (author_id,)
    ).fetchone()
    return Author(id=row["id"], name=row["name"]) if row else None


def get_genre(conn: sqlite3.Connection, genre_id: int) -> Genre | None:
    row = conn.execute(
        "SELECT id, name FROM genres WHERE id = ?", (genre_id,)
    ).fetchone()
    return Genre(id=row["id"], name=row["name"]) if row else None


def delete_author(conn: sqlite3.Connection, author_id: int) -> bool:
    """Delete an author that no book references.

    Args:
        conn: Open database connection.
        author_id: Id of the author to delete.

    Returns:
        True if a row was deleted, False if the author did not exist.

    Raises:
        EntityInUseError: If any book still references the author.
    """
    if conn.execute(
        "SELECT 1 FROM book_author WHERE author_id = ? LIMIT 1", (author_id,)
    ).fetchone():
        raise EntityInUseError(
            "Cannot delete author that has books. Please remove books first."
        )
    cursor = conn.execute("DELETE FROM authors WHERE id = ?", (author_id,))
    return cursor.rowcount > 0


def delete_genre(conn: sqlite3.Connection, genre_id: int) -> bool:
    """Delete a genre that no book references.

    Raises:
        EntityInUseError: If any book still references the genre.
    """
    if conn.execute(
        "SELECT 1 FROM book_genre WHERE genre_id = ? LIMIT 1", (genre_id,)
    ).fetchone():
        raise EntityInUseError(
            "Cannot delete genre that has books. Please remove books first."
        )
    cursor = conn.execute("DELETE FROM genres WHERE id = ?", (genre_id,))
    return cursor.rowcount > 0


def _row_to_book(conn: sqlite3.Connection, row: sqlite3.Row) -> Book:
    author_ids = [
        r[0]
        for r in conn.execute(
            "SELECT author_id FROM book_author WHERE book_id = ? ORDER BY rowid",
            (row["id"],),
        )
    ]
    genre_ids = [
        r[0]
        for r in conn.execute(
            "SELECT genre_id FROM book_genre WHERE book_id = ? ORDER BY rowid",
            (row["id"],),
        )
    ]
    return Book(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        edition=row["edition"],
        publisher=row["publisher"],
        year=date.fromisoformat(row["year"]) if row["year"] else None,
        format=row["format"],
        pages=row["pages"],
        country=row["country"],
        isbn=row["isbn"],
        author_ids=author_ids,
        genre_ids=genre_ids,
        created_at=from_db_timestamp(row["created_at"]),
    )
