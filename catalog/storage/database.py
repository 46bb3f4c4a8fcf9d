"""SQLite database initialization, connection management and units of work."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)

# Seconds a connection waits on a locked database before raising.
BUSY_TIMEOUT_SECONDS = 30.0


def utc_now() -> datetime:
    """Current UTC time as a naive datetime with second precision."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def to_db_timestamp(value: datetime | None) -> str | None:
    return value.isoformat(sep=" ") if value else None


def from_db_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    The connection runs in autocommit mode; callers that need a
    transaction open one explicitly (see UnitOfWork).

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(
        str(db_path), timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS authors (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            );

            CREATE TABLE IF NOT EXISTS genres (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            );

            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT,
                edition TEXT,
                publisher TEXT,
                year DATE,
                format TEXT,
                pages INTEGER CHECK (pages IS NULL OR pages > 0),
                country TEXT,
                isbn TEXT NOT NULL UNIQUE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_books_title ON books (title);
            CREATE INDEX IF NOT EXISTS idx_books_year ON books (year);
            CREATE INDEX IF NOT EXISTS idx_books_publisher ON books (publisher);

            CREATE TABLE IF NOT EXISTS book_author (
                book_id INTEGER NOT NULL REFERENCES books (id) ON DELETE CASCADE,
                author_id INTEGER NOT NULL REFERENCES authors (id) ON DELETE RESTRICT,
                PRIMARY KEY (book_id, author_id)
            );

            CREATE TABLE IF NOT EXISTS book_genre (
                book_id INTEGER NOT NULL REFERENCES books (id) ON DELETE CASCADE,
                genre_id INTEGER NOT NULL REFERENCES genres (id) ON DELETE RESTRICT,
                PRIMARY KEY (book_id, genre_id)
            );

            CREATE TABLE IF NOT EXISTS import_jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
                imported_count INTEGER NOT NULL DEFAULT 0,
                failed_count INTEGER NOT NULL DEFAULT 0,
                errors_json TEXT NOT NULL DEFAULT '[]',
                started_at TIMESTAMP,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_import_jobs_status ON import_jobs (status);
            """
        )
    finally:
        conn.close()


class UnitOfWork:
    """One connection and one write transaction, owned by a single caller.

    Used as a context manager. The transaction is committed only through
    an explicit ``commit()``; leaving the block without committing, or
    with an exception, rolls everything back.

    Example::

        with UnitOfWork(db_path) as uow:
            uow.connection.execute("INSERT ...")
            uow.commit()
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path
        self._connection: sqlite3.Connection | None = None
        self._committed = False

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("UnitOfWork is not active")
        return self._connection

    def __enter__(self) -> "UnitOfWork":
        self._connection = get_connection(self._db_path)
        try:
            # IMMEDIATE takes the write lock up front so concurrent jobs queue
            # on the busy timeout instead of failing mid-transaction.
            self._connection.execute("BEGIN IMMEDIATE")
        except sqlite3.Error:
            self._connection.close()
            self._connection = None
            raise
        self._committed = False
        return self

    def commit(self) -> None:
        self.connection.execute("COMMIT")
        self._committed = True

    def rollback(self) -> None:
        if self.connection.in_transaction:
            self.connection.execute("ROLLBACK")

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if not self._committed:
                try:
                    self.rollback()
                except sqlite3.Error:
                    logger.exception("Rollback failed for %s", self._db_path)
        finally:
            self.connection.close()
            self._connection = None
