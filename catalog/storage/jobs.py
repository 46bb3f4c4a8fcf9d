"""Durable import job status records."""

import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path

from catalog.models.import_job import ImportJob, ImportStatus, RowError
from catalog.storage.database import (
    from_db_timestamp,
    get_connection,
    to_db_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

STALE_JOB_MESSAGE = "Import timed out or was abandoned by the worker."


class JobNotFoundError(LookupError):
    """Raised when an import job id does not exist."""


class JobStatusStore:
    """Reads and writes ``import_jobs`` rows.

    Every operation runs in its own short transaction on a fresh
    connection, independent of the chunk transactions of the import
    itself, so progress stays visible to pollers while a job runs.
    Status changes are validated against the job lifecycle.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = get_connection(self._db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def create(self, filename: str) -> ImportJob:
        """Insert a new job in ``pending`` state.

        Args:
            filename: Client-side name of the uploaded file.

        Returns:
            The stored ImportJob.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO import_jobs (filename, status, created_at) VALUES (?, ?, ?)",
                (filename, ImportStatus.PENDING.value, to_db_timestamp(utc_now())),
            )
            job = self._fetch(conn, cursor.lastrowid)
        logger.info("Created import %d for %s", job.id, filename)
        return job

    def get(self, job_id: int) -> ImportJob | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM import_jobs WHERE id = ?", (job_id,)
            ).fetchone()
        finally:
            conn.close()
        return _row_to_job(row) if row else None

    def mark_processing(self, job_id: int) -> ImportJob:
        """Move a pending job to ``processing`` and stamp ``started_at``."""
        with self._transaction() as conn:
            job = self._fetch(conn, job_id)
            job.ensure_transition(ImportStatus.PROCESSING)
            conn.execute(
                "UPDATE import_jobs SET status = ?, started_at = ? WHERE id = ?",
                (ImportStatus.PROCESSING.value, to_db_timestamp(utc_now()), job_id),
            )
            return self._fetch(conn, job_id)

    def update_progress(
        self,
        job_id: int,
        imported_count: int,
        failed_count: int,
        errors: Sequence[RowError],
    ) -> None:
        """Write running counters for a job that is still processing."""
        with self._transaction() as conn:
            job = self._fetch(conn, job_id)
            if job.status is not ImportStatus.PROCESSING:
                raise ValueError(
                    f"Import {job_id} is '{job.status.value}', not processing"
                )
            conn.execute(
                "UPDATE import_jobs SET imported_count = ?, failed_count = ?, "
                "errors_json = ? WHERE id = ?",
                (imported_count, failed_count, _dump_errors(errors), job_id),
            )

    def mark_completed(
        self,
        job_id: int,
        imported_count: int,
        failed_count: int,
        errors: Sequence[RowError],
    ) -> ImportJob:
        return self._finish(
            job_id, ImportStatus.COMPLETED, imported_count, failed_count, errors
        )

    def mark_failed(
        self,
        job_id: int,
        errors: Sequence[RowError],
        imported_count: int = 0,
        failed_count: int = 0,
    ) -> ImportJob:
        return self._finish(
            job_id, ImportStatus.FAILED, imported_count, failed_count, errors
        )

    def fail_stale_jobs(self, older_than: timedelta) -> list[int]:
        """Fail jobs stuck in ``processing`` for longer than ``older_than``.

        A worker that crashed or was killed leaves its job in
        ``processing`` forever; this is the reconciliation path for it.

        Args:
            older_than: Maximum allowed age of ``started_at``.

        Returns:
            Ids of the jobs that were marked failed.
        """
        cutoff = to_db_timestamp(utc_now() - older_than)
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT id FROM import_jobs WHERE status = ? AND started_at < ?",
                (ImportStatus.PROCESSING.value, cutoff),
            ).fetchall()
            stale_ids = [row["id"] for row in rows]
            for job_id in stale_ids:
                conn.execute(
                    "UPDATE import_jobs SET status = ?, errors_json = ?, "
                    "completed_at = ? WHERE id = ?",
                    (
                        ImportStatus.FAILED.value,
                        _dump_errors([RowError(error=STALE_JOB_MESSAGE)]),
                        to_db_timestamp(utc_now()),
                        job_id,
                    ),
                )
        for job_id in stale_ids:
            logger.warning("Marked stale import %d as failed", job_id)
        return stale_ids

    def _finish(
        self,
        job_id: int,
        status: ImportStatus,
        imported_count: int,
        failed_count: int,
        errors: Sequence[RowError],
    ) -> ImportJob:
        with self._transaction() as conn:
            job = self._fetch(conn, job_id)
            job.ensure_transition(status)
            conn.execute(
                "UPDATE import_jobs SET status = ?, imported_count = ?, "
                "failed_count = ?, errors_json = ?, completed_at = ? WHERE id = ?",
                (
                    status.value,
                    imported_count,
                    failed_count,
                    _dump_errors(errors),
                    to_db_timestamp(utc_now()),
                    job_id,
                ),
            )
            return self._fetch(conn, job_id)

    def _fetch(self, conn: sqlite3.Connection, job_id: int | None) -> ImportJob:
        row = conn.execute(
            "SELECT * FROM import_jobs WHERE id = ?", (job_id,)
        ).fetchone()
        if row is None:
            raise JobNotFoundError(f"Import {job_id} not found")
        return _row_to_job(row)


def _dump_errors(errors: Sequence[RowError]) -> str:
    return json.dumps([e.model_dump() for e in errors], ensure_ascii=False)


def _row_to_job(row: sqlite3.Row) -> ImportJob:
    return ImportJob(
        id=row["id"],
        filename=row["filename"],
        status=ImportStatus(row["status"]),
        imported_count=row["imported_count"],
        failed_count=row["failed_count"],
        errors=[RowError(**e) for e in json.loads(row["errors_json"])],
        started_at=from_db_timestamp(row["started_at"]),
        completed_at=from_db_timestamp(row["completed_at"]),
        created_at=from_db_timestamp(row["created_at"]),
    )
