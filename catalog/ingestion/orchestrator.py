"""Drives a CSV import from a stored upload to a terminal job status."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import TypeVar

from catalog.ingestion.csv_reader import CsvImportReader, CsvSchemaError
from catalog.ingestion.persister import BatchPersister
from catalog.models.import_job import ImportJob, InvalidTransitionError, RowError
from catalog.models.row import CsvRow, MalformedRow, RowFailure
from catalog.storage.database import UnitOfWork
from catalog.storage.jobs import JobNotFoundError, JobStatusStore

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100

T = TypeVar("T")


def iter_chunks(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Group an iterable into lists of at most ``size`` items.

    Only one chunk is held in memory at a time.
    """
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    iterator = iter(items)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


@dataclass
class ChunkResult:
    """Outcome of one chunk transaction."""

    imported: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)
    rolled_back: bool = False


@dataclass
class ImportTotals:
    """Running counters for a whole import."""

    imported: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)

    def add(self, result: ChunkResult) -> None:
        self.imported += result.imported
        self.failed += result.failed
        self.errors.extend(result.errors)


class ImportOrchestrator:
    """Runs one import job through ``pending -> processing -> completed|failed``.

    The stored file is streamed and cut into fixed-size chunks. Every
    chunk gets its own unit of work:

    - row failures are recorded and do not stop the chunk, and whatever
      the failing row already wrote stays in the transaction;
    - the chunk commits once every row has been handled;
    - if a row raises something that is not a row failure, or the commit
      itself fails, the chunk rolls back and all of its rows are marked
      failed, after which the next chunk is processed.

    A header mismatch or an unreadable file fails the job before any row
    is processed. Any other escaping error fails the job and is re-raised
    to the dispatcher.

    Args:
        db_path: Path to the SQLite database file.
        job_store: Store used to read and write the job record.
        chunk_size: Number of rows per transaction.
        delete_after_import: Remove the stored upload once a job completes.
    """

    def __init__(
        self,
        db_path: str | Path,
        job_store: JobStatusStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        delete_after_import: bool = True,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._db_path = db_path
        self._jobs = job_store
        self._chunk_size = chunk_size
        self._delete_after_import = delete_after_import

    def run(self, job_id: int, file_path: str | Path) -> ImportJob:
        """Process an import job to completion.

        Args:
            job_id: Id of a job in ``pending`` state.
            file_path: Location of the stored upload.

        Returns:
            The job record after processing. A job that was not pending is
            returned unchanged.

        Raises:
            JobNotFoundError: If the job does not exist.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Import {job_id} not found")
        try:
            self._jobs.mark_processing(job_id)
        except InvalidTransitionError:
            # Redelivered work item for a job another worker already owns or finished.
            logger.warning(
                "Skipping import %d: status is '%s', not pending",
                job_id,
                job.status.value,
            )
            return self._jobs.get(job_id) or job
        logger.info("Import %d started for %s", job_id, file_path)

        try:
            stream = open(file_path, "rb")
        except OSError as exc:
            logger.error("Import %d: cannot open %s: %s", job_id, file_path, exc)
            return self._jobs.mark_failed(
                job_id, [RowError(error=f"Unable to read file: {exc}")]
            )

        totals = ImportTotals()
        with stream:
            try:
                reader = CsvImportReader(stream)
            except CsvSchemaError as exc:
                logger.error("Import %d rejected: %s", job_id, exc)
                return self._jobs.mark_failed(job_id, [RowError(error=str(exc))])

            try:
                for chunk in iter_chunks(reader.rows(), self._chunk_size):
                    totals.add(self._process_chunk(job_id, chunk))
                    self._jobs.update_progress(
                        job_id, totals.imported, totals.failed, totals.errors
                    )
            except Exception as exc:
                logger.exception("Import %d failed", job_id)
                self._jobs.mark_failed(
                    job_id,
                    totals.errors + [RowError(error=f"Import failed: {exc}")],
                    imported_count=totals.imported,
                    failed_count=totals.failed,
                )
                raise

        job = self._jobs.mark_completed(
            job_id, totals.imported, totals.failed, totals.errors
        )
        if totals.errors:
            logger.warning(
                "Import %d completed with errors: imported=%d failed=%d",
                job_id,
                totals.imported,
                totals.failed,
            )
        else:
            logger.info("Import %d completed: imported=%d", job_id, totals.imported)

        if self._delete_after_import:
            Path(file_path).unlink(missing_ok=True)
        return job

    def _process_chunk(
        self, job_id: int, chunk: list[CsvRow | MalformedRow]
    ) -> ChunkResult:
        result = ChunkResult()
        try:
            with UnitOfWork(self._db_path) as uow:
                persister = BatchPersister(uow.connection)
                for item in chunk:
                    outcome = (
                        RowFailure(row_number=item.row_number, message=item.message)
                        if isinstance(item, MalformedRow)
                        else persister.persist_row(item)
                    )

                    if isinstance(outcome, RowFailure):
                        result.failed += 1
                        result.errors.append(
                            RowError(row=outcome.row_number, error=outcome.message)
                        )
                    else:
                        result.imported += 1
                uow.commit()
        except Exception as exc:
            logger.exception(
                "Import %d: chunk of %d rows rolled back", job_id, len(chunk)
            )
            return ChunkResult(
                imported=0,
                failed=len(chunk),
                errors=[
                    RowError(
                        row=item.row_number,
                        error=f"Chunk processing failed: {exc}",
                    )
                    for item in chunk
                ],
                rolled_back=True,
            )
        return result
