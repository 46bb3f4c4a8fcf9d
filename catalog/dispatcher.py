"""Background execution of import jobs on a worker thread pool."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import timedelta
from pathlib import Path

from catalog.ingestion.orchestrator import ImportOrchestrator
from catalog.models.import_job import ImportJob
from catalog.storage.jobs import JobStatusStore

logger = logging.getLogger(__name__)


class ImportDispatcher:
    """Runs import jobs out of band of the request that created them.

    ``submit()`` returns as soon as the work item is queued. Jobs run
    concurrently up to ``max_workers``; each job's chunks are processed
    sequentially by its orchestrator.

    Jobs left in ``processing`` longer than ``job_timeout_seconds`` (a
    crashed or killed worker) are failed by ``reap_stale_jobs()``, which
    runs on start and before each submission.

    Args:
        orchestrator: Orchestrator that executes a single job.
        job_store: Store used for the stale-job reaper.
        max_workers: Size of the worker pool.
        job_timeout_seconds: Age after which a processing job is stale.
    """

    def __init__(
        self,
        orchestrator: ImportOrchestrator,
        job_store: JobStatusStore,
        max_workers: int = 2,
        job_timeout_seconds: int = 3600,
    ) -> None:
        self._orchestrator = orchestrator
        self._jobs = job_store
        self._timeout = timedelta(seconds=job_timeout_seconds)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="import-worker"
        )

    def start(self) -> None:
        self.reap_stale_jobs()

    def submit(self, job_id: int, file_path: str | Path) -> Future:
        """Queue a job for background processing.

        Args:
            job_id: Id of a pending import job.
            file_path: Location of the stored upload.

        Returns:
            Future resolving to the final ImportJob.
        """
        self.reap_stale_jobs()
        logger.info("Dispatching import %d", job_id)
        return self._executor.submit(self._execute, job_id, file_path)

    def reap_stale_jobs(self) -> list[int]:
        return self._jobs.fail_stale_jobs(self._timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _execute(self, job_id: int, file_path: str | Path) -> ImportJob:
        try:
            return self._orchestrator.run(job_id, file_path)
        except Exception:
            logger.exception("Import %d raised in worker", job_id)
            raise
