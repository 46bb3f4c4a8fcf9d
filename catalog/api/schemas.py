"""Response bodies of the import API."""

from datetime import datetime

from pydantic import BaseModel, Field

from catalog.models.import_job import ImportJob, RowError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime | None) -> str | None:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


class ServiceStatus(BaseModel):
    status: str = "ok"
    message: str
    timestamp: str
    endpoints: dict[str, str] = Field(default_factory=dict)


class ImportAccepted(BaseModel):
    success: bool = True
    message: str = "Import started. Use the import_id to check status."
    import_id: int
    check_status_url: str


class ImportStatusResponse(BaseModel):
    """Status of one import.

    Counts and errors are only present once the job is terminal.
    """

    success: bool = True
    import_id: int
    filename: str
    status: str
    started_at: str | None = None
    completed_at: str | None = None
    imported_count: int | None = None
    failed_count: int | None = None
    errors: list[RowError] | None = None

    @classmethod
    def from_job(cls, job: ImportJob) -> "ImportStatusResponse":
        response = cls(
            import_id=job.id,
            filename=job.filename,
            status=job.status.value,
            started_at=format_timestamp(job.started_at),
            completed_at=format_timestamp(job.completed_at),
        )
        if job.is_terminal:
            response.imported_count = job.imported_count
            response.failed_count = job.failed_count
            response.errors = job.errors
        return response

    def to_body(self) -> dict:
        body = self.model_dump()
        if self.imported_count is None:
            for key in ("imported_count", "failed_count", "errors"):
                body.pop(key)
        return body


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: dict[str, list[str]] | None = None
