"""Import job status record and its lifecycle."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ImportStatus(str, Enum):
    """Lifecycle states of an import job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({ImportStatus.COMPLETED, ImportStatus.FAILED})

# pending -> failed covers uploads that cannot be opened before processing starts.
ALLOWED_TRANSITIONS: dict[ImportStatus, frozenset[ImportStatus]] = {
    ImportStatus.PENDING: frozenset({ImportStatus.PROCESSING, ImportStatus.FAILED}),
    ImportStatus.PROCESSING: frozenset({ImportStatus.COMPLETED, ImportStatus.FAILED}),
    ImportStatus.COMPLETED: frozenset(),
    ImportStatus.FAILED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised when a job status change violates the lifecycle."""


class RowError(BaseModel):
    """A single recorded import failure.

    ``row`` is the 1-based line number in the source file (the header is
    row 1, so row errors start at 2). Job-level failures such as a header
    mismatch carry ``row=None``.
    """

    row: int | None = None
    error: str


class ImportJob(BaseModel):
    """Durable record of one CSV import."""

    id: int
    filename: str
    status: ImportStatus = ImportStatus.PENDING
    imported_count: int = 0
    failed_count: int = 0
    errors: list[RowError] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: ImportStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def ensure_transition(self, new_status: ImportStatus) -> None:
        """Raise InvalidTransitionError unless ``new_status`` is reachable.

        Args:
            new_status: The status the caller wants to move the job to.

        Raises:
            InvalidTransitionError: If the lifecycle forbids the change.
        """
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Import {self.id} cannot move from "
                f"'{self.status.value}' to '{new_status.value}'"
            )
