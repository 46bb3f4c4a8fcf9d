"""Route definitions for the import API.

Endpoints:
- GET  /status       : service health check
- POST /import       : upload a CSV file and start a background import
- GET  /import/{id}  : poll the status of an import
"""

import logging
import shutil
from pathlib import Path
from uuid import uuid4

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse

from catalog.api.schemas import (
    ErrorResponse,
    ImportAccepted,
    ImportStatusResponse,
    ServiceStatus,
    format_timestamp,
)
from catalog.config import ImportConfig
from catalog.models.import_job import RowError
from catalog.storage.database import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["import"])

# Clients often send CSV files without a specific content type.
GENERIC_CONTENT_TYPES = {"application/octet-stream", ""}

COPY_BUFFER_BYTES = 64 * 1024


class UploadValidationError(ValueError):
    """Raised when an uploaded file violates the upload constraints."""


def _validation_error(message: str) -> JSONResponse:
    body = ErrorResponse(
        message="The given data was invalid.", errors={"file": [message]}
    )
    return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))


def _check_file_type(upload: UploadFile, config: ImportConfig) -> str:
    suffix = Path(upload.filename or "").suffix.lower()
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if suffix not in config.allowed_extensions or (
        content_type not in config.allowed_content_types
        and content_type not in GENERIC_CONTENT_TYPES
    ):
        raise UploadValidationError("File must be in CSV or TXT format.")
    return suffix


def _store_upload(upload: UploadFile, destination: Path, max_bytes: int) -> int:
    """Copy an upload to ``destination`` without exceeding ``max_bytes``.

    Returns:
        Number of bytes written.

    Raises:
        UploadValidationError: If the upload is larger than ``max_bytes``.
    """
    written = 0
    with open(destination, "wb") as out:
        while True:
            block = upload.file.read(COPY_BUFFER_BYTES)
            if not block:
                break
            written += len(block)
            if written > max_bytes:
                break
            out.write(block)
    if written > max_bytes:
        destination.unlink(missing_ok=True)
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadValidationError(f"File size must not exceed {limit_mb}MB.")
    return written


@router.get("/status", response_model=ServiceStatus)
def service_status() -> ServiceStatus:
    return ServiceStatus(
        message="Book Import API is running",
        timestamp=format_timestamp(utc_now()),
        endpoints={
            "POST /import": "Import books from CSV file (async)",
            "GET /import/{id}": "Check import status",
        },
    )


@router.post("/import", status_code=202, response_model=ImportAccepted)
def start_import(request: Request, file: UploadFile | None = File(default=None)):
    """Store the uploaded CSV, create a pending job and dispatch it."""
    state = request.app.state
    config = state.config.importer

    if file is None or not file.filename:
        return _validation_error("CSV file is required.")

    uploads_dir = Path(state.config.storage.uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    try:
        suffix = _check_file_type(file, config)
        stored_path = uploads_dir / f"{uuid4().hex}{suffix}"
        size = _store_upload(file, stored_path, config.max_upload_bytes)
    except UploadValidationError as exc:
        logger.info("Rejected upload %s: %s", file.filename, exc)
        return _validation_error(str(exc))
    finally:
        file.file.close()

    job = None
    try:
        job = state.jobs.create(file.filename)
        state.dispatcher.submit(job.id, stored_path)
    except Exception as exc:
        logger.exception("Failed to start import for %s", file.filename)
        stored_path.unlink(missing_ok=True)
        message = f"Failed to start import: {exc}"
        if job is not None:
            state.jobs.mark_failed(job.id, [RowError(error=message)])
        body = ErrorResponse(message=message)
        return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))

    logger.info(
        "Accepted upload %s (%d bytes) as import %d", file.filename, size, job.id
    )

    return ImportAccepted(
        import_id=job.id,
        check_status_url=str(request.url_for("import_status", import_id=job.id)),
    )


@router.get("/import/{import_id}", name="import_status")
def import_status(request: Request, import_id: int) -> JSONResponse:
    job = request.app.state.jobs.get(import_id)
    if job is None:
        body = ErrorResponse(message="Import not found.")
        return JSONResponse(status_code=404, content=body.model_dump(exclude_none=True))
    return JSONResponse(content=ImportStatusResponse.from_job(job).to_body())
