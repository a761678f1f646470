"""
Transcription job API routes.

Endpoints:
    POST   /api/jobs                      - upload media & create a pending job
    GET    /api/jobs                      - list all jobs, newest first
    POST   /api/jobs/{job_id}/transcribe  - submit a job to the provider
    GET    /api/jobs/{job_id}/status      - poll job status
"""

import logging
from datetime import datetime, timezone

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Request,
    UploadFile,
)
from fastapi.responses import JSONResponse

from commons import generate_job_id, limiter
from security import safe_error_response, validate_file_extension, validate_job_id
from src.database.job_repository import TranscriptRepository
from src.dependencies import get_orchestrator, get_repository, get_storage
from src.storage.media_store import MediaStorage
from src.transcription.errors import JobStateError, MediaTooLargeError, NotFoundError
from src.transcription.models import JobStatus, TranscriptionJob
from src.transcription.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcription"])


def _load_job(repository: TranscriptRepository, job_id: str) -> TranscriptionJob:
    try:
        job = repository.find_by_id(job_id)
    except Exception as exc:
        safe_error_response(exc, context="load_job")
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


# ── Upload & Create ──────────────────────────────────────────────────────


@router.post("/jobs")
@limiter.limit("10/minute")
async def create_job_endpoint(
    request: Request,
    file: UploadFile = File(...),
    repository: TranscriptRepository = Depends(get_repository),
    storage: MediaStorage = Depends(get_storage),
) -> dict:
    """Upload a media file and create a pending transcription job."""
    validate_file_extension(file.filename)

    job_id = generate_job_id()
    logger.info("Creating new job %s for file: %s", job_id, file.filename)

    try:
        media_locator = await storage.save_upload(job_id, file)
    except MediaTooLargeError as exc:
        raise HTTPException(
            status_code=413,
            detail=(
                f"File too large. Maximum allowed size is "
                f"{exc.limit_bytes // (1024 ** 2)} MB."
            ),
        )
    except Exception as exc:
        safe_error_response(exc, context="create_job")

    now = datetime.now(timezone.utc)
    job = TranscriptionJob(
        id=job_id,
        media_locator=media_locator,
        display_name=file.filename,
        created_at=now,
        updated_at=now,
    )
    try:
        repository.create(job)
    except Exception as exc:
        storage.delete(media_locator)
        safe_error_response(exc, context="create_job")
    logger.debug("Job %s initialised (PENDING)", job_id)

    return job.model_dump(mode="json")


# ── List ─────────────────────────────────────────────────────────────────


@router.get("/jobs")
@limiter.limit("60/minute")
def list_jobs(
    request: Request,
    repository: TranscriptRepository = Depends(get_repository),
) -> list:
    """List every job, newest first."""
    try:
        jobs = repository.find_all()
    except Exception as exc:
        safe_error_response(exc, context="list_jobs")
    logger.debug("Listing %d jobs", len(jobs))
    return [job.model_dump(mode="json") for job in jobs]


# ── Transcribe ───────────────────────────────────────────────────────────


@router.post("/jobs/{job_id}/transcribe")
@limiter.limit("10/minute")
def transcribe_job_endpoint(
    request: Request,
    job_id: str,
    repository: TranscriptRepository = Depends(get_repository),
    storage: MediaStorage = Depends(get_storage),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Send a pending job to the provider and start polling for the result."""
    validate_job_id(job_id)
    job = _load_job(repository, job_id)
    if job.state is not JobStatus.PENDING:
        exc = JobStateError(job.id, job.state.value, "submit")
        logger.warning("Transcribe request for job %s rejected: %s", job_id, exc)
        raise HTTPException(status_code=409, detail=str(exc))

    try:
        media = storage.get_media_bytes(job.media_locator)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Media file not found")

    try:
        provider_job_id = orchestrator.submit(job, media)
    except JobStateError as exc:
        logger.warning("Transcribe request for job %s rejected: %s", job_id, exc)
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        logger.error("Transcription error for job %s: %s", job_id, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Error processing media", "details": str(exc)},
        )

    return {"message": "Transcription started", "transcriptId": provider_job_id}


# ── Status ───────────────────────────────────────────────────────────────


@router.get("/jobs/{job_id}/status")
@limiter.limit("120/minute")
def get_status(
    request: Request,
    job_id: str,
    repository: TranscriptRepository = Depends(get_repository),
) -> dict:
    """Return the job status, plus the transcript once completed."""
    validate_job_id(job_id)
    logger.debug("Status check for job %s", job_id)
    job = _load_job(repository, job_id)

    if job.state is JobStatus.COMPLETED:
        return {"status": job.state.value, "transcription": job.transcript}
    return {"status": job.state.value}
