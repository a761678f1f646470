"""
Pure state transitions for transcription jobs.

    pending ──► processing ──► completed
                    │  ▲
                    │  └─ (polling, no write)
                    └────► failed

Each function validates the source state and returns a new
``TranscriptionJob``; nothing here touches the database.
"""

from datetime import datetime, timezone
from typing import Optional

from src.transcription.errors import JobStateError
from src.transcription.models import FailureReason, JobStatus, TranscriptionJob


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require(job: TranscriptionJob, allowed: JobStatus, action: str) -> None:
    if job.state != allowed:
        raise JobStateError(job.id, job.state.value, action)


def mark_processing(job: TranscriptionJob) -> TranscriptionJob:
    """pending → processing."""
    _require(job, JobStatus.PENDING, "submit")
    return job.model_copy(
        update={"state": JobStatus.PROCESSING, "updated_at": _now()}
    )


def attach_provider_job(job: TranscriptionJob, provider_job_id: str) -> TranscriptionJob:
    """Record the provider's job id; allowed once, while processing."""
    _require(job, JobStatus.PROCESSING, "attach a provider job to")
    if job.provider_job_id is not None:
        raise JobStateError(job.id, job.state.value, "re-attach a provider job to")
    return job.model_copy(
        update={"provider_job_id": provider_job_id, "updated_at": _now()}
    )


def mark_completed(job: TranscriptionJob, transcript: str) -> TranscriptionJob:
    """processing → completed, storing the transcript."""
    _require(job, JobStatus.PROCESSING, "complete")
    return job.model_copy(
        update={
            "state": JobStatus.COMPLETED,
            # A completed job always carries a transcript, even an empty one
            "transcript": transcript if transcript is not None else "",
            "updated_at": _now(),
        }
    )


def mark_failed(
    job: TranscriptionJob,
    reason: FailureReason,
    error: Optional[str] = None,
) -> TranscriptionJob:
    """processing → failed."""
    _require(job, JobStatus.PROCESSING, "fail")
    return job.model_copy(
        update={
            "state": JobStatus.FAILED,
            "failure_reason": reason,
            "error": error,
            "updated_at": _now(),
        }
    )
