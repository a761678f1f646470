"""
Data models for the transcription module.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Possible states of a transcription job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class FailureReason(str, Enum):
    """Why a job ended up FAILED; the status alone does not say."""

    SUBMISSION_ERROR = "submission_error"
    PROVIDER_ERROR = "provider_error"
    TRANSPORT_ERROR = "transport_error"


class TranscriptionJob(BaseModel):
    """
    One media item's transcription lifecycle.

    Instances are frozen: every state change goes through a function in
    ``src.transcription.state`` that returns a new value.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    media_locator: str
    display_name: str
    transcript: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    state: JobStatus = JobStatus.PENDING
    provider_job_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    failure_reason: Optional[FailureReason] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATUSES


class ProviderState(str, Enum):
    """Normalised status reported by the speech-to-text provider."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ProviderStatus(BaseModel):
    """Result of a single provider status query."""

    model_config = ConfigDict(frozen=True)

    state: ProviderState
    text: Optional[str] = None
    error_detail: Optional[str] = None
