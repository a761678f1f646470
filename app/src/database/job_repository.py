"""
Repository for transcription job documents.

``TranscriptRepository`` is the contract the orchestrator and the search
routes depend on; ``JobRepository`` implements it on MongoDB. Driver
errors are re-raised as ``RepositoryError`` so callers never see pymongo.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Protocol

from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from configs.config import get_config
from src.database.connection import get_db
from src.transcription.errors import RepositoryError, StaleJobError
from src.transcription.models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)

cfg = get_config()

JobPredicate = Callable[[TranscriptionJob], bool]


class TranscriptRepository(Protocol):
    """Persistence contract for job records."""

    def create(self, job: TranscriptionJob) -> TranscriptionJob: ...

    def find_by_id(self, job_id: str) -> Optional[TranscriptionJob]: ...

    def save(
        self, job: TranscriptionJob, expected_state: Optional[JobStatus] = None
    ) -> TranscriptionJob: ...

    def find_all(self) -> List[TranscriptionJob]: ...

    def find_matching(self, predicate: JobPredicate) -> List[TranscriptionJob]: ...

    def find_containing(self, query: str, limit: int = 0) -> List[TranscriptionJob]: ...


# ── Document mapping ─────────────────────────────────────────────────────


def to_document(job: TranscriptionJob) -> Dict[str, Any]:
    """Convert a job value into its MongoDB document."""
    return {
        "job_id": job.id,
        "media": job.media_locator,
        "original_filename": job.display_name,
        "transcription": job.transcript,
        "keywords": list(job.keywords),
        "status": job.state.value,
        "provider_job_id": job.provider_job_id,
        "failure_reason": job.failure_reason.value if job.failure_reason else None,
        "error": job.error,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


def from_document(document: Dict[str, Any]) -> TranscriptionJob:
    """Build a job value from a MongoDB document."""
    return TranscriptionJob(
        id=document["job_id"],
        media_locator=document["media"],
        display_name=document["original_filename"],
        transcript=document.get("transcription"),
        keywords=document.get("keywords") or [],
        state=document["status"],
        provider_job_id=document.get("provider_job_id"),
        failure_reason=document.get("failure_reason"),
        error=document.get("error"),
        created_at=document["created_at"],
        updated_at=document.get("updated_at") or document["created_at"],
    )


class JobRepository:
    """MongoDB-backed ``TranscriptRepository``."""

    def __init__(self, collection: Optional[Collection] = None) -> None:
        if collection is None:
            collection = get_db()[cfg.JOBS_COLLECTION]
        self._collection = collection

    # ── Create ───────────────────────────────────────────────────────────

    def create(self, job: TranscriptionJob) -> TranscriptionJob:
        """Insert a new job document."""
        try:
            self._collection.insert_one(to_document(job))
        except DuplicateKeyError as exc:
            logger.error("Job %s already exists", job.id)
            raise RepositoryError(f"Job {job.id} already exists") from exc
        except PyMongoError as exc:
            logger.error("Error creating job %s: %s", job.id, exc, exc_info=True)
            raise RepositoryError(f"Could not create job {job.id}") from exc
        logger.debug("Job %s created in MongoDB", job.id)
        return job

    # ── Read ─────────────────────────────────────────────────────────────

    def find_by_id(self, job_id: str) -> Optional[TranscriptionJob]:
        """Retrieve a single job by its ID."""
        try:
            document = self._collection.find_one({"job_id": job_id}, {"_id": 0})
        except PyMongoError as exc:
            logger.error("Error getting job %s: %s", job_id, exc, exc_info=True)
            raise RepositoryError(f"Could not read job {job_id}") from exc
        if document is None:
            logger.warning("Job %s not found in MongoDB", job_id)
            return None
        return from_document(document)

    def find_all(self) -> List[TranscriptionJob]:
        """Return every job, newest first."""
        try:
            cursor = self._collection.find({}, {"_id": 0}).sort("created_at", DESCENDING)
            jobs = [from_document(document) for document in cursor]
        except PyMongoError as exc:
            logger.error("Error listing jobs: %s", exc, exc_info=True)
            raise RepositoryError("Could not list jobs") from exc
        logger.debug("Retrieved %d jobs", len(jobs))
        return jobs

    def find_matching(self, predicate: JobPredicate) -> List[TranscriptionJob]:
        """Return the jobs accepted by ``predicate``, newest first."""
        return [job for job in self.find_all() if predicate(job)]

    def find_containing(self, query: str, limit: int = 0) -> List[TranscriptionJob]:
        """
        Jobs whose filename or transcript contains ``query`` (any case),
        newest first. A blank query matches every job; ``limit=0`` means
        no limit.
        """
        if query.strip():
            pattern = {"$regex": re.escape(query), "$options": "i"}
            criteria = {"$or": [{"original_filename": pattern}, {"transcription": pattern}]}
        else:
            criteria = {}
        try:
            cursor = (
                self._collection.find(criteria, {"_id": 0})
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            jobs = [from_document(document) for document in cursor]
        except PyMongoError as exc:
            logger.error("Error searching jobs for %r: %s", query, exc, exc_info=True)
            raise RepositoryError("Could not search jobs") from exc
        logger.debug("Query %r matched %d jobs", query, len(jobs))
        return jobs

    # ── Update ───────────────────────────────────────────────────────────

    def save(
        self, job: TranscriptionJob, expected_state: Optional[JobStatus] = None
    ) -> TranscriptionJob:
        """
        Replace the mutable fields of an existing job.

        With ``expected_state`` the write only applies while the stored
        job is still in that state; otherwise ``StaleJobError`` is raised.
        """
        document = to_document(job)
        for immutable in ("job_id", "media", "original_filename", "created_at"):
            document.pop(immutable)
        criteria: Dict[str, Any] = {"job_id": job.id}
        if expected_state is not None:
            criteria["status"] = expected_state.value
        try:
            result = self._collection.update_one(criteria, {"$set": document})
        except PyMongoError as exc:
            logger.error("Error saving job %s: %s", job.id, exc, exc_info=True)
            raise RepositoryError(f"Could not save job {job.id}") from exc
        if result.matched_count == 0:
            if expected_state is not None:
                logger.warning(
                    "Job %s save skipped: no longer %s", job.id, expected_state.value
                )
                raise StaleJobError(job.id, expected_state.value)
            logger.warning("Job %s save failed: no match", job.id)
            raise RepositoryError(f"Job {job.id} does not exist")
        logger.info("Job %s saved with status %s", job.id, job.state.value)
        return job
