"""
Transcription job orchestration.

``submit`` moves a pending job to processing, hands the media to the
provider and schedules a poll task. The poll task is fire-and-forget:
its outcome is only visible through the job's persisted state.
"""

import logging
import threading
from typing import Callable, Optional

from src.database.job_repository import TranscriptRepository
from src.transcription.errors import (
    JobStateError,
    ProviderRejectedError,
    RepositoryError,
    StaleJobError,
)
from src.transcription.models import FailureReason, JobStatus, ProviderState, TranscriptionJob
from src.transcription.poller import PollSupervisor
from src.transcription.provider_client import AssemblyAIClient
from src.transcription.state import (
    attach_provider_job,
    mark_completed,
    mark_failed,
    mark_processing,
)

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """Owns the job state machine between the API and the provider."""

    def __init__(
        self,
        repository: TranscriptRepository,
        provider: AssemblyAIClient,
        supervisor: PollSupervisor,
        poll_interval: float = 5,
        language_hint: Optional[str] = None,
    ) -> None:
        self._repository = repository
        self._provider = provider
        self._supervisor = supervisor
        self._poll_interval = poll_interval
        self._language_hint = language_hint

    # ── Submission ───────────────────────────────────────────────────────

    def submit(self, job: TranscriptionJob, media: bytes) -> str:
        """
        Start transcription of ``job`` and return the provider job id.

        Only pending jobs are accepted, and the move to processing is a
        conditional write, so two concurrent submissions cannot both win.
        Any failure after the job has moved to processing leaves it failed
        before the error propagates.
        """
        processing = mark_processing(job)
        try:
            self._repository.save(processing, expected_state=JobStatus.PENDING)
        except StaleJobError as exc:
            current = self._repository.find_by_id(job.id)
            state = current.state.value if current is not None else "missing"
            raise JobStateError(job.id, state, "submit") from exc
        logger.info("Job %s marked %s", job.id, processing.state.value)

        latest = processing
        try:
            upload_url = self._provider.upload_media(media)
            provider_job_id = self._provider.request_transcription(
                upload_url, self._language_hint
            )
            latest = self._repository.save(attach_provider_job(processing, provider_job_id))
            logger.info("Job %s submitted as provider job %s", job.id, provider_job_id)
            self._supervisor.schedule(provider_job_id, self.poll, job.id, provider_job_id)
        except Exception as exc:
            logger.error("Submission of job %s failed: %s", job.id, exc, exc_info=True)
            self._repository.save(
                mark_failed(latest, FailureReason.SUBMISSION_ERROR, str(exc))
            )
            raise

        return provider_job_id

    # ── Polling ──────────────────────────────────────────────────────────

    def poll(
        self,
        job_id: str,
        provider_job_id: str,
        cancel_event: threading.Event,
    ) -> Optional[TranscriptionJob]:
        """
        Check provider status until a terminal answer or cancellation.

        Returns the terminal job written, or None when cancelled or the
        terminal write could not be applied.
        """
        attempt = 0
        while not cancel_event.is_set():
            attempt += 1
            try:
                status = self._provider.get_status(provider_job_id)
            except Exception as exc:
                logger.error(
                    "Status query %d for job %s (provider %s) failed: %s",
                    attempt, job_id, provider_job_id, exc,
                )
                reason = (
                    FailureReason.PROVIDER_ERROR
                    if isinstance(exc, ProviderRejectedError)
                    else FailureReason.TRANSPORT_ERROR
                )
                return self._finish(
                    job_id,
                    lambda job: mark_failed(job, reason, str(exc)),
                )

            if status.state is ProviderState.COMPLETED:
                logger.info("Provider job %s completed after %d checks", provider_job_id, attempt)
                return self._finish(job_id, lambda job: mark_completed(job, status.text))

            if status.state is ProviderState.ERROR:
                logger.error(
                    "Provider reported failure for job %s: %s",
                    job_id, status.error_detail,
                )
                return self._finish(
                    job_id,
                    lambda job: mark_failed(job, FailureReason.PROVIDER_ERROR, status.error_detail),
                )

            logger.debug("Job %s still running (check %d)", job_id, attempt)
            cancel_event.wait(self._poll_interval)

        logger.info("Polling for job %s cancelled after %d checks", job_id, attempt)
        return None

    def _finish(
        self,
        job_id: str,
        transition: Callable[[TranscriptionJob], TranscriptionJob],
    ) -> Optional[TranscriptionJob]:
        """Re-read the job, apply a terminal transition and save it once."""
        try:
            job = self._repository.find_by_id(job_id)
            if job is None:
                logger.error("Job %s disappeared before its terminal write", job_id)
                return None
            updated = transition(job)
            self._repository.save(updated, expected_state=JobStatus.PROCESSING)
        except (JobStateError, StaleJobError) as exc:
            logger.warning("Skipping terminal write: %s", exc)
            return None
        except RepositoryError as exc:
            logger.error(
                "Terminal state for job %s could not be saved: %s",
                job_id, exc, exc_info=True,
            )
            return None

        logger.info("Job %s finished as %s", job_id, updated.state.value)
        return updated
