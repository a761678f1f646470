"""
FastAPI dependency providers.

Collaborators are built lazily on first use and cached for the life of
the process, so importing the app never touches MongoDB or the provider.
Tests swap them out through ``app.dependency_overrides``.
"""

import logging
import threading
from typing import Optional

from configs.config import get_config
from src.database.job_repository import JobRepository, TranscriptRepository
from src.storage.media_store import MediaStorage
from src.transcription.orchestrator import JobOrchestrator
from src.transcription.poller import PollSupervisor
from src.transcription.provider_client import AssemblyAIClient

logger = logging.getLogger(__name__)

cfg = get_config()

_lock = threading.Lock()
_repository: Optional[JobRepository] = None
_storage: Optional[MediaStorage] = None
_supervisor: Optional[PollSupervisor] = None
_orchestrator: Optional[JobOrchestrator] = None


def get_repository() -> TranscriptRepository:
    global _repository
    with _lock:
        if _repository is None:
            _repository = JobRepository()
            logger.info("Job repository initialised")
        return _repository


def get_storage() -> MediaStorage:
    global _storage
    with _lock:
        if _storage is None:
            _storage = MediaStorage(
                cfg.UPLOAD_DIR,
                max_upload_size=cfg.MAX_UPLOAD_SIZE,
                chunk_size=cfg.UPLOAD_CHUNK_SIZE,
            )
        return _storage


def get_supervisor() -> PollSupervisor:
    global _supervisor
    with _lock:
        if _supervisor is None:
            _supervisor = PollSupervisor(max_workers=cfg.MAX_POLL_WORKERS)
            logger.info("Poll supervisor started with %d workers", cfg.MAX_POLL_WORKERS)
        return _supervisor


def get_orchestrator() -> JobOrchestrator:
    global _orchestrator
    repository = get_repository()
    supervisor = get_supervisor()
    with _lock:
        if _orchestrator is None:
            provider = AssemblyAIClient(
                api_key=cfg.ASSEMBLYAI_API_KEY,
                base_url=cfg.ASSEMBLYAI_BASE_URL,
                timeout=cfg.PROVIDER_TIMEOUT_SECONDS,
            )
            _orchestrator = JobOrchestrator(
                repository,
                provider,
                supervisor,
                poll_interval=cfg.POLL_INTERVAL_SECONDS,
                language_hint=cfg.TRANSCRIPTION_LANGUAGE,
            )
        return _orchestrator


def active_poll_tasks() -> int:
    """Number of running poll tasks, 0 if polling never started."""
    with _lock:
        return _supervisor.active_count() if _supervisor is not None else 0


def shutdown() -> None:
    """Cancel outstanding poll tasks; called from the app lifespan."""
    global _supervisor, _orchestrator
    with _lock:
        supervisor, _supervisor = _supervisor, None
        _orchestrator = None
    if supervisor is not None:
        supervisor.shutdown(wait=True)
