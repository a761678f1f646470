"""
Test Configuration and Fixtures
"""
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone

# Keep log files and uploads out of the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="transcript-logs-"))
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="transcript-uploads-"))

import pytest

from commons import generate_job_id
from src.search.engine import is_blank, matches
from src.transcription.errors import RepositoryError, StaleJobError
from src.transcription.models import ProviderState, ProviderStatus, TranscriptionJob

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryRepository:
    """Dict-backed stand-in for the MongoDB job repository."""

    def __init__(self, jobs=()):
        self._jobs = {}
        self._lock = threading.Lock()
        self.saved = []
        for job in jobs:
            self._jobs[job.id] = job

    def create(self, job):
        with self._lock:
            if job.id in self._jobs:
                raise RepositoryError(f"Job {job.id} already exists")
            self._jobs[job.id] = job
        return job

    def find_by_id(self, job_id):
        with self._lock:
            return self._jobs.get(job_id)

    def save(self, job, expected_state=None):
        with self._lock:
            if job.id not in self._jobs:
                raise RepositoryError(f"Job {job.id} does not exist")
            if expected_state is not None and self._jobs[job.id].state is not expected_state:
                raise StaleJobError(job.id, expected_state.value)
            self._jobs[job.id] = job
            self.saved.append(job)
        return job

    def find_all(self):
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def find_matching(self, predicate):
        return [job for job in self.find_all() if predicate(job)]

    def find_containing(self, query, limit=0):
        jobs = self.find_all()
        if not is_blank(query):
            jobs = [job for job in jobs if matches(job, query)]
        return jobs[:limit] if limit else jobs


class ScriptedProvider:
    """Provider client fake that replays a list of statuses or exceptions."""

    def __init__(self, statuses=(), upload_error=None, request_error=None,
                 provider_job_id="tr_0001"):
        self.statuses = list(statuses)
        self.upload_error = upload_error
        self.request_error = request_error
        self.provider_job_id = provider_job_id
        self.uploads = []
        self.requests = []
        self.status_calls = 0

    def upload_media(self, data):
        self.uploads.append(data)
        if self.upload_error is not None:
            raise self.upload_error
        return "https://cdn.example.com/upload/abc"

    def request_transcription(self, upload_url, language_hint=None):
        self.requests.append((upload_url, language_hint))
        if self.request_error is not None:
            raise self.request_error
        return self.provider_job_id

    def get_status(self, provider_job_id):
        self.status_calls += 1
        item = self.statuses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSupervisor:
    """Collects scheduled poll tasks instead of running them."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, provider_job_id, target, *args):
        self.scheduled.append((provider_job_id, target, args))
        return True

    def active_count(self):
        return len(self.scheduled)


def running():
    return ProviderStatus(state=ProviderState.RUNNING)


def completed(text):
    return ProviderStatus(state=ProviderState.COMPLETED, text=text)


def provider_error(detail):
    return ProviderStatus(state=ProviderState.ERROR, error_detail=detail)


@pytest.fixture
def make_job():
    """Build a TranscriptionJob; ``age`` minutes before BASE_TIME."""

    def _make(display_name="demo.mp4", transcript=None, age=0, **fields):
        created = BASE_TIME - timedelta(minutes=age)
        job_id = fields.pop("id", None) or generate_job_id()
        return TranscriptionJob(
            id=job_id,
            media_locator=fields.pop("media_locator", f"{job_id}_{display_name}"),
            display_name=display_name,
            transcript=transcript,
            created_at=created,
            updated_at=created,
            **fields,
        )

    return _make


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def supervisor():
    return RecordingSupervisor()


@pytest.fixture
def no_wait():
    """A cancellation token that is never set."""
    return threading.Event()
