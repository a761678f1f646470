"""
Exception hierarchy shared by the orchestrator, the provider client,
the repository and the media store.

Route handlers translate these into HTTP responses; nothing below the
route layer imports FastAPI.
"""


class TranscriptionServiceError(Exception):
    """Base class for every error raised by the service."""


class ValidationError(TranscriptionServiceError):
    """Malformed or missing request input."""


class NotFoundError(TranscriptionServiceError):
    """A referenced job or media file does not exist."""


class JobStateError(TranscriptionServiceError):
    """The requested transition is not allowed from the job's current state."""

    def __init__(self, job_id: str, state: str, action: str) -> None:
        self.job_id = job_id
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} job {job_id} in state '{state}'")


class MediaTooLargeError(TranscriptionServiceError):
    """An upload exceeded the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(f"Upload exceeds the {limit_bytes} byte limit")


class RepositoryError(TranscriptionServiceError):
    """The job store failed to read or write a record."""


class StaleJobError(RepositoryError):
    """A conditional save found the stored job in a different state."""

    def __init__(self, job_id: str, expected_state: str) -> None:
        self.job_id = job_id
        self.expected_state = expected_state
        super().__init__(f"Job {job_id} is no longer '{expected_state}'")


class ProviderError(TranscriptionServiceError):
    """The speech-to-text provider could not be used."""


class ProviderIOError(ProviderError):
    """The provider was unreachable (connection failure, timeout)."""


class ProviderRejectedError(ProviderError):
    """The provider answered with a non-success response."""

    def __init__(self, message: str, status_code: int = None) -> None:
        self.status_code = status_code
        super().__init__(message)
