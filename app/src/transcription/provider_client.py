"""
Client for the AssemblyAI speech-to-text REST API.

Three calls, no local state:

    POST /v2/upload             - raw media bytes → upload_url
    POST /v2/transcript         - upload_url      → transcript id
    GET  /v2/transcript/{id}    - transcript id   → status (+ text)

Transport failures raise ``ProviderIOError``; any non-2xx answer or
unusable body raises ``ProviderRejectedError``.
"""

import logging
from typing import Any, Dict, Optional

import requests

from src.transcription.errors import ProviderIOError, ProviderRejectedError
from src.transcription.models import ProviderState, ProviderStatus

logger = logging.getLogger(__name__)

_STATE_MAP = {
    "completed": ProviderState.COMPLETED,
    "error": ProviderState.ERROR,
}


class AssemblyAIClient:
    """Thin adapter around the provider API; safe to share between threads."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError(
                "ASSEMBLYAI_API_KEY is not set. "
                "Cannot connect to the transcription provider."
            )
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    # ── Public API ───────────────────────────────────────────────────────

    def upload_media(self, data: bytes) -> str:
        """Upload raw media bytes and return the provider's resource handle."""
        logger.info("Uploading %d bytes to provider", len(data))
        body = self._request(
            "POST",
            "/v2/upload",
            data=data,
            headers={"content-type": "application/octet-stream"},
        )
        return self._field(body, "upload_url")

    def request_transcription(self, upload_url: str, language_hint: Optional[str] = None) -> str:
        """Ask the provider to transcribe a previously uploaded resource."""
        payload: Dict[str, Any] = {"audio_url": upload_url}
        if language_hint:
            payload["language_code"] = language_hint
        body = self._request("POST", "/v2/transcript", json=payload)
        provider_job_id = self._field(body, "id")
        logger.info("Provider accepted transcription request %s", provider_job_id)
        return provider_job_id

    def get_status(self, provider_job_id: str) -> ProviderStatus:
        """Return the current status of a provider job."""
        body = self._request("GET", f"/v2/transcript/{provider_job_id}")
        raw_status = self._field(body, "status")
        state = _STATE_MAP.get(raw_status, ProviderState.RUNNING)
        logger.debug("Provider job %s status: %s", provider_job_id, raw_status)
        return ProviderStatus(
            state=state,
            text=body.get("text"),
            error_detail=body.get("error"),
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        all_headers = {"authorization": self._api_key}
        if headers:
            all_headers.update(headers)

        try:
            response = self._session.request(
                method, url, headers=all_headers, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("Provider %s %s failed: %s", method, path, exc)
            raise ProviderIOError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            logger.warning(
                "Provider %s %s rejected with HTTP %d: %s",
                method, path, response.status_code, response.text[:200],
            )
            raise ProviderRejectedError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderRejectedError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise ProviderRejectedError(
                f"{method} {path} returned an unexpected body",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _field(body: Dict[str, Any], name: str) -> str:
        value = body.get(name)
        if not value:
            raise ProviderRejectedError(f"Provider response is missing '{name}'")
        return value
