"""
Substring search over transcription jobs.

A job matches when the query, compared case-insensitively, occurs in its
original filename or in its transcript. There is no relevance ranking:
results are ordered newest first.
"""

import logging
from typing import Iterable, List, Optional

from src.transcription.models import TranscriptionJob

logger = logging.getLogger(__name__)


def is_blank(query: Optional[str]) -> bool:
    return query is None or not query.strip()


def contains(text: Optional[str], query: str) -> bool:
    """Case-insensitive substring test; ``None`` never matches."""
    if text is None:
        return False
    return query.lower() in text.lower()


def matches(job: TranscriptionJob, query: str) -> bool:
    return contains(job.display_name, query) or contains(job.transcript, query)


def newest_first(jobs: Iterable[TranscriptionJob]) -> List[TranscriptionJob]:
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(jobs, key=lambda job: job.created_at, reverse=True)


def search(query: Optional[str], jobs: Iterable[TranscriptionJob]) -> List[TranscriptionJob]:
    """Return the jobs matching ``query``; a blank query returns every job."""
    if is_blank(query):
        return newest_first(jobs)

    results = newest_first(job for job in jobs if matches(job, query))
    logger.debug("Search %r matched %d jobs", query, len(results))
    return results
