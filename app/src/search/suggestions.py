"""
Autocomplete suggestions drawn from filenames and transcript phrases.
"""

import logging
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

from src.search.engine import contains, is_blank, matches
from src.transcription.models import TranscriptionJob

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5
MAX_CANDIDATE_JOBS = 5
MAX_PHRASES_PER_JOB = 3
MAX_PHRASE_WORDS = 5


class SuggestionKind(str, Enum):
    FILENAME = "filename"
    TRANSCRIPT = "transcription"


class Suggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SuggestionKind
    text: str
    source_record_id: str

    def to_response(self) -> dict:
        return {
            "type": self.kind.value,
            "text": self.text,
            "videoId": self.source_record_id,
        }


def matching_phrases(
    transcript: Optional[str],
    query: str,
    limit: int = MAX_PHRASES_PER_JOB,
    max_words: int = MAX_PHRASE_WORDS,
) -> List[str]:
    """
    Return the first ``limit`` word windows of ``transcript`` containing ``query``.

    Windows are scanned by start word, then by length from 1 to
    ``max_words``; the first hits win.
    """
    if transcript is None:
        return []

    words = transcript.split()
    phrases: List[str] = []
    for start in range(len(words)):
        for length in range(1, max_words + 1):
            if start + length > len(words):
                break
            phrase = " ".join(words[start:start + length])
            if contains(phrase, query):
                phrases.append(phrase)
                if len(phrases) == limit:
                    return phrases
    return phrases


def _suggestions_for(job: TranscriptionJob, query: str) -> Iterator[Suggestion]:
    if contains(job.display_name, query):
        yield Suggestion(
            kind=SuggestionKind.FILENAME,
            text=job.display_name,
            source_record_id=job.id,
        )
    for phrase in matching_phrases(job.transcript, query):
        yield Suggestion(
            kind=SuggestionKind.TRANSCRIPT,
            text=phrase,
            source_record_id=job.id,
        )


def suggest(
    query: Optional[str],
    jobs: Iterable[TranscriptionJob],
    limit: int = MAX_SUGGESTIONS,
    candidate_limit: int = MAX_CANDIDATE_JOBS,
) -> List[Suggestion]:
    """
    Build up to ``limit`` distinct suggestions for ``query``.

    Only the first ``candidate_limit`` matching jobs, in the order given,
    contribute. Duplicate texts keep their first occurrence.
    """
    if is_blank(query):
        return []

    candidates = []
    for job in jobs:
        if matches(job, query):
            candidates.append(job)
            if len(candidates) == candidate_limit:
                break

    seen = set()
    results: List[Suggestion] = []
    for job in candidates:
        for suggestion in _suggestions_for(job, query):
            if suggestion.text in seen:
                continue
            seen.add(suggestion.text)
            results.append(suggestion)

    logger.debug(
        "Suggestions for %r: %d candidates, %d entries",
        query, len(candidates), len(results),
    )
    return results[:limit]
