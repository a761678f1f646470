"""
Search and autocomplete routes.

Endpoints:
    GET /api/search?query=       - jobs whose filename or transcript contains query
    GET /api/suggestions?query=  - up to five autocomplete entries
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from commons import limiter
from configs.config import get_config
from security import safe_error_response, validate_query
from src.database.job_repository import TranscriptRepository
from src.dependencies import get_repository
from src.search.engine import is_blank, search
from src.search.suggestions import suggest

logger = logging.getLogger(__name__)

cfg = get_config()

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search")
@limiter.limit("120/minute")
def search_jobs(
    request: Request,
    query: str = Query(default=""),
    repository: TranscriptRepository = Depends(get_repository),
) -> list:
    """Full-text substring search over filenames and transcripts."""
    validate_query(query)
    try:
        jobs = repository.find_containing(query)
    except Exception as exc:
        safe_error_response(exc, context="search")
    results = search(query, jobs)
    logger.info("Search %r returned %d jobs", query, len(results))
    return [job.model_dump(mode="json") for job in results]


@router.get("/suggestions")
@limiter.limit("300/minute")
def get_suggestions(
    request: Request,
    query: str = Query(default=""),
    repository: TranscriptRepository = Depends(get_repository),
) -> list:
    """Autocomplete entries from filenames and transcript phrases."""
    validate_query(query)
    if is_blank(query):
        return []
    try:
        jobs = repository.find_containing(
            query, limit=cfg.SUGGESTION_CANDIDATE_LIMIT
        )
    except Exception as exc:
        safe_error_response(exc, context="suggestions")
    suggestions = suggest(
        query,
        jobs,
        limit=cfg.SUGGESTION_LIMIT,
        candidate_limit=cfg.SUGGESTION_CANDIDATE_LIMIT,
    )
    return [suggestion.to_response() for suggestion in suggestions]
