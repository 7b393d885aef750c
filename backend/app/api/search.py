# @TASK P4-T4.3 - Search API endpoint
# @TEST tests/test_api_search.py

"""Search API endpoints for blog content.

Provides:
- ``GET /search`` -- Hybrid lexical/fuzzy blog search.
- ``GET /search/suggestions`` -- Keyword suggestions (autocomplete).

Exact (lexical) results always precede fuzzy (trigram) results; each result
carries its ``match_type`` so clients can render "did you mean" hits
differently.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import PostStatus
from app.services.blog_search import get_search_suggestions, highlight_search_terms, search_blog_posts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SearchResultResponse(BaseModel):
    """One blog post hit, exact or fuzzy."""

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    rank: float
    match_type: str
    highlighted_excerpt: str | None = None


class SearchResponse(BaseModel):
    """A page of blog search hits, exact matches first."""

    results: list[SearchResultResponse]
    query: str
    total: int


class SuggestionResponse(BaseModel):
    """Keyword autocomplete response."""

    suggestions: list[str]
    prefix: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_statuses(values: list[str] | None) -> list[PostStatus] | None:
    """Map ``status`` query values onto PostStatus, ignoring case.

    Raises:
        HTTPException: 422 when a value names no known status.
    """
    if not values:
        return None
    try:
        return [PostStatus(value.strip().upper()) for value in values]
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown post status; expected one of: {', '.join(s.value for s in PostStatus)}",
        ) from None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(..., description="Search query"),  # noqa: B008
    limit: int = Query(20, ge=1, le=100, description="Maximum number of results"),  # noqa: B008
    offset: int = Query(0, ge=0, description="Number of results to skip for pagination"),  # noqa: B008
    status_filter: list[str] | None = Query(  # noqa: B008
        None, alias="status", description="Restrict to these post statuses (case-insensitive)"
    ),
    highlight: bool = Query(False, description="Include excerpts with matched terms highlighted"),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> SearchResponse:
    """Search blog posts.

    Args:
        q: The search query string. Blank queries return no results.
        limit: Maximum number of results (1-100, default: 20).
        offset: Number of results to skip for pagination (default: 0).
        status_filter: Optional post statuses to restrict to.
        highlight: Whether to add ``highlighted_excerpt`` to each result.
        db: Injected async database session.

    Returns:
        SearchResponse with exact results first, then fuzzy results.
    """
    statuses = _parse_statuses(status_filter)
    logger.info(
        "Search request: query=%r, limit=%d, offset=%d, status=%s",
        q,
        limit,
        offset,
        [s.value for s in statuses] if statuses else None,
    )

    try:
        results = await search_blog_posts(db, q, limit=limit, offset=offset, status_filter=statuses)
    except SQLAlchemyError:
        logger.exception("Search failed: query=%r", q)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search is temporarily unavailable",
        ) from None

    return SearchResponse(
        results=[
            SearchResultResponse(
                id=r.id,
                title=r.title,
                slug=r.slug,
                excerpt=r.excerpt,
                rank=r.rank,
                match_type=r.match_type.value,
                highlighted_excerpt=highlight_search_terms(r.excerpt, q) if highlight and r.excerpt else None,
            )
            for r in results
        ],
        query=q,
        total=len(results),
    )


@router.get("/suggestions", response_model=SuggestionResponse)
async def search_suggestions(
    prefix: str = Query(..., min_length=1, max_length=100, description="Search prefix"),  # noqa: B008
    limit: int = Query(5, ge=1, le=10, description="Maximum suggestions"),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> SuggestionResponse:
    """Get keyword suggestions for a prefix.

    Prefixes shorter than two characters yield no suggestions.

    Args:
        prefix: The search prefix to match against.
        limit: Maximum number of suggestions (1-10, default: 5).
        db: Injected async database session.

    Returns:
        SuggestionResponse with matching keywords, most used first.
    """
    suggestions = await get_search_suggestions(db, prefix, limit=limit)
    return SuggestionResponse(suggestions=suggestions, prefix=prefix)
