"""Blog search service: the entry points used by presentation code.

- ``search_blog_posts``: hybrid lexical/fuzzy search. May raise when the
  lexical phase fails; never raises for the fuzzy phase.
- ``get_search_suggestions``: keyword autocomplete. Never raises.
- ``highlight_search_terms``: pure markup helper.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import PostStatus
from app.search.engine import (
    BlogSearchEngine,
    FuzzySearchStrategy,
    LexicalSearchStrategy,
    SearchResult,
)
from app.search.highlight import highlight
from app.search.params import SearchParams, get_search_params
from app.search.providers import FuzzyProvider, KeywordProvider, LexicalProvider
from app.search.suggestions import SuggestionEngine

logger = logging.getLogger(__name__)


def build_search_engine(session: AsyncSession, params: SearchParams | None = None) -> BlogSearchEngine:
    """Create a BlogSearchEngine backed by PostgreSQL providers."""
    params = params or get_search_params()
    lexical = LexicalSearchStrategy(LexicalProvider(session, ts_config=params.ts_config))
    fuzzy = FuzzySearchStrategy(FuzzyProvider(session, similarity_threshold=params.trigram_threshold))
    return BlogSearchEngine(lexical=lexical, fuzzy=fuzzy, params=params)


def build_suggestion_engine(session: AsyncSession, params: SearchParams | None = None) -> SuggestionEngine:
    """Create a SuggestionEngine backed by the published keyword vocabulary."""
    params = params or get_search_params()
    return SuggestionEngine(KeywordProvider(session), min_prefix=params.suggestion_min_prefix)


async def search_blog_posts(
    session: AsyncSession,
    query: str,
    limit: int = 20,
    offset: int = 0,
    status_filter: Iterable[PostStatus | str] | None = None,
) -> list[SearchResult]:
    """Search blog posts by free text.

    Args:
        session: Async database session.
        query: Raw query text.
        limit: Maximum number of results (default 20).
        offset: Number of results to skip (default 0).
        status_filter: Optional set of allowed post statuses.

    Returns:
        Exact matches followed by fuzzy matches, at most ``limit`` items.
    """
    engine = build_search_engine(session)
    results = await engine.search(query, limit=limit, offset=offset, status_filter=status_filter)
    logger.info("Blog search: query=%r, limit=%d, offset=%d, results=%d", query, limit, offset, len(results))
    return results


async def get_search_suggestions(session: AsyncSession, prefix: str, limit: int = 5) -> list[str]:
    """Return up to ``limit`` keyword suggestions for ``prefix``."""
    return await build_suggestion_engine(session).suggest(prefix, limit=limit)


def highlight_search_terms(text: str, query: str) -> str:
    """Wrap query terms in ``text`` with the configured highlight tag."""
    return highlight(text, query, tag=get_search_params().highlight_tag)
