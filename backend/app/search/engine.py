# @TASK P2-T2.3 - Lexical search strategy
# @TASK P2-T2.6 - Fuzzy fallback strategy
# @TASK P2-T2.5 - Hybrid blog search (lexical first, fuzzy gap-fill)
# @TEST tests/test_engine.py
# @TEST tests/test_memory_search.py

"""Lexical, fuzzy, and hybrid blog search.

Lexical search: PostgreSQL tsvector + ts_rank over the raw query.
Fuzzy search: pg_trgm similarity over title and excerpt, used only to top
up a lexical page that came back short.
Hybrid search: lexical first; if it yields fewer than ``min(limit, 5)``
hits, fuzzy fills the remaining slots, excluding ids already found.
Exact results always precede fuzzy ones.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.models import PostStatus
from app.search.fallback import run_recoverable
from app.search.params import SearchParams, get_search_params
from app.search.providers import RankedHit, SearchFilters, TextIndexProvider
from app.search.query_preprocessor import normalize_query

logger = logging.getLogger(__name__)


class MatchType(str, Enum):
    """Which strategy produced a result."""

    exact = "exact"
    fuzzy = "fuzzy"


class SearchQuery(BaseModel):
    """A validated search request.

    Attributes:
        text: Raw query text as typed by the user.
        limit: Page size, must be positive.
        offset: Number of results to skip.
        status_filter: Allowed post statuses; ``None`` or empty means all.
    """

    text: str
    limit: int = Field(default=20, gt=0)
    offset: int = Field(default=0, ge=0)
    status_filter: list[PostStatus] | None = None

    @field_validator("status_filter", mode="before")
    @classmethod
    def _upper_statuses(cls, value):
        if value is None:
            return None
        return [v.upper() if isinstance(v, str) and not isinstance(v, PostStatus) else v for v in value]


class SearchResult(BaseModel):
    """A single blog search result.

    Attributes:
        id: Post id.
        title: Post title.
        slug: URL slug of the post.
        excerpt: Post excerpt, if any.
        rank: Relevance score. Only comparable within one match_type.
        match_type: ``exact`` (lexical) or ``fuzzy`` (trigram).
    """

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    rank: float
    match_type: MatchType = Field(default=MatchType.exact)


def _to_results(hits: Iterable[RankedHit], match_type: MatchType) -> list[SearchResult]:
    return [
        SearchResult(
            id=hit.id,
            title=hit.title,
            slug=hit.slug,
            excerpt=hit.excerpt,
            rank=hit.rank,
            match_type=match_type,
        )
        for hit in hits
    ]


class LexicalSearchStrategy:
    """Ranked full-text search. Failures propagate to the caller.

    Args:
        provider: Text index provider performing the ranked lookup.
    """

    match_type = MatchType.exact

    def __init__(self, provider: TextIndexProvider) -> None:
        self._provider = provider

    async def search(
        self,
        raw_query: str,
        limit: int,
        offset: int = 0,
        status_filter: Iterable[PostStatus | str] | None = None,
    ) -> list[SearchResult]:
        hits = await self._provider.find(
            raw_query,
            SearchFilters.from_statuses(status_filter),
            limit=limit,
            offset=offset,
        )
        return _to_results(hits, self.match_type)


class FuzzySearchStrategy:
    """Typo-tolerant gap filler. Never raises; failures yield ``[]``.

    Args:
        provider: Text index provider performing the similarity lookup.
    """

    match_type = MatchType.fuzzy

    def __init__(self, provider: TextIndexProvider) -> None:
        self._provider = provider

    async def search(
        self,
        raw_query: str,
        remaining_limit: int,
        offset: int = 0,
        status_filter: Iterable[PostStatus | str] | None = None,
        exclude_ids: Collection[str] = (),
    ) -> list[SearchResult]:
        if remaining_limit <= 0:
            return []

        async def _find() -> list[SearchResult]:
            hits = await self._provider.find(
                raw_query,
                SearchFilters.from_statuses(status_filter),
                limit=remaining_limit,
                offset=offset,
                exclude=frozenset(exclude_ids),
            )
            return _to_results(hits, self.match_type)

        return await run_recoverable(
            _find,
            default=list,
            label="Fuzzy search",
            query=raw_query,
            remaining_limit=remaining_limit,
            excluded=len(exclude_ids),
        )


def merge_results(
    lexical_results: list[SearchResult],
    fuzzy_results: list[SearchResult],
    limit: int,
) -> list[SearchResult]:
    """Concatenate lexical then fuzzy results, capped at ``limit``.

    No re-ranking: exact matches precede fuzzy ones whatever their scores.
    A fuzzy result whose id already appeared is dropped.
    """
    seen = {result.id for result in lexical_results}
    merged = list(lexical_results)
    for result in fuzzy_results:
        if result.id not in seen:
            seen.add(result.id)
            merged.append(result)
    return merged[:limit]


class BlogSearchEngine:
    """Hybrid blog search: lexical first, fuzzy only to fill a short page.

    Flow:
    1. Empty query after normalization → ``[]`` with no data-store call.
    2. Lexical search with the raw query, limit and offset.
    3. If lexical hits ≥ ``min(limit, sufficiency_cap)``, return them.
    4. Otherwise fuzzy search for ``limit - len(lexical)`` more hits,
       excluding lexical ids, and append.

    The two phases run sequentially: the fuzzy parameters depend on the
    lexical results.

    Args:
        lexical: Lexical search strategy.
        fuzzy: Fuzzy search strategy.
        params: Search parameters (defaults from settings).
    """

    def __init__(
        self,
        lexical: LexicalSearchStrategy,
        fuzzy: FuzzySearchStrategy,
        params: SearchParams | None = None,
    ) -> None:
        self._lexical = lexical
        self._fuzzy = fuzzy
        self._params = params or get_search_params()

    async def search(
        self,
        query: str,
        limit: int = 20,
        offset: int = 0,
        status_filter: Iterable[PostStatus | str] | str | None = None,
    ) -> list[SearchResult]:
        """Execute a hybrid search.

        ``status_filter`` may be a single status or a collection of them.

        Raises:
            pydantic.ValidationError: If ``limit <= 0`` or ``offset < 0``.
            Exception: Whatever the lexical provider raises.
        """
        if isinstance(status_filter, str):
            status_filter = [status_filter]
        request = SearchQuery(
            text=query,
            limit=limit,
            offset=offset,
            status_filter=list(status_filter) if status_filter else None,
        )
        if not normalize_query(request.text):
            return []

        lexical_results = await self._lexical.search(
            request.text,
            request.limit,
            request.offset,
            request.status_filter,
        )

        threshold = self._params.sufficiency_threshold(request.limit)
        if len(lexical_results) >= threshold:
            logger.debug(
                "Lexical search sufficient: query=%r, hits=%d, threshold=%d",
                request.text,
                len(lexical_results),
                threshold,
            )
            return merge_results(lexical_results, [], request.limit)

        fuzzy_results = await self._fuzzy.search(
            request.text,
            request.limit - len(lexical_results),
            request.offset,
            request.status_filter,
            exclude_ids={result.id for result in lexical_results},
        )
        logger.debug(
            "Hybrid search: query=%r, exact=%d, fuzzy=%d",
            request.text,
            len(lexical_results),
            len(fuzzy_results),
        )
        return merge_results(lexical_results, fuzzy_results, request.limit)
