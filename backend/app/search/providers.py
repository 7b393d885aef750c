# @TASK P2-T2.3 - Lexical provider (PostgreSQL tsvector)
# @TASK P2-T2.6 - Fuzzy provider (pg_trgm similarity)
# @TEST tests/test_providers.py

"""Text index providers backed by PostgreSQL.

The database's text functions are the coupling point of the search core.
Each provider exposes the same ``find`` capability so the orchestration in
``app.search.engine`` never depends on which engine ranks the hits:

- ``LexicalProvider``: ``websearch_to_tsquery`` + ``ts_rank`` over the
  precomputed ``search_vector`` column.
- ``FuzzyProvider``: pg_trgm ``similarity`` on title and excerpt; the better
  of the two is the rank.
- ``KeywordProvider``: keyword usage counts for autocomplete.

All statements are SQLAlchemy Core expressions with bound parameters; user
text never reaches the SQL string.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable
from typing import NamedTuple

from sqlalchemy import Select, String, distinct, func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import BlogPost, PostStatus, check_ts_config



class RankedHit(NamedTuple):
    """A single ranked hit from a text index provider."""

    id: str
    title: str
    slug: str
    excerpt: str | None
    rank: float


class SearchFilters(NamedTuple):
    """Row filters shared by every provider.

    Attributes:
        statuses: Allowed post statuses. Empty means unrestricted.
    """

    statuses: tuple[PostStatus, ...] = ()

    @classmethod
    def from_statuses(cls, statuses: Iterable[PostStatus | str] | str | None) -> SearchFilters:
        if not statuses:
            return cls()
        if isinstance(statuses, str):
            statuses = [statuses]
        return cls(statuses=tuple(s if isinstance(s, PostStatus) else PostStatus(s.upper()) for s in statuses))


class KeywordCount(NamedTuple):
    """A keyword and the number of distinct posts carrying it."""

    keyword: str
    usage_count: int


class TextIndexProvider(ABC):
    """Capability interface for ranked text lookups over the blog corpus."""

    @abstractmethod
    async def find(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> list[RankedHit]:
        """Return hits ordered by descending rank.

        Args:
            query: Query text as typed by the user.
            filters: Row filters (status restriction).
            limit: Maximum number of hits.
            offset: Number of hits to skip.
            exclude: Post ids that must never be returned.
        """
        ...


class KeywordSource(ABC):
    """Capability interface for the controlled keyword vocabulary."""

    @abstractmethod
    async def top_keywords(self, prefix: str, limit: int) -> list[KeywordCount]:
        """Return keywords starting with ``prefix`` (case-insensitive).

        Ordered by usage count descending, then keyword ascending.
        """
        ...


def _apply_filters(stmt: Select, filters: SearchFilters, exclude: Collection[str]) -> Select:
    if filters.statuses:
        stmt = stmt.where(BlogPost.status.in_(filters.statuses))
    if exclude:
        stmt = stmt.where(BlogPost.id.not_in(list(exclude)))
    return stmt


def _to_hits(rows) -> list[RankedHit]:
    return [
        RankedHit(
            id=row.id,
            title=row.title,
            slug=row.slug,
            excerpt=row.excerpt,
            rank=float(row.rank),
        )
        for row in rows
    ]


class LexicalProvider(TextIndexProvider):
    """PostgreSQL tsvector-based ranked full-text lookup.

    The raw query goes to ``websearch_to_tsquery`` unmodified: the parser
    does its own tokenization and tolerates arbitrary punctuation, so manual
    sanitization would only lose information.

    Args:
        session: An async SQLAlchemy session for database queries.
        ts_config: Text search configuration name (default ``simple``).
    """

    def __init__(self, session: AsyncSession, ts_config: str = "simple") -> None:
        self._session = session
        self._ts_config = check_ts_config(ts_config)

    def build_statement(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> Select:
        tsquery = func.websearch_to_tsquery(literal_column(f"'{self._ts_config}'"), query)
        rank = func.ts_rank(BlogPost.search_vector, tsquery).label("rank")

        stmt = (
            select(
                BlogPost.id,
                BlogPost.title,
                BlogPost.slug,
                BlogPost.excerpt,
                rank,
            )
            .where(BlogPost.search_vector.op("@@")(tsquery))
            .order_by(rank.desc(), BlogPost.id.asc())
            .limit(limit)
            .offset(offset)
        )
        return _apply_filters(stmt, filters, exclude)

    async def find(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> list[RankedHit]:
        stmt = self.build_statement(query, filters, limit, offset, exclude)
        result = await self._session.execute(stmt)
        return _to_hits(result.fetchall())


class FuzzyProvider(TextIndexProvider):
    """PostgreSQL pg_trgm-based typo-tolerant lookup.

    A post matches when its title or its excerpt (NULL treated as empty)
    clears the trigram match threshold. By default that is the ``%``
    operator, i.e. the server's ``pg_trgm.similarity_threshold``. An explicit
    ``similarity_threshold`` replaces the operator with ``similarity() >= t``.

    Rank is ``GREATEST(similarity(title), similarity(excerpt))``.

    Args:
        session: An async SQLAlchemy session for database queries.
        similarity_threshold: Optional explicit minimum similarity.
    """

    def __init__(self, session: AsyncSession, similarity_threshold: float | None = None) -> None:
        self._session = session
        self._threshold = similarity_threshold

    def build_statement(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> Select:
        excerpt_text = func.coalesce(BlogPost.excerpt, "")
        title_sim = func.similarity(BlogPost.title, query)
        excerpt_sim = func.similarity(excerpt_text, query)
        rank = func.greatest(title_sim, excerpt_sim).label("rank")

        if self._threshold is None:
            # Indexed columns, not COALESCE: a NULL excerpt never matches.
            matches = BlogPost.title.op("%")(query) | BlogPost.excerpt.op("%")(query)
        else:
            matches = (title_sim >= self._threshold) | (excerpt_sim >= self._threshold)

        stmt = (
            select(
                BlogPost.id,
                BlogPost.title,
                BlogPost.slug,
                BlogPost.excerpt,
                rank,
            )
            .where(matches)
            .order_by(rank.desc(), BlogPost.id.asc())
            .limit(limit)
            .offset(offset)
        )
        return _apply_filters(stmt, filters, exclude)

    async def find(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> list[RankedHit]:
        stmt = self.build_statement(query, filters, limit, offset, exclude)
        result = await self._session.execute(stmt)
        return _to_hits(result.fetchall())


class KeywordProvider(KeywordSource):
    """Keyword vocabulary drawn from published posts' ``keywords`` arrays."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def build_statement(self, prefix: str, limit: int) -> Select:
        expanded = (
            select(
                BlogPost.id.label("post_id"),
                func.unnest(BlogPost.keywords, type_=String).label("keyword"),
            )
            .where(BlogPost.status == PostStatus.PUBLISHED)
            .subquery("post_keywords")
        )
        usage_count = func.count(distinct(expanded.c.post_id)).label("usage_count")

        return (
            select(expanded.c.keyword, usage_count)
            .where(expanded.c.keyword.istartswith(prefix, autoescape=True))
            .group_by(expanded.c.keyword)
            .order_by(usage_count.desc(), expanded.c.keyword.asc())
            .limit(limit)
        )

    async def top_keywords(self, prefix: str, limit: int) -> list[KeywordCount]:
        result = await self._session.execute(self.build_statement(prefix, limit))
        return [KeywordCount(keyword=row.keyword, usage_count=int(row.usage_count)) for row in result.fetchall()]
