"""In-memory text index providers.

Pure-Python counterparts of the PostgreSQL providers, operating on a list of
``CorpusPost`` records. Used by unit tests and local tooling where no
database is available.

Trigram similarity follows pg_trgm: text is lower-cased and split into
alphanumeric words, each word is padded with two leading spaces and one
trailing space, and similarity is ``|shared| / |union|`` over the trigram
sets. The default match threshold is pg_trgm's ``similarity_threshold``
default of 0.3.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field

from app.models import PostStatus
from app.search.providers import (
    KeywordCount,
    KeywordSource,
    RankedHit,
    SearchFilters,
    TextIndexProvider,
)

PG_TRGM_DEFAULT_THRESHOLD = 0.3

_WORD_RE = re.compile(r"[^\W_]+")

# title > excerpt > body, mirroring setweight A/B/C on search_vector
_FIELD_WEIGHTS = (1.0, 0.4, 0.2)


@dataclass
class CorpusPost:
    """A blog post as held in the in-memory corpus."""

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    content: str = ""
    status: PostStatus = PostStatus.PUBLISHED
    keywords: list[str] = field(default_factory=list)


def _words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def trigrams(text: str) -> set[str]:
    """Return the pg_trgm trigram set of ``text``."""
    grams: set[str] = set()
    for word in _words(text):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i : i + 3])
    return grams


def trigram_similarity(a: str, b: str) -> float:
    """pg_trgm ``similarity(a, b)``."""
    left, right = trigrams(a), trigrams(b)
    if not left or not right:
        return 0.0
    shared = len(left & right)
    return shared / (len(left) + len(right) - shared)


def _visible(post: CorpusPost, filters: SearchFilters, exclude: Collection[str]) -> bool:
    if filters.statuses and post.status not in filters.statuses:
        return False
    return post.id not in exclude


def _page(hits: list[RankedHit], limit: int, offset: int) -> list[RankedHit]:
    hits.sort(key=lambda hit: (-hit.rank, hit.id))
    return hits[offset : offset + limit]


class InMemoryLexicalProvider(TextIndexProvider):
    """Word-match lookup: every query word must occur in the post.

    Rank is a weighted term-frequency score squashed into ``[0, 1)``.
    """

    def __init__(self, posts: Iterable[CorpusPost]) -> None:
        self._posts = list(posts)

    def _rank(self, post: CorpusPost, terms: list[str]) -> float:
        fields = (post.title, post.excerpt or "", post.content)
        counts = [Counter(_words(text)) for text in fields]
        if any(all(counter[term] == 0 for counter in counts) for term in terms):
            return 0.0
        raw = sum(
            weight * counter[term]
            for weight, counter in zip(_FIELD_WEIGHTS, counts)
            for term in terms
        )
        return raw / (1.0 + raw)

    async def find(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> list[RankedHit]:
        terms = _words(query)
        if not terms:
            return []
        hits = []
        for post in self._posts:
            if not _visible(post, filters, exclude):
                continue
            rank = self._rank(post, terms)
            if rank > 0:
                hits.append(RankedHit(post.id, post.title, post.slug, post.excerpt, rank))
        return _page(hits, limit, offset)


class InMemoryFuzzyProvider(TextIndexProvider):
    """Trigram lookup over title and excerpt; best field wins."""

    def __init__(
        self,
        posts: Iterable[CorpusPost],
        similarity_threshold: float | None = None,
    ) -> None:
        self._posts = list(posts)
        self._threshold = PG_TRGM_DEFAULT_THRESHOLD if similarity_threshold is None else similarity_threshold

    async def find(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
        offset: int = 0,
        exclude: Collection[str] = (),
    ) -> list[RankedHit]:
        hits = []
        for post in self._posts:
            if not _visible(post, filters, exclude):
                continue
            title_sim = trigram_similarity(post.title, query)
            excerpt_sim = trigram_similarity(post.excerpt or "", query)
            if title_sim >= self._threshold or excerpt_sim >= self._threshold:
                hits.append(RankedHit(post.id, post.title, post.slug, post.excerpt, max(title_sim, excerpt_sim)))
        return _page(hits, limit, offset)


class InMemoryKeywordSource(KeywordSource):
    """Keyword usage counts over published posts."""

    def __init__(self, posts: Iterable[CorpusPost]) -> None:
        self._posts = list(posts)

    async def top_keywords(self, prefix: str, limit: int) -> list[KeywordCount]:
        lowered = prefix.lower()
        usage: Counter[str] = Counter()
        for post in self._posts:
            if post.status != PostStatus.PUBLISHED:
                continue
            for keyword in set(post.keywords):
                if keyword.lower().startswith(lowered):
                    usage[keyword] += 1
        ranked = sorted(usage.items(), key=lambda item: (-item[1], item[0]))
        return [KeywordCount(keyword, count) for keyword, count in ranked[:limit]]
