# @TASK P4-T4.4 - Keyword autocomplete
# @TEST tests/test_suggestions.py

"""Keyword suggestions for search autocomplete."""

from __future__ import annotations

import logging

from app.search.fallback import run_recoverable
from app.search.providers import KeywordSource

logger = logging.getLogger(__name__)


class SuggestionEngine:
    """Prefix autocomplete over the published keyword vocabulary.

    Prefixes shorter than ``min_prefix`` characters are rejected before any
    lookup. Lookup failures are logged and produce an empty list.

    Args:
        source: Keyword vocabulary source.
        min_prefix: Minimum prefix length (default 2).
    """

    def __init__(self, source: KeywordSource, min_prefix: int = 2) -> None:
        self._source = source
        self._min_prefix = min_prefix

    async def suggest(self, prefix: str, limit: int = 5) -> list[str]:
        stripped = prefix.strip()
        if len(stripped) < self._min_prefix or limit <= 0:
            return []

        async def _lookup() -> list[str]:
            rows = await self._source.top_keywords(stripped, limit)
            return [row.keyword for row in rows]

        return await run_recoverable(_lookup, default=list, label="Keyword suggestions", prefix=stripped)
