# @TASK P2-T2.1 - Search engine package
# @TASK P2-T2.3 - Lexical search
# @TASK P2-T2.6 - Fuzzy fallback search

"""Search engine package for hybrid lexical/fuzzy blog search."""

from app.search.engine import (
    BlogSearchEngine,
    FuzzySearchStrategy,
    LexicalSearchStrategy,
    MatchType,
    SearchQuery,
    SearchResult,
    merge_results,
)
from app.search.highlight import highlight
from app.search.providers import (
    FuzzyProvider,
    KeywordProvider,
    LexicalProvider,
    RankedHit,
    SearchFilters,
    TextIndexProvider,
)
from app.search.query_preprocessor import normalize_query
from app.search.suggestions import SuggestionEngine

__all__ = [
    "BlogSearchEngine",
    "FuzzyProvider",
    "FuzzySearchStrategy",
    "KeywordProvider",
    "LexicalProvider",
    "LexicalSearchStrategy",
    "MatchType",
    "RankedHit",
    "SearchFilters",
    "SearchQuery",
    "SearchResult",
    "SuggestionEngine",
    "TextIndexProvider",
    "highlight",
    "merge_results",
    "normalize_query",
]
