"""Centralized search parameter management.

Search tuning knobs (sufficiency cap, trigram threshold, text search
configuration, highlight tag) live in application settings. Defaults here
reproduce the engine's stock behaviour; overrides only take effect when set
explicitly.

Usage in search engines::

    from app.search.params import get_search_params
    params = get_search_params()
    threshold = params.sufficiency_threshold(limit)
"""

from __future__ import annotations

from typing import Any, NamedTuple

from app.config import get_settings

DEFAULT_SEARCH_PARAMS: dict[str, Any] = {
    # Lexical
    "ts_config": "simple",
    # Hybrid fallback
    "sufficiency_cap": 5,
    # Trigram (None = use the pg_trgm % operator's own threshold)
    "trigram_threshold": None,
    # Highlight
    "highlight_tag": "mark",
    # Suggestions
    "suggestion_min_prefix": 2,
}

_SETTINGS_KEYS: dict[str, str] = {
    "ts_config": "SEARCH_TS_CONFIG",
    "sufficiency_cap": "SEARCH_SUFFICIENCY_CAP",
    "trigram_threshold": "SEARCH_TRIGRAM_THRESHOLD",
    "highlight_tag": "SEARCH_HIGHLIGHT_TAG",
    "suggestion_min_prefix": "SEARCH_SUGGESTION_MIN_PREFIX",
}


class SearchParams(NamedTuple):
    """Resolved search parameters."""

    ts_config: str
    sufficiency_cap: int
    trigram_threshold: float | None
    highlight_tag: str
    suggestion_min_prefix: int

    def sufficiency_threshold(self, limit: int) -> int:
        """Minimum lexical hit count below which the fuzzy pass runs."""
        return min(limit, self.sufficiency_cap)


def get_search_params(**overrides: Any) -> SearchParams:
    """Return current search parameters, merging settings with defaults.

    Keyword overrides win over settings, which win over defaults. Unknown
    keys are ignored.
    """
    settings = get_settings()
    merged = {**DEFAULT_SEARCH_PARAMS}
    for key, attr in _SETTINGS_KEYS.items():
        value = getattr(settings, attr, None)
        if value is not None:
            merged[key] = value
    for key, value in overrides.items():
        if key in DEFAULT_SEARCH_PARAMS:
            merged[key] = value
    return SearchParams(**merged)
