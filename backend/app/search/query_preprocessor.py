"""Query normalization for structured text queries.

Strips characters that carry meaning in PostgreSQL tsquery syntax but not in
user intent, and builds an AND-joined expression. An empty result is the
"do not query" sentinel.
"""

from __future__ import annotations

import re

# tsquery operators and grouping: < > ! * ( ) : | &
_QUERY_SYNTAX_RE = re.compile(r"[<>!*():|&]")

AND_OPERATOR = " & "


def split_terms(raw: str) -> list[str]:
    """Return the whitespace-separated terms of ``raw`` with syntax stripped.

    Terms that become empty after stripping are dropped.
    """
    terms: list[str] = []
    for token in raw.strip().split():
        cleaned = _QUERY_SYNTAX_RE.sub("", token)
        if cleaned:
            terms.append(cleaned)
    return terms


def normalize_query(raw: str) -> str:
    """Normalize a raw user query into an AND-joined tsquery expression.

    Args:
        raw: Raw query string from the user.

    Returns:
        Terms joined with ``&``, e.g. ``"revenue & operations"``.
        Empty string if no terms remain; callers must treat that as
        "no results" and skip the data store.
    """
    return AND_OPERATOR.join(split_terms(raw))
