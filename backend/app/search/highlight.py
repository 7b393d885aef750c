"""Search term highlighting for result excerpts."""

from __future__ import annotations

import re

MIN_TERM_LENGTH = 3


def highlight(text: str, query: str, tag: str = "mark") -> str:
    """Wrap every case-insensitive occurrence of each query term in ``tag``.

    Only terms longer than two characters are highlighted. Terms are applied
    in query order, so a later term may match inside markup produced by an
    earlier one.

    >>> highlight("Revenue analytics", "revenue")
    '<mark>Revenue</mark> analytics'
    """
    for term in query.split():
        if len(term) < MIN_TERM_LENGTH:
            continue
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        text = pattern.sub(lambda m: f"<{tag}>{m.group(0)}</{tag}>", text)
    return text
