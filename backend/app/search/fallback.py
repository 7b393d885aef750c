"""Recoverable-call combinator.

Search phases that are enhancements (fuzzy fill, suggestions) must never
fail a request. They run through :func:`run_recoverable`, which converts any
``Exception`` into a default value plus a warning log. Phases that are not
recoverable simply call their provider directly and let errors propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_recoverable(
    call: Callable[[], Awaitable[T]],
    default: Callable[[], T],
    label: str,
    **context: Any,
) -> T:
    """Await ``call()``; on failure log with ``context`` and return ``default()``.

    ``asyncio.CancelledError`` is a ``BaseException`` and is not caught, so
    request cancellation still propagates.
    """
    try:
        return await call()
    except Exception:
        logger.warning("%s failed, using empty result (context=%r)", label, context, exc_info=True)
        return default()
