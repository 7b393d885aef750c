# @TASK P0-T0.3 - FastAPI app entrypoint

"""Blog search service.

Run with ``uvicorn app.main:app`` from the ``backend`` directory. The
schema is owned by the alembic migrations; the service only reads it.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.search import router as search_router
from app.config import get_settings
from app.database import engine
from app.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging(settings.LOG_LEVEL)
    logger.info("Blog search starting: ts_config=%s", settings.SEARCH_TS_CONFIG)
    yield
    await engine.dispose()


app = FastAPI(
    title="Blog Search",
    description="Hybrid lexical/fuzzy search over blog content",
    version="0.1.0",
    lifespan=lifespan,
)

# Read-only API: browsers only ever need GET.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(search_router, prefix="/api")


@app.get("/api/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Liveness probe. Does not touch the database."""
    return {"status": "ok"}
