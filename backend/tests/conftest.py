# @TASK P0-T0.3 - Test configuration
import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
os.environ.setdefault("DATABASE_URL", "postgresql+asyncpg://blog:blog@db:5432/blog_test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def mock_session():
    """Provide an AsyncSession stand-in whose execute() returns no rows.

    Tests override ``mock_session.execute`` to feed rows or raise.
    """
    session = AsyncMock()
    result_mock = MagicMock()
    result_mock.fetchall.return_value = []
    session.execute = AsyncMock(return_value=result_mock)
    return session


@pytest.fixture
def corpus():
    """Provide a small in-memory blog corpus."""
    from app.models import PostStatus
    from app.search.memory import CorpusPost

    return [
        CorpusPost(
            id="p1",
            title="Revenue Operations Guide",
            slug="revenue-operations-guide",
            excerpt=None,
            content="How revenue teams align sales and marketing.",
            keywords=["revenue", "RevOps", "operations"],
        ),
        CorpusPost(
            id="p2",
            title="Revenue Forecasting Tips",
            slug="revenue-forecasting-tips",
            excerpt=None,
            content="Forecast pipeline with confidence.",
            keywords=["revenue", "forecasting"],
        ),
        CorpusPost(
            id="p3",
            title="Marketing Funnel Basics",
            slug="marketing-funnel-basics",
            excerpt="Top, middle and bottom of the funnel explained.",
            content="Lead attribution and funnel stages.",
            keywords=["marketing", "funnel"],
        ),
        CorpusPost(
            id="p4",
            title="Retention Playbook",
            slug="retention-playbook",
            excerpt="Reducing churn with health scores.",
            content="Retention strategies for subscription revenue.",
            status=PostStatus.DRAFT,
            keywords=["retention", "revenue"],
        ),
    ]


@pytest_asyncio.fixture(scope="function")
async def test_app(mock_session):
    """Provide a FastAPI app instance with the database dependency overridden."""
    from app.database import get_db
    from app.main import app

    async def override_get_db():
        yield mock_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing against the app."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def clean_settings():
    """Drop cached settings so environment overrides take effect."""
    from app.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def three_posts():
    """Provide three published posts, two about revenue."""
    from app.search.memory import CorpusPost

    return [
        CorpusPost(id="p1", title="Revenue Operations Guide", slug="revenue-operations-guide"),
        CorpusPost(id="p2", title="Revenue Forecasting Tips", slug="revenue-forecasting-tips"),
        CorpusPost(id="p3", title="Marketing Funnel Basics", slug="marketing-funnel-basics"),
    ]
