# @TASK P0-T0.5 - PostgreSQL schema for searchable blog content

import enum
import re
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, TSVECTOR
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class PostStatus(str, enum.Enum):
    """Lifecycle states of a blog post in the content store."""

    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class BlogPost(Base):
    """Blog post as seen by the search core.

    Rows are owned by the content store. ``search_vector`` holds the weighted
    title/excerpt/content tsvector, kept current by a database trigger on
    every write; search only reads it.
    """

    __tablename__ = "blog_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), default="")
    slug: Mapped[str] = mapped_column(String(500), unique=True, index=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, name="post_status"), default=PostStatus.DRAFT, index=True
    )
    keywords: Mapped[list[str]] = mapped_column(ARRAY(String(100)), default=list, server_default="{}")
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Full-text search vector
    search_vector: Mapped[str | None] = mapped_column(TSVECTOR, nullable=True)

    __table_args__ = (
        Index("idx_blog_posts_search_vector", "search_vector", postgresql_using="gin"),
        Index(
            "idx_blog_posts_title_trgm",
            "title",
            postgresql_using="gin",
            postgresql_ops={"title": "gin_trgm_ops"},
        ),
        Index(
            "idx_blog_posts_excerpt_trgm",
            "excerpt",
            postgresql_using="gin",
            postgresql_ops={"excerpt": "gin_trgm_ops"},
        ),
        Index("idx_blog_posts_keywords", "keywords", postgresql_using="gin"),
    )


# ---------------------------------------------------------------------------
# search_vector maintenance
# ---------------------------------------------------------------------------

_TS_CONFIG_RE = re.compile(r"[a-z_]+")

SEARCH_VECTOR_WEIGHTS = (("title", "A"), ("excerpt", "B"), ("content", "C"))


def check_ts_config(name: str) -> str:
    """Return ``name`` if it is a plausible text search configuration name.

    The name is inlined into SQL, so only lowercase letters and underscores
    are accepted.
    """
    if not _TS_CONFIG_RE.fullmatch(name):
        raise ValueError(f"Invalid text search configuration: {name!r}")
    return name


def search_vector_sql(ts_config: str, row: str = "NEW") -> str:
    """SQL expression computing the weighted ``search_vector`` of ``row``.

    ``ts_config`` must be the configuration queries are parsed with
    (``SEARCH_TS_CONFIG``); otherwise indexed and queried lexemes differ.
    """
    ts_config = check_ts_config(ts_config)
    return " || ".join(
        f"setweight(to_tsvector('{ts_config}', coalesce({row}.{column}, '')), '{weight}')"
        for column, weight in SEARCH_VECTOR_WEIGHTS
    )
