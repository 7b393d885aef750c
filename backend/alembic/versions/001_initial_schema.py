# @TASK P0-T0.5 - Blog post schema with full-text and trigram indexes

"""Create blog_posts table, enable pg_trgm, add search indexes.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-18 08:00:00.000000

pg_trgm enables ``similarity()`` and the ``%`` operator used by fuzzy
search; the GIN trigram indexes accelerate both. ``search_vector`` is
maintained by a trigger over title, excerpt and content, using the
``SEARCH_TS_CONFIG`` text search configuration in effect when the migration
runs. Changing that setting later requires recreating the trigger function
and rebuilding existing vectors.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from app.config import get_settings
from app.models import search_vector_sql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

POST_STATUSES = ("DRAFT", "REVIEW", "SCHEDULED", "PUBLISHED", "ARCHIVED", "DELETED")


def upgrade() -> None:
    """Apply schema migrations."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pg_trgm"')

    op.create_table(
        "blog_posts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("slug", sa.String(500), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "status",
            sa.Enum(*POST_STATUSES, name="post_status"),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("keywords", postgresql.ARRAY(sa.String(100)), nullable=False, server_default="{}"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("search_vector", postgresql.TSVECTOR(), nullable=True),
    )
    op.create_index("ix_blog_posts_slug", "blog_posts", ["slug"], unique=True)
    op.create_index("ix_blog_posts_status", "blog_posts", ["status"])
    op.create_index("idx_blog_posts_search_vector", "blog_posts", ["search_vector"], postgresql_using="gin")
    op.create_index("idx_blog_posts_keywords", "blog_posts", ["keywords"], postgresql_using="gin")
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_blog_posts_title_trgm
        ON blog_posts USING GIN (title gin_trgm_ops)
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_blog_posts_excerpt_trgm
        ON blog_posts USING GIN (excerpt gin_trgm_ops)
        """
    )

    # search_vector: title (A), excerpt (B), body (C), kept current by trigger.
    # Built with SEARCH_TS_CONFIG, the configuration queries are parsed with.
    op.execute(f"""
        CREATE OR REPLACE FUNCTION blog_posts_search_vector_update()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.search_vector := {search_vector_sql(get_settings().SEARCH_TS_CONFIG)};
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trigger_blog_posts_search_vector
            BEFORE INSERT OR UPDATE OF title, excerpt, content ON blog_posts
            FOR EACH ROW
            EXECUTE FUNCTION blog_posts_search_vector_update();
    """)


def downgrade() -> None:
    """Revert schema migrations."""
    op.execute("DROP TRIGGER IF EXISTS trigger_blog_posts_search_vector ON blog_posts")
    op.execute("DROP FUNCTION IF EXISTS blog_posts_search_vector_update()")
    op.execute("DROP INDEX IF EXISTS idx_blog_posts_excerpt_trgm")
    op.execute("DROP INDEX IF EXISTS idx_blog_posts_title_trgm")
    op.drop_table("blog_posts")
    op.execute("DROP TYPE IF EXISTS post_status")
