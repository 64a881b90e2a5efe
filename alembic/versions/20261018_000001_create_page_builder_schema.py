"""Create the page builder item and search tables.

``page_builder_items`` stores page revisions, pointers, the published-path
index, categories and settings as JSON items keyed by ``(pk, sk)``.
``page_builder_search`` stores the latest/published search projection.

Examples
--------
Apply the migration with Alembic:

>>> alembic upgrade head
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def _create_items_table() -> None:
    """Create the page_builder_items table."""
    op.create_table(
        "page_builder_items",
        sa.Column("pk", sa.String(255), primary_key=True),
        sa.Column("sk", sa.String(255), primary_key=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def _create_search_table() -> None:
    """Create the page_builder_search table and its indexes."""
    op.create_table(
        "page_builder_search",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("tenant", sa.String(100), nullable=False),
        sa.Column("locale", sa.String(32), nullable=False),
        sa.Column("pid", sa.String(64), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("title_lc", sa.String(255), nullable=False),
        sa.Column("created_by_id", sa.String(255), nullable=True),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("saved_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("body", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_page_builder_search_scope",
        "page_builder_search",
        ["tenant", "locale", "kind"],
    )
    op.create_index(
        "ix_page_builder_search_pid",
        "page_builder_search",
        ["pid"],
    )


def upgrade() -> None:
    """Apply schema changes."""
    _create_items_table()
    _create_search_table()


def downgrade() -> None:
    """Revert schema changes."""
    op.drop_index("ix_page_builder_search_pid", table_name="page_builder_search")
    op.drop_index("ix_page_builder_search_scope", table_name="page_builder_search")
    op.drop_table("page_builder_search")
    op.drop_table("page_builder_items")
