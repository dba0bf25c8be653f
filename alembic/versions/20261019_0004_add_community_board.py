"""Add community posts and comments.

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_0004"
down_revision: Union[str, Sequence[str], None] = "20261019_0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "community_posts" not in table_names:
        op.create_table(
            "community_posts",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("author_id", sa.Integer(), nullable=False),
            sa.Column("author_role", sa.String(), nullable=False),
            sa.Column("author_name", sa.String(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("is_notice", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.Column("deleted_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_community_posts_id", "community_posts", ["id"], unique=False)
        op.create_index("ix_community_posts_author_id", "community_posts", ["author_id"], unique=False)
        op.create_index("ix_community_posts_created_at", "community_posts", ["created_at"], unique=False)

    if "community_comments" not in table_names:
        op.create_table(
            "community_comments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("author_id", sa.Integer(), nullable=False),
            sa.Column("author_role", sa.String(), nullable=False),
            sa.Column("author_name", sa.String(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("deleted_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["post_id"], ["community_posts.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_community_comments_id", "community_comments", ["id"], unique=False)
        op.create_index("ix_community_comments_post_id", "community_comments", ["post_id"], unique=False)
        op.create_index(
            "ix_community_comments_author_id",
            "community_comments",
            ["author_id"],
            unique=False,
        )
        op.create_index(
            "ix_community_comments_created_at",
            "community_comments",
            ["created_at"],
            unique=False,
        )


def downgrade() -> None:
    op.drop_table("community_comments")
    op.drop_table("community_posts")
