"""Add likes on community posts and comments.

Revision ID: 20261019_0006
Revises: 20261019_0005
Create Date: 2026-10-19 10:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_0006"
down_revision: Union[str, Sequence[str], None] = "20261019_0005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "community_post_likes" not in table_names:
        op.create_table(
            "community_post_likes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("user_role", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["post_id"], ["community_posts.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("post_id", "user_id", "user_role", name="uq_community_post_likes_user"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_community_post_likes_id", "community_post_likes", ["id"], unique=False)
        op.create_index("ix_community_post_likes_post_id", "community_post_likes", ["post_id"], unique=False)

    if "community_comment_likes" not in table_names:
        op.create_table(
            "community_comment_likes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("comment_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("user_role", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["comment_id"], ["community_comments.id"], ondelete="CASCADE"),
            sa.UniqueConstraint(
                "comment_id",
                "user_id",
                "user_role",
                name="uq_community_comment_likes_user",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_community_comment_likes_id", "community_comment_likes", ["id"], unique=False)
        op.create_index(
            "ix_community_comment_likes_comment_id",
            "community_comment_likes",
            ["comment_id"],
            unique=False,
        )


def downgrade() -> None:
    op.drop_table("community_comment_likes")
    op.drop_table("community_post_likes")
