"""Add supplements, supplement assignments and logs, and workout logs.

Revision ID: 20261019_0005
Revises: 20261019_0004
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_0005"
down_revision: Union[str, Sequence[str], None] = "20261019_0004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "supplements" not in table_names:
        op.create_table(
            "supplements",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("trainer_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("brand", sa.String(), nullable=True),
            sa.Column("category", sa.String(), nullable=False),
            sa.Column("dosage", sa.String(), nullable=True),
            sa.Column("timing", sa.String(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("product_url", sa.String(), nullable=True),
            sa.Column("image_url", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_supplements_id", "supplements", ["id"], unique=False)
        op.create_index("ix_supplements_trainer_id", "supplements", ["trainer_id"], unique=False)
        op.create_index("ix_supplements_is_active", "supplements", ["is_active"], unique=False)
        op.create_index("ix_supplements_created_at", "supplements", ["created_at"], unique=False)

    if "member_supplements" not in table_names:
        op.create_table(
            "member_supplements",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("member_id", sa.Integer(), nullable=False),
            sa.Column("supplement_id", sa.Integer(), nullable=False),
            sa.Column("recommended_by", sa.Integer(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("custom_dosage", sa.String(), nullable=True),
            sa.Column("custom_timing", sa.String(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
            sa.ForeignKeyConstraint(["supplement_id"], ["supplements.id"]),
            sa.ForeignKeyConstraint(["recommended_by"], ["trainers.id"]),
            sa.UniqueConstraint("member_id", "supplement_id", name="uq_member_supplements_pair"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_member_supplements_id", "member_supplements", ["id"], unique=False)
        op.create_index("ix_member_supplements_member_id", "member_supplements", ["member_id"], unique=False)
        op.create_index(
            "ix_member_supplements_supplement_id",
            "member_supplements",
            ["supplement_id"],
            unique=False,
        )
        op.create_index("ix_member_supplements_is_active", "member_supplements", ["is_active"], unique=False)
        op.create_index(
            "ix_member_supplements_created_at",
            "member_supplements",
            ["created_at"],
            unique=False,
        )

    if "supplement_logs" not in table_names:
        op.create_table(
            "supplement_logs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("member_id", sa.Integer(), nullable=False),
            sa.Column("supplement_id", sa.Integer(), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("taken", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
            sa.ForeignKeyConstraint(["supplement_id"], ["supplements.id"]),
            sa.UniqueConstraint("member_id", "supplement_id", "date", name="uq_supplement_logs_day"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_supplement_logs_id", "supplement_logs", ["id"], unique=False)
        op.create_index("ix_supplement_logs_member_id", "supplement_logs", ["member_id"], unique=False)
        op.create_index("ix_supplement_logs_supplement_id", "supplement_logs", ["supplement_id"], unique=False)
        op.create_index("ix_supplement_logs_date", "supplement_logs", ["date"], unique=False)

    if "workout_logs" not in table_names:
        op.create_table(
            "workout_logs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("member_id", sa.Integer(), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("exercise_type", sa.String(), nullable=False),
            sa.Column("exercise_name", sa.String(), nullable=False),
            sa.Column("sets", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("reps", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("weight", sa.Float(), nullable=False, server_default="0"),
            sa.Column("duration", sa.Integer(), nullable=True),
            sa.Column("distance", sa.Float(), nullable=True),
            sa.Column("calories", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_workout_logs_id", "workout_logs", ["id"], unique=False)
        op.create_index("ix_workout_logs_member_id", "workout_logs", ["member_id"], unique=False)
        op.create_index("ix_workout_logs_date", "workout_logs", ["date"], unique=False)
        op.create_index("ix_workout_logs_exercise_type", "workout_logs", ["exercise_type"], unique=False)


def downgrade() -> None:
    op.drop_table("workout_logs")
    op.drop_table("supplement_logs")
    op.drop_table("member_supplements")
    op.drop_table("supplements")
