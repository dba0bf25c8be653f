"""Add memberships, appointments and the appointment event timeline.

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:10:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_0002"
down_revision: Union[str, Sequence[str], None] = "20261019_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "memberships" not in table_names:
        op.create_table(
            "memberships",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("member_id", sa.Integer(), nullable=False),
            sa.Column("type", sa.String(), nullable=False),
            sa.Column("total_sessions", sa.Integer(), nullable=True),
            sa.Column("remaining_sessions", sa.Integer(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
            sa.CheckConstraint(
                "remaining_sessions IS NULL OR remaining_sessions >= 0",
                name="ck_memberships_remaining_non_negative",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_memberships_id", "memberships", ["id"], unique=False)
        op.create_index("ix_memberships_member_id", "memberships", ["member_id"], unique=False)
        op.create_index("ix_memberships_is_active", "memberships", ["is_active"], unique=False)
        op.create_index("ix_memberships_created_at", "memberships", ["created_at"], unique=False)

    if "appointments" not in table_names:
        op.create_table(
            "appointments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("trainer_id", sa.Integer(), nullable=False),
            sa.Column("member_id", sa.Integer(), nullable=False),
            sa.Column("membership_id", sa.Integer(), nullable=True),
            sa.Column("scheduled_at", sa.DateTime(), nullable=False),
            sa.Column("duration", sa.Integer(), nullable=False, server_default="60"),
            sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"]),
            sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
            sa.ForeignKeyConstraint(["membership_id"], ["memberships.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_appointments_id", "appointments", ["id"], unique=False)
        op.create_index("ix_appointments_trainer_id", "appointments", ["trainer_id"], unique=False)
        op.create_index("ix_appointments_member_id", "appointments", ["member_id"], unique=False)
        op.create_index(
            "ix_appointments_membership_id",
            "appointments",
            ["membership_id"],
            unique=False,
        )
        op.create_index("ix_appointments_scheduled_at", "appointments", ["scheduled_at"], unique=False)

    if "appointment_events" not in table_names:
        op.create_table(
            "appointment_events",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("appointment_id", sa.Integer(), nullable=False),
            sa.Column("action", sa.String(), nullable=False),
            sa.Column("actor_id", sa.Integer(), nullable=True),
            sa.Column("actor_email", sa.String(), nullable=True),
            sa.Column("actor_role", sa.String(), nullable=True),
            sa.Column("note", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_appointment_events_id", "appointment_events", ["id"], unique=False)
        op.create_index(
            "ix_appointment_events_appointment_id",
            "appointment_events",
            ["appointment_id"],
            unique=False,
        )
        op.create_index("ix_appointment_events_action", "appointment_events", ["action"], unique=False)
        op.create_index(
            "ix_appointment_events_actor_id",
            "appointment_events",
            ["actor_id"],
            unique=False,
        )
        op.create_index(
            "ix_appointment_events_actor_email",
            "appointment_events",
            ["actor_email"],
            unique=False,
        )
        op.create_index(
            "ix_appointment_events_created_at",
            "appointment_events",
            ["created_at"],
            unique=False,
        )


def downgrade() -> None:
    op.drop_table("appointment_events")
    op.drop_table("appointments")
    op.drop_table("memberships")
