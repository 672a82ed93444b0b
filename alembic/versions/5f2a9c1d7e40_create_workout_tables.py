"""create_workout_tables

Revision ID: 5f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:12:44.210553

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5f2a9c1d7e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("firebase_uid", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("nickname", sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index(
        op.f("ix_profiles_firebase_uid"), "profiles", ["firebase_uid"], unique=True
    )

    op.create_table(
        "exercises",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("aliases", JSONB, nullable=True),
        sa.Column("target_part", sa.String(), nullable=False),
        sa.Column("record_type", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("effects", sa.String(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "programs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("rpe", sa.Float(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        _created_at(),
    )
    op.create_index(op.f("ix_programs_user_id"), "programs", ["user_id"])

    op.create_table(
        "program_exercises",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "program_id",
            sa.Uuid(),
            sa.ForeignKey("programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exercise_id", sa.Uuid(), sa.ForeignKey("exercises.id"), nullable=False
        ),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("target_sets", sa.Integer(), nullable=False),
        sa.Column("target_reps", sa.Integer(), nullable=True),
        sa.Column("target_weight", sa.Float(), nullable=True),
        sa.Column("target_time", sa.Float(), nullable=True),
        sa.Column("rest_seconds", sa.Integer(), nullable=True),
        sa.Column("intention", sa.String(), nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("program_id", "order", name="uq_program_exercise_order"),
    )

    op.create_table(
        "workout_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column(
            "program_id",
            sa.Uuid(),
            sa.ForeignKey("programs.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("note", sa.String(), nullable=True),
    )
    op.create_index(
        op.f("ix_workout_sessions_user_id"), "workout_sessions", ["user_id"]
    )

    op.create_table(
        "workout_sets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "session_id",
            sa.Uuid(),
            sa.ForeignKey("workout_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exercise_id", sa.Uuid(), sa.ForeignKey("exercises.id"), nullable=True
        ),
        sa.Column("exercise_name", sa.String(), nullable=False),
        sa.Column("set_number", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("time", sa.Float(), nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("workout_sets")
    op.drop_index(op.f("ix_workout_sessions_user_id"), table_name="workout_sessions")
    op.drop_table("workout_sessions")
    op.drop_table("program_exercises")
    op.drop_index(op.f("ix_programs_user_id"), table_name="programs")
    op.drop_table("programs")
    op.drop_table("exercises")
    op.drop_index(op.f("ix_profiles_firebase_uid"), table_name="profiles")
    op.drop_table("profiles")
