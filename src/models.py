"""SQLAlchemy database models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


class ProfileDB(Base):
    """Local user record, created on first Firebase login."""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    firebase_uid = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False)
    nickname = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<ProfileDB(id={self.id}, email={self.email})>"


class ExerciseDB(Base):
    """Database model for the exercise library.

    record_type decides which of weight, reps and time are recorded for
    every set of the exercise.
    """

    __tablename__ = "exercises"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    aliases = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    target_part = Column(String, nullable=False, default="full_body")
    record_type = Column(String, nullable=False, default="weight_reps")
    description = Column(String, nullable=True)
    effects = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<ExerciseDB(id={self.id}, name={self.name})>"


class ProgramDB(Base):
    """Database model for workout programs.

    Programs are archived instead of deleted so that past sessions keep
    pointing at them.
    """

    __tablename__ = "programs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    rpe = Column(Float, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Ordered by execution sequence
    exercises = relationship(
        "ProgramExerciseDB",
        order_by="ProgramExerciseDB.order",
        back_populates="program",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<ProgramDB(id={self.id}, title={self.title})>"


class ProgramExerciseDB(Base):
    """One exercise slot in a program.

    Exercise name, target part and record type live on ExerciseDB and are
    projected onto this row when a program is read.
    """

    __tablename__ = "program_exercises"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    program_id = Column(
        Uuid, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    exercise_id = Column(Uuid, ForeignKey("exercises.id"), nullable=False)
    order = Column(Integer, nullable=False)
    target_sets = Column(Integer, nullable=False, default=1)
    target_reps = Column(Integer, nullable=True)
    target_weight = Column(Float, nullable=True)
    target_time = Column(Float, nullable=True)
    rest_seconds = Column(Integer, nullable=True)
    intention = Column(String, nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    program = relationship("ProgramDB", back_populates="exercises")
    exercise = relationship("ExerciseDB")

    __table_args__ = (
        UniqueConstraint("program_id", "order", name="uq_program_exercise_order"),
    )

    def __repr__(self):
        return (
            f"<ProgramExerciseDB(id={self.id}, program_id={self.program_id}, "
            f"order={self.order})>"
        )


class WorkoutSessionDB(Base):
    """Database model for one workout attempt.

    ended_at is NULL while the workout is in progress.
    """

    __tablename__ = "workout_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)
    program_id = Column(
        Uuid, ForeignKey("programs.id", ondelete="SET NULL"), nullable=True
    )
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    note = Column(String, nullable=True)

    sets = relationship(
        "WorkoutSetDB",
        order_by="WorkoutSetDB.created_at",
        back_populates="session",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<WorkoutSessionDB(id={self.id}, started_at={self.started_at})>"


class WorkoutSetDB(Base):
    """A single recorded set. Only written when a session is finished."""

    __tablename__ = "workout_sets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(
        Uuid, ForeignKey("workout_sessions.id", ondelete="CASCADE"), nullable=False
    )
    exercise_id = Column(Uuid, ForeignKey("exercises.id"), nullable=True)
    exercise_name = Column(String, nullable=False)
    set_number = Column(Integer, nullable=False)
    weight = Column(Float, nullable=True)
    reps = Column(Integer, nullable=True)
    time = Column(Float, nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    session = relationship("WorkoutSessionDB", back_populates="sets")

    def __repr__(self):
        return (
            f"<WorkoutSetDB(id={self.id}, session_id={self.session_id}, "
            f"set_number={self.set_number})>"
        )
