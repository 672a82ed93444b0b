"""Backend client used by the workout core.

WorkoutStore is the set of writes and reads the core needs. SqlWorkoutStore
implements it on a SQLAlchemy session, scoped to one user, and is created
per request so tests can hand the adapters any other implementation.
"""

import logging
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from models import ProgramDB, ProgramExerciseDB, WorkoutSessionDB, WorkoutSetDB
from typedefs import Program, ProgramExercise, WorkoutSessionRecord, WorkoutSetRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A backend read or write failed."""


class NotFoundError(StoreError):
    pass


class WorkoutStore(Protocol):
    def create_session(self, program_id: UUID) -> WorkoutSessionRecord: ...

    def create_set(
        self,
        session_id: UUID,
        exercise_id: UUID,
        exercise_name: str,
        set_number: int,
        weight: float | None,
        reps: int | None,
        time: float | None,
        note: str | None = None,
    ) -> WorkoutSetRecord: ...

    def update_set(
        self,
        set_id: UUID,
        weight: float | None,
        reps: int | None,
        time: float | None,
    ) -> WorkoutSetRecord: ...

    def complete_session(
        self, session_id: UUID, note: str | None = None
    ) -> WorkoutSessionRecord: ...

    def read_program(self, program_id: UUID) -> Program: ...

    def delete_session(self, session_id: UUID) -> bool: ...


def project_program_exercise(row: ProgramExerciseDB) -> ProgramExercise:
    """Copy the joined exercise's display metadata onto a program exercise."""
    meta = row.exercise
    return ProgramExercise(
        id=row.id,
        program_id=row.program_id,
        exercise_id=row.exercise_id,
        name=meta.name if meta else "",
        target_part=meta.target_part if meta else None,
        record_type=meta.record_type if meta else "weight_reps",
        order=row.order,
        target_sets=row.target_sets or 1,
        target_reps=row.target_reps,
        target_weight=row.target_weight,
        target_time=row.target_time,
        rest_seconds=row.rest_seconds,
        intention=row.intention,
        note=row.note,
    )


def project_program(row: ProgramDB) -> Program:
    return Program(
        id=row.id,
        title=row.title,
        description=row.description,
        rpe=row.rpe,
        created_at=row.created_at,
        exercises=[project_program_exercise(ex) for ex in row.exercises],
    )


class SqlWorkoutStore:
    """WorkoutStore backed by the application database."""

    def __init__(self, db: Session, user_id: UUID):
        self.db = db
        self.user_id = user_id

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise StoreError(f"Failed to {action}") from e

    def _get_session(self, session_id: UUID) -> WorkoutSessionDB:
        session = (
            self.db.query(WorkoutSessionDB)
            .filter(
                WorkoutSessionDB.id == session_id,
                WorkoutSessionDB.user_id == self.user_id,
            )
            .first()
        )
        if not session:
            raise NotFoundError("Workout session not found")
        return session

    def create_session(self, program_id: UUID) -> WorkoutSessionRecord:
        session = WorkoutSessionDB(
            user_id=self.user_id,
            program_id=program_id,
            started_at=datetime.now(UTC),
        )
        self.db.add(session)
        self._commit("create workout session")
        self.db.refresh(session)
        return WorkoutSessionRecord.model_validate(session)

    def create_set(
        self,
        session_id: UUID,
        exercise_id: UUID,
        exercise_name: str,
        set_number: int,
        weight: float | None,
        reps: int | None,
        time: float | None,
        note: str | None = None,
    ) -> WorkoutSetRecord:
        self._get_session(session_id)
        workout_set = WorkoutSetDB(
            session_id=session_id,
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            set_number=set_number,
            weight=weight,
            reps=reps,
            time=time,
            note=note,
        )
        logger.debug(
            "Saving set %s of %s for session %s", set_number, exercise_name, session_id
        )
        self.db.add(workout_set)
        self._commit("save workout set")
        self.db.refresh(workout_set)
        return WorkoutSetRecord.model_validate(workout_set)

    def update_set(
        self,
        set_id: UUID,
        weight: float | None,
        reps: int | None,
        time: float | None,
    ) -> WorkoutSetRecord:
        workout_set = (
            self.db.query(WorkoutSetDB)
            .join(WorkoutSessionDB)
            .filter(WorkoutSetDB.id == set_id, WorkoutSessionDB.user_id == self.user_id)
            .first()
        )
        if not workout_set:
            raise NotFoundError("Workout set not found")
        workout_set.weight = weight
        workout_set.reps = reps
        workout_set.time = time
        self._commit("update workout set")
        self.db.refresh(workout_set)
        return WorkoutSetRecord.model_validate(workout_set)

    def complete_session(
        self, session_id: UUID, note: str | None = None
    ) -> WorkoutSessionRecord:
        session = self._get_session(session_id)
        session.ended_at = datetime.now(UTC)
        if note is not None:
            session.note = note
        self._commit("complete workout session")
        self.db.refresh(session)
        return WorkoutSessionRecord.model_validate(session)

    def read_session(self, session_id: UUID) -> WorkoutSessionRecord:
        return WorkoutSessionRecord.model_validate(self._get_session(session_id))

    def update_session_note(self, session_id: UUID, note: str) -> WorkoutSessionRecord:
        session = self._get_session(session_id)
        session.note = note
        self._commit("update session note")
        self.db.refresh(session)
        return WorkoutSessionRecord.model_validate(session)

    def read_program(self, program_id: UUID) -> Program:
        program = (
            self.db.query(ProgramDB)
            .options(joinedload(ProgramDB.exercises).joinedload(ProgramExerciseDB.exercise))
            .filter(
                ProgramDB.id == program_id,
                ProgramDB.user_id == self.user_id,
                ProgramDB.is_archived.is_(False),
            )
            .first()
        )
        if not program:
            raise NotFoundError("Program not found")
        return project_program(program)

    def delete_session(self, session_id: UUID) -> bool:
        try:
            session = self._get_session(session_id)
        except NotFoundError:
            return False
        # Sets go with the session through the relationship cascade
        self.db.delete(session)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete workout session %s: %s", session_id, e)
            return False
        return True
