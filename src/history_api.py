"""REST API endpoints for finished workouts: listing, editing and deleting."""

import logging
from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from models import ExerciseDB, ProgramDB, ProgramExerciseDB, WorkoutSessionDB
from persistence import EditingSet, EditResult, persist_workout_edits
from store import NotFoundError, SqlWorkoutStore, StoreError
from typedefs import WorkoutLog, WorkoutLogSet, WorkoutSessionRecord, WorkoutSetRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/history", tags=["history"])

# Sets of exercises no longer in the program sort after the rest
UNKNOWN_ORDER = 999


class EditSetsRequest(BaseModel):
    """Edited values keyed by stored set id."""

    sets: Dict[UUID, EditingSet]


class SessionNoteRequest(BaseModel):
    note: str


def _build_logs(db: Session, sessions: List[WorkoutSessionDB]) -> List[WorkoutLog]:
    """Attach ordered, annotated sets and the program title to each session."""
    program_ids = {s.program_id for s in sessions if s.program_id}
    exercise_ids = {ws.exercise_id for s in sessions for ws in s.sets if ws.exercise_id}

    orders: Dict[tuple, int] = {}
    titles: Dict[UUID, str] = {}
    if program_ids:
        for row in db.query(ProgramExerciseDB).filter(
            ProgramExerciseDB.program_id.in_(program_ids)
        ):
            orders.setdefault((row.program_id, row.exercise_id), row.order)
        for program_id, title in db.query(ProgramDB.id, ProgramDB.title).filter(
            ProgramDB.id.in_(program_ids)
        ):
            titles[program_id] = title

    record_types: Dict[UUID, str] = {}
    if exercise_ids:
        for exercise_id, record_type in db.query(
            ExerciseDB.id, ExerciseDB.record_type
        ).filter(ExerciseDB.id.in_(exercise_ids)):
            record_types[exercise_id] = record_type

    logs = []
    for session in sessions:
        sets = sorted(
            session.sets,
            key=lambda ws: (
                orders.get((session.program_id, ws.exercise_id), UNKNOWN_ORDER),
                ws.set_number,
            ),
        )
        logs.append(
            WorkoutLog(
                **WorkoutSessionRecord.model_validate(session).model_dump(),
                program_title=titles.get(session.program_id),
                sets=[
                    WorkoutLogSet(
                        **WorkoutSetRecord.model_validate(ws).model_dump(),
                        record_type=record_types.get(ws.exercise_id, ""),
                    )
                    for ws in sets
                ],
            )
        )
    return logs


def _get_session_row(db: Session, user_id: UUID, session_id: UUID) -> WorkoutSessionDB:
    session = (
        db.query(WorkoutSessionDB)
        .options(selectinload(WorkoutSessionDB.sets))
        .filter(WorkoutSessionDB.id == session_id, WorkoutSessionDB.user_id == user_id)
        .first()
    )
    if not session:
        raise HTTPException(status_code=404, detail="Workout session not found")
    return session


@router.get("", response_model=List[WorkoutLog])
def get_workout_logs(
    limit: int = 20,
    offset: int = 0,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> List[WorkoutLog]:
    """List completed workouts, newest first.

    Args:
        limit: Maximum number of sessions to return (default: 20)
        offset: Number of sessions to skip (default: 0)
        db: Database session
        user: Authenticated user

    Returns:
        List of WorkoutLog objects with their sets in program order
    """
    sessions = (
        db.query(WorkoutSessionDB)
        .options(selectinload(WorkoutSessionDB.sets))
        .filter(
            WorkoutSessionDB.user_id == user.user_id,
            WorkoutSessionDB.ended_at.isnot(None),
        )
        .order_by(WorkoutSessionDB.started_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return _build_logs(db, sessions)


@router.get("/{session_id}", response_model=WorkoutLog)
def get_workout_log(
    session_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> WorkoutLog:
    """Get one workout, finished or not.

    Raises:
        HTTPException: 404 if the session is not found
    """
    session = _get_session_row(db, user.user_id, session_id)
    return _build_logs(db, [session])[0]


@router.delete("/{session_id}", status_code=204)
def delete_workout_log(
    session_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> None:
    """Delete a workout and all of its sets."""
    if not SqlWorkoutStore(db, user.user_id).delete_session(session_id):
        raise HTTPException(status_code=404, detail="Workout session not found")


@router.patch("/{session_id}/sets", response_model=EditResult)
def update_workout_sets(
    session_id: UUID,
    request: EditSetsRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> EditResult:
    """Save values edited in history. Sets whose values didn't change are skipped.

    Raises:
        HTTPException: 404 if the session is not found
        HTTPException: 500 if an update fails; earlier updates stay saved
    """
    session = _get_session_row(db, user.user_id, session_id)
    sets = [WorkoutSetRecord.model_validate(ws) for ws in session.sets]

    result = persist_workout_edits(SqlWorkoutStore(db, user.user_id), sets, request.sets)
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.put("/{session_id}/note", response_model=WorkoutSessionRecord)
def update_workout_note(
    session_id: UUID,
    request: SessionNoteRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> WorkoutSessionRecord:
    try:
        return SqlWorkoutStore(db, user.user_id).update_session_note(
            session_id, request.note
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        logger.error("Updating note of session %s failed: %s", session_id, e)
        raise HTTPException(status_code=500, detail=str(e)) from e
