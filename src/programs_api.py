"""REST API endpoints for workout programs."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from models import ExerciseDB, ProgramDB, ProgramExerciseDB
from store import NotFoundError, SqlWorkoutStore
from typedefs import Program, ProgramSummary
from validation import (
    ProgramExerciseForm,
    ProgramFormErrors,
    is_exercise_complete,
    parse_rpe,
    to_program_exercises_payload,
    validate_program_form,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/programs", tags=["programs"])


class ProgramFormRequest(BaseModel):
    """The program authoring form as typed by the user."""

    title: str = ""
    description: str = ""
    rpe: str = ""
    exercises: List[ProgramExerciseForm] = []


def _blocking(errors: ProgramFormErrors) -> bool:
    # Per-row summaries alone don't block; incomplete rows are dropped on save
    return bool(
        errors.title
        or errors.description
        or errors.rpe
        or errors.input_errors
        or errors.general
    )


def _check_form(form: ProgramFormRequest) -> List[ProgramExerciseForm]:
    """Validate the form and return the rows that will be saved.

    Raises:
        HTTPException: 422 with the structured form errors
    """
    errors = validate_program_form(
        form.title, form.description, form.exercises, form.rpe
    )
    if _blocking(errors):
        raise HTTPException(status_code=422, detail=errors.model_dump())
    return [exercise for exercise in form.exercises if is_exercise_complete(exercise)]


def _check_exercises_exist(db: Session, rows: List[ProgramExerciseForm]) -> None:
    """Raise HTTPException 400 if a row points at an exercise that doesn't exist."""
    exercise_ids = {UUID(row.exercise_id) for row in rows}
    if not exercise_ids:
        return
    known = {
        exercise_id
        for (exercise_id,) in db.query(ExerciseDB.id).filter(
            ExerciseDB.id.in_(exercise_ids)
        )
    }
    unknown = exercise_ids - known
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown exercise: {', '.join(sorted(str(e) for e in unknown))}",
        )


def _replace_exercises(
    db: Session, program: ProgramDB, rows: List[ProgramExerciseForm]
) -> None:
    payload = to_program_exercises_payload(rows, program.id)

    program.exercises.clear()
    # Flush deletes first so new rows can reuse the same order values
    db.flush()
    for row in payload:
        program.exercises.append(ProgramExerciseDB(**row.model_dump()))


def _read_program(db: Session, user: AuthenticatedUser, program_id: UUID) -> Program:
    try:
        return SqlWorkoutStore(db, user.user_id).read_program(program_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _get_program_row(db: Session, user_id: UUID, program_id: UUID) -> ProgramDB:
    program = (
        db.query(ProgramDB)
        .filter(
            ProgramDB.id == program_id,
            ProgramDB.user_id == user_id,
            ProgramDB.is_archived.is_(False),
        )
        .first()
    )
    if not program:
        raise HTTPException(status_code=404, detail="Program not found")
    return program


@router.get("", response_model=List[ProgramSummary])
def list_programs(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> List[ProgramSummary]:
    """List the user's programs, newest first, with their exercise counts."""
    rows = (
        db.query(ProgramDB, func.count(ProgramExerciseDB.id))
        .outerjoin(ProgramExerciseDB, ProgramExerciseDB.program_id == ProgramDB.id)
        .filter(ProgramDB.user_id == user.user_id, ProgramDB.is_archived.is_(False))
        .group_by(ProgramDB.id)
        .order_by(ProgramDB.created_at.desc())
        .all()
    )

    return [
        ProgramSummary(
            id=program.id,
            title=program.title,
            description=program.description,
            rpe=program.rpe,
            created_at=program.created_at,
            exercise_count=count,
        )
        for program, count in rows
    ]


@router.get("/{program_id}", response_model=Program)
def get_program(
    program_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> Program:
    """Get a program with its exercises in execution order.

    Raises:
        HTTPException: 404 if the program is missing, archived or not the user's
    """
    return _read_program(db, user, program_id)


@router.post("", response_model=Program, status_code=201)
def create_program(
    form: ProgramFormRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> Program:
    """Create a program from the authoring form.

    Args:
        form: Title, guide, optional RPE and exercise rows as typed
        db: Database session
        user: Authenticated user

    Returns:
        The saved program, projected like GET /programs/{id}

    Raises:
        HTTPException: 422 if the form has blocking errors
        HTTPException: 400 if a row references an unknown exercise
        HTTPException: 500 if the program cannot be saved
    """
    rows = _check_form(form)
    _check_exercises_exist(db, rows)

    program = ProgramDB(
        user_id=user.user_id,
        title=form.title.strip(),
        description=form.description.strip(),
        rpe=parse_rpe(form.rpe),
    )
    try:
        db.add(program)
        db.flush()
        _replace_exercises(db, program, rows)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create program: %s", e)
        raise HTTPException(
            status_code=500, detail=f"Failed to create program: {str(e)}"
        ) from e

    logger.info("Created program %s with %d exercises", program.id, len(rows))
    return _read_program(db, user, program.id)


@router.put("/{program_id}", response_model=Program)
def update_program(
    program_id: UUID,
    form: ProgramFormRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> Program:
    """Replace a program's fields and exercise rows from the authoring form.

    Raises:
        HTTPException: 404 if the program is not found
        HTTPException: 422 if the form has blocking errors
        HTTPException: 500 if the program cannot be saved
    """
    program = _get_program_row(db, user.user_id, program_id)
    rows = _check_form(form)
    _check_exercises_exist(db, rows)

    try:
        program.title = form.title.strip()
        program.description = form.description.strip()
        program.rpe = parse_rpe(form.rpe)
        _replace_exercises(db, program, rows)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to update program %s: %s", program_id, e)
        raise HTTPException(
            status_code=500, detail=f"Failed to update program: {str(e)}"
        ) from e

    return _read_program(db, user, program_id)


@router.delete("/{program_id}", status_code=204)
def archive_program(
    program_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> None:
    """Archive a program. Past sessions keep their reference to it."""
    program = _get_program_row(db, user.user_id, program_id)
    program.is_archived = True
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to archive program: {str(e)}"
        ) from e
