"""REST API endpoints for running a workout.

A workout in progress lives in memory as a WorkoutRun until it is finished
or abandoned. Only the session row exists in the database meanwhile; sets
are written by the finish endpoint.
"""

import logging
import time
from typing import Callable, Dict, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from persistence import persist_workout_session
from rest_timer import RestTimer
from store import NotFoundError, SqlWorkoutStore, StoreError
from typedefs import SetField, WorkoutSessionRecord
from workout_actions import IncompleteSetError, WorkoutRun, WorkoutRunSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/workout-sessions", tags=["workout-sessions"])


# Runs untouched for this long are dropped; their session rows stay unfinished
IDLE_TIMEOUT_SECONDS = 6 * 60 * 60


class ActiveWorkouts:
    """Registry of workouts in progress, keyed by (user id, session id)."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        idle_timeout: float = IDLE_TIMEOUT_SECONDS,
    ):
        self.clock = clock
        self.idle_timeout = idle_timeout
        self._runs: Dict[Tuple[UUID, UUID], WorkoutRun] = {}
        self._touched_at: Dict[Tuple[UUID, UUID], float] = {}

    def evict_idle(self) -> int:
        """Discard runs not touched within idle_timeout; returns how many."""
        cutoff = self.clock() - self.idle_timeout
        stale = [key for key, at in self._touched_at.items() if at <= cutoff]
        for user_id, session_id in stale:
            logger.info("Dropping idle workout %s of user %s", session_id, user_id)
            self.remove(user_id, session_id)
        return len(stale)

    def start(self, user_id: UUID, run: WorkoutRun) -> WorkoutRun:
        self.evict_idle()
        key = (user_id, run.session_id)
        self._runs[key] = run
        self._touched_at[key] = self.clock()
        return run

    def get(self, user_id: UUID, session_id: UUID) -> WorkoutRun | None:
        self.evict_idle()
        key = (user_id, session_id)
        run = self._runs.get(key)
        if run is not None:
            self._touched_at[key] = self.clock()
        return run

    def remove(self, user_id: UUID, session_id: UUID) -> WorkoutRun | None:
        self._touched_at.pop((user_id, session_id), None)
        run = self._runs.pop((user_id, session_id), None)
        if run is not None:
            run.discard()
        return run

    def new_timer(self) -> RestTimer:
        return RestTimer(clock=self.clock)

    def clear(self) -> None:
        for run in self._runs.values():
            run.discard()
        self._runs.clear()
        self._touched_at.clear()


class StartWorkoutRequest(BaseModel):
    program_id: UUID


class SetInputRequest(BaseModel):
    field: SetField
    value: str


class NoteRequest(BaseModel):
    note: str = ""


class FinishWorkoutRequest(BaseModel):
    note: str | None = None


def get_active_workouts(request: Request) -> ActiveWorkouts:
    return request.app.state.active_workouts


def get_workout_store(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> SqlWorkoutStore:
    return SqlWorkoutStore(db, user.user_id)


def get_run(
    session_id: UUID,
    user: AuthenticatedUser = Depends(get_or_create_user),
    workouts: ActiveWorkouts = Depends(get_active_workouts),
) -> WorkoutRun:
    """Look up the caller's run and apply the rest time elapsed since last seen.

    Raises:
        HTTPException: 404 if no workout is in progress for this session
    """
    run = workouts.get(user.user_id, session_id)
    if run is None:
        raise HTTPException(
            status_code=404, detail="No active workout for this session"
        )
    run.sync_timer()
    return run


def _apply(action: Callable[[], object]) -> None:
    """Run one workout action, translating its errors to HTTP errors."""
    try:
        action()
    except IncompleteSetError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("", response_model=WorkoutRunSnapshot, status_code=201)
def start_workout(
    request: StartWorkoutRequest,
    user: AuthenticatedUser = Depends(get_or_create_user),
    store: SqlWorkoutStore = Depends(get_workout_store),
    workouts: ActiveWorkouts = Depends(get_active_workouts),
) -> WorkoutRunSnapshot:
    """Start a workout of a program.

    Creates the session row and an empty set input for every target set.

    Raises:
        HTTPException: 404 if the program is not found
        HTTPException: 500 if the session cannot be created
    """
    try:
        program = store.read_program(request.program_id)
        session = store.create_session(program.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    run = workouts.start(
        user.user_id, WorkoutRun(session.id, program, timer=workouts.new_timer())
    )
    logger.info("Started session %s of program %s", session.id, program.id)
    return run.snapshot()


@router.get("/{session_id}/run", response_model=WorkoutRunSnapshot)
def get_workout_run(run: WorkoutRun = Depends(get_run)) -> WorkoutRunSnapshot:
    return run.snapshot()


@router.put(
    "/{session_id}/exercises/{exercise_id}/sets/{set_index}",
    response_model=WorkoutRunSnapshot,
)
def update_set_input(
    exercise_id: UUID,
    set_index: int,
    request: SetInputRequest,
    run: WorkoutRun = Depends(get_run),
) -> WorkoutRunSnapshot:
    """Store typed text for one set field.

    Text that is not a number is ignored. A number that is out of range is
    kept and its message shows up in the snapshot's state.errors instead of
    failing the request.
    """
    _apply(
        lambda: run.update_input(exercise_id, set_index, request.field, request.value)
    )
    return run.snapshot()


@router.post(
    "/{session_id}/exercises/{exercise_id}/sets/{set_index}/toggle",
    response_model=WorkoutRunSnapshot,
)
def toggle_set(
    exercise_id: UUID,
    set_index: int,
    run: WorkoutRun = Depends(get_run),
) -> WorkoutRunSnapshot:
    """Mark a set done or not done; marking it done starts the rest countdown.

    Raises:
        HTTPException: 400 if the set's required fields aren't filled in
        HTTPException: 404 if the exercise or set doesn't exist
    """
    _apply(lambda: run.toggle_set(exercise_id, set_index))
    return run.snapshot()


@router.post(
    "/{session_id}/exercises/{exercise_id}/sets/{set_index}/skip",
    response_model=WorkoutRunSnapshot,
)
def skip_set(
    exercise_id: UUID,
    set_index: int,
    run: WorkoutRun = Depends(get_run),
) -> WorkoutRunSnapshot:
    _apply(lambda: run.skip_set(exercise_id, set_index))
    return run.snapshot()


@router.post(
    "/{session_id}/exercises/{exercise_id}/complete-remaining",
    response_model=WorkoutRunSnapshot,
)
def complete_remaining_sets(
    exercise_id: UUID,
    run: WorkoutRun = Depends(get_run),
) -> WorkoutRunSnapshot:
    _apply(lambda: run.complete_remaining_sets(exercise_id))
    return run.snapshot()


@router.put(
    "/{session_id}/exercises/{exercise_id}/note",
    response_model=WorkoutRunSnapshot,
)
def update_exercise_note(
    exercise_id: UUID,
    request: NoteRequest,
    run: WorkoutRun = Depends(get_run),
) -> WorkoutRunSnapshot:
    _apply(lambda: run.update_note(exercise_id, request.note))
    return run.snapshot()


@router.post("/{session_id}/next", response_model=WorkoutRunSnapshot)
def next_exercise(run: WorkoutRun = Depends(get_run)) -> WorkoutRunSnapshot:
    run.move_to_next_exercise()
    return run.snapshot()


@router.post("/{session_id}/rest/skip", response_model=WorkoutRunSnapshot)
def skip_rest(run: WorkoutRun = Depends(get_run)) -> WorkoutRunSnapshot:
    """End the rest early; this moves on to the next exercise like expiry does."""
    run.skip_rest()
    return run.snapshot()


@router.post("/{session_id}/rest/close", response_model=WorkoutRunSnapshot)
def close_rest(run: WorkoutRun = Depends(get_run)) -> WorkoutRunSnapshot:
    """Dismiss the rest countdown and stay on the current exercise."""
    run.close_rest()
    return run.snapshot()


@router.post("/{session_id}/finish", response_model=WorkoutSessionRecord)
def finish_workout(
    session_id: UUID,
    request: FinishWorkoutRequest | None = None,
    run: WorkoutRun = Depends(get_run),
    user: AuthenticatedUser = Depends(get_or_create_user),
    store: SqlWorkoutStore = Depends(get_workout_store),
    workouts: ActiveWorkouts = Depends(get_active_workouts),
) -> WorkoutSessionRecord:
    """Save every completed set and close the session.

    Raises:
        HTTPException: 500 if a write fails; the workout stays in progress
            so the request can be retried
    """
    note = request.note if request else None
    result = persist_workout_session(
        store, run.session_id, run.program, run.state, note
    )
    if not result.ok:
        logger.error("Finishing session %s failed: %s", session_id, result.message)
        raise HTTPException(status_code=500, detail=result.message)

    workouts.remove(user.user_id, session_id)
    logger.info("Finished session %s", session_id)
    return store.read_session(session_id)


@router.delete("/{session_id}/run", status_code=204)
def abandon_workout(
    session_id: UUID,
    run: WorkoutRun = Depends(get_run),
    user: AuthenticatedUser = Depends(get_or_create_user),
    store: SqlWorkoutStore = Depends(get_workout_store),
    workouts: ActiveWorkouts = Depends(get_active_workouts),
) -> None:
    """Throw the workout away, including its session row."""
    workouts.remove(user.user_id, run.session_id)
    if not store.delete_session(session_id):
        logger.warning("Session %s of an abandoned workout was not deleted", session_id)
