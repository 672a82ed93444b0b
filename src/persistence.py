"""Writes a finished workout, and edits from history, through a WorkoutStore.

Both adapters report one outcome and never raise: the first failing write
stops the batch and becomes the result's message. Earlier writes in the
batch stay committed.
"""

import logging
from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel

from store import WorkoutStore
from typedefs import Program, WorkoutSetRecord
from validation import number_from_input
from workout_state import SessionState, resolve_set_values, serialize_field

logger = logging.getLogger(__name__)


class SaveResult(BaseModel):
    ok: bool
    message: str | None = None


class EditResult(BaseModel):
    ok: bool
    changed: bool = False
    message: str | None = None


class EditingSet(BaseModel):
    """Values typed into the history editor for one stored set."""

    weight: str = ""
    reps: str = ""
    time: str = ""


def persist_workout_session(
    store: WorkoutStore,
    session_id: UUID | None,
    program: Program | None,
    state: SessionState,
    session_note: str | None = None,
) -> SaveResult:
    """Write every completed set, then mark the session finished."""
    if not session_id or not program:
        return SaveResult(ok=False, message="Session information is invalid")

    for exercise in program.exercises:
        exercise_note = state.notes.get(exercise.id) or None

        for index, set_input in enumerate(state.sets_for(exercise.id)):
            if not set_input.completed:
                continue

            values = resolve_set_values(exercise.record_type, set_input)
            try:
                store.create_set(
                    session_id,
                    exercise.exercise_id,
                    exercise.name,
                    index + 1,
                    serialize_field(values.weight),
                    serialize_field(values.reps, integer=True),
                    serialize_field(values.time),
                    exercise_note,
                )
            except Exception as e:
                logger.warning(
                    "Saving %s set %s of session %s failed: %s",
                    exercise.name,
                    index + 1,
                    session_id,
                    e,
                )
                return SaveResult(
                    ok=False, message=f"Failed to save {exercise.name} set {index + 1}"
                )

    try:
        store.complete_session(session_id, session_note)
    except Exception as e:
        logger.warning("Completing session %s failed: %s", session_id, e)
        return SaveResult(ok=False, message="Failed to complete the workout session")

    return SaveResult(ok=True)


def _edited_number(text: str, integer: bool = False) -> float | int:
    number = number_from_input(text)
    if number is None:
        return 0
    return int(number) if integer else number


def persist_workout_edits(
    store: WorkoutStore,
    sets: List[WorkoutSetRecord],
    edits: Dict[UUID, EditingSet],
) -> EditResult:
    """Update only the stored sets whose values were actually changed."""
    changed = False

    for workout_set in sets:
        edited = edits.get(workout_set.id)
        if edited is None:
            continue

        weight = _edited_number(edited.weight)
        reps = _edited_number(edited.reps, integer=True)
        time = _edited_number(edited.time)

        if (
            weight == (workout_set.weight or 0)
            and reps == (workout_set.reps or 0)
            and time == (workout_set.time or 0)
        ):
            continue

        try:
            store.update_set(workout_set.id, weight or None, reps or None, time or None)
        except Exception as e:
            logger.warning("Updating set %s failed: %s", workout_set.id, e)
            return EditResult(
                ok=False,
                changed=changed,
                message=(
                    f"Failed to update {workout_set.exercise_name} "
                    f"set {workout_set.set_number}"
                ),
            )
        changed = True

    return EditResult(ok=True, changed=changed)
