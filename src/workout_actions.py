"""Transitions for a workout in progress.

The module-level functions mutate a SessionState for one user action and
report the rest period to start, if any. WorkoutRun ties them to a single
RestTimer and tracks which exercise the user is on.
"""

import logging
from typing import Dict
from uuid import UUID

from pydantic import BaseModel

from rest_timer import RestFinished, RestTimer, RestTimerSnapshot
from typedefs import RECORD_TYPE_FIELDS, Program, ProgramExercise, SetField
from validation import number_from_input
from workout_state import (
    SessionState,
    SetInput,
    create_initial_state,
    update_note,
)
from workout_state import update_set_input as store_set_input

logger = logging.getLogger(__name__)


class IncompleteSetError(ValueError):
    """A set can't be marked done because a required field is missing or invalid."""


class UnknownExerciseError(LookupError):
    pass


class UnknownSetError(LookupError):
    pass


# record type -> (blank-field message, invalid-value message)
INCOMPLETE_MESSAGES: Dict[str, tuple[str, str]] = {
    "weight_reps": ("Please enter weight and reps.", "Please enter valid values."),
    "reps_only": ("Please enter reps.", "Please enter a valid number of reps."),
    "time": ("Please enter a time.", "Please enter a valid time."),
}


def _find_exercise(program: Program, exercise_id: UUID) -> ProgramExercise:
    exercise = program.find_exercise(exercise_id)
    if exercise is None:
        raise UnknownExerciseError(f"Exercise {exercise_id} is not part of this program")
    return exercise


def _find_set(state: SessionState, exercise_id: UUID, set_index: int) -> SetInput:
    sets = state.sets_for(exercise_id)
    if not 0 <= set_index < len(sets):
        raise UnknownSetError(f"Set {set_index} does not exist for exercise {exercise_id}")
    return sets[set_index]


def check_set_complete(record_type: str, set_input: SetInput) -> None:
    """Raise IncompleteSetError unless the required fields hold valid values."""
    required = RECORD_TYPE_FIELDS.get(record_type, ())
    blank_message, invalid_message = INCOMPLETE_MESSAGES.get(
        record_type, INCOMPLETE_MESSAGES["weight_reps"]
    )

    if any(getattr(set_input, field).strip() == "" for field in required):
        raise IncompleteSetError(blank_message)

    for field in required:
        number = number_from_input(getattr(set_input, field))
        if number is None or number <= 0:
            raise IncompleteSetError(invalid_message)
        if field == "reps" and not number.is_integer():
            raise IncompleteSetError(invalid_message)


def toggle_set_completion(
    state: SessionState, program: Program, exercise_id: UUID, set_index: int
) -> int | None:
    """Flip a set between done and not done.

    Marking a set done requires its record type's fields to be filled in.
    Returns the rest seconds to start when the set became done, else None.
    """
    exercise = _find_exercise(program, exercise_id)
    current = _find_set(state, exercise_id, set_index)

    check_set_complete(exercise.record_type, current)

    current.completed = not current.completed

    if current.completed and exercise.rest_seconds:
        return exercise.rest_seconds
    return None


def _zero_fill(record_type: str, set_input: SetInput) -> None:
    relevant = RECORD_TYPE_FIELDS.get(record_type, ())
    for field in ("weight", "reps", "time"):
        setattr(set_input, field, "0" if field in relevant else "")
    set_input.completed = True


def skip_set(
    state: SessionState, program: Program, exercise_id: UUID, set_index: int
) -> int | None:
    """Mark a set done with zeros. No rest follows the exercise's last set."""
    exercise = _find_exercise(program, exercise_id)
    current = _find_set(state, exercise_id, set_index)

    _zero_fill(exercise.record_type, current)
    state.errors.get(exercise_id, {}).pop(set_index, None)

    is_last_set = set_index == len(state.sets_for(exercise_id)) - 1
    if not is_last_set and exercise.rest_seconds:
        return exercise.rest_seconds
    return None


def complete_remaining_sets(
    state: SessionState, program: Program, exercise_id: UUID
) -> int:
    """Zero-fill every set of the exercise that is not done yet.

    Returns how many sets were filled.
    """
    exercise = _find_exercise(program, exercise_id)
    filled = 0
    for set_index, set_input in enumerate(state.sets_for(exercise_id)):
        if set_input.completed:
            continue
        _zero_fill(exercise.record_type, set_input)
        state.errors.get(exercise_id, {}).pop(set_index, None)
        filled += 1
    return filled


def is_current_valid(state: SessionState, exercise_id: UUID) -> bool:
    return any(s.completed for s in state.sets_for(exercise_id))


def has_incomplete_sets(state: SessionState, exercise_id: UUID) -> bool:
    return any(not s.completed for s in state.sets_for(exercise_id))


# ========== Workout run ==========


class WorkoutRunSnapshot(BaseModel):
    session_id: UUID
    program: Program
    state: SessionState
    current_index: int
    current_exercise_id: UUID | None
    exercises_done: bool
    rest: RestTimerSnapshot


class WorkoutRun:
    """Everything held in memory for one workout between start and finish."""

    def __init__(
        self, session_id: UUID, program: Program, timer: RestTimer | None = None
    ):
        self.session_id = session_id
        self.program = program
        self.state = create_initial_state(program)
        self.timer = timer or RestTimer()
        self.current_index = 0
        self.exercises_done = not program.exercises
        self._unsubscribe = self.timer.subscribe(self._on_rest_finished)

    @property
    def current_exercise(self) -> ProgramExercise | None:
        if self.exercises_done or self.current_index >= len(self.program.exercises):
            return None
        return self.program.exercises[self.current_index]

    def _on_rest_finished(self, event: RestFinished) -> None:
        logger.debug(
            "Rest %s after %ss in session %s", event.reason, event.total, self.session_id
        )
        self.move_to_next_exercise()

    def _start_rest(self, rest_seconds: int | None) -> None:
        if rest_seconds:
            self.timer.start(rest_seconds)

    def update_input(
        self, exercise_id: UUID, set_index: int, field: SetField, value: str
    ) -> bool:
        _find_exercise(self.program, exercise_id)
        _find_set(self.state, exercise_id, set_index)
        return store_set_input(self.state, exercise_id, set_index, field, value)

    def update_note(self, exercise_id: UUID, text: str) -> None:
        _find_exercise(self.program, exercise_id)
        update_note(self.state, exercise_id, text)

    def toggle_set(self, exercise_id: UUID, set_index: int) -> None:
        rest = toggle_set_completion(self.state, self.program, exercise_id, set_index)
        self._start_rest(rest)

    def skip_set(self, exercise_id: UUID, set_index: int) -> None:
        rest = skip_set(self.state, self.program, exercise_id, set_index)
        self._start_rest(rest)

    def complete_remaining_sets(self, exercise_id: UUID) -> int:
        return complete_remaining_sets(self.state, self.program, exercise_id)

    def is_current_valid(self) -> bool:
        exercise = self.current_exercise
        return exercise is not None and is_current_valid(self.state, exercise.id)

    def has_incomplete_sets(self) -> bool:
        exercise = self.current_exercise
        return exercise is not None and has_incomplete_sets(self.state, exercise.id)

    def move_to_next_exercise(self) -> None:
        """Advance the current exercise; past the last one the run is done."""
        if self.exercises_done:
            return
        next_index = self.current_index + 1
        if next_index >= len(self.program.exercises):
            self.exercises_done = True
        else:
            self.current_index = next_index

    def skip_rest(self) -> None:
        self.timer.skip()

    def close_rest(self) -> None:
        self.timer.close()

    def sync_timer(self) -> None:
        self.timer.catch_up()

    def discard(self) -> None:
        """Stop listening to the timer; the run is being thrown away."""
        self.timer.close()
        self._unsubscribe()

    def snapshot(self) -> WorkoutRunSnapshot:
        exercise = self.current_exercise
        return WorkoutRunSnapshot(
            session_id=self.session_id,
            program=self.program,
            state=self.state,
            current_index=self.current_index,
            current_exercise_id=exercise.id if exercise else None,
            exercises_done=self.exercises_done,
            rest=self.timer.snapshot(),
        )
