"""In-memory state of a workout in progress.

Nothing here is persisted until the workout is finished; see persistence.py.
"""

from typing import Annotated, Dict, List, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from typedefs import RECORD_TYPE_FIELDS, Program, SetField
from validation import is_numeric_input, number_from_input, validate_input


class SetInput(BaseModel):
    """One set as the user is typing it. Values stay text until saved."""

    weight: str = ""
    reps: str = ""
    time: str = ""
    completed: bool = False


class SessionState(BaseModel):
    inputs: Dict[UUID, List[SetInput]] = {}
    notes: Dict[UUID, str] = {}
    # exercise id -> set index -> field -> message
    errors: Dict[UUID, Dict[int, Dict[str, str]]] = {}

    def sets_for(self, exercise_id: UUID) -> List[SetInput]:
        return self.inputs.get(exercise_id, [])


def initialize(state: SessionState, program: Program) -> SessionState:
    """Reset state to empty inputs for every exercise of program.

    Calling it again with another program discards everything entered.
    """
    state.inputs = {}
    state.notes = {}
    state.errors = {}
    for exercise in program.exercises:
        sets_count = exercise.target_sets or 1
        state.inputs[exercise.id] = [SetInput() for _ in range(sets_count)]
        state.notes[exercise.id] = ""
    return state


def create_initial_state(program: Program) -> SessionState:
    return initialize(SessionState(), program)


def update_set_input(
    state: SessionState,
    exercise_id: UUID,
    set_index: int,
    field: SetField,
    value: str,
) -> bool:
    """Store typed text for one field.

    Returns False (and changes nothing) when value is not partial numeric
    text. The field error is refreshed either way the text is accepted.
    """
    if value != "" and not is_numeric_input(value):
        return False

    sets = state.inputs.get(exercise_id)
    if sets is None or not 0 <= set_index < len(sets):
        return False

    setattr(sets[set_index], field, value)

    result = validate_input(value, field)
    set_errors = state.errors.setdefault(exercise_id, {}).setdefault(set_index, {})
    if result.error:
        set_errors[field] = result.error
    else:
        set_errors.pop(field, None)
    return True


def update_note(state: SessionState, exercise_id: UUID, text: str) -> None:
    state.notes[exercise_id] = text


# ========== Field values ==========


class NotApplicable(BaseModel):
    """The field is not recorded for the exercise's record type."""

    kind: Literal["not_applicable"] = "not_applicable"


class NotEntered(BaseModel):
    kind: Literal["not_entered"] = "not_entered"


class Value(BaseModel):
    kind: Literal["value"] = "value"
    amount: float


FieldValue = Annotated[
    Union[NotApplicable, NotEntered, Value], Field(discriminator="kind")
]


class SetValues(BaseModel):
    weight: FieldValue
    reps: FieldValue
    time: FieldValue


def resolve_field(record_type: str, field: SetField, text: str) -> FieldValue:
    if field not in RECORD_TYPE_FIELDS.get(record_type, ()):
        return NotApplicable()
    number = number_from_input(text)
    if number is None:
        return NotEntered()
    return Value(amount=number)


def resolve_set_values(record_type: str, set_input: SetInput) -> SetValues:
    return SetValues(
        weight=resolve_field(record_type, "weight", set_input.weight),
        reps=resolve_field(record_type, "reps", set_input.reps),
        time=resolve_field(record_type, "time", set_input.time),
    )


def serialize_field(value: FieldValue, integer: bool = False) -> float | int | None:
    """Turn a field value into what the store receives.

    Fields that do not apply become NULL; a relevant field left blank on a
    finished set is recorded as zero.
    """
    if isinstance(value, NotApplicable):
        return None
    if isinstance(value, NotEntered):
        return 0
    if integer:
        return int(value.amount)
    return value.amount
