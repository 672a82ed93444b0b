"""Input validation for set entry and program authoring forms.

Everything here is pure: values arrive as the text the user typed and are
classified without touching the database.
"""

import re
from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel

from typedefs import SetField

PARTIAL_NUMBER_RE = re.compile(r"^\d*\.?\d*$")
DIGITS_RE = re.compile(r"^\d+$")
DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")

RPE_MIN = 1
RPE_MAX = 10

FIELD_ERRORS: Dict[str, str] = {
    "weight": "weight must be positive",
    "reps": "reps must be a positive integer",
    "time": "time must be positive",
}


class ValidationResult(BaseModel):
    """Outcome of validating one field.

    numeric_value is handed back so callers never parse the text twice.
    """

    error: str | None = None
    numeric_value: float | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def number_from_input(value: str) -> float | None:
    """Parse plain decimal text into a number, or None when blank or anything else."""
    text = value.strip()
    if not DECIMAL_RE.match(text):
        return None
    return float(text)


def is_numeric_input(value: str) -> bool:
    """True for partially typed numbers: digits with at most one dot."""
    return PARTIAL_NUMBER_RE.match(value) is not None


def validate_input(value: str, field: SetField) -> ValidationResult:
    if value.strip() == "":
        return ValidationResult()

    numeric_value = number_from_input(value)
    if numeric_value is None or numeric_value <= 0:
        return ValidationResult(error=FIELD_ERRORS[field], numeric_value=numeric_value)

    if field == "reps" and not numeric_value.is_integer():
        return ValidationResult(
            error="reps must be an integer", numeric_value=numeric_value
        )

    return ValidationResult(numeric_value=numeric_value)


def validate_numeric_input(value: str) -> ValidationResult:
    """Digits-only check for integer form fields (sets, rest seconds, ...)."""
    if value == "":
        return ValidationResult()
    if not DIGITS_RE.match(value):
        return ValidationResult(error="Please enter numbers only")
    return ValidationResult(numeric_value=float(value))


# ========== Program form ==========


class ProgramExerciseForm(BaseModel):
    """One exercise row of the program authoring form, as typed.

    id is the client's row key and is only used to address errors.
    """

    id: str
    exercise_id: str = ""
    exercise_name: str = ""
    record_type: str = ""
    target_part: str = ""
    target_sets: str = ""
    rest_seconds: str = ""
    target_weight: str = ""
    target_reps: str = ""
    target_time: str = ""


class ExerciseFormError(BaseModel):
    summary: str


class ProgramFormErrors(BaseModel):
    title: str | None = None
    description: str | None = None
    rpe: str | None = None
    exercises: Dict[str, ExerciseFormError] = {}
    input_errors: Dict[str, str] = {}
    general: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.title
            or self.description
            or self.rpe
            or self.exercises
            or self.input_errors
            or self.general
        )


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


def _below(value: str, minimum: float, inclusive: bool = True) -> bool:
    """True when value is blank, unparsable or under the minimum."""
    number = number_from_input(value)
    if number is None:
        return True
    return number < minimum if inclusive else number <= minimum


def validate_exercise_input(exercise: ProgramExerciseForm) -> tuple[bool, List[str]]:
    """Return (is_valid, missing_fields) for one form row."""
    missing: List[str] = []

    if not _is_uuid(exercise.exercise_id):
        missing.append("exercise")
    if _below(exercise.target_sets, 1):
        missing.append("number of sets")
    if _below(exercise.rest_seconds, 0):
        missing.append("rest time (seconds)")

    if not exercise.record_type:
        missing.append("record type")
    elif exercise.record_type == "weight_reps":
        if _below(exercise.target_weight, 0, inclusive=False):
            missing.append("target weight")
        if _below(exercise.target_reps, 0, inclusive=False):
            missing.append("target reps")
    elif exercise.record_type == "reps_only":
        if _below(exercise.target_reps, 0, inclusive=False):
            missing.append("target reps")
    elif exercise.record_type == "time":
        if _below(exercise.target_time, 0, inclusive=False):
            missing.append("target time (seconds)")
    else:
        missing.append("record type")

    return len(missing) == 0, missing


def get_missing_summary(exercise: ProgramExerciseForm) -> str | None:
    _, missing = validate_exercise_input(exercise)
    if not missing:
        return None
    return f"Please enter: {', '.join(missing)}"


def parse_rpe(value: str) -> float | None:
    """Blank means no target RPE; anything else must be a number in 1-10."""
    if value.strip() == "":
        return None
    number = number_from_input(value)
    if number is None or not RPE_MIN <= number <= RPE_MAX:
        raise ValueError(f"RPE must be between {RPE_MIN} and {RPE_MAX}")
    return number


# Integer fields checked as the user types them
INTEGER_FORM_FIELDS = ("target_sets", "rest_seconds", "target_reps", "target_time")


def validate_program_form(
    title: str,
    description: str,
    exercises: List[ProgramExerciseForm],
    rpe: str = "",
) -> ProgramFormErrors:
    errors = ProgramFormErrors()

    if not title.strip():
        errors.title = "Please enter a program title."
    if not description.strip():
        errors.description = "Please enter the program guide."

    try:
        parse_rpe(rpe)
    except ValueError as e:
        errors.rpe = str(e)

    has_valid_exercise = False
    for exercise in exercises:
        for field in INTEGER_FORM_FIELDS:
            result = validate_numeric_input(getattr(exercise, field))
            if result.error:
                errors.input_errors[f"{exercise.id}-{field}"] = result.error

        summary = get_missing_summary(exercise)
        if summary:
            errors.exercises[exercise.id] = ExerciseFormError(summary=summary)
        else:
            has_valid_exercise = True

    if not has_valid_exercise:
        errors.general = "Add at least one complete exercise."

    return errors


def is_exercise_complete(exercise: ProgramExerciseForm) -> bool:
    """Whether a row is complete enough to be saved.

    Rows failing this are dropped on save rather than rejected.
    """
    if not _is_uuid(exercise.exercise_id) or not exercise.record_type:
        return False

    if exercise.record_type == "time":
        return not _below(exercise.target_time, 0, inclusive=False)

    if _below(exercise.target_sets, 1):
        return False
    if _below(exercise.rest_seconds, 0):
        return False

    if exercise.record_type in ("reps_only", "weight_reps"):
        return not _below(exercise.target_reps, 0, inclusive=False)

    return False


class ProgramExercisePayload(BaseModel):
    """Column values for one program_exercises row."""

    program_id: UUID
    exercise_id: UUID
    order: int
    target_sets: int
    target_weight: float | None = None
    target_reps: int | None = None
    target_time: float | None = None
    rest_seconds: int | None = None


def _int_or_none(value: str) -> int | None:
    number = number_from_input(value)
    return None if number is None else int(number)


def to_program_exercises_payload(
    exercises: List[ProgramExerciseForm], program_id: UUID
) -> List[ProgramExercisePayload]:
    """Derive stored rows from form rows; order follows the form order."""
    payload = []
    for index, exercise in enumerate(exercises):
        record_type = exercise.record_type
        payload.append(
            ProgramExercisePayload(
                program_id=program_id,
                exercise_id=UUID(exercise.exercise_id),
                order=index,
                target_sets=_int_or_none(exercise.target_sets) or 1,
                target_weight=(
                    number_from_input(exercise.target_weight)
                    if record_type == "weight_reps"
                    else None
                ),
                target_reps=(
                    _int_or_none(exercise.target_reps)
                    if record_type in ("reps_only", "weight_reps")
                    else None
                ),
                target_time=(
                    number_from_input(exercise.target_time)
                    if record_type == "time"
                    else None
                ),
                rest_seconds=(
                    None if record_type == "time" else _int_or_none(exercise.rest_seconds)
                ),
            )
        )
    return payload
