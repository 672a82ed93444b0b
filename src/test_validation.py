"""Tests for set-entry and program-form validation."""

from uuid import uuid4

import pytest

from validation import (
    ProgramExerciseForm,
    get_missing_summary,
    is_exercise_complete,
    is_numeric_input,
    number_from_input,
    parse_rpe,
    to_program_exercises_payload,
    validate_exercise_input,
    validate_input,
    validate_numeric_input,
    validate_program_form,
)


def make_form(**overrides) -> ProgramExerciseForm:
    values = {
        "id": "row-1",
        "exercise_id": str(uuid4()),
        "exercise_name": "벤치프레스",
        "record_type": "weight_reps",
        "target_part": "chest",
        "target_sets": "3",
        "rest_seconds": "90",
        "target_weight": "60",
        "target_reps": "10",
        "target_time": "",
    }
    values.update(overrides)
    return ProgramExerciseForm(**values)


# ========== Set entry ==========


@pytest.mark.parametrize("field", ["weight", "reps", "time"])
def test_blank_input_is_valid(field):
    result = validate_input("", field)
    assert result.is_valid
    assert result.numeric_value is None


def test_negative_weight_is_invalid():
    result = validate_input("-5", "weight")
    assert result.error == "weight must be positive"


def test_fractional_reps_is_invalid():
    result = validate_input("2.5", "reps")
    assert result.error == "reps must be an integer"
    assert result.numeric_value == 2.5


def test_zero_is_invalid():
    assert validate_input("0", "time").error == "time must be positive"
    assert validate_input("0", "reps").error == "reps must be a positive integer"


def test_valid_weight_returns_number():
    result = validate_input("62.5", "weight")
    assert result.is_valid
    assert result.numeric_value == 62.5


def test_number_from_input_rejects_non_finite():
    assert number_from_input("nan") is None
    assert number_from_input("inf") is None
    assert number_from_input("  12 ") == 12.0
    assert number_from_input("abc") is None


@pytest.mark.parametrize("text", ["1_0", "1e3", "0x10", "1.2.3", "."])
def test_number_from_input_accepts_plain_decimals_only(text):
    assert number_from_input(text) is None
    assert validate_input(text, "reps").error == "reps must be a positive integer"


def test_number_from_input_decimal_forms():
    assert number_from_input("-5") == -5.0
    assert number_from_input("12.") == 12.0
    assert number_from_input(".5") == 0.5


def test_is_numeric_input_accepts_partial_numbers():
    assert is_numeric_input("")
    assert is_numeric_input("12.")
    assert is_numeric_input(".5")
    assert not is_numeric_input("1.2.3")
    assert not is_numeric_input("-1")
    assert not is_numeric_input("1e3")


def test_validate_numeric_input():
    assert validate_numeric_input("").is_valid
    assert validate_numeric_input("120").numeric_value == 120
    assert validate_numeric_input("1.5").error == "Please enter numbers only"


# ========== Program form ==========


def test_complete_weight_reps_row_is_valid():
    assert validate_exercise_input(make_form()) == (True, [])
    assert get_missing_summary(make_form()) is None


def test_missing_fields_are_listed_in_form_order():
    form = make_form(exercise_id="", target_sets="0", target_weight="", target_reps="")
    is_valid, missing = validate_exercise_input(form)
    assert not is_valid
    assert missing == ["exercise", "number of sets", "target weight", "target reps"]
    assert get_missing_summary(form) == (
        "Please enter: exercise, number of sets, target weight, target reps"
    )


def test_time_row_needs_target_time():
    form = make_form(record_type="time", target_weight="", target_reps="")
    assert validate_exercise_input(form) == (False, ["target time (seconds)"])


def test_unknown_record_type():
    assert validate_exercise_input(make_form(record_type="distance")) == (
        False,
        ["record type"],
    )


def test_validate_program_form_ok():
    errors = validate_program_form("Upper A", "Press and pull", [make_form()], "8")
    assert errors.is_empty


def test_validate_program_form_reports_everything():
    rows = [make_form(id="a", target_reps=""), make_form(id="b", target_sets="x")]
    errors = validate_program_form("  ", "", rows, "11")

    assert errors.title == "Please enter a program title."
    assert errors.description == "Please enter the program guide."
    assert errors.rpe == "RPE must be between 1 and 10"
    assert set(errors.exercises) == {"a", "b"}
    assert errors.input_errors == {"b-target_sets": "Please enter numbers only"}
    assert errors.general == "Add at least one complete exercise."


def test_parse_rpe():
    assert parse_rpe("") is None
    assert parse_rpe("7.5") == 7.5
    with pytest.raises(ValueError):
        parse_rpe("0")


def test_is_exercise_complete_time_ignores_sets_and_rest():
    form = make_form(record_type="time", target_sets="", rest_seconds="", target_time="60")
    assert is_exercise_complete(form)
    assert not is_exercise_complete(make_form(record_type="time"))


def test_is_exercise_complete_requires_reps():
    assert is_exercise_complete(make_form(record_type="reps_only", target_weight=""))
    assert not is_exercise_complete(make_form(target_reps="0"))
    assert not is_exercise_complete(make_form(exercise_id="not-a-uuid"))


def test_to_program_exercises_payload_keeps_only_relevant_targets():
    program_id = uuid4()
    rows = [
        make_form(),
        make_form(record_type="reps_only", target_weight="20", target_reps="8"),
        make_form(
            record_type="time", target_sets="", rest_seconds="30", target_time="45"
        ),
    ]
    payload = to_program_exercises_payload(rows, program_id)

    assert [p.order for p in payload] == [0, 1, 2]
    assert all(p.program_id == program_id for p in payload)

    bench, pullup, plank = payload
    assert (bench.target_sets, bench.target_weight, bench.target_reps) == (3, 60, 10)
    assert bench.rest_seconds == 90
    assert pullup.target_weight is None
    assert pullup.target_reps == 8
    assert plank.target_sets == 1
    assert plank.target_time == 45
    assert plank.rest_seconds is None
    assert plank.target_reps is None
