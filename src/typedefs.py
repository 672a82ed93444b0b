from datetime import datetime
from typing import Dict, List, Literal
from uuid import UUID

from pydantic import BaseModel

RecordType = Literal["weight_reps", "reps_only", "time"]

ExercisePart = Literal[
    "chest",
    "back",
    "shoulders",
    "biceps",
    "triceps",
    "quads",
    "glutes_hams",
    "calves",
    "abs",
    "cardio",
    "full_body",
    "stretching",
]

SetField = Literal["weight", "reps", "time"]

# Which set fields are recorded for each record type
RECORD_TYPE_FIELDS: Dict[str, tuple[str, ...]] = {
    "weight_reps": ("weight", "reps"),
    "reps_only": ("reps",),
    "time": ("time",),
}


class Exercise(BaseModel):
    """Library exercise as offered to program authoring."""

    id: UUID
    name: str
    target_part: ExercisePart = "full_body"
    record_type: RecordType = "weight_reps"
    aliases: List[str] | None = None
    description: str | None = None
    effects: str | None = None
    # Older rows carried the singular spelling
    effect: str | None = None

    class Config:
        from_attributes = True


class ProgramExercise(BaseModel):
    """A program exercise with the exercise metadata projected onto it."""

    id: UUID
    program_id: UUID
    exercise_id: UUID
    name: str = ""
    target_part: ExercisePart | None = None
    record_type: RecordType = "weight_reps"
    order: int
    target_sets: int = 1
    target_reps: int | None = None
    target_weight: float | None = None
    target_time: float | None = None
    rest_seconds: int | None = None
    intention: str | None = None
    note: str | None = None


class Program(BaseModel):
    id: UUID
    title: str
    description: str | None = None
    rpe: float | None = None
    created_at: datetime
    exercises: List[ProgramExercise] = []

    def find_exercise(self, exercise_id: UUID) -> ProgramExercise | None:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None


class ProgramSummary(BaseModel):
    """Program list entry with the number of exercises instead of the rows."""

    id: UUID
    title: str
    description: str | None = None
    rpe: float | None = None
    created_at: datetime
    exercise_count: int = 0


class WorkoutSessionRecord(BaseModel):
    id: UUID
    program_id: UUID | None = None
    started_at: datetime
    ended_at: datetime | None = None
    note: str | None = None

    class Config:
        from_attributes = True


class WorkoutSetRecord(BaseModel):
    id: UUID
    session_id: UUID
    exercise_id: UUID | None = None
    exercise_name: str
    set_number: int
    weight: float | None = None
    reps: int | None = None
    time: float | None = None
    note: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class WorkoutLogSet(WorkoutSetRecord):
    record_type: str = ""


class WorkoutLog(WorkoutSessionRecord):
    """A session with its sets in program order, for history views."""

    sets: List[WorkoutLogSet] = []
    program_title: str | None = None


class DashboardStats(BaseModel):
    total_sessions: int
    this_month_count: int
    monthly_workout_dates: List[int]
    total_volume: float
    current_year: int
    current_month: int
