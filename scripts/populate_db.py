#!/usr/bin/env python3
"""Script to populate the database with the exercise library and a sample program."""

import os
import sys

from dotenv import load_dotenv

# Add src to path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from database import SessionLocal
from models import ExerciseDB, ProfileDB, ProgramDB, ProgramExerciseDB

# Load environment variables
load_dotenv()

EXERCISES = [
    {
        "name": "벤치프레스",
        "aliases": ["벤치", "Bench Press"],
        "target_part": "chest",
        "record_type": "weight_reps",
        "effects": "Builds pressing strength in the chest, shoulders and triceps",
    },
    {
        "name": "스쿼트",
        "aliases": ["Back Squat", "바벨 스쿼트"],
        "target_part": "quads",
        "record_type": "weight_reps",
    },
    {
        "name": "데드리프트",
        "aliases": ["Deadlift"],
        "target_part": "glutes_hams",
        "record_type": "weight_reps",
    },
    {
        "name": "풀업",
        "aliases": ["Pull-up", "턱걸이"],
        "target_part": "back",
        "record_type": "reps_only",
    },
    {
        "name": "푸시업",
        "aliases": ["Push-up", "팔굽혀펴기"],
        "target_part": "chest",
        "record_type": "reps_only",
    },
    {
        "name": "플랭크",
        "aliases": ["Plank"],
        "target_part": "abs",
        "record_type": "time",
    },
    {
        "name": "로잉머신",
        "aliases": ["Rowing Machine", "Erg"],
        "target_part": "cardio",
        "record_type": "time",
    },
]


def create_exercises(db):
    """Insert library exercises that aren't there yet, keyed by name."""
    existing = {name for (name,) in db.query(ExerciseDB.name)}
    created = {}
    for values in EXERCISES:
        if values["name"] in existing:
            continue
        exercise = ExerciseDB(**values)
        db.add(exercise)
        created[values["name"]] = exercise
    db.flush()
    print(f"Created {len(created)} exercises")
    return {e.name: e for e in db.query(ExerciseDB)}


def create_sample_program(db, profile, exercises):
    program = ProgramDB(
        user_id=profile.id,
        title="Full Body Strength",
        description="Compound lifts first, then bodyweight work and a plank finish",
        rpe=8,
    )
    rows = [
        ("스쿼트", {"target_sets": 3, "target_weight": 80, "target_reps": 8}),
        ("벤치프레스", {"target_sets": 3, "target_weight": 60, "target_reps": 10}),
        ("풀업", {"target_sets": 3, "target_reps": 8}),
        ("플랭크", {"target_sets": 1, "target_time": 60}),
    ]
    for order, (name, targets) in enumerate(rows):
        rest = None if exercises[name].record_type == "time" else 90
        program.exercises.append(
            ProgramExerciseDB(
                exercise_id=exercises[name].id,
                order=order,
                rest_seconds=rest,
                **targets,
            )
        )
    db.add(program)
    print(f"Created program: {program.title}")


def populate():
    db = SessionLocal()
    try:
        exercises = create_exercises(db)

        # Programs belong to a profile, which is created on first login
        profile = db.query(ProfileDB).first()
        if not profile:
            print("No profiles found. Log in once to create one, then rerun.")
        else:
            create_sample_program(db, profile, exercises)

        db.commit()
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    populate()
