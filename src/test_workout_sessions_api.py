"""Tests for running a workout over the API."""

from uuid import UUID, uuid4

import pytest

from main import app
from models import WorkoutSessionDB, WorkoutSetDB
from store import SqlWorkoutStore, StoreError
from workout_sessions_api import IDLE_TIMEOUT_SECONDS, get_workout_store


@pytest.fixture
def started(client, sample_program):
    """Start a workout of the sample program; returns its first snapshot."""
    response = client.post(
        "/api/v1/workout-sessions", json={"program_id": str(sample_program.id)}
    )
    assert response.status_code == 201
    return response.json()


def run_url(snapshot, path=""):
    return f"/api/v1/workout-sessions/{snapshot['session_id']}{path}"


def set_url(snapshot, exercise_index, set_index, action=""):
    exercise_id = snapshot["program"]["exercises"][exercise_index]["id"]
    return run_url(snapshot, f"/exercises/{exercise_id}/sets/{set_index}{action}")


def enter(client, snapshot, exercise_index, set_index, **values):
    response = None
    for field, value in values.items():
        response = client.put(
            set_url(snapshot, exercise_index, set_index),
            json={"field": field, "value": value},
        )
        assert response.status_code == 200
    return response.json()


def sets_of(snapshot, exercise_index):
    exercise_id = snapshot["program"]["exercises"][exercise_index]["id"]
    return snapshot["state"]["inputs"][exercise_id]


def test_start_workout(started, db_session):
    assert started["current_index"] == 0
    assert not started["exercises_done"]
    assert started["rest"]["state"] == "idle"
    assert [len(sets_of(started, i)) for i in range(3)] == [3, 2, 1]
    assert all(not s["completed"] for s in sets_of(started, 0))

    session = db_session.get(WorkoutSessionDB, UUID(started["session_id"]))
    assert session is not None
    assert session.ended_at is None


def test_start_unknown_program(client):
    response = client.post(
        "/api/v1/workout-sessions", json={"program_id": str(uuid4())}
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Program not found"


def test_run_not_found(client):
    response = client.get(f"/api/v1/workout-sessions/{uuid4()}/run")
    assert response.status_code == 404
    assert response.json()["detail"] == "No active workout for this session"


def test_enter_values(client, started):
    snapshot = enter(client, started, 0, 0, weight="60", reps="10")
    assert sets_of(snapshot, 0)[0] == {
        "weight": "60",
        "reps": "10",
        "time": "",
        "completed": False,
    }


def test_invalid_value_shows_inline_error(client, started):
    snapshot = enter(client, started, 0, 1, reps="2.5")

    exercise_id = started["program"]["exercises"][0]["id"]
    assert snapshot["state"]["errors"][exercise_id]["1"] == {
        "reps": "reps must be an integer"
    }


def test_non_numeric_value_is_ignored(client, started):
    snapshot = enter(client, started, 0, 0, weight="abc")
    assert sets_of(snapshot, 0)[0]["weight"] == ""


def test_toggle_incomplete_set(client, started):
    enter(client, started, 0, 0, weight="60")

    response = client.post(set_url(started, 0, 0, "/toggle"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter weight and reps."


def test_toggle_unknown_set(client, started):
    response = client.post(set_url(started, 0, 7, "/toggle"))
    assert response.status_code == 404


def test_completed_set_starts_rest_then_advances(client, started, fake_clock):
    enter(client, started, 0, 0, weight="60", reps="10")

    snapshot = client.post(set_url(started, 0, 0, "/toggle")).json()
    assert sets_of(snapshot, 0)[0]["completed"]
    assert snapshot["rest"] == {"state": "running", "remaining": 90, "total": 90}

    fake_clock.advance(30)
    snapshot = client.get(run_url(started, "/run")).json()
    assert snapshot["rest"]["remaining"] == 60
    assert snapshot["current_index"] == 0

    fake_clock.advance(60)
    snapshot = client.get(run_url(started, "/run")).json()
    assert snapshot["rest"]["state"] == "idle"
    assert snapshot["current_index"] == 1


def test_skip_rest(client, started):
    client.post(set_url(started, 0, 0, "/skip"))

    snapshot = client.post(run_url(started, "/rest/skip")).json()

    assert snapshot["rest"]["state"] == "idle"
    assert snapshot["current_index"] == 1


def test_close_rest(client, started):
    client.post(set_url(started, 0, 0, "/skip"))

    snapshot = client.post(run_url(started, "/rest/close")).json()

    assert snapshot["rest"]["state"] == "idle"
    assert snapshot["current_index"] == 0


def test_skip_set(client, started):
    snapshot = client.post(set_url(started, 1, 1, "/skip")).json()

    assert sets_of(snapshot, 1)[1] == {
        "weight": "",
        "reps": "0",
        "time": "",
        "completed": True,
    }
    # Last set of the exercise: no rest
    assert snapshot["rest"]["state"] == "idle"


def test_complete_remaining(client, started):
    exercise_id = started["program"]["exercises"][0]["id"]
    snapshot = client.post(
        run_url(started, f"/exercises/{exercise_id}/complete-remaining")
    ).json()
    assert all(s["completed"] for s in sets_of(snapshot, 0))


def test_exercise_note(client, started):
    exercise_id = started["program"]["exercises"][2]["id"]
    snapshot = client.put(
        run_url(started, f"/exercises/{exercise_id}/note"),
        json={"note": "hips up"},
    ).json()
    assert snapshot["state"]["notes"][exercise_id] == "hips up"


def test_next_until_done(client, started):
    for expected in (1, 2):
        snapshot = client.post(run_url(started, "/next")).json()
        assert snapshot["current_index"] == expected

    snapshot = client.post(run_url(started, "/next")).json()
    assert snapshot["exercises_done"]
    assert snapshot["current_exercise_id"] is None


def test_finish_writes_completed_sets(client, started, db_session):
    enter(client, started, 0, 0, weight="60", reps="10")
    client.post(set_url(started, 0, 0, "/toggle"))
    client.post(set_url(started, 0, 2, "/skip"))
    enter(client, started, 2, 0, time="45")
    client.post(set_url(started, 2, 0, "/toggle"))

    response = client.post(run_url(started, "/finish"), json={"note": "solid"})

    assert response.status_code == 200
    data = response.json()
    assert data["ended_at"] is not None
    assert data["note"] == "solid"

    sets = (
        db_session.query(WorkoutSetDB)
        .filter(WorkoutSetDB.session_id == UUID(started["session_id"]))
        .order_by(WorkoutSetDB.exercise_name, WorkoutSetDB.set_number)
        .all()
    )
    assert [(s.exercise_name, s.set_number) for s in sets] == [
        ("벤치프레스", 1),
        ("벤치프레스", 3),
        ("플랭크", 1),
    ]
    assert (sets[0].weight, sets[0].reps, sets[0].time) == (60, 10, None)
    assert (sets[1].weight, sets[1].reps) == (0, 0)
    assert (sets[2].weight, sets[2].reps, sets[2].time) == (None, None, 45)

    assert client.get(run_url(started, "/run")).status_code == 404


class FailingStore(SqlWorkoutStore):
    def create_set(self, *args, **kwargs):
        raise StoreError("Failed to save workout set")


def test_finish_failure_keeps_the_run(client, started, db_session, test_user):
    client.post(set_url(started, 0, 0, "/skip"))
    app.dependency_overrides[get_workout_store] = lambda: FailingStore(
        db_session, test_user.id
    )

    response = client.post(run_url(started, "/finish"))

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to save 벤치프레스 set 1"
    assert client.get(run_url(started, "/run")).status_code == 200

    session = db_session.get(WorkoutSessionDB, UUID(started["session_id"]))
    assert session.ended_at is None


def test_abandon_workout(client, started, db_session):
    response = client.delete(run_url(started, "/run"))

    assert response.status_code == 204
    assert client.get(run_url(started, "/run")).status_code == 404
    assert db_session.get(WorkoutSessionDB, UUID(started["session_id"])) is None


def test_idle_workout_is_dropped(client, started, fake_clock):
    fake_clock.advance(IDLE_TIMEOUT_SECONDS - 60)
    assert client.get(run_url(started, "/run")).status_code == 200

    # Each request keeps the run alive
    fake_clock.advance(IDLE_TIMEOUT_SECONDS - 60)
    assert client.get(run_url(started, "/run")).status_code == 200

    fake_clock.advance(IDLE_TIMEOUT_SECONDS)
    response = client.get(run_url(started, "/run"))
    assert response.status_code == 404
    assert response.json()["detail"] == "No active workout for this session"
