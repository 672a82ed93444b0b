"""REST API endpoint for searching the exercise library."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from exercise_search import FETCH_LIMIT, filter_exercises, normalize_option
from models import ExerciseDB
from typedefs import Exercise

router = APIRouter(prefix="/api/v1/exercises", tags=["exercises"])


@router.get("", response_model=List[Exercise])
def search_exercises(
    q: str = "",
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> List[Exercise]:
    """Search exercises by name or alias.

    Args:
        q: Free text; blank returns the first page of the library
        db: Database session
        user: Authenticated user

    Returns:
        Matching exercises in library order
    """
    rows = db.query(ExerciseDB).order_by(ExerciseDB.name).limit(FETCH_LIMIT).all()
    candidates = [normalize_option(Exercise.model_validate(row)) for row in rows]
    return filter_exercises(candidates, q)
