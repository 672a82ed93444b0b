"""Aggregate statistics for the dashboard: monthly calendar and total volume."""

import datetime
import os
from typing import Iterable, List
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from models import WorkoutSessionDB, WorkoutSetDB
from typedefs import DashboardStats

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def get_app_timezone() -> datetime.tzinfo:
    """Timezone used to decide which calendar day a workout belongs to."""
    name = os.environ.get("APP_TIMEZONE", "UTC")
    if name.upper() == "UTC":
        return datetime.UTC
    return ZoneInfo(name)


def to_local_date(moment: datetime.datetime, tz: datetime.tzinfo) -> datetime.date:
    # Naive timestamps come back from databases without tz support; they are UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.UTC)
    return moment.astimezone(tz).date()


def summarize_dashboard(
    session_starts: Iterable[datetime.datetime],
    set_volumes: Iterable[tuple[float | None, int | None]],
    today: datetime.date,
    tz: datetime.tzinfo = datetime.UTC,
) -> DashboardStats:
    """Build dashboard numbers.

    Args:
        session_starts: started_at of every completed session
        set_volumes: (weight, reps) of every recorded set
        today: the date whose month is summarized
        tz: timezone used to place sessions on calendar days

    Returns:
        DashboardStats for the month containing today
    """
    total_sessions = 0
    monthly_dates = set()
    for started_at in session_starts:
        total_sessions += 1
        day = to_local_date(started_at, tz)
        if day.year == today.year and day.month == today.month:
            monthly_dates.add(day.day)

    total_volume = sum((weight or 0) * (reps or 0) for weight, reps in set_volumes)

    return DashboardStats(
        total_sessions=total_sessions,
        this_month_count=len(monthly_dates),
        monthly_workout_dates=sorted(monthly_dates),
        total_volume=total_volume,
        current_year=today.year,
        current_month=today.month,
    )


@router.get("", response_model=DashboardStats)
def get_dashboard(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> DashboardStats:
    """Summarize the authenticated user's completed workouts."""
    tz = get_app_timezone()

    session_starts: List[datetime.datetime] = [
        row.started_at
        for row in db.query(WorkoutSessionDB.started_at)
        .filter(
            WorkoutSessionDB.user_id == user.user_id,
            WorkoutSessionDB.ended_at.isnot(None),
        )
        .order_by(WorkoutSessionDB.started_at.desc())
    ]

    set_volumes = (
        db.query(WorkoutSetDB.weight, WorkoutSetDB.reps)
        .join(WorkoutSessionDB)
        .filter(WorkoutSessionDB.user_id == user.user_id)
        .all()
    )

    today = datetime.datetime.now(tz).date()
    return summarize_dashboard(
        session_starts, [(w, r) for w, r in set_volumes], today, tz
    )
