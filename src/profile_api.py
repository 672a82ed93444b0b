"""REST API endpoints for the signed-in user's profile."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from models import ProfileDB

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    nickname: Optional[str] = None
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    nickname: str


def _get_profile(db: Session, user: AuthenticatedUser) -> ProfileDB:
    profile = db.query(ProfileDB).filter(ProfileDB.id == user.user_id).first()
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> ProfileDB:
    return _get_profile(db, user)


@router.put("", response_model=ProfileResponse)
def update_profile(
    request: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
) -> ProfileDB:
    """Change the nickname shown for the signed-in user.

    Args:
        request: The new nickname; surrounding whitespace is dropped

    Returns:
        The profile after the update

    Raises:
        HTTPException: 422 if the nickname is blank
        HTTPException: 404 if the profile row is missing
        HTTPException: 500 if the write fails
    """
    nickname = request.nickname.strip()
    if not nickname:
        raise HTTPException(
            status_code=422,
            detail="Please enter a nickname.",
        )

    profile = _get_profile(db, user)
    if profile.nickname == nickname:
        return profile

    profile.nickname = nickname
    try:
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Updating nickname of profile %s failed: %s", profile.id, e)
        raise HTTPException(
            status_code=500, detail=f"Failed to update profile: {str(e)}"
        ) from e

    logger.info("Updated nickname of profile %s", profile.id)
    return profile
