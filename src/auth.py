"""Firebase Authentication dependencies."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from firebase_config import get_firebase_auth
from models import ProfileDB

logger = logging.getLogger(__name__)


class FirebaseUser(BaseModel):
    """A verified Firebase identity taken from the ID token."""

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    claims: dict = {}


class AuthenticatedUser(BaseModel):
    """Firebase identity joined with the local profile row.

    This is what authenticated endpoints receive.
    """

    firebase_uid: str
    user_id: UUID  # profiles.id
    email: str
    firebase_user: FirebaseUser


def extract_token_from_request(request: Request) -> Optional[str]:
    """Return the Bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    return auth_header[len("Bearer ") :]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_firebase_token(
    request: Request,
    auth_instance: auth = Depends(get_firebase_auth),
) -> FirebaseUser:
    """Verify the Firebase ID token on the request.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    token = extract_token_from_request(request)

    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        decoded_token = auth_instance.verify_id_token(token)
    except auth.ExpiredIdTokenError as err:
        raise _unauthorized("Authentication token has expired") from err
    except auth.InvalidIdTokenError as err:
        raise _unauthorized("Invalid authentication token") from err
    except Exception as e:
        logger.warning("Firebase token verification failed: %s", e)
        raise _unauthorized(f"Authentication failed: {str(e)}") from e

    return FirebaseUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_or_create_user(
    firebase_user: FirebaseUser = Depends(verify_firebase_token),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    """Resolve the local profile for the Firebase user.

    The profile row is created on first login.

    Raises:
        HTTPException: 401 if the token carries no email
        HTTPException: 500 if the profile cannot be created
    """
    if not firebase_user.email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User email is required",
        )

    profile = (
        db.query(ProfileDB).filter(ProfileDB.firebase_uid == firebase_user.uid).first()
    )

    if not profile:
        try:
            profile = ProfileDB(
                firebase_uid=firebase_user.uid,
                email=firebase_user.email,
            )
            db.add(profile)
            db.commit()
            db.refresh(profile)
        except SQLAlchemyError as e:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create profile: {str(e)}",
            ) from e
        logger.info("Created profile %s for %s", profile.id, profile.email)

    return AuthenticatedUser(
        firebase_uid=firebase_user.uid,
        user_id=profile.id,
        email=profile.email,
        firebase_user=firebase_user,
    )
