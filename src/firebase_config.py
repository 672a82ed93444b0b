"""Firebase Admin SDK setup, used only to verify ID tokens."""

import logging
import os
from functools import lru_cache

import firebase_admin
from firebase_admin import auth, credentials

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def initialize_firebase() -> firebase_admin.App:
    """Initialize the default Firebase app once per process.

    FIREBASE_SERVICE_ACCOUNT_KEY_PATH points at a service account key file;
    without it Application Default Credentials are used with
    FIREBASE_PROJECT_ID.

    Raises:
        ValueError: If FIREBASE_PROJECT_ID is not set
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # no default app yet

    project_id = os.environ.get("FIREBASE_PROJECT_ID")
    key_path = os.environ.get("FIREBASE_SERVICE_ACCOUNT_KEY_PATH")

    if not project_id:
        raise ValueError("FIREBASE_PROJECT_ID environment variable is required")

    if key_path and os.path.exists(key_path):
        logger.info("Initializing Firebase for %s from %s", project_id, key_path)
        return firebase_admin.initialize_app(
            credentials.Certificate(key_path), {"projectId": project_id}
        )

    logger.info("Initializing Firebase for %s with default credentials", project_id)
    return firebase_admin.initialize_app(
        credentials.ApplicationDefault(), {"projectId": project_id}
    )


def get_firebase_auth() -> auth:
    """FastAPI dependency returning the firebase_admin.auth module, initialized."""
    initialize_firebase()
    return auth
