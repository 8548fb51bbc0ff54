import logging
import os

import firebase_admin
from firebase_admin import credentials

from .config import settings

logger = logging.getLogger(__name__)


def _default_app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        return None


def initialize_firebase() -> bool:
    """
    Bring up the default Firebase app from the configured service account.

    Safe to call repeatedly. Returns False, after logging why, when the
    credentials are missing or rejected; callers degrade instead of crashing.
    """
    if _default_app() is not None:
        return True

    key_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH
    if not os.path.exists(key_path):
        logger.warning(f"[Firebase] Service account key {key_path} is missing; running without Firebase")
        return False

    try:
        firebase_admin.initialize_app(credentials.Certificate(key_path), {
            'projectId': settings.FIREBASE_PROJECT_ID,
            'storageBucket': settings.FIREBASE_STORAGE_BUCKET,
        })
    except (ValueError, IOError) as e:
        logger.error(f"[Firebase] Could not initialize project {settings.FIREBASE_PROJECT_ID}: {e}")
        return False

    logger.info(f"[Firebase] Connected to project {settings.FIREBASE_PROJECT_ID}")
    return True


def is_firebase_available() -> bool:
    return _default_app() is not None


def get_firebase_status() -> dict:
    return {
        "available": is_firebase_available(),
        "project_id": settings.FIREBASE_PROJECT_ID,
    }
