"""Handle on the Firebase Storage bucket that holds generated reports."""

from firebase_admin import storage
from typing import Optional
import logging

from ..core.config import settings
from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)

_bucket = None


def get_storage_bucket():
    """Return the configured bucket, or None while Firebase is unavailable."""
    global _bucket
    if _bucket is not None:
        return _bucket

    if not (is_firebase_available() or initialize_firebase()):
        logger.error("[Storage] Firebase is not initialized - storage unavailable")
        return None

    try:
        _bucket = storage.bucket(settings.FIREBASE_STORAGE_BUCKET)
    except ValueError as e:
        logger.error(f"[Storage] Bucket {settings.FIREBASE_STORAGE_BUCKET!r} unusable: {e}")
        return None

    logger.info(f"[Storage] Using gs://{_bucket.name}")
    return _bucket


def get_bucket_info() -> dict:
    bucket: Optional[object] = get_storage_bucket()
    if bucket is None:
        return {"available": False, "error": "Storage bucket not initialized"}
    return {"available": True, "bucket_path": f"gs://{bucket.name}"}
