from firebase_admin import auth
from typing import Optional
import logging

from ..core.exceptions import ConflictError, NotFoundError, PersistenceError
from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)


class FirebaseAuth:
    """
    Sign-in accounts held by Firebase Auth.

    The default Firebase app is brought up on the first call, so importing
    this module never needs credentials. Admin SDK errors are re-raised as
    service errors the routers already know how to answer.
    """

    def _require_app(self) -> None:
        if not (is_firebase_available() or initialize_firebase()):
            raise PersistenceError("Firebase is not initialized - Auth unavailable")

    async def verify_token(self, token: str) -> Optional[dict]:
        self._require_app()
        try:
            return auth.verify_id_token(token)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as e:
            logger.warning(f"[Auth] Rejected ID token: {e}")
            return None

    async def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> dict:
        self._require_app()
        try:
            record = auth.create_user(email=email, password=password, display_name=display_name)
        except auth.EmailAlreadyExistsError:
            raise ConflictError(f"An account already exists for {email}")
        except Exception as e:
            raise PersistenceError(f"Could not create sign-in account for {email}: {e}")
        logger.info(f"[Auth] Created sign-in account {record.uid}")
        return {"uid": record.uid, "email": record.email}

    async def delete_user(self, uid: str) -> None:
        self._require_app()
        try:
            auth.delete_user(uid)
        except auth.UserNotFoundError:
            # Profile-only users predate Auth accounts
            logger.warning(f"[Auth] No sign-in account to delete for {uid}")
        except Exception as e:
            raise PersistenceError(f"Could not delete sign-in account {uid}: {e}")

    async def update_user(self, uid: str, **fields) -> None:
        self._require_app()
        try:
            auth.update_user(uid, **fields)
        except auth.UserNotFoundError:
            raise NotFoundError("Auth account", uid)
        except Exception as e:
            raise PersistenceError(f"Could not update sign-in account {uid}: {e}")


firebase_auth = FirebaseAuth()
