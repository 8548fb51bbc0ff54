from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Iterable, Optional
import logging

from .access_gate import DenyReason, authorize
from .firebase_auth import firebase_auth
from ..models.user import User, UserStatus
from ..services.user_service import user_service

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[User]:
    """
    Resolve the bearer token to the caller's stored profile.
    Returns None when no usable token is supplied; the access gate
    turns that into a 401.
    """
    if credentials is None:
        return None

    decoded = await firebase_auth.verify_token(credentials.credentials)
    if not decoded:
        logger.warning("[Auth] Token verification failed - invalid token")
        return None

    user = await user_service.get_user(decoded["uid"])
    if user is None:
        logger.warning(f"[Auth] No profile stored for uid {decoded['uid']}")
        return None

    if user.status != UserStatus.ACTIVE:
        logger.warning(f"[Auth] Inactive account tried to sign in: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    logger.info(f"[Auth] Authenticated user: {user.email} with role: {user.role.value}")
    return user


def require_access(required_role: Optional[str] = None, required_permissions: Iterable[str] = ()):
    """Route dependency running the access gate for the current user."""
    required_permissions = tuple(required_permissions)

    async def access_checker(current_user: Optional[User] = Depends(get_current_user)) -> User:
        decision = authorize(current_user, required_role, required_permissions)
        if decision.allowed:
            return current_user

        if decision.reason == DenyReason.UNAUTHENTICATED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=decision.message,
                headers={"WWW-Authenticate": "Bearer"},
            )

        logger.warning(f"[Auth] Access denied for {current_user.email}: {decision.message}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.message)

    return access_checker


require_admin = require_access(required_role="admin")
