from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import require_admin
from ..core.exceptions import ResenixError
from ..models.user import (
    PermissionsUpdate,
    User,
    UserCreate,
    UserResponse,
    UserRole,
    UserRoleUpdate,
    UserStatus,
    UserStatusUpdate,
)
from ..services.user_service import user_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _public(user: User) -> Dict[str, Any]:
    return UserResponse(**user.dict()).dict()


@router.get("/", response_model=Dict[str, Any])
async def list_users(
    role: Optional[UserRole] = Query(None),
    status: Optional[UserStatus] = Query(None),
    current_user: User = Depends(require_admin),
):
    try:
        users = await user_service.list_users(role, status)
        return {"success": True, "data": [_public(u) for u in users], "count": len(users)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing users: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any])
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_admin),
):
    """Create the sign-in account and profile (Admin only)"""
    try:
        user = await user_service.create_user(payload)
        logger.info(f"[Users] {current_user.email} created {user.email}")
        return {"success": True, "message": "User created", "data": _public(user)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating user: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{user_id}", response_model=Dict[str, Any])
async def get_user(
    user_id: str,
    current_user: User = Depends(require_admin),
):
    user = await user_service.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": _public(user)}


@router.put("/{user_id}/permissions", response_model=Dict[str, Any])
async def update_permissions(
    user_id: str,
    update: PermissionsUpdate,
    current_user: User = Depends(require_admin),
):
    try:
        user = await user_service.update_permissions(user_id, update.permissions)
        return {"success": True, "message": "Permissions updated", "data": _public(user)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating permissions for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/{user_id}/status", response_model=Dict[str, Any])
async def update_status(
    user_id: str,
    update: UserStatusUpdate,
    current_user: User = Depends(require_admin),
):
    try:
        if user_id == current_user.id and update.status == UserStatus.INACTIVE:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        user = await user_service.update_status(user_id, update.status)
        return {"success": True, "message": f"User marked {update.status.value}", "data": _public(user)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating status for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/{user_id}/role", response_model=Dict[str, Any])
async def update_role(
    user_id: str,
    update: UserRoleUpdate,
    current_user: User = Depends(require_admin),
):
    try:
        user = await user_service.update_role(user_id, update.role, update.reset_permissions)
        return {"success": True, "message": f"Role changed to {update.role.value}", "data": _public(user)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating role for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{user_id}", response_model=Dict[str, Any])
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
):
    try:
        if user_id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")
        await user_service.delete_user(user_id)
        return {"success": True, "message": "User deleted"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
