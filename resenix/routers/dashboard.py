from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
import logging

from ..auth.dependencies import require_access
from ..core.exceptions import ResenixError
from ..models.user import User
from ..services.maintenance_task_service import maintenance_task_service
from ..services.notification_service import notification_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=Dict[str, Any])
async def get_summary(
    current_user: User = Depends(require_access(required_permissions=["dashboard:view"])),
):
    """Equipment and task counters for the landing page"""
    try:
        return {"success": True, "data": await maintenance_task_service.get_dashboard_summary()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error building dashboard summary: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/notifications", response_model=Dict[str, Any])
async def get_notifications(
    current_user: User = Depends(require_access(required_permissions=["dashboard:view"])),
):
    try:
        notifications = await notification_service.collect_notifications()
        return {"success": True, "data": notifications, "count": len(notifications)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error collecting notifications: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
