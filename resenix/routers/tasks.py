from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import require_access
from ..core.exceptions import ResenixError
from ..models.database_models import TaskCreate, TaskStatus, TaskUpdate
from ..models.user import User
from ..services.maintenance_task_service import maintenance_task_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Maintenance Tasks"])


@router.get("/", response_model=Dict[str, Any])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    equipment_id: Optional[str] = Query(None),
    current_user: User = Depends(require_access(required_permissions=["tasks:view"])),
):
    try:
        tasks = await maintenance_task_service.list_tasks(status, equipment_id)
        return {"success": True, "data": [t.dict() for t in tasks], "count": len(tasks)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing tasks: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any])
async def create_task(
    payload: TaskCreate,
    current_user: User = Depends(require_access(required_permissions=["tasks:edit"])),
):
    try:
        task = await maintenance_task_service.create_task(payload)
        return {"success": True, "message": "Task scheduled", "data": task.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating task: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{task_id}", response_model=Dict[str, Any])
async def get_task(
    task_id: str,
    current_user: User = Depends(require_access(required_permissions=["tasks:view"])),
):
    try:
        task = await maintenance_task_service.get_task(task_id)
        return {"success": True, "data": task.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{task_id}", response_model=Dict[str, Any])
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    current_user: User = Depends(require_access(required_permissions=["tasks:edit"])),
):
    try:
        task = await maintenance_task_service.update_task(task_id, payload)
        return {"success": True, "message": "Task updated", "data": task.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{task_id}/complete", response_model=Dict[str, Any])
async def complete_task(
    task_id: str,
    current_user: User = Depends(require_access(required_permissions=["tasks:edit"])),
):
    """Mark the task done and record the maintenance on the equipment"""
    try:
        task = await maintenance_task_service.complete_task(task_id)
        logger.info(f"Task {task_id} completed by {current_user.email}")
        return {"success": True, "message": "Task completed", "data": task.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error completing task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{task_id}", response_model=Dict[str, Any])
async def delete_task(
    task_id: str,
    current_user: User = Depends(require_access(required_permissions=["tasks:delete"])),
):
    try:
        await maintenance_task_service.delete_task(task_id)
        return {"success": True, "message": "Task deleted"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
