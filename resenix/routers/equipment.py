from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import require_access
from ..core.exceptions import ResenixError
from ..models.database_models import (
    Equipment,
    EquipmentStatus,
    EquipmentStatusUpdate,
    EquipmentUpdate,
    LogHoursRequest,
)
from ..models.user import User
from ..services.equipment_service import equipment_service
from ..services.equipment_usage_service import equipment_usage_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment",
    tags=["Equipment"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=Dict[str, Any])
async def list_equipment(
    status: Optional[EquipmentStatus] = Query(None, description="Filter by status"),
    current_user: User = Depends(require_access(required_permissions=["equipments:view"])),
):
    """List equipment with remaining budget and projected maintenance date"""
    try:
        items = await equipment_service.list_equipment(status)
        return {"success": True, "data": items, "count": len(items)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing equipment: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any])
async def create_equipment(
    equipment: Equipment,
    current_user: User = Depends(require_access(required_permissions=["equipments:edit"])),
):
    try:
        data = await equipment_service.create_equipment(equipment, current_user.id)
        return {"success": True, "message": "Equipment created", "equipment_id": data["id"], "data": data}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating equipment: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{equipment_id}", response_model=Dict[str, Any])
async def get_equipment(
    equipment_id: str,
    current_user: User = Depends(require_access(required_permissions=["equipments:view"])),
):
    try:
        return {"success": True, "data": await equipment_service.get_equipment(equipment_id)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{equipment_id}", response_model=Dict[str, Any])
async def update_equipment(
    equipment_id: str,
    update: EquipmentUpdate,
    current_user: User = Depends(require_access(required_permissions=["equipments:edit"])),
):
    try:
        data = await equipment_service.update_equipment(equipment_id, update, current_user.id)
        return {"success": True, "message": "Equipment updated", "data": data}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/{equipment_id}/status", response_model=Dict[str, Any])
async def change_equipment_status(
    equipment_id: str,
    update: EquipmentStatusUpdate,
    current_user: User = Depends(require_access(required_permissions=["equipments:edit"])),
):
    try:
        data = await equipment_service.change_status(equipment_id, update.status)
        return {"success": True, "message": f"Equipment marked {update.status.value}", "data": data}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error changing status of equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{equipment_id}", response_model=Dict[str, Any])
async def delete_equipment(
    equipment_id: str,
    current_user: User = Depends(require_access(required_permissions=["equipments:delete"])),
):
    """Remove equipment and its usage log"""
    try:
        await equipment_service.delete_equipment(equipment_id)
        return {"success": True, "message": "Equipment deleted"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error deleting equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# ─── Usage log ────────────────────────────────────────────────────────────────

@router.post("/{equipment_id}/usage", response_model=Dict[str, Any])
async def log_hours(
    equipment_id: str,
    request: LogHoursRequest,
    current_user: User = Depends(require_access(required_permissions=["equipments:edit"])),
):
    """Log hours worked on a past day; logging the same day again overwrites it"""
    try:
        result = await equipment_usage_service.log_hours(equipment_id, request.date, request.hours_worked)
        message = "Usage updated" if result["replaced"] else "Usage logged"
        return {"success": True, "message": message, "data": result}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error logging usage for equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{equipment_id}/usage", response_model=Dict[str, Any])
async def get_usage_history(
    equipment_id: str,
    recent_days: Optional[int] = Query(None, ge=1, le=366, description="Zero-filled series for the last N days"),
    current_user: User = Depends(require_access(required_permissions=["equipments:view"])),
):
    try:
        if recent_days:
            series = await equipment_usage_service.get_recent_usage(equipment_id, recent_days)
            return {"success": True, "data": series, "count": len(series)}

        history = await equipment_usage_service.get_usage_history(equipment_id)
        return {"success": True, "data": [r.dict() for r in history], "count": len(history)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching usage for equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{equipment_id}/usage/remaining", response_model=Dict[str, Any])
async def get_remaining_units(
    equipment_id: str,
    current_user: User = Depends(require_access(required_permissions=["equipments:view"])),
):
    try:
        remaining = await equipment_usage_service.get_remaining_units(equipment_id)
        return {"success": True, "data": remaining.to_dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error computing remaining units for {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{equipment_id}/maintenances", response_model=Dict[str, Any])
async def get_maintenance_history(
    equipment_id: str,
    current_user: User = Depends(require_access(required_permissions=["equipments:view"])),
):
    try:
        events = await equipment_usage_service.get_maintenance_history(equipment_id)
        return {"success": True, "data": [e.dict() for e in events], "count": len(events)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching maintenance history for {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
