from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import require_access
from ..core.exceptions import ResenixError
from ..models.database_models import ApprovalStatus, OrderCreate, RequisitionCreate, StatusUpdate, Vendor
from ..models.user import User
from ..services.purchasing_service import purchasing_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Purchasing"])


# ─── Purchase requisitions ────────────────────────────────────────────────────

@router.get("/requisitions", response_model=Dict[str, Any])
async def list_requisitions(
    status: Optional[ApprovalStatus] = Query(None),
    current_user: User = Depends(require_access(required_permissions=["invoices:view"])),
):
    try:
        items = await purchasing_service.list_requisitions(status)
        return {"success": True, "data": [pr.dict() for pr in items], "count": len(items)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing requisitions: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/requisitions", response_model=Dict[str, Any])
async def create_requisition(
    payload: RequisitionCreate,
    current_user: User = Depends(require_access(required_permissions=["invoices:edit"])),
):
    try:
        requisition = await purchasing_service.create_requisition(payload)
        return {"success": True, "message": f"Requisition {requisition.pr_number} created", "data": requisition.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating requisition: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/requisitions/{requisition_id}/status", response_model=Dict[str, Any])
async def update_requisition_status(
    requisition_id: str,
    update: StatusUpdate,
    current_user: User = Depends(require_access(required_permissions=["invoices:admin"])),
):
    """Approve or reject a requisition"""
    try:
        await purchasing_service.update_requisition_status(requisition_id, update.status)
        return {"success": True, "message": f"Requisition marked {update.status.value}"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating requisition {requisition_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# ─── Purchase orders ──────────────────────────────────────────────────────────

@router.get("/orders", response_model=Dict[str, Any])
async def list_orders(
    status: Optional[ApprovalStatus] = Query(None),
    current_user: User = Depends(require_access(required_permissions=["orders:view"])),
):
    try:
        orders = await purchasing_service.list_orders(status)
        return {"success": True, "data": [po.dict() for po in orders], "count": len(orders)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing purchase orders: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/orders", response_model=Dict[str, Any])
async def create_order(
    payload: OrderCreate,
    current_user: User = Depends(require_access(required_permissions=["orders:edit"])),
):
    """Raise a purchase order from an approved requisition"""
    try:
        order = await purchasing_service.create_order(payload)
        return {"success": True, "message": f"Purchase order {order.po_number} created", "data": order.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating purchase order: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/orders/{order_id}/status", response_model=Dict[str, Any])
async def update_order_status(
    order_id: str,
    update: StatusUpdate,
    current_user: User = Depends(require_access(required_permissions=["orders:admin"])),
):
    try:
        await purchasing_service.update_order_status(order_id, update.status)
        return {"success": True, "message": f"Order marked {update.status.value}"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# ─── Vendors ──────────────────────────────────────────────────────────────────

@router.get("/vendors", response_model=Dict[str, Any])
async def list_vendors(
    current_user: User = Depends(require_access(required_permissions=["orders:view"])),
):
    try:
        vendors = await purchasing_service.list_vendors()
        return {"success": True, "data": [v.dict() for v in vendors], "count": len(vendors)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing vendors: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/vendors/{vendor_id}", response_model=Dict[str, Any])
async def get_vendor(
    vendor_id: str,
    current_user: User = Depends(require_access(required_permissions=["orders:view"])),
):
    try:
        return {"success": True, "data": (await purchasing_service.get_vendor(vendor_id)).dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching vendor {vendor_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/vendors", response_model=Dict[str, Any])
async def create_vendor(
    vendor: Vendor,
    current_user: User = Depends(require_access(required_permissions=["orders:edit"])),
):
    try:
        created = await purchasing_service.create_vendor(vendor)
        return {"success": True, "message": "Vendor created", "data": created.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating vendor: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
