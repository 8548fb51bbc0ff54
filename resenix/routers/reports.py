from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import StreamingResponse
from typing import Dict, Any, Optional
from urllib.parse import quote
import logging

from ..auth.dependencies import require_access
from ..core.exceptions import ResenixError
from ..models.database_models import ReportType
from ..models.user import User
from ..services.report_service import XLSX_MEDIA_TYPE, group_reports_by_date, report_service
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/", response_model=Dict[str, Any])
async def list_reports(
    type: Optional[ReportType] = Query(None, description="general or equipment"),
    current_user: User = Depends(require_access(required_permissions=["reports:view"])),
):
    """Generated reports grouped by day, newest first"""
    try:
        reports = await report_service.list_reports(type)
        groups = [
            {"date": group["date"], "reports": [r.dict() for r in group["reports"]]}
            for group in group_reports_by_date(reports)
        ]
        return {"success": True, "data": groups, "count": len(reports)}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing reports: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/equipment/{equipment_id}", response_model=Dict[str, Any])
async def generate_equipment_report(
    equipment_id: str,
    current_user: User = Depends(require_access(required_permissions=["reports:edit"])),
):
    try:
        report = await report_service.generate_equipment_report(equipment_id, current_user.email)
        return {"success": True, "message": "Report generated", "data": report.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error generating report for equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/general", response_model=Dict[str, Any])
async def generate_general_report(
    current_user: User = Depends(require_access(required_permissions=["reports:edit"])),
):
    try:
        report = await report_service.generate_general_report(current_user.email)
        return {"success": True, "message": "Report generated", "data": report.dict()}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error generating general report: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{report_id}/download")
async def download_report(
    report_id: str,
    current_user: User = Depends(require_access(required_permissions=["reports:view"])),
):
    try:
        report, content = await report_service.download_report(report_id)
        return StreamingResponse(
            iter([content]),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(report.file_name)}"},
        )
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error downloading report {report_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{report_id}", response_model=Dict[str, Any])
async def delete_report(
    report_id: str,
    current_user: User = Depends(require_access(required_permissions=["reports:delete"])),
):
    try:
        await report_service.delete_report(report_id)
        return {"success": True, "message": "Report deleted"}
    except HTTPException:
        raise
    except ResenixError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error deleting report {report_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
