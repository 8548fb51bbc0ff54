from collections import OrderedDict
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional
import logging
import re
import urllib.parse
import uuid

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from ..core.config import settings
from ..core.exceptions import NotFoundError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import MaintenanceTask, Report, ReportType, TaskStatus, UsageRecord
from .equipment_service import EquipmentService, equipment_service
from .equipment_usage_service import EquipmentUsageService, equipment_usage_service
from .firebase_storage_init import get_storage_bucket
from .maintenance_calculator import format_hours, unit_label
from .maintenance_task_service import MaintenanceTaskService, maintenance_task_service

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FONT = Font(name='Arial', size=11, bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2980B9", end_color="2980B9", fill_type="solid")
TITLE_FONT = Font(name='Arial', size=14, bold=True)


def report_file_name(
    report_type: ReportType,
    now: datetime,
    equipment_name: Optional[str] = None,
    equipment_id: Optional[str] = None,
) -> str:
    timestamp = now.strftime("%Y-%m-%d-%H%M%S")
    if ReportType(report_type) == ReportType.GENERAL:
        return f"equipments-report-{timestamp}.xlsx"
    # Storage paths and download names cannot carry slashes or spaces
    name = re.sub(r"[^\w.-]+", "-", equipment_name or "").strip("-") or "equipment"
    return f"{name}-{equipment_id}-report-{timestamp}.xlsx"


def group_reports_by_date(reports: List[Report]) -> List[Dict[str, Any]]:
    """Bucket reports by generation day, newest day and newest report first."""
    groups: "OrderedDict[str, List[Report]]" = OrderedDict()
    for report in sorted(reports, key=lambda r: r.generated_at, reverse=True):
        groups.setdefault(report.generated_at.date().isoformat(), []).append(report)
    return [{"date": day, "reports": items} for day, items in groups.items()]


def _write_table(sheet, start_row: int, headers: List[str], rows: List[List[Any]]) -> int:
    for col, title in enumerate(headers, start=1):
        cell = sheet.cell(row=start_row, column=col, value=title)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    for offset, row in enumerate(rows, start=1):
        for col, value in enumerate(row, start=1):
            sheet.cell(row=start_row + offset, column=col, value=value)
    for col, title in enumerate(headers, start=1):
        width = max([len(str(title))] + [len(str(r[col - 1])) for r in rows if len(r) >= col])
        sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 60)
    return start_row + len(rows) + 1


def _to_bytes(workbook) -> bytes:
    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


def build_equipment_workbook(
    equipment: Dict[str, Any],
    usage: List[UsageRecord],
    tasks: List[MaintenanceTask],
    now: Optional[datetime] = None,
) -> bytes:
    """Working-order workbook for one equipment: summary, usage log and tasks."""
    now = now or datetime.now(timezone.utc)
    asset_type = equipment.get('asset_type')
    unit = unit_label(asset_type)
    due = equipment.get('maintenance_due') or {}

    wb = openpyxl.Workbook()
    summary = wb.active
    summary.title = "Summary"
    summary["A1"] = "Working Order"
    summary["A1"].font = TITLE_FONT
    summary["A2"] = f"Generated on: {now.strftime('%B %d, %Y %H:%M')}"

    _write_table(summary, 4, ["Field", "Value"], [
        ["Name", equipment.get('name')],
        ["Serial Number", equipment.get('serial_number')],
        ["Asset Number", equipment.get('asset_number')],
        ["Location", equipment.get('location')],
        ["Status", equipment.get('status')],
        [f"Operating {unit}", equipment.get('operating_hours')],
        [f"Cumulative {unit}", equipment.get('cumulative_hours')],
        [f"Remaining {unit}", format_hours(equipment.get('remaining_hours', 0), asset_type)],
        ["Maintenance Due", due.get('date', "N/A")],
        ["Days Left", due.get('days_left', "N/A")],
        ["Scheduled Tasks", sum(1 for t in tasks if t.status == TaskStatus.SCHEDULED)],
        ["Completed Tasks", sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)],
    ])

    usage_sheet = wb.create_sheet("Usage")
    ordered = sorted(usage, key=lambda r: r.date, reverse=True)
    _write_table(usage_sheet, 1, ["Date", f"{unit} Worked"], [[r.date, r.hours_worked] for r in ordered])

    task_sheet = wb.create_sheet("Tasks")
    _write_table(task_sheet, 1, ["Type", "Due Date", "Status", "Completed At", "Resources", "Notes"], [
        [
            t.maintenance_type,
            t.due_date,
            t.status.value,
            t.completed_at or "",
            ", ".join(f"{r.resource} ({r.quantity:g} {r.unit})" for r in t.resources),
            t.notes,
        ]
        for t in tasks
    ])
    return _to_bytes(wb)


def build_general_workbook(equipment_list: List[Dict[str, Any]], now: Optional[datetime] = None) -> bytes:
    """Fleet-wide equipment report, one row per equipment."""
    now = now or datetime.now(timezone.utc)
    wb = openpyxl.Workbook()
    sheet = wb.active
    sheet.title = "Equipments"
    sheet["A1"] = "Equipments Report"
    sheet["A1"].font = TITLE_FONT
    sheet["A2"] = f"Generated on: {now.strftime('%B %d, %Y %H:%M')}"

    rows = []
    for item in equipment_list:
        due = item.get('maintenance_due') or {}
        rows.append([
            item.get('name'),
            item.get('asset_number'),
            item.get('serial_number'),
            item.get('location'),
            item.get('status'),
            unit_label(item.get('asset_type')),
            item.get('operating_hours'),
            item.get('cumulative_hours'),
            item.get('remaining_hours'),
            due.get('date', "N/A"),
        ])
    _write_table(sheet, 4, [
        "Name", "Asset Number", "Serial Number", "Location", "Status", "Unit",
        "Operating", "Cumulative", "Remaining", "Maintenance Due",
    ], rows)
    return _to_bytes(wb)


class ReportService:
    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        bucket_provider: Callable[[], Any] = get_storage_bucket,
        equipment: Optional[EquipmentService] = None,
        usage: Optional[EquipmentUsageService] = None,
        tasks: Optional[MaintenanceTaskService] = None,
    ):
        self.db = db or database_service
        self._bucket_provider = bucket_provider
        self.equipment = equipment or equipment_service
        self.usage = usage or equipment_usage_service
        self.tasks = tasks or maintenance_task_service

    @property
    def bucket(self):
        bucket = self._bucket_provider()
        if bucket is None:
            raise PersistenceError("File storage not available")
        return bucket

    async def generate_equipment_report(self, equipment_id: str, generated_by: str) -> Report:
        equipment = await self.equipment.get_equipment(equipment_id)
        usage = await self.usage.get_usage_history(equipment_id)
        tasks = await self.tasks.list_tasks(equipment_id=equipment_id)

        now = datetime.now(timezone.utc)
        content = build_equipment_workbook(equipment, usage, tasks, now)
        return await self.save_report(content, {
            'type': ReportType.EQUIPMENT,
            'equipment_id': equipment_id,
            'equipment_name': equipment['name'],
            'generated_by': generated_by,
        }, now)

    async def generate_general_report(self, generated_by: str) -> Report:
        now = datetime.now(timezone.utc)
        content = build_general_workbook(await self.equipment.list_equipment(), now)
        return await self.save_report(content, {
            'type': ReportType.GENERAL,
            'generated_by': generated_by,
        }, now)

    async def save_report(self, content: bytes, metadata: Dict[str, Any], now: Optional[datetime] = None) -> Report:
        """Upload the file to the reports folder and record its metadata."""
        now = now or datetime.now(timezone.utc)
        file_name = report_file_name(
            metadata['type'], now, metadata.get('equipment_name'), metadata.get('equipment_id')
        )
        file_path = f"{settings.REPORTS_PREFIX}/{file_name}"

        bucket = self.bucket
        blob = bucket.blob(file_path)
        download_token = str(uuid.uuid4())
        blob.metadata = {
            'generated_by': metadata['generated_by'],
            'type': ReportType(metadata['type']).value,
            'firebaseStorageDownloadTokens': download_token,
        }
        blob.upload_from_string(content, content_type=XLSX_MEDIA_TYPE)

        encoded_path = urllib.parse.quote(file_path, safe='')
        file_url = f"https://firebasestorage.googleapis.com/v0/b/{bucket.name}/o/{encoded_path}?alt=media&token={download_token}"

        record = {
            'file_name': file_name,
            'file_url': file_url,
            'type': ReportType(metadata['type']).value,
            'equipment_id': metadata.get('equipment_id'),
            'equipment_name': metadata.get('equipment_name'),
            'generated_at': now,
            'generated_by': metadata['generated_by'],
            'file_size': len(content),
        }
        success, report_id, error = await self.db.create_document(COLLECTIONS['reports'], record)
        if not success:
            blob.delete()
            raise PersistenceError(error or "Failed to store report metadata")

        logger.info(f"Saved report {file_name} ({len(content)} bytes)")
        return Report(id=report_id, **record)

    async def list_reports(self, report_type: Optional[ReportType] = None) -> List[Report]:
        filters = [('type', '==', ReportType(report_type).value)] if report_type else None
        success, docs, error = await self.db.query_documents(COLLECTIONS['reports'], filters)
        if not success:
            raise PersistenceError(error or "Failed to list reports")
        reports = [Report(**doc) for doc in docs]
        reports.sort(key=lambda r: r.generated_at, reverse=True)
        return reports

    async def get_report(self, report_id: str) -> Report:
        success, doc, _ = await self.db.get_document(COLLECTIONS['reports'], report_id)
        if not success or not doc:
            raise NotFoundError("Report", report_id)
        return Report(**doc)

    async def download_report(self, report_id: str) -> tuple:
        report = await self.get_report(report_id)
        blob = self.bucket.blob(f"{settings.REPORTS_PREFIX}/{report.file_name}")
        return report, blob.download_as_bytes()

    async def delete_report(self, report_id: str) -> None:
        report = await self.get_report(report_id)
        blob = self.bucket.blob(f"{settings.REPORTS_PREFIX}/{report.file_name}")
        if blob.exists():
            blob.delete()
        else:
            logger.warning(f"Report file {report.file_name} was already missing from storage")

        success, error = await self.db.delete_document(COLLECTIONS['reports'], report_id)
        if not success:
            raise PersistenceError(error or f"Failed to delete report {report_id}")
        logger.info(f"Deleted report {report.file_name}")


report_service = ReportService()
