"""
Due-soon and overdue alerts for the dashboard notification panel.

Alerts are computed on request from tasks and equipment; nothing is stored.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from ..core.config import settings
from ..core.exceptions import InvalidInputError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import Equipment, TaskStatus
from .maintenance_calculator import ONE_DAY, calculate_remaining_units, parse_timestamp
from .maintenance_task_service import MaintenanceTaskService, maintenance_task_service

logger = logging.getLogger(__name__)


def time_category(due: Any, now: Optional[datetime] = None) -> Optional[str]:
    """Bucket a due date relative to now: overdue, today, 24h, 48h, 1week, or None beyond a week."""
    now = now or datetime.now(timezone.utc)
    diff_days = math.floor((parse_timestamp(due, "dueDate") - now) / ONE_DAY)

    if diff_days < 0:
        return "overdue"
    if diff_days == 0:
        return "today"
    if diff_days == 1:
        return "24h"
    if diff_days == 2:
        return "48h"
    if diff_days <= 7:
        return "1week"
    return None


def equipment_alert(equipment: Equipment, threshold: Optional[float] = None) -> Optional[str]:
    """'overdue' once the usage budget is spent, '24h' when within the threshold."""
    threshold = settings.EQUIPMENT_ALERT_THRESHOLD if threshold is None else threshold
    remaining = calculate_remaining_units(equipment.operating_hours, equipment.cumulative_hours).hours_left
    if remaining <= 0:
        return "overdue"
    if remaining <= threshold:
        return "24h"
    return None


class NotificationService:
    def __init__(self, db: Optional[DatabaseService] = None, tasks: Optional[MaintenanceTaskService] = None):
        self.db = db or database_service
        self.tasks = tasks or maintenance_task_service

    async def task_notifications(self, now: datetime) -> List[Dict[str, Any]]:
        notifications = []
        for task in await self.tasks.list_tasks(status=TaskStatus.SCHEDULED):
            try:
                category = time_category(task.due_date, now)
            except InvalidInputError:
                logger.debug(f"Skipping task {task.id} with unreadable due date {task.due_date!r}")
                continue
            if not category:
                continue

            overdue = category == "overdue"
            notifications.append({
                'id': task.id,
                'title': f"Task Overdue: {task.maintenance_type}" if overdue else f"Task Due Soon: {task.maintenance_type}",
                'description': f"Task was due on {task.due_date}" if overdue else f"Due in {category}",
                'date': task.due_date,
                'type': category,
                'item_id': task.equipment_id,
                'maintenance_id': task.id,
            })
        return notifications

    async def equipment_notifications(self, now: datetime) -> List[Dict[str, Any]]:
        success, docs, error = await self.db.query_documents(COLLECTIONS['equipments'])
        if not success:
            raise PersistenceError(error or "Failed to load equipment")

        notifications = []
        for doc in docs:
            try:
                equipment = Equipment(**doc)
            except ValueError as e:
                logger.warning(f"Skipping malformed equipment {doc.get('id')}: {e}")
                continue

            category = equipment_alert(equipment)
            if not category:
                continue

            remaining = equipment.operating_hours - equipment.cumulative_hours
            overdue = category == "overdue"
            label = f"{equipment.name} - {equipment.asset_number}"
            notifications.append({
                'id': equipment.id,
                'title': f"Maintenance Required: {label}" if overdue else f"Maintenance Soon: {label}",
                'description': (
                    f"Exceeded operating hours by {-remaining:g} hrs" if overdue
                    else f"Requires maintenance in {remaining:g} hrs"
                ),
                'date': now.isoformat(),
                'type': category,
                'image_url': equipment.image_url,
                'item_id': equipment.id,
            })
        return notifications

    async def collect_notifications(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or datetime.now(timezone.utc)
        return await self.task_notifications(now) + await self.equipment_notifications(now)


notification_service = NotificationService()
