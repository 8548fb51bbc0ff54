import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..core.exceptions import ConflictError, NotFoundError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import MaintenanceTask, TaskCreate, TaskStatus, TaskUpdate
from .equipment_service import EquipmentService, equipment_service
from .equipment_usage_service import EquipmentUsageService, equipment_usage_service
from .maintenance_calculator import parse_timestamp

logger = logging.getLogger(__name__)


class MaintenanceTaskService:
    """Service layer for CRUD operations on maintenance tasks."""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        equipment: Optional[EquipmentService] = None,
        usage: Optional[EquipmentUsageService] = None,
    ) -> None:
        self.db = db or database_service
        self.equipment = equipment or equipment_service
        self.usage = usage or equipment_usage_service

    async def list_tasks(
        self,
        status: Optional[TaskStatus] = None,
        equipment_id: Optional[str] = None,
    ) -> List[MaintenanceTask]:
        """Return tasks filtered by status and equipment, soonest due first."""
        query_filters = []
        if status:
            query_filters.append(("status", "==", TaskStatus(status).value))
        if equipment_id:
            query_filters.append(("equipment_id", "==", equipment_id))

        success, documents, error = await self.db.query_documents(
            COLLECTIONS["tasks"],
            query_filters or None,
        )
        if not success:
            raise PersistenceError(error or "Failed to fetch maintenance tasks")

        tasks: List[MaintenanceTask] = []
        for raw in documents:
            try:
                tasks.append(MaintenanceTask(**raw))
            except ValidationError as exc:
                logger.warning("Skipping maintenance task due to validation error: %s", exc)
                logger.debug("Failed document data: %s", raw)

        tasks.sort(key=lambda task: task.due_date)
        return tasks

    async def get_task(self, task_id: str) -> MaintenanceTask:
        success, document, error = await self.db.get_document(COLLECTIONS["tasks"], task_id)
        if not success or not document:
            if error:
                logger.debug("Failed to get maintenance task %s: %s", task_id, error)
            raise NotFoundError("Task", task_id)
        return MaintenanceTask(**document)

    async def create_task(self, payload: TaskCreate) -> MaintenanceTask:
        """Schedule a task against an existing equipment."""
        await self.equipment.get_raw(payload.equipment_id)

        data: Dict[str, Any] = payload.dict()
        data.update({
            "due_date": payload.due_date.isoformat(),
            "status": TaskStatus.SCHEDULED.value,
            "created_at": datetime.now(timezone.utc),
        })

        success, task_id, error = await self.db.create_document(COLLECTIONS["tasks"], data)
        if not success:
            raise PersistenceError(error or "Failed to create maintenance task")

        logger.info("Scheduled %s for equipment %s on %s", payload.maintenance_type, payload.equipment_id, data["due_date"])
        return MaintenanceTask(id=task_id, **data)

    async def update_task(self, task_id: str, payload: TaskUpdate) -> MaintenanceTask:
        task = await self.get_task(task_id)
        if task.status == TaskStatus.COMPLETED:
            raise ConflictError(f"Task {task_id} is completed and can no longer be edited")

        update = payload.dict(exclude_none=True)
        if "equipment_id" in update:
            await self.equipment.get_raw(update["equipment_id"])
        if "due_date" in update:
            update["due_date"] = update["due_date"].isoformat()
        if not update:
            return task

        success, error = await self.db.update_document(COLLECTIONS["tasks"], task_id, update)
        if not success:
            raise PersistenceError(error or f"Failed to update task {task_id}")
        return await self.get_task(task_id)

    async def complete_task(self, task_id: str, now: Optional[datetime] = None) -> MaintenanceTask:
        """
        Mark a task completed and append a maintenance entry to the
        equipment's usage log with the budget in force at completion.
        `completed_at` is written once; completing again is rejected.
        """
        task = await self.get_task(task_id)
        if task.status == TaskStatus.COMPLETED:
            raise ConflictError(f"Task {task_id} was already completed on {task.completed_at}")

        now = now or datetime.now(timezone.utc)
        equipment = await self.equipment.get_raw(task.equipment_id)

        update = {"status": TaskStatus.COMPLETED.value, "completed_at": now.isoformat()}
        success, error = await self.db.update_document(COLLECTIONS["tasks"], task_id, update)
        if not success:
            raise PersistenceError(error or f"Failed to complete task {task_id}")

        try:
            await self.usage.record_maintenance(
                task.equipment_id,
                task.maintenance_type,
                previous_hours=equipment.operating_hours,
                when=now,
            )
        except Exception:
            # Reopen the task so completing it can be retried
            reverted, revert_error = await self.db.update_document(
                COLLECTIONS["tasks"], task_id, {"status": task.status.value, "completed_at": None}
            )
            if not reverted:
                logger.error("Task %s left completed without a maintenance entry: %s", task_id, revert_error)
            raise
        logger.info("Completed task %s (%s)", task_id, task.maintenance_type)
        return task.copy(update={"status": TaskStatus.COMPLETED, "completed_at": update["completed_at"]})

    async def delete_task(self, task_id: str) -> None:
        await self.get_task(task_id)
        success, error = await self.db.delete_document(COLLECTIONS["tasks"], task_id)
        if not success:
            raise PersistenceError(error or f"Failed to delete task {task_id}")
        logger.info("Deleted task %s", task_id)

    @staticmethod
    def is_overdue(task: MaintenanceTask, now: datetime) -> bool:
        if task.status == TaskStatus.COMPLETED:
            return False
        try:
            return parse_timestamp(task.due_date, "dueDate") < now
        except ValueError:
            logger.debug("Task %s has an unreadable due date: %s", task.id, task.due_date)
            return False

    async def get_dashboard_summary(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Counts shown on the dashboard landing page."""
        now = now or datetime.now(timezone.utc)
        tasks = await self.list_tasks()

        success, equipment_docs, error = await self.db.query_documents(COLLECTIONS["equipments"])
        if not success:
            raise PersistenceError(error or "Failed to count equipment")

        return {
            "total_equipment": len(equipment_docs),
            "active_tasks": sum(1 for t in tasks if t.status != TaskStatus.COMPLETED),
            "completed_tasks": sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            "overdue_tasks": sum(1 for t in tasks if self.is_overdue(t, now)),
        }


maintenance_task_service = MaintenanceTaskService()
