from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
import logging

from ..core.config import settings
from ..core.exceptions import InvalidInputError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import EquipmentUsage, MaintenanceEvent, UsageRecord
from .equipment_service import EquipmentService, equipment_service
from .maintenance_calculator import RemainingUnits, calculate_remaining_units, total_usage

logger = logging.getLogger(__name__)


class EquipmentUsageService:
    """Daily usage log (one record per calendar day) and maintenance history per equipment."""

    def __init__(self, db: Optional[DatabaseService] = None, equipment: Optional[EquipmentService] = None):
        self.db = db or database_service
        self.equipment = equipment or equipment_service

    async def _load(self, equipment_id: str) -> Tuple[Optional[str], EquipmentUsage]:
        success, docs, error = await self.db.query_documents(
            COLLECTIONS['equipment_usage'], [('equipment_id', '==', equipment_id)], limit=1
        )
        if not success:
            raise PersistenceError(error or f"Failed to load usage for {equipment_id}")
        if not docs:
            return None, EquipmentUsage(equipment_id=equipment_id)
        doc = docs[0]
        return doc['id'], EquipmentUsage(**doc)

    async def _save(self, doc_id: Optional[str], usage: EquipmentUsage) -> str:
        data = usage.dict(exclude={'id'})
        if doc_id is None:
            success, doc_id, error = await self.db.create_document(COLLECTIONS['equipment_usage'], data)
            if not success:
                raise PersistenceError(error or "Failed to create usage log")
            return doc_id
        success, error = await self.db.update_document(COLLECTIONS['equipment_usage'], doc_id, data)
        if not success:
            raise PersistenceError(error or "Failed to update usage log")
        return doc_id

    async def log_hours(
        self,
        equipment_id: str,
        log_date: date,
        hours_worked: float,
        today: Optional[date] = None,
    ) -> Dict:
        """
        Record hours for one past day. Logging the same day again replaces
        the earlier value. The equipment's cumulative total is refreshed.
        """
        today = today or datetime.now(timezone.utc).date()
        if log_date >= today:
            raise InvalidInputError("date", log_date.isoformat(), "You can only log hours for past dates")
        if hours_worked <= 0:
            raise InvalidInputError("hoursWorked", hours_worked, "Hours worked must be greater than 0")
        if hours_worked > settings.MAX_DAILY_HOURS:
            raise InvalidInputError(
                "hoursWorked", hours_worked, f"Hours worked must not exceed {settings.MAX_DAILY_HOURS:g}"
            )

        equipment = await self.equipment.get_raw(equipment_id)
        doc_id, usage = await self._load(equipment_id)

        day = log_date.isoformat()
        records = [r for r in usage.usage if r.date != day]
        replaced = len(records) != len(usage.usage)
        records.append(UsageRecord(date=day, hours_worked=hours_worked))
        records.sort(key=lambda r: r.date)
        usage.usage = records

        await self._save(doc_id, usage)

        cumulative = total_usage(records)
        success, error = await self.db.update_document(
            COLLECTIONS['equipments'], equipment_id, {'cumulative_hours': cumulative}
        )
        if not success:
            raise PersistenceError(error or f"Failed to update cumulative hours for {equipment_id}")

        logger.info(
            f"{'Updated' if replaced else 'Logged'} {hours_worked} hours for {equipment.name} on {day}"
        )
        return {
            'equipment_id': equipment_id,
            'date': day,
            'hours_worked': hours_worked,
            'replaced': replaced,
            'cumulative_hours': cumulative,
        }

    async def get_usage_history(self, equipment_id: str) -> List[UsageRecord]:
        """Usage records, newest day first."""
        _, usage = await self._load(equipment_id)
        return sorted(usage.usage, key=lambda r: r.date, reverse=True)

    async def get_total_usage(self, equipment_id: str) -> float:
        _, usage = await self._load(equipment_id)
        return total_usage(usage.usage)

    async def get_remaining_units(self, equipment_id: str) -> RemainingUnits:
        equipment = await self.equipment.get_raw(equipment_id)
        return calculate_remaining_units(equipment.operating_hours, await self.get_total_usage(equipment_id))

    async def get_recent_usage(self, equipment_id: str, days: int = 7, today: Optional[date] = None) -> List[Dict]:
        """One entry per day for the last `days` days (today included), oldest first, zero-filled."""
        today = today or datetime.now(timezone.utc).date()
        _, usage = await self._load(equipment_id)
        by_day = {r.date: r.hours_worked for r in usage.usage}

        series = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            series.append({'date': day, 'hours_worked': by_day.get(day, 0)})
        return series

    async def get_maintenance_history(self, equipment_id: str) -> List[MaintenanceEvent]:
        _, usage = await self._load(equipment_id)
        return list(usage.maintenances)

    async def record_maintenance(
        self,
        equipment_id: str,
        maintenance_type: str,
        previous_hours: float,
        when: Optional[datetime] = None,
    ) -> MaintenanceEvent:
        """Append a completed-maintenance entry to the equipment's usage log."""
        when = when or datetime.now(timezone.utc)
        event = MaintenanceEvent(
            maintenance_date=when.isoformat(),
            maintenance_type=maintenance_type,
            previous_hours=previous_hours,
        )
        doc_id, usage = await self._load(equipment_id)
        usage.maintenances.append(event)
        await self._save(doc_id, usage)
        logger.info(f"Recorded {maintenance_type} for equipment {equipment_id}")
        return event


equipment_usage_service = EquipmentUsageService()
