from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

from ..core.exceptions import InvalidInputError, NotFoundError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import Equipment, EquipmentStatus, EquipmentUpdate
from .maintenance_calculator import (
    calculate_maintenance_date,
    calculate_remaining_units,
    unit_label,
)

logger = logging.getLogger(__name__)


class EquipmentService:
    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or database_service

    async def create_equipment(self, equipment: Equipment, created_by: Optional[str] = None) -> Dict[str, Any]:
        """Store a new equipment record and open its empty usage log."""
        now = datetime.now(timezone.utc)
        data = equipment.dict(exclude={'id'}, exclude_none=True)
        data.update({
            'status': equipment.status.value,
            'asset_type': equipment.asset_type.value,
            'cumulative_hours': 0,
            'created_at': now,
            'updated_at': now,
            'created_by': created_by,
        })

        success, equipment_id, error = await self.db.create_document(COLLECTIONS['equipments'], data)
        if not success:
            raise PersistenceError(error or "Failed to create equipment")

        success, _, error = await self.db.create_document(
            COLLECTIONS['equipment_usage'],
            {'equipment_id': equipment_id, 'usage': [], 'maintenances': []},
        )
        if not success:
            logger.warning(f"Usage log for equipment {equipment_id} not created: {error}")

        logger.info(f"Created equipment {equipment_id} ({equipment.name} - {equipment.asset_number})")
        return self._with_derived_fields({**data, 'id': equipment_id})

    async def get_raw(self, equipment_id: str) -> Equipment:
        success, doc, error = await self.db.get_document(COLLECTIONS['equipments'], equipment_id)
        if not success or not doc:
            raise NotFoundError("Equipment", equipment_id)
        return Equipment(**doc)

    async def get_equipment(self, equipment_id: str) -> Dict[str, Any]:
        equipment = await self.get_raw(equipment_id)
        return self._with_derived_fields(equipment.dict())

    async def list_equipment(self, status: Optional[EquipmentStatus] = None) -> List[Dict[str, Any]]:
        filters = [('status', '==', EquipmentStatus(status).value)] if status else None
        success, docs, error = await self.db.query_documents(COLLECTIONS['equipments'], filters)
        if not success:
            raise PersistenceError(error or "Failed to list equipment")

        items = []
        for doc in docs:
            try:
                items.append(self._with_derived_fields(Equipment(**doc).dict()))
            except ValueError as e:
                logger.warning(f"Skipping malformed equipment {doc.get('id')}: {e}")
        items.sort(key=lambda item: item['name'].lower())
        return items

    async def update_equipment(
        self, equipment_id: str, update: EquipmentUpdate, updated_by: Optional[str] = None
    ) -> Dict[str, Any]:
        await self.get_raw(equipment_id)
        data = update.dict(exclude_none=True)
        for key in ('status', 'asset_type'):
            if key in data:
                data[key] = data[key].value
        data['updated_at'] = datetime.now(timezone.utc)
        if updated_by:
            data['updated_by'] = updated_by

        success, error = await self.db.update_document(COLLECTIONS['equipments'], equipment_id, data)
        if not success:
            raise PersistenceError(error or f"Failed to update equipment {equipment_id}")
        return await self.get_equipment(equipment_id)

    async def change_status(self, equipment_id: str, status: EquipmentStatus) -> Dict[str, Any]:
        return await self.update_equipment(equipment_id, EquipmentUpdate(status=status))

    async def delete_equipment(self, equipment_id: str) -> None:
        """Remove the equipment and its usage log. Tasks keep their reference."""
        await self.get_raw(equipment_id)

        success, error = await self.db.delete_document(COLLECTIONS['equipments'], equipment_id)
        if not success:
            raise PersistenceError(error or f"Failed to delete equipment {equipment_id}")

        ok, usage_docs, _ = await self.db.query_documents(
            COLLECTIONS['equipment_usage'], [('equipment_id', '==', equipment_id)]
        )
        for doc in usage_docs if ok else []:
            await self.db.delete_document(COLLECTIONS['equipment_usage'], doc['id'])
        logger.info(f"Deleted equipment {equipment_id}")

    def _with_derived_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Attach remaining budget and projected due date for display."""
        out = dict(data)
        for key in ('status', 'asset_type'):
            if hasattr(out.get(key), 'value'):
                out[key] = out[key].value

        remaining = calculate_remaining_units(out['operating_hours'], out.get('cumulative_hours') or 0)
        out['remaining_hours'] = remaining.hours_left
        out['unit_label'] = unit_label(out.get('asset_type'))

        try:
            due = calculate_maintenance_date(out.get('created_at'), out['operating_hours'])
            out['maintenance_due'] = due.to_dict()
        except InvalidInputError as e:
            # Displayed as N/A by the dashboard
            logger.debug(f"No due date for equipment {out.get('id')}: {e}")
            out['maintenance_due'] = None
        return out


equipment_service = EquipmentService()
