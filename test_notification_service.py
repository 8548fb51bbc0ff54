from datetime import datetime, timezone

import pytest

from resenix.core.exceptions import InvalidInputError
from resenix.models.database_models import Equipment
from resenix.services.equipment_service import EquipmentService
from resenix.services.equipment_usage_service import EquipmentUsageService
from resenix.services.maintenance_task_service import MaintenanceTaskService
from resenix.services.notification_service import NotificationService, equipment_alert, time_category

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "due, expected",
    [
        ("2024-01-09", "overdue"),
        ("2024-01-10T18:00:00Z", "today"),
        ("2024-01-11T13:00:00Z", "24h"),
        ("2024-01-12T13:00:00Z", "48h"),
        ("2024-01-15T12:00:00Z", "1week"),
        ("2024-01-17T12:00:00Z", "1week"),
        ("2024-01-30", None),
    ],
)
def test_time_category(due, expected):
    assert time_category(due, NOW) == expected


def test_time_category_rejects_garbage():
    with pytest.raises(InvalidInputError):
        time_category("someday", NOW)


def machine(cumulative, budget=100):
    return Equipment(
        id="eq",
        name="Crane",
        serial_number="CR-1",
        asset_number="AS-9",
        location="Dock",
        operating_hours=budget,
        cumulative_hours=cumulative,
    )


def test_equipment_alert_thresholds():
    assert equipment_alert(machine(100)) == "overdue"
    assert equipment_alert(machine(130)) == "overdue"
    assert equipment_alert(machine(80)) == "24h"
    assert equipment_alert(machine(76)) == "24h"
    assert equipment_alert(machine(10)) is None
    assert equipment_alert(machine(10), threshold=95) == "24h"


@pytest.mark.asyncio
async def test_collect_notifications(fake_db):
    fake_db.seed("equipments", "eq1", {
        "name": "Crane", "serial_number": "CR-1", "asset_number": "AS-9", "location": "Dock",
        "status": "active", "operating_hours": 100, "cumulative_hours": 110,
    })
    fake_db.seed("equipments", "eq2", {
        "name": "Forklift", "serial_number": "FL-2", "asset_number": "AS-10", "location": "Dock",
        "status": "active", "operating_hours": 100, "cumulative_hours": 5,
    })
    fake_db.seed("tasks", "t1", {
        "equipment_id": "eq2", "maintenance_type": "Brake check",
        "due_date": "2024-01-11T13:00:00Z", "status": "scheduled",
    })
    fake_db.seed("tasks", "t2", {
        "equipment_id": "eq2", "maintenance_type": "Tyre swap",
        "due_date": "2024-01-02", "status": "completed", "completed_at": "2024-01-02T10:00:00+00:00",
    })
    fake_db.seed("tasks", "t3", {
        "equipment_id": "eq2", "maintenance_type": "Repaint",
        "due_date": "2024-05-01", "status": "scheduled",
    })

    equipment = EquipmentService(db=fake_db)
    tasks = MaintenanceTaskService(
        db=fake_db, equipment=equipment, usage=EquipmentUsageService(db=fake_db, equipment=equipment)
    )
    notifications = await NotificationService(db=fake_db, tasks=tasks).collect_notifications(NOW)

    by_id = {n["id"]: n for n in notifications}
    assert set(by_id) == {"t1", "eq1"}
    assert by_id["t1"]["type"] == "24h"
    assert by_id["t1"]["maintenance_id"] == "t1"
    assert by_id["t1"]["item_id"] == "eq2"
    assert by_id["eq1"]["type"] == "overdue"
    assert by_id["eq1"]["title"] == "Maintenance Required: Crane - AS-9"
    assert "10 hrs" in by_id["eq1"]["description"]
