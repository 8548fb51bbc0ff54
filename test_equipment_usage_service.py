from datetime import date

import pytest

from resenix.core.exceptions import InvalidInputError, NotFoundError
from resenix.services.equipment_service import EquipmentService
from resenix.services.equipment_usage_service import EquipmentUsageService
from resenix.models.database_models import Equipment

pytestmark = pytest.mark.asyncio

TODAY = date(2024, 1, 10)

EXCAVATOR = {
    "name": "Excavator",
    "serial_number": "SN-001",
    "asset_number": "AS-001",
    "asset_type": "hr",
    "location": "North Yard",
    "status": "active",
    "operating_hours": 500,
    "cumulative_hours": 0,
    "created_at": "2024-01-01T00:00:00Z",
}


@pytest.fixture
def usage_service(fake_db):
    fake_db.seed("equipments", "eq1", EXCAVATOR)
    return EquipmentUsageService(db=fake_db, equipment=EquipmentService(db=fake_db))


async def test_first_log_creates_record_and_updates_cumulative(usage_service, fake_db):
    result = await usage_service.log_hours("eq1", date(2024, 1, 2), 5, today=TODAY)

    assert result["replaced"] is False
    assert result["cumulative_hours"] == 5
    assert fake_db.storage["equipments"]["eq1"]["cumulative_hours"] == 5
    history = await usage_service.get_usage_history("eq1")
    assert [(r.date, r.hours_worked) for r in history] == [("2024-01-02", 5)]


async def test_same_day_overwrites_previous_value(usage_service, fake_db):
    await usage_service.log_hours("eq1", date(2024, 1, 2), 5, today=TODAY)
    result = await usage_service.log_hours("eq1", date(2024, 1, 2), 8, today=TODAY)

    assert result["replaced"] is True
    assert result["cumulative_hours"] == 8
    history = await usage_service.get_usage_history("eq1")
    assert len(history) == 1
    assert history[0].hours_worked == 8
    assert fake_db.storage["equipments"]["eq1"]["cumulative_hours"] == 8


async def test_history_is_newest_first_and_totals_add_up(usage_service):
    await usage_service.log_hours("eq1", date(2024, 1, 3), 3, today=TODAY)
    await usage_service.log_hours("eq1", date(2024, 1, 5), 7, today=TODAY)
    await usage_service.log_hours("eq1", date(2024, 1, 4), 2.5, today=TODAY)

    history = await usage_service.get_usage_history("eq1")
    assert [r.date for r in history] == ["2024-01-05", "2024-01-04", "2024-01-03"]
    assert await usage_service.get_total_usage("eq1") == 12.5

    remaining = await usage_service.get_remaining_units("eq1")
    assert remaining.hours_left == 487.5
    assert not remaining.is_due


async def test_today_and_future_dates_are_rejected(usage_service):
    for day in (TODAY, date(2024, 1, 11)):
        with pytest.raises(InvalidInputError) as exc:
            await usage_service.log_hours("eq1", day, 4, today=TODAY)
        assert exc.value.field == "date"


@pytest.mark.parametrize("hours", [0, -2, 24.5])
async def test_hours_outside_a_day_are_rejected(usage_service, hours):
    with pytest.raises(InvalidInputError) as exc:
        await usage_service.log_hours("eq1", date(2024, 1, 2), hours, today=TODAY)
    assert exc.value.field == "hoursWorked"


async def test_full_day_is_accepted(usage_service):
    result = await usage_service.log_hours("eq1", date(2024, 1, 2), 24, today=TODAY)
    assert result["hours_worked"] == 24


async def test_unknown_equipment(usage_service):
    with pytest.raises(NotFoundError):
        await usage_service.log_hours("missing", date(2024, 1, 2), 4, today=TODAY)


async def test_recent_usage_is_zero_filled_oldest_first(usage_service):
    await usage_service.log_hours("eq1", date(2024, 1, 8), 6, today=TODAY)
    await usage_service.log_hours("eq1", date(2024, 1, 1), 9, today=TODAY)

    series = await usage_service.get_recent_usage("eq1", days=7, today=TODAY)

    assert len(series) == 7
    assert series[0] == {"date": "2024-01-04", "hours_worked": 0}
    assert series[-1] == {"date": "2024-01-10", "hours_worked": 0}
    assert {"date": "2024-01-08", "hours_worked": 6} in series
    assert sum(day["hours_worked"] for day in series) == 6


async def test_created_equipment_gets_an_empty_usage_log(fake_db):
    equipment = EquipmentService(db=fake_db)
    created = await equipment.create_equipment(Equipment(**{**EXCAVATOR, "name": "Loader"}), created_by="admin-uid")

    usage_docs = list(fake_db.storage["equipment_usage"].values())
    assert usage_docs == [{"equipment_id": created["id"], "usage": [], "maintenances": []}]
    assert created["cumulative_hours"] == 0
    assert created["remaining_hours"] == 500
    assert created["maintenance_due"]["days_left"] >= 0


async def test_record_maintenance_appends_event(usage_service):
    event = await usage_service.record_maintenance("eq1", "Oil change", previous_hours=500)
    history = await usage_service.get_maintenance_history("eq1")
    assert history == [event]
    assert history[0].previous_hours == 500


async def test_unreachable_due_date_is_shown_as_missing(fake_db):
    fake_db.seed("equipments", "eq-far", {**EXCAVATOR, "operating_hours": 1e12})
    items = await EquipmentService(db=fake_db).list_equipment()

    assert [item["id"] for item in items] == ["eq-far"]
    assert items[0]["maintenance_due"] is None
    assert items[0]["remaining_hours"] == 1e12
