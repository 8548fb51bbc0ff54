import math
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from resenix.core.exceptions import InvalidInputError
from resenix.services.maintenance_calculator import (
    calculate_maintenance_date,
    calculate_remaining_units,
    format_hours,
    parse_timestamp,
    total_usage,
    unit_label,
)

UTC = timezone.utc


def test_due_date_from_hours_budget():
    due = calculate_maintenance_date(
        "2024-01-01T00:00:00Z", 240, now=datetime(2024, 1, 5, tzinfo=UTC)
    )
    assert due.date == "2024-01-11"
    assert due.days_left == 6
    assert due.is_overdue is False
    assert due.to_dict() == {"date": "2024-01-11", "days_left": 6, "overdue": False}


def test_remaining_units_goes_negative_when_overused():
    remaining = calculate_remaining_units(500, 520)
    assert remaining.hours_left == -20
    assert remaining.is_due is True
    assert remaining.is_overdue is True


def test_remaining_units_exactly_spent_is_due_not_overdue():
    remaining = calculate_remaining_units(500, 500)
    assert remaining.hours_left == 0
    assert remaining.is_due is True
    assert remaining.is_overdue is False


def test_days_left_is_negative_once_date_has_passed():
    due = calculate_maintenance_date("2024-01-01T00:00:00Z", 24, now=datetime(2024, 1, 3, tzinfo=UTC))
    assert due.date == "2024-01-02"
    assert due.days_left == -1
    assert due.is_overdue is True


def test_days_left_is_zero_on_the_maintenance_instant():
    due = calculate_maintenance_date("2024-01-01T00:00:00Z", 48, now=datetime(2024, 1, 3, tzinfo=UTC))
    assert due.days_left == 0


def test_zero_budget_is_due_at_creation():
    due = calculate_maintenance_date("2024-01-01T00:00:00Z", 0, now=datetime(2024, 1, 1, tzinfo=UTC))
    assert due.date == "2024-01-01"
    assert due.days_left == 0


def test_fractional_budget_keeps_partial_days():
    # 36 hours lands at noon on the second day
    due = calculate_maintenance_date("2024-01-01T00:00:00Z", 36, now=datetime(2024, 1, 1, tzinfo=UTC))
    assert due.maintenance_date == datetime(2024, 1, 2, 12, tzinfo=UTC)
    assert due.days_left == 1


def test_larger_budget_never_reduces_days_left():
    now = datetime(2024, 2, 1, 7, 30, tzinfo=UTC)
    previous = -math.inf
    for budget in range(0, 2000, 7):
        days_left = calculate_maintenance_date("2024-01-01T00:00:00Z", budget, now=now).days_left
        assert days_left >= previous
        previous = days_left


@pytest.mark.parametrize(
    "raw",
    [
        "2024-01-01T00:00:00Z",
        "2024-01-01T00:00:00+00:00",
        "2024-01-01T02:00:00+02:00",
        datetime(2024, 1, 1),
        datetime(2024, 1, 1, tzinfo=UTC),
        date(2024, 1, 1),
        {"seconds": 1704067200, "nanoseconds": 0},
        {"_seconds": 1704067200, "_nanoseconds": 0},
        SimpleNamespace(seconds=1704067200, nanoseconds=0),
    ],
)
def test_parse_timestamp_accepts_stored_shapes(raw):
    assert parse_timestamp(raw) == datetime(2024, 1, 1, tzinfo=UTC)


def test_parse_timestamp_keeps_nanoseconds():
    parsed = parse_timestamp({"seconds": 1704067200, "nanoseconds": 500_000_000})
    assert parsed == datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=UTC)


@pytest.mark.parametrize("raw", ["not a date", "", None, 12345, {"nanos": 1}, ["2024-01-01"]])
def test_unreadable_created_at_is_rejected(raw):
    with pytest.raises(InvalidInputError) as exc:
        calculate_maintenance_date(raw, 100)
    assert exc.value.field == "createdAt"


@pytest.mark.parametrize("budget", ["240", None, True, float("nan"), float("inf"), -1])
def test_bad_budget_is_rejected(budget):
    with pytest.raises(InvalidInputError) as exc:
        calculate_maintenance_date("2024-01-01T00:00:00Z", budget)
    assert exc.value.field == "operatingHours"


def test_budget_past_the_calendar_is_rejected():
    with pytest.raises(InvalidInputError) as exc:
        calculate_maintenance_date("2024-01-01T00:00:00Z", 1e12)
    assert exc.value.field == "operatingHours"


def test_due_date_past_year_9999_is_rejected():
    with pytest.raises(InvalidInputError) as exc:
        calculate_maintenance_date("9999-12-31T00:00:00Z", 48)
    assert exc.value.field == "operatingHours"


def test_repeated_calls_agree():
    now = datetime(2024, 1, 5, tzinfo=UTC)
    first = calculate_maintenance_date("2024-01-01T00:00:00Z", 240, now=now)
    assert calculate_maintenance_date("2024-01-01T00:00:00Z", 240, now=now) == first
    assert calculate_remaining_units(500, 120) == calculate_remaining_units(500, 120)


def test_invalid_input_error_is_a_value_error():
    with pytest.raises(ValueError):
        calculate_remaining_units("500", 10)


def test_total_usage_accepts_models_and_raw_dicts():
    records = [
        {"date": "2024-01-01", "hours_worked": 4},
        {"date": "2024-01-02", "hoursWorked": 6.5},
        SimpleNamespace(date="2024-01-03", hours_worked=1.5),
    ]
    assert total_usage(records) == 12
    assert total_usage([]) == 0


def test_unit_labels():
    assert unit_label("hr") == "Hours"
    assert unit_label("KM") == "Kilometers"
    assert unit_label("dav") == "Dav"
    assert unit_label(None) == "Hours"
    assert unit_label("unknown") == "Hours"


def test_format_hours():
    assert format_hours(48, "hr") == "2 days"
    assert format_hours(12.5, "hr") == "12.50 hr"
    assert format_hours(300, "km") == "300.00 km"
