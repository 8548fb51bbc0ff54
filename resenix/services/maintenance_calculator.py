"""
Maintenance due-date and remaining-usage arithmetic.

All functions here are pure: they take already-fetched field values and
never touch the document store, so they can be called from any request
handler or report builder.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from numbers import Real
from typing import Any, Iterable, Mapping, Optional

from ..core.exceptions import InvalidInputError

ONE_DAY = timedelta(days=1)

UNIT_LABELS = {
    "hr": "Hours",
    "km": "Kilometers",
    "dav": "Dav",
}


@dataclass(frozen=True)
class MaintenanceDue:
    maintenance_date: datetime
    days_left: int

    @property
    def date(self) -> str:
        return self.maintenance_date.date().isoformat()

    @property
    def is_overdue(self) -> bool:
        return self.days_left < 0

    def to_dict(self) -> dict:
        return {"date": self.date, "days_left": self.days_left, "overdue": self.is_overdue}


@dataclass(frozen=True)
class RemainingUnits:
    hours_left: float

    @property
    def is_due(self) -> bool:
        return self.hours_left <= 0

    @property
    def is_overdue(self) -> bool:
        return self.hours_left < 0

    def to_dict(self) -> dict:
        return {"hours_left": self.hours_left, "due": self.is_due, "overdue": self.is_overdue}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_seconds(seconds: Any, nanoseconds: Any, field: str, raw: Any) -> datetime:
    try:
        seconds = float(seconds)
        nanoseconds = float(nanoseconds or 0)
        return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(microseconds=nanoseconds / 1000)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise InvalidInputError(field, raw) from e


def parse_timestamp(value: Any, field: str = "createdAt") -> datetime:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    Accepts datetimes and dates, ISO-8601 strings (a trailing 'Z' is fine),
    and the {seconds, nanoseconds} pair client SDKs serialize Firestore
    timestamps to. Anything else raises InvalidInputError naming `field`.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError(field, value)
        try:
            return _as_utc(datetime.fromisoformat(text.replace('Z', '+00:00')))
        except ValueError as e:
            raise InvalidInputError(field, value) from e
    if isinstance(value, Mapping):
        for seconds_key, nanos_key in (("seconds", "nanoseconds"), ("_seconds", "_nanoseconds")):
            if seconds_key in value:
                return _from_seconds(value[seconds_key], value.get(nanos_key), field, value)
        raise InvalidInputError(field, value)
    if hasattr(value, "seconds") and hasattr(value, "nanoseconds"):
        return _from_seconds(value.seconds, value.nanoseconds, field, value)
    raise InvalidInputError(field, value)


def _number(value: Any, field: str) -> float:
    # bool is an int subclass but never a meaningful budget
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(field, value)
    if not math.isfinite(value):
        raise InvalidInputError(field, value)
    return value


def calculate_maintenance_date(
    created_at: Any,
    operating_hours: Any,
    now: Optional[datetime] = None,
) -> MaintenanceDue:
    """
    Project the next maintenance date from the creation time and an hours
    budget, counting one day per 24 budgeted hours.

    `days_left` is floored, so it goes negative as soon as the date passes.
    """
    start = parse_timestamp(created_at, "createdAt")
    budget = _number(operating_hours, "operatingHours")
    if budget < 0:
        raise InvalidInputError("operatingHours", operating_hours, "operatingHours must be non-negative")

    try:
        maintenance_date = start + timedelta(hours=budget)
    except OverflowError as e:
        raise InvalidInputError("operatingHours", operating_hours, "operatingHours is beyond the supported date range") from e
    reference = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    days_left = math.floor((maintenance_date - reference) / ONE_DAY)
    return MaintenanceDue(maintenance_date=maintenance_date, days_left=days_left)


def calculate_remaining_units(operating_hours: Any, usage_total: Any) -> RemainingUnits:
    """Budget minus accumulated usage; zero means due, negative means overdue."""
    budget = _number(operating_hours, "operatingHours")
    used = _number(usage_total, "usageTotal")
    return RemainingUnits(hours_left=budget - used)


def total_usage(records: Iterable[Any]) -> float:
    """Sum hours worked over usage records (models or raw dicts)."""
    total = 0
    for record in records:
        if isinstance(record, Mapping):
            hours = record.get("hours_worked", record.get("hoursWorked"))
        else:
            hours = getattr(record, "hours_worked", None)
        total += _number(hours or 0, "hoursWorked")
    return total


def unit_label(asset_type: Optional[str]) -> str:
    return UNIT_LABELS.get((asset_type or "").lower(), "Hours")


def format_hours(hours: float, unit: Optional[str] = None) -> str:
    if unit == "hr" and hours >= 24:
        return f"{hours / 24:.0f} days"
    return f"{hours:.2f} {unit or 'hr'}"
