from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from delegacje.errors import MixedTimezoneError


CENT = Decimal("0.01")
ZERO = Decimal("0.00")
ONE_DAY = timedelta(days=1)
MICROSECONDS_PER_HOUR = Decimal(timedelta(hours=1) // timedelta(microseconds=1))


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def money(value: Any) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def whole_units(value: Any) -> Decimal:
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def hours_between(start: datetime, end: datetime) -> Decimal:
    return Decimal((end - start) // timedelta(microseconds=1)) / MICROSECONDS_PER_HOUR


def require_comparable(start: datetime, end: datetime) -> None:
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise MixedTimezoneError(start, end)


def now_like(reference: datetime) -> datetime:
    """Current time, aware or naive to match ``reference``."""
    return datetime.now(reference.tzinfo)


def as_instant(value: date) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time(), tzinfo=timezone.utc)


def calendar_date(value: date) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).date()
        return value.date()
    return value
