"""Per-diem (dieta) entitlement for Polish business trips.

Legal basis: regulation of the Minister of Family and Social Policy of
25 October 2022. Every started 24h period counts as a full day; the
remainder after the last full day is paid as 1/3 (under 8h), 1/2 (8h up to
12h) or a full rate (12h and more). Each provided breakfast removes 25% of
one day's rate.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import List, Optional, Tuple

from delegacje.core import ONE_DAY, ZERO, calendar_date, hours_between, money, now_like, require_comparable
from delegacje.errors import MissingEndDatetimeError
from delegacje.models import DietDayItem, DietMode, DietRate, DietResult, TripPeriod

logger = logging.getLogger(__name__)

RULE_VERSION = "PL_MRIPS_2022_10_25"

BREAKFAST_DEDUCTION_RATIO = Decimal("0.25")

ONE_THIRD = Fraction(1, 3)
ONE_HALF = Fraction(1, 2)
FULL = Fraction(1)
NONE = Fraction(0)


def partial_day_multiplier(remainder: timedelta) -> Fraction:
    """Multiplier for the hours left after the last full day."""
    if remainder < timedelta(hours=8):
        return ONE_THIRD
    if remainder < timedelta(hours=12):
        return ONE_HALF
    return FULL


def _scaled(amount: Decimal, fraction: Fraction) -> Decimal:
    return amount * Decimal(fraction.numerator) / Decimal(fraction.denominator)


def _one_decimal(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def _describe_multiplier(multiplier: Fraction) -> str:
    if multiplier == ONE_THIRD:
        return "< 8h, 1/3 of the daily rate"
    if multiplier == ONE_HALF:
        return "8h-12h, 1/2 of the daily rate"
    return ">= 12h, full daily rate"


class DietCalculator:
    """Computes the diet entitlement for a trip period.

    LIVE mode measures the trip up to the current wall-clock time, so its
    result is only valid for the instant of the call and must not be cached.
    Pass ``now`` to pin the clock.
    """

    rule_version = RULE_VERSION

    def calculate(
        self,
        period: TripPeriod,
        rate: DietRate,
        mode: Optional[DietMode] = None,
        now: Optional[datetime] = None,
    ) -> DietResult:
        mode = DietMode(mode or period.mode)
        end, is_live = self._resolve_end(period, mode, now)
        require_comparable(period.start_datetime, end)
        start = period.start_datetime
        currency = rate.currency

        if end <= start:
            logger.debug("diet: zero-duration period (mode=%s)", mode.value)
            return DietResult(
                full_days=0,
                partial_hours=Decimal("0.0"),
                partial_day_multiplier=NONE,
                total_days=Decimal("0.000"),
                diet_before_breakfast=ZERO,
                breakfast_deduction=ZERO,
                total_diet=ZERO,
                currency=currency,
                end_datetime=end,
                is_live=is_live,
                calculation_steps=("Trip has not started yet or has zero duration.",),
            )

        elapsed = end - start
        full_days = elapsed // ONE_DAY
        remainder = elapsed - full_days * ONE_DAY
        multiplier = partial_day_multiplier(remainder) if remainder > timedelta(0) else NONE

        total_days = full_days + multiplier
        daily_rate = rate.daily_rate
        gross = _scaled(daily_rate, total_days)
        deduction = min(rate.breakfast_count * daily_rate * BREAKFAST_DEDUCTION_RATIO, gross)
        total = max(ZERO, gross - deduction)

        partial_hours = _one_decimal(hours_between(start, start + remainder))
        rows = self._itemize(start, full_days, partial_hours, multiplier, daily_rate)

        result = DietResult(
            full_days=full_days,
            partial_hours=partial_hours,
            partial_day_multiplier=multiplier,
            total_days=_scaled(Decimal(1), total_days).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP),
            diet_before_breakfast=money(gross),
            breakfast_deduction=money(deduction),
            total_diet=money(total),
            currency=currency,
            end_datetime=end,
            is_live=is_live,
            calculation_steps=tuple(
                self._steps(full_days, partial_hours, multiplier, rate, money(deduction), money(total))
            ),
            detailed_breakdown=tuple(rows),
        )
        logger.debug(
            "diet: mode=%s full_days=%s multiplier=%s total=%s %s",
            mode.value,
            full_days,
            multiplier,
            result.total_diet,
            currency,
        )
        return result

    def _resolve_end(
        self, period: TripPeriod, mode: DietMode, now: Optional[datetime]
    ) -> Tuple[datetime, bool]:
        if mode is DietMode.LIVE:
            return (now or now_like(period.start_datetime)), True
        if mode is DietMode.PLANNED:
            if period.planned_end_datetime is None:
                raise MissingEndDatetimeError(mode.value, "planned_end_datetime")
            return period.planned_end_datetime, False
        if mode is DietMode.CLOSED:
            if period.actual_end_datetime is None:
                raise MissingEndDatetimeError(mode.value, "actual_end_datetime")
            return period.actual_end_datetime, False
        raise ValueError(f"Unsupported diet mode: {mode}")

    def _itemize(
        self,
        start: datetime,
        full_days: int,
        partial_hours: Decimal,
        multiplier: Fraction,
        daily_rate: Decimal,
    ) -> List[DietDayItem]:
        rows = [
            DietDayItem(
                day=day + 1,
                date=calendar_date(start + day * ONE_DAY),
                hours=Decimal("24"),
                multiplier=FULL,
                amount=money(daily_rate),
            )
            for day in range(full_days)
        ]
        if multiplier:
            rows.append(
                DietDayItem(
                    day=full_days + 1,
                    date=calendar_date(start + full_days * ONE_DAY),
                    hours=partial_hours,
                    multiplier=multiplier,
                    amount=money(_scaled(daily_rate, multiplier)),
                )
            )
        return rows

    def _steps(
        self,
        full_days: int,
        partial_hours: Decimal,
        multiplier: Fraction,
        rate: DietRate,
        deduction: Decimal,
        total: Decimal,
    ) -> List[str]:
        currency = rate.currency
        steps = [
            f"Applying rule version: {self.rule_version}",
            f"Full days: {full_days} x {money(rate.daily_rate)} {currency} = "
            f"{money(full_days * rate.daily_rate)} {currency}",
        ]
        if multiplier:
            steps.append(
                f"Partial day: {partial_hours}h ({_describe_multiplier(multiplier)}) = "
                f"{money(_scaled(rate.daily_rate, multiplier))} {currency}"
            )
        if rate.breakfast_count > 0:
            steps.append(f"Breakfast deduction: {rate.breakfast_count} x 25% = -{deduction} {currency}")
        steps.append(f"TOTAL: {total} {currency}")
        return steps


def calculate_diet(
    period: TripPeriod,
    rate: DietRate,
    mode: Optional[DietMode] = None,
    now: Optional[datetime] = None,
) -> DietResult:
    return DietCalculator().calculate(period, rate, mode=mode, now=now)


__all__ = [
    "RULE_VERSION",
    "BREAKFAST_DEDUCTION_RATIO",
    "DietCalculator",
    "calculate_diet",
    "partial_day_multiplier",
]
