"""Trip balance: advances - expenses + diet.

A positive balance means the company owes the traveller, a negative one
means the traveller has to return money.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from delegacje.core import ZERO, hours_between, money, now_like, require_comparable
from delegacje.diet import DietCalculator
from delegacje.models import (
    Advance,
    Category,
    DietMode,
    HotelStatus,
    ProjectBalance,
    Transaction,
    TripContext,
    TripStatus,
)

logger = logging.getLogger(__name__)

HOTEL_CATEGORIES = (Category.HOTEL, Category.PARKING)


def diet_mode_for(status: TripStatus, actual_end_datetime: Optional[datetime]) -> DietMode:
    if status is TripStatus.CLOSED and actual_end_datetime is not None:
        return DietMode.CLOSED
    if status is TripStatus.ACTIVE:
        return DietMode.LIVE
    return DietMode.PLANNED


def classify_hotel(hotel_combined: Decimal, hotel_limit: Decimal) -> Tuple[HotelStatus, Decimal]:
    if hotel_combined <= 0:
        return "no_hotel", ZERO
    if hotel_combined <= hotel_limit:
        return "within_limit", ZERO
    return "over_limit", money(hotel_combined - hotel_limit)


class ProjectBalanceCalculator:
    def __init__(self, diet_calculator: Optional[DietCalculator] = None) -> None:
        self.diet_calculator = diet_calculator or DietCalculator()

    def calculate(
        self,
        trip: TripContext,
        transactions: Iterable[Transaction],
        advances: Iterable[Advance],
        now: Optional[datetime] = None,
    ) -> ProjectBalance:
        transactions = list(transactions)
        valid = [t for t in transactions if t.is_valid]

        advances_total = money(sum((a.amount for a in advances), ZERO))

        category_totals: Dict[Category, Decimal] = {category: ZERO for category in Category}
        for transaction in valid:
            category = transaction.category
            category_totals[category] = money(category_totals[category] + transaction.amount)

        expenses_total = money(sum(category_totals.values(), ZERO))

        hotel_combined = money(sum((category_totals[c] for c in HOTEL_CATEGORIES), ZERO))
        hotel_limit = money(trip.hotel_limit)
        hotel_status, hotel_overage = classify_hotel(hotel_combined, hotel_limit)

        period = trip.period
        mode = diet_mode_for(trip.status, period.actual_end_datetime)
        diet = self.diet_calculator.calculate(period, trip.diet_rate, mode=mode, now=now)

        balance = money(advances_total - expenses_total + diet.total_diet)
        currency = trip.diet_rate.currency

        trip_hours = self._trip_hours(trip, now)
        trip_days = trip_hours / Decimal(24)
        average_daily_expense = money(expenses_total / trip_days) if trip_days > 0 else ZERO

        logger.debug(
            "balance: status=%s valid=%s/%s hotel=%s balance=%s %s",
            trip.status.value,
            len(valid),
            len(transactions),
            hotel_status,
            balance,
            currency,
        )

        return ProjectBalance(
            advances_total=advances_total,
            expenses_total=expenses_total,
            category_totals=category_totals,
            hotel_combined=hotel_combined,
            hotel_limit=hotel_limit,
            hotel_status=hotel_status,
            hotel_overage=hotel_overage,
            diet=diet,
            balance=balance,
            balance_description=describe_balance(
                balance, currency, advances_total, expenses_total, diet.total_diet
            ),
            average_daily_expense=average_daily_expense,
            transaction_count=len(valid),
            currency=currency,
        )

    def _trip_hours(self, trip: TripContext, now: Optional[datetime]) -> Decimal:
        period = trip.period
        current = now or now_like(period.start_datetime)
        if trip.status is TripStatus.CLOSED and period.actual_end_datetime is not None:
            end = period.actual_end_datetime
        elif period.planned_end_datetime is not None:
            end = current if trip.status is TripStatus.ACTIVE else period.planned_end_datetime
        else:
            end = current
        require_comparable(period.start_datetime, end)
        return max(ZERO, hours_between(period.start_datetime, end))


def describe_balance(
    balance: Decimal,
    currency: str,
    advances_total: Decimal,
    expenses_total: Decimal,
    diet_total: Decimal,
) -> str:
    sign = "+" if balance >= 0 else ""
    if balance > 0:
        direction = "Company owes the traveller"
    elif balance < 0:
        direction = "Traveller owes the company"
    else:
        direction = "Settled, nothing owed"

    lines: List[str] = [
        f"Advances: +{advances_total} {currency}",
        f"Expenses: -{expenses_total} {currency}",
        f"Diet: +{diet_total} {currency}",
        "-" * 20,
        f"BALANCE: {sign}{balance} {currency}",
        direction,
    ]
    return "\n".join(lines)


def calculate_project_balance(
    trip: TripContext,
    transactions: Iterable[Transaction],
    advances: Iterable[Advance],
    now: Optional[datetime] = None,
) -> ProjectBalance:
    return ProjectBalanceCalculator().calculate(trip, transactions, advances, now=now)


__all__ = [
    "ProjectBalanceCalculator",
    "calculate_project_balance",
    "classify_hotel",
    "describe_balance",
    "diet_mode_for",
]
