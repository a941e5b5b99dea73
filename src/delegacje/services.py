from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from delegacje.balance import ProjectBalanceCalculator
from delegacje.config import Settings, get_settings
from delegacje.countries import Country, get_country, load_countries
from delegacje.diet import RULE_VERSION
from delegacje.errors import SnapshotError, UnsupportedContractTypeError
from delegacje.log import calculation_context
from delegacje.models import (
    Advance,
    ContractType,
    DietRate,
    ProjectBalance,
    SalaryInput,
    SalaryResult,
    TaxRates,
    Transaction,
    TripContext,
    TripPeriod,
    TripStatus,
)
from delegacje.salary import CURRENT_TAX_RATES, SalaryNetCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripRecord:
    """A trip with every rate it depends on captured by value."""

    name: str
    country_code: str
    country_name: str
    context: TripContext
    tax_rates: TaxRates
    rule_version: str = RULE_VERSION
    salary_input: Optional[SalaryInput] = None
    salary_result: Optional[SalaryResult] = None
    salary_requires_manual_accounting: bool = False

    @property
    def is_closed(self) -> bool:
        return self.context.status is TripStatus.CLOSED

    @property
    def tax_snapshot(self) -> str:
        return self.tax_rates.to_snapshot()


class TripSetupService:
    """Creates and closes trips, freezing country and tax rates at those events."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        countries: Optional[Mapping[str, Country]] = None,
        tax_rates: Optional[TaxRates] = None,
        salary_calculator: Optional[SalaryNetCalculator] = None,
        balance_calculator: Optional[ProjectBalanceCalculator] = None,
    ):
        self.settings = settings or get_settings()
        if countries is None and self.settings.countries_file is not None:
            countries = load_countries(self.settings.countries_file)
        self.countries = countries
        self.tax_rates = tax_rates or CURRENT_TAX_RATES
        self.salary = salary_calculator or SalaryNetCalculator()
        self.balances = balance_calculator or ProjectBalanceCalculator()

    def create_trip(
        self,
        name: str,
        start_datetime: datetime,
        planned_end_datetime: Optional[datetime] = None,
        country_code: Optional[str] = None,
        breakfast_count: int = 0,
        brutto: Optional[Decimal] = None,
        contract_type: ContractType = ContractType.CIVIL_CONTRACT,
        voluntary_social_security: bool = False,
        ppk_enabled: bool = False,
        ppk_percentage: Optional[Decimal] = None,
        status: TripStatus = TripStatus.ACTIVE,
    ) -> TripRecord:
        country = get_country(country_code or self.settings.default_country_code, self.countries)
        context = TripContext(
            period=TripPeriod(start_datetime=start_datetime, planned_end_datetime=planned_end_datetime),
            diet_rate=DietRate(
                daily_rate=country.daily_rate,
                currency=country.currency,
                breakfast_count=breakfast_count,
            ),
            hotel_limit=country.accommodation_limit,
            status=status,
        )
        trip = TripRecord(
            name=name,
            country_code=country.code,
            country_name=country.name,
            context=context,
            tax_rates=self.tax_rates,
        )
        if brutto is not None:
            salary_input = SalaryInput(
                brutto=brutto,
                contract_type=contract_type,
                voluntary_social_security=voluntary_social_security,
                ppk_enabled=ppk_enabled,
                ppk_percentage=(
                    ppk_percentage if ppk_percentage is not None else self.settings.default_ppk_percentage
                ),
                tax_rates=trip.tax_rates,
            )
            trip = self._with_salary(trip, salary_input)

        logger.info("trip created: country=%s status=%s", trip.country_code, context.status.value)
        return trip

    def update_breakfast_count(self, trip: TripRecord, breakfast_count: int) -> TripRecord:
        if trip.is_closed:
            raise SnapshotError("Breakfast count cannot change after the trip is closed")
        diet_rate = replace(trip.context.diet_rate, breakfast_count=breakfast_count)
        return replace(trip, context=replace(trip.context, diet_rate=diet_rate))

    def close_trip(self, trip: TripRecord, actual_end_datetime: datetime) -> TripRecord:
        """Close the trip; the salary is recomputed with the trip's own rate snapshot."""
        if trip.is_closed:
            raise SnapshotError("Trip is already closed")

        period = replace(trip.context.period, actual_end_datetime=actual_end_datetime)
        closed = replace(
            trip,
            context=replace(trip.context, period=period, status=TripStatus.CLOSED),
        )
        if trip.salary_input is not None:
            closed = self._with_salary(closed, replace(trip.salary_input, tax_rates=trip.tax_rates))

        logger.info("trip closed: country=%s", closed.country_code)
        return closed

    def calculate_balance(
        self,
        trip: TripRecord,
        transactions: Iterable[Transaction],
        advances: Iterable[Advance],
        now: Optional[datetime] = None,
    ) -> ProjectBalance:
        return self.balances.calculate(trip.context, transactions, advances, now=now)

    def _with_salary(self, trip: TripRecord, salary_input: SalaryInput) -> TripRecord:
        with calculation_context():
            try:
                result = self.salary.calculate(salary_input)
            except UnsupportedContractTypeError as exc:
                logger.warning("salary needs manual accounting: %s", exc.contract_type)
                result = None
        if result is None:
            return replace(
                trip,
                salary_input=salary_input,
                salary_result=None,
                salary_requires_manual_accounting=True,
            )
        return replace(
            trip,
            salary_input=salary_input,
            salary_result=result,
            salary_requires_manual_accounting=False,
        )
