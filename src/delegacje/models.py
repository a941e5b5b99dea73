from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError

from delegacje.core import to_decimal
from delegacje.errors import SnapshotError

HotelStatus = Literal["no_hotel", "within_limit", "over_limit"]
DuplicateConfidence = Literal["exact", "high", "medium", "low"]
SuggestedAction = Literal["merge", "review", "add_new"]


class DietMode(str, Enum):
    LIVE = "LIVE"
    PLANNED = "PLANNED"
    CLOSED = "CLOSED"


class TripStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class Category(str, Enum):
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    HOTEL = "HOTEL"
    PARKING = "PARKING"
    FUEL = "FUEL"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        """Map a stored category onto the enum; unknown values count as OTHER."""
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.OTHER


class ContractType(str, Enum):
    EMPLOYMENT = "EMPLOYMENT"
    CIVIL_CONTRACT = "CIVIL_CONTRACT"
    B2B = "B2B"
    OTHER = "OTHER"


@dataclass(frozen=True)
class TripPeriod:
    start_datetime: datetime
    planned_end_datetime: Optional[datetime] = None
    actual_end_datetime: Optional[datetime] = None
    mode: DietMode = DietMode.PLANNED


@dataclass(frozen=True)
class DietRate:
    """Daily diet rate frozen from the country table when the trip is created."""

    daily_rate: Decimal
    currency: str
    breakfast_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "daily_rate", to_decimal(self.daily_rate))
        if self.daily_rate < 0:
            raise ValueError("daily_rate must not be negative")
        if self.breakfast_count < 0:
            raise ValueError("breakfast_count must not be negative")


@dataclass(frozen=True)
class DietDayItem:
    day: int
    date: date
    hours: Decimal
    multiplier: Fraction
    amount: Decimal


@dataclass(frozen=True)
class DietResult:
    full_days: int
    partial_hours: Decimal
    partial_day_multiplier: Fraction
    total_days: Decimal
    diet_before_breakfast: Decimal
    breakfast_deduction: Decimal
    total_diet: Decimal
    currency: str
    end_datetime: datetime
    is_live: bool
    calculation_steps: Sequence[str] = field(default_factory=tuple)
    detailed_breakdown: Sequence[DietDayItem] = field(default_factory=tuple)

    @property
    def breakdown(self) -> str:
        return "\n".join(self.calculation_steps)


@dataclass(frozen=True)
class Transaction:
    amount: Decimal
    category: Category = Category.OTHER
    is_private: bool = False
    excluded_from_project: bool = False
    transaction_id: Optional[str] = None
    booked_on: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "category", Category.parse(self.category))

    @property
    def is_valid(self) -> bool:
        return not self.is_private and not self.excluded_from_project


@dataclass(frozen=True)
class Advance:
    amount: Decimal
    advance_id: Optional[str] = None
    paid_on: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class TripContext:
    """Frozen trip data the balance is computed from."""

    period: TripPeriod
    diet_rate: DietRate
    hotel_limit: Decimal
    status: TripStatus = TripStatus.DRAFT

    def __post_init__(self) -> None:
        object.__setattr__(self, "hotel_limit", to_decimal(self.hotel_limit))
        object.__setattr__(self, "status", TripStatus(self.status))


@dataclass(frozen=True)
class ProjectBalance:
    advances_total: Decimal
    expenses_total: Decimal
    category_totals: Mapping[Category, Decimal]
    hotel_combined: Decimal
    hotel_limit: Decimal
    hotel_status: HotelStatus
    hotel_overage: Decimal
    diet: DietResult
    balance: Decimal
    balance_description: str
    average_daily_expense: Decimal
    transaction_count: int
    currency: str

    @property
    def company_owes_traveller(self) -> bool:
        return self.balance > 0

    @property
    def traveller_owes_company(self) -> bool:
        return self.balance < 0


class TaxRates(BaseModel):
    """Statutory rates captured with a salary calculation.

    Stored verbatim next to the result so a closed trip always reproduces
    the figures it was closed with.
    """

    model_config = ConfigDict(frozen=True)

    pension_rate: Decimal
    disability_rate: Decimal
    sickness_rate: Decimal
    health_insurance_rate: Decimal
    income_tax_rate: Decimal
    tax_free_monthly: Decimal
    cost_of_income_rate: Decimal
    max_cost_of_income: Decimal

    def to_snapshot(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_snapshot(cls, blob: "str | bytes") -> "TaxRates":
        try:
            return cls.model_validate_json(blob)
        except ValidationError as exc:
            raise SnapshotError(f"Invalid tax rate snapshot: {exc}") from exc


@dataclass(frozen=True)
class SalaryInput:
    brutto: Decimal
    contract_type: ContractType = ContractType.CIVIL_CONTRACT
    voluntary_social_security: bool = False
    ppk_enabled: bool = False
    ppk_percentage: Decimal = Decimal("2")
    tax_rates: Optional[TaxRates] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "brutto", to_decimal(self.brutto))
        object.__setattr__(self, "ppk_percentage", to_decimal(self.ppk_percentage))
        object.__setattr__(self, "contract_type", ContractType(self.contract_type))
        if self.brutto < 0:
            raise ValueError("brutto must not be negative")


@dataclass(frozen=True)
class SalaryResult:
    brutto: Decimal
    netto: Decimal
    contract_type: ContractType
    pension_contribution: Decimal
    disability_contribution: Decimal
    sickness_contribution: Decimal
    total_social_security: Decimal
    health_insurance_base: Decimal
    health_insurance: Decimal
    income_base: Decimal
    cost_of_income: Decimal
    tax_base: Decimal
    tax_before_deduction: Decimal
    tax_free_deduction: Decimal
    income_tax: Decimal
    ppk_employee: Decimal
    tax_rates: TaxRates
    description: str = ""

    @property
    def breakdown(self) -> dict[str, Decimal]:
        return {
            "brutto": self.brutto,
            "pension_contribution": self.pension_contribution,
            "disability_contribution": self.disability_contribution,
            "sickness_contribution": self.sickness_contribution,
            "total_social_security": self.total_social_security,
            "health_insurance_base": self.health_insurance_base,
            "health_insurance": self.health_insurance,
            "income_base": self.income_base,
            "cost_of_income": self.cost_of_income,
            "tax_base": self.tax_base,
            "tax_before_deduction": self.tax_before_deduction,
            "tax_free_deduction": self.tax_free_deduction,
            "income_tax": self.income_tax,
            "ppk_employee": self.ppk_employee,
            "netto": self.netto,
        }


@dataclass(frozen=True)
class DocumentFingerprint:
    invoice_number: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[date] = None
    vendor_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount is not None:
            object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class ExistingDocument:
    id: str
    original_filename: str = ""
    fingerprint: Optional[str] = None
    invoice_number: Optional[str] = None
    detected_amount: Optional[Decimal] = None
    detected_date: Optional[date] = None
    vendor_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.detected_amount is not None:
            object.__setattr__(self, "detected_amount", to_decimal(self.detected_amount))


@dataclass(frozen=True)
class DuplicateMatch:
    id: str
    original_filename: str
    similarity: float
    confidence: DuplicateConfidence
    match_reason: str
    invoice_number: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[date] = None
    vendor_name: Optional[str] = None


@dataclass(frozen=True)
class DuplicateCheckResult:
    is_duplicate: bool
    confidence: Optional[DuplicateConfidence]
    matched_documents: Sequence[DuplicateMatch]
    suggested_action: SuggestedAction
