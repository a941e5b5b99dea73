from .balance import ProjectBalanceCalculator, calculate_project_balance
from .countries import Country, get_country, search_countries
from .diet import DietCalculator, calculate_diet
from .duplicates import DocumentDuplicateDetector, detect_duplicate_document, generate_document_fingerprint
from .errors import (
    DelegacjeError,
    MissingEndDatetimeError,
    MixedTimezoneError,
    SnapshotError,
    UnknownCountryError,
    UnsupportedContractTypeError,
)
from .log import calculation_context, configure_logging
from .models import (
    Advance,
    Category,
    ContractType,
    DietMode,
    DietRate,
    DietResult,
    DocumentFingerprint,
    DuplicateCheckResult,
    DuplicateMatch,
    ExistingDocument,
    ProjectBalance,
    SalaryInput,
    SalaryResult,
    TaxRates,
    Transaction,
    TripContext,
    TripPeriod,
    TripStatus,
)
from .salary import TAX_RATES_2024_2025, SalaryNetCalculator, calculate_salary_net
from .services import TripRecord, TripSetupService

__all__ = [
    "Advance",
    "Category",
    "ContractType",
    "Country",
    "DelegacjeError",
    "DietCalculator",
    "DietMode",
    "DietRate",
    "DietResult",
    "DocumentDuplicateDetector",
    "DocumentFingerprint",
    "DuplicateCheckResult",
    "DuplicateMatch",
    "ExistingDocument",
    "MissingEndDatetimeError",
    "MixedTimezoneError",
    "ProjectBalance",
    "ProjectBalanceCalculator",
    "SalaryInput",
    "SalaryNetCalculator",
    "SalaryResult",
    "SnapshotError",
    "TAX_RATES_2024_2025",
    "TaxRates",
    "Transaction",
    "TripContext",
    "TripPeriod",
    "TripRecord",
    "TripSetupService",
    "TripStatus",
    "UnknownCountryError",
    "UnsupportedContractTypeError",
    "calculate_diet",
    "calculate_project_balance",
    "calculate_salary_net",
    "calculation_context",
    "configure_logging",
    "detect_duplicate_document",
    "generate_document_fingerprint",
    "get_country",
    "search_countries",
]
