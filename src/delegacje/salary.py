"""Net salary from gross under Polish ZUS / NFZ / PIT rules.

Every line item is rounded to cents when it is computed, so the published
breakdown reconciles to the penny. The tax base is rounded to whole zloty
before the tax rate applies.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from delegacje.core import ZERO, money, whole_units
from delegacje.errors import UnsupportedContractTypeError
from delegacje.models import ContractType, SalaryInput, SalaryResult, TaxRates

logger = logging.getLogger(__name__)

# Snapshot of 2024/2025 rates for civil contracts (umowa zlecenie).
TAX_RATES_2024_2025 = TaxRates(
    pension_rate=Decimal("0.0976"),
    disability_rate=Decimal("0.015"),
    sickness_rate=Decimal("0.0245"),
    health_insurance_rate=Decimal("0.09"),
    income_tax_rate=Decimal("0.12"),
    tax_free_monthly=Decimal("300"),
    cost_of_income_rate=Decimal("0.20"),
    max_cost_of_income=Decimal("250"),
)

CURRENT_TAX_RATES = TAX_RATES_2024_2025

COMPUTABLE_CONTRACT_TYPES = frozenset({ContractType.EMPLOYMENT, ContractType.CIVIL_CONTRACT})


def is_computable(contract_type: "ContractType | str") -> bool:
    return ContractType(contract_type) in COMPUTABLE_CONTRACT_TYPES


def _percent(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"


class SalaryNetCalculator:
    def __init__(self, default_rates: Optional[TaxRates] = None) -> None:
        self.default_rates = default_rates or CURRENT_TAX_RATES

    def calculate(self, salary: SalaryInput) -> SalaryResult:
        """Return the full breakdown; B2B and OTHER contracts raise instead of guessing."""
        if not is_computable(salary.contract_type):
            raise UnsupportedContractTypeError(salary.contract_type.value)

        rates = salary.tax_rates or self.default_rates
        brutto = money(salary.brutto)

        pension = money(brutto * rates.pension_rate)
        disability = money(brutto * rates.disability_rate)
        sickness = money(brutto * rates.sickness_rate) if salary.voluntary_social_security else ZERO
        total_social_security = money(pension + disability + sickness)

        health_base = money(brutto - total_social_security)
        health = money(health_base * rates.health_insurance_rate)

        income_base = money(brutto - total_social_security)
        cost_of_income = min(money(income_base * rates.cost_of_income_rate), money(rates.max_cost_of_income))
        tax_base = whole_units(max(ZERO, income_base - cost_of_income))
        tax_before = money(tax_base * rates.income_tax_rate)
        tax_free = min(tax_before, money(rates.tax_free_monthly))
        income_tax = max(ZERO, money(tax_before - tax_free))

        ppk = money(brutto * salary.ppk_percentage / Decimal(100)) if salary.ppk_enabled else ZERO

        netto = money(brutto - total_social_security - health - income_tax - ppk)

        result = SalaryResult(
            brutto=brutto,
            netto=netto,
            contract_type=salary.contract_type,
            pension_contribution=pension,
            disability_contribution=disability,
            sickness_contribution=sickness,
            total_social_security=total_social_security,
            health_insurance_base=health_base,
            health_insurance=health,
            income_base=income_base,
            cost_of_income=cost_of_income,
            tax_base=tax_base,
            tax_before_deduction=tax_before,
            tax_free_deduction=tax_free,
            income_tax=income_tax,
            ppk_employee=ppk,
            tax_rates=rates,
        )
        # Salary amounts are never logged.
        logger.debug(
            "salary: contract=%s sickness=%s ppk=%s",
            salary.contract_type.value,
            salary.voluntary_social_security,
            salary.ppk_enabled,
        )
        return replace(result, description=describe_salary(result, salary))

    def recalculate(self, salary: SalaryInput, snapshot: str) -> SalaryResult:
        """Recompute against a stored rate snapshot instead of the current rates."""
        rates = TaxRates.from_snapshot(snapshot)
        return self.calculate(
            SalaryInput(
                brutto=salary.brutto,
                contract_type=salary.contract_type,
                voluntary_social_security=salary.voluntary_social_security,
                ppk_enabled=salary.ppk_enabled,
                ppk_percentage=salary.ppk_percentage,
                tax_rates=rates,
            )
        )


def describe_salary(result: SalaryResult, salary: SalaryInput) -> str:
    rates = result.tax_rates
    lines: List[str] = [
        f"Gross salary: {result.brutto} PLN",
        "",
        "SOCIAL SECURITY (ZUS):",
        f"  Pension ({_percent(rates.pension_rate)}): -{result.pension_contribution} PLN",
        f"  Disability ({_percent(rates.disability_rate)}): -{result.disability_contribution} PLN",
    ]
    if salary.voluntary_social_security:
        lines.append(f"  Sickness ({_percent(rates.sickness_rate)}): -{result.sickness_contribution} PLN")
    lines.extend(
        [
            f"  Total ZUS: -{result.total_social_security} PLN",
            "",
            "HEALTH INSURANCE (NFZ):",
            f"  Base: {result.health_insurance_base} PLN",
            f"  Contribution ({_percent(rates.health_insurance_rate)}): -{result.health_insurance} PLN",
            "",
            "INCOME TAX (PIT):",
            f"  Income base: {result.income_base} PLN",
            f"  Cost of income ({_percent(rates.cost_of_income_rate)}, max {money(rates.max_cost_of_income)}): "
            f"-{result.cost_of_income} PLN",
            f"  Tax base: {money(result.tax_base)} PLN",
            f"  Tax ({_percent(rates.income_tax_rate)}): {result.tax_before_deduction} PLN",
            f"  Tax-free allowance: -{result.tax_free_deduction} PLN",
            f"  Income tax due: -{result.income_tax} PLN",
        ]
    )
    if salary.ppk_enabled:
        lines.extend(["", f"PPK (employee, {_percent(salary.ppk_percentage / 100)}): -{result.ppk_employee} PLN"])
    lines.extend(["", f"NET SALARY: {result.netto} PLN"])
    return "\n".join(lines)


def calculate_salary_net(salary: SalaryInput) -> SalaryResult:
    return SalaryNetCalculator().calculate(salary)


__all__ = [
    "TAX_RATES_2024_2025",
    "CURRENT_TAX_RATES",
    "SalaryNetCalculator",
    "calculate_salary_net",
    "describe_salary",
    "is_computable",
]
