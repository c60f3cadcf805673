"""
Payroll Engine - per-employee gross-to-net calculation.

Pure, deterministic computation of one employee's payroll for one period.
Rates are supplied as a parameter (``StatutoryRates``); nothing is read from
global state, so historical periods can be recomputed with the rates that
were in force at the time.

Algorithm:
    1. allowances        = base * allowance ratio
    2. overtime          = supplied amount (0 when not computed)
    3. gross             = base + allowances + overtime
    4. insurance[s]      = min(gross, cap[s]) * employee_rate[s]   per scheme
    5. income tax        = progressive brackets on gross - threshold, where
                           the threshold is the employee's tax-status relief
                           (the table default when no status is given)
    6. total deductions  = sum(insurance) + income tax + other deductions
    7. net               = gross - total deductions

Every component is rounded half-up to the currency's smallest display unit
before it is summed, so totals equal the sum of their itemised parts exactly.

Usage:
    from hris_engines.payroll import PayrollCalculator

    calc = PayrollCalculator().calculate(base_salary=Decimal("10000000"), rates=rates)
    calc.net_salary
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from hris_config.schema import StatutoryRates
from hris_config.validator import ensure_valid
from hris_engines.amounts import coerce_amount
from hris_engines.insurance import (
    DEFAULT_RISK_LEVEL,
    InsuranceContribution,
    calculate_contributions,
)
from hris_engines.tax import TaxResult, calculate_progressive_tax
from hris_engines.tracer import traced_engine
from hris_kernel.db.types import round_currency
from hris_kernel.exceptions import (
    DeductionsExceedGrossError,
    InvalidPayrollConfigError,
    UnknownTaxStatusError,
)
from hris_kernel.logging_config import get_logger

logger = get_logger("engines.payroll")

DEFAULT_ALLOWANCE_RATIO = Decimal("0.10")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class PayrollCalculation:
    """
    Gross-to-net result for one employee and period.

    Immutable value object; equal inputs always produce equal instances.
    """

    currency: str
    base_salary: Decimal
    allowances: Decimal
    overtime: Decimal
    gross_salary: Decimal
    insurance: tuple[InsuranceContribution, ...]
    income_tax: Decimal
    tax_detail: TaxResult
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    rates_version: str
    tax_status: str | None = None

    @property
    def employee_insurance_total(self) -> Decimal:
        return sum((c.employee_amount for c in self.insurance), _ZERO)

    @property
    def employer_insurance_total(self) -> Decimal:
        return sum((c.employer_amount for c in self.insurance), _ZERO)

    @property
    def total_employer_cost(self) -> Decimal:
        """Gross salary plus employer-paid contributions."""
        return self.gross_salary + self.employer_insurance_total

    def deduction_items(self) -> dict[str, Decimal]:
        """Itemised employee-side deductions keyed by component code."""
        items = {c.scheme_code: c.employee_amount for c in self.insurance}
        items["INCOME_TAX"] = self.income_tax
        items["OTHER"] = self.other_deductions
        return items


class PayrollCalculator:
    """
    Calculate one employee's payroll line.

    Pure functions - no I/O, no database access.  Rates provided as
    parameters.
    """

    @traced_engine(
        "payroll",
        "1.0",
        fingerprint_fields=(
            "base_salary",
            "allowance_ratio",
            "overtime",
            "other_deductions",
            "tax_status",
            "risk_level",
        ),
    )
    def calculate(
        self,
        base_salary: Any,
        rates: StatutoryRates,
        allowance_ratio: Decimal = DEFAULT_ALLOWANCE_RATIO,
        overtime: Any = _ZERO,
        other_deductions: Any = _ZERO,
        tax_status: str | None = None,
        risk_level: int = DEFAULT_RISK_LEVEL,
    ) -> PayrollCalculation:
        """
        Compute gross, deductions and net for one employee.

        Args:
            base_salary: Monthly base salary (non-negative, whole currency units).
            rates: Statutory rate table in force for the period.
            allowance_ratio: Fixed allowance as a fraction of base salary.
            overtime: Overtime amount computed by an overtime policy.
            other_deductions: Non-statutory deductions (loans, etc.).
            tax_status: Personal tax status (``TK/0`` .. ``K/3``) selecting
                the non-taxable threshold; ``None`` uses the table default.
            risk_level: Work-accident risk level for schemes with risk rates.

        Returns:
            PayrollCalculation

        Raises:
            InvalidAmountError: negative, NaN, infinite or non-numeric input.
            UnknownTaxStatusError: ``tax_status`` is not in the rate table.
            DeductionsExceedGrossError: deductions would make net negative.
            InvalidRateTableError: missing or inconsistent rate table.
            InvalidPayrollConfigError: allowance ratio out of range, or no
                employer rate for ``risk_level``.
        """
        ensure_valid(rates)
        currency = rates.currency

        base = coerce_amount(base_salary, "base_salary", currency)
        overtime_amount = coerce_amount(overtime, "overtime", currency)
        other = coerce_amount(other_deductions, "other_deductions", currency)
        ratio = _check_allowance_ratio(allowance_ratio)
        threshold = rates.threshold_for(tax_status)
        if threshold is None:
            raise UnknownTaxStatusError(tax_status, rates.version)

        allowances = round_currency(base * ratio, currency)
        gross = base + allowances + overtime_amount

        contributions = calculate_contributions(
            gross, rates.insurance_schemes, currency, risk_level,
        )
        tax = calculate_progressive_tax(gross, rates.tax_brackets, threshold, currency)

        insurance_total = sum((c.employee_amount for c in contributions), _ZERO)
        total_deductions = insurance_total + tax.tax + other
        net = gross - total_deductions

        if net < _ZERO:
            logger.warning(
                "payroll_deductions_exceed_gross",
                extra={
                    "gross_salary": str(gross),
                    "total_deductions": str(total_deductions),
                    "other_deductions": str(other),
                },
            )
            raise DeductionsExceedGrossError(str(gross), str(total_deductions))

        return PayrollCalculation(
            currency=currency,
            base_salary=base,
            allowances=allowances,
            overtime=overtime_amount,
            gross_salary=gross,
            insurance=contributions,
            income_tax=tax.tax,
            tax_detail=tax,
            other_deductions=other,
            total_deductions=total_deductions,
            net_salary=net,
            rates_version=rates.version,
            tax_status=tax_status,
        )


def _check_allowance_ratio(ratio: Any) -> Decimal:
    if isinstance(ratio, bool) or not isinstance(ratio, (Decimal, int)):
        raise InvalidPayrollConfigError(
            "allowance_ratio", f"expected Decimal, got {type(ratio).__name__}"
        )
    ratio = Decimal(ratio)
    if not ratio.is_finite() or ratio < _ZERO:
        raise InvalidPayrollConfigError(
            "allowance_ratio", f"must be a non-negative finite fraction, got {ratio}"
        )
    return ratio


def calculate_payroll(
    base_salary: Any,
    rates: StatutoryRates,
    allowance_ratio: Decimal = DEFAULT_ALLOWANCE_RATIO,
    overtime: Any = _ZERO,
    other_deductions: Any = _ZERO,
    tax_status: str | None = None,
    risk_level: int = DEFAULT_RISK_LEVEL,
) -> PayrollCalculation:
    """Functional shorthand for ``PayrollCalculator().calculate(...)``."""
    return PayrollCalculator().calculate(
        base_salary=base_salary,
        rates=rates,
        allowance_ratio=allowance_ratio,
        overtime=overtime,
        other_deductions=other_deductions,
        tax_status=tax_status,
        risk_level=risk_level,
    )
