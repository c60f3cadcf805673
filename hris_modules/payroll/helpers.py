"""
Payroll Helpers (``hris_modules.payroll.helpers``).

Responsibility
--------------
Pure aggregation of a company roster into a period's payroll: run the
per-employee calculator over every active employee, build line items and
sum period totals.  This is the single logical computation call; the
service wraps it with state checks and persistence.

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no
clock, no database access.  Called by ``PayrollService`` or from tests.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal`` -- NEVER ``float``.
* The rate table is validated once before any employee is computed, so a
  bad table never yields a partial result.
* The recorded rate checksum is always recomputed from the table content.
* Line item IDs are derived from (period, employee), so identical inputs
  produce identical computations.
* Totals are rounded to the currency's smallest display unit.

Failure modes
-------------
* Invalid rate table  -> ``InvalidRateTableError``.
* Invalid salary / overtime / other deduction  -> ``InvalidAmountError``.
* Deductions above gross  -> ``DeductionsExceedGrossError``.
* Same employee twice in the roster  -> ``ValidationError``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Sequence
from uuid import UUID, uuid5

from hris_config.loader import with_checksum
from hris_config.schema import StatutoryRates
from hris_config.validator import ensure_valid
from hris_engines.overtime import OvertimeEntry
from hris_engines.payroll import PayrollCalculation, PayrollCalculator
from hris_kernel.db.types import round_currency
from hris_kernel.exceptions import InvalidPayrollConfigError, ValidationError
from hris_kernel.logging_config import get_logger
from hris_modules.payroll.config import PayrollConfig
from hris_modules.payroll.models import (
    Employee,
    InsuranceDeduction,
    PayrollComputation,
    PayrollLineItem,
    PeriodTotals,
)

logger = get_logger("modules.payroll.helpers")

_ZERO = Decimal("0")


def line_item_id(period_id: UUID, employee_id: UUID) -> UUID:
    """Deterministic line item ID for an employee within a period."""
    return uuid5(period_id, str(employee_id))


def build_line_item(
    period_id: UUID,
    employee: Employee,
    calculation: PayrollCalculation,
) -> PayrollLineItem:
    """Convert an engine result into a ``PayrollLineItem`` DTO."""
    return PayrollLineItem(
        id=line_item_id(period_id, employee.id),
        period_id=period_id,
        employee_id=employee.id,
        employee_number=employee.employee_number,
        employee_name=employee.full_name,
        department=employee.department,
        currency=calculation.currency,
        base_salary=calculation.base_salary,
        allowances=calculation.allowances,
        overtime=calculation.overtime,
        gross_salary=calculation.gross_salary,
        income_tax=calculation.income_tax,
        other_deductions=calculation.other_deductions,
        total_deductions=calculation.total_deductions,
        net_salary=calculation.net_salary,
        tax_status=calculation.tax_status,
        insurance=tuple(
            InsuranceDeduction(
                scheme_code=c.scheme_code,
                scheme_name=c.scheme_name,
                salary_base=c.salary_base,
                employee_rate=c.employee_rate,
                employer_rate=c.employer_rate,
                employee_amount=c.employee_amount,
                employer_amount=c.employer_amount,
            )
            for c in calculation.insurance
        ),
    )


def summarize_line_items(
    line_items: Iterable[PayrollLineItem],
    currency: str = "IDR",
) -> PeriodTotals:
    """
    Sum line items into period totals.

    Postconditions:
        - Each total is rounded (half up) to the currency's display unit.
        - ``total_gross - total_deductions == total_net`` whenever the line
          items themselves satisfy gross - deductions == net.
    """
    count = 0
    gross = deductions = net = _ZERO
    employee_insurance = employer_insurance = income_tax = _ZERO

    for item in line_items:
        count += 1
        gross += item.gross_salary
        deductions += item.total_deductions
        net += item.net_salary
        employee_insurance += item.employee_insurance_total
        employer_insurance += item.employer_insurance_total
        income_tax += item.income_tax

    return PeriodTotals(
        employee_count=count,
        total_gross=round_currency(gross, currency),
        total_deductions=round_currency(deductions, currency),
        total_net=round_currency(net, currency),
        total_employee_insurance=round_currency(employee_insurance, currency),
        total_employer_insurance=round_currency(employer_insurance, currency),
        total_income_tax=round_currency(income_tax, currency),
    )


def refresh_checksum(rates: StatutoryRates) -> StatutoryRates:
    """
    Return ``rates`` with a checksum computed from its current content.

    A table derived from a loaded one (``dataclasses.replace``) still carries
    the original checksum; recording that checksum would make the persisted
    snapshot unreadable.
    """
    refreshed = with_checksum(rates)
    if rates.checksum and rates.checksum != refreshed.checksum:
        logger.warning(
            "rate_table_checksum_refreshed",
            extra={
                "rates_version": rates.version,
                "supplied_checksum": rates.checksum,
                "content_checksum": refreshed.checksum,
            },
        )
    return refreshed


def resolve_overtime(
    employee: Employee,
    config: PayrollConfig,
    overtime: Mapping[UUID, Decimal] | None,
    overtime_entries: Mapping[UUID, Sequence[OvertimeEntry]] | None,
) -> Decimal:
    """
    Overtime amount for one employee.

    ``overtime`` carries amounts computed elsewhere; ``overtime_entries``
    carries recorded hours that the configured overtime policy prices.
    Supplying both for the same employee is rejected.
    """
    amount = (overtime or {}).get(employee.id)
    entries = (overtime_entries or {}).get(employee.id)

    if amount is not None and entries:
        raise ValidationError(
            f"Overtime for employee {employee.employee_number} supplied both "
            f"as an amount and as entries"
        )
    if entries:
        policy = config.build_overtime_policy()
        return policy.calculate(Decimal(employee.base_salary), entries, config.currency)
    return amount if amount is not None else _ZERO


def compute_payroll(
    employees: Sequence[Employee],
    rates: StatutoryRates,
    period_id: UUID,
    *,
    config: PayrollConfig | None = None,
    overtime: Mapping[UUID, Decimal] | None = None,
    overtime_entries: Mapping[UUID, Sequence[OvertimeEntry]] | None = None,
    other_deductions: Mapping[UUID, Decimal] | None = None,
    calculator: PayrollCalculator | None = None,
) -> PayrollComputation:
    """
    Compute one period's payroll for a roster.

    Employees not in ACTIVE status are skipped and reported in
    ``skipped_employee_ids``.

    Preconditions:
        - ``rates`` is the table in force for the period.
    Postconditions:
        - One line item per active employee, in roster order.
        - ``totals`` equals ``summarize_line_items(line_items)``.

    Raises:
        InvalidRateTableError, InvalidPayrollConfigError, InvalidAmountError,
        DeductionsExceedGrossError, ValidationError.
    """
    config = config or PayrollConfig.with_defaults()
    ensure_valid(rates)
    if rates.currency != config.currency:
        raise InvalidPayrollConfigError(
            "currency",
            f"rate table {rates.version} is in {rates.currency}, "
            f"payroll is configured for {config.currency}",
        )
    rates = refresh_checksum(rates)
    calculator = calculator or PayrollCalculator()

    line_items: list[PayrollLineItem] = []
    skipped: list[UUID] = []
    seen: set[UUID] = set()

    for employee in employees:
        if employee.id in seen:
            raise ValidationError(
                f"Employee {employee.employee_number} appears twice in the roster"
            )
        seen.add(employee.id)

        if not employee.is_active:
            skipped.append(employee.id)
            logger.info(
                "payroll_employee_skipped",
                extra={
                    "employee_id": str(employee.id),
                    "employee_number": employee.employee_number,
                    "employment_status": employee.status.value,
                },
            )
            continue

        calculation = calculator.calculate(
            base_salary=employee.base_salary,
            rates=rates,
            allowance_ratio=config.allowance_ratio,
            overtime=resolve_overtime(employee, config, overtime, overtime_entries),
            other_deductions=(other_deductions or {}).get(employee.id, _ZERO),
            tax_status=employee.tax_status,
            risk_level=config.work_risk_level,
        )
        item = build_line_item(period_id, employee, calculation)
        line_items.append(item)

        logger.debug(
            "payroll_line_computed",
            extra={
                "employee_id": str(employee.id),
                "gross_salary": str(item.gross_salary),
                "total_deductions": str(item.total_deductions),
                "net_salary": str(item.net_salary),
            },
        )

    totals = summarize_line_items(line_items, config.currency)

    logger.info(
        "payroll_computation_completed",
        extra={
            "period_id": str(period_id),
            "rates_version": rates.version,
            "employee_count": totals.employee_count,
            "skipped_count": len(skipped),
            "total_gross": str(totals.total_gross),
            "total_net": str(totals.total_net),
        },
    )

    return PayrollComputation(
        period_id=period_id,
        line_items=tuple(line_items),
        totals=totals,
        rates_version=rates.version,
        rates_checksum=rates.checksum,
        skipped_employee_ids=tuple(skipped),
    )
