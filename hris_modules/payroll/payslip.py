"""
Payslip Builder (``hris_modules.payroll.payslip``).

Responsibility
--------------
Turns a persisted payroll line item into the payslip an employee receives:
earnings, deductions (BPJS itemised per scheme), net pay and the employer's
contributions, labelled in English or Indonesian.

Architecture position
---------------------
**Modules layer** -- pure transformation.  ZERO I/O.  ``PayrollService``
loads the period and line item and calls ``build_payslip``.

Invariants enforced
-------------------
* Earnings sum to the line's gross salary; deductions sum to its total
  deductions; ``net_pay`` is the line's net salary.  Zero components are
  left off the payslip.
* Amounts are copied from the line item, never recomputed.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from hris_kernel.exceptions import ValidationError
from hris_modules.payroll.models import InsuranceDeduction, PayrollLineItem, PayrollPeriod

_ZERO = Decimal("0")

LANGUAGES = ("en", "id")

_LABELS: dict[str, dict[str, str]] = {
    "BASIC": {"en": "Basic Salary", "id": "Gaji Pokok"},
    "ALLOW": {"en": "Allowances", "id": "Tunjangan"},
    "OT": {"en": "Overtime Pay", "id": "Lembur"},
    "BPJS": {"en": "Social Security", "id": "BPJS"},
    "PPH21": {"en": "Income Tax (PPh21)", "id": "Pajak Penghasilan (PPh21)"},
    "OTHER": {"en": "Other Deductions", "id": "Potongan Lainnya"},
}


@dataclasses.dataclass(frozen=True)
class PayslipLine:
    """One labelled amount; ``breakdown`` itemises a grouped deduction."""

    code: str
    label: str
    amount: Decimal
    breakdown: tuple[PayslipLine, ...] = ()


@dataclasses.dataclass(frozen=True)
class Payslip:
    """An employee's payslip for one period."""

    language: str
    period_id: UUID
    period_name: str
    payment_date: date | None
    employee_id: UUID
    employee_number: str
    employee_name: str
    department: str | None
    tax_status: str | None
    currency: str
    earnings: tuple[PayslipLine, ...]
    total_earnings: Decimal
    deductions: tuple[PayslipLine, ...]
    total_deductions: Decimal
    net_pay: Decimal
    employer_contributions: tuple[PayslipLine, ...]
    total_employer_contributions: Decimal
    total_employer_cost: Decimal


def format_rate(rate: Decimal) -> str:
    """``Decimal("0.0624")`` -> ``"6.24%"``."""
    return f"{format((rate * 100).normalize(), 'f')}%"


def _label(code: str, language: str) -> str:
    return _LABELS[code][language]


def _scheme_line(deduction: InsuranceDeduction, rate: Decimal, amount: Decimal) -> PayslipLine:
    return PayslipLine(
        code=deduction.scheme_code,
        label=f"{deduction.scheme_name} ({format_rate(rate)})",
        amount=amount,
    )


def build_earnings(line: PayrollLineItem, language: str) -> tuple[PayslipLine, ...]:
    earnings = [PayslipLine("BASIC", _label("BASIC", language), line.base_salary)]
    if line.allowances > _ZERO:
        earnings.append(PayslipLine("ALLOW", _label("ALLOW", language), line.allowances))
    if line.overtime > _ZERO:
        earnings.append(PayslipLine("OT", _label("OT", language), line.overtime))
    return tuple(earnings)


def build_deductions(line: PayrollLineItem, language: str) -> tuple[PayslipLine, ...]:
    deductions: list[PayslipLine] = []

    insurance = tuple(
        _scheme_line(d, d.employee_rate, d.employee_amount)
        for d in line.insurance
        if d.employee_amount > _ZERO
    )
    if insurance:
        deductions.append(
            PayslipLine(
                code="BPJS",
                label=_label("BPJS", language),
                amount=sum((i.amount for i in insurance), _ZERO),
                breakdown=insurance,
            )
        )
    if line.income_tax > _ZERO:
        deductions.append(PayslipLine("PPH21", _label("PPH21", language), line.income_tax))
    if line.other_deductions > _ZERO:
        deductions.append(
            PayslipLine("OTHER", _label("OTHER", language), line.other_deductions)
        )
    return tuple(deductions)


def build_employer_contributions(line: PayrollLineItem) -> tuple[PayslipLine, ...]:
    """Employer share per scheme; scheme names are proper nouns in both languages."""
    return tuple(
        _scheme_line(d, d.employer_rate, d.employer_amount)
        for d in line.insurance
        if d.employer_amount > _ZERO
    )


def build_payslip(
    period: PayrollPeriod,
    line: PayrollLineItem,
    language: str = "en",
) -> Payslip:
    """
    Build the payslip for ``line``.

    Raises:
        ValidationError: unknown ``language``, or ``line`` belongs to a
            different period.
    """
    if language not in LANGUAGES:
        raise ValidationError(
            f"Payslip language must be one of {list(LANGUAGES)}, got {language!r}"
        )
    if line.period_id != period.id:
        raise ValidationError(
            f"Line item {line.id} belongs to period {line.period_id}, not {period.id}"
        )

    employer = build_employer_contributions(line)
    return Payslip(
        language=language,
        period_id=period.id,
        period_name=period.period_name_id if language == "id" else period.period_name,
        payment_date=period.payment_date,
        employee_id=line.employee_id,
        employee_number=line.employee_number,
        employee_name=line.employee_name,
        department=line.department,
        tax_status=line.tax_status,
        currency=line.currency,
        earnings=build_earnings(line, language),
        total_earnings=line.gross_salary,
        deductions=build_deductions(line, language),
        total_deductions=line.total_deductions,
        net_pay=line.net_salary,
        employer_contributions=employer,
        total_employer_contributions=sum((c.amount for c in employer), _ZERO),
        total_employer_cost=line.total_employer_cost,
    )


def render_to_dict(obj: object) -> dict | list | str | int | bool | None:
    """
    Convert a payslip (or any part of one) to JSON-safe primitives.

    Decimal, UUID and date become strings; tuples become lists.
    """
    if obj is None:
        return None
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, bool)):
        return obj
    return str(obj)
