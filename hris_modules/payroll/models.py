"""
Payroll Domain Models (``hris_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of payroll:
employees, payroll periods, per-employee line items with their itemised
insurance deductions, and period totals.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``PayrollService`` and ``compute_payroll``; ORM rows convert to and from
these via ``to_dto()`` / ``from_dto()``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``PayrollPeriod`` rejects months outside 1-12, years outside 2000-2100
  and unordered start/end/payment dates.
* ``PayrollLineItem`` amounts are non-negative and ``net_salary <=
  gross_salary``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from hris_engines.amounts import coerce_amount
from hris_kernel.exceptions import InvalidAmountError, InvalidPeriodError, ValidationError
from hris_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")

_ZERO = Decimal("0")

MONTH_NAMES_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
MONTH_NAMES_ID = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

MIN_PERIOD_YEAR = 2000
MAX_PERIOD_YEAR = 2100


class EmploymentStatus(Enum):
    """Employment states; only ACTIVE employees are paid."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class PeriodStatus(Enum):
    """Payroll period lifecycle states."""
    DRAFT = "draft"
    PROCESSING = "processing"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


IMMUTABLE_PERIOD_STATUSES = frozenset({PeriodStatus.APPROVED, PeriodStatus.PAID})


@dataclass(frozen=True)
class Employee:
    """An employee as supplied by the roster."""
    id: UUID
    company_id: UUID
    employee_number: str
    full_name: str
    base_salary: Decimal
    department: str | None = None
    status: EmploymentStatus = EmploymentStatus.ACTIVE
    # PTKP status, e.g. "K/1"; None taxes against the rate table default
    tax_status: str | None = None

    def __post_init__(self):
        try:
            coerce_amount(self.base_salary, "base_salary")
        except InvalidAmountError:
            logger.warning(
                "employee_invalid_base_salary",
                extra={
                    "employee_id": str(self.id),
                    "employee_number": self.employee_number,
                    "base_salary": str(self.base_salary),
                },
            )
            raise

    @property
    def is_active(self) -> bool:
        return self.status == EmploymentStatus.ACTIVE


def validate_period_fields(
    month: int,
    year: int,
    start_date: date,
    end_date: date,
    payment_date: date | None,
) -> None:
    """
    Raise ``InvalidPeriodError`` unless the period attributes are coherent.

    Month 1-12, year 2000-2100, start <= end <= payment.
    """
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidPeriodError(f"month must be 1-12, got {month!r}")
    if (
        isinstance(year, bool)
        or not isinstance(year, int)
        or not MIN_PERIOD_YEAR <= year <= MAX_PERIOD_YEAR
    ):
        raise InvalidPeriodError(
            f"year must be {MIN_PERIOD_YEAR}-{MAX_PERIOD_YEAR}, got {year!r}"
        )
    if end_date < start_date:
        raise InvalidPeriodError(f"end date {end_date} precedes start date {start_date}")
    if payment_date is not None and payment_date < end_date:
        raise InvalidPeriodError(
            f"payment date {payment_date} precedes end date {end_date}"
        )


@dataclass(frozen=True)
class PayrollPeriod:
    """A payroll period with its aggregate totals."""
    id: UUID
    company_id: UUID
    month: int
    year: int
    start_date: date
    end_date: date
    payment_date: date | None = None
    status: PeriodStatus = PeriodStatus.DRAFT
    currency: str = "IDR"
    total_employees: int = 0
    total_gross: Decimal = _ZERO
    total_deductions: Decimal = _ZERO
    total_net: Decimal = _ZERO
    total_employee_insurance: Decimal = _ZERO
    total_employer_insurance: Decimal = _ZERO
    total_income_tax: Decimal = _ZERO
    rates_version: str | None = None
    rates_checksum: str | None = None
    processed_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str | None = None

    def __post_init__(self):
        validate_period_fields(
            self.month, self.year, self.start_date, self.end_date, self.payment_date
        )

    @property
    def period_name(self) -> str:
        """English display name, e.g. ``January 2025``."""
        return f"{MONTH_NAMES_EN[self.month - 1]} {self.year}"

    @property
    def period_name_id(self) -> str:
        """Indonesian display name, e.g. ``Januari 2025``."""
        return f"{MONTH_NAMES_ID[self.month - 1]} {self.year}"

    @property
    def is_draft(self) -> bool:
        return self.status == PeriodStatus.DRAFT

    @property
    def is_immutable(self) -> bool:
        return self.status in IMMUTABLE_PERIOD_STATUSES

    @property
    def total_employer_cost(self) -> Decimal:
        return self.total_gross + self.total_employer_insurance


@dataclass(frozen=True)
class InsuranceDeduction:
    """One scheme's contribution on a line item."""
    scheme_code: str
    scheme_name: str
    salary_base: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    employee_amount: Decimal
    employer_amount: Decimal


@dataclass(frozen=True)
class PayrollLineItem:
    """One employee's payroll result for a period."""
    id: UUID
    period_id: UUID
    employee_id: UUID
    employee_number: str
    employee_name: str
    base_salary: Decimal
    allowances: Decimal
    overtime: Decimal
    gross_salary: Decimal
    income_tax: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    insurance: tuple[InsuranceDeduction, ...] = ()
    department: str | None = None
    currency: str = "IDR"
    tax_status: str | None = None

    _AMOUNT_FIELDS = (
        "base_salary",
        "allowances",
        "overtime",
        "gross_salary",
        "income_tax",
        "other_deductions",
        "total_deductions",
        "net_salary",
    )

    def __post_init__(self):
        for name in self._AMOUNT_FIELDS:
            if getattr(self, name) < _ZERO:
                raise ValidationError(
                    f"Line item for employee {self.employee_number}: "
                    f"{name} cannot be negative, got {getattr(self, name)}"
                )
        for deduction in self.insurance:
            if deduction.employee_amount < _ZERO or deduction.employer_amount < _ZERO:
                raise ValidationError(
                    f"Line item for employee {self.employee_number}: "
                    f"{deduction.scheme_code} contribution cannot be negative"
                )
        if self.net_salary > self.gross_salary:
            raise ValidationError(
                f"Line item for employee {self.employee_number}: net salary "
                f"{self.net_salary} exceeds gross salary {self.gross_salary}"
            )

    @property
    def employee_insurance_total(self) -> Decimal:
        return sum((d.employee_amount for d in self.insurance), _ZERO)

    @property
    def employer_insurance_total(self) -> Decimal:
        return sum((d.employer_amount for d in self.insurance), _ZERO)

    @property
    def total_employer_cost(self) -> Decimal:
        return self.gross_salary + self.employer_insurance_total

    def insurance_for(self, scheme_code: str) -> InsuranceDeduction | None:
        for d in self.insurance:
            if d.scheme_code == scheme_code:
                return d
        return None


@dataclass(frozen=True)
class PeriodTotals:
    """Summed line items for a period, rounded to the currency unit."""
    employee_count: int = 0
    total_gross: Decimal = _ZERO
    total_deductions: Decimal = _ZERO
    total_net: Decimal = _ZERO
    total_employee_insurance: Decimal = _ZERO
    total_employer_insurance: Decimal = _ZERO
    total_income_tax: Decimal = _ZERO


@dataclass(frozen=True)
class PayrollComputation:
    """Pure result of computing a period's payroll, before persistence."""
    period_id: UUID
    line_items: tuple[PayrollLineItem, ...]
    totals: PeriodTotals
    rates_version: str
    rates_checksum: str
    skipped_employee_ids: tuple[UUID, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PayrollRunResult:
    """Outcome of processing a period."""
    period: PayrollPeriod
    line_items: tuple[PayrollLineItem, ...]
    totals: PeriodTotals
