"""
Payroll ORM Persistence Models (``hris_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen dataclass DTOs defined in
    ``hris_modules.payroll.models``.  Each ORM class mirrors a DTO and
    provides ``to_dto()`` / ``from_dto()`` conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` which provides id (UUID PK), created_at,
    updated_at, created_by_id (NOT NULL) and updated_by_id.

Invariants enforced:
    - All monetary fields use Decimal (Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String containing the enum .value string.
    - One period per company per month/year (uq_payroll_period_company_month).
    - One line item per employee per period (uq_payroll_line_period_employee).
    - Line items denormalise employee number and name; ``employee_id`` has
      no FK because the roster is an external collaborator.
    - Approved/paid periods and their lines are guarded by
      ``hris_modules.payroll.immutability``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase
from hris_kernel.db.types import Currency, Money, PayloadHash, Rate, ShortCode

# ---------------------------------------------------------------------------
# EmployeeModel
# ---------------------------------------------------------------------------

class EmployeeModel(TrackedBase):
    """
    ORM model for ``Employee`` -- the roster read by ``RosterSelector``.

    Guarantees:
        - ``employee_number`` is unique within a company.
        - ``status`` stores the EmploymentStatus .value string.
    """

    __tablename__ = "payroll_employees"

    company_id: Mapped[UUID] = mapped_column(nullable=False)
    employee_number: Mapped[str] = mapped_column(String(50), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    base_salary: Mapped[Money] = mapped_column(nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    tax_status: Mapped[str | None] = mapped_column(String(10), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "employee_number", name="uq_payroll_employee_company_number",
        ),
        Index("idx_payroll_employee_company_status", "company_id", "status"),
    )

    def to_dto(self):
        from hris_modules.payroll.models import Employee, EmploymentStatus
        return Employee(
            id=self.id,
            company_id=self.company_id,
            employee_number=self.employee_number,
            full_name=self.full_name,
            base_salary=self.base_salary,
            department=self.department,
            status=EmploymentStatus(self.status),
            tax_status=self.tax_status,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "EmployeeModel":
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            employee_number=dto.employee_number,
            full_name=dto.full_name,
            base_salary=dto.base_salary,
            department=dto.department,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            tax_status=dto.tax_status,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_number}: {self.full_name} ({self.status})>"


# ---------------------------------------------------------------------------
# PayrollPeriodModel
# ---------------------------------------------------------------------------

class PayrollPeriodModel(TrackedBase):
    """
    ORM model for ``PayrollPeriod``.

    Contract:
        ``status`` only moves along the payroll period workflow, and every
        move is a compare-and-swap UPDATE issued by ``PayrollService``.
        ``rates_snapshot`` holds the full statutory rate table the period
        was processed with.
    """

    __tablename__ = "payroll_periods"

    company_id: Mapped[UUID] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    year: Mapped[int] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    currency: Mapped[Currency] = mapped_column(nullable=False, default="IDR")

    total_employees: Mapped[int] = mapped_column(nullable=False, default=0)
    total_gross: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))
    total_deductions: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))
    total_net: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))
    total_employee_insurance: Mapped[Money] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    total_employer_insurance: Mapped[Money] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    total_income_tax: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))

    rates_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rates_checksum: Mapped[PayloadHash | None] = mapped_column(nullable=True)
    rates_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    processed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    line_items: Mapped[list["PayrollLineItemModel"]] = relationship(
        "PayrollLineItemModel",
        back_populates="period",
        lazy="select",
        passive_deletes="all",
        order_by="PayrollLineItemModel.employee_number",
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "year", "month", name="uq_payroll_period_company_month",
        ),
        Index("idx_payroll_period_company_status", "company_id", "status"),
    )

    def to_dto(self):
        from hris_modules.payroll.models import PayrollPeriod, PeriodStatus
        return PayrollPeriod(
            id=self.id,
            company_id=self.company_id,
            month=self.month,
            year=self.year,
            start_date=self.start_date,
            end_date=self.end_date,
            payment_date=self.payment_date,
            status=PeriodStatus(self.status),
            currency=self.currency,
            total_employees=self.total_employees,
            total_gross=self.total_gross,
            total_deductions=self.total_deductions,
            total_net=self.total_net,
            total_employee_insurance=self.total_employee_insurance,
            total_employer_insurance=self.total_employer_insurance,
            total_income_tax=self.total_income_tax,
            rates_version=self.rates_version,
            rates_checksum=self.rates_checksum,
            processed_at=self.processed_at,
            approved_at=self.approved_at,
            approved_by_id=self.approved_by_id,
            paid_at=self.paid_at,
            cancelled_at=self.cancelled_at,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PayrollPeriodModel":
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            month=dto.month,
            year=dto.year,
            start_date=dto.start_date,
            end_date=dto.end_date,
            payment_date=dto.payment_date,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            currency=dto.currency,
            total_employees=dto.total_employees,
            total_gross=dto.total_gross,
            total_deductions=dto.total_deductions,
            total_net=dto.total_net,
            total_employee_insurance=dto.total_employee_insurance,
            total_employer_insurance=dto.total_employer_insurance,
            total_income_tax=dto.total_income_tax,
            rates_version=dto.rates_version,
            rates_checksum=dto.rates_checksum,
            notes=dto.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollPeriodModel {self.year}-{self.month:02d} "
            f"company={self.company_id} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# PayrollLineItemModel
# ---------------------------------------------------------------------------

class PayrollLineItemModel(TrackedBase):
    """
    ORM model for ``PayrollLineItem`` -- one employee's result for a period.

    Guarantees:
        - Exactly one line per (period, employee).
        - ``deductions`` holds one row per insurance scheme.
    """

    __tablename__ = "payroll_line_items"

    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_periods.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    employee_number: Mapped[str] = mapped_column(String(50), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    currency: Mapped[Currency] = mapped_column(nullable=False, default="IDR")
    tax_status: Mapped[str | None] = mapped_column(String(10), nullable=True)

    base_salary: Mapped[Money] = mapped_column(nullable=False)
    allowances: Mapped[Money] = mapped_column(nullable=False)
    overtime: Mapped[Money] = mapped_column(nullable=False)
    gross_salary: Mapped[Money] = mapped_column(nullable=False)
    income_tax: Mapped[Money] = mapped_column(nullable=False)
    other_deductions: Mapped[Money] = mapped_column(nullable=False)
    total_deductions: Mapped[Money] = mapped_column(nullable=False)
    net_salary: Mapped[Money] = mapped_column(nullable=False)

    period: Mapped["PayrollPeriodModel"] = relationship(
        "PayrollPeriodModel", back_populates="line_items", lazy="select",
    )
    deductions: Mapped[list["PayrollDeductionModel"]] = relationship(
        "PayrollDeductionModel",
        back_populates="line_item",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="PayrollDeductionModel.sequence",
    )

    __table_args__ = (
        UniqueConstraint(
            "period_id", "employee_id", name="uq_payroll_line_period_employee",
        ),
        Index("idx_payroll_line_period", "period_id"),
    )

    def to_dto(self):
        from hris_modules.payroll.models import PayrollLineItem
        return PayrollLineItem(
            id=self.id,
            period_id=self.period_id,
            employee_id=self.employee_id,
            employee_number=self.employee_number,
            employee_name=self.employee_name,
            department=self.department,
            currency=self.currency,
            tax_status=self.tax_status,
            base_salary=self.base_salary,
            allowances=self.allowances,
            overtime=self.overtime,
            gross_salary=self.gross_salary,
            income_tax=self.income_tax,
            other_deductions=self.other_deductions,
            total_deductions=self.total_deductions,
            net_salary=self.net_salary,
            insurance=tuple(d.to_dto() for d in self.deductions),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PayrollLineItemModel":
        model = cls(
            id=dto.id,
            period_id=dto.period_id,
            employee_id=dto.employee_id,
            employee_number=dto.employee_number,
            employee_name=dto.employee_name,
            department=dto.department,
            currency=dto.currency,
            tax_status=dto.tax_status,
            base_salary=dto.base_salary,
            allowances=dto.allowances,
            overtime=dto.overtime,
            gross_salary=dto.gross_salary,
            income_tax=dto.income_tax,
            other_deductions=dto.other_deductions,
            total_deductions=dto.total_deductions,
            net_salary=dto.net_salary,
            created_by_id=created_by_id,
        )
        model.deductions = [
            PayrollDeductionModel.from_dto(d, sequence=i, created_by_id=created_by_id)
            for i, d in enumerate(dto.insurance)
        ]
        return model

    def __repr__(self) -> str:
        return (
            f"<PayrollLineItemModel {self.employee_number} "
            f"gross={self.gross_salary} net={self.net_salary}>"
        )


# ---------------------------------------------------------------------------
# PayrollDeductionModel
# ---------------------------------------------------------------------------

class PayrollDeductionModel(TrackedBase):
    """
    ORM model for ``InsuranceDeduction`` -- one scheme on one line item.

    ``sequence`` preserves the rate table's scheme order.
    """

    __tablename__ = "payroll_line_deductions"

    line_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_line_items.id"), nullable=False,
    )
    sequence: Mapped[int] = mapped_column(nullable=False, default=0)
    scheme_code: Mapped[ShortCode] = mapped_column(nullable=False)
    scheme_name: Mapped[str] = mapped_column(String(100), nullable=False)
    salary_base: Mapped[Money] = mapped_column(nullable=False)
    employee_rate: Mapped[Rate] = mapped_column(nullable=False)
    employer_rate: Mapped[Rate] = mapped_column(nullable=False)
    employee_amount: Mapped[Money] = mapped_column(nullable=False)
    employer_amount: Mapped[Money] = mapped_column(nullable=False)

    line_item: Mapped["PayrollLineItemModel"] = relationship(
        "PayrollLineItemModel", back_populates="deductions", lazy="select",
    )

    __table_args__ = (
        UniqueConstraint(
            "line_item_id", "scheme_code", name="uq_payroll_deduction_line_scheme",
        ),
        Index("idx_payroll_deduction_line", "line_item_id"),
    )

    def to_dto(self):
        from hris_modules.payroll.models import InsuranceDeduction
        return InsuranceDeduction(
            scheme_code=self.scheme_code,
            scheme_name=self.scheme_name,
            salary_base=self.salary_base,
            employee_rate=self.employee_rate,
            employer_rate=self.employer_rate,
            employee_amount=self.employee_amount,
            employer_amount=self.employer_amount,
        )

    @classmethod
    def from_dto(cls, dto, sequence: int, created_by_id: UUID) -> "PayrollDeductionModel":
        return cls(
            sequence=sequence,
            scheme_code=dto.scheme_code,
            scheme_name=dto.scheme_name,
            salary_base=dto.salary_base,
            employee_rate=dto.employee_rate,
            employer_rate=dto.employer_rate,
            employee_amount=dto.employee_amount,
            employer_amount=dto.employer_amount,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollDeductionModel {self.scheme_code} "
            f"employee={self.employee_amount} employer={self.employer_amount}>"
        )
