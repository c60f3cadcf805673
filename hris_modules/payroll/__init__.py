"""
Payroll Module (``hris_modules.payroll``).

Responsibility
--------------
Monthly payroll for Indonesian companies: payroll periods, per-employee
line items with itemised BPJS contributions and PPh 21 income tax, period
totals, bilingual payslips, and the period lifecycle from draft through
payment.

Architecture position
---------------------
**Modules layer** -- DTOs, ORM models, the period workflow, a config
schema and a service facade.  Gross-to-net arithmetic comes from
``hris_engines``; statutory rates come from ``hris_config``.

Invariants enforced
-------------------
* Transaction boundary owned by ``PayrollService``.
* A period leaves draft exactly once (compare-and-swap status update).
* Processing persists all line items and totals, or nothing.
* Approved and paid periods are immutable (ORM listeners).

Failure modes
-------------
* ``ValidationError`` -- bad amounts, periods or rosters.
* ``ConfigurationError`` -- bad rate tables or payroll configuration.
* ``PeriodError`` -- missing periods, wrong status, duplicates, edits to
  sealed periods.
"""

from hris_modules.payroll.config import PayrollConfig
from hris_modules.payroll.helpers import compute_payroll, summarize_line_items
from hris_modules.payroll.models import (
    Employee,
    EmploymentStatus,
    InsuranceDeduction,
    PayrollComputation,
    PayrollLineItem,
    PayrollPeriod,
    PayrollRunResult,
    PeriodStatus,
    PeriodTotals,
)
from hris_modules.payroll.payslip import Payslip, PayslipLine, build_payslip
from hris_modules.payroll.roster import EmployeeRoster, RosterSelector
from hris_modules.payroll.service import PayrollService
from hris_modules.payroll.workflows import PAYROLL_PERIOD_WORKFLOW

__all__ = [
    "Employee",
    "EmployeeRoster",
    "EmploymentStatus",
    "InsuranceDeduction",
    "PAYROLL_PERIOD_WORKFLOW",
    "PayrollComputation",
    "PayrollConfig",
    "PayrollLineItem",
    "PayrollPeriod",
    "PayrollRunResult",
    "PayrollService",
    "Payslip",
    "PayslipLine",
    "PeriodStatus",
    "PeriodTotals",
    "RosterSelector",
    "build_payslip",
    "compute_payroll",
    "summarize_line_items",
]
