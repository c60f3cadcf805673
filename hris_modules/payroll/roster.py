"""
Employee roster (``hris_modules.payroll.roster``).

Responsibility
--------------
The roster provider the period aggregator reads active employees from.
``EmployeeRoster`` is the contract; ``RosterSelector`` implements it over
the ``payroll_employees`` table.  Any other source (an HR system, a test
double) can stand in as long as it satisfies the protocol.

Architecture position
---------------------
**Modules layer** -- read side.  ``RosterSelector`` is a ``BaseSelector``:
it never adds, flushes or commits.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy import select

from hris_kernel.selectors.base import BaseSelector
from hris_modules.payroll.models import Employee, EmploymentStatus
from hris_modules.payroll.orm import EmployeeModel


class EmployeeRoster(Protocol):
    """Supplies the active employees of a company."""

    def active_employees(self, company_id: UUID) -> list[Employee]:
        ...


class RosterSelector(BaseSelector[EmployeeModel]):
    """Reads the roster from the ``payroll_employees`` table."""

    def active_employees(self, company_id: UUID) -> list[Employee]:
        """Active employees of ``company_id`` ordered by employee number."""
        rows = self.session.scalars(
            select(EmployeeModel)
            .where(
                EmployeeModel.company_id == company_id,
                EmployeeModel.status == EmploymentStatus.ACTIVE.value,
            )
            .order_by(EmployeeModel.employee_number)
        ).all()
        return [row.to_dto() for row in rows]

    def get_employee(self, employee_id: UUID) -> Employee | None:
        row = self.session.get(EmployeeModel, employee_id)
        return row.to_dto() if row is not None else None
