"""
Social Insurance Engine - statutory contributions on a capped salary base.

Pure functions with no I/O.  Scheme definitions come from the statutory
rate table (``hris_config.schema.InsuranceSchemeDef``).

Each scheme is computed independently: the salary base is
``min(gross, scheme.salary_cap)`` and both the employee and the employer
share apply to that same base.  Caps never apply to the combined deduction.
A scheme with work-accident risk rates adds the rate for the company's risk
level (1 = office work, 5 = construction or mining) to its employer share.

Usage:
    from hris_engines.insurance import calculate_contribution

    contribution = calculate_contribution(Decimal("11000000"), scheme, "IDR")
    contribution.employee_amount   # Decimal("110000")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from hris_config.schema import InsuranceSchemeDef
from hris_kernel.db.types import round_currency
from hris_kernel.exceptions import InvalidPayrollConfigError

DEFAULT_RISK_LEVEL = 1


@dataclass(frozen=True)
class InsuranceContribution:
    """Contribution to one scheme for one employee and period."""

    scheme_code: str
    scheme_name: str
    salary_base: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    employee_amount: Decimal
    employer_amount: Decimal
    capped: bool = False

    @property
    def total_amount(self) -> Decimal:
        return self.employee_amount + self.employer_amount


def calculate_contribution(
    gross_salary: Decimal,
    scheme: InsuranceSchemeDef,
    currency: str = "IDR",
    risk_level: int = DEFAULT_RISK_LEVEL,
) -> InsuranceContribution:
    """
    Contribution of one scheme on ``gross_salary``.

    Preconditions:
        - ``gross_salary`` is a non-negative ``Decimal``.
    Postconditions:
        - ``salary_base == min(gross_salary, cap)``.
        - Amounts are rounded (half up) to the currency's display unit, so
          ``employee_amount`` never exceeds ``cap * employee_rate`` by more
          than half a unit.

    Raises:
        InvalidPayrollConfigError: the scheme has risk rates but none for
            ``risk_level``.
    """
    employer_rate = scheme.employer_rate_for(risk_level)
    if employer_rate is None:
        levels = [level for level, _ in scheme.employer_risk_rates]
        raise InvalidPayrollConfigError(
            "work_risk_level",
            f"{scheme.code} has no employer rate for risk level {risk_level}; "
            f"known levels {levels}",
        )
    base = scheme.capped_base(gross_salary)
    return InsuranceContribution(
        scheme_code=scheme.code,
        scheme_name=scheme.name,
        salary_base=base,
        employee_rate=scheme.employee_rate,
        employer_rate=employer_rate,
        employee_amount=round_currency(base * scheme.employee_rate, currency),
        employer_amount=round_currency(base * employer_rate, currency),
        capped=base < gross_salary,
    )


def calculate_contributions(
    gross_salary: Decimal,
    schemes: Sequence[InsuranceSchemeDef],
    currency: str = "IDR",
    risk_level: int = DEFAULT_RISK_LEVEL,
) -> tuple[InsuranceContribution, ...]:
    """Contributions for every scheme, in table order."""
    return tuple(
        calculate_contribution(gross_salary, s, currency, risk_level) for s in schemes
    )
