"""
Statutory rate table schema (``hris_config.schema``).

Responsibility
--------------
Frozen dataclasses describing one versioned, effective-dated statutory rate
table: social-insurance schemes (employee and employer rates over a capped
salary base) and a progressive income-tax bracket table applied above a
non-taxable threshold.

Architecture position
---------------------
**Config layer** -- pure value objects.  Parsed by ``hris_config.loader``,
checked by ``hris_config.validator``, consumed by ``hris_engines``.

Invariants enforced
-------------------
* All objects are frozen; a table never changes during a computation run.
* Amounts and rates are ``Decimal``, never ``float``.
* Structural consistency (bracket ordering, rate ranges) is checked by
  ``hris_config.validator``, not at construction, so a malformed table can
  be inspected and reported in full.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class InsuranceSchemeDef:
    """One social-insurance scheme (e.g. BPJS Kesehatan).

    ``salary_cap`` is the maximum salary base contributions are computed
    on; ``None`` means uncapped.  ``employer_risk_rates`` pairs a
    work-accident risk level with the employer rate added on top of
    ``employer_rate`` (JKK under BPJS Ketenagakerjaan).
    """

    code: str
    name: str
    employee_rate: Decimal
    employer_rate: Decimal = Decimal("0")
    salary_cap: Decimal | None = None
    employer_risk_rates: tuple[tuple[int, Decimal], ...] = ()

    def capped_base(self, salary: Decimal) -> Decimal:
        """Salary base after applying the cap."""
        if self.salary_cap is None:
            return salary
        return min(salary, self.salary_cap)

    def employer_rate_for(self, risk_level: int) -> Decimal | None:
        """Employer rate including the work-accident add-on for ``risk_level``.

        Schemes without ``employer_risk_rates`` ignore the level.  Returns
        ``None`` when the scheme has risk rates but none for ``risk_level``.
        """
        if not self.employer_risk_rates:
            return self.employer_rate
        add_on = dict(self.employer_risk_rates).get(risk_level)
        if add_on is None:
            return None
        return self.employer_rate + add_on


@dataclass(frozen=True)
class TaxBracketDef:
    """One progressive tax bracket.

    ``upper_limit`` is the cumulative ceiling of the bracket; ``None`` on
    the last bracket means unbounded.
    """

    upper_limit: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class TaxReliefDef:
    """Non-taxable threshold for one personal tax status.

    Indonesian statuses are ``TK/n`` (single) and ``K/n`` (married) with
    ``n`` dependents, at most three.
    """

    status: str
    threshold: Decimal


@dataclass(frozen=True)
class StatutoryRates:
    """
    A complete statutory rate table.

    Contract
    --------
    * ``tax_brackets`` are ordered by ``upper_limit`` ascending.
    * ``non_taxable_threshold`` is subtracted from gross salary before the
      bracket table applies.  An employee with a tax status listed in
      ``tax_reliefs`` gets that status's threshold instead.
    * ``period_basis`` names the period the amounts are expressed for
      (``monthly`` for the shipped tables).
    * ``checksum`` is the SHA-256 of the canonical table content; empty when
      the table was built in code rather than loaded.
    """

    version: str
    jurisdiction: str
    currency: str
    effective_from: date
    insurance_schemes: tuple[InsuranceSchemeDef, ...]
    tax_brackets: tuple[TaxBracketDef, ...]
    non_taxable_threshold: Decimal
    effective_to: date | None = None
    period_basis: str = "monthly"
    description: str = ""
    tax_reliefs: tuple[TaxReliefDef, ...] = ()
    checksum: str = ""

    def scheme(self, code: str) -> InsuranceSchemeDef | None:
        for s in self.insurance_schemes:
            if s.code == code:
                return s
        return None

    def threshold_for(self, tax_status: str | None) -> Decimal | None:
        """Non-taxable threshold for ``tax_status``.

        ``None`` selects the table's default threshold.  An unlisted status
        returns ``None``.
        """
        if tax_status is None:
            return self.non_taxable_threshold
        for relief in self.tax_reliefs:
            if relief.status == tax_status:
                return relief.threshold
        return None

    def is_effective(self, on_date: date) -> bool:
        """True when ``on_date`` falls within the effective range."""
        if on_date < self.effective_from:
            return False
        if self.effective_to is not None and on_date > self.effective_to:
            return False
        return True

    def content_dict(self) -> dict[str, Any]:
        """Canonical JSON-safe content, excluding the checksum itself."""
        return {
            "version": self.version,
            "jurisdiction": self.jurisdiction,
            "currency": self.currency,
            "effective_from": self.effective_from.isoformat(),
            "effective_to": self.effective_to.isoformat() if self.effective_to else None,
            "period_basis": self.period_basis,
            "description": self.description,
            "non_taxable_threshold": str(self.non_taxable_threshold),
            "insurance_schemes": [
                {
                    "code": s.code,
                    "name": s.name,
                    "employee_rate": str(s.employee_rate),
                    "employer_rate": str(s.employer_rate),
                    "salary_cap": str(s.salary_cap) if s.salary_cap is not None else None,
                    "employer_risk_rates": {
                        str(level): str(rate) for level, rate in s.employer_risk_rates
                    },
                }
                for s in self.insurance_schemes
            ],
            "tax_brackets": [
                {
                    "upper_limit": str(b.upper_limit) if b.upper_limit is not None else None,
                    "rate": str(b.rate),
                }
                for b in self.tax_brackets
            ],
            "tax_reliefs": [
                {"status": r.status, "threshold": str(r.threshold)}
                for r in self.tax_reliefs
            ],
        }

    def to_dict(self) -> dict[str, Any]:
        """Snapshot form persisted with a processed payroll period."""
        data = self.content_dict()
        data["checksum"] = self.checksum
        return data
