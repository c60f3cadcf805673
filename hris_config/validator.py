"""
Rate Table Validator (``hris_config.validator``).

Responsibility
--------------
Checks that a ``StatutoryRates`` table is internally consistent before any
payroll is computed against it.

Invariants enforced
-------------------
* At least one tax bracket.
* Bracket upper limits strictly increasing; only the last bracket may be
  unbounded.
* Bracket rates within [0, 1] and monotonically non-decreasing.
* Insurance rates within [0, 1]; salary caps strictly positive.
* Scheme codes unique.
* Non-taxable threshold non-negative; tax relief statuses unique with
  non-negative thresholds.
* Work-accident risk levels positive, and employer rate plus risk add-on
  within [0, 1].
* ``effective_from <= effective_to``.
* Every number finite.

Failure modes
-------------
* Errors (``RatesValidationResult.errors``)  -> the table MUST NOT be used;
  ``ensure_valid`` raises ``InvalidRateTableError``.
* Warnings  -> the table may be used but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from hris_config.schema import StatutoryRates
from hris_kernel.exceptions import InvalidRateTableError

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class RatesValidationResult:
    """
    Result of rate table validation.

    ``is_valid`` is ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def _check_rate(result: RatesValidationResult, label: str, rate: Decimal) -> None:
    if not rate.is_finite():
        result.add_error(f"{label} is not a finite number: {rate}")
    elif rate < _ZERO or rate > _ONE:
        result.add_error(f"{label} must be within [0, 1], got {rate}")


def validate_rates(rates: StatutoryRates) -> RatesValidationResult:
    """
    Validate a statutory rate table.

    Postconditions:
        Returns a ``RatesValidationResult``; never raises for content
        problems.
    """
    result = RatesValidationResult()

    if rates.effective_to is not None and rates.effective_to < rates.effective_from:
        result.add_error(
            f"effective_to {rates.effective_to} precedes effective_from {rates.effective_from}"
        )

    threshold = rates.non_taxable_threshold
    if not threshold.is_finite():
        result.add_error(f"non_taxable_threshold is not a finite number: {threshold}")
    elif threshold < _ZERO:
        result.add_error(f"non_taxable_threshold must be >= 0, got {threshold}")

    _validate_schemes(rates, result)
    _validate_brackets(rates, result)
    _validate_reliefs(rates, result)

    return result


def _validate_schemes(rates: StatutoryRates, result: RatesValidationResult) -> None:
    if not rates.insurance_schemes:
        result.add_warning("No insurance schemes defined")

    seen: set[str] = set()
    for scheme in rates.insurance_schemes:
        if scheme.code in seen:
            result.add_error(f"Duplicate insurance scheme code {scheme.code!r}")
        seen.add(scheme.code)

        _check_rate(result, f"{scheme.code}.employee_rate", scheme.employee_rate)
        _check_rate(result, f"{scheme.code}.employer_rate", scheme.employer_rate)
        for level, add_on in scheme.employer_risk_rates:
            label = f"{scheme.code}.employer_risk_rates[{level}]"
            if level < 1:
                result.add_error(f"{label}: risk level must be >= 1")
            _check_rate(result, label, add_on)
            if add_on.is_finite() and scheme.employer_rate.is_finite():
                _check_rate(result, f"{label} + employer_rate", scheme.employer_rate + add_on)

        cap = scheme.salary_cap
        if cap is not None:
            if not cap.is_finite():
                result.add_error(f"{scheme.code}.salary_cap is not a finite number: {cap}")
            elif cap <= _ZERO:
                result.add_error(f"{scheme.code}.salary_cap must be > 0, got {cap}")


def _validate_reliefs(rates: StatutoryRates, result: RatesValidationResult) -> None:
    seen: set[str] = set()
    for relief in rates.tax_reliefs:
        if relief.status in seen:
            result.add_error(f"Duplicate tax relief status {relief.status!r}")
        seen.add(relief.status)
        if not relief.threshold.is_finite():
            result.add_error(
                f"tax relief {relief.status} threshold is not a finite number: "
                f"{relief.threshold}"
            )
        elif relief.threshold < _ZERO:
            result.add_error(
                f"tax relief {relief.status} threshold must be >= 0, got {relief.threshold}"
            )


def _validate_brackets(rates: StatutoryRates, result: RatesValidationResult) -> None:
    brackets = rates.tax_brackets
    if not brackets:
        result.add_error("At least one tax bracket is required")
        return

    prev_limit: Decimal | None = None
    prev_rate: Decimal | None = None
    last = len(brackets) - 1

    for i, bracket in enumerate(brackets):
        _check_rate(result, f"bracket[{i}].rate", bracket.rate)
        if prev_rate is not None and bracket.rate.is_finite() and bracket.rate < prev_rate:
            result.add_error(
                f"bracket[{i}].rate {bracket.rate} is lower than the previous rate {prev_rate}"
            )
        if bracket.rate.is_finite():
            prev_rate = bracket.rate

        limit = bracket.upper_limit
        if limit is None:
            if i != last:
                result.add_error(f"bracket[{i}] is unbounded but is not the last bracket")
            continue
        if not limit.is_finite():
            result.add_error(f"bracket[{i}].upper_limit is not a finite number: {limit}")
            continue
        if limit <= _ZERO:
            result.add_error(f"bracket[{i}].upper_limit must be > 0, got {limit}")
        if prev_limit is not None and limit <= prev_limit:
            result.add_error(
                f"bracket[{i}].upper_limit {limit} does not exceed the previous limit {prev_limit}"
            )
        prev_limit = limit

    if brackets[last].upper_limit is not None:
        result.add_warning(
            f"Last bracket is capped at {brackets[last].upper_limit}; "
            f"income above it is taxed at the last rate"
        )


def ensure_valid(rates: StatutoryRates | None) -> StatutoryRates:
    """
    Return ``rates`` unchanged if it is a usable table.

    Raises:
        InvalidRateTableError: if ``rates`` is missing or has errors.
    """
    if rates is None:
        raise InvalidRateTableError("<missing>", ["no statutory rate table supplied"])
    if not isinstance(rates, StatutoryRates):
        raise InvalidRateTableError(
            "<missing>", [f"expected StatutoryRates, got {type(rates).__name__}"]
        )
    result = validate_rates(rates)
    if not result.is_valid:
        raise InvalidRateTableError(rates.version, result.errors)
    return rates
