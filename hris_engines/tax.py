"""
Progressive Income Tax Engine.

Applies an ordered bracket table to the amount of gross salary above a
non-taxable threshold.  Pure functions with no I/O; brackets come from the
statutory rate table.

Algorithm:
    taxable := max(0, gross - threshold)
    for each bracket (ascending ceilings):
        slice := the part of taxable above the previous ceiling, up to this one
        tax += slice * bracket rate
    stop once taxable is exhausted

The accumulated tax is rounded once, after the loop, so the result is a
continuous, non-decreasing function of gross salary.  Taxable income beyond a
bounded last bracket is taxed at the last bracket's rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from hris_config.schema import TaxBracketDef
from hris_kernel.db.types import round_currency

_ZERO = Decimal("0")


@dataclass(frozen=True)
class TaxBracketSlice:
    """The part of taxable income that fell into one bracket."""

    lower_limit: Decimal
    upper_limit: Decimal | None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class TaxResult:
    """Progressive tax for one employee and period."""

    gross_amount: Decimal
    non_taxable_threshold: Decimal
    taxable_amount: Decimal
    slices: tuple[TaxBracketSlice, ...]
    tax: Decimal

    @property
    def marginal_rate(self) -> Decimal:
        """Rate of the highest bracket reached (0 if nothing is taxable)."""
        if not self.slices:
            return _ZERO
        return self.slices[-1].rate

    @property
    def effective_rate(self) -> Decimal:
        """Tax over gross amount."""
        if self.gross_amount == _ZERO:
            return _ZERO
        return self.tax / self.gross_amount


def calculate_progressive_tax(
    gross_amount: Decimal,
    brackets: Sequence[TaxBracketDef],
    non_taxable_threshold: Decimal = _ZERO,
    currency: str = "IDR",
) -> TaxResult:
    """
    Apply ``brackets`` to ``gross_amount - non_taxable_threshold``.

    Preconditions:
        - ``brackets`` are ordered with strictly increasing ceilings and only
          the last one may be unbounded (see ``hris_config.validator``).
        - ``gross_amount`` is a non-negative ``Decimal``.
    Postconditions:
        - ``sum(s.taxable_amount for s in slices) == taxable_amount``.
        - ``tax`` is rounded (half up) to the currency's display unit.
    """
    taxable = max(_ZERO, gross_amount - non_taxable_threshold)

    slices: list[TaxBracketSlice] = []
    remaining = taxable
    prev_limit = _ZERO
    accumulated = _ZERO

    for bracket in brackets:
        if remaining <= _ZERO:
            break
        if bracket.upper_limit is None:
            bracket_income = remaining
        else:
            bracket_income = min(remaining, bracket.upper_limit - prev_limit)
        bracket_tax = bracket_income * bracket.rate
        slices.append(
            TaxBracketSlice(
                lower_limit=prev_limit,
                upper_limit=bracket.upper_limit,
                rate=bracket.rate,
                taxable_amount=bracket_income,
                tax=bracket_tax,
            )
        )
        accumulated += bracket_tax
        remaining -= bracket_income
        if bracket.upper_limit is not None:
            prev_limit = bracket.upper_limit

    if remaining > _ZERO and brackets:
        last = brackets[-1]
        overflow_tax = remaining * last.rate
        slices.append(
            TaxBracketSlice(
                lower_limit=prev_limit,
                upper_limit=None,
                rate=last.rate,
                taxable_amount=remaining,
                tax=overflow_tax,
            )
        )
        accumulated += overflow_tax

    return TaxResult(
        gross_amount=gross_amount,
        non_taxable_threshold=non_taxable_threshold,
        taxable_amount=taxable,
        slices=tuple(slices),
        tax=round_currency(accumulated, currency),
    )
