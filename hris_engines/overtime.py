"""
Overtime Engine - pluggable overtime pay policies.

Overtime is an input to the payroll calculator, not something it derives.
A policy turns recorded overtime into an amount; the default policy pays
nothing, so payroll runs without attendance data produce overtime 0.

Policies:
    NoOvertimePolicy        -- always 0.
    StatutoryOvertimePolicy -- Indonesian labour-law formula:
        hourly rate   = monthly base salary / 173
        workday       = first hour x1.5, each further hour x2
        rest day      = every hour x2
        hours per day are capped at the statutory daily maximum (4)

Usage:
    policy = get_overtime_policy("statutory")
    amount = policy.calculate(Decimal("8650000"), [OvertimeEntry(Decimal("2"))])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from hris_engines.amounts import coerce_amount
from hris_kernel.db.types import round_currency
from hris_kernel.exceptions import InvalidPayrollConfigError
from hris_kernel.logging_config import get_logger

logger = get_logger("engines.overtime")

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass(frozen=True)
class OvertimeEntry:
    """Overtime worked on one day."""

    hours: Decimal
    is_rest_day: bool = False
    work_date: date | None = None


class OvertimePolicy(ABC):
    """Turns overtime entries into an overtime amount for one period."""

    name: str = "abstract"

    @abstractmethod
    def calculate(
        self,
        base_salary: Decimal,
        entries: Sequence[OvertimeEntry],
        currency: str = "IDR",
    ) -> Decimal:
        ...


class NoOvertimePolicy(OvertimePolicy):
    """Overtime is not computed; always 0."""

    name = "none"

    def calculate(
        self,
        base_salary: Decimal,
        entries: Sequence[OvertimeEntry],
        currency: str = "IDR",
    ) -> Decimal:
        if entries:
            logger.warning(
                "overtime_entries_ignored",
                extra={"policy": self.name, "entry_count": len(entries)},
            )
        return _ZERO


@dataclass(frozen=True)
class StatutoryOvertimePolicy(OvertimePolicy):
    """Hourly rate of base/173 with workday and rest-day multipliers."""

    monthly_hours_divisor: Decimal = Decimal("173")
    first_hour_multiplier: Decimal = Decimal("1.5")
    subsequent_hour_multiplier: Decimal = Decimal("2")
    rest_day_multiplier: Decimal = Decimal("2")
    max_daily_hours: Decimal = Decimal("4")

    name = "statutory"

    def hourly_rate(self, base_salary: Decimal) -> Decimal:
        return base_salary / self.monthly_hours_divisor

    def weighted_hours(self, entry: OvertimeEntry) -> Decimal:
        """Hours multiplied by their statutory weight, after the daily cap."""
        hours = coerce_amount(entry.hours, "overtime_hours")
        if hours > self.max_daily_hours:
            logger.warning(
                "overtime_daily_limit_applied",
                extra={
                    "recorded_hours": str(hours),
                    "max_daily_hours": str(self.max_daily_hours),
                    "work_date": entry.work_date,
                },
            )
            hours = self.max_daily_hours

        if entry.is_rest_day:
            return hours * self.rest_day_multiplier

        first = min(hours, _ONE)
        rest = hours - first
        return first * self.first_hour_multiplier + rest * self.subsequent_hour_multiplier

    def calculate(
        self,
        base_salary: Decimal,
        entries: Sequence[OvertimeEntry],
        currency: str = "IDR",
    ) -> Decimal:
        """
        Overtime pay for ``entries``.

        Postconditions:
            - Result is rounded once (half up) to the currency's display unit.
            - 0 when there are no entries or the base salary is 0.
        """
        if not entries:
            return _ZERO
        rate = self.hourly_rate(base_salary)
        total_weighted = sum((self.weighted_hours(e) for e in entries), _ZERO)
        return round_currency(rate * total_weighted, currency)


OVERTIME_POLICIES: dict[str, type[OvertimePolicy]] = {
    NoOvertimePolicy.name: NoOvertimePolicy,
    StatutoryOvertimePolicy.name: StatutoryOvertimePolicy,
}


def get_overtime_policy(name: str) -> OvertimePolicy:
    """Instantiate a registered overtime policy by name."""
    try:
        return OVERTIME_POLICIES[name]()
    except KeyError:
        raise InvalidPayrollConfigError(
            "overtime_policy",
            f"unknown policy {name!r}; expected one of {sorted(OVERTIME_POLICIES)}",
        ) from None
