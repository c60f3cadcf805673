"""
Tests for overtime policies.
"""

from datetime import date
from decimal import Decimal

import pytest

from hris_engines.overtime import (
    NoOvertimePolicy,
    OvertimeEntry,
    StatutoryOvertimePolicy,
    get_overtime_policy,
)
from hris_kernel.exceptions import InvalidAmountError, InvalidPayrollConfigError

# 173 * 50,000 so the hourly rate is a whole number
BASE = Decimal("8650000")


class TestNoOvertimePolicy:

    def test_always_zero(self):
        policy = NoOvertimePolicy()
        assert policy.calculate(BASE, []) == Decimal("0")

    def test_entries_ignored_with_warning(self, captured_logs):
        policy = NoOvertimePolicy()
        assert policy.calculate(BASE, [OvertimeEntry(Decimal("3"))]) == Decimal("0")
        assert any(r["message"] == "overtime_entries_ignored" for r in captured_logs())


class TestStatutoryOvertimePolicy:

    def setup_method(self):
        self.policy = StatutoryOvertimePolicy()

    def test_hourly_rate(self):
        assert self.policy.hourly_rate(BASE) == Decimal("50000")

    def test_first_hour_workday(self):
        amount = self.policy.calculate(BASE, [OvertimeEntry(Decimal("1"))])
        assert amount == Decimal("75000")

    def test_subsequent_hours_workday(self):
        # 1 * 1.5 + 2 * 2 = 5.5 weighted hours
        amount = self.policy.calculate(BASE, [OvertimeEntry(Decimal("3"))])
        assert amount == Decimal("275000")

    def test_rest_day(self):
        amount = self.policy.calculate(BASE, [OvertimeEntry(Decimal("3"), is_rest_day=True)])
        assert amount == Decimal("300000")

    def test_daily_cap(self, captured_logs):
        entry = OvertimeEntry(Decimal("6"), work_date=date(2025, 1, 10))
        # capped to 4 hours: 1.5 + 3 * 2 = 7.5 weighted
        assert self.policy.weighted_hours(entry) == Decimal("7.5")
        assert any(
            r["message"] == "overtime_daily_limit_applied" for r in captured_logs()
        )

    def test_multiple_entries_summed(self):
        entries = [
            OvertimeEntry(Decimal("1")),
            OvertimeEntry(Decimal("2"), is_rest_day=True),
        ]
        # 1.5 + 4 = 5.5 weighted
        assert self.policy.calculate(BASE, entries) == Decimal("275000")

    def test_rounded_once(self):
        # 10,000,000 / 173 * 1.5 = 86,705.202...
        amount = self.policy.calculate(Decimal("10000000"), [OvertimeEntry(Decimal("1"))])
        assert amount == Decimal("86705")

    def test_no_entries(self):
        assert self.policy.calculate(BASE, []) == Decimal("0")

    def test_negative_hours_rejected(self):
        with pytest.raises(InvalidAmountError):
            self.policy.calculate(BASE, [OvertimeEntry(Decimal("-1"))])

    def test_half_hour(self):
        amount = self.policy.calculate(BASE, [OvertimeEntry(Decimal("0.5"))])
        assert amount == Decimal("37500")


class TestPolicyRegistry:

    @pytest.mark.parametrize(
        "name,cls", [("none", NoOvertimePolicy), ("statutory", StatutoryOvertimePolicy)],
    )
    def test_lookup(self, name, cls):
        assert isinstance(get_overtime_policy(name), cls)

    def test_unknown_policy(self):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            get_overtime_policy("double-time-always")
        assert exc_info.value.field == "overtime_policy"
