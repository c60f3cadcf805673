"""
Tests for the social insurance contribution engine.
"""

from decimal import Decimal

import pytest

from hris_config.schema import InsuranceSchemeDef
from hris_engines.insurance import calculate_contribution, calculate_contributions
from hris_kernel.exceptions import InvalidPayrollConfigError

HEALTH = InsuranceSchemeDef(
    code="BPJS_KESEHATAN",
    name="BPJS Kesehatan",
    employee_rate=Decimal("0.01"),
    employer_rate=Decimal("0.04"),
    salary_cap=Decimal("12000000"),
)
EMPLOYMENT = InsuranceSchemeDef(
    code="BPJS_KETENAGAKERJAAN",
    name="BPJS Ketenagakerjaan",
    employee_rate=Decimal("0.03"),
    employer_rate=Decimal("0.0624"),
    salary_cap=Decimal("13710732"),
)
WORK_ACCIDENT = InsuranceSchemeDef(
    code="BPJS_KETENAGAKERJAAN",
    name="BPJS Ketenagakerjaan",
    employee_rate=Decimal("0.03"),
    employer_rate=Decimal("0.06"),
    salary_cap=Decimal("13710732"),
    employer_risk_rates=(
        (1, Decimal("0.0024")),
        (3, Decimal("0.0089")),
        (5, Decimal("0.0174")),
    ),
)


class TestSingleScheme:

    def test_below_cap(self):
        c = calculate_contribution(Decimal("11000000"), HEALTH)
        assert c.salary_base == Decimal("11000000")
        assert c.capped is False
        assert c.employee_amount == Decimal("110000")
        assert c.employer_amount == Decimal("440000")
        assert c.total_amount == Decimal("550000")

    def test_above_cap(self):
        c = calculate_contribution(Decimal("30000000"), HEALTH)
        assert c.salary_base == Decimal("12000000")
        assert c.capped is True
        assert c.employee_amount == Decimal("120000")

    def test_exactly_at_cap_not_flagged(self):
        c = calculate_contribution(Decimal("12000000"), HEALTH)
        assert c.capped is False
        assert c.employee_amount == Decimal("120000")

    def test_zero_gross(self):
        c = calculate_contribution(Decimal("0"), HEALTH)
        assert c.employee_amount == Decimal("0")
        assert c.employer_amount == Decimal("0")

    def test_rounded_half_up_to_whole_rupiah(self):
        # 13,710,732 * 6.24% = 855,549.6768
        c = calculate_contribution(Decimal("20000000"), EMPLOYMENT)
        assert c.employer_amount == Decimal("855550")

    def test_rates_recorded(self):
        c = calculate_contribution(Decimal("5000000"), EMPLOYMENT)
        assert c.employee_rate == Decimal("0.03")
        assert c.employer_rate == Decimal("0.0624")
        assert c.scheme_name == "BPJS Ketenagakerjaan"


class TestMultipleSchemes:

    def test_table_order_preserved(self):
        result = calculate_contributions(Decimal("15000000"), (HEALTH, EMPLOYMENT))
        assert [c.scheme_code for c in result] == ["BPJS_KESEHATAN", "BPJS_KETENAGAKERJAAN"]

    def test_caps_independent(self):
        health, employment = calculate_contributions(
            Decimal("13000000"), (HEALTH, EMPLOYMENT),
        )
        assert health.capped is True
        assert employment.capped is False
        assert employment.salary_base == Decimal("13000000")

    def test_empty(self):
        assert calculate_contributions(Decimal("10000000"), ()) == ()


class TestRiskLevels:

    def test_default_level(self):
        c = calculate_contribution(Decimal("10000000"), WORK_ACCIDENT)
        assert c.employer_rate == Decimal("0.0624")
        assert c.employer_amount == Decimal("624000")

    @pytest.mark.parametrize(
        "level, rate, amount",
        [(3, "0.0689", "689000"), (5, "0.0774", "774000")],
    )
    def test_rate_added_for_level(self, level, rate, amount):
        c = calculate_contribution(Decimal("10000000"), WORK_ACCIDENT, risk_level=level)
        assert c.employer_rate == Decimal(rate)
        assert c.employer_amount == Decimal(amount)
        assert c.employee_amount == Decimal("300000")

    def test_unknown_level(self):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            calculate_contribution(Decimal("10000000"), WORK_ACCIDENT, risk_level=2)
        assert exc_info.value.field == "work_risk_level"
        assert "[1, 3, 5]" in exc_info.value.reason

    def test_scheme_without_risk_rates_ignores_level(self):
        c = calculate_contribution(Decimal("10000000"), HEALTH, risk_level=4)
        assert c.employer_rate == Decimal("0.04")

    def test_level_applies_across_schemes(self):
        health, employment = calculate_contributions(
            Decimal("10000000"), (HEALTH, WORK_ACCIDENT), risk_level=3,
        )
        assert health.employer_amount == Decimal("400000")
        assert employment.employer_amount == Decimal("689000")
