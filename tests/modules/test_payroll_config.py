"""
Tests for company payroll policy (``PayrollConfig``).
"""

from decimal import Decimal

import pytest

from hris_engines.overtime import NoOvertimePolicy, StatutoryOvertimePolicy
from hris_kernel.exceptions import ConfigurationError, InvalidPayrollConfigError
from hris_modules.payroll.config import PayrollConfig


class TestDefaults:

    def test_statutory_defaults(self):
        config = PayrollConfig.with_defaults()
        assert config.allowance_ratio == Decimal("0.10")
        assert config.currency == "IDR"
        assert config.jurisdiction == "ID"
        assert config.overtime_policy == "none"
        assert config.work_risk_level == 1

    def test_initialization_logged(self, captured_logs):
        PayrollConfig(allowance_ratio=Decimal("0.15"))
        records = [r for r in captured_logs() if r["message"] == "payroll_config_initialized"]
        assert records[0]["allowance_ratio"] == "0.15"


class TestAllowanceRatio:

    @pytest.mark.parametrize("value", ["0.15", 0.15])
    def test_converted_to_decimal(self, value):
        assert PayrollConfig(allowance_ratio=value).allowance_ratio == Decimal("0.15")

    def test_int_accepted(self):
        assert PayrollConfig(allowance_ratio=0).allowance_ratio == Decimal("0")

    @pytest.mark.parametrize(
        "value", [Decimal("-0.01"), Decimal("1.01"), "ten percent", Decimal("NaN"), True],
    )
    def test_rejected(self, value):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            PayrollConfig(allowance_ratio=value)
        assert exc_info.value.field == "allowance_ratio"
        assert isinstance(exc_info.value, ConfigurationError)


class TestOtherFields:

    def test_unknown_currency(self):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            PayrollConfig(currency="XYZ")
        assert exc_info.value.field == "currency"

    def test_empty_jurisdiction(self):
        with pytest.raises(InvalidPayrollConfigError):
            PayrollConfig(jurisdiction="")

    def test_unknown_overtime_policy(self):
        with pytest.raises(InvalidPayrollConfigError):
            PayrollConfig(overtime_policy="generous")

    def test_build_overtime_policy(self):
        assert isinstance(PayrollConfig().build_overtime_policy(), NoOvertimePolicy)
        assert isinstance(
            PayrollConfig(overtime_policy="statutory").build_overtime_policy(),
            StatutoryOvertimePolicy,
        )


class TestWorkRiskLevel:

    @pytest.mark.parametrize("level", [1, 3, 5])
    def test_accepted(self, level):
        assert PayrollConfig(work_risk_level=level).work_risk_level == level

    @pytest.mark.parametrize("level", [0, -1, True, "3", 2.0])
    def test_rejected(self, level):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            PayrollConfig(work_risk_level=level)
        assert exc_info.value.field == "work_risk_level"

    def test_logged(self, captured_logs):
        PayrollConfig(work_risk_level=4)
        records = [r for r in captured_logs() if r["message"] == "payroll_config_initialized"]
        assert records[-1]["work_risk_level"] == 4


class TestFromDict:

    def test_from_dict(self):
        config = PayrollConfig.from_dict(
            {"allowance_ratio": "0.2", "overtime_policy": "statutory"}
        )
        assert config.allowance_ratio == Decimal("0.2")
        assert config.overtime_policy == "statutory"

    def test_unknown_keys(self):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            PayrollConfig.from_dict({"allowance_ratio": "0.2", "bonus_ratio": "0.1"})
        assert "bonus_ratio" in exc_info.value.reason

    def test_risk_level_from_dict(self):
        assert PayrollConfig.from_dict({"work_risk_level": 2}).work_risk_level == 2

    def test_metadata_not_a_field(self):
        with pytest.raises(InvalidPayrollConfigError) as exc_info:
            PayrollConfig.from_dict({"metadata": {"source": "import"}})
        assert "metadata" in exc_info.value.reason
