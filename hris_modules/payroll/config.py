"""
Payroll Configuration Schema.

Company-level payroll policy: the allowance ratio, currency, jurisdiction
used to look up statutory rates, the overtime policy and the company's
work-accident risk level.  Statutory rates themselves live in
``hris_config``; this is everything the company decides.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Self

from hris_engines.insurance import DEFAULT_RISK_LEVEL
from hris_engines.overtime import OVERTIME_POLICIES, OvertimePolicy, get_overtime_policy
from hris_engines.payroll import DEFAULT_ALLOWANCE_RATIO
from hris_kernel.db.types import CURRENCY_DECIMAL_PLACES
from hris_kernel.exceptions import InvalidPayrollConfigError
from hris_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")


@dataclass
class PayrollConfig:
    """
    Configuration schema for the payroll module.

    Field defaults follow the Indonesian statutory setup.  Override at
    instantiation with company-specific values:

        config = PayrollConfig(
            allowance_ratio=Decimal("0.15"),
            overtime_policy="statutory",
        )
    """

    allowance_ratio: Decimal = DEFAULT_ALLOWANCE_RATIO
    currency: str = "IDR"
    jurisdiction: str = "ID"

    # "none" pays no overtime; "statutory" applies the labour-law formula
    overtime_policy: str = "none"

    # JKK risk class of the company's industry, 1 (office) to 5 (mining)
    work_risk_level: int = DEFAULT_RISK_LEVEL

    def __post_init__(self):
        if isinstance(self.allowance_ratio, (int, float, str)) and not isinstance(
            self.allowance_ratio, bool
        ):
            try:
                self.allowance_ratio = Decimal(str(self.allowance_ratio))
            except InvalidOperation:
                raise InvalidPayrollConfigError(
                    "allowance_ratio", f"not a number: {self.allowance_ratio!r}"
                ) from None
        if not isinstance(self.allowance_ratio, Decimal) or not self.allowance_ratio.is_finite():
            raise InvalidPayrollConfigError(
                "allowance_ratio", f"must be a finite decimal, got {self.allowance_ratio!r}"
            )
        if self.allowance_ratio < 0:
            raise InvalidPayrollConfigError("allowance_ratio", "cannot be negative")
        if self.allowance_ratio > 1:
            raise InvalidPayrollConfigError("allowance_ratio", "cannot exceed 1 (100%)")

        if self.currency not in CURRENCY_DECIMAL_PLACES:
            raise InvalidPayrollConfigError(
                "currency",
                f"must be one of {sorted(CURRENCY_DECIMAL_PLACES)}, got {self.currency!r}",
            )
        if not self.jurisdiction:
            raise InvalidPayrollConfigError("jurisdiction", "must not be empty")
        if self.overtime_policy not in OVERTIME_POLICIES:
            raise InvalidPayrollConfigError(
                "overtime_policy",
                f"must be one of {sorted(OVERTIME_POLICIES)}, got {self.overtime_policy!r}",
            )
        if (
            isinstance(self.work_risk_level, bool)
            or not isinstance(self.work_risk_level, int)
            or self.work_risk_level < 1
        ):
            raise InvalidPayrollConfigError(
                "work_risk_level",
                f"must be a positive integer, got {self.work_risk_level!r}",
            )

        logger.info(
            "payroll_config_initialized",
            extra={
                "allowance_ratio": str(self.allowance_ratio),
                "currency": self.currency,
                "jurisdiction": self.jurisdiction,
                "overtime_policy": self.overtime_policy,
                "work_risk_level": self.work_risk_level,
            },
        )

    def build_overtime_policy(self) -> OvertimePolicy:
        return get_overtime_policy(self.overtime_policy)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with statutory defaults."""
        logger.info("payroll_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from database/file)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidPayrollConfigError("from_dict", f"unknown keys {unknown}")
        return cls(**data)
