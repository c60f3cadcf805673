"""
Pure calculation engines for payroll.

No I/O, no sessions, no clock.  Every engine takes its rates as parameters
and returns frozen value objects.

Engines:
    insurance  -- social-insurance contributions on a capped salary base
    tax        -- progressive income tax above a non-taxable threshold
    overtime   -- pluggable overtime pay policies
    payroll    -- per-employee gross-to-net calculation
"""

from hris_engines.insurance import (
    DEFAULT_RISK_LEVEL,
    InsuranceContribution,
    calculate_contribution,
    calculate_contributions,
)
from hris_engines.overtime import (
    NoOvertimePolicy,
    OvertimeEntry,
    OvertimePolicy,
    StatutoryOvertimePolicy,
    get_overtime_policy,
)
from hris_engines.payroll import (
    DEFAULT_ALLOWANCE_RATIO,
    PayrollCalculation,
    PayrollCalculator,
    calculate_payroll,
)
from hris_engines.tax import TaxBracketSlice, TaxResult, calculate_progressive_tax

__all__ = [
    "DEFAULT_RISK_LEVEL",
    "InsuranceContribution",
    "calculate_contribution",
    "calculate_contributions",
    "TaxBracketSlice",
    "TaxResult",
    "calculate_progressive_tax",
    "OvertimeEntry",
    "OvertimePolicy",
    "NoOvertimePolicy",
    "StatutoryOvertimePolicy",
    "get_overtime_policy",
    "DEFAULT_ALLOWANCE_RATIO",
    "PayrollCalculation",
    "PayrollCalculator",
    "calculate_payroll",
]
