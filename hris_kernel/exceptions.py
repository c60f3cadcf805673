"""
Typed Exception Hierarchy for the HRIS Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from HrisKernelError:

    HrisKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidPeriodError
    |   +-- DeductionsExceedGrossError
    |   +-- UnknownTaxStatusError
    |
    +-- ConfigurationError
    |   +-- RateTableNotFoundError
    |   +-- InvalidRateTableError      (also a ValidationError)
    |   +-- InvalidPayrollConfigError
    |
    +-- PeriodError
        +-- InvalidStateError
        +-- PeriodNotFoundError
        +-- LineItemNotFoundError
        +-- PeriodAlreadyExistsError
        +-- PeriodImmutableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | Bad input value
                | INVALID_AMOUNT              | Negative, NaN, infinite or non-numeric money
                | INVALID_PERIOD              | Month/year/dates out of range or unordered
                | DEDUCTIONS_EXCEED_GROSS     | Deductions would make net salary negative
                | UNKNOWN_TAX_STATUS          | Employee tax status missing from rate table
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Rates missing or unusable
                | RATE_TABLE_NOT_FOUND        | No rate table covers jurisdiction/date
                | INVALID_RATE_TABLE          | Brackets/rates/caps internally inconsistent
                | INVALID_PAYROLL_CONFIG      | Module policy values out of range
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD_STATE        | Period not in the status the action needs
                | PERIOD_NOT_FOUND            | Period ID doesn't exist
                | LINE_ITEM_NOT_FOUND         | Employee has no line item in the period
                | PERIOD_ALREADY_EXISTS       | Company already has a period for month/year
                | PERIOD_IMMUTABLE            | Modifying an approved or paid period

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        service.process_period(period_id, rates, actor_id=actor)
    except InvalidStateError as e:
        api_response(code=e.code, status=e.current_status)
    except ConfigurationError as e:
        log.error(f"Rate table unusable: {e.code}")

Nothing here is retried internally. Payroll computation is deterministic, so a
retry with the same inputs reproduces the same error.
"""


class HrisKernelError(Exception):
    """
    Base exception for all HRIS kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "HRIS_KERNEL_ERROR"


# Validation exceptions


class ValidationError(HrisKernelError):
    """Base exception for bad input values."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """A monetary input is negative, NaN, infinite or not a number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = str(value)
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class InvalidPeriodError(ValidationError):
    """Payroll period attributes are out of range or unordered."""

    code: str = "INVALID_PERIOD"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid payroll period: {reason}")


class DeductionsExceedGrossError(ValidationError):
    """Itemised deductions would push net salary below zero."""

    code: str = "DEDUCTIONS_EXCEED_GROSS"

    def __init__(self, gross: str, total_deductions: str):
        self.gross = gross
        self.total_deductions = total_deductions
        super().__init__(
            f"Total deductions {total_deductions} exceed gross salary {gross}"
        )


class UnknownTaxStatusError(ValidationError):
    """An employee's tax status has no relief entry in the rate table."""

    code: str = "UNKNOWN_TAX_STATUS"

    def __init__(self, tax_status: str, rates_version: str):
        self.tax_status = tax_status
        self.rates_version = rates_version
        super().__init__(
            f"Tax status {tax_status!r} is not defined in rate table {rates_version!r}"
        )


# Configuration exceptions


class ConfigurationError(HrisKernelError):
    """Base exception for missing or unusable configuration."""

    code: str = "CONFIGURATION_ERROR"


class RateTableNotFoundError(ConfigurationError):
    """No statutory rate table is effective for the jurisdiction and date."""

    code: str = "RATE_TABLE_NOT_FOUND"

    def __init__(self, jurisdiction: str, as_of_date: str):
        self.jurisdiction = jurisdiction
        self.as_of_date = as_of_date
        super().__init__(
            f"No statutory rate table for {jurisdiction} effective on {as_of_date}"
        )


class InvalidRateTableError(ConfigurationError, ValidationError):
    """
    Statutory rate table is malformed or internally inconsistent.

    Catchable both as a configuration problem and as a validation failure.
    """

    code: str = "INVALID_RATE_TABLE"

    def __init__(self, version: str, errors: list[str]):
        self.version = version
        self.errors = list(errors)
        super().__init__(
            f"Rate table {version!r} is invalid: {'; '.join(self.errors)}"
        )


class InvalidPayrollConfigError(ConfigurationError):
    """Payroll module policy values are out of range."""

    code: str = "INVALID_PAYROLL_CONFIG"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid payroll config {field}: {reason}")


# Period-related exceptions


class PeriodError(HrisKernelError):
    """Base exception for payroll period errors."""

    code: str = "PERIOD_ERROR"


class InvalidStateError(PeriodError):
    """
    Payroll period is not in the status the requested action requires.

    Raised before any write, so the caller can rely on nothing having
    been persisted.
    """

    code: str = "INVALID_PERIOD_STATE"

    def __init__(
        self,
        period_id: str,
        current_status: str,
        action: str,
        expected_status: str | None = None,
    ):
        self.period_id = period_id
        self.current_status = current_status
        self.action = action
        self.expected_status = expected_status
        detail = f" (expected {expected_status})" if expected_status else ""
        super().__init__(
            f"Cannot {action} payroll period {period_id} "
            f"in status {current_status}{detail}"
        )


class PeriodNotFoundError(PeriodError):
    """Payroll period with given ID was not found."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Payroll period not found: {period_id}")


class LineItemNotFoundError(PeriodError):
    """The period has no line item for the employee."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, period_id: str, employee_id: str):
        self.period_id = period_id
        self.employee_id = employee_id
        super().__init__(
            f"Payroll period {period_id} has no line item for employee {employee_id}"
        )


class PeriodAlreadyExistsError(PeriodError):
    """Company already has a payroll period for the month and year."""

    code: str = "PERIOD_ALREADY_EXISTS"

    def __init__(self, company_id: str, month: int, year: int):
        self.company_id = company_id
        self.month = month
        self.year = year
        super().__init__(
            f"Payroll period {year}-{month:02d} already exists for company {company_id}"
        )


class PeriodImmutableError(PeriodError):
    """Attempted to modify an approved or paid payroll period."""

    code: str = "PERIOD_IMMUTABLE"

    def __init__(self, period_id: str, status: str, operation: str):
        self.period_id = period_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} payroll period {period_id}: period is {status}"
        )
