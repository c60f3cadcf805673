"""
Module: hris_kernel.db.types
Responsibility: Annotated column type aliases and the single sanctioned
    rounding helper for monetary values.
Architecture position: Kernel > DB.  May be imported by any layer.

Invariants enforced:
    - No floats for money.  All monetary amounts are Decimal.
    - round_money() is the ONLY rounding function for payroll amounts.
      Every currency rounds to its smallest display unit (IDR has none
      below the whole rupiah).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

# Monetary amount: 38 digits, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Contribution / tax rate
Rate = Annotated[Decimal, Numeric(12, 9)]

# ISO 4217 currency code
Currency = Annotated[str, String(3)]

# SHA-256 hex digest
PayloadHash = Annotated[str, String(64)]

ShortCode = Annotated[str, String(50)]

DEFAULT_ROUNDING = ROUND_HALF_UP

# Smallest display unit per currency.  Anything not listed uses 2.
CURRENCY_DECIMAL_PLACES: dict[str, int] = {
    "IDR": 0,
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "USD": 2,
    "SGD": 2,
    "MYR": 2,
    "EUR": 2,
}


def currency_decimal_places(currency: str) -> int:
    """Return the number of display decimal places for a currency code."""
    return CURRENCY_DECIMAL_PLACES.get(currency.upper(), 2)


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: value quantized with the given rounding mode
        (ROUND_HALF_UP by default).
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def round_currency(
    value: Decimal,
    currency: str,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round to the smallest display unit of ``currency``."""
    return round_money(value, currency_decimal_places(currency), rounding)
