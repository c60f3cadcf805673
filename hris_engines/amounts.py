"""
Monetary input coercion shared by the payroll engines.

Every amount entering an engine passes through ``coerce_amount`` so that
negative, NaN, infinite, boolean and non-numeric values are rejected with
``InvalidAmountError`` before any arithmetic happens.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from hris_kernel.db.types import round_currency
from hris_kernel.exceptions import InvalidAmountError

# Integer digits an amount may carry; keeps every product within the
# default 28-digit Decimal context.
MAX_AMOUNT_DIGITS = 18


def coerce_amount(value: Any, field: str, currency: str | None = None) -> Decimal:
    """
    Convert ``value`` to a non-negative, finite ``Decimal``.

    Floats are converted through their string form.  When ``currency`` is
    given, the amount must also be expressible in that currency's smallest
    display unit (whole rupiah for IDR).

    Raises:
        InvalidAmountError: if the value is not an acceptable amount.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(field, value, "not a number")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmountError(field, value, "not a number") from None
    else:
        raise InvalidAmountError(field, value, f"unsupported type {type(value).__name__}")

    if amount.is_nan():
        raise InvalidAmountError(field, value, "NaN is not an amount")
    if amount.is_infinite():
        raise InvalidAmountError(field, value, "amount must be finite")
    if amount < 0:
        raise InvalidAmountError(field, value, "amount must not be negative")
    if amount != 0 and amount.adjusted() >= MAX_AMOUNT_DIGITS:
        raise InvalidAmountError(field, value, "amount is out of range")

    if currency is not None and round_currency(amount, currency) != amount:
        raise InvalidAmountError(
            field, value, f"more precision than {currency} allows"
        )

    # normalises -0
    return amount.copy_abs()
