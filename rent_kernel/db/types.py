"""
Module: rent_kernel.db.types
Responsibility: Annotated type aliases and conversion helpers for monetary
    columns.  Centralizes precision and input normalization so that every
    model and service treats amounts identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    CRITICAL: No floats anywhere in the rent kernel.  Summed payment matches
    must equal expected amounts exactly for an entry to become PAID, so every
    amount entering the kernel goes through to_money().
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

from rent_kernel.exceptions import InvalidAmountError

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# ISO 4217 currency code (e.g., "INR", "AED")
Currency = Annotated[str, String(3)]

# Short identifier strings (statuses, methods)
ShortCode = Annotated[str, String(50)]

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_money(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """
    Normalize an inbound amount to an exact Decimal.

    Accepts Decimal, int, or a numeric string.  Rejects float (binary
    fractions cannot represent currency exactly), bool, NaN/Infinity, and
    negative values.

    Raises:
        InvalidAmountError: If the value cannot be represented exactly or is
            negative.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(
            field, value, "amounts must be Decimal, int or str, never float"
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(field, value, "not a decimal number") from None
    if not amount.is_finite():
        raise InvalidAmountError(field, value, "must be finite")
    if amount < ZERO:
        raise InvalidAmountError(field, value, "must not be negative")
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value for display or reporting."""
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def money_text(value: Decimal) -> str:
    """Plain string form of an amount, independent of its stored scale."""
    return f"{value.normalize():f}"
