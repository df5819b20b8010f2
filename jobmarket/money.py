"""
Money helpers.

All balances and prices are stored as integer cents. Anything coming in
from the outside is converted here, once, and rejected if it is not a
positive whole number of cents.
"""

from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Any

from .errors import InvalidAmount

CENTS = Decimal(100)

# largest value a BigInteger balance column holds
MAX_CENTS = 2 ** 63 - 1


def to_cents(value: Any) -> int:
    """
    Convert a user-supplied amount in currency units to integer cents.

    Args:
        value: int, Decimal, float or numeric string, e.g. "12.50"

    Returns:
        Amount in cents

    Raises:
        InvalidAmount: If the value is not a finite positive number with
            at most two decimal places, or exceeds MAX_CENTS
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}")

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Amount must be a positive number: {value!r}")

    try:
        with localcontext() as ctx:
            # any rounding here means digits below the cent
            ctx.traps[Inexact] = True
            cents = amount * CENTS
    except ArithmeticError:
        raise InvalidAmount(f"Amount is out of range: {value!r}")
    if cents != cents.to_integral_value():
        raise InvalidAmount(f"Amount has more than two decimal places: {value!r}")
    if cents > MAX_CENTS:
        raise InvalidAmount(f"Amount is too large: {value!r}")
    return int(cents)


def format_cents(cents: int) -> str:
    """Render cents as a decimal string, e.g. 1250 -> '12.50'."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{whole}.{frac:02d}"


def deposit_cap(outstanding_cents: int, percent: int) -> int:
    """Largest deposit allowed for an outstanding unpaid total, truncated to the cent."""
    return outstanding_cents * percent // 100
