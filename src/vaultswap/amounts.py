"""Conversion between human-readable amounts and on-chain integers.

Raw amounts are plain Python ints in the token's smallest unit. Decimal
input is never multiplied as a float; digits are taken from the Decimal
tuple so the scaling is exact at any size.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from vaultswap.errors import InvalidAmount

logger = logging.getLogger(__name__)

# Fractional digits shown by to_display_amount by default
DISPLAY_DECIMALS = 4

AmountLike = Union[Decimal, int, float, str]


def _to_decimal(amount: AmountLike) -> Decimal:
    """Coerce input to Decimal, rejecting anything that isn't a finite number."""
    if isinstance(amount, bool):
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    try:
        if isinstance(amount, float):
            # repr gives the shortest string that round-trips, so 0.1 stays 0.1
            value = Decimal(repr(amount))
        else:
            value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount: {amount!r}")

    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {amount!r}")
    return value


def _split(value: Decimal) -> tuple[int, int]:
    """Return (digits as int, count of fractional digits) without trailing zeros.

    Works on the Decimal tuple directly; Decimal.normalize() would round to
    the context precision.
    """
    _, digits, exponent = value.as_tuple()
    digits = list(digits)
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1

    number = int("".join(str(d) for d in digits) or "0")
    if number == 0:
        return 0, 0
    if exponent >= 0:
        return number * 10 ** exponent, 0
    return number, -exponent


def count_decimals(amount: AmountLike) -> int:
    """Number of significant digits after the decimal point.

    Trailing zeros are not counted: "1.50" has 1, "100" has 0.
    """
    return _split(_to_decimal(amount))[1]


def to_raw_amount(amount: AmountLike, decimals: int) -> int:
    """Convert a human-readable amount to the token's integer representation.

    The decimal point is first removed by scaling with 10^count_decimals,
    the result is scaled to the token precision, and the same factor is
    divided back out. Every step is integer arithmetic.

    Args:
        amount: Human-readable amount (e.g. "1.5")
        decimals: Token decimals

    Returns:
        Amount in the token's smallest unit

    Raises:
        InvalidAmount: If amount is negative, not finite, or has more
            fractional digits than the token supports
    """
    value = _to_decimal(amount)
    if value < 0:
        raise InvalidAmount(f"Amount must not be negative, got {value}")
    if decimals < 0:
        raise InvalidAmount(f"Token decimals must not be negative, got {decimals}")

    # adjusted is the amount with its decimal point removed
    adjusted, extra_digits = _split(value)
    if extra_digits > decimals:
        raise InvalidAmount(
            f"Amount {value} has {extra_digits} fractional digits but the token "
            f"supports only {decimals}"
        )

    scale = 10 ** extra_digits
    return adjusted * (10 ** decimals) // scale


def to_display_amount(
    raw_amount: int,
    decimals: int,
    max_decimals: Optional[int] = DISPLAY_DECIMALS,
) -> str:
    """Format a raw amount for display, truncating (not rounding) the fraction.

    Output never feeds back into on-chain calls.

    Args:
        raw_amount: Amount in smallest units
        decimals: Token decimals
        max_decimals: Fractional digits to keep, None for full precision
    """
    raw_amount = int(raw_amount)
    sign = "-" if raw_amount < 0 else ""
    whole, fraction = divmod(abs(raw_amount), 10 ** decimals)

    fraction_str = str(fraction).zfill(decimals) if decimals else ""
    if max_decimals is not None:
        fraction_str = fraction_str[:max_decimals]
    fraction_str = fraction_str.rstrip("0") or "0"

    return f"{sign}{whole}.{fraction_str}"


def display_trade(route, token_in, token_out) -> str:
    """One-line summary of a route's estimated amounts."""
    amount_in = to_display_amount(route.amount_in, token_in.decimals, max_decimals=None)
    amount_out = to_display_amount(route.amount_out, token_out.decimals, max_decimals=None)
    return f"{amount_in} {token_in.symbol} for {amount_out} {token_out.symbol}"
