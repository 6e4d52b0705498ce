"""Amounts -- Decimal coercion and 2-place rounding for monetary fields."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from invoice_kernel.exceptions import InvalidAmountError, NegativeAmountError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

AmountLike = Decimal | int | str | float


def to_decimal(value: AmountLike, field_name: str = "amount") -> Decimal:
    """
    Convert a boundary value to an exact Decimal.

    Floats go through ``str()`` so that ``13708.0`` becomes ``Decimal("13708.0")``
    rather than its binary expansion.

    Raises:
        InvalidAmountError: If the value is not a finite decimal number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or not isinstance(value, (int, str, float)):
        raise InvalidAmountError(field_name, value)
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidAmountError(field_name, value) from e

    if not result.is_finite():
        raise InvalidAmountError(field_name, value)
    return result


def round2(value: AmountLike) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_amount(value: AmountLike, field_name: str = "amount") -> Decimal:
    """Coerce to a 2-place Decimal amount."""
    return to_decimal(value, field_name).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def require_non_negative(value: AmountLike, field_name: str = "amount") -> Decimal:
    """
    Coerce to a 2-place amount and reject negatives.

    Raises:
        NegativeAmountError: If the amount is below zero.
    """
    amount = to_amount(value, field_name)
    if amount < 0:
        raise NegativeAmountError(field_name, str(amount))
    return amount


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of amounts; an empty iterable sums to 0.00."""
    return sum(values, ZERO)


def percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    """``100 * numerator / denominator`` unrounded; 0 when denominator is 0."""
    if denominator == 0:
        return ZERO
    return Decimal("100") * numerator / denominator


def ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """``numerator / denominator`` unrounded; 0 when denominator is 0."""
    if denominator == 0:
        return ZERO
    return numerator / denominator
