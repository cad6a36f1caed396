import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

from app.exceptions import InvalidAmount

Amount = Union[str, int, float, Decimal]


def normalize_amount(value: Amount) -> float:
    """
    Convert a stored price ("12.50", 12.5, Decimal("12.50")) into a float.

    Raises InvalidAmount for anything that is not a finite, non-negative
    number, so a bad row can never be summed as zero or concatenated.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmount("Invalid amount: empty string")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: {value!r}")
    elif isinstance(value, (int, float, Decimal)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: {value!r}")
    else:
        raise InvalidAmount(f"Invalid amount type: {type(value).__name__}")

    if not parsed.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if parsed < 0:
        raise InvalidAmount(f"Negative amount: {value!r}")

    result = float(parsed)
    if math.isinf(result):
        raise InvalidAmount(f"Amount out of range: {value!r}")
    return result


def to_minor_units(value: Amount) -> int:
    """Amount in cents, rounded half-up."""
    amount = Decimal(str(normalize_amount(value)))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def sum_amounts(values: Iterable[Amount]) -> float:
    # one bad element aborts the whole sum
    total = Decimal("0")
    for value in values:
        total += Decimal(str(normalize_amount(value)))
    return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
