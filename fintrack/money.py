"""Fixed-point money helpers.

Amounts are kept as ``Decimal`` end to end; rounding to cents only happens
when a value is formatted for display.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_money(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        # str() gives the shortest repr, so 0.1 becomes Decimal("0.1")
        result = Decimal(str(value))
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}") from None
    else:
        raise TypeError(f"unsupported amount type: {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal) -> float:
    if whole == 0:
        return 0.0
    return float(Decimal(part) / Decimal(whole) * 100)


def format_money(value: Number) -> str:
    amount = quantize(to_money(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percent(value: float, places: int = 1) -> str:
    return f"{value:.{places}f}%"
