"""Fixed-point helpers for stock quantities and money.

Quantities are Decimals quantized to ``settings.stock_decimal_places`` with
ROUND_HALF_UP. Per-unit recipe quantities are quantized when stored, and
integer multiples of a quantized value need no further rounding, so a
deduction and the matching restoration are always the same number.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from core.config import settings

Number = Union[Decimal, int, str, float]

DEFAULT_ROUNDING = ROUND_HALF_UP


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


STOCK_QUANTUM = _quantum(settings.stock_decimal_places)
MONEY_QUANTUM = _quantum(settings.money_decimal_places)
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 0.2 become Decimal("0.2"), not the binary expansion
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a decimal quantity: {value!r}") from e


def quantize_stock(value: Number) -> Decimal:
    return to_decimal(value).quantize(STOCK_QUANTUM, rounding=DEFAULT_ROUNDING)


def quantize_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=DEFAULT_ROUNDING)


def scale_quantity(per_unit: Number, units: int) -> Decimal:
    """Total quantity for ``units`` of something needing ``per_unit`` each."""
    return quantize_stock(to_decimal(per_unit) * units)


def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1
