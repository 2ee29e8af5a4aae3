"""
Column types for fixed-point quantities.

SQLite has no exact decimal storage (NUMERIC affinity goes through float),
so on SQLite the value is stored as its canonical string. Other backends
get a real NUMERIC column. Either way Python sees a Decimal quantized to
the type's ``places``.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from core.config import settings
from core.quantities import DEFAULT_ROUNDING, to_decimal


class _FixedDecimal(TypeDecorator):
    impl = String(40)
    cache_ok = True

    places: int = 0

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(Numeric(18, self.places))

    def _quantize(self, value) -> Decimal:
        return to_decimal(value).quantize(Decimal(1).scaleb(-self.places), rounding=DEFAULT_ROUNDING)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        q = self._quantize(value)
        if dialect.name == "sqlite":
            return str(q)
        return q

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._quantize(value)


# cache_ok is read from each class's own __dict__, so every subclass repeats it
class StockQuantity(_FixedDecimal):
    cache_ok = True
    places = settings.stock_decimal_places


class MoneyAmount(_FixedDecimal):
    cache_ok = True
    places = settings.money_decimal_places
