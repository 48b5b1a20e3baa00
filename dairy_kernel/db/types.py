"""
Module: dairy_kernel.db.types
Responsibility: Column types and type factories shared by every model, so
    money, quantity and timestamp columns behave identically on SQLite and
    PostgreSQL.
Architecture position: Kernel > DB.  MUST NOT import from models/, services/,
    selectors/, or outer layers.

Invariants enforced:
    - Money columns load as Decimals with exactly 2 places, quantity columns
      with exactly 3, whatever the driver returns.
    - Binding never rounds; excess places or digits raise instead.
    - Timestamps load as timezone-aware UTC datetimes.  SQLite has no
      timezone support and returns naive values; those are read as UTC.
"""

from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import DateTime, Numeric
from sqlalchemy.types import TypeDecorator

from dairy_kernel.domain.values import DEFAULT_ROUNDING, to_decimal
from dairy_kernel.exceptions import AmountOverflowError, PrecisionLossError


class FixedDecimal(TypeDecorator):
    """
    Numeric column that always yields a Decimal quantized to its scale.

    Binding never rounds: a value with more places than the scale raises
    PrecisionLossError, one wider than the precision AmountOverflowError.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 12, scale: int = 2):
        super().__init__(precision=precision, scale=scale, asdecimal=True)
        self._scale = scale
        self._quantum = Decimal(1).scaleb(-scale)
        self._limit = Decimal(1).scaleb(precision - scale) - self._quantum

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        amount = to_decimal(value, "column")
        quantized = amount.quantize(self._quantum, rounding=DEFAULT_ROUNDING)
        if quantized != amount:
            raise PrecisionLossError("column", value, self._scale)
        if abs(quantized) > self._limit:
            raise AmountOverflowError("column", value, self._limit)
        return quantized

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(str(value)).quantize(self._quantum)


class UTCDateTime(TypeDecorator):
    """DateTime(timezone=True) that always returns aware UTC values."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# 12 digits, 2 places: up to 9,999,999,999.99
MONEY_PRECISION = (12, 2)

# 12 digits, 3 places: litres / units delivered
QUANTITY_PRECISION = (12, 3)


def money_type() -> FixedDecimal:
    return FixedDecimal(*MONEY_PRECISION)


def quantity_type() -> FixedDecimal:
    return FixedDecimal(*QUANTITY_PRECISION)
