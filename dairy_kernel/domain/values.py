"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the fixed-precision types every billing computation uses:
    Money (2-place Decimal paired with a currency code), quantities
    (3-place Decimal) and DateRange (inclusive calendar-date interval).
    Also holds the single rounding rule for money.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by dtos, services, selectors and the engines package.

Invariants enforced:
    - Money is always a Decimal quantized to 2 places, never float.
    - Rounding is ROUND_HALF_UP to the cent, in one place (round_money).
    - Values finer than the column precision are rejected
      (PrecisionLossError), values past the column bound are rejected
      (AmountOverflowError). Nothing is silently truncated.
    - DateRange compares calendar dates only; datetimes are reduced to
      their date before use.

Failure modes:
    - InvalidInputError for non-numeric or non-finite input.
    - PrecisionLossError / AmountOverflowError for out-of-precision values.
    - InvalidDateRangeError when start > end.
    - ValueError when Money arithmetic mixes currencies (programming error).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Iterator

from dairy_kernel.exceptions import (
    AmountOverflowError,
    InvalidDateRangeError,
    InvalidInputError,
    PrecisionLossError,
)

# Column precision: money Numeric(12, 2), quantity Numeric(12, 3)
MONEY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 3
MAX_MONEY = Decimal("9999999999.99")
MAX_QUANTITY = Decimal("999999999.999")

DEFAULT_CURRENCY = "INR"
DEFAULT_ROUNDING = ROUND_HALF_UP

_CENT = Decimal("0.01")
_MILLI = Decimal("0.001")

_CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Convert user or store input to a finite Decimal.

    Floats go through ``str()`` so 0.1 becomes Decimal("0.1"), not the
    binary expansion. Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(field, value, "not a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidInputError(field, value, "not a number") from e
    if not result.is_finite():
        raise InvalidInputError(field, value, "not a finite number")
    return result


def _fixed(value: Any, field: str, step: Decimal, places: int, limit: Decimal) -> Decimal:
    amount = to_decimal(value, field)
    quantized = amount.quantize(step, rounding=DEFAULT_ROUNDING)
    if quantized != amount:
        raise PrecisionLossError(field, value, places)
    if abs(quantized) > limit:
        raise AmountOverflowError(field, value, limit)
    return quantized


def to_money_amount(value: Any, field: str = "amount") -> Decimal:
    """Exact 2-place Decimal for a money input, or raise."""
    return _fixed(value, field, _CENT, MONEY_DECIMAL_PLACES, MAX_MONEY)


def to_quantity(value: Any, field: str = "quantity") -> Decimal:
    """Exact 3-place Decimal for a quantity input, or raise."""
    return _fixed(value, field, _MILLI, QUANTITY_DECIMAL_PLACES, MAX_QUANTITY)


def round_money(value: Decimal) -> Decimal:
    """
    Round a computed value to the cent.

    This is the only rounding rule for money: ROUND_HALF_UP at 2 places.
    Raises AmountOverflowError if the rounded value does not fit the column.
    """
    rounded = value.quantize(_CENT, rounding=DEFAULT_ROUNDING)
    if abs(rounded) > MAX_MONEY:
        raise AmountOverflowError("amount", value, MAX_MONEY)
    return rounded


def line_amount(quantity: Decimal, rate_per_unit: Decimal) -> Decimal:
    """round2(quantity * rate_per_unit). No sign checks; see dairy_engines.pricing."""
    return round_money(quantity * rate_per_unit)


def as_calendar_date(value: Any, field: str = "date") -> date:
    """Reduce a date or datetime to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise InvalidInputError(field, value, "not an ISO date") from e
    raise InvalidInputError(field, value, "not a date")


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs an exact 2-place Decimal with a 3-letter currency code. The
        amount is validated on construction; a value needing more than two
        decimal places is rejected, not rounded. Use ``round_money`` first
        when the input is a computed product.

    Guarantees:
        - Immutable and hashable
        - amount is a Decimal with exponent -2
        - Addition and subtraction refuse to mix currencies
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_money_amount(self.amount))
        code = (self.currency or "").upper().strip()
        if len(code) != 3 or not code.isalpha():
            raise InvalidInputError("currency", self.currency, "not a 3-letter code")
        object.__setattr__(self, "currency", code)

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def sum(cls, values: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
        """Sum Money values; an empty input yields zero in ``currency``."""
        total = cls.zero(currency)
        for value in values:
            total = total + value
        return total

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot add Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(amount=round_money(self.amount + other.amount), currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot subtract Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(amount=round_money(self.amount - other.amount), currency=self.currency)

    def format(self) -> str:
        """
        Display form, e.g. ``₹1,20,000.50`` for INR or ``$120,000.50``.

        INR uses lakh grouping; other currencies use thousands grouping.
        """
        sign = "-" if self.amount < 0 else ""
        integer_part, _, fraction = f"{abs(self.amount):f}".partition(".")
        if self.currency == "INR":
            grouped = _group_indian(integer_part)
        else:
            grouped = f"{int(integer_part):,}"
        symbol = _CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")
        return f"{sign}{symbol}{grouped}.{fraction or '00'}"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __repr__(self) -> str:
        return f"Money({str(self.amount)!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class DateRange:
    """
    Inclusive calendar-date interval [start, end].

    Datetimes are reduced to dates so that a delivery stamped late in the
    evening never falls out of a period because of a timezone shift.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        start = as_calendar_date(self.start, "start_date")
        end = as_calendar_date(self.end, "end_date")
        if start > end:
            raise InvalidDateRangeError(start, end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, date):
            return False
        day = value.date() if isinstance(value, datetime) else value
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def format_quantity(quantity: Decimal) -> str:
    """Shortest plain form: Decimal('2.000') -> '2', Decimal('1.500') -> '1.5'."""
    normalized = quantity.normalize()
    return f"{normalized:f}"
