"""
Invoice Builder.

Pure functions with deterministic behavior. No I/O.

Turns an AggregationResult into an immutable Invoice: a customer snapshot,
the period, ordered line items, totals and an invoice number of the form
``INV-YYYYMMDD-NNNN``. The date part comes from ``generated_at``; the
four-digit disambiguator comes from an injected number generator, so the
builder itself never reads a clock or a counter.

Line expansion:
    Every delivery yields a milk line. A delivery with a non-empty extra
    item and an extra amount > 0 yields an extra line directly after it.

Usage:
    from dairy_engines.invoice import build_invoice, DailySequenceGenerator

    invoice = build_invoice(
        customer,
        aggregate(customer.id, start, end, deliveries),
        generated_at=clock.now(),
        number_generator=DailySequenceGenerator(),
    )
    invoice.invoice_number   # "INV-20240131-0001"
    invoice.to_dict()        # JSON-friendly
"""

from __future__ import annotations

import random
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Protocol

from dairy_engines.aggregation import AggregationResult
from dairy_kernel.domain.dtos import Customer, Delivery, RecordId
from dairy_kernel.domain.values import (
    DateRange,
    Money,
    format_quantity,
    line_amount,
)
from dairy_kernel.exceptions import (
    EmptyPeriodError,
    InvalidInputError,
    InvoiceNumberExhaustedError,
)


# ============================================================================
# Invoice numbers
# ============================================================================

DEFAULT_PREFIX = "INV"
MAX_DISAMBIGUATOR = 9999

INVOICE_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z][A-Z0-9]*)-(?P<day>\d{8})-(?P<seq>\d{4})$")


class NumberGenerator(Protocol):
    """Produces the 1..9999 disambiguator for invoices generated on a day."""

    def __call__(self, generated_on: date) -> int: ...


def format_invoice_number(generated_on: date, disambiguator: int, prefix: str = DEFAULT_PREFIX) -> str:
    if not 1 <= disambiguator <= MAX_DISAMBIGUATOR:
        raise InvalidInputError(
            "disambiguator", disambiguator, f"must be between 1 and {MAX_DISAMBIGUATOR}"
        )
    return f"{prefix}-{generated_on:%Y%m%d}-{disambiguator:04d}"


def parse_invoice_number(invoice_number: str) -> tuple[str, date, int]:
    """
    Split an invoice number into (prefix, day, disambiguator).

    Raises:
        InvalidInputError: not of the form PREFIX-YYYYMMDD-NNNN, or the
            date part is not a real date, or NNNN is 0000.
    """
    match = INVOICE_NUMBER_PATTERN.match(invoice_number or "")
    if match is None:
        raise InvalidInputError("invoice_number", invoice_number, "expected PREFIX-YYYYMMDD-NNNN")
    try:
        day = datetime.strptime(match["day"], "%Y%m%d").date()
    except ValueError:
        raise InvalidInputError("invoice_number", invoice_number, "date part is not a valid date")
    seq = int(match["seq"])
    if seq == 0:
        raise InvalidInputError("invoice_number", invoice_number, "sequence part must be 0001-9999")
    return match["prefix"], day, seq


class DailySequenceGenerator:
    """
    In-process monotonic counter, restarting at 1 for each day.

    Thread-safe. Numbers are unique only within the process; use the
    DB-backed generator when several processes issue invoices.
    """

    def __init__(self, start_values: dict[date, int] | None = None):
        self._lock = threading.Lock()
        self._last: dict[date, int] = dict(start_values or {})

    def __call__(self, generated_on: date) -> int:
        with self._lock:
            value = self._last.get(generated_on, 0) + 1
            if value > MAX_DISAMBIGUATOR:
                raise InvoiceNumberExhaustedError(generated_on, MAX_DISAMBIGUATOR)
            self._last[generated_on] = value
            return value

    def current(self, generated_on: date) -> int:
        with self._lock:
            return self._last.get(generated_on, 0)


class RandomSuffixGenerator:
    """
    Random disambiguator with collision retry.

    A candidate is rejected when this generator already issued it for the
    day or when ``is_taken(invoice_number)`` says a stored bill uses it.
    After ``max_attempts`` rejections InvoiceNumberExhaustedError is raised.
    """

    def __init__(
        self,
        is_taken: Callable[[str], bool] | None = None,
        max_attempts: int = 20,
        rng: random.Random | None = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._is_taken = is_taken
        self._max_attempts = max_attempts
        self._rng = rng or random.Random()
        self._prefix = prefix
        self._issued: dict[date, set[int]] = {}
        self._lock = threading.Lock()

    def __call__(self, generated_on: date) -> int:
        with self._lock:
            issued = self._issued.setdefault(generated_on, set())
            for _ in range(self._max_attempts):
                candidate = self._rng.randint(1, MAX_DISAMBIGUATOR)
                if candidate in issued:
                    continue
                number = format_invoice_number(generated_on, candidate, self._prefix)
                if self._is_taken is not None and self._is_taken(number):
                    continue
                issued.add(candidate)
                return candidate
            raise InvoiceNumberExhaustedError(generated_on, self._max_attempts)


# ============================================================================
# Invoice records
# ============================================================================


class LineKind(str, Enum):
    """Kind of invoice line."""

    MILK = "milk"
    EXTRA = "extra"


@dataclass(frozen=True)
class LineItem:
    """One row of an invoice."""

    delivery_id: RecordId
    kind: LineKind
    line_date: date
    description: str
    quantity: Decimal
    unit_rate: Decimal
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "delivery_id": str(self.delivery_id),
            "kind": self.kind.value,
            "date": self.line_date.isoformat(),
            "description": self.description,
            "quantity": format_quantity(self.quantity),
            "unit_rate": str(self.unit_rate),
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer details as they were when the invoice was generated."""

    id: RecordId
    name: str
    phone: str
    address: str

    @classmethod
    def of(cls, customer: Customer) -> CustomerSnapshot:
        return cls(id=customer.id, name=customer.name, phone=customer.phone, address=customer.address)


@dataclass(frozen=True)
class Invoice:
    """
    Immutable invoice snapshot.

    Guarantees:
        - subtotal == sum of milk line amounts
        - extras_total == sum of every included delivery's extra_amount;
          this equals the sum of extra line amounts only when each
          positive extra has item text, since an untitled extra is
          totalled but gets no line
        - grand_total == subtotal + extras_total
        - line_items follow the aggregation's delivery order
    """

    invoice_number: str
    generated_at: datetime
    customer: CustomerSnapshot
    period: DateRange
    line_items: tuple[LineItem, ...]
    subtotal: Money
    extras_total: Money
    grand_total: Money
    delivery_count: int

    @property
    def currency(self) -> str:
        return self.grand_total.currency

    @property
    def milk_lines(self) -> tuple[LineItem, ...]:
        return tuple(li for li in self.line_items if li.kind is LineKind.MILK)

    @property
    def extra_lines(self) -> tuple[LineItem, ...]:
        return tuple(li for li in self.line_items if li.kind is LineKind.EXTRA)

    def to_dict(self) -> dict[str, Any]:
        return {
            "invoice_number": self.invoice_number,
            "generated_at": self.generated_at.isoformat(),
            "customer": {
                "id": str(self.customer.id),
                "name": self.customer.name,
                "phone": self.customer.phone,
                "address": self.customer.address,
            },
            "period": {
                "start": self.period.start.isoformat(),
                "end": self.period.end.isoformat(),
            },
            "line_items": [li.to_dict() for li in self.line_items],
            "subtotal": str(self.subtotal.amount),
            "extras_total": str(self.extras_total.amount),
            "grand_total": str(self.grand_total.amount),
            "currency": self.currency,
            "delivery_count": self.delivery_count,
        }


# ============================================================================
# Builder
# ============================================================================


def expand_line_items(deliveries: tuple[Delivery, ...], quantity_unit: str = "L") -> tuple[LineItem, ...]:
    """Milk line per delivery, followed by its extra line when it has one."""
    lines: list[LineItem] = []
    for d in deliveries:
        lines.append(
            LineItem(
                delivery_id=d.id,
                kind=LineKind.MILK,
                line_date=d.delivery_date,
                description=f"{d.milk_type_name} ({format_quantity(d.quantity)}{quantity_unit})",
                quantity=d.quantity,
                unit_rate=d.rate_per_unit,
                amount=line_amount(d.quantity, d.rate_per_unit),
            )
        )
        if d.has_extra_line:
            lines.append(
                LineItem(
                    delivery_id=d.id,
                    kind=LineKind.EXTRA,
                    line_date=d.delivery_date,
                    description=d.extra_item or "",
                    quantity=Decimal("1"),
                    unit_rate=d.extra_amount,
                    amount=d.extra_amount,
                )
            )
    return tuple(lines)


def build_invoice(
    customer: Customer,
    aggregation: AggregationResult,
    generated_at: datetime,
    number_generator: NumberGenerator | None,
    *,
    invoice_number: str | None = None,
    quantity_unit: str = "L",
    prefix: str = DEFAULT_PREFIX,
) -> Invoice:
    """
    Build an invoice from an aggregation.

    Pure function apart from calling ``number_generator``.

    Args:
        customer: The customer being billed; must own the aggregation
        aggregation: Result of ``aggregate``
        generated_at: Timestamp of generation; its date names the invoice
        number_generator: Disambiguator source; unused when
            ``invoice_number`` is given
        invoice_number: Explicit number; must match the format, use
            ``prefix`` and carry the date of ``generated_at``
        quantity_unit: Unit shown in milk line descriptions
        prefix: Invoice number prefix

    Raises:
        EmptyPeriodError: the aggregation has no deliveries
        InvalidInputError: customer mismatch, bad explicit number, or no
            generator and no explicit number
    """
    if str(aggregation.customer_id) != str(customer.id):
        raise InvalidInputError(
            "aggregation",
            str(aggregation.customer_id),
            f"belongs to a different customer than {customer.id}",
        )
    if aggregation.is_empty:
        raise EmptyPeriodError(aggregation)

    if invoice_number is not None:
        given_prefix, given_day, _ = parse_invoice_number(invoice_number)
        if given_prefix != prefix:
            raise InvalidInputError("invoice_number", invoice_number, f"prefix must be {prefix}")
        if given_day != generated_at.date():
            raise InvalidInputError(
                "invoice_number",
                invoice_number,
                f"date part must be {generated_at.date():%Y%m%d}",
            )
        number = invoice_number
    elif number_generator is None:
        raise InvalidInputError("number_generator", None, "required when no invoice_number is given")
    else:
        generated_on = generated_at.date()
        number = format_invoice_number(generated_on, number_generator(generated_on), prefix)

    return Invoice(
        invoice_number=number,
        generated_at=generated_at,
        customer=CustomerSnapshot.of(customer),
        period=aggregation.period,
        line_items=expand_line_items(aggregation.deliveries, quantity_unit),
        subtotal=aggregation.subtotal,
        extras_total=aggregation.extras_total,
        grand_total=aggregation.grand_total,
        delivery_count=aggregation.delivery_count,
    )


__all__ = [
    "DEFAULT_PREFIX",
    "INVOICE_NUMBER_PATTERN",
    "MAX_DISAMBIGUATOR",
    "CustomerSnapshot",
    "DailySequenceGenerator",
    "Invoice",
    "LineItem",
    "LineKind",
    "NumberGenerator",
    "RandomSuffixGenerator",
    "build_invoice",
    "expand_line_items",
    "format_invoice_number",
    "parse_invoice_number",
]
