"""
Ledger DTOs (``dairy_kernel.domain.dtos``).

Responsibility
--------------
Frozen dataclass records for the three ledger nouns: Customer, MilkType and
Delivery. These are what the ledger-store adapters hand to the billing
engines, and what selectors return instead of ORM rows.

Architecture position
---------------------
**Kernel > Domain** -- pure data with ZERO I/O. Imports only
``dairy_kernel.domain.values`` and ``dairy_kernel.exceptions``.

Invariants enforced
-------------------
* All records are ``frozen=True``.
* Money fields are exact 2-place Decimals, quantities exact 3-place
  Decimals (see ``values``).
* ``Delivery.total_amount == round2(quantity * rate_per_unit) + extra_amount``
  is checked at construction. The rate is the snapshot taken when the
  delivery was recorded; nothing here looks at the current price list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from dairy_kernel.domain.values import (
    as_calendar_date,
    line_amount,
    to_money_amount,
    to_quantity,
)
from dairy_kernel.exceptions import DeliveryIntegrityError, InvalidInputError

RecordId = UUID | str


@dataclass(frozen=True)
class Customer:
    """A household or shop that receives deliveries."""
    id: RecordId
    name: str
    phone: str
    address: str = ""
    preferred_milk_type_id: RecordId | None = None


@dataclass(frozen=True)
class MilkType:
    """A price-list entry. ``is_active=False`` is the soft-delete marker."""
    id: RecordId
    name: str
    rate_per_unit: Decimal
    is_active: bool = True
    description: str | None = None

    def __post_init__(self) -> None:
        rate = to_money_amount(self.rate_per_unit, "rate_per_unit")
        if rate <= 0:
            raise InvalidInputError("rate_per_unit", self.rate_per_unit, "must be greater than 0")
        object.__setattr__(self, "rate_per_unit", rate)


@dataclass(frozen=True)
class Delivery:
    """
    One delivery on one day, priced at the rate in force when it was made.

    Contract:
        ``rate_per_unit`` and ``milk_type_name`` are snapshots copied from
        the MilkType at recording time. ``total_amount`` is derived and
        checked; a store that hands back a record whose total disagrees
        with its own quantity, rate and extra gets DeliveryIntegrityError.

    Guarantees:
        - quantity > 0, rate_per_unit > 0, extra_amount >= 0
        - delivery_date is a calendar date (a datetime is reduced to its date)
        - delivery_time is informational and never used for billing
    """

    id: RecordId
    customer_id: RecordId
    milk_type_id: RecordId
    milk_type_name: str
    quantity: Decimal
    rate_per_unit: Decimal
    total_amount: Decimal
    delivery_date: date
    created_at: datetime
    extra_item: str | None = None
    extra_amount: Decimal = Decimal("0")
    delivery_time: time | None = None

    def __post_init__(self) -> None:
        quantity = to_quantity(self.quantity, "quantity")
        if quantity <= 0:
            raise InvalidInputError("quantity", self.quantity, "must be greater than 0")
        rate = to_money_amount(self.rate_per_unit, "rate_per_unit")
        if rate <= 0:
            raise InvalidInputError("rate_per_unit", self.rate_per_unit, "must be greater than 0")
        extra = to_money_amount(self.extra_amount, "extra_amount")
        if extra < 0:
            raise InvalidInputError("extra_amount", self.extra_amount, "cannot be negative")
        total = to_money_amount(self.total_amount, "total_amount")

        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "rate_per_unit", rate)
        object.__setattr__(self, "extra_amount", extra)
        object.__setattr__(self, "total_amount", total)
        object.__setattr__(
            self, "delivery_date", as_calendar_date(self.delivery_date, "delivery_date")
        )
        if self.extra_item is not None:
            object.__setattr__(self, "extra_item", self.extra_item.strip() or None)

        expected = line_amount(quantity, rate) + extra
        if total != expected:
            raise DeliveryIntegrityError(self.id, str(expected), str(total))

    @classmethod
    def record(
        cls,
        *,
        id: RecordId,
        customer_id: RecordId,
        milk_type: MilkType,
        quantity: Any,
        delivery_date: date,
        created_at: datetime,
        extra_item: str | None = None,
        extra_amount: Any = Decimal("0"),
        delivery_time: time | None = None,
    ) -> Delivery:
        """Create a delivery, snapshotting the milk type's current rate and name."""
        qty = to_quantity(quantity, "quantity")
        extra = to_money_amount(extra_amount, "extra_amount")
        return cls(
            id=id,
            customer_id=customer_id,
            milk_type_id=milk_type.id,
            milk_type_name=milk_type.name,
            quantity=qty,
            rate_per_unit=milk_type.rate_per_unit,
            total_amount=line_amount(qty, milk_type.rate_per_unit) + extra,
            delivery_date=delivery_date,
            created_at=created_at,
            extra_item=extra_item,
            extra_amount=extra,
            delivery_time=delivery_time,
        )

    @property
    def milk_amount(self) -> Decimal:
        """round2(quantity * rate_per_unit)."""
        return line_amount(self.quantity, self.rate_per_unit)

    @property
    def has_extra_line(self) -> bool:
        """True when the extra item earns its own invoice line."""
        return bool(self.extra_item) and self.extra_amount > 0


@dataclass(frozen=True)
class BillItem:
    """One saved invoice line."""
    delivery_id: RecordId | None
    kind: str
    line_date: date
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Bill:
    """A saved invoice. ``status`` starts as ``pending``."""
    id: RecordId
    customer_id: RecordId
    invoice_number: str
    start_date: date
    end_date: date
    subtotal: Decimal
    extra_total: Decimal
    total_amount: Decimal
    status: str
    generated_at: datetime
    items: tuple[BillItem, ...] = ()
