"""
Pricing Resolver.

Pure functions with deterministic behavior. No I/O.

Turns a quantity and a per-unit rate into a money amount, and a delivery's
quantity, rate and extra charge into its total. Rounding is ROUND_HALF_UP
to the cent on the product; the extra amount is already exact and is added
unrounded.

Usage:
    from dairy_engines.pricing import compute_line_amount, compute_delivery_total

    compute_line_amount(Decimal("1.5"), Decimal("55.50"))          # Money 83.25
    compute_delivery_total("1", "80", extra_amount="50")            # Money 130.00
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from dairy_kernel.domain.dtos import Delivery
from dairy_kernel.domain.values import (
    DEFAULT_CURRENCY,
    Money,
    line_amount,
    to_money_amount,
    to_quantity,
)
from dairy_kernel.exceptions import InvalidInputError


def compute_line_amount(
    quantity: Decimal | str | int,
    rate_per_unit: Decimal | str | int,
    currency: str = DEFAULT_CURRENCY,
) -> Money:
    """
    Amount for ``quantity`` units at ``rate_per_unit``, rounded to the cent.

    Raises:
        InvalidInputError: quantity <= 0 or rate <= 0.
        PrecisionLossError: quantity finer than 3 places or rate finer
            than 2 places.
        AmountOverflowError: product does not fit the money column.
    """
    qty = to_quantity(quantity, "quantity")
    if qty <= 0:
        raise InvalidInputError("quantity", quantity, "must be greater than 0")
    rate = to_money_amount(rate_per_unit, "rate_per_unit")
    if rate <= 0:
        raise InvalidInputError("rate_per_unit", rate_per_unit, "must be greater than 0")
    return Money(line_amount(qty, rate), currency)


def compute_delivery_total(
    quantity: Decimal | str | int,
    rate_per_unit: Decimal | str | int,
    extra_amount: Any = Decimal("0"),
    currency: str = DEFAULT_CURRENCY,
) -> Money:
    """
    ``compute_line_amount(quantity, rate_per_unit) + extra_amount``.

    Raises:
        InvalidInputError: as compute_line_amount, or extra_amount < 0.
    """
    extra = to_money_amount(extra_amount, "extra_amount")
    if extra < 0:
        raise InvalidInputError("extra_amount", extra_amount, "cannot be negative")
    return compute_line_amount(quantity, rate_per_unit, currency) + Money(extra, currency)


def delivery_milk_amount(delivery: Delivery, currency: str = DEFAULT_CURRENCY) -> Money:
    """Milk amount of a stored delivery, from its own snapshot rate."""
    return compute_line_amount(delivery.quantity, delivery.rate_per_unit, currency)
