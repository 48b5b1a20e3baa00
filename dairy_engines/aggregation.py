"""
Period Aggregator.

Pure functions with deterministic behavior. No I/O.

Given a customer, an inclusive date interval and an already-fetched delivery
collection, selects the customer's deliveries in the interval, orders them,
and totals them. The collection is never mutated and no price list is
consulted: every milk amount is recomputed from the delivery's own snapshot
rate.

Selection:
    customer_id matches (compared by string form, so UUID and str ids from
    different stores agree) AND start <= delivery_date <= end, on calendar
    dates.

Ordering:
    delivery_date, then created_at (naive timestamps read as UTC), then
    delivery id as the last tie-break.

Usage:
    from dairy_engines.aggregation import aggregate

    result = aggregate(customer.id, date(2024, 1, 1), date(2024, 1, 31), deliveries)
    if result.is_empty:
        warn("no deliveries this month")
    result.grand_total   # Money
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from dairy_engines.pricing import delivery_milk_amount
from dairy_kernel.domain.dtos import Delivery, RecordId
from dairy_kernel.domain.values import DEFAULT_CURRENCY, DateRange, Money
from dairy_kernel.exceptions import InvalidInputError


@dataclass(frozen=True)
class AggregationResult:
    """
    Totals for one customer over one period.

    Attributes:
        customer_id: Customer the deliveries belong to
        period: Inclusive date interval
        deliveries: Included deliveries in billing order
        subtotal: Sum of milk amounts (round2(qty * snapshot rate) each)
        extras_total: Sum of extra amounts
        grand_total: subtotal + extras_total
    """

    customer_id: RecordId
    period: DateRange
    deliveries: tuple[Delivery, ...]
    subtotal: Money
    extras_total: Money
    grand_total: Money

    @property
    def is_empty(self) -> bool:
        return not self.deliveries

    @property
    def delivery_count(self) -> int:
        return len(self.deliveries)

    @property
    def currency(self) -> str:
        return self.grand_total.currency


@dataclass(frozen=True)
class EmptyPeriod(AggregationResult):
    """No deliveries matched. A valid result with zero totals, not an error."""

    @classmethod
    def for_period(
        cls,
        customer_id: RecordId,
        period: DateRange,
        currency: str = DEFAULT_CURRENCY,
    ) -> EmptyPeriod:
        zero = Money.zero(currency)
        return cls(
            customer_id=customer_id,
            period=period,
            deliveries=(),
            subtotal=zero,
            extras_total=zero,
            grand_total=zero,
        )


def _created_key(created_at: datetime) -> datetime:
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at.astimezone(timezone.utc)


def _billing_order(delivery: Delivery) -> tuple[date, datetime, str]:
    return (delivery.delivery_date, _created_key(delivery.created_at), str(delivery.id))


def select_deliveries(
    customer_id: RecordId,
    period: DateRange,
    deliveries: Iterable[Delivery],
) -> tuple[Delivery, ...]:
    """Deliveries for ``customer_id`` inside ``period``, in billing order."""
    wanted = str(customer_id)
    selected = [
        d for d in deliveries
        if str(d.customer_id) == wanted and d.delivery_date in period
    ]
    return tuple(sorted(selected, key=_billing_order))


def aggregate(
    customer_id: RecordId,
    start_date: date,
    end_date: date,
    deliveries: Iterable[Delivery],
    *,
    currency: str = DEFAULT_CURRENCY,
) -> AggregationResult:
    """
    Aggregate a customer's deliveries over an inclusive period.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        customer_id: Customer to bill (existence is the caller's concern)
        start_date: First day of the period, inclusive
        end_date: Last day of the period, inclusive
        deliveries: Materialized delivery collection; may contain other
            customers and other dates
        currency: Currency of the returned totals

    Returns:
        AggregationResult, or EmptyPeriod when nothing matched

    Raises:
        InvalidInputError: customer_id missing
        InvalidDateRangeError: start_date > end_date
    """
    if customer_id is None or str(customer_id).strip() == "":
        raise InvalidInputError("customer_id", customer_id, "is required")
    period = DateRange(start_date, end_date)

    included = select_deliveries(customer_id, period, deliveries)
    if not included:
        return EmptyPeriod.for_period(customer_id, period, currency)

    subtotal = Money.sum((delivery_milk_amount(d, currency) for d in included), currency)
    extras_total = Money.sum((Money(d.extra_amount, currency) for d in included), currency)

    return AggregationResult(
        customer_id=customer_id,
        period=period,
        deliveries=included,
        subtotal=subtotal,
        extras_total=extras_total,
        grand_total=subtotal + extras_total,
    )
