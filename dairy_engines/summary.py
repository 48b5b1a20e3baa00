"""
Daily summary.

Dashboard figures for one calendar day: how many deliveries, the revenue
they bring in (sum of stored totals, extras included) and the milk volume,
alongside the customer count supplied by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from dairy_kernel.domain.dtos import Delivery
from dairy_kernel.domain.values import DEFAULT_CURRENCY, Money, as_calendar_date


@dataclass(frozen=True)
class DailySummary:
    on_date: date
    delivery_count: int
    revenue: Money
    quantity: Decimal
    total_customers: int


def summarize_day(
    deliveries: Iterable[Delivery],
    on_date: date,
    total_customers: int,
    *,
    currency: str = DEFAULT_CURRENCY,
) -> DailySummary:
    """Summarize the deliveries dated ``on_date``; other dates are ignored."""
    day = as_calendar_date(on_date, "on_date")
    todays = [d for d in deliveries if d.delivery_date == day]
    return DailySummary(
        on_date=day,
        delivery_count=len(todays),
        revenue=Money.sum((Money(d.total_amount, currency) for d in todays), currency),
        quantity=sum((d.quantity for d in todays), Decimal("0.000")),
        total_customers=total_customers,
    )
