"""Tests for the daily dashboard summary."""

from datetime import date
from decimal import Decimal

from dairy_engines.summary import summarize_day
from dairy_kernel.domain.values import Money


class TestSummarizeDay:

    def test_counts_only_that_day(self, january_ledger):
        summary = summarize_day(january_ledger["deliveries"], date(2024, 1, 10), total_customers=2)
        assert summary.delivery_count == 1
        assert summary.revenue == Money.of("130.00")
        assert summary.quantity == Decimal("1.000")
        assert summary.total_customers == 2

    def test_revenue_across_customers(self, make_customer, make_milk_type, make_delivery):
        cow = make_milk_type()
        day = date(2024, 1, 5)
        deliveries = [
            make_delivery(make_customer(), cow, "2", day),
            make_delivery(make_customer(), cow, "1.5", day, extra_item="Curd", extra_amount="20"),
        ]
        summary = summarize_day(deliveries, day, total_customers=5)
        assert summary.delivery_count == 2
        assert summary.revenue == Money.of("230.00")
        assert summary.quantity == Decimal("3.5")

    def test_quiet_day(self, january_ledger):
        summary = summarize_day(january_ledger["deliveries"], date(2024, 1, 1), total_customers=2)
        assert summary.delivery_count == 0
        assert summary.revenue == Money.zero()
        assert summary.quantity == 0
