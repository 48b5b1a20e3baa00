"""Tests for the dashboard figures."""

from datetime import UTC, date, datetime
from decimal import Decimal

from dairy_kernel.domain.clock import DeterministicClock
from dairy_kernel.domain.values import Money
from dairy_services.dashboard_service import DashboardService


class TestDashboardService:

    def test_summary_for_given_day(self, session, deterministic_clock, recorded_january):
        summary = DashboardService(session, deterministic_clock).summary(date(2024, 1, 10))
        assert summary.delivery_count == 1
        assert summary.revenue == Money.of("130.00")
        assert summary.quantity == Decimal("1.000")
        assert summary.total_customers == 2

    def test_summary_defaults_to_business_today(self, session, recorded_january):
        # 20:00 UTC on 31 Jan is 1 Feb in +05:30
        clock = DeterministicClock(datetime(2024, 1, 31, 20, 0, tzinfo=UTC))
        summary = DashboardService(session, clock).summary()
        assert summary.on_date == date(2024, 2, 1)
        assert summary.revenue == Money.of("180.00")

    def test_recent_deliveries(self, session, deterministic_clock, recorded_january):
        recent = DashboardService(session, deterministic_clock).recent_deliveries(limit=3)
        assert [d.delivery_date for d in recent] == [date(2024, 2, 1), date(2024, 1, 10), date(2024, 1, 7)]
