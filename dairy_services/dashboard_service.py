"""
DashboardService -- figures for the front page.

Today's delivery count, revenue and volume, the customer count and the most
recent deliveries.  "Today" is the business-local date from the Clock.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from dairy_config.schema import BillingConfig
from dairy_engines.summary import DailySummary, summarize_day
from dairy_kernel.domain.clock import Clock
from dairy_kernel.domain.dtos import Delivery
from dairy_kernel.logging_config import get_logger
from dairy_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.dashboard")


class DashboardService:

    def __init__(self, session: Session, clock: Clock, config: BillingConfig | None = None):
        self._selector = LedgerSelector(session)
        self._clock = clock
        self._config = config or BillingConfig()

    def summary(self, on_date: date | None = None) -> DailySummary:
        day = on_date or self._clock.today(self._config.business_timezone)
        result = summarize_day(
            self._selector.deliveries_on(day),
            day,
            self._selector.customer_count(),
            currency=self._config.currency,
        )
        logger.debug(
            "daily_summary_computed",
            extra={"on_date": day.isoformat(), "delivery_count": result.delivery_count},
        )
        return result

    def recent_deliveries(self, limit: int = 10) -> list[Delivery]:
        return self._selector.recent_deliveries(limit)
