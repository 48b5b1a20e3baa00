"""
InvoiceService -- the billing workflow around the pure engines.

Responsibility:
    Fetch a customer and their deliveries from a LedgerStore, run the
    Period Aggregator and the Invoice Builder, log the outcome, and
    optionally hand the invoice to BillService for saving.

Architecture position:
    Services -- imperative shell.  Owns the Clock and the configuration;
    the engines receive ``generated_at``, "today" and every setting as
    plain arguments.

Failure modes:
    - CustomerNotFoundError from the store.
    - InvalidDateRangeError for start > end (raised before any fetch).
    - EmptyPeriodError when the period has no deliveries; logged as
      ``invoice_empty_period`` and re-raised.
    - InvoiceNumberExhaustedError from the number generator.
    - DuplicateBillError / InvoiceNumberCollisionError when saving.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Callable
from uuid import uuid4

from sqlalchemy.orm import Session

from dairy_config.schema import BillingConfig
from dairy_engines.aggregation import AggregationResult, aggregate
from dairy_engines.invoice import (
    DailySequenceGenerator,
    Invoice,
    NumberGenerator,
    RandomSuffixGenerator,
    build_invoice,
)
from dairy_engines.periods import PeriodPreset, resolve_period
from dairy_kernel.domain.clock import Clock
from dairy_kernel.domain.dtos import RecordId
from dairy_kernel.domain.values import DateRange
from dairy_kernel.exceptions import EmptyPeriodError
from dairy_kernel.logging_config import LogContext, get_logger
from dairy_kernel.services.bill_service import BillService
from dairy_kernel.services.sequence_service import SequenceServiceGenerator
from dairy_services.ledger_store import LedgerStore

logger = get_logger("services.invoice")


def build_number_generator(
    config: BillingConfig,
    session: Session | None = None,
    is_taken: Callable[[str], bool] | None = None,
) -> NumberGenerator:
    """
    Pick the disambiguator source for ``config.number_strategy``.

    ``sequence`` uses the database counter when a session is given and an
    in-process counter otherwise.  ``random`` checks ``is_taken``, falling
    back to the bill table when a session is given.
    """
    if config.number_strategy == "random":
        if is_taken is None and session is not None:
            is_taken = BillService(session).invoice_number_taken
        return RandomSuffixGenerator(
            is_taken=is_taken,
            max_attempts=config.random_max_attempts,
            prefix=config.invoice_prefix,
        )
    if session is not None:
        return SequenceServiceGenerator(session)
    return DailySequenceGenerator()


class InvoiceService:
    """
    Generates invoices for a customer and period.

    Contract:
        Reads only through ``store``; writes only through ``bill_service``
        when one is given and ``save=True`` is requested.

    Usage:
        service = InvoiceService(SqlLedgerStore(session), SystemClock(),
                                 SequenceServiceGenerator(session), config)
        invoice = service.generate_for_preset(customer_id, "monthly")
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock,
        number_generator: NumberGenerator,
        config: BillingConfig | None = None,
        bill_service: BillService | None = None,
    ):
        self._store = store
        self._clock = clock
        self._number_generator = number_generator
        self._config = config or BillingConfig()
        self._bill_service = bill_service

    def today(self) -> date:
        """The business-local calendar date."""
        return self._clock.today(self._config.business_timezone)

    def preview(self, customer_id: RecordId, start_date: date, end_date: date) -> AggregationResult:
        """
        Totals for the period without building or numbering an invoice.

        An empty period comes back as EmptyPeriod, not an error.
        """
        period = DateRange(start_date, end_date)
        self._store.get_customer(customer_id)
        deliveries = self._store.list_deliveries(customer_id, period)
        return aggregate(
            customer_id, period.start, period.end, deliveries, currency=self._config.currency
        )

    def generate_invoice(
        self,
        customer_id: RecordId,
        start_date: date,
        end_date: date,
        *,
        invoice_number: str | None = None,
        save: bool = False,
    ) -> Invoice:
        """
        Aggregate, build and (optionally) save an invoice.

        Args:
            customer_id: Customer to bill
            start_date: First day, inclusive
            end_date: Last day, inclusive
            invoice_number: Explicit number instead of a generated one
            save: Persist through the BillService given at construction

        Raises:
            EmptyPeriodError: no deliveries in the period
            ValueError: save requested without a BillService
        """
        if save and self._bill_service is None:
            raise ValueError("save=True requires a BillService")

        with LogContext.bind(correlation_id=str(uuid4()), customer_id=str(customer_id)):
            t0 = time.monotonic()
            period = DateRange(start_date, end_date)
            customer = self._store.get_customer(customer_id)
            deliveries = self._store.list_deliveries(customer_id, period)
            result = aggregate(
                customer.id, period.start, period.end, deliveries, currency=self._config.currency
            )

            try:
                invoice = build_invoice(
                    customer,
                    result,
                    generated_at=self._clock.now().astimezone(self._config.business_timezone),
                    number_generator=self._number_generator,
                    invoice_number=invoice_number,
                    quantity_unit=self._config.quantity_unit,
                    prefix=self._config.invoice_prefix,
                )
            except EmptyPeriodError:
                logger.warning(
                    "invoice_empty_period",
                    extra={
                        "start_date": period.start.isoformat(),
                        "end_date": period.end.isoformat(),
                    },
                )
                raise

            if save:
                self._bill_service.save_invoice(invoice)

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            with LogContext.bind(invoice_number=invoice.invoice_number):
                logger.info(
                    "invoice_generated",
                    extra={
                        "start_date": period.start.isoformat(),
                        "end_date": period.end.isoformat(),
                        "delivery_count": invoice.delivery_count,
                        "line_count": len(invoice.line_items),
                        "subtotal": str(invoice.subtotal.amount),
                        "extras_total": str(invoice.extras_total.amount),
                        "grand_total": str(invoice.grand_total.amount),
                        "currency": invoice.currency,
                        "saved": save,
                        "duration_ms": duration_ms,
                    },
                )
            return invoice

    def generate_for_preset(
        self,
        customer_id: RecordId,
        preset: PeriodPreset | str,
        *,
        custom_start: date | None = None,
        custom_end: date | None = None,
        invoice_number: str | None = None,
        save: bool = False,
    ) -> Invoice:
        """Invoice for ``daily``/``weekly``/``monthly``/``custom`` relative to today."""
        period = resolve_period(preset, self.today(), custom_start, custom_end)
        return self.generate_invoice(
            customer_id, period.start, period.end, invoice_number=invoice_number, save=save
        )
