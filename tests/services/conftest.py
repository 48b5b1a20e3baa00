"""Fixtures for service tests: the January ledger recorded in the database."""

from datetime import date

import pytest

from dairy_config.schema import BillingConfig
from dairy_kernel.services.sequence_service import SequenceServiceGenerator
from dairy_services.invoice_service import InvoiceService
from dairy_services.ledger_store import SqlLedgerStore


@pytest.fixture
def recorded_january(ledger_service, deterministic_clock):
    """
    Same shape as ``january_ledger`` but persisted through LedgerService.
    The clock advances a minute between deliveries so created_at differs.
    """
    cow = ledger_service.create_milk_type("Cow Milk", "60.00")
    buffalo = ledger_service.create_milk_type("Buffalo Milk", "80.00")
    c1 = ledger_service.create_customer("Asha Rao", "9876543210", "12 Market Road")
    c2 = ledger_service.create_customer("Vikram Shah", "9123456780", "4 Lake View Colony")

    def record(*args, **kwargs):
        deterministic_clock.advance(60)
        return ledger_service.record_delivery(*args, **kwargs)

    deliveries = [
        record(c1.id, cow.id, "2", date(2024, 1, 5)),
        record(c1.id, buffalo.id, "1", date(2024, 1, 10), extra_item="Paneer", extra_amount="50"),
        record(c1.id, cow.id, "3", date(2024, 2, 1)),
        record(c2.id, cow.id, "1.5", date(2024, 1, 7)),
    ]
    return {
        "customer": c1,
        "other_customer": c2,
        "cow": cow,
        "buffalo": buffalo,
        "deliveries": deliveries,
    }


@pytest.fixture
def billing_config() -> BillingConfig:
    return BillingConfig(database_url="sqlite://")


@pytest.fixture
def sql_invoice_service(session, deterministic_clock, billing_config, bill_service) -> InvoiceService:
    return InvoiceService(
        SqlLedgerStore(session),
        deterministic_clock,
        SequenceServiceGenerator(session),
        billing_config,
        bill_service=bill_service,
    )
