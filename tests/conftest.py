"""
Pytest fixtures for the dairy ledger test suite.

Provides:
- Structured-logging setup and a JSON log capture fixture
- A database session per test, rolled back at teardown
- Deterministic clock and ledger/bill services bound to the test session
- DTO factories and the month-of-January example ledger

Environment Variables:
- DAIRY_TEST_DATABASE_URL: database for the session fixtures.  Defaults to
  in-memory SQLite; point it at PostgreSQL to run the same suite there.
"""

import json
import logging
import os
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from dairy_kernel.db.engine import build_engine, create_tables, drop_tables
from dairy_kernel.domain.clock import DeterministicClock
from dairy_kernel.domain.dtos import Customer, Delivery, MilkType
from dairy_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from dairy_kernel.selectors.ledger_selector import LedgerSelector
from dairy_kernel.services.bill_service import BillService
from dairy_kernel.services.ledger_service import LedgerService

DEFAULT_TEST_DATABASE_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture dairy_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, invoice_service):
            invoice_service.generate_invoice(...)
            logs = captured_logs()
            assert any(r["message"] == "invoice_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("dairy_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DAIRY_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """One engine for the whole run, with every table created."""
    eng = build_engine(get_database_url())
    drop_tables(eng)
    create_tables(eng)
    yield eng
    drop_tables(eng)
    eng.dispose()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction on a dedicated connection; any
    ``session.commit()`` inside the test only releases a savepoint, and the
    outer transaction is rolled back at teardown.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Clock and services
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """06:00 UTC on 31 Jan 2024 (11:30 in the default +05:30 business day)."""
    return DeterministicClock(datetime(2024, 1, 31, 6, 0, 0, tzinfo=UTC))


@pytest.fixture
def ledger_service(session, deterministic_clock) -> LedgerService:
    return LedgerService(session, deterministic_clock)


@pytest.fixture
def ledger_selector(session) -> LedgerSelector:
    return LedgerSelector(session)


@pytest.fixture
def bill_service(session) -> BillService:
    return BillService(session)


# =============================================================================
# DTO factories
# =============================================================================


@pytest.fixture
def make_milk_type():
    def _make(name: str = "Cow Milk", rate: str = "60.00", is_active: bool = True) -> MilkType:
        return MilkType(id=uuid4(), name=name, rate_per_unit=Decimal(rate), is_active=is_active)

    return _make


@pytest.fixture
def make_customer():
    counter = iter(range(1000))

    def _make(name: str = "Asha Rao", phone: str | None = None) -> Customer:
        n = next(counter)
        return Customer(
            id=uuid4(),
            name=name,
            phone=phone or f"98765{n:05d}",
            address="12 Market Road",
        )

    return _make


@pytest.fixture
def make_delivery():
    """Build a Delivery DTO priced from ``milk_type``; created_at ticks per call."""
    base = datetime(2024, 1, 1, 6, 0, 0, tzinfo=UTC)
    counter = iter(range(100000))

    def _make(
        customer: Customer,
        milk_type: MilkType,
        quantity: str,
        on: date,
        extra_item: str | None = None,
        extra_amount: str = "0",
        created_at: datetime | None = None,
    ) -> Delivery:
        return Delivery.record(
            id=uuid4(),
            customer_id=customer.id,
            milk_type=milk_type,
            quantity=Decimal(quantity),
            delivery_date=on,
            created_at=created_at or base + timedelta(seconds=next(counter)),
            extra_item=extra_item,
            extra_amount=Decimal(extra_amount),
        )

    return _make


@pytest.fixture
def january_ledger(make_customer, make_milk_type, make_delivery):
    """
    The worked example: C1 gets 2L cow @60 on 5 Jan, 1L buffalo @80 plus
    Paneer 50 on 10 Jan, and 3L cow on 1 Feb (outside January).  A second
    customer has a January delivery that must never leak into C1's bill.
    """
    c1 = make_customer("Asha Rao")
    c2 = make_customer("Vikram Shah")
    cow = make_milk_type("Cow Milk", "60.00")
    buffalo = make_milk_type("Buffalo Milk", "80.00")
    deliveries = [
        make_delivery(c1, cow, "2", date(2024, 1, 5)),
        make_delivery(c1, buffalo, "1", date(2024, 1, 10), extra_item="Paneer", extra_amount="50"),
        make_delivery(c1, cow, "3", date(2024, 2, 1)),
        make_delivery(c2, cow, "1.5", date(2024, 1, 7)),
    ]
    return {
        "customer": c1,
        "other_customer": c2,
        "cow": cow,
        "buffalo": buffalo,
        "deliveries": deliveries,
    }
