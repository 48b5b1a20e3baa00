"""
Ledger store adapters.

The billing core never talks to storage itself.  It is handed a
``LedgerStore`` -- two read operations -- and everything above that
interface is identical whether the ledger lives in memory or in a database.

    InMemoryLedgerStore   flat local storage, e.g. a single-device install
                          or tests
    SqlLedgerStore        SQLAlchemy session through LedgerSelector

Both return every matching delivery; neither truncates or pages.
"""

from __future__ import annotations

import threading
from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from dairy_kernel.domain.dtos import Customer, Delivery, RecordId
from dairy_kernel.domain.values import DateRange
from dairy_kernel.exceptions import CustomerNotFoundError, DeliveryNotFoundError
from dairy_kernel.selectors.ledger_selector import LedgerSelector


@runtime_checkable
class LedgerStore(Protocol):
    """Read access the invoice service needs."""

    def list_deliveries(self, customer_id: RecordId, period: DateRange) -> list[Delivery]:
        """All of the customer's deliveries inside ``period`` (may be unsorted)."""
        ...

    def get_customer(self, customer_id: RecordId) -> Customer:
        """Raises CustomerNotFoundError for an unknown id."""
        ...


class InMemoryLedgerStore:
    """
    Ledger kept in process memory.

    Thread-safe for concurrent readers and writers.  Ids are compared by
    their string form.
    """

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        deliveries: Iterable[Delivery] = (),
    ):
        self._lock = threading.Lock()
        self._customers: dict[str, Customer] = {}
        self._deliveries: dict[str, Delivery] = {}
        for customer in customers:
            self.add_customer(customer)
        for delivery in deliveries:
            self.add_delivery(delivery)

    def add_customer(self, customer: Customer) -> None:
        with self._lock:
            self._customers[str(customer.id)] = customer

    def add_delivery(self, delivery: Delivery) -> None:
        with self._lock:
            self._deliveries[str(delivery.id)] = delivery

    def remove_delivery(self, delivery_id: RecordId) -> None:
        with self._lock:
            if self._deliveries.pop(str(delivery_id), None) is None:
                raise DeliveryNotFoundError(delivery_id)

    def all_deliveries(self) -> list[Delivery]:
        with self._lock:
            return list(self._deliveries.values())

    def get_customer(self, customer_id: RecordId) -> Customer:
        with self._lock:
            customer = self._customers.get(str(customer_id))
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def list_deliveries(self, customer_id: RecordId, period: DateRange) -> list[Delivery]:
        wanted = str(customer_id)
        with self._lock:
            return [
                d for d in self._deliveries.values()
                if str(d.customer_id) == wanted and d.delivery_date in period
            ]


class SqlLedgerStore:
    """Ledger store over a SQLAlchemy session.  The caller owns the session."""

    def __init__(self, session: Session):
        self._selector = LedgerSelector(session)

    def get_customer(self, customer_id: RecordId) -> Customer:
        return self._selector.get_customer(customer_id)

    def list_deliveries(self, customer_id: RecordId, period: DateRange) -> list[Delivery]:
        return self._selector.list_deliveries(customer_id, period)
