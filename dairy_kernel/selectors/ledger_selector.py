"""
Module: dairy_kernel.selectors.ledger_selector
Responsibility: Read-only queries over customers, milk types and deliveries.
    Backs the SQL ledger store that feeds the billing engines, plus the
    listing screens and the daily dashboard.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - Deliveries are returned in billing order (delivery_date, created_at,
      id) and never truncated; callers that bill a period get every row.
    - Milk types are listed active-only unless asked otherwise.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from dairy_kernel.domain.dtos import Customer, Delivery, MilkType, RecordId
from dairy_kernel.domain.values import DateRange
from dairy_kernel.exceptions import (
    CustomerNotFoundError,
    DeliveryNotFoundError,
    MilkTypeNotFoundError,
)
from dairy_kernel.models.customer import CustomerModel
from dairy_kernel.models.delivery import DeliveryModel
from dairy_kernel.models.milk_type import MilkTypeModel
from dairy_kernel.selectors.base import BaseSelector


def as_uuid(value: RecordId) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class LedgerSelector(BaseSelector[DeliveryModel]):
    """
    Selector for ledger reads.

    Guarantees:
        - Lookups by an id that is not a UUID behave like a missing row
          (NotFoundError), never a driver error.
        - All returned objects are frozen DTOs.
    """

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def get_customer(self, customer_id: RecordId) -> Customer:
        """
        Raises:
            CustomerNotFoundError: no such customer.
        """
        key = as_uuid(customer_id)
        row = self.session.get(CustomerModel, key) if key is not None else None
        if row is None:
            raise CustomerNotFoundError(customer_id)
        return row.to_dto()

    def find_customer_by_phone(self, phone: str) -> Customer | None:
        row = self.session.execute(
            select(CustomerModel).where(CustomerModel.phone == phone)
        ).scalar_one_or_none()
        return row.to_dto() if row else None

    def list_customers(self) -> list[Customer]:
        """All customers by name."""
        rows = self.session.execute(
            select(CustomerModel).order_by(CustomerModel.name, CustomerModel.id)
        ).scalars()
        return [r.to_dto() for r in rows]

    def customer_count(self) -> int:
        return self.session.execute(select(func.count(CustomerModel.id))).scalar_one()

    # ------------------------------------------------------------------
    # Milk types
    # ------------------------------------------------------------------

    def get_milk_type(self, milk_type_id: RecordId) -> MilkType:
        """
        Raises:
            MilkTypeNotFoundError: no such milk type (active or not).
        """
        key = as_uuid(milk_type_id)
        row = self.session.get(MilkTypeModel, key) if key is not None else None
        if row is None:
            raise MilkTypeNotFoundError(milk_type_id)
        return row.to_dto()

    def list_milk_types(self, include_inactive: bool = False) -> list[MilkType]:
        stmt = select(MilkTypeModel).order_by(MilkTypeModel.name)
        if not include_inactive:
            stmt = stmt.where(MilkTypeModel.is_active.is_(True))
        return [r.to_dto() for r in self.session.execute(stmt).scalars()]

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    def get_delivery(self, delivery_id: RecordId) -> Delivery:
        key = as_uuid(delivery_id)
        row = self.session.get(DeliveryModel, key) if key is not None else None
        if row is None:
            raise DeliveryNotFoundError(delivery_id)
        return row.to_dto()

    def list_deliveries(self, customer_id: RecordId, period: DateRange) -> list[Delivery]:
        """Every delivery of ``customer_id`` inside ``period``, in billing order."""
        key = as_uuid(customer_id)
        if key is None:
            return []
        rows = self.session.execute(
            select(DeliveryModel)
            .where(
                DeliveryModel.customer_id == key,
                DeliveryModel.delivery_date >= period.start,
                DeliveryModel.delivery_date <= period.end,
            )
            .order_by(
                DeliveryModel.delivery_date,
                DeliveryModel.created_at,
                DeliveryModel.id,
            )
        ).scalars()
        return [r.to_dto() for r in rows]

    def deliveries_on(self, on_date: date) -> list[Delivery]:
        """All customers' deliveries on one day, newest first."""
        rows = self.session.execute(
            select(DeliveryModel)
            .where(DeliveryModel.delivery_date == on_date)
            .order_by(DeliveryModel.created_at.desc(), DeliveryModel.id)
        ).scalars()
        return [r.to_dto() for r in rows]

    def recent_deliveries(self, limit: int = 10) -> list[Delivery]:
        rows = self.session.execute(
            select(DeliveryModel)
            .order_by(DeliveryModel.delivery_date.desc(), DeliveryModel.created_at.desc())
            .limit(limit)
        ).scalars()
        return [r.to_dto() for r in rows]

    def delivery_count_for_customer(self, customer_id: RecordId) -> int:
        key = as_uuid(customer_id)
        if key is None:
            return 0
        return self.session.execute(
            select(func.count(DeliveryModel.id)).where(DeliveryModel.customer_id == key)
        ).scalar_one()
