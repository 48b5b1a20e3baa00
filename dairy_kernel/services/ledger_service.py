"""
LedgerService -- write side of the ledger: customers, price list, deliveries.

Responsibility:
    Validates and persists ledger changes.  Recording a delivery snapshots
    the milk type's current name and rate onto the row, so later price
    changes never alter what a past delivery is billed at.  Editing a
    delivery keeps that snapshot and recomputes the total from it.

Architecture position:
    Kernel > Services.  Reads through LedgerSelector, writes ORM models,
    returns frozen DTOs.  Flushes only; the caller commits.

Failure modes:
    - ValidationError with per-field messages for bad form input.
    - DuplicateCustomerError / DuplicateMilkTypeError on unique clashes.
    - MilkTypeInactiveError when recording against a deactivated type.
    - CustomerHasDeliveriesError when deleting a customer that still has
      deliveries without ``cascade=True``.
    - *NotFoundError for unknown ids.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Any, Iterable
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dairy_kernel.domain.clock import Clock
from dairy_kernel.domain.dtos import Customer, Delivery, MilkType, RecordId
from dairy_kernel.domain.validation import (
    require_valid,
    validate_customer,
    validate_delivery,
    validate_milk_type,
)
from dairy_kernel.domain.values import as_calendar_date, to_money_amount
from dairy_kernel.exceptions import (
    CustomerHasDeliveriesError,
    CustomerNotFoundError,
    DeliveryNotFoundError,
    DuplicateCustomerError,
    DuplicateMilkTypeError,
    MilkTypeInactiveError,
    MilkTypeNotFoundError,
)
from dairy_kernel.logging_config import get_logger
from dairy_kernel.models.bill import BillModel
from dairy_kernel.models.customer import CustomerModel
from dairy_kernel.models.delivery import DeliveryModel
from dairy_kernel.models.milk_type import MilkTypeModel
from dairy_kernel.selectors.ledger_selector import LedgerSelector, as_uuid
from dairy_kernel.services.base import BaseService

logger = get_logger("services.ledger")

_UNSET: Any = object()


class LedgerService(BaseService[DeliveryModel]):
    """
    Service for ledger writes.

    Contract:
        Every public method validates its input, flushes within the
        caller's transaction and returns a DTO (or a count for deletes).
        ``created_at`` of new deliveries comes from the injected Clock,
        which is what orders same-day deliveries on an invoice.
    """

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock
        self._selector = LedgerSelector(session)

    # ------------------------------------------------------------------
    # Internal lookups returning ORM rows
    # ------------------------------------------------------------------

    def _customer_row(self, customer_id: RecordId) -> CustomerModel:
        key = as_uuid(customer_id)
        row = self.session.get(CustomerModel, key) if key is not None else None
        if row is None:
            raise CustomerNotFoundError(customer_id)
        return row

    def _milk_type_row(self, milk_type_id: RecordId) -> MilkTypeModel:
        key = as_uuid(milk_type_id)
        row = self.session.get(MilkTypeModel, key) if key is not None else None
        if row is None:
            raise MilkTypeNotFoundError(milk_type_id)
        return row

    def _delivery_row(self, delivery_id: RecordId) -> DeliveryModel:
        key = as_uuid(delivery_id)
        row = self.session.get(DeliveryModel, key) if key is not None else None
        if row is None:
            raise DeliveryNotFoundError(delivery_id)
        return row

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def create_customer(
        self,
        name: str,
        phone: str,
        address: str,
        preferred_milk_type_id: RecordId | None = None,
    ) -> Customer:
        """
        Add a customer.

        Raises:
            ValidationError: name/phone/address fail the form rules.
            DuplicateCustomerError: phone already belongs to a customer.
            MilkTypeNotFoundError: unknown preferred milk type.
        """
        require_valid("customer", validate_customer(name, phone, address))
        phone = phone.strip()
        if self._selector.find_customer_by_phone(phone) is not None:
            raise DuplicateCustomerError(phone)
        preferred = None
        if preferred_milk_type_id:
            preferred = self._milk_type_row(preferred_milk_type_id).id

        row = CustomerModel(
            id=uuid4(),
            name=name.strip(),
            phone=phone,
            address=address.strip(),
            preferred_milk_type_id=preferred,
            created_at=self._clock.now(),
        )
        try:
            with self._savepoint():
                self.session.add(row)
        except IntegrityError:
            raise DuplicateCustomerError(phone)

        logger.info("customer_created", extra={"customer_id": str(row.id)})
        return row.to_dto()

    def update_customer(
        self,
        customer_id: RecordId,
        *,
        name: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        preferred_milk_type_id: RecordId | None = _UNSET,
    ) -> Customer:
        """
        Edit a customer.  Omitted fields keep their value; pass
        ``preferred_milk_type_id=None`` to clear the preference.

        Raises:
            CustomerNotFoundError, ValidationError, DuplicateCustomerError.
        """
        row = self._customer_row(customer_id)
        new_name = row.name if name is None else name
        new_phone = row.phone if phone is None else phone
        new_address = row.address if address is None else address
        require_valid("customer", validate_customer(new_name, new_phone, new_address))

        new_phone = new_phone.strip()
        if new_phone != row.phone:
            other = self._selector.find_customer_by_phone(new_phone)
            if other is not None and str(other.id) != str(row.id):
                raise DuplicateCustomerError(new_phone)

        preferred = row.preferred_milk_type_id
        if preferred_milk_type_id is not _UNSET:
            preferred = (
                self._milk_type_row(preferred_milk_type_id).id if preferred_milk_type_id else None
            )
        try:
            with self._savepoint():
                row.name = new_name.strip()
                row.phone = new_phone
                row.address = new_address.strip()
                row.preferred_milk_type_id = preferred
                row.updated_at = self._clock.now()
        except IntegrityError:
            raise DuplicateCustomerError(new_phone)

        logger.info("customer_updated", extra={"customer_id": str(row.id)})
        return row.to_dto()

    def delete_customer(self, customer_id: RecordId, *, cascade: bool = False) -> int:
        """
        Delete a customer.

        With ``cascade=True`` the customer's deliveries and bills go too.

        Returns:
            Number of deliveries deleted along with the customer.

        Raises:
            CustomerNotFoundError: unknown id.
            CustomerHasDeliveriesError: deliveries exist and cascade is off.
        """
        row = self._customer_row(customer_id)
        delivery_count = self._selector.delivery_count_for_customer(row.id)
        if delivery_count and not cascade:
            raise CustomerHasDeliveriesError(customer_id, delivery_count)

        if cascade:
            for bill in self.session.execute(
                select(BillModel).where(BillModel.customer_id == row.id)
            ).scalars():
                self.session.delete(bill)
            self.session.flush()
            self.session.execute(delete(DeliveryModel).where(DeliveryModel.customer_id == row.id))

        self.session.delete(row)
        self.session.flush()
        logger.info(
            "customer_deleted",
            extra={
                "customer_id": str(row.id),
                "cascade": cascade,
                "deliveries_deleted": delivery_count if cascade else 0,
            },
        )
        return delivery_count if cascade else 0

    # ------------------------------------------------------------------
    # Milk types
    # ------------------------------------------------------------------

    def create_milk_type(
        self,
        name: str,
        rate_per_unit: Decimal | str | int,
        description: str | None = None,
    ) -> MilkType:
        """
        Add a price-list entry.

        Raises:
            ValidationError: name too short or rate not a positive 2-place amount.
            DuplicateMilkTypeError: name already used (active or not).
        """
        require_valid("milk_type", validate_milk_type(name, rate_per_unit))
        name = name.strip()
        exists = self.session.execute(
            select(MilkTypeModel.id).where(MilkTypeModel.name == name)
        ).first()
        if exists is not None:
            raise DuplicateMilkTypeError(name)

        row = MilkTypeModel(
            id=uuid4(),
            name=name,
            rate_per_unit=to_money_amount(rate_per_unit, "rate_per_unit"),
            is_active=True,
            description=description,
            created_at=self._clock.now(),
        )
        try:
            with self._savepoint():
                self.session.add(row)
        except IntegrityError:
            raise DuplicateMilkTypeError(name)

        logger.info(
            "milk_type_created",
            extra={"milk_type_id": str(row.id), "rate_per_unit": str(row.rate_per_unit)},
        )
        return row.to_dto()

    def change_rate(self, milk_type_id: RecordId, new_rate: Decimal | str | int) -> MilkType:
        """
        Set a new price.  Existing deliveries keep their snapshot rate.

        Raises:
            MilkTypeNotFoundError, ValidationError.
        """
        row = self._milk_type_row(milk_type_id)
        require_valid("milk_type", validate_milk_type(row.name, new_rate))
        old_rate = row.rate_per_unit
        row.rate_per_unit = to_money_amount(new_rate, "rate_per_unit")
        row.updated_at = self._clock.now()
        self.session.flush()
        logger.info(
            "milk_type_rate_changed",
            extra={
                "milk_type_id": str(row.id),
                "old_rate": str(old_rate),
                "new_rate": str(row.rate_per_unit),
            },
        )
        return row.to_dto()

    def update_milk_type(
        self,
        milk_type_id: RecordId,
        *,
        name: str | None = None,
        description: str | None = _UNSET,
        rate_per_unit: Decimal | str | int | None = None,
    ) -> MilkType:
        """
        Edit a price-list entry.  Omitted fields keep their value; pass
        ``description=None`` to clear it.  A new rate goes through
        ``change_rate``, so past deliveries keep their snapshots, names
        included.

        Raises:
            MilkTypeNotFoundError, ValidationError, DuplicateMilkTypeError.
        """
        row = self._milk_type_row(milk_type_id)
        new_name = row.name if name is None else name
        new_rate = row.rate_per_unit if rate_per_unit is None else rate_per_unit
        require_valid("milk_type", validate_milk_type(new_name, new_rate))

        new_name = new_name.strip()
        if new_name != row.name:
            clash = self.session.execute(
                select(MilkTypeModel.id).where(
                    MilkTypeModel.name == new_name, MilkTypeModel.id != row.id
                )
            ).first()
            if clash is not None:
                raise DuplicateMilkTypeError(new_name)
        try:
            with self._savepoint():
                row.name = new_name
                if description is not _UNSET:
                    row.description = description
                row.updated_at = self._clock.now()
        except IntegrityError:
            raise DuplicateMilkTypeError(new_name)

        logger.info("milk_type_updated", extra={"milk_type_id": str(row.id)})
        if rate_per_unit is not None:
            return self.change_rate(row.id, rate_per_unit)
        return row.to_dto()

    def deactivate_milk_type(self, milk_type_id: RecordId) -> MilkType:
        """Soft-delete: hide from the active list and refuse new deliveries."""
        row = self._milk_type_row(milk_type_id)
        if row.is_active:
            row.is_active = False
            row.updated_at = self._clock.now()
            self.session.flush()
            logger.info("milk_type_deactivated", extra={"milk_type_id": str(row.id)})
        return row.to_dto()

    def seed_default_milk_types(
        self,
        seeds: Iterable[tuple[str, Decimal | str, str | None]],
    ) -> list[MilkType]:
        """
        Populate an empty price list from ``seeds`` (name, rate, description),
        normally ``BillingConfig.default_milk_types``.

        Does nothing when any milk type (active or not) already exists.

        Returns:
            The milk types created, in seed order.
        """
        if self.session.execute(select(MilkTypeModel.id).limit(1)).first() is not None:
            return []
        created = [self.create_milk_type(name, rate, description) for name, rate, description in seeds]
        logger.info("milk_types_seeded", extra={"count": len(created)})
        return created

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    def record_delivery(
        self,
        customer_id: RecordId,
        milk_type_id: RecordId,
        quantity: Decimal | str | int,
        delivery_date: date | str,
        *,
        extra_item: str | None = None,
        extra_amount: Decimal | str | int | None = None,
        delivery_time: time | None = None,
    ) -> Delivery:
        """
        Record a delivery at the milk type's current rate.

        Raises:
            ValidationError: missing ids, non-positive quantity, negative extra.
            CustomerNotFoundError, MilkTypeNotFoundError.
            MilkTypeInactiveError: the milk type has been deactivated.
        """
        require_valid(
            "delivery",
            validate_delivery(customer_id, milk_type_id, quantity, extra_amount),
        )
        customer = self._customer_row(customer_id)
        milk_type_row = self._milk_type_row(milk_type_id)
        if not milk_type_row.is_active:
            raise MilkTypeInactiveError(milk_type_id)

        now = self._clock.now()
        dto = Delivery.record(
            id=uuid4(),
            customer_id=customer.id,
            milk_type=milk_type_row.to_dto(),
            quantity=quantity,
            delivery_date=as_calendar_date(delivery_date, "delivery_date"),
            created_at=now,
            extra_item=extra_item,
            extra_amount=extra_amount if extra_amount not in (None, "") else Decimal("0"),
            delivery_time=delivery_time,
        )
        row = DeliveryModel.from_dto(dto)
        self.session.add(row)
        self.session.flush()

        logger.info(
            "delivery_recorded",
            extra={
                "delivery_id": str(row.id),
                "customer_id": str(customer.id),
                "milk_type": dto.milk_type_name,
                "quantity": str(dto.quantity),
                "rate_per_unit": str(dto.rate_per_unit),
                "total_amount": str(dto.total_amount),
                "delivery_date": dto.delivery_date.isoformat(),
            },
        )
        return dto

    def update_delivery(
        self,
        delivery_id: RecordId,
        *,
        quantity: Decimal | str | int | None = None,
        extra_item: str | None = None,
        extra_amount: Decimal | str | int | None = None,
        delivery_date: date | str | None = None,
        delivery_time: time | None = _UNSET,
    ) -> Delivery:
        """
        Correct a recorded delivery.

        Omitted fields keep their value; ``extra_item=""`` clears the item
        text.  The snapshot milk type name and rate are never touched, so
        the edited delivery is still billed at the rate it was recorded at,
        and ``total_amount`` is recomputed from that rate.

        Raises:
            DeliveryNotFoundError: unknown id.
            ValidationError: non-positive quantity or negative extra.
        """
        row = self._delivery_row(delivery_id)
        current = row.to_dto()
        new_quantity = current.quantity if quantity is None else quantity
        new_extra = current.extra_amount if extra_amount in (None, "") else extra_amount
        require_valid(
            "delivery",
            validate_delivery(current.customer_id, current.milk_type_id, new_quantity, new_extra),
        )

        snapshot = MilkType(
            id=current.milk_type_id,
            name=current.milk_type_name,
            rate_per_unit=current.rate_per_unit,
        )
        revised = Delivery.record(
            id=current.id,
            customer_id=current.customer_id,
            milk_type=snapshot,
            quantity=new_quantity,
            delivery_date=(
                current.delivery_date
                if delivery_date is None
                else as_calendar_date(delivery_date, "delivery_date")
            ),
            created_at=current.created_at,
            extra_item=current.extra_item if extra_item is None else extra_item,
            extra_amount=new_extra,
            delivery_time=current.delivery_time if delivery_time is _UNSET else delivery_time,
        )

        row.quantity = revised.quantity
        row.extra_item = revised.extra_item
        row.extra_amount = revised.extra_amount
        row.total_amount = revised.total_amount
        row.delivery_date = revised.delivery_date
        row.delivery_time = revised.delivery_time
        row.updated_at = self._clock.now()
        self.session.flush()

        logger.info(
            "delivery_updated",
            extra={
                "delivery_id": str(row.id),
                "customer_id": str(row.customer_id),
                "quantity": str(revised.quantity),
                "rate_per_unit": str(revised.rate_per_unit),
                "old_total_amount": str(current.total_amount),
                "total_amount": str(revised.total_amount),
            },
        )
        return revised

    def delete_delivery(self, delivery_id: RecordId) -> None:
        """
        Raises:
            DeliveryNotFoundError: unknown id.
        """
        row = self._delivery_row(delivery_id)
        key = row.id
        self.session.delete(row)
        self.session.flush()
        logger.info("delivery_deleted", extra={"delivery_id": str(key)})


__all__ = ["LedgerService"]
