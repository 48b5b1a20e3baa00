"""
BillService -- persistence of generated invoices.

Responsibility:
    Saves an Invoice snapshot as a bill with its lines, and reads saved
    bills back.  The unique constraints on the bills table are the only
    protection against billing the same customer and period twice, or
    reusing an invoice number; both are mapped to typed errors here.

Architecture position:
    Kernel > Services.  Accepts the engine's Invoice by duck type (it only
    reads attributes) so the kernel does not import dairy_engines.

Failure modes:
    - DuplicateBillError: a bill already exists for the customer and period.
    - InvoiceNumberCollisionError: the invoice number is already stored.
    - BillNotFoundError: get_bill on an unknown number.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from dairy_kernel.domain.dtos import Bill, RecordId
from dairy_kernel.exceptions import (
    BillNotFoundError,
    DuplicateBillError,
    InvalidInputError,
    InvoiceNumberCollisionError,
)
from dairy_kernel.logging_config import get_logger
from dairy_kernel.models.bill import BillItemModel, BillModel, BillStatus
from dairy_kernel.selectors.ledger_selector import as_uuid
from dairy_kernel.services.base import BaseService

logger = get_logger("services.bill")


class BillService(BaseService[BillModel]):
    """Service for saving and reading bills."""

    def _existing_for_period(self, customer_id, start_date, end_date) -> BillModel | None:
        return self.session.execute(
            select(BillModel).where(
                BillModel.customer_id == customer_id,
                BillModel.start_date == start_date,
                BillModel.end_date == end_date,
            )
        ).scalar_one_or_none()

    def invoice_number_taken(self, invoice_number: str) -> bool:
        return self.session.execute(
            select(BillModel.id).where(BillModel.invoice_number == invoice_number)
        ).first() is not None

    def save_invoice(self, invoice: Any, status: str = BillStatus.PENDING.value) -> Bill:
        """
        Persist ``invoice`` as a bill.

        Args:
            invoice: An Invoice from the invoice builder.
            status: Initial status, ``pending`` unless told otherwise.

        Raises:
            DuplicateBillError, InvoiceNumberCollisionError, InvalidInputError.
        """
        try:
            status = BillStatus(status).value
        except ValueError:
            raise InvalidInputError("status", status, "unknown bill status")

        customer_id = as_uuid(invoice.customer.id)
        if customer_id is None:
            raise InvalidInputError("customer_id", invoice.customer.id, "not a stored customer id")
        period = invoice.period

        existing = self._existing_for_period(customer_id, period.start, period.end)
        if existing is not None:
            raise DuplicateBillError(customer_id, period.start, period.end, existing.invoice_number)
        if self.invoice_number_taken(invoice.invoice_number):
            raise InvoiceNumberCollisionError(invoice.invoice_number)

        bill = BillModel(
            id=uuid4(),
            customer_id=customer_id,
            invoice_number=invoice.invoice_number,
            start_date=period.start,
            end_date=period.end,
            subtotal=invoice.subtotal.amount,
            extra_total=invoice.extras_total.amount,
            total_amount=invoice.grand_total.amount,
            status=status,
            generated_at=invoice.generated_at,
            created_at=invoice.generated_at,
            items=[
                BillItemModel(
                    position=position,
                    delivery_id=as_uuid(line.delivery_id),
                    kind=line.kind.value,
                    line_date=line.line_date,
                    description=line.description,
                    quantity=line.quantity,
                    rate=line.unit_rate,
                    amount=line.amount,
                )
                for position, line in enumerate(invoice.line_items, start=1)
            ],
        )

        try:
            with self._savepoint():
                self.session.add(bill)
        except IntegrityError:
            # Lost a race with another session; report what it stored
            existing = self._existing_for_period(customer_id, period.start, period.end)
            logger.warning(
                "bill_insert_conflict",
                extra={"invoice_number": invoice.invoice_number, "customer_id": str(customer_id)},
            )
            if existing is not None:
                raise DuplicateBillError(customer_id, period.start, period.end, existing.invoice_number)
            raise InvoiceNumberCollisionError(invoice.invoice_number)

        logger.info(
            "bill_saved",
            extra={
                "invoice_number": bill.invoice_number,
                "customer_id": str(customer_id),
                "total_amount": str(bill.total_amount),
                "line_count": len(bill.items),
            },
        )
        return bill.to_dto()

    def get_bill(self, invoice_number: str) -> Bill:
        """
        Raises:
            BillNotFoundError: no bill with that number.
        """
        bill = self.session.execute(
            select(BillModel).where(BillModel.invoice_number == invoice_number)
        ).scalar_one_or_none()
        if bill is None:
            raise BillNotFoundError(invoice_number)
        return bill.to_dto()

    def list_bills(self, customer_id: RecordId | None = None) -> list[Bill]:
        """Saved bills, newest period first; optionally for one customer."""
        stmt = select(BillModel).order_by(BillModel.start_date.desc(), BillModel.invoice_number)
        if customer_id is not None:
            key = as_uuid(customer_id)
            if key is None:
                return []
            stmt = stmt.where(BillModel.customer_id == key)
        return [b.to_dto() for b in self.session.execute(stmt).scalars()]
