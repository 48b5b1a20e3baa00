"""
Module: dairy_kernel.models.bill
Responsibility: ORM persistence for saved invoices (bills) and their lines.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.

Invariants enforced:
    - invoice_number is unique (uq_bill_invoice_number).
    - At most one bill per customer and period
      (uq_bill_customer_period on customer_id, start_date, end_date).
      This is the only guard against generating the same invoice twice.
    - Bill lines are owned by their bill and deleted with it.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dairy_kernel.db.base import Base, TrackedBase, UUIDString
from dairy_kernel.db.types import quantity_type
from dairy_kernel.domain.dtos import Bill, BillItem


class BillStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class BillModel(TrackedBase):

    __tablename__ = "bills"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_bill_invoice_number"),
        UniqueConstraint("customer_id", "start_date", "end_date", name="uq_bill_customer_period"),
        Index("idx_bill_customer", "customer_id"),
    )

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("customers.id"),
        nullable=False,
    )
    invoice_number: Mapped[str] = mapped_column(String(32), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    extra_total: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BillStatus.PENDING.value)
    generated_at: Mapped[datetime] = mapped_column(nullable=False)

    items: Mapped[list[BillItemModel]] = relationship(
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItemModel.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Bill {self.invoice_number} {self.start_date}..{self.end_date} status={self.status}>"

    def to_dto(self) -> Bill:
        """Convert ORM model to frozen domain DTO."""
        return Bill(
            id=self.id,
            customer_id=self.customer_id,
            invoice_number=self.invoice_number,
            start_date=self.start_date,
            end_date=self.end_date,
            subtotal=self.subtotal,
            extra_total=self.extra_total,
            total_amount=self.total_amount,
            status=self.status,
            generated_at=self.generated_at,
            items=tuple(item.to_dto() for item in self.items),
        )


class BillItemModel(Base):

    __tablename__ = "bill_items"

    __table_args__ = (
        Index("idx_bill_item_bill", "bill_id"),
    )

    bill_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Deleting a delivery later must not destroy the bill's history
    delivery_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("deliveries.id", ondelete="SET NULL"),
        nullable=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    line_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(quantity_type(), nullable=False)
    rate: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    bill: Mapped[BillModel] = relationship(back_populates="items")

    def to_dto(self) -> BillItem:
        return BillItem(
            delivery_id=self.delivery_id,
            kind=self.kind,
            line_date=self.line_date,
            description=self.description,
            quantity=self.quantity,
            rate=self.rate,
            amount=self.amount,
        )
