"""
Module: dairy_kernel.models.delivery
Responsibility: ORM persistence for deliveries, one row per customer per
    drop-off.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.

Invariants enforced:
    - milk_type_name and rate_per_unit are snapshots taken when the row is
      written; nothing updates them afterwards.
    - quantity > 0, rate_per_unit > 0, extra_amount >= 0 (check constraints).
    - total_amount == round2(quantity * rate_per_unit) + extra_amount is
      re-checked by the Delivery DTO on every load (to_dto).

Failure modes:
    - DeliveryIntegrityError from to_dto() when a stored total has been
      edited out from under its quantity and rate.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from dairy_kernel.db.base import TrackedBase, UUIDString
from dairy_kernel.db.types import quantity_type
from dairy_kernel.domain.dtos import Delivery


class DeliveryModel(TrackedBase):

    __tablename__ = "deliveries"

    __table_args__ = (
        Index("idx_delivery_customer_date", "customer_id", "delivery_date"),
        Index("idx_delivery_date", "delivery_date"),
        CheckConstraint("quantity > 0", name="ck_delivery_quantity_positive"),
        CheckConstraint("rate_per_unit > 0", name="ck_delivery_rate_positive"),
        CheckConstraint("extra_amount >= 0", name="ck_delivery_extra_non_negative"),
    )

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("customers.id"),
        nullable=False,
    )
    milk_type_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("milk_types.id"),
        nullable=False,
    )

    # Snapshots of the milk type at recording time
    milk_type_name: Mapped[str] = mapped_column(String(50), nullable=False)
    rate_per_unit: Mapped[Decimal] = mapped_column(nullable=False)

    quantity: Mapped[Decimal] = mapped_column(quantity_type(), nullable=False)
    extra_item: Mapped[str | None] = mapped_column(String(100), nullable=True)
    extra_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Delivery {self.delivery_date} {self.milk_type_name} "
            f"{self.quantity} total={self.total_amount}>"
        )

    def to_dto(self) -> Delivery:
        """Convert ORM model to frozen domain DTO."""
        return Delivery(
            id=self.id,
            customer_id=self.customer_id,
            milk_type_id=self.milk_type_id,
            milk_type_name=self.milk_type_name,
            quantity=self.quantity,
            rate_per_unit=self.rate_per_unit,
            total_amount=self.total_amount,
            delivery_date=self.delivery_date,
            created_at=self.created_at,
            extra_item=self.extra_item,
            extra_amount=self.extra_amount,
            delivery_time=self.delivery_time,
        )

    @classmethod
    def from_dto(cls, dto: Delivery) -> DeliveryModel:
        """Create ORM model from domain DTO."""
        return cls(
            id=dto.id if isinstance(dto.id, UUID) else UUID(str(dto.id)),
            customer_id=dto.customer_id,
            milk_type_id=dto.milk_type_id,
            milk_type_name=dto.milk_type_name,
            quantity=dto.quantity,
            rate_per_unit=dto.rate_per_unit,
            extra_item=dto.extra_item,
            extra_amount=dto.extra_amount,
            total_amount=dto.total_amount,
            delivery_date=dto.delivery_date,
            delivery_time=dto.delivery_time,
            created_at=dto.created_at,
        )
