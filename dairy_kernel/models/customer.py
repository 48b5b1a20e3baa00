"""
Module: dairy_kernel.models.customer
Responsibility: ORM persistence for customers, the households and shops that
    receive deliveries.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - phone is unique across customers (uq_customer_phone).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dairy_kernel.db.base import TrackedBase, UUIDString
from dairy_kernel.domain.dtos import Customer


class CustomerModel(TrackedBase):
    """A customer row. Deleting one is refused while deliveries reference it."""

    __tablename__ = "customers"

    __table_args__ = (
        UniqueConstraint("phone", name="uq_customer_phone"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    preferred_milk_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("milk_types.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Customer {self.name} {self.phone}>"

    def to_dto(self) -> Customer:
        """Convert ORM model to frozen domain DTO."""
        return Customer(
            id=self.id,
            name=self.name,
            phone=self.phone,
            address=self.address,
            preferred_milk_type_id=self.preferred_milk_type_id,
        )
