"""
Module: dairy_kernel.models.milk_type
Responsibility: ORM persistence for the milk-type price list.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.

Invariants enforced:
    - name is unique (uq_milk_type_name).
    - rate_per_unit > 0 (ck_milk_type_rate_positive).
    - Rows are soft-deleted via is_active; deliveries keep their own
      snapshot of name and rate, so price changes never touch them.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dairy_kernel.db.base import TrackedBase
from dairy_kernel.domain.dtos import MilkType


class MilkTypeModel(TrackedBase):

    __tablename__ = "milk_types"

    __table_args__ = (
        UniqueConstraint("name", name="uq_milk_type_name"),
        CheckConstraint("rate_per_unit > 0", name="ck_milk_type_rate_positive"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    rate_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<MilkType {self.name} @{self.rate_per_unit} active={self.is_active}>"

    def to_dto(self) -> MilkType:
        """Convert ORM model to frozen domain DTO."""
        return MilkType(
            id=self.id,
            name=self.name,
            rate_per_unit=self.rate_per_unit,
            is_active=self.is_active,
            description=self.description,
        )
