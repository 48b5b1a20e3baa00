"""ORM models for the dairy ledger."""

from dairy_kernel.models.bill import BillItemModel, BillModel, BillStatus
from dairy_kernel.models.customer import CustomerModel
from dairy_kernel.models.delivery import DeliveryModel
from dairy_kernel.models.milk_type import MilkTypeModel

__all__ = [
    "BillItemModel",
    "BillModel",
    "BillStatus",
    "CustomerModel",
    "DeliveryModel",
    "MilkTypeModel",
]
