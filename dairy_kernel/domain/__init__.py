"""
Domain layer - pure value objects, ledger DTOs, validation and clock.

Nothing in this package performs I/O or imports the database layer.
"""

from dairy_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from dairy_kernel.domain.dtos import Customer, Delivery, MilkType
from dairy_kernel.domain.values import DateRange, Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Customer",
    "Delivery",
    "MilkType",
    "DateRange",
    "Money",
]
