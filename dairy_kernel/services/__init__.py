"""Kernel write services."""

from dairy_kernel.services.base import BaseService
from dairy_kernel.services.bill_service import BillService
from dairy_kernel.services.ledger_service import LedgerService
from dairy_kernel.services.sequence_service import (
    SequenceCounter,
    SequenceService,
    SequenceServiceGenerator,
    invoice_sequence_name,
)

__all__ = [
    "BaseService",
    "BillService",
    "LedgerService",
    "SequenceCounter",
    "SequenceService",
    "SequenceServiceGenerator",
    "invoice_sequence_name",
]
