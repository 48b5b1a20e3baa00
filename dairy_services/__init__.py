"""
Module: dairy_services
Responsibility:
    Orchestration over the kernel and the engines: the storage-agnostic
    LedgerStore interface with its in-memory and SQL adapters, and the
    InvoiceService billing workflow.
"""

from dairy_services.bootstrap import bootstrap
from dairy_services.dashboard_service import DashboardService
from dairy_services.invoice_service import InvoiceService, build_number_generator
from dairy_services.ledger_store import InMemoryLedgerStore, LedgerStore, SqlLedgerStore

__all__ = [
    "DashboardService",
    "InMemoryLedgerStore",
    "InvoiceService",
    "LedgerStore",
    "SqlLedgerStore",
    "bootstrap",
    "build_number_generator",
]
