"""Read-only selectors over the ledger tables."""

from dairy_kernel.selectors.base import BaseSelector
from dairy_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["BaseSelector", "LedgerSelector"]
