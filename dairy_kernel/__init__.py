"""
Dairy Kernel - billing ledger for a milk delivery retailer.

Provides:
- Typed errors with machine-readable codes
- Structured JSON logging
- Decimal money and snapshot-priced delivery records
- SQLAlchemy persistence for customers, milk types, deliveries and bills
"""

__version__ = "0.1.0"
