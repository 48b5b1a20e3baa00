"""
Module: dairy_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    billing engines: pricing, period aggregation, invoice building, period
    presets and the daily summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import dairy_kernel.domain and dairy_kernel.exceptions (and
    sibling engine modules). MUST NOT import dairy_services, dairy_config,
    the database layer or sqlalchemy.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
      Timestamps and "today" are passed in by the services.
    - Decimal-only arithmetic, ROUND_HALF_UP to the cent.
    - Determinism: identical inputs always produce identical outputs.
    - No logging. Services log around engine calls.
"""

from dairy_engines.aggregation import (
    AggregationResult,
    EmptyPeriod,
    aggregate,
    select_deliveries,
)
from dairy_engines.invoice import (
    CustomerSnapshot,
    DailySequenceGenerator,
    Invoice,
    LineItem,
    LineKind,
    NumberGenerator,
    RandomSuffixGenerator,
    build_invoice,
    expand_line_items,
    format_invoice_number,
    parse_invoice_number,
)
from dairy_engines.periods import PeriodPreset, month_bounds, resolve_period
from dairy_engines.pricing import (
    compute_delivery_total,
    compute_line_amount,
    delivery_milk_amount,
)
from dairy_engines.summary import DailySummary, summarize_day

__all__ = [
    "AggregationResult",
    "CustomerSnapshot",
    "DailySequenceGenerator",
    "DailySummary",
    "EmptyPeriod",
    "Invoice",
    "LineItem",
    "LineKind",
    "NumberGenerator",
    "PeriodPreset",
    "RandomSuffixGenerator",
    "aggregate",
    "build_invoice",
    "compute_delivery_total",
    "compute_line_amount",
    "delivery_milk_amount",
    "expand_line_items",
    "format_invoice_number",
    "month_bounds",
    "parse_invoice_number",
    "resolve_period",
    "select_deliveries",
    "summarize_day",
]
