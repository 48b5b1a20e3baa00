"""
Startup wiring: logging, engine, schema and the starter price list.

Usage:
    config = get_active_config()
    bootstrap(config, SystemClock())
    with session_scope() as session:
        ...
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from dairy_config.schema import BillingConfig
from dairy_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from dairy_kernel.domain.clock import Clock
from dairy_kernel.logging_config import configure_logging, get_logger
from dairy_kernel.services.ledger_service import LedgerService

logger = get_logger("services.bootstrap")


def bootstrap(config: BillingConfig, clock: Clock, *, seed: bool = True) -> Engine:
    """
    Initialize logging and the database for ``config``.

    Creates missing tables and, when ``seed`` is set and the price list is
    empty, inserts ``config.default_milk_types``.
    """
    configure_logging(level=config.log_level)
    engine = init_engine_from_url(config.database_url)
    create_tables(engine)
    if seed and config.default_milk_types:
        with session_scope() as session:
            created = LedgerService(session, clock).seed_default_milk_types(
                [s.as_tuple() for s in config.default_milk_types]
            )
        logger.info("bootstrap_completed", extra={"seeded_milk_types": len(created)})
    return engine
