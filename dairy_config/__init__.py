"""
dairy_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way services obtain settings.  No
    other component reads configuration files or environment variables.

Architecture position:
    Sits above ``dairy_kernel`` and beside ``dairy_services``.  The kernel
    and the engines MUST NEVER import from ``dairy_config``; services pass
    the values they need down as plain arguments.

Audit relevance:
    Every successful call emits a ``DAIRY_CONFIG_TRACE`` log entry with the
    checksum of the merged configuration, so a generated invoice can be
    tied back to the settings that produced it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from dairy_config.loader import compute_checksum, merge_sources
from dairy_config.schema import BillingConfig, MilkTypeSeed

_logger = logging.getLogger("dairy_kernel.config")


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BillingConfig:
    """
    Load and validate the active configuration.

    Args:
        path: Override file laid over the packaged defaults.  When omitted,
            ``DAIRY_CONFIG_PATH`` is consulted.
        environ: Environment mapping, ``os.environ`` by default.

    Raises:
        FileNotFoundError: override file missing.
        ValueError: unknown keys or invalid values.
    """
    env = os.environ if environ is None else environ
    data = merge_sources(Path(path) if path is not None else None, env)
    checksum = compute_checksum(data)
    config = BillingConfig.from_dict(data, checksum=checksum)

    _logger.info(
        "DAIRY_CONFIG_TRACE",
        extra={
            "trace_type": "DAIRY_CONFIG_TRACE",
            "checksum": checksum,
            "currency": config.currency,
            "number_strategy": config.number_strategy,
            "utc_offset_minutes": config.utc_offset_minutes,
            "milk_type_seed_count": len(config.default_milk_types),
        },
    )
    return config


__all__ = ["BillingConfig", "MilkTypeSeed", "get_active_config"]
