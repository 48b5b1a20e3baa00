"""
Billing configuration schema.

Frozen dataclasses that the loader builds from YAML.  Validation happens in
``__post_init__`` so that an invalid value fails at load time with a
``ValueError`` naming the key, never later inside a billing run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

NUMBER_STRATEGIES = ("sequence", "random")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MilkTypeSeed:
    """One entry of the starter price list."""

    name: str
    rate_per_unit: Decimal
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or len(self.name.strip()) < 2:
            raise ValueError(f"default_milk_types: invalid name {self.name!r}")
        try:
            rate = Decimal(str(self.rate_per_unit))
        except InvalidOperation:
            raise ValueError(f"default_milk_types: invalid rate {self.rate_per_unit!r}")
        if not rate.is_finite() or rate <= 0:
            raise ValueError(f"default_milk_types: rate must be positive, got {self.rate_per_unit!r}")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "rate_per_unit", rate)

    def as_tuple(self) -> tuple[str, Decimal, str | None]:
        return (self.name, self.rate_per_unit, self.description)


@dataclass(frozen=True)
class BillingConfig:
    """
    Runtime settings for billing and persistence.

    Attributes:
        currency: ISO code for all amounts (single-currency ledger)
        quantity_unit: Unit shown after quantities on invoice lines
        invoice_prefix: First segment of invoice numbers
        number_strategy: ``sequence`` (monotonic per day) or ``random``
            (collision-checked random suffix)
        random_max_attempts: Retries before the random strategy gives up
        utc_offset_minutes: Offset of the business's local day from UTC,
            used to decide what "today" is for period presets and invoice
            dates
        database_url: SQLAlchemy URL
        log_level: Root level for the dairy_kernel logger
        default_milk_types: Price list seeded into an empty database
        checksum: SHA-256 of the merged source data, set by the loader
    """

    currency: str = "INR"
    quantity_unit: str = "L"
    invoice_prefix: str = "INV"
    number_strategy: str = "sequence"
    random_max_attempts: int = 20
    utc_offset_minutes: int = 330
    database_url: str = "sqlite:///dairy.db"
    log_level: str = "INFO"
    default_milk_types: tuple[MilkTypeSeed, ...] = ()
    checksum: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        code = str(self.currency).upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"currency must be a 3-letter code, got {self.currency!r}")
        object.__setattr__(self, "currency", code)

        prefix = str(self.invoice_prefix)
        if not prefix or not prefix[0].isalpha() or not prefix.isalnum() or prefix != prefix.upper():
            raise ValueError(f"invoice_prefix must be upper-case alphanumeric, got {self.invoice_prefix!r}")
        if self.number_strategy not in NUMBER_STRATEGIES:
            raise ValueError(
                f"number_strategy must be one of {NUMBER_STRATEGIES}, got {self.number_strategy!r}"
            )
        if not isinstance(self.random_max_attempts, int) or self.random_max_attempts < 1:
            raise ValueError(f"random_max_attempts must be a positive integer, got {self.random_max_attempts!r}")
        if not isinstance(self.utc_offset_minutes, int) or not -14 * 60 <= self.utc_offset_minutes <= 14 * 60:
            raise ValueError(f"utc_offset_minutes out of range: {self.utc_offset_minutes!r}")
        if not self.database_url:
            raise ValueError("database_url is required")
        level = str(self.log_level).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", level)
        names = [seed.name for seed in self.default_milk_types]
        if len(names) != len(set(names)):
            raise ValueError("default_milk_types contains duplicate names")

    @property
    def business_timezone(self) -> timezone:
        return timezone(timedelta(minutes=self.utc_offset_minutes))

    @classmethod
    def from_dict(cls, data: dict[str, Any], checksum: str = "") -> BillingConfig:
        """
        Build from a parsed YAML mapping.

        Raises:
            ValueError: unknown keys or invalid values.
        """
        known = {f for f in cls.__dataclass_fields__ if f != "checksum"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        seeds = values.pop("default_milk_types", None) or []
        if not isinstance(seeds, list):
            raise ValueError("default_milk_types must be a list")
        values["default_milk_types"] = tuple(
            MilkTypeSeed(
                name=seed.get("name"),
                rate_per_unit=seed.get("rate_per_unit"),
                description=seed.get("description"),
            )
            for seed in seeds
        )
        return cls(**values, checksum=checksum)
