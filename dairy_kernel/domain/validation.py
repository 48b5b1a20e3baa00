"""
Form validation for ledger entries.

Pure checks with no I/O. Each ``validate_*`` function returns a list of
``{"field", "message"}`` dicts (empty when valid); the ``require_*``
wrappers raise ValidationError carrying that list. The messages are the
ones shown next to the form fields.
"""

from __future__ import annotations

import re
from typing import Any

from dairy_kernel.domain.values import to_money_amount, to_quantity
from dairy_kernel.exceptions import InvalidInputError, ValidationError

# 10 digits, first digit 6-9
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")

MIN_NAME_LENGTH = 2
MIN_ADDRESS_LENGTH = 5


def _error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def validate_customer(name: Any, phone: Any, address: Any) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        errors.append(_error("name", "Name must be at least 2 characters"))
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone.strip()):
        errors.append(_error("phone", "Please enter valid 10-digit phone number"))
    if not isinstance(address, str) or len(address.strip()) < MIN_ADDRESS_LENGTH:
        errors.append(_error("address", "Address must be at least 5 characters"))
    return errors


def validate_milk_type(name: Any, rate_per_unit: Any) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        errors.append(_error("name", "Milk type name must be at least 2 characters"))
    try:
        rate = to_money_amount(rate_per_unit, "rate_per_unit")
    except InvalidInputError as e:
        errors.append(_error("rate_per_unit", f"Rate {e.reason}"))
    else:
        if rate <= 0:
            errors.append(_error("rate_per_unit", "Rate must be greater than 0"))
    return errors


def validate_delivery(
    customer_id: Any,
    milk_type_id: Any,
    quantity: Any,
    extra_amount: Any,
) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    if not customer_id:
        errors.append(_error("customer_id", "Please select a customer"))
    if not milk_type_id:
        errors.append(_error("milk_type_id", "Please select milk type"))
    try:
        if to_quantity(quantity, "quantity") <= 0:
            errors.append(_error("quantity", "Please enter valid quantity"))
    except InvalidInputError:
        errors.append(_error("quantity", "Please enter valid quantity"))
    if extra_amount not in (None, ""):
        try:
            if to_money_amount(extra_amount, "extra_amount") < 0:
                errors.append(_error("extra_amount", "Extra amount cannot be negative"))
        except InvalidInputError as e:
            errors.append(_error("extra_amount", f"Extra amount {e.reason}"))
    return errors


def require_valid(entity: str, errors: list[dict[str, str]]) -> None:
    """Raise ValidationError if ``errors`` is non-empty."""
    if errors:
        raise ValidationError(entity, errors)
