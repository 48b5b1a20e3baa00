"""
Typed Exception Hierarchy for the Dairy Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the invoice screen, a batch job, a test) must be able to tell a bad
quantity from a missing customer from an empty billing period without
parsing message strings. Every error therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example:
    try:
        invoice = invoice_service.generate_invoice(customer_id, start, end)
    except EmptyPeriodError as e:
        warn_user(f"No deliveries between {e.start_date} and {e.end_date}")
    except CustomerNotFoundError as e:
        api_response(code=e.code, customer_id=e.customer_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DairyKernelError (base)
    |
    +-- InvalidInputError
    |   +-- InvalidDateRangeError
    |   +-- PrecisionLossError
    |   +-- AmountOverflowError
    |   +-- DeliveryIntegrityError
    |   +-- ValidationError
    |   +-- MilkTypeInactiveError
    |
    +-- NotFoundError
    |   +-- CustomerNotFoundError
    |   +-- MilkTypeNotFoundError
    |   +-- DeliveryNotFoundError
    |   +-- BillNotFoundError
    |
    +-- EmptyPeriodError
    |
    +-- InvoiceError
    |   +-- InvoiceNumberExhaustedError
    |   +-- InvoiceNumberCollisionError
    |   +-- DuplicateBillError
    |
    +-- LedgerError
        +-- DuplicateCustomerError
        +-- DuplicateMilkTypeError
        +-- CustomerHasDeliveriesError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                       | When Raised
-----------|----------------------------|-------------------------------------------
Input      | INVALID_INPUT              | Non-positive quantity/rate, negative extra
           | INVALID_DATE_RANGE         | start_date > end_date
           | PRECISION_LOSS             | Value finer than the fixed precision
           | AMOUNT_OVERFLOW            | Value beyond the money column bound
           | DELIVERY_INTEGRITY         | total != round2(qty * rate) + extra
           | VALIDATION_FAILED          | Customer/milk type form fields invalid
           | MILK_TYPE_INACTIVE         | New delivery against a retired milk type
-----------|----------------------------|-------------------------------------------
Lookup     | CUSTOMER_NOT_FOUND         | Customer id doesn't exist
           | MILK_TYPE_NOT_FOUND        | Milk type id doesn't exist
           | DELIVERY_NOT_FOUND         | Delivery id doesn't exist
           | BILL_NOT_FOUND             | Invoice number not saved
-----------|----------------------------|-------------------------------------------
Billing    | EMPTY_PERIOD               | No deliveries in the requested period
           | INVOICE_NUMBER_EXHAUSTED   | No free disambiguator left for the day
           | INVOICE_NUMBER_COLLISION   | Invoice number already saved
           | DUPLICATE_BILL             | Bill exists for customer + period
-----------|----------------------------|-------------------------------------------
Ledger     | DUPLICATE_CUSTOMER         | Phone number already registered
           | DUPLICATE_MILK_TYPE        | Milk type name already exists
           | CUSTOMER_HAS_DELIVERIES    | Delete without cascade, deliveries exist

===============================================================================
DESIGN DECISIONS
===============================================================================

1. EmptyPeriodError is raised by the invoice builder only. The aggregator
   returns an EmptyPeriod result instead, so a preview of an empty month is
   not an exception.

2. Money is rejected rather than truncated. A rate of 55.555 or an amount
   past the column bound raises instead of being silently rounded into
   storage.
===============================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dairy_engines.aggregation import EmptyPeriod


class DairyKernelError(Exception):
    """
    Base exception for all dairy kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DAIRY_KERNEL_ERROR"


# Input exceptions


class InvalidInputError(DairyKernelError):
    """Malformed numeric or date input. Always local and recoverable."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        if value is None:
            super().__init__(f"Invalid {field}: {reason}")
        else:
            super().__init__(f"Invalid {field}: {reason} (got {value!r})")


class InvalidDateRangeError(InvalidInputError):
    """Period start falls after period end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: Any, end_date: Any):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            "date_range",
            f"{start_date}..{end_date}",
            "start_date must not be after end_date",
        )


class PrecisionLossError(InvalidInputError):
    """Value has more decimal places than its column can hold."""

    code: str = "PRECISION_LOSS"

    def __init__(self, field: str, value: Any, decimal_places: int):
        self.decimal_places = decimal_places
        super().__init__(
            field, value, f"more than {decimal_places} decimal places"
        )


class AmountOverflowError(InvalidInputError):
    """Value exceeds the fixed-point bound."""

    code: str = "AMOUNT_OVERFLOW"

    def __init__(self, field: str, value: Any, limit: Any):
        self.limit = limit
        super().__init__(field, value, f"exceeds limit {limit}")


class DeliveryIntegrityError(InvalidInputError):
    """
    Stored total does not match quantity * rate + extra.

    Raised when a delivery record read from a store breaks the snapshot
    pricing invariant. Billing from such a record would silently disagree
    with what the customer was told at delivery time.
    """

    code: str = "DELIVERY_INTEGRITY"

    def __init__(self, delivery_id: Any, expected: str, actual: str):
        self.delivery_id = delivery_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            "total_amount",
            actual,
            f"delivery {delivery_id} total should be {expected}",
        )


class ValidationError(InvalidInputError):
    """One or more form fields failed validation."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, entity: str, field_errors: list[dict[str, str]]):
        self.entity = entity
        self.field_errors = field_errors
        super().__init__(
            ", ".join(err["field"] for err in field_errors),
            None,
            "; ".join(err["message"] for err in field_errors),
        )


class MilkTypeInactiveError(InvalidInputError):
    """Milk type is retired and cannot be used for new deliveries."""

    code: str = "MILK_TYPE_INACTIVE"

    def __init__(self, milk_type_id: Any):
        self.milk_type_id = milk_type_id
        super().__init__(
            "milk_type_id", milk_type_id, "milk type is inactive"
        )


# Lookup exceptions


class NotFoundError(DairyKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class CustomerNotFoundError(NotFoundError):
    """Customer with given ID was not found."""

    code: str = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_id: Any):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class MilkTypeNotFoundError(NotFoundError):
    """Milk type with given ID was not found."""

    code: str = "MILK_TYPE_NOT_FOUND"

    def __init__(self, milk_type_id: Any):
        self.milk_type_id = milk_type_id
        super().__init__(f"Milk type not found: {milk_type_id}")


class DeliveryNotFoundError(NotFoundError):
    """Delivery with given ID was not found."""

    code: str = "DELIVERY_NOT_FOUND"

    def __init__(self, delivery_id: Any):
        self.delivery_id = delivery_id
        super().__init__(f"Delivery not found: {delivery_id}")


class BillNotFoundError(NotFoundError):
    """No bill saved under the given invoice number."""

    code: str = "BILL_NOT_FOUND"

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Bill not found: {invoice_number}")


# Billing exceptions


class EmptyPeriodError(DairyKernelError):
    """
    No deliveries matched the billing period.

    Carries the EmptyPeriod aggregation so the caller can still show the
    zero totals. The reference behaviour is to block invoice creation and
    surface a warning.
    """

    code: str = "EMPTY_PERIOD"

    def __init__(self, result: EmptyPeriod):
        self.result = result
        self.customer_id = result.customer_id
        self.start_date = result.period.start
        self.end_date = result.period.end
        super().__init__(
            f"No deliveries for customer {result.customer_id} "
            f"between {result.period.start} and {result.period.end}"
        )


class InvoiceError(DairyKernelError):
    """Base exception for invoice numbering and persistence."""

    code: str = "INVOICE_ERROR"


class InvoiceNumberExhaustedError(InvoiceError):
    """No unused disambiguator could be produced for the day."""

    code: str = "INVOICE_NUMBER_EXHAUSTED"

    def __init__(self, day: Any, attempts: int):
        self.day = day
        self.attempts = attempts
        super().__init__(
            f"Could not allocate an invoice number for {day} "
            f"after {attempts} attempt(s)"
        )


class InvoiceNumberCollisionError(InvoiceError):
    """Invoice number is already used by a saved bill."""

    code: str = "INVOICE_NUMBER_COLLISION"

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number already exists: {invoice_number}")


class DuplicateBillError(InvoiceError):
    """A bill for the same customer and period has already been saved."""

    code: str = "DUPLICATE_BILL"

    def __init__(self, customer_id: Any, start_date: Any, end_date: Any, existing_invoice_number: str):
        self.customer_id = customer_id
        self.start_date = start_date
        self.end_date = end_date
        self.existing_invoice_number = existing_invoice_number
        super().__init__(
            f"Bill {existing_invoice_number} already covers customer "
            f"{customer_id} for {start_date}..{end_date}"
        )


# Ledger exceptions


class LedgerError(DairyKernelError):
    """Base exception for ledger write conflicts."""

    code: str = "LEDGER_ERROR"


class DuplicateCustomerError(LedgerError):
    """Phone number is already registered to another customer."""

    code: str = "DUPLICATE_CUSTOMER"

    def __init__(self, phone: str):
        self.phone = phone
        super().__init__(f"Customer with phone {phone} already exists")


class DuplicateMilkTypeError(LedgerError):
    """Milk type name is already taken."""

    code: str = "DUPLICATE_MILK_TYPE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Milk type already exists: {name}")


class CustomerHasDeliveriesError(LedgerError):
    """Customer cannot be deleted while deliveries reference it."""

    code: str = "CUSTOMER_HAS_DELIVERIES"

    def __init__(self, customer_id: Any, delivery_count: int):
        self.customer_id = customer_id
        self.delivery_count = delivery_count
        super().__init__(
            f"Customer {customer_id} has {delivery_count} delivery record(s); "
            f"delete them first or pass cascade=True"
        )
