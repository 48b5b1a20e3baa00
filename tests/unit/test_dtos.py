"""
Tests for the ledger DTOs.

The Delivery record carries a snapshot rate; its total is checked against
round2(quantity * rate) + extra on construction.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from dairy_kernel.domain.dtos import Customer, Delivery, MilkType
from dairy_kernel.exceptions import (
    DeliveryIntegrityError,
    InvalidInputError,
    PrecisionLossError,
)

CREATED = datetime(2024, 1, 5, 6, 30, tzinfo=UTC)


def _delivery(**overrides) -> Delivery:
    fields = dict(
        id=uuid4(),
        customer_id=uuid4(),
        milk_type_id=uuid4(),
        milk_type_name="Cow Milk",
        quantity=Decimal("2"),
        rate_per_unit=Decimal("60"),
        total_amount=Decimal("120"),
        delivery_date=date(2024, 1, 5),
        created_at=CREATED,
    )
    fields.update(overrides)
    return Delivery(**fields)


class TestMilkType:

    def test_rate_normalized(self):
        mt = MilkType(id=uuid4(), name="Cow Milk", rate_per_unit="60")
        assert mt.rate_per_unit == Decimal("60.00")
        assert mt.is_active

    @pytest.mark.parametrize("rate", ["0", "-5"])
    def test_rate_must_be_positive(self, rate):
        with pytest.raises(InvalidInputError):
            MilkType(id=uuid4(), name="Cow Milk", rate_per_unit=rate)

    def test_rate_precision(self):
        with pytest.raises(PrecisionLossError):
            MilkType(id=uuid4(), name="Cow Milk", rate_per_unit="60.005")


class TestDelivery:

    def test_valid_delivery(self):
        d = _delivery()
        assert d.total_amount == Decimal("120.00")
        assert d.quantity == Decimal("2.000")
        assert d.milk_amount == Decimal("120.00")
        assert not d.has_extra_line

    def test_total_includes_extra(self):
        d = _delivery(
            quantity=Decimal("1"),
            rate_per_unit=Decimal("80"),
            extra_item="Paneer",
            extra_amount=Decimal("50"),
            total_amount=Decimal("130"),
        )
        assert d.has_extra_line
        assert d.milk_amount == Decimal("80.00")

    def test_total_mismatch_rejected(self):
        with pytest.raises(DeliveryIntegrityError) as exc_info:
            _delivery(total_amount=Decimal("121"))
        assert exc_info.value.expected == "120.00"
        assert exc_info.value.code == "DELIVERY_INTEGRITY"

    def test_rounded_product_in_total(self):
        # 1.125 * 55.50 = 62.4375 -> 62.44
        d = _delivery(
            quantity=Decimal("1.125"),
            rate_per_unit=Decimal("55.50"),
            total_amount=Decimal("62.44"),
        )
        assert d.total_amount == Decimal("62.44")

    @pytest.mark.parametrize("quantity", ["0", "-1"])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(InvalidInputError) as exc_info:
            _delivery(quantity=Decimal(quantity), total_amount=Decimal("0"))
        assert exc_info.value.field == "quantity"

    def test_negative_extra_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            _delivery(extra_amount=Decimal("-1"), total_amount=Decimal("119"))
        assert exc_info.value.field == "extra_amount"

    def test_datetime_delivery_date_reduced(self):
        d = _delivery(delivery_date=datetime(2024, 1, 5, 22, 15, tzinfo=UTC))
        assert d.delivery_date == date(2024, 1, 5)
        assert type(d.delivery_date) is date

    def test_blank_extra_item_cleared(self):
        d = _delivery(extra_item="   ")
        assert d.extra_item is None

    def test_extra_item_without_amount_has_no_line(self):
        d = _delivery(extra_item="Curd")
        assert not d.has_extra_line

    def test_record_snapshots_milk_type(self):
        cow = MilkType(id=uuid4(), name="Cow Milk", rate_per_unit=Decimal("60"))
        d = Delivery.record(
            id=uuid4(),
            customer_id=uuid4(),
            milk_type=cow,
            quantity="1.5",
            delivery_date=date(2024, 1, 7),
            created_at=CREATED,
            extra_item="Ghee",
            extra_amount="25.50",
        )
        assert d.milk_type_id == cow.id
        assert d.milk_type_name == "Cow Milk"
        assert d.rate_per_unit == Decimal("60.00")
        assert d.total_amount == Decimal("115.50")

    def test_is_frozen(self):
        d = _delivery()
        with pytest.raises(AttributeError):
            d.quantity = Decimal("5")


class TestCustomer:

    def test_defaults(self):
        c = Customer(id=uuid4(), name="Asha Rao", phone="9876543210")
        assert c.address == ""
        assert c.preferred_milk_type_id is None
