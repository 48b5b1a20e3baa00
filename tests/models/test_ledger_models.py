"""
Tests for the ORM layer: column types, constraints and the integrity check
on load.
"""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError

from dairy_kernel.db.types import FixedDecimal, UTCDateTime, as_utc
from dairy_kernel.exceptions import (
    AmountOverflowError,
    DeliveryIntegrityError,
    PrecisionLossError,
)
from dairy_kernel.models.bill import BillStatus
from dairy_kernel.models.delivery import DeliveryModel


class TestColumnTypes:

    def test_fixed_decimal_quantizes_results(self):
        money = FixedDecimal(12, 2)
        assert money.process_result_value(120.5, None) == Decimal("120.50")
        assert str(money.process_result_value(Decimal("7"), None)) == "7.00"

    def test_fixed_decimal_bind(self):
        qty = FixedDecimal(12, 3)
        assert str(qty.process_bind_param(Decimal("1.5"), None)) == "1.500"
        assert qty.process_bind_param(None, None) is None

    def test_fixed_decimal_bind_refuses_to_round(self):
        money = FixedDecimal(12, 2)
        with pytest.raises(PrecisionLossError):
            money.process_bind_param(Decimal("10.005"), None)
        with pytest.raises(PrecisionLossError):
            FixedDecimal(12, 3).process_bind_param(Decimal("1.0005"), None)

    def test_fixed_decimal_bind_refuses_overflow(self):
        money = FixedDecimal(12, 2)
        assert money.process_bind_param(Decimal("9999999999.99"), None) == Decimal("9999999999.99")
        with pytest.raises(AmountOverflowError):
            money.process_bind_param(Decimal("10000000000.00"), None)

    def test_utc_datetime_reads_naive_as_utc(self):
        col = UTCDateTime()
        loaded = col.process_result_value(datetime(2024, 1, 31, 6, 0), None)
        assert loaded == datetime(2024, 1, 31, 6, 0, tzinfo=UTC)

    def test_utc_datetime_binds_in_utc(self):
        ist = timezone(timedelta(minutes=330))
        bound = UTCDateTime().process_bind_param(datetime(2024, 1, 31, 11, 30, tzinfo=ist), None)
        assert bound.utcoffset() == timedelta(0)
        assert bound.hour == 6

    def test_as_utc(self):
        assert as_utc(datetime(2024, 1, 1)).tzinfo is not None


class TestDeliveryRows:

    def test_created_at_loads_aware(self, session, recorded_january_rows):
        session.expire_all()
        row = session.execute(select(DeliveryModel).limit(1)).scalar_one()
        assert row.created_at.tzinfo is not None
        assert row.quantity.as_tuple().exponent == -3
        assert row.total_amount.as_tuple().exponent == -2

    def test_quantity_check_constraint(self, session, recorded_january_rows):
        delivery_id = recorded_january_rows[0].id
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.execute(
                    update(DeliveryModel)
                    .where(DeliveryModel.id == delivery_id)
                    .values(quantity=Decimal("-1"))
                )

    def test_tampered_total_detected_on_load(self, session, recorded_january_rows):
        delivery_id = recorded_january_rows[0].id
        session.execute(
            update(DeliveryModel)
            .where(DeliveryModel.id == delivery_id)
            .values(total_amount=Decimal("999.00"))
        )
        session.expire_all()
        row = session.get(DeliveryModel, delivery_id)
        with pytest.raises(DeliveryIntegrityError) as exc_info:
            row.to_dto()
        assert exc_info.value.actual == "999.00"

    def test_foreign_keys_enforced(self, session, recorded_january_rows):
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.execute(text("DELETE FROM customers"))


class TestBillStatus:

    def test_values(self):
        assert [s.value for s in BillStatus] == ["pending", "paid", "cancelled"]


@pytest.fixture
def recorded_january_rows(ledger_service):
    cow = ledger_service.create_milk_type("Cow Milk", "60.00")
    customer = ledger_service.create_customer("Asha Rao", "9876543210", "12 Market Road")
    return [
        ledger_service.record_delivery(customer.id, cow.id, "2", date(2024, 1, 5)),
        ledger_service.record_delivery(customer.id, cow.id, "1.5", date(2024, 1, 6)),
    ]
