"""
Tests for BillService.

Saving the same customer and period twice, or reusing an invoice number,
must fail with a typed error and leave the session usable.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from dairy_kernel.exceptions import (
    BillNotFoundError,
    DuplicateBillError,
    InvalidInputError,
    InvoiceNumberCollisionError,
)

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


@pytest.fixture
def january_invoice(sql_invoice_service, recorded_january):
    return sql_invoice_service.generate_invoice(recorded_january["customer"].id, JAN_1, JAN_31)


class TestSaveInvoice:

    def test_saved_bill_matches_invoice(self, session, bill_service, january_invoice):
        bill_service.save_invoice(january_invoice)
        session.expire_all()

        bill = bill_service.get_bill(january_invoice.invoice_number)
        assert bill.status == "pending"
        assert bill.start_date == JAN_1
        assert bill.end_date == JAN_31
        assert bill.subtotal == Decimal("200.00")
        assert bill.extra_total == Decimal("50.00")
        assert bill.total_amount == Decimal("250.00")
        assert bill.generated_at == january_invoice.generated_at
        assert [(i.kind, i.description, i.amount) for i in bill.items] == [
            ("milk", "Cow Milk (2L)", Decimal("120.00")),
            ("milk", "Buffalo Milk (1L)", Decimal("80.00")),
            ("extra", "Paneer", Decimal("50.00")),
        ]

    def test_status_override(self, bill_service, january_invoice):
        assert bill_service.save_invoice(january_invoice, status="paid").status == "paid"

    def test_unknown_status(self, bill_service, january_invoice):
        with pytest.raises(InvalidInputError):
            bill_service.save_invoice(january_invoice, status="overdue")

    def test_same_period_twice(self, bill_service, january_invoice):
        bill_service.save_invoice(january_invoice)
        again = replace(january_invoice, invoice_number="INV-20240131-0099")
        with pytest.raises(DuplicateBillError) as exc_info:
            bill_service.save_invoice(again)
        assert exc_info.value.existing_invoice_number == january_invoice.invoice_number

    def test_number_reused(self, sql_invoice_service, bill_service, recorded_january, january_invoice):
        bill_service.save_invoice(january_invoice)
        february = sql_invoice_service.generate_invoice(
            recorded_january["customer"].id,
            date(2024, 2, 1),
            date(2024, 2, 29),
            invoice_number=january_invoice.invoice_number,
        )
        with pytest.raises(InvoiceNumberCollisionError):
            bill_service.save_invoice(february)

    def test_conflict_leaves_session_usable(self, bill_service, sql_invoice_service, recorded_january, january_invoice):
        bill_service.save_invoice(january_invoice)
        with pytest.raises(DuplicateBillError):
            bill_service.save_invoice(replace(january_invoice, invoice_number="INV-20240131-0099"))

        other = sql_invoice_service.generate_invoice(recorded_january["other_customer"].id, JAN_1, JAN_31)
        assert bill_service.save_invoice(other).total_amount == Decimal("90.00")

    def test_overlapping_periods_are_distinct_bills(self, bill_service, sql_invoice_service, recorded_january):
        c1 = recorded_january["customer"].id
        bill_service.save_invoice(sql_invoice_service.generate_invoice(c1, JAN_1, JAN_31))
        bill_service.save_invoice(sql_invoice_service.generate_invoice(c1, date(2024, 1, 10), date(2024, 2, 10)))
        assert len(bill_service.list_bills(c1)) == 2


class TestReadBills:

    def test_get_unknown(self, bill_service):
        with pytest.raises(BillNotFoundError):
            bill_service.get_bill("INV-20240131-0001")

    def test_invoice_number_taken(self, bill_service, january_invoice):
        assert not bill_service.invoice_number_taken(january_invoice.invoice_number)
        bill_service.save_invoice(january_invoice)
        assert bill_service.invoice_number_taken(january_invoice.invoice_number)

    def test_list_newest_period_first(self, bill_service, sql_invoice_service, recorded_january):
        c1 = recorded_january["customer"].id
        bill_service.save_invoice(sql_invoice_service.generate_invoice(c1, JAN_1, JAN_31))
        bill_service.save_invoice(sql_invoice_service.generate_invoice(c1, date(2024, 2, 1), date(2024, 2, 29)))
        bills = bill_service.list_bills()
        assert [b.start_date for b in bills] == [date(2024, 2, 1), JAN_1]

    def test_list_for_customer(self, bill_service, sql_invoice_service, recorded_january):
        c2 = recorded_january["other_customer"].id
        bill_service.save_invoice(sql_invoice_service.generate_invoice(c2, JAN_1, JAN_31))
        assert bill_service.list_bills(recorded_january["customer"].id) == []
        assert bill_service.list_bills("bogus") == []
        assert len(bill_service.list_bills(c2)) == 1
