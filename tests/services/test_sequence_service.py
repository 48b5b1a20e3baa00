"""Tests for SequenceService and the DB-backed invoice number generator."""

from datetime import date

import pytest

from dairy_kernel.exceptions import InvoiceNumberExhaustedError
from dairy_kernel.services.sequence_service import (
    INVOICE_SEQUENCE_MAX,
    SequenceService,
    SequenceServiceGenerator,
    invoice_sequence_name,
)


class TestSequenceService:

    def test_first_value_is_one(self, session):
        assert SequenceService(session).next_value("invoice:20240131") == 1

    def test_monotonic(self, session):
        seq = SequenceService(session)
        assert [seq.next_value("s") for _ in range(5)] == [1, 2, 3, 4, 5]
        assert seq.current_value("s") == 5

    def test_names_are_independent(self, session):
        seq = SequenceService(session)
        seq.next_value("a")
        seq.next_value("a")
        assert seq.next_value("b") == 1

    def test_unused_sequence(self, session):
        assert SequenceService(session).current_value("never") is None

    def test_reset(self, session):
        seq = SequenceService(session)
        seq.next_value("s")
        seq.reset("s", 41)
        assert seq.next_value("s") == 42

    def test_empty_name(self, session):
        with pytest.raises(ValueError):
            SequenceService(session).next_value("")

    def test_rollback_returns_value(self, session):
        seq = SequenceService(session)
        seq.next_value("s")
        savepoint = session.begin_nested()
        seq.next_value("s")
        savepoint.rollback()
        assert seq.next_value("s") == 2


class TestSequenceServiceGenerator:

    def test_per_day_counter(self, session):
        gen = SequenceServiceGenerator(session)
        assert gen(date(2024, 1, 31)) == 1
        assert gen(date(2024, 1, 31)) == 2
        assert gen(date(2024, 2, 1)) == 1
        assert invoice_sequence_name(date(2024, 1, 31)) == "invoice:20240131"

    def test_exhausted(self, session):
        day = date(2024, 1, 31)
        SequenceService(session).reset(invoice_sequence_name(day), INVOICE_SEQUENCE_MAX)
        with pytest.raises(InvoiceNumberExhaustedError):
            SequenceServiceGenerator(session)(day)
