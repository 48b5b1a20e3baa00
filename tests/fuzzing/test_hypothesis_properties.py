"""
Property-based tests for the billing engines.

Hypothesis generates delivery ledgers across several customers and dates
and checks the aggregation and invoice guarantees on each:

- grand_total == subtotal + extras_total
- subtotal is the sum of round2(quantity * snapshot rate)
- only the requested customer's deliveries inside the period are included
- billing order is non-decreasing in (date, created_at)
- the result does not depend on input order
- splitting a period in two splits the totals exactly
- invoice lines reconcile to the invoice totals, untitled extras aside
"""

import random
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from dairy_engines.aggregation import aggregate
from dairy_engines.invoice import DailySequenceGenerator, LineKind, build_invoice
from dairy_kernel.domain.dtos import Customer, Delivery, MilkType
from dairy_kernel.domain.values import Money, line_amount

CUSTOMERS = [
    Customer(id=UUID(int=i + 1), name=f"Customer {i + 1}", phone=f"98765{i:05d}")
    for i in range(3)
]
BASE_DAY = date(2024, 1, 1)
BASE_TS = datetime(2024, 1, 1, 5, 0, tzinfo=UTC)

quantities = st.decimals(min_value=Decimal("0.001"), max_value=Decimal("100"), places=3)
rates = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("500"), places=2)
extras = st.one_of(
    st.just(Decimal("0")),
    st.decimals(min_value=Decimal("0.01"), max_value=Decimal("200"), places=2),
)
# Positive extras sometimes come without item text: totalled, but no line.
extra_items = st.sampled_from(["Paneer", "Curd", None, ""])


@st.composite
def deliveries(draw, max_size=30):
    rows = []
    count = draw(st.integers(min_value=0, max_value=max_size))
    for i in range(count):
        customer = draw(st.sampled_from(CUSTOMERS))
        milk_type = MilkType(id=UUID(int=1000 + i), name="Cow Milk", rate_per_unit=draw(rates))
        extra = draw(extras)
        rows.append(
            Delivery.record(
                id=UUID(int=10_000 + i),
                customer_id=customer.id,
                milk_type=milk_type,
                quantity=draw(quantities),
                delivery_date=BASE_DAY + timedelta(days=draw(st.integers(0, 89))),
                created_at=BASE_TS + timedelta(minutes=draw(st.integers(0, 60 * 24 * 90))),
                extra_item=draw(extra_items) if extra > 0 else None,
                extra_amount=extra,
            )
        )
    return rows


@st.composite
def periods(draw):
    start = BASE_DAY + timedelta(days=draw(st.integers(0, 89)))
    end = start + timedelta(days=draw(st.integers(0, 40)))
    return start, end


FUZZ = settings(max_examples=150, deadline=None, suppress_health_check=[HealthCheck.too_slow])


class TestAggregationProperties:

    @FUZZ
    @given(ledger=deliveries(), period=periods(), customer=st.sampled_from(CUSTOMERS))
    def test_totals_reconcile(self, ledger, period, customer):
        result = aggregate(customer.id, period[0], period[1], ledger)
        assert result.grand_total == result.subtotal + result.extras_total
        assert result.subtotal.amount == sum(
            (line_amount(d.quantity, d.rate_per_unit) for d in result.deliveries), Decimal("0.00")
        )
        assert result.extras_total.amount == sum((d.extra_amount for d in result.deliveries), Decimal("0.00"))

    @FUZZ
    @given(ledger=deliveries(), period=periods(), customer=st.sampled_from(CUSTOMERS))
    def test_selection_is_exact(self, ledger, period, customer):
        start, end = period
        result = aggregate(customer.id, start, end, ledger)
        expected = {
            d.id for d in ledger
            if d.customer_id == customer.id and start <= d.delivery_date <= end
        }
        assert {d.id for d in result.deliveries} == expected
        assert result.is_empty == (not expected)

    @FUZZ
    @given(ledger=deliveries(), period=periods(), customer=st.sampled_from(CUSTOMERS))
    def test_billing_order(self, ledger, period, customer):
        result = aggregate(customer.id, period[0], period[1], ledger)
        keys = [(d.delivery_date, d.created_at) for d in result.deliveries]
        assert keys == sorted(keys)

    @FUZZ
    @given(
        ledger=deliveries(),
        period=periods(),
        customer=st.sampled_from(CUSTOMERS),
        seed=st.integers(0, 2**32 - 1),
    )
    def test_input_order_irrelevant(self, ledger, period, customer, seed):
        shuffled = list(ledger)
        random.Random(seed).shuffle(shuffled)
        a = aggregate(customer.id, period[0], period[1], ledger)
        b = aggregate(customer.id, period[0], period[1], shuffled)
        assert a == b

    @FUZZ
    @given(
        ledger=deliveries(),
        customer=st.sampled_from(CUSTOMERS),
        split=st.integers(0, 88),
    )
    def test_adjacent_periods_add_up(self, ledger, customer, split):
        first_end = BASE_DAY + timedelta(days=split)
        last = BASE_DAY + timedelta(days=89)
        whole = aggregate(customer.id, BASE_DAY, last, ledger)
        left = aggregate(customer.id, BASE_DAY, first_end, ledger)
        right = aggregate(customer.id, first_end + timedelta(days=1), last, ledger)
        assert whole.grand_total == left.grand_total + right.grand_total
        assert whole.delivery_count == left.delivery_count + right.delivery_count


class TestRoundingProperties:

    @FUZZ
    @given(quantity=quantities, rate=rates)
    def test_half_up_to_the_cent(self, quantity, rate):
        exact = quantity * rate
        amount = line_amount(quantity, rate)
        assert amount == exact.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        assert abs(amount - exact) <= Decimal("0.005")

    @FUZZ
    @given(quantity=quantities, rate=rates, extra=extras)
    def test_delivery_total_invariant(self, quantity, rate, extra):
        mt = MilkType(id=UUID(int=1), name="Cow Milk", rate_per_unit=rate)
        d = Delivery.record(
            id=UUID(int=2),
            customer_id=CUSTOMERS[0].id,
            milk_type=mt,
            quantity=quantity,
            delivery_date=BASE_DAY,
            created_at=BASE_TS,
            extra_amount=extra,
        )
        assert d.total_amount == line_amount(quantity, rate) + extra


class TestInvoiceProperties:

    @FUZZ
    @given(ledger=deliveries(), customer=st.sampled_from(CUSTOMERS))
    def test_lines_reconcile(self, ledger, customer):
        result = aggregate(customer.id, BASE_DAY, BASE_DAY + timedelta(days=89), ledger)
        if result.is_empty:
            return
        invoice = build_invoice(customer, result, BASE_TS, DailySequenceGenerator())

        milk = [li for li in invoice.line_items if li.kind is LineKind.MILK]
        extra = [li for li in invoice.line_items if li.kind is LineKind.EXTRA]
        assert len(milk) == result.delivery_count
        assert len(extra) == sum(1 for d in result.deliveries if d.extra_item and d.extra_amount > 0)
        untitled = Money.sum(
            Money(d.extra_amount) for d in result.deliveries if not d.extra_item
        )
        assert Money.sum(Money(li.amount) for li in milk) == invoice.subtotal
        assert Money.sum(Money(li.amount) for li in extra) + untitled == invoice.extras_total
        assert invoice.invoice_number == "INV-20240101-0001"
