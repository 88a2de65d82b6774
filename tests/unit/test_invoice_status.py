"""
Unit tests for invoice status derivation and line-item amounts.

The status of an invoice is a pure function of (total, paid):
UNPAID iff paid == 0, PARTIALLY_PAID iff 0 < paid < total, PAID iff
paid == total.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from clinic_kernel.domain.values import Money
from clinic_modules.invoices.models import InvoiceStatus, LineItem, recalculate_status


class TestRecalculateStatus:

    def test_unpaid(self):
        assert recalculate_status(Money(10000), Money(0)) is InvoiceStatus.UNPAID

    def test_partially_paid(self):
        assert recalculate_status(Money(10000), Money(4000)) is InvoiceStatus.PARTIALLY_PAID

    def test_paid(self):
        assert recalculate_status(Money(10000), Money(10000)) is InvoiceStatus.PAID

    def test_paid_above_total_rejected(self):
        with pytest.raises(ValueError):
            recalculate_status(Money(100), Money(101))

    @given(st.integers(min_value=1, max_value=10**12), st.data())
    def test_status_matches_definition(self, total, data):
        paid = data.draw(st.integers(min_value=0, max_value=total))
        status = recalculate_status(Money(total), Money(paid))

        assert (status is InvoiceStatus.UNPAID) == (paid == 0)
        assert (status is InvoiceStatus.PARTIALLY_PAID) == (0 < paid < total)
        assert (status is InvoiceStatus.PAID) == (paid == total)


class TestLineItem:

    def test_amount_is_quantity_times_unit(self):
        assert LineItem("X-ray", 3, Money(2500)).amount == Money(7500)

    def test_line_item_is_frozen(self):
        item = LineItem("X-ray", 1, Money(2500))
        with pytest.raises(AttributeError):
            item.quantity = 2
