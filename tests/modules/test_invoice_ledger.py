"""
Tests for the Invoice Ledger (clinic_modules.invoices).

Validates:
- Creation: totals from line items, UNPAID start, clock-stamped issue time
- Input validation with field-level errors
- Lookup and filtered, newest-first listing
"""

from uuid import uuid4

import pytest

from clinic_kernel.domain.values import Money
from clinic_kernel.exceptions import NotFoundError, ValidationError
from clinic_modules.invoices import InvoiceStatus, LineItem


class TestCreateInvoice:

    def test_consultation_invoice(self, consultation_invoice, deterministic_clock):
        invoice = consultation_invoice
        assert invoice.total_amount == Money(10000)
        assert invoice.paid_amount == Money(0)
        assert invoice.balance == Money(10000)
        assert invoice.status is InvoiceStatus.UNPAID
        assert invoice.payment_count == 0
        assert invoice.issued_at < deterministic_clock.now()

    def test_total_is_sum_of_lines(self, invoice_ledger):
        invoice = invoice_ledger.create_invoice(
            "patient-7",
            [
                LineItem("Consultation", 1, Money(10000)),
                LineItem("Blood panel", 2, Money(3550)),
                {"description": "Bandages", "quantity": 4, "unit_amount": 125},
            ],
        )
        assert invoice.total_amount == Money(10000 + 7100 + 500)
        assert [line.description for line in invoice.line_items] == [
            "Consultation",
            "Blood panel",
            "Bandages",
        ]
        assert invoice.line_items[2].unit_amount == Money(125)

    def test_created_invoice_round_trips(self, invoice_ledger, consultation_invoice):
        assert invoice_ledger.get_invoice(consultation_invoice.id) == consultation_invoice

    def test_issued_at_is_utc(self, invoice_ledger, consultation_invoice):
        fetched = invoice_ledger.get_invoice(str(consultation_invoice.id))
        assert fetched.issued_at == consultation_invoice.issued_at
        assert fetched.issued_at.utcoffset().total_seconds() == 0

    def test_logs_creation(self, invoice_ledger, captured_logs):
        invoice = invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 1, Money(500))])
        records = [r for r in captured_logs() if r["message"] == "invoice_created"]
        assert len(records) == 1
        assert records[0]["invoice_id"] == str(invoice.id)
        assert records[0]["patient_id"] == "patient-1"
        assert records[0]["total_minor"] == 500


class TestCreateInvoiceValidation:

    @pytest.mark.parametrize(
        "line_items, field",
        [
            ([], "line_items"),
            ([LineItem("Visit", 0, Money(100))], "line_items[0].quantity"),
            ([LineItem("Visit", -1, Money(100))], "line_items[0].quantity"),
            ([{"description": "Visit", "quantity": 1.5, "unit_amount": 100}], "line_items[0].quantity"),
            ([LineItem("Visit", 1, Money(0))], "line_items[0].unit_amount"),
            ([{"description": "Visit", "quantity": 1, "unit_amount": -5}], "line_items[0].unit_amount"),
            ([{"description": "Visit", "quantity": 1, "unit_amount": 9.99}], "line_items[0].unit_amount"),
            ([LineItem("Visit", 1, Money(1)), LineItem("  ", 1, Money(1))], "line_items[1].description"),
            (["not a line"], "line_items[0]"),
        ],
    )
    def test_rejected(self, invoice_ledger, line_items, field):
        with pytest.raises(ValidationError) as exc_info:
            invoice_ledger.create_invoice("patient-1", line_items)
        assert exc_info.value.field == field
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_empty_patient_rejected(self, invoice_ledger):
        with pytest.raises(ValidationError) as exc_info:
            invoice_ledger.create_invoice("", [LineItem("Visit", 1, Money(100))])
        assert exc_info.value.field == "patient_id"

    def test_rejected_invoice_is_not_stored(self, invoice_ledger):
        with pytest.raises(ValidationError):
            invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 0, Money(100))])
        assert invoice_ledger.list_invoices() == []


class TestGetAndListInvoices:

    def test_get_missing(self, invoice_ledger):
        missing = uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            invoice_ledger.get_invoice(missing)
        assert exc_info.value.entity == "invoice"
        assert exc_info.value.entity_id == str(missing)

    def test_get_malformed_id(self, invoice_ledger):
        with pytest.raises(ValidationError):
            invoice_ledger.get_invoice("not-a-uuid")

    def test_list_newest_first(self, invoice_ledger):
        created = [
            invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 1, Money(100 * n))])
            for n in range(1, 4)
        ]
        listed = invoice_ledger.list_invoices()
        assert [i.id for i in listed] == [i.id for i in reversed(created)]

    def test_list_by_patient(self, invoice_ledger):
        mine = invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 1, Money(100))])
        invoice_ledger.create_invoice("patient-2", [LineItem("Visit", 1, Money(100))])
        assert [i.id for i in invoice_ledger.list_invoices(patient_id="patient-1")] == [mine.id]

    def test_list_by_status(self, invoice_ledger, payment_processor):
        paid = invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 1, Money(100))])
        unpaid = invoice_ledger.create_invoice("patient-1", [LineItem("Visit", 1, Money(100))])
        payment_processor.apply_payment(paid.id, Money(100), "cash")

        assert [i.id for i in invoice_ledger.list_invoices(status="paid")] == [paid.id]
        assert [i.id for i in invoice_ledger.list_invoices(status=InvoiceStatus.UNPAID)] == [unpaid.id]
        assert invoice_ledger.list_invoices(status=InvoiceStatus.PARTIALLY_PAID) == []

    def test_list_unknown_status(self, invoice_ledger):
        with pytest.raises(ValidationError):
            invoice_ledger.list_invoices(status="overdue")

    def test_list_empty(self, invoice_ledger):
        assert invoice_ledger.list_invoices(patient_id="nobody") == []
