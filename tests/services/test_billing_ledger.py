"""
Tests for the BillingLedger facade (clinic_services.billing_ledger).

Validates:
- Construction from a LedgerConfig (engine, schema)
- Every operation is reachable and uses its own session
- Failures propagate as typed errors and are logged with their code
- Major-unit parsing in the configured currency precision
- Reports carry the configured currency
- Concurrent callers paying different invoices all succeed
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from threading import Barrier

import pytest

from clinic_config import LedgerConfig
from clinic_kernel.domain.clock import DeterministicClock
from clinic_kernel.domain.values import DateRange, Money
from clinic_kernel.exceptions import NotFoundError, OverpaymentError, ValidationError
from clinic_modules.claims import ClaimStatus
from clinic_modules.invoices import InvoiceStatus
from clinic_services import BillingLedger

MARCH_1 = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def ledger(tmp_path):
    config = LedgerConfig(database_url=f"sqlite:///{tmp_path / 'facade.db'}", lock_timeout_seconds=5)
    clock = DeterministicClock(MARCH_1, step=timedelta(seconds=1))
    billing = BillingLedger.from_config(config, clock=clock)
    yield billing
    billing.dispose()


class TestBillingLedger:

    def test_invoice_payment_flow(self, ledger):
        invoice = ledger.create_invoice(
            "patient-42",
            [{"description": "Consultation", "quantity": 1, "unit_amount": ledger.money("100.00")}],
        )
        result = ledger.apply_payment(invoice.id, ledger.money("40.00"), "card", reference="slip-1")
        assert result.invoice.status is InvoiceStatus.PARTIALLY_PAID
        assert ledger.get_invoice(invoice.id).balance == Money(6000)
        assert [i.id for i in ledger.list_invoices(patient_id="patient-42")] == [invoice.id]
        assert [p.id for p in ledger.list_payments(invoice_id=invoice.id)] == [result.payment.id]

        with pytest.raises(OverpaymentError):
            ledger.apply_payment(invoice.id, ledger.money("60.01"), "card")

    def test_claim_flow(self, ledger):
        claim = ledger.submit_claim("patient-42", None, "AcmeHealth", 5000, policy_number="A-1")
        ledger.advance_claim(claim.id, ClaimStatus.UNDER_REVIEW)
        approved = ledger.advance_claim(claim.id, "approved", notes="ok")
        assert ledger.get_claim(claim.id) == approved
        assert [c.id for c in ledger.list_claims(status="approved")] == [claim.id]

    def test_expenses_and_report(self, ledger):
        ledger.record_expense("supplies", ledger.money("25.99"), "Gloves")
        invoice = ledger.create_invoice(
            "patient-1", [{"description": "Visit", "quantity": 1, "unit_amount": 5000}]
        )
        ledger.apply_payment(invoice.id, 5000, "cash")

        window = DateRange(MARCH_1, MARCH_1 + timedelta(days=1))
        assert len(ledger.list_expenses(window)) == 1
        report = ledger.build_report(window)
        assert report.total_collected == Money(5000)
        assert report.total_expenses == Money(2599)
        assert report.net_revenue.minor_units == 2401
        assert report.currency == "USD"

    def test_profiles(self, ledger):
        created = ledger.create_profile("patient-42", insurer="AcmeHealth")
        assert ledger.get_profile("patient-42") == created

    def test_failures_are_logged_with_code(self, ledger, captured_logs):
        with pytest.raises(NotFoundError):
            ledger.get_profile("nobody")
        failures = [r for r in captured_logs() if r["message"] == "ledger_operation_failed"]
        assert len(failures) == 1
        assert failures[0]["operation"] == "get_profile"
        assert failures[0]["error_code"] == "NOT_FOUND"
        assert "correlation_id" in failures[0]

    @pytest.mark.parametrize("amount", ["abc", "1.005", 2.5, "-3"])
    def test_money_rejects_bad_amounts(self, ledger, amount):
        with pytest.raises(ValidationError):
            ledger.money(amount)

    def test_money_uses_configured_digits(self, tmp_path):
        config = LedgerConfig(
            currency="JPY",
            minor_unit_digits=0,
            database_url=f"sqlite:///{tmp_path / 'yen.db'}",
        )
        billing = BillingLedger.from_config(config)
        try:
            assert billing.money("1500") == Money(1500)
            assert billing.build_report(DateRange(MARCH_1, MARCH_1)).currency == "JPY"
            with pytest.raises(ValidationError):
                billing.money("1500.5")
        finally:
            billing.dispose()

    def test_concurrent_payments_on_different_invoices(self, ledger):
        invoices = [
            ledger.create_invoice(
                f"patient-{i}", [{"description": "Visit", "quantity": 1, "unit_amount": 1000}]
            )
            for i in range(8)
        ]
        barrier = Barrier(len(invoices))

        def pay(invoice):
            barrier.wait()
            return ledger.apply_payment(invoice.id, 1000, "card")

        with ThreadPoolExecutor(max_workers=len(invoices)) as pool:
            results = list(pool.map(pay, invoices))

        assert all(r.invoice.status is InvoiceStatus.PAID for r in results)
        assert len(ledger.list_invoices(status="paid")) == len(invoices)
