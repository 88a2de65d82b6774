"""
Payment Processor Service (``clinic_modules.payments.service``).

Responsibility
--------------
Applies a payment to an invoice.  For one invoice id the balance read, the
overpayment check, the paid-amount update and the payment-log append are a
single atomic unit:

  1. keyed in-process lock on ("invoice", id),
  2. ``SELECT ... FOR UPDATE`` on the invoice row (PostgreSQL),
  3. ``version`` check on UPDATE, retried once against fresh state.

Payments on different invoices never wait for each other.

Failure modes
-------------
- ValidationError: amount <= 0, unknown method, malformed invoice id.
- NotFoundError: invoice does not exist.
- OverpaymentError: amount exceeds the current balance.  Nothing changes.
- ConcurrencyConflictError: lost the version race twice.
- LedgerInvariantError: the payment log no longer sums to paid amount.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from clinic_kernel.db.types import minor_units_from_db
from clinic_kernel.domain.values import Money
from clinic_kernel.exceptions import (
    LedgerInvariantError,
    NotFoundError,
    OverpaymentError,
)
from clinic_kernel.logging_config import LogContext, get_logger
from clinic_kernel.services.base import GuardedService
from clinic_modules._validation import coerce_enum, coerce_money, coerce_uuid, optional_text
from clinic_modules.invoices.models import recalculate_status
from clinic_modules.invoices.orm import InvoiceModel
from clinic_modules.payments.models import Payment, PaymentMethod, PaymentResult
from clinic_modules.payments.orm import PaymentModel

logger = get_logger("modules.payments.service")


class PaymentProcessor(GuardedService):
    """
    Applies payments and reads the payment log.

    Guarantees:
        - paid_amount never exceeds total_amount (no credit balances).
        - sum(payments for invoice) == invoice.paid_amount after every
          committed payment.
        - Ordinals are dense and 1-based per invoice.
    """

    def apply_payment(
        self,
        invoice_id: UUID | str,
        amount: Money | int,
        method: PaymentMethod | str,
        *,
        reference: str | None = None,
        actor_id: UUID | None = None,
    ) -> PaymentResult:
        """
        Apply a payment to an invoice.

        Args:
            invoice_id: Invoice to pay.
            amount: Money, or int minor units; must be positive.
            method: PaymentMethod or its string value.
            reference: Optional free text (card slip, receipt number).
            actor_id: Acting user, recorded for audit.

        Returns:
            PaymentResult with the updated invoice and the new payment.
        """
        invoice_id = coerce_uuid(invoice_id, "invoice_id")
        amount = coerce_money(amount, "amount")
        method = coerce_enum(PaymentMethod, method, "method")
        reference = optional_text(reference, "reference")

        with LogContext.bind(invoice_id=invoice_id):
            try:
                result = self._run_guarded(
                    "invoice",
                    invoice_id,
                    lambda: self._apply(invoice_id, amount, method, reference, actor_id),
                )
            except OverpaymentError as e:
                logger.warning(
                    "payment_rejected_overpayment",
                    extra={"amount_minor": e.amount, "balance_minor": e.balance},
                )
                raise

            logger.info(
                "payment_applied",
                extra={
                    "payment_id": str(result.payment.id),
                    "amount_minor": amount.minor_units,
                    "method": method.value,
                    "ordinal": result.payment.ordinal,
                    "status": result.invoice.status.value,
                    "balance_minor": result.invoice.balance.minor_units,
                },
            )
        return result

    def list_payments(self, *, invoice_id: UUID | str | None = None) -> list[Payment]:
        """Payments in the order they were recorded."""
        stmt = select(PaymentModel)
        if invoice_id is not None:
            stmt = stmt.where(
                PaymentModel.invoice_id == coerce_uuid(invoice_id, "invoice_id")
            )
        stmt = stmt.order_by(
            PaymentModel.recorded_at, PaymentModel.ordinal, PaymentModel.id
        )
        with self._read():
            rows = self.session.execute(stmt).scalars().all()
            return [row.to_dto() for row in rows]

    # -------------------------------------------------------------------------
    # Guarded work
    # -------------------------------------------------------------------------

    def _apply(
        self,
        invoice_id: UUID,
        amount: Money,
        method: PaymentMethod,
        reference: str | None,
        actor_id: UUID | None,
    ) -> PaymentResult:
        invoice = self.session.execute(
            self._for_update(select(InvoiceModel).where(InvoiceModel.id == invoice_id))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("invoice", invoice_id)

        total = Money(invoice.total_minor)
        paid = Money(invoice.paid_minor)
        balance = total - paid
        if amount > balance:
            raise OverpaymentError(invoice_id, amount.minor_units, balance.minor_units)

        new_paid = paid + amount
        invoice.paid_minor = new_paid.minor_units
        invoice.status = recalculate_status(total, new_paid).value
        invoice.payment_count = invoice.payment_count + 1
        invoice.updated_by_id = actor_id

        payment = PaymentModel(
            invoice_id=invoice_id,
            amount_minor=amount.minor_units,
            method=method.value,
            recorded_at=self.clock.now(),
            ordinal=invoice.payment_count,
            reference=reference,
            created_by_id=actor_id,
        )
        self.session.add(payment)
        self.session.flush()

        self._check_payment_log(invoice)
        return PaymentResult(invoice=invoice.to_dto(), payment=payment.to_dto())

    def _check_payment_log(self, invoice: InvoiceModel) -> None:
        """Raise LedgerInvariantError if the log and paid amount disagree."""
        logged = minor_units_from_db(
            self.session.execute(
                select(func.sum(PaymentModel.amount_minor)).where(
                    PaymentModel.invoice_id == invoice.id
                )
            ).scalar()
        )
        if logged != invoice.paid_minor:
            logger.error(
                "payment_log_mismatch",
                extra={"paid_minor": invoice.paid_minor, "logged_minor": logged},
            )
            raise LedgerInvariantError(invoice.id, invoice.paid_minor, logged)
