"""
Payment ORM Models (``clinic_modules.payments.orm``).

Responsibility
--------------
Persistence for the append-only payment log.  Rows are inserted by
``PaymentProcessor`` inside the same transaction that raises the invoice's
paid amount, and are never updated or deleted.

Architecture position
---------------------
**Modules layer** -- persistence.  References ``billing_invoices`` with a
real foreign key: a payment cannot outlive or precede its invoice.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from clinic_kernel.db.base import TrackedBase
from clinic_kernel.db.types import MinorUnits, ShortCode, StatusCode
from clinic_kernel.domain.values import Money
from clinic_modules.payments.models import Payment, PaymentMethod


class PaymentModel(TrackedBase):
    """
    ORM model for payments.

    Guarantees:
        - amount_minor > 0 (ck_billing_payments_amount_positive).
        - (invoice_id, ordinal) is unique: ordinals are assigned under the
          invoice guard, so two payments can never claim the same slot.
    """

    __tablename__ = "billing_payments"

    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="ck_billing_payments_amount_positive"),
        CheckConstraint("ordinal > 0", name="ck_billing_payments_ordinal_positive"),
        UniqueConstraint("invoice_id", "ordinal", name="uq_billing_payments_ordinal"),
        Index("idx_billing_payments_invoice_id", "invoice_id"),
        Index("idx_billing_payments_recorded_at", "recorded_at"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("billing_invoices.id"), nullable=False
    )
    amount_minor: Mapped[MinorUnits] = mapped_column(nullable=False)
    method: Mapped[StatusCode] = mapped_column(nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(nullable=False)
    ordinal: Mapped[int] = mapped_column(nullable=False)
    reference: Mapped[ShortCode | None] = mapped_column(nullable=True)

    def to_dto(self) -> Payment:
        """Convert ORM model to frozen dataclass."""
        return Payment(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=Money(self.amount_minor),
            method=PaymentMethod(self.method),
            recorded_at=self.recorded_at,
            ordinal=self.ordinal,
            reference=self.reference,
        )

    def __repr__(self) -> str:
        return (
            f"<PaymentModel {self.id} invoice={self.invoice_id} "
            f"#{self.ordinal} {self.amount_minor} {self.method}>"
        )
