"""
Payment Domain Models (``clinic_modules.payments.models``).

Frozen value objects for recorded payments.  A payment is written once by
``PaymentProcessor.apply_payment`` and never changed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from clinic_kernel.domain.values import Money
from clinic_modules.invoices.models import Invoice


class PaymentMethod(str, Enum):
    """How the patient paid."""

    CASH = "cash"
    CARD = "card"
    INSURANCE = "insurance"
    OTHER = "other"


@dataclass(frozen=True)
class Payment:
    """A single payment against an invoice."""

    id: UUID
    invoice_id: UUID
    amount: Money
    method: PaymentMethod
    recorded_at: datetime
    ordinal: int
    reference: str | None = None


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of ``apply_payment``: the invoice after the payment, and the payment."""

    invoice: Invoice
    payment: Payment
