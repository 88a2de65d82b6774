"""
Invoice Domain Models (``clinic_modules.invoices.models``).

Responsibility
--------------
Frozen dataclass value objects for patient invoices and their line items,
plus the pure status derivation used after every paid-amount change.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``InvoiceLedger`` and ``PaymentProcessor`` and returned to callers.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``Money`` (integer minor units).
* ``status`` is a function of (total_amount, paid_amount) only:
  UNPAID iff paid == 0, PARTIALLY_PAID iff 0 < paid < total,
  PAID iff paid == total > 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from clinic_kernel.domain.values import Money


class InvoiceStatus(str, Enum):
    """Invoice payment states."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


@dataclass(frozen=True)
class LineItem:
    """
    A single billable line.

    Not self-validating: ``InvoiceLedger.create_invoice`` checks every line
    and reports the offending index in its ValidationError.
    """

    description: str
    quantity: int
    unit_amount: Money

    @property
    def amount(self) -> Money:
        return self.unit_amount * self.quantity


@dataclass(frozen=True)
class Invoice:
    """A patient invoice as stored by the ledger."""

    id: UUID
    patient_id: str
    issued_at: datetime
    line_items: tuple[LineItem, ...]
    total_amount: Money
    paid_amount: Money
    status: InvoiceStatus
    payment_count: int = 0

    @property
    def balance(self) -> Money:
        return self.total_amount - self.paid_amount


def recalculate_status(total_amount: Money, paid_amount: Money) -> InvoiceStatus:
    """
    Derive invoice status from its totals.

    Raises:
        ValueError: If paid_amount exceeds total_amount.
    """
    if paid_amount > total_amount:
        raise ValueError(
            f"Paid amount {paid_amount.minor_units} exceeds total "
            f"{total_amount.minor_units}"
        )
    if paid_amount.is_zero:
        return InvoiceStatus.UNPAID
    if paid_amount < total_amount:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.PAID
