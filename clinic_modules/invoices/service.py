"""
Invoice Ledger Service (``clinic_modules.invoices.service``).

Owns invoice creation and lookup.  Invoices are created once with their
line items; afterwards only ``PaymentProcessor`` changes them, and only
their paid amount and the status derived from it.

Usage:
    ledger = InvoiceLedger(session, clock)
    invoice = ledger.create_invoice(
        "patient-42",
        [LineItem("Consultation", 1, Money(10000))],
    )
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from uuid import UUID

from sqlalchemy import select

from clinic_kernel.domain.values import Money
from clinic_kernel.exceptions import NotFoundError, ValidationError
from clinic_kernel.logging_config import LogContext, get_logger
from clinic_kernel.services.base import BaseService
from clinic_modules._validation import coerce_enum, coerce_money, coerce_uuid, require_text
from clinic_modules.invoices.models import Invoice, InvoiceStatus, LineItem
from clinic_modules.invoices.orm import InvoiceLineModel, InvoiceModel

logger = get_logger("modules.invoices.service")


class InvoiceLedger(BaseService):
    """
    Creates and reads patient invoices.

    Guarantees:
        - total_amount is the exact sum of quantity x unit_amount.
        - New invoices start UNPAID with paid_amount 0.
        - Reads never mutate and end the transaction they open.
    """

    def create_invoice(
        self,
        patient_id: str,
        line_items: Iterable[LineItem | Mapping[str, Any]],
        *,
        actor_id: UUID | None = None,
    ) -> Invoice:
        """
        Create an invoice for a patient.

        Args:
            patient_id: Opaque patient reference (not resolved here).
            line_items: LineItem objects or mappings with ``description``,
                ``quantity`` and ``unit_amount`` (Money or int minor units).
            actor_id: Acting user, recorded for audit.

        Raises:
            ValidationError: Empty line items, non-positive quantity or
                unit amount, empty description, or empty patient_id.
        """
        patient_id = require_text(patient_id, "patient_id")
        items = self._validate_line_items(line_items)
        total = Money.total(item.amount for item in items)

        with LogContext.bind(patient_id=patient_id):
            with self._unit_of_work():
                invoice = InvoiceModel(
                    patient_id=patient_id,
                    issued_at=self.clock.now(),
                    total_minor=total.minor_units,
                    paid_minor=0,
                    status=InvoiceStatus.UNPAID.value,
                    payment_count=0,
                    created_by_id=actor_id,
                )
                invoice.lines = [
                    InvoiceLineModel(
                        line_number=number,
                        description=item.description,
                        quantity=item.quantity,
                        unit_minor=item.unit_amount.minor_units,
                    )
                    for number, item in enumerate(items, start=1)
                ]
                self.session.add(invoice)
                self.session.flush()
                result = invoice.to_dto()

            logger.info(
                "invoice_created",
                extra={
                    "invoice_id": str(result.id),
                    "line_count": len(items),
                    "total_minor": total.minor_units,
                },
            )
        return result

    def get_invoice(self, invoice_id: UUID | str) -> Invoice:
        """
        Fetch one invoice.

        Raises:
            NotFoundError: If no invoice has this id.
        """
        invoice_id = coerce_uuid(invoice_id, "invoice_id")
        with self._read():
            invoice = self.session.execute(
                select(InvoiceModel)
                .where(InvoiceModel.id == invoice_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if invoice is None:
                raise NotFoundError("invoice", invoice_id)
            return invoice.to_dto()

    def list_invoices(
        self,
        *,
        patient_id: str | None = None,
        status: InvoiceStatus | str | None = None,
    ) -> list[Invoice]:
        """
        List invoices, newest first.

        Returns an empty list when nothing matches.
        """
        stmt = select(InvoiceModel)
        if patient_id is not None:
            stmt = stmt.where(InvoiceModel.patient_id == patient_id)
        if status is not None:
            stmt = stmt.where(InvoiceModel.status == coerce_enum(InvoiceStatus, status, "status").value)
        stmt = stmt.order_by(InvoiceModel.issued_at.desc(), InvoiceModel.id)

        with self._read():
            rows = self.session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars().all()
            return [row.to_dto() for row in rows]

    def _validate_line_items(
        self, line_items: Iterable[LineItem | Mapping[str, Any]]
    ) -> list[LineItem]:
        if line_items is None:
            raise ValidationError("line_items", "at least one line item is required")
        items: list[LineItem] = []
        for index, raw in enumerate(line_items):
            field = f"line_items[{index}]"
            if isinstance(raw, LineItem):
                description, quantity, unit = raw.description, raw.quantity, raw.unit_amount
            elif isinstance(raw, Mapping):
                description = raw.get("description")
                quantity = raw.get("quantity")
                unit = raw.get("unit_amount")
            else:
                raise ValidationError(field, "must be a LineItem or mapping", raw)

            description = require_text(description, f"{field}.description")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    f"{field}.quantity", "must be a positive integer", quantity
                )
            unit_amount = coerce_money(unit, f"{field}.unit_amount")
            items.append(LineItem(description, quantity, unit_amount))

        if not items:
            raise ValidationError("line_items", "at least one line item is required")
        return items
