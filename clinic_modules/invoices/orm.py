"""
Invoice ORM Models (``clinic_modules.invoices.orm``).

Responsibility
--------------
SQLAlchemy persistence for invoices and their line items.  Maps to the
frozen dataclasses in ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``clinic_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``clinic_kernel`` except via
the ORM registry.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic_kernel.db.base import Base, TrackedBase
from clinic_kernel.db.types import ExternalId, LongText, MinorUnits, StatusCode
from clinic_kernel.domain.values import Money
from clinic_modules.invoices.models import Invoice, InvoiceStatus, LineItem


class InvoiceModel(TrackedBase):
    """
    ORM model for patient invoices.

    Guarantees:
        - 0 <= paid_minor <= total_minor (ck_billing_invoices_paid_range).
        - total_minor > 0 (ck_billing_invoices_total_positive).
        - status is stored, never inferred by readers.
        - version increments on every UPDATE; a write that read an older
          version fails with StaleDataError.
        - patient_id is a weak reference: no foreign key, no cascade.
    """

    __tablename__ = "billing_invoices"

    __table_args__ = (
        CheckConstraint(
            "paid_minor >= 0 AND paid_minor <= total_minor",
            name="ck_billing_invoices_paid_range",
        ),
        CheckConstraint("total_minor > 0", name="ck_billing_invoices_total_positive"),
        Index("idx_billing_invoices_patient_id", "patient_id"),
        Index("idx_billing_invoices_status", "status"),
        Index("idx_billing_invoices_issued_at", "issued_at"),
    )

    patient_id: Mapped[ExternalId] = mapped_column(nullable=False)
    issued_at: Mapped[datetime] = mapped_column(nullable=False)
    total_minor: Mapped[MinorUnits] = mapped_column(nullable=False)
    paid_minor: Mapped[MinorUnits] = mapped_column(nullable=False, default=0)
    status: Mapped[StatusCode] = mapped_column(
        nullable=False, default=InvoiceStatus.UNPAID.value
    )
    payment_count: Mapped[int] = mapped_column(nullable=False, default=0)
    version: Mapped[int] = mapped_column(nullable=False)

    lines: Mapped[list["InvoiceLineModel"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceLineModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self) -> Invoice:
        """Convert ORM model to frozen dataclass."""
        return Invoice(
            id=self.id,
            patient_id=self.patient_id,
            issued_at=self.issued_at,
            line_items=tuple(line.to_dto() for line in self.lines),
            total_amount=Money(self.total_minor),
            paid_amount=Money(self.paid_minor),
            status=InvoiceStatus(self.status),
            payment_count=self.payment_count,
        )

    def __repr__(self) -> str:
        return (
            f"<InvoiceModel {self.id} patient={self.patient_id} "
            f"{self.paid_minor}/{self.total_minor} {self.status}>"
        )


class InvoiceLineModel(Base):
    """
    ORM model for invoice line items.

    Lines are written once with their invoice and never updated.
    """

    __tablename__ = "billing_invoice_lines"

    __table_args__ = (
        UniqueConstraint(
            "invoice_id", "line_number", name="uq_billing_invoice_lines_number"
        ),
        CheckConstraint("quantity > 0", name="ck_billing_invoice_lines_quantity"),
        CheckConstraint("unit_minor > 0", name="ck_billing_invoice_lines_unit"),
        Index("idx_billing_invoice_lines_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("billing_invoices.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[LongText] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_minor: Mapped[MinorUnits] = mapped_column(nullable=False)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="lines")

    def to_dto(self) -> LineItem:
        return LineItem(
            description=self.description,
            quantity=self.quantity,
            unit_amount=Money(self.unit_minor),
        )
