"""
Insurance Claim ORM Models (``clinic_modules.claims.orm``).

Responsibility
--------------
Persistence for insurance claims.  ``invoice_id`` is stored without a
foreign key: a claim may be filed before its invoice exists, and a claim
never keeps an invoice alive.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from clinic_kernel.db.base import TrackedBase
from clinic_kernel.db.types import ExternalId, LongText, MinorUnits, ShortCode, StatusCode
from clinic_kernel.domain.values import Money
from clinic_modules.claims.models import ClaimStatus, InsuranceClaim


class InsuranceClaimModel(TrackedBase):
    """
    ORM model for insurance claims.

    Guarantees:
        - claimed_minor > 0 (ck_billing_claims_amount_positive).
        - resolved_at is written once, on entering a terminal status.
        - version increments on every UPDATE.
    """

    __tablename__ = "billing_claims"

    __table_args__ = (
        CheckConstraint("claimed_minor > 0", name="ck_billing_claims_amount_positive"),
        Index("idx_billing_claims_patient_id", "patient_id"),
        Index("idx_billing_claims_invoice_id", "invoice_id"),
        Index("idx_billing_claims_status", "status"),
        Index("idx_billing_claims_submitted_at", "submitted_at"),
    )

    patient_id: Mapped[ExternalId] = mapped_column(nullable=False)
    invoice_id: Mapped[UUID | None] = mapped_column(nullable=True)
    insurer: Mapped[ShortCode] = mapped_column(nullable=False)
    policy_number: Mapped[ShortCode | None] = mapped_column(nullable=True)
    claimed_minor: Mapped[MinorUnits] = mapped_column(nullable=False)
    status: Mapped[StatusCode] = mapped_column(
        nullable=False, default=ClaimStatus.SUBMITTED.value
    )
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[LongText | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self) -> InsuranceClaim:
        """Convert ORM model to frozen dataclass."""
        return InsuranceClaim(
            id=self.id,
            patient_id=self.patient_id,
            invoice_id=self.invoice_id,
            insurer=self.insurer,
            claimed_amount=Money(self.claimed_minor),
            status=ClaimStatus(self.status),
            submitted_at=self.submitted_at,
            resolved_at=self.resolved_at,
            policy_number=self.policy_number,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<InsuranceClaimModel {self.id} {self.insurer} {self.status}>"
