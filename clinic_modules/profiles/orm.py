"""
Billing Profile ORM Models (``clinic_modules.profiles.orm``).
"""

from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from clinic_kernel.db.base import TrackedBase
from clinic_kernel.db.types import ExternalId, ShortCode
from clinic_modules.profiles.models import BillingProfile


class BillingProfileModel(TrackedBase):
    """
    ORM model for billing profiles.

    Guarantees:
        - One row per patient_id (uq_billing_profiles_patient_id).
        - opened_at comes from the service clock, not the database.
    """

    __tablename__ = "billing_profiles"

    __table_args__ = (
        UniqueConstraint("patient_id", name="uq_billing_profiles_patient_id"),
    )

    patient_id: Mapped[ExternalId] = mapped_column(nullable=False)
    insurer: Mapped[ShortCode | None] = mapped_column(nullable=True)
    policy_number: Mapped[ShortCode | None] = mapped_column(nullable=True)
    billing_email: Mapped[ShortCode | None] = mapped_column(nullable=True)
    opened_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> BillingProfile:
        return BillingProfile(
            id=self.id,
            patient_id=self.patient_id,
            created_at=self.opened_at,
            insurer=self.insurer,
            policy_number=self.policy_number,
            billing_email=self.billing_email,
        )
