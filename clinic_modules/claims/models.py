"""
Insurance Claim Domain Models (``clinic_modules.claims.models``).

Frozen value objects for insurance claims.  The legal status moves live in
``workflows.py``; these types carry no behaviour beyond convenience
properties.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from clinic_kernel.domain.values import Money


class ClaimStatus(str, Enum):
    """Insurance claim lifecycle states."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class InsuranceClaim:
    """A reimbursement request sent to an insurer."""

    id: UUID
    patient_id: str
    invoice_id: UUID | None
    insurer: str
    claimed_amount: Money
    status: ClaimStatus
    submitted_at: datetime
    resolved_at: datetime | None = None
    policy_number: str | None = None
    notes: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None
