"""
Billing Profile Domain Models (``clinic_modules.profiles.models``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class BillingProfile:
    """Per-patient billing details.  At most one per patient."""

    id: UUID
    patient_id: str
    created_at: datetime
    insurer: str | None = None
    policy_number: str | None = None
    billing_email: str | None = None
