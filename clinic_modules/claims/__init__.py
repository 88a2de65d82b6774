"""
Insurance Claim Module.

Tracks reimbursement requests to insurers, independently of invoice
payment.  Status moves are declared in ``CLAIM_WORKFLOW``.
"""

from clinic_modules.claims.models import ClaimStatus, InsuranceClaim
from clinic_modules.claims.service import ClaimTracker
from clinic_modules.claims.workflows import CLAIM_WORKFLOW, Transition, Workflow

__all__ = [
    "CLAIM_WORKFLOW",
    "ClaimStatus",
    "ClaimTracker",
    "InsuranceClaim",
    "Transition",
    "Workflow",
]
