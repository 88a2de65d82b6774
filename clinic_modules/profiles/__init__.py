"""
Billing Profile Module.

One billing profile per patient: default insurer, policy and statement
address.
"""

from clinic_modules.profiles.models import BillingProfile
from clinic_modules.profiles.service import BillingProfileService

__all__ = ["BillingProfile", "BillingProfileService"]
