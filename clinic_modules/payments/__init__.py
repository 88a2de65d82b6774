"""
Payment Processor Module.

Applies payments to invoices under a per-invoice guard and keeps the
append-only payment log that audits every paid-amount change.
"""

from clinic_modules.payments.models import Payment, PaymentMethod, PaymentResult
from clinic_modules.payments.service import PaymentProcessor

__all__ = [
    "Payment",
    "PaymentMethod",
    "PaymentProcessor",
    "PaymentResult",
]
