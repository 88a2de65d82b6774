"""
Invoice Ledger Module.

Creates patient invoices from line items and serves invoice lookups.
Paid amount and status change only through ``clinic_modules.payments``.
"""

from clinic_modules.invoices.models import Invoice, InvoiceStatus, LineItem, recalculate_status
from clinic_modules.invoices.service import InvoiceLedger

__all__ = [
    "Invoice",
    "InvoiceLedger",
    "InvoiceStatus",
    "LineItem",
    "recalculate_status",
]
