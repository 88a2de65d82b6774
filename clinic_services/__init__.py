"""
clinic_services -- entry points for the layer that hosts the ledger.

Exports ``BillingLedger``, the facade an API layer calls.
"""

from clinic_services.billing_ledger import BillingLedger

__all__ = ["BillingLedger"]
