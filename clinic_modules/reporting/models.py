"""
Financial Report Models (``clinic_modules.reporting.models``).
"""

from __future__ import annotations

from dataclasses import dataclass

from clinic_kernel.domain.values import DateRange, Money, MoneyDelta
from clinic_modules.claims.models import ClaimStatus


@dataclass(frozen=True)
class FinancialReport:
    """
    Ledger totals over a half-open window.

    ``claims_by_status`` has an entry for every ClaimStatus, zero when no
    claim in the window is in that status.  ``currency`` is the ISO code the
    minor units are denominated in, when the caller configured one.
    """

    date_range: DateRange
    total_billed: Money
    total_collected: Money
    total_outstanding: Money
    total_expenses: Money
    net_revenue: MoneyDelta
    claims_by_status: dict[ClaimStatus, int]
    invoice_count: int = 0
    payment_count: int = 0
    expense_count: int = 0
    currency: str | None = None

    @property
    def claim_count(self) -> int:
        return sum(self.claims_by_status.values())
