"""
Expense Domain Models (``clinic_modules.expenses.models``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from clinic_kernel.domain.values import Money


@dataclass(frozen=True)
class Expense:
    """A practice expense.  Recorded once, never edited."""

    id: UUID
    category: str
    amount: Money
    incurred_at: datetime
    description: str = ""
