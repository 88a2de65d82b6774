"""
Expense ORM Models (``clinic_modules.expenses.orm``).

Append-only table of practice expenses.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from clinic_kernel.db.base import TrackedBase
from clinic_kernel.db.types import LongText, MinorUnits, ShortCode
from clinic_kernel.domain.values import Money
from clinic_modules.expenses.models import Expense


class ExpenseModel(TrackedBase):
    """
    ORM model for practice expenses.

    Guarantees:
        - amount_minor > 0 (ck_billing_expenses_amount_positive).
        - Rows are inserted only; no service updates or deletes them.
    """

    __tablename__ = "billing_expenses"

    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="ck_billing_expenses_amount_positive"),
        Index("idx_billing_expenses_incurred_at", "incurred_at"),
        Index("idx_billing_expenses_category", "category"),
    )

    category: Mapped[ShortCode] = mapped_column(nullable=False)
    amount_minor: Mapped[MinorUnits] = mapped_column(nullable=False)
    incurred_at: Mapped[datetime] = mapped_column(nullable=False)
    description: Mapped[LongText] = mapped_column(nullable=False, default="")

    def to_dto(self) -> Expense:
        return Expense(
            id=self.id,
            category=self.category,
            amount=Money(self.amount_minor),
            incurred_at=self.incurred_at,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<ExpenseModel {self.id} {self.category} {self.amount_minor}>"
