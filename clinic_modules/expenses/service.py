"""
Expense Tracker Service (``clinic_modules.expenses.service``).

Records practice expenses and lists them by the time they were incurred.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from clinic_kernel.domain.values import DateRange, Money
from clinic_kernel.exceptions import ValidationError
from clinic_kernel.logging_config import get_logger
from clinic_kernel.services.base import BaseService
from clinic_modules._validation import coerce_money, coerce_moment, require_range, require_text
from clinic_modules.expenses.models import Expense
from clinic_modules.expenses.orm import ExpenseModel

logger = get_logger("modules.expenses.service")


class ExpenseTracker(BaseService):
    """Append-only expense log."""

    def record_expense(
        self,
        category: str,
        amount: Money | int,
        description: str | None = "",
        *,
        incurred_at: datetime | None = None,
        actor_id: UUID | None = None,
    ) -> Expense:
        """
        Record an expense.

        ``incurred_at`` defaults to the service clock.

        Raises:
            ValidationError: Empty category, non-positive amount, naive
                incurred_at, or a non-string description.
        """
        category = require_text(category, "category")
        amount = coerce_money(amount, "amount")
        if description is None:
            description = ""
        if not isinstance(description, str):
            raise ValidationError("description", "must be a string", description)
        if incurred_at is None:
            incurred_at = self.clock.now()
        else:
            incurred_at = coerce_moment(incurred_at, "incurred_at")

        with self._unit_of_work():
            expense = ExpenseModel(
                category=category,
                amount_minor=amount.minor_units,
                incurred_at=incurred_at,
                description=description.strip(),
                created_by_id=actor_id,
            )
            self.session.add(expense)
            self.session.flush()
            result = expense.to_dto()

        logger.info(
            "expense_recorded",
            extra={
                "expense_id": str(result.id),
                "category": category,
                "amount_minor": amount.minor_units,
            },
        )
        return result

    def list_expenses(self, date_range: DateRange | None = None) -> list[Expense]:
        """Expenses incurred in ``date_range`` (all when None), newest first."""
        stmt = select(ExpenseModel)
        if date_range is not None:
            date_range = require_range(date_range)
            stmt = stmt.where(
                ExpenseModel.incurred_at >= date_range.start,
                ExpenseModel.incurred_at < date_range.end,
            )
        stmt = stmt.order_by(ExpenseModel.incurred_at.desc(), ExpenseModel.id)

        with self._read():
            rows = self.session.execute(stmt).scalars().all()
            return [row.to_dto() for row in rows]
