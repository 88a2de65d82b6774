"""
Expense Tracker Module.

Append-only log of practice expenses, read back by time window.
"""

from clinic_modules.expenses.models import Expense
from clinic_modules.expenses.service import ExpenseTracker

__all__ = ["Expense", "ExpenseTracker"]
