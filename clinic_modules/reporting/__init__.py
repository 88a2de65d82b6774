"""
Financial Reporting Module.

Read-only totals over a time window: billed, collected, outstanding,
expenses, net revenue and claim counts by status.
"""

from clinic_modules.reporting.models import FinancialReport
from clinic_modules.reporting.service import ReportAggregator

__all__ = ["FinancialReport", "ReportAggregator"]
