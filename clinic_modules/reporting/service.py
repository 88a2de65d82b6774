"""
Financial Report Aggregator (``clinic_modules.reporting.service``).

Responsibility
--------------
Derives billing totals for a time window.  Every figure is summed by the
database inside one snapshot transaction, so the report is consistent even
while payments are being applied, and two reports with no write in between
are equal.

Window membership, per source:
    invoices -> issued_at       payments -> recorded_at
    claims   -> submitted_at    expenses -> incurred_at
All windows are half-open: start <= t < end.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clinic_kernel.db.types import minor_units_from_db
from clinic_kernel.domain.values import DateRange, Money
from clinic_kernel.logging_config import get_logger
from clinic_kernel.selectors.base import BaseSelector
from clinic_modules._validation import require_range
from clinic_modules.claims.models import ClaimStatus
from clinic_modules.claims.orm import InsuranceClaimModel
from clinic_modules.expenses.orm import ExpenseModel
from clinic_modules.invoices.models import InvoiceStatus
from clinic_modules.invoices.orm import InvoiceModel
from clinic_modules.payments.orm import PaymentModel
from clinic_modules.reporting.models import FinancialReport

logger = get_logger("modules.reporting.service")


def _in_range(column, date_range: DateRange):
    return (column >= date_range.start, column < date_range.end)


class ReportAggregator(BaseSelector):
    """
    Read-only aggregation across invoices, payments, claims and expenses.

    ``currency`` only labels the report; amounts are always minor units.
    """

    def __init__(self, session: Session, currency: str | None = None):
        super().__init__(session)
        self.currency = currency

    def build_report(self, date_range: DateRange) -> FinancialReport:
        """
        Build the financial report for ``date_range``.

        An empty window yields an all-zero report.

        Raises:
            ValidationError: If ``date_range`` is not a DateRange.
            SnapshotUnavailableError: If the session already has an open
                transaction.
        """
        date_range = require_range(date_range)

        with self._snapshot() as session:
            invoice_count, billed = session.execute(
                select(func.count(InvoiceModel.id), func.sum(InvoiceModel.total_minor))
                .where(*_in_range(InvoiceModel.issued_at, date_range))
            ).one()

            outstanding = session.execute(
                select(func.sum(InvoiceModel.total_minor - InvoiceModel.paid_minor))
                .where(*_in_range(InvoiceModel.issued_at, date_range))
                .where(InvoiceModel.status != InvoiceStatus.PAID.value)
            ).scalar()

            payment_count, collected = session.execute(
                select(func.count(PaymentModel.id), func.sum(PaymentModel.amount_minor))
                .where(*_in_range(PaymentModel.recorded_at, date_range))
            ).one()

            expense_count, expenses = session.execute(
                select(func.count(ExpenseModel.id), func.sum(ExpenseModel.amount_minor))
                .where(*_in_range(ExpenseModel.incurred_at, date_range))
            ).one()

            claim_rows = session.execute(
                select(InsuranceClaimModel.status, func.count(InsuranceClaimModel.id))
                .where(*_in_range(InsuranceClaimModel.submitted_at, date_range))
                .group_by(InsuranceClaimModel.status)
            ).all()

        claims_by_status = {status: 0 for status in ClaimStatus}
        for status, count in claim_rows:
            claims_by_status[ClaimStatus(status)] = int(count)

        total_collected = Money(minor_units_from_db(collected))
        total_expenses = Money(minor_units_from_db(expenses))

        report = FinancialReport(
            date_range=date_range,
            total_billed=Money(minor_units_from_db(billed)),
            total_collected=total_collected,
            total_outstanding=Money(minor_units_from_db(outstanding)),
            total_expenses=total_expenses,
            net_revenue=total_collected.delta(total_expenses),
            claims_by_status=claims_by_status,
            invoice_count=int(invoice_count),
            payment_count=int(payment_count),
            expense_count=int(expense_count),
            currency=self.currency,
        )

        logger.info(
            "financial_report_built",
            extra={
                "range_start": date_range.start,
                "range_end": date_range.end,
                "invoice_count": report.invoice_count,
                "payment_count": report.payment_count,
                "expense_count": report.expense_count,
                "net_revenue_minor": report.net_revenue.minor_units,
            },
        )
        return report
