"""
clinic_services.billing_ledger -- Facade over the billing modules.

Responsibility:
    Exposes every ledger operation behind one object.  Each call opens a
    session from the factory, builds the owning service, runs it, and
    closes the session.  Services own their transactions; the facade owns
    only session lifetime and per-call log context.

Architecture position:
    Services -- the top of the stack.  Imports kernel, modules and config.
    Nothing in ``clinic_kernel`` or ``clinic_modules`` imports from here.

Failure modes:
    Every failure is one of the typed ``ClinicLedgerError`` subclasses and
    is logged as ``ledger_operation_failed`` with its ``code`` before it
    propagates.  Unexpected exceptions are logged with a traceback.

Usage:
    from clinic_config import load_config
    from clinic_services import BillingLedger

    ledger = BillingLedger.from_config(load_config("ledger.yaml"))
    invoice = ledger.create_invoice(
        "patient-42", [{"description": "Consultation", "quantity": 1,
                        "unit_amount": ledger.money("100.00")}],
    )
    ledger.apply_payment(invoice.id, ledger.money("40.00"), "card")
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Iterator, Mapping
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from clinic_config.schema import LedgerConfig
from clinic_kernel.db.engine import build_engine
from clinic_kernel.domain.clock import Clock, SystemClock
from clinic_kernel.domain.values import DateRange, Money
from clinic_kernel.exceptions import ClinicLedgerError, ValidationError
from clinic_kernel.logging_config import LogContext, get_logger
from clinic_kernel.services.entity_lock import EntityLockRegistry
from clinic_modules._orm_registry import create_all_tables
from clinic_modules.claims import ClaimStatus, ClaimTracker, InsuranceClaim
from clinic_modules.expenses import Expense, ExpenseTracker
from clinic_modules.invoices import Invoice, InvoiceLedger, InvoiceStatus, LineItem
from clinic_modules.payments import Payment, PaymentMethod, PaymentProcessor, PaymentResult
from clinic_modules.profiles import BillingProfile, BillingProfileService
from clinic_modules.reporting import FinancialReport, ReportAggregator

logger = get_logger("services.billing_ledger")


class BillingLedger:
    """
    One object for the whole billing ledger.

    Contract:
        Safe to share across threads: every call uses its own session.
        All calls on one instance share the clock and the per-entity lock
        registry, so payments and claim moves from concurrent callers are
        serialized per entity.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
        lock_registry: EntityLockRegistry | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self.config = config or LedgerConfig()
        self._locks = lock_registry or EntityLockRegistry()

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        *,
        clock: Clock | None = None,
        create_schema: bool = True,
    ) -> BillingLedger:
        """
        Build a ledger with its own engine from a LedgerConfig.

        ``create_schema`` creates any missing tables (existing ones are
        left alone).
        """
        engine = build_engine(
            config.database_url,
            echo=config.echo_sql,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
        )
        if create_schema:
            create_all_tables(engine)
        logger.info(
            "billing_ledger_started",
            extra={"dialect": engine.dialect.name, "currency": config.currency},
        )
        return cls(
            sessionmaker(bind=engine, expire_on_commit=False),
            clock=clock,
            config=config,
        )

    def dispose(self) -> None:
        """Release the engine's pooled connections."""
        bind = self._session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()

    def money(self, amount: int | str | Decimal) -> Money:
        """
        Money from a major-unit amount in the configured currency.

        ``ledger.money("12.50")`` is 1250 minor units for a two-digit
        currency.

        Raises:
            ValidationError: Floats, unparseable strings, or more precision
                than the currency has.
        """
        try:
            return Money.of(amount, decimal_places=self.config.minor_unit_digits)
        except (TypeError, ValueError) as e:
            raise ValidationError("amount", str(e), amount) from e

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    def create_invoice(
        self,
        patient_id: str,
        line_items: Iterable[LineItem | Mapping[str, Any]],
        *,
        actor_id: UUID | None = None,
    ) -> Invoice:
        with self._call("create_invoice", actor_id) as session:
            return InvoiceLedger(session, self._clock).create_invoice(
                patient_id, line_items, actor_id=actor_id
            )

    def get_invoice(self, invoice_id: UUID | str) -> Invoice:
        with self._call("get_invoice") as session:
            return InvoiceLedger(session, self._clock).get_invoice(invoice_id)

    def list_invoices(
        self,
        *,
        patient_id: str | None = None,
        status: InvoiceStatus | str | None = None,
    ) -> list[Invoice]:
        with self._call("list_invoices") as session:
            return InvoiceLedger(session, self._clock).list_invoices(
                patient_id=patient_id, status=status
            )

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def apply_payment(
        self,
        invoice_id: UUID | str,
        amount: Money | int,
        method: PaymentMethod | str,
        *,
        reference: str | None = None,
        actor_id: UUID | None = None,
    ) -> PaymentResult:
        with self._call("apply_payment", actor_id) as session:
            return self._payments(session).apply_payment(
                invoice_id, amount, method, reference=reference, actor_id=actor_id
            )

    def list_payments(self, *, invoice_id: UUID | str | None = None) -> list[Payment]:
        with self._call("list_payments") as session:
            return self._payments(session).list_payments(invoice_id=invoice_id)

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def submit_claim(
        self,
        patient_id: str,
        invoice_id: UUID | str | None,
        insurer: str,
        claimed_amount: Money | int,
        *,
        policy_number: str | None = None,
        actor_id: UUID | None = None,
    ) -> InsuranceClaim:
        with self._call("submit_claim", actor_id) as session:
            return self._claims(session).submit_claim(
                patient_id,
                invoice_id,
                insurer,
                claimed_amount,
                policy_number=policy_number,
                actor_id=actor_id,
            )

    def advance_claim(
        self,
        claim_id: UUID | str,
        new_status: ClaimStatus | str,
        *,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> InsuranceClaim:
        with self._call("advance_claim", actor_id) as session:
            return self._claims(session).advance_claim(
                claim_id, new_status, notes=notes, actor_id=actor_id
            )

    def get_claim(self, claim_id: UUID | str) -> InsuranceClaim:
        with self._call("get_claim") as session:
            return self._claims(session).get_claim(claim_id)

    def list_claims(
        self,
        *,
        patient_id: str | None = None,
        status: ClaimStatus | str | None = None,
        invoice_id: UUID | str | None = None,
    ) -> list[InsuranceClaim]:
        with self._call("list_claims") as session:
            return self._claims(session).list_claims(
                patient_id=patient_id, status=status, invoice_id=invoice_id
            )

    # -------------------------------------------------------------------------
    # Expenses, reporting, profiles
    # -------------------------------------------------------------------------

    def record_expense(
        self,
        category: str,
        amount: Money | int,
        description: str | None = "",
        *,
        incurred_at: datetime | None = None,
        actor_id: UUID | None = None,
    ) -> Expense:
        with self._call("record_expense", actor_id) as session:
            return ExpenseTracker(session, self._clock).record_expense(
                category, amount, description, incurred_at=incurred_at, actor_id=actor_id
            )

    def list_expenses(self, date_range: DateRange | None = None) -> list[Expense]:
        with self._call("list_expenses") as session:
            return ExpenseTracker(session, self._clock).list_expenses(date_range)

    def build_report(self, date_range: DateRange) -> FinancialReport:
        with self._call("build_report") as session:
            return ReportAggregator(session, self.config.currency).build_report(date_range)

    def create_profile(
        self,
        patient_id: str,
        *,
        insurer: str | None = None,
        policy_number: str | None = None,
        billing_email: str | None = None,
        actor_id: UUID | None = None,
    ) -> BillingProfile:
        with self._call("create_profile", actor_id) as session:
            return BillingProfileService(session, self._clock).create_profile(
                patient_id,
                insurer=insurer,
                policy_number=policy_number,
                billing_email=billing_email,
                actor_id=actor_id,
            )

    def get_profile(self, patient_id: str) -> BillingProfile:
        with self._call("get_profile") as session:
            return BillingProfileService(session, self._clock).get_profile(patient_id)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _payments(self, session: Session) -> PaymentProcessor:
        return PaymentProcessor(
            session,
            self._clock,
            lock_registry=self._locks,
            retry_attempts=self.config.payment_retry_attempts,
            lock_timeout=self.config.lock_timeout_seconds,
        )

    def _claims(self, session: Session) -> ClaimTracker:
        return ClaimTracker(
            session,
            self._clock,
            lock_registry=self._locks,
            retry_attempts=self.config.payment_retry_attempts,
            lock_timeout=self.config.lock_timeout_seconds,
        )

    @contextmanager
    def _call(self, operation: str, actor_id: UUID | None = None) -> Iterator[Session]:
        """One session per call, with a fresh correlation id in the log context."""
        correlation_id = LogContext.get_all().get("correlation_id") or str(uuid4())
        with LogContext.bind(correlation_id=correlation_id, actor_id=actor_id):
            session = self._session_factory()
            try:
                yield session
            except ClinicLedgerError as e:
                logger.warning(
                    "ledger_operation_failed",
                    extra={"operation": operation, "error_code": e.code, "error": str(e)},
                )
                raise
            except Exception:
                logger.exception("ledger_operation_crashed", extra={"operation": operation})
                raise
            finally:
                session.close()
