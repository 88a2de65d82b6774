"""
BaseService -- base classes for ledger services.

Responsibility:
    Provides the common constructor and the transaction-boundary contract
    for every service that writes ledger data.  Ledger services own their
    transaction: each public operation commits on success and rolls back on
    any failure, so no partial mutation is ever visible.

    GuardedService adds the per-entity write guard used by operations that
    read-check-update a single row (payment application, claim transitions):
      1. in-process keyed lock on the entity,
      2. ``SELECT ... FOR UPDATE`` where the backend supports it (done by the
         subclass query),
      3. optimistic ``version`` column on the row; a lost race is retried
         a bounded number of times and then surfaced.

Failure modes:
    - ConcurrencyConflictError when the entity lock times out, or when the
      version check or a contended database lock still fails after the
      internal retries.
    - Any other exception propagates unchanged after rollback.
"""

from __future__ import annotations

from abc import ABC
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clinic_kernel.db.engine import SQLITE_BEGIN_OPTION, is_lock_contention
from clinic_kernel.domain.clock import Clock, SystemClock
from clinic_kernel.exceptions import ConcurrencyConflictError
from clinic_kernel.logging_config import get_logger
from clinic_kernel.services.entity_lock import EntityLockRegistry, default_lock_registry

logger = get_logger("services.base")

T = TypeVar("T")


class BaseService(ABC):
    """
    Abstract base class for ledger services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  The session must
        not be shared across threads; create one service per session.

    Guarantees:
        - ``_unit_of_work()`` commits on success and rolls back on any
          exception before re-raising it.
        - On SQLite a unit of work holds the database write lock from its
          first statement, so writes to different entities queue on the
          busy timeout instead of failing.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        """Commit on success, roll back and re-raise on failure."""
        try:
            self._begin_write()
            yield self.session
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    @contextmanager
    def _read(self) -> Iterator[Session]:
        """
        Run read-only queries and end the transaction they opened.

        Leaves a transaction the caller already had in progress untouched.
        """
        started = not self.session.in_transaction()
        try:
            yield self.session
        finally:
            if started:
                self.session.rollback()

    def _begin_write(self) -> None:
        # Joins a transaction the caller already opened as-is
        if self.session.in_transaction():
            return
        if self.session.get_bind().dialect.name == "sqlite":
            self.session.connection(
                execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"}
            )


class GuardedService(BaseService):
    """
    Service whose writes to a single entity are mutually exclusive.

    Args:
        session: SQLAlchemy session.
        clock: Time source for stamps.
        lock_registry: Keyed locks shared by all services in the process.
        retry_attempts: Internal retries after a lost version race.
        lock_timeout: Seconds to wait for the entity lock (None = no limit).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        lock_registry: EntityLockRegistry | None = None,
        retry_attempts: int = 1,
        lock_timeout: float | None = None,
    ):
        super().__init__(session, clock)
        if retry_attempts < 0:
            raise ValueError("retry_attempts cannot be negative")
        self._locks = lock_registry or default_lock_registry
        self._retry_attempts = retry_attempts
        self._lock_timeout = lock_timeout

    def _for_update(self, stmt: Any) -> Any:
        """Add a row lock on backends that support one (no-op on SQLite)."""
        bind = self.session.get_bind()
        if bind.dialect.name == "sqlite":
            return stmt
        return stmt.with_for_update()

    def _run_guarded(self, entity: str, entity_id: Any, work: Callable[[], T]) -> T:
        """
        Run ``work`` as one transaction while holding the entity's guard.

        ``work`` must re-read the entity itself; a retry runs it again
        against fresh state.
        """
        max_attempts = self._retry_attempts + 1
        for attempt in range(1, max_attempts + 1):
            try:
                with self._locks.hold((entity, entity_id), timeout=self._lock_timeout):
                    with self._unit_of_work():
                        return work()
            except TimeoutError as e:
                raise ConcurrencyConflictError(entity, entity_id, attempt) from e
            except StaleDataError as e:
                self._lost_race("guarded_write_version_conflict", entity, entity_id, attempt, e)
            except OperationalError as e:
                if not is_lock_contention(e):
                    raise
                self._lost_race("guarded_write_lock_contention", entity, entity_id, attempt, e)
        raise AssertionError("unreachable")

    def _lost_race(
        self, event: str, entity: str, entity_id: Any, attempt: int, error: Exception
    ) -> None:
        """Log a lost race; raise once the retries are used up."""
        max_attempts = self._retry_attempts + 1
        logger.warning(
            event,
            extra={
                "entity": entity,
                "entity_id": str(entity_id),
                "attempt": attempt,
                "max_attempts": max_attempts,
            },
        )
        if attempt == max_attempts:
            raise ConcurrencyConflictError(entity, entity_id, attempt) from error
