"""
Module: clinic_kernel.selectors.base
Responsibility: Base class for read-only query selectors.  Selectors are the
    read side of the ledger: they return frozen DTOs or computed results and
    never create, modify or delete rows.
Architecture position: Kernel > Selectors.  May import from db/.  MUST NOT
    import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never call session.add(), delete(),
      flush() or commit().
    - Snapshot reads: ``_snapshot()`` runs a block inside one read
      transaction (REPEATABLE READ on PostgreSQL, a single explicit
      transaction on SQLite) and ends it with a rollback, so every query in
      the block sees the same committed state.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from clinic_kernel.exceptions import SnapshotUnavailableError
from clinic_kernel.logging_config import get_logger

logger = get_logger("selectors.base")


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _snapshot(self) -> Iterator[Session]:
        """
        Run the block in a single read transaction.

        Preconditions: the session has no transaction in progress (a
            snapshot cannot be opened half-way through someone else's work).

        Raises:
            SnapshotUnavailableError: If the session is already in a
                transaction.
        """
        if self.session.in_transaction():
            raise SnapshotUnavailableError()
        if self.session.get_bind().dialect.name == "postgresql":
            self.session.connection(
                execution_options={"isolation_level": "REPEATABLE READ"}
            )
        try:
            yield self.session
        finally:
            self.session.rollback()
