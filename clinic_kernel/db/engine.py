"""
Module: clinic_kernel.db.engine
Responsibility: Builds SQLAlchemy engines for the ledger's two backends and
    recognizes the errors a backend raises when a lock is contended.
Architecture position: Kernel > DB.  May import from db/base.py.
    ``drop_tables`` imports ``clinic_modules._orm_registry`` lazily so that
    every ORM module is registered before DDL runs.  Session factories are
    owned by the caller (``BillingLedger`` in production, fixtures in tests).

Supported backends:
    - PostgreSQL (production): READ COMMITTED sessions, QueuePool with
      pre-ping, and ``SELECT ... FOR UPDATE`` row locks on guarded writes.
    - SQLite (tests, single-host deployments): file databases run in WAL
      mode and connections may be shared across threads.  The driver's
      implicit transactions are replaced by an explicit BEGIN whose mode is
      chosen per connection through the ``SQLITE_BEGIN_OPTION`` execution
      option: DEFERRED (default) for reads, IMMEDIATE for writes.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError

from clinic_kernel.logging_config import get_logger

logger = get_logger("db.engine")

# Seconds a SQLite connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30

# Connection execution option read by the SQLite ``begin`` listener
SQLITE_BEGIN_OPTION = "clinic_sqlite_begin"
SQLITE_BEGIN_MODES = frozenset({"DEFERRED", "IMMEDIATE"})

# serialization_failure, deadlock_detected, lock_not_available
_PG_CONTENTION_CODES = frozenset({"40001", "40P01", "55P03"})
_SQLITE_CONTENTION_MESSAGES = ("database is locked", "database table is locked")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an Engine for ``database_url``.

    Args:
        database_url: SQLAlchemy URL (postgresql://..., sqlite:///...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (ignored for SQLite).
        max_overflow: Max connections beyond pool_size (ignored for SQLite).
        pool_pre_ping: Test connections before use (ignored for SQLite).
        pool_timeout: Seconds to wait for a pooled connection.
        pool_recycle: Seconds after which a connection is recycled.
    """
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )
    file_backed = url.database not in (None, "", ":memory:")

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if file_backed:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    # A deferred transaction that has read cannot take the write lock while
    # another writer holds it; SQLite fails that upgrade without waiting.
    # Writers therefore ask for IMMEDIATE, which waits on the busy timeout.
    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")
        if mode not in SQLITE_BEGIN_MODES:
            raise ValueError(f"Unsupported SQLite BEGIN mode: {mode!r}")
        conn.exec_driver_sql(f"BEGIN {mode}")

    logger.debug(
        "engine_built",
        extra={"dialect": "sqlite", "wal": file_backed},
    )
    return engine


def is_lock_contention(error: OperationalError) -> bool:
    """
    Whether ``error`` means another transaction held a lock we needed.

    Covers SQLite's ``database is locked`` and PostgreSQL serialization
    failures, deadlocks and NOWAIT lock refusals.  Anything else (lost
    connections, bad SQL) is not contention.
    """
    orig = error.orig
    if getattr(orig, "pgcode", None) in _PG_CONTENTION_CODES:
        return True
    message = str(orig).lower()
    return any(text in message for text in _SQLITE_CONTENTION_MESSAGES)


def drop_tables(engine: Engine) -> None:
    """Drop every ledger table. Destroys data; tests only."""
    from clinic_kernel.db.base import Base
    from clinic_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.drop_all(engine)
