"""
Module ORM Registry (``clinic_modules._orm_registry``).

Ensures every module ORM model is imported so ``Base.metadata`` holds all
ledger tables before ``create_all()`` runs.  Tests, the facade and scripts
all go through ``create_all_tables()``.
"""

from sqlalchemy.engine import Engine


def import_all_orm_models() -> None:
    """Import every ``clinic_modules.*.orm`` module (idempotent)."""
    # fmt: off
    import clinic_modules.invoices.orm  # noqa: F401
    import clinic_modules.payments.orm  # noqa: F401
    import clinic_modules.claims.orm  # noqa: F401
    import clinic_modules.expenses.orm  # noqa: F401
    import clinic_modules.profiles.orm  # noqa: F401
    # fmt: on


def create_all_tables(engine: Engine) -> None:
    """Register all ORM models and create their tables on ``engine``."""
    from clinic_kernel.db.base import Base

    import_all_orm_models()
    Base.metadata.create_all(engine)
