"""
Clinic Kernel - shared infrastructure for the billing ledger.

- Exact integer-minor-unit money
- Typed, coded exceptions
- Structured JSON logging
- SQLAlchemy persistence with per-entity write guards
"""

__version__ = "0.1.0"
