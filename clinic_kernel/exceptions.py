"""
Typed Exception Hierarchy for the Clinic Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (the API layer) must map every failure to a response
without parsing message strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        processor.apply_payment(invoice_id, Money(4000), PaymentMethod.CARD)
    except OverpaymentError as e:
        api_response(409, code=e.code, balance=e.balance)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ClinicLedgerError (base)
    |
    +-- ValidationError
    |   +-- DuplicateProfileError
    |
    +-- NotFoundError
    |
    +-- DomainRuleError
    |   +-- OverpaymentError
    |   +-- InvalidTransitionError
    |
    +-- ConcurrencyConflictError
    +-- SnapshotUnavailableError
    |
    +-- LedgerInvariantError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                        | When Raised
----------------------------|-------------------------------------------------
VALIDATION_ERROR            | Malformed or out-of-range input (never retried)
DUPLICATE_PROFILE           | Patient already has a billing profile
NOT_FOUND                   | Referenced entity does not exist
OVERPAYMENT                 | Payment amount exceeds the invoice balance
INVALID_TRANSITION          | Claim status move not in the claim workflow
CONCURRENCY_CONFLICT        | Lost the atomic race after the internal retry,
                            | or the database lock stayed contended
SNAPSHOT_UNAVAILABLE        | Report requested inside an open transaction
LEDGER_INVARIANT_VIOLATION  | Payment log no longer sums to the paid amount

All errors are terminal for the operation that raised them; the owning
service has rolled back its transaction before the error reaches the caller.
"""

from __future__ import annotations

from typing import Any


class ClinicLedgerError(Exception):
    """
    Base exception for all clinic ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CLINIC_LEDGER_ERROR"


# Input errors


class ValidationError(ClinicLedgerError):
    """Input is malformed or out of range. Caller's fault; never retried."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, value: Any = None):
        self.field = field
        self.reason = reason
        self.value = value
        super().__init__(f"Invalid {field}: {reason}")


class DuplicateProfileError(ValidationError):
    """A billing profile already exists for the patient."""

    code: str = "DUPLICATE_PROFILE"

    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(
            "patient_id",
            f"billing profile already exists for patient {patient_id}",
            patient_id,
        )


# Lookup errors


class NotFoundError(ClinicLedgerError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} not found: {entity_id}")


# Domain-rule errors


class DomainRuleError(ClinicLedgerError):
    """Base exception for violations of billing domain rules."""

    code: str = "DOMAIN_RULE_ERROR"


class OverpaymentError(DomainRuleError):
    """
    Payment exceeds the invoice's remaining balance.

    Credit balances are not supported; this is a hard rule, not a warning.
    """

    code: str = "OVERPAYMENT"

    def __init__(self, invoice_id: Any, amount: int, balance: int):
        self.invoice_id = str(invoice_id)
        self.amount = amount
        self.balance = balance
        super().__init__(
            f"Payment of {amount} exceeds balance {balance} "
            f"on invoice {invoice_id}"
        )


class InvalidTransitionError(DomainRuleError):
    """Claim status move is not permitted by the claim workflow."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, claim_id: Any, from_status: str, to_status: str):
        self.claim_id = str(claim_id)
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move claim {claim_id} from {from_status} to {to_status}"
        )


# Concurrency errors


class ConcurrencyConflictError(ClinicLedgerError):
    """
    Lost the atomic race on an entity.

    Raised only after the internal retry has also lost; the caller may retry
    the whole operation.
    """

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, entity: str, entity_id: Any, attempts: int):
        self.entity = entity
        self.entity_id = str(entity_id)
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of {entity} {entity_id} "
            f"after {attempts} attempt(s)"
        )


class SnapshotUnavailableError(ClinicLedgerError):
    """
    A snapshot read was requested on a session whose transaction is already
    open, so the read could not start from one consistent state.
    """

    code: str = "SNAPSHOT_UNAVAILABLE"

    def __init__(self, reason: str = "session already has an open transaction"):
        self.reason = reason
        super().__init__(f"Snapshot read unavailable: {reason}")


# Internal consistency errors


class LedgerInvariantError(ClinicLedgerError):
    """Payment log and paid amount disagree. Indicates corrupted data."""

    code: str = "LEDGER_INVARIANT_VIOLATION"

    def __init__(self, invoice_id: Any, paid_amount: int, payments_total: int):
        self.invoice_id = str(invoice_id)
        self.paid_amount = paid_amount
        self.payments_total = payments_total
        super().__init__(
            f"Invoice {invoice_id} paid amount {paid_amount} != "
            f"sum of payments {payments_total}"
        )
