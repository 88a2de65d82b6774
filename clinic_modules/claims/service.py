"""
Insurance Claim Tracker Service (``clinic_modules.claims.service``).

Files claims and moves them through ``CLAIM_WORKFLOW``.  A status change
is a check-then-set on one claim, guarded the same way payments guard an
invoice: keyed lock, row lock where supported, version check.

Usage:
    tracker = ClaimTracker(session, clock)
    claim = tracker.submit_claim("patient-42", None, "AcmeHealth", Money(5000))
    claim = tracker.advance_claim(claim.id, ClaimStatus.UNDER_REVIEW)
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from clinic_kernel.domain.values import Money
from clinic_kernel.exceptions import InvalidTransitionError, NotFoundError
from clinic_kernel.logging_config import LogContext, get_logger
from clinic_kernel.services.base import GuardedService
from clinic_modules._validation import (
    coerce_enum,
    coerce_money,
    coerce_uuid,
    optional_text,
    require_text,
)
from clinic_modules.claims.models import ClaimStatus, InsuranceClaim
from clinic_modules.claims.orm import InsuranceClaimModel
from clinic_modules.claims.workflows import CLAIM_WORKFLOW

logger = get_logger("modules.claims.service")


class ClaimTracker(GuardedService):
    """
    Insurance claim lifecycle.

    Guarantees:
        - New claims start in the workflow's initial state.
        - Only transitions declared in CLAIM_WORKFLOW are applied.
        - resolved_at is stamped once, on entering a terminal state.
    """

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
        """
        File a new claim.

        ``invoice_id`` is recorded as given; it is not checked against the
        invoice ledger.

        Raises:
            ValidationError: Empty patient_id or insurer, or a claimed
                amount that is not positive.
        """
        patient_id = require_text(patient_id, "patient_id")
        if invoice_id is not None:
            invoice_id = coerce_uuid(invoice_id, "invoice_id")
        insurer = require_text(insurer, "insurer")
        claimed_amount = coerce_money(claimed_amount, "claimed_amount")
        policy_number = optional_text(policy_number, "policy_number")

        with LogContext.bind(patient_id=patient_id):
            with self._unit_of_work():
                claim = InsuranceClaimModel(
                    patient_id=patient_id,
                    invoice_id=invoice_id,
                    insurer=insurer,
                    policy_number=policy_number,
                    claimed_minor=claimed_amount.minor_units,
                    status=CLAIM_WORKFLOW.initial_state,
                    submitted_at=self.clock.now(),
                    created_by_id=actor_id,
                )
                self.session.add(claim)
                self.session.flush()
                result = claim.to_dto()

            logger.info(
                "claim_submitted",
                extra={
                    "claim_id": str(result.id),
                    "insurer": insurer,
                    "claimed_minor": claimed_amount.minor_units,
                },
            )
        return result

    def advance_claim(
        self,
        claim_id: UUID | str,
        new_status: ClaimStatus | str,
        *,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> InsuranceClaim:
        """
        Move a claim to a new status.

        Raises:
            NotFoundError: Unknown claim.
            InvalidTransitionError: The move is not in CLAIM_WORKFLOW
                (includes same-state moves and moves out of a terminal state).
        """
        claim_id = coerce_uuid(claim_id, "claim_id")
        new_status = coerce_enum(ClaimStatus, new_status, "new_status")
        notes = optional_text(notes, "notes")

        with LogContext.bind(claim_id=claim_id):
            try:
                result, from_status = self._run_guarded(
                    "claim",
                    claim_id,
                    lambda: self._advance(claim_id, new_status, notes, actor_id),
                )
            except InvalidTransitionError as e:
                logger.warning(
                    "claim_transition_rejected",
                    extra={"from_status": e.from_status, "to_status": e.to_status},
                )
                raise

            logger.info(
                "claim_advanced",
                extra={
                    "from_status": from_status,
                    "to_status": result.status.value,
                    "resolved": result.is_resolved,
                },
            )
        return result

    def get_claim(self, claim_id: UUID | str) -> InsuranceClaim:
        """
        Fetch one claim.

        Raises:
            NotFoundError: If no claim has this id.
        """
        claim_id = coerce_uuid(claim_id, "claim_id")
        with self._read():
            claim = self.session.execute(
                select(InsuranceClaimModel)
                .where(InsuranceClaimModel.id == claim_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if claim is None:
                raise NotFoundError("claim", claim_id)
            return claim.to_dto()

    def list_claims(
        self,
        *,
        patient_id: str | None = None,
        status: ClaimStatus | str | None = None,
        invoice_id: UUID | str | None = None,
    ) -> list[InsuranceClaim]:
        """List claims, most recently submitted first."""
        stmt = select(InsuranceClaimModel)
        if patient_id is not None:
            stmt = stmt.where(InsuranceClaimModel.patient_id == patient_id)
        if status is not None:
            stmt = stmt.where(
                InsuranceClaimModel.status
                == coerce_enum(ClaimStatus, status, "status").value
            )
        if invoice_id is not None:
            stmt = stmt.where(
                InsuranceClaimModel.invoice_id == coerce_uuid(invoice_id, "invoice_id")
            )
        stmt = stmt.order_by(
            InsuranceClaimModel.submitted_at.desc(), InsuranceClaimModel.id
        )

        with self._read():
            rows = self.session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars().all()
            return [row.to_dto() for row in rows]

    def _advance(
        self,
        claim_id: UUID,
        new_status: ClaimStatus,
        notes: str | None,
        actor_id: UUID | None,
    ) -> tuple[InsuranceClaim, str]:
        claim = self.session.execute(
            self._for_update(
                select(InsuranceClaimModel).where(InsuranceClaimModel.id == claim_id)
            ).execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if claim is None:
            raise NotFoundError("claim", claim_id)

        from_status = claim.status
        transition = CLAIM_WORKFLOW.find(from_status, new_status.value)
        if transition is None:
            raise InvalidTransitionError(claim_id, from_status, new_status.value)

        claim.status = new_status.value
        if transition.resolves and claim.resolved_at is None:
            claim.resolved_at = self.clock.now()
        if notes is not None:
            claim.notes = notes
        claim.updated_by_id = actor_id
        self.session.flush()
        return claim.to_dto(), from_status
