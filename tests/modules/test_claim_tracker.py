"""
Tests for the Insurance Claim Tracker (clinic_modules.claims).

Validates:
- Submission defaults and validation
- Forward-only transitions per CLAIM_WORKFLOW
- resolved_at stamped once and never changed
- Lookup and filtered listing
"""

from uuid import uuid4

import pytest

from clinic_kernel.domain.values import Money
from clinic_kernel.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from clinic_modules.claims import ClaimStatus


@pytest.fixture
def acme_claim(claim_tracker):
    return claim_tracker.submit_claim(
        "patient-42", None, "AcmeHealth", Money(5000), policy_number="ACME-778"
    )


class TestSubmitClaim:

    def test_submitted(self, acme_claim):
        assert acme_claim.status is ClaimStatus.SUBMITTED
        assert acme_claim.claimed_amount == Money(5000)
        assert acme_claim.insurer == "AcmeHealth"
        assert acme_claim.policy_number == "ACME-778"
        assert acme_claim.resolved_at is None
        assert acme_claim.invoice_id is None

    def test_invoice_id_is_not_resolved(self, claim_tracker):
        dangling = uuid4()
        claim = claim_tracker.submit_claim("patient-1", dangling, "AcmeHealth", 100)
        assert claim.invoice_id == dangling

    @pytest.mark.parametrize(
        "patient_id, insurer, amount, field",
        [
            ("patient-1", "AcmeHealth", 0, "claimed_amount"),
            ("patient-1", "AcmeHealth", -10, "claimed_amount"),
            ("patient-1", "", 100, "insurer"),
            ("patient-1", "   ", 100, "insurer"),
            ("", "AcmeHealth", 100, "patient_id"),
        ],
    )
    def test_rejected(self, claim_tracker, patient_id, insurer, amount, field):
        with pytest.raises(ValidationError) as exc_info:
            claim_tracker.submit_claim(patient_id, None, insurer, amount)
        assert exc_info.value.field == field
        assert claim_tracker.list_claims() == []


class TestAdvanceClaim:

    def test_review_then_approve_then_reject(self, claim_tracker, acme_claim):
        reviewing = claim_tracker.advance_claim(acme_claim.id, ClaimStatus.UNDER_REVIEW)
        assert reviewing.status is ClaimStatus.UNDER_REVIEW
        assert reviewing.resolved_at is None

        approved = claim_tracker.advance_claim(acme_claim.id, "approved", notes="Paid in full")
        assert approved.status is ClaimStatus.APPROVED
        assert approved.resolved_at is not None
        assert approved.notes == "Paid in full"

        with pytest.raises(InvalidTransitionError) as exc_info:
            claim_tracker.advance_claim(acme_claim.id, ClaimStatus.REJECTED)
        assert exc_info.value.from_status == "approved"
        assert exc_info.value.to_status == "rejected"
        assert exc_info.value.code == "INVALID_TRANSITION"

        assert claim_tracker.get_claim(acme_claim.id) == approved

    def test_direct_approval(self, claim_tracker, acme_claim):
        approved = claim_tracker.advance_claim(acme_claim.id, ClaimStatus.APPROVED)
        assert approved.resolved_at is not None

    def test_resolved_at_never_changes(self, claim_tracker, acme_claim):
        rejected = claim_tracker.advance_claim(acme_claim.id, ClaimStatus.REJECTED)
        for target in ClaimStatus:
            with pytest.raises(InvalidTransitionError):
                claim_tracker.advance_claim(acme_claim.id, target)
        assert claim_tracker.get_claim(acme_claim.id).resolved_at == rejected.resolved_at

    def test_approved_back_to_review_rejected(self, claim_tracker, acme_claim):
        claim_tracker.advance_claim(acme_claim.id, ClaimStatus.APPROVED)
        with pytest.raises(InvalidTransitionError):
            claim_tracker.advance_claim(acme_claim.id, ClaimStatus.UNDER_REVIEW)

    def test_same_state_rejected(self, claim_tracker, acme_claim):
        with pytest.raises(InvalidTransitionError):
            claim_tracker.advance_claim(acme_claim.id, ClaimStatus.SUBMITTED)

    def test_review_to_submitted_rejected(self, claim_tracker, acme_claim):
        claim_tracker.advance_claim(acme_claim.id, ClaimStatus.UNDER_REVIEW)
        with pytest.raises(InvalidTransitionError):
            claim_tracker.advance_claim(acme_claim.id, ClaimStatus.SUBMITTED)
        assert claim_tracker.get_claim(acme_claim.id).status is ClaimStatus.UNDER_REVIEW

    def test_unknown_claim(self, claim_tracker):
        with pytest.raises(NotFoundError) as exc_info:
            claim_tracker.advance_claim(uuid4(), ClaimStatus.APPROVED)
        assert exc_info.value.entity == "claim"

    def test_unknown_status(self, claim_tracker, acme_claim):
        with pytest.raises(ValidationError) as exc_info:
            claim_tracker.advance_claim(acme_claim.id, "paid")
        assert exc_info.value.field == "new_status"

    def test_transitions_logged(self, claim_tracker, acme_claim, captured_logs):
        claim_tracker.advance_claim(acme_claim.id, ClaimStatus.APPROVED)
        with pytest.raises(InvalidTransitionError):
            claim_tracker.advance_claim(acme_claim.id, ClaimStatus.REJECTED)

        messages = [r["message"] for r in captured_logs()]
        assert "claim_advanced" in messages
        assert "claim_transition_rejected" in messages
        advanced = next(r for r in captured_logs() if r["message"] == "claim_advanced")
        assert advanced["claim_id"] == str(acme_claim.id)
        assert advanced["from_status"] == "submitted"
        assert advanced["to_status"] == "approved"


class TestListClaims:

    def test_get_missing(self, claim_tracker):
        with pytest.raises(NotFoundError):
            claim_tracker.get_claim(uuid4())

    def test_filters_and_order(self, claim_tracker):
        invoice_id = uuid4()
        first = claim_tracker.submit_claim("patient-1", invoice_id, "AcmeHealth", 100)
        second = claim_tracker.submit_claim("patient-1", None, "Globex", 200)
        third = claim_tracker.submit_claim("patient-2", None, "AcmeHealth", 300)
        claim_tracker.advance_claim(second.id, ClaimStatus.REJECTED)

        assert [c.id for c in claim_tracker.list_claims()] == [third.id, second.id, first.id]
        assert [c.id for c in claim_tracker.list_claims(patient_id="patient-1")] == [
            second.id,
            first.id,
        ]
        assert [c.id for c in claim_tracker.list_claims(status="rejected")] == [second.id]
        assert [c.id for c in claim_tracker.list_claims(invoice_id=invoice_id)] == [first.id]
        assert claim_tracker.list_claims(status=ClaimStatus.APPROVED) == []
