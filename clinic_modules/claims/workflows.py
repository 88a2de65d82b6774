"""
Insurance Claim Workflow.

State machine for the claim lifecycle.  Claims only move forward;
APPROVED and REJECTED are terminal.
"""

from dataclasses import dataclass

from clinic_kernel.logging_config import get_logger
from clinic_modules.claims.models import ClaimStatus

logger = get_logger("modules.claims.workflows")


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    resolves: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    @property
    def terminal_states(self) -> frozenset[str]:
        """States with no outgoing transition."""
        sources = {t.from_state for t in self.transitions}
        return frozenset(s for s in self.states if s not in sources)

    def find(self, from_state: str, to_state: str) -> Transition | None:
        """The transition from one state to another, or None if illegal."""
        for transition in self.transitions:
            if transition.from_state == from_state and transition.to_state == to_state:
                return transition
        return None

    def allows(self, from_state: str, to_state: str) -> bool:
        return self.find(from_state, to_state) is not None


CLAIM_WORKFLOW = Workflow(
    name="insurance_claim",
    description="Insurance claim lifecycle",
    initial_state=ClaimStatus.SUBMITTED.value,
    states=tuple(status.value for status in ClaimStatus),
    transitions=(
        Transition(ClaimStatus.SUBMITTED.value, ClaimStatus.UNDER_REVIEW.value, action="review"),
        Transition(ClaimStatus.SUBMITTED.value, ClaimStatus.APPROVED.value, action="approve", resolves=True),
        Transition(ClaimStatus.SUBMITTED.value, ClaimStatus.REJECTED.value, action="reject", resolves=True),
        Transition(ClaimStatus.UNDER_REVIEW.value, ClaimStatus.APPROVED.value, action="approve", resolves=True),
        Transition(ClaimStatus.UNDER_REVIEW.value, ClaimStatus.REJECTED.value, action="reject", resolves=True),
    ),
)

logger.info(
    "claim_workflow_defined",
    extra={
        "workflow": CLAIM_WORKFLOW.name,
        "states": list(CLAIM_WORKFLOW.states),
        "transitions": len(CLAIM_WORKFLOW.transitions),
        "terminal_states": sorted(CLAIM_WORKFLOW.terminal_states),
    },
)
