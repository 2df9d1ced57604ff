"""Structured results for navigation and branch operations.

Expected caller mistakes (locked phases, incomplete phases, bad seeds) are
reported through these results rather than raised.
"""

from dataclasses import dataclass, field
from enum import Enum

from draftflow.domain.errors import ConfigurationError
from draftflow.domain.models.workflow_state import BranchTransitionRecord, WorkflowState


class RejectionReason(str, Enum):
    """Why a navigation or branch request was refused."""

    PHASE_LOCKED = "phase_locked"              # Predecessor not complete
    PHASE_INCOMPLETE = "phase_incomplete"      # Current phase fails its completion rule
    AT_FIRST_PHASE = "at_first_phase"          # back() from the first phase
    UNKNOWN_PHASE = "unknown_phase"            # Phase id not in the active registry
    WORKFLOW_COMPLETE = "workflow_complete"    # advance() after completion
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True, slots=True)
class NavigationResult:
    """Outcome of advance/back/jump_to.

    Attributes:
        state: Workflow state after the attempt (unchanged when rejected)
        rejection: Reason the move was refused, None on success
        message: Human readable detail for gating feedback
        completed_workflow: True when advance() finished the last phase
    """

    state: WorkflowState
    rejection: RejectionReason | None = None
    message: str = ""
    completed_workflow: bool = False

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True, slots=True)
class BranchResult:
    """Outcome of a flow variant transition."""

    state: WorkflowState
    rejection: RejectionReason | None = None
    error: ConfigurationError | None = None
    record: BranchTransitionRecord | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.rejection is None
