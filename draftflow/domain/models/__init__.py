"""Domain models for the draftflow workflow engine."""

from .phase import FlowKind, FlowVariant, PayloadTag, PhaseDescriptor
from .workflow_state import (
    BranchTransitionRecord,
    DraftSnapshot,
    WorkflowState,
    WorkflowStatus,
)
from .navigation_result import BranchResult, NavigationResult, RejectionReason
from .save_outcome import SaveOutcome, SaveStatus


__all__ = [
    "FlowKind",
    "FlowVariant",
    "PayloadTag",
    "PhaseDescriptor",
    "BranchTransitionRecord",
    "DraftSnapshot",
    "WorkflowState",
    "WorkflowStatus",
    "BranchResult",
    "NavigationResult",
    "RejectionReason",
    "SaveOutcome",
    "SaveStatus",
]
