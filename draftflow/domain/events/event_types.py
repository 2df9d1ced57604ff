"""Workflow event types for observer pattern notifications."""

from enum import Enum


class WorkflowEventType(str, Enum):
    """Typed workflow events for UI and CLI notifications."""

    # Phase navigation
    PHASE_ENTERED = "phase_entered"
    PHASE_LOCKED = "phase_locked"

    # Drafts
    DRAFT_SAVED = "draft_saved"
    DRAFT_SAVE_FAILED = "draft_save_failed"
    DRAFT_RESTORED = "draft_restored"
    DRAFT_NOT_FOUND = "draft_not_found"

    # Branching
    BRANCH_TRANSITIONED = "branch_transitioned"
    CONTEXT_WARNING = "context_warning"

    # Workflow lifecycle
    WORKFLOW_COMPLETED = "workflow_completed"
