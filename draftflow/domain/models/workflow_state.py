"""Live workflow state and the persisted draft snapshot derived from it."""

from enum import Enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from draftflow.domain.constants import DRAFT_VERSION
from draftflow.domain.models.phase import FlowKind, FlowVariant


class WorkflowStatus(str, Enum):
    IN_PROGRESS = "in_progress"    # Phases still open
    COMPLETE = "complete"          # Last phase completed via advance


class BranchTransitionRecord(BaseModel):
    """Record of a switch between flow variants."""

    from_variant: FlowVariant
    to_variant: FlowVariant
    carried_fields: list[str] = Field(default_factory=list)
    dropped_fields: list[str] = Field(default_factory=list)
    seed: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WorkflowState(BaseModel):
    """Live, in-memory state of one workflow attempt.

    May be ahead of the last persisted `DraftSnapshot`. Owned by exactly one
    orchestrator at a time.
    """

    # Identity
    session_id: str
    flow_kind: FlowKind
    flow_variant: FlowVariant = FlowVariant.DEFAULT

    # Position
    current_phase_id: str
    completed_phase_ids: list[str] = Field(default_factory=list)
    status: WorkflowStatus = WorkflowStatus.IN_PROGRESS

    # Opaque per-phase output produced by UI sub-features
    phase_payloads: dict[str, Any] = Field(default_factory=dict)

    # Branch history
    branch_trail: list[BranchTransitionRecord] = Field(default_factory=list)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Transient progress messages (excluded from serialization)
    messages: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("session_id", "current_phase_id")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("must be non-empty")
        return v2


class DraftSnapshot(BaseModel):
    """Persisted copy of a workflow attempt.

    Every save overwrites the whole snapshot; there are no partial patches.
    `version` is informational only.
    """

    model_config = ConfigDict(extra="forbid")

    session_id: str
    flow_kind: FlowKind
    flow_variant: FlowVariant = FlowVariant.DEFAULT
    version: str = DRAFT_VERSION
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    current_phase_id: str
    completed_phase_ids: list[str] = Field(default_factory=list)
    phase_payloads: dict[str, Any] = Field(default_factory=dict)
    progress_percent: int = 0
    status: WorkflowStatus = WorkflowStatus.IN_PROGRESS
    branch_trail: list[BranchTransitionRecord] = Field(default_factory=list)

    @field_validator("progress_percent")
    @classmethod
    def _progress_in_range(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("progress_percent must be between 0 and 100")
        return v

    def content_key(self) -> str:
        """Serialized content ignoring save metadata, for change detection."""
        return self.model_dump_json(exclude={"saved_at", "version"})

    def has_payload(self) -> bool:
        """True when at least one phase carries a non-empty payload."""
        return any(value not in (None, {}, [], "") for value in self.phase_payloads.values())
