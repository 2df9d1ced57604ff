from typing import Literal
from pydantic import BaseModel, Field


class BaseOutput(BaseModel):
    schema_version: int = 1
    command: Literal[
        "start", "status", "update", "advance", "back", "jump", "branch",
        "save", "drafts", "duplicate", "discard",
    ]
    exit_code: int
    error: str | None = None


class StateOutput(BaseOutput):
    """Workflow position after a command."""

    session_id: str | None = None
    flow_kind: str | None = None
    flow_variant: str | None = None
    current_phase_id: str | None = None
    completed_phase_ids: list[str] = Field(default_factory=list)
    progress_percent: int | None = None
    status: str | None = None
    rejection: str | None = None
    message: str | None = None
    save_warning: str | None = None


class DraftSummary(BaseModel):
    """Summary of a single draft for list output."""
    session_id: str
    flow_kind: str
    flow_variant: str
    project_name: str | None = None
    current_phase_id: str
    progress_percent: int
    status: str
    saved_at: str


class DraftsOutput(BaseOutput):
    command: Literal["drafts"] = "drafts"
    drafts: list[DraftSummary] = Field(default_factory=list)


class DuplicateOutput(BaseOutput):
    command: Literal["duplicate"] = "duplicate"
    source_session_id: str
    session_id: str | None = None


class DiscardOutput(BaseOutput):
    command: Literal["discard"] = "discard"
    session_id: str
    deleted: bool = False
