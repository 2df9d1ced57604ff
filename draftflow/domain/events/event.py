from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.models.phase import FlowVariant


class WorkflowEvent(BaseModel):
    """One notification about a workflow session.

    Attributes:
        event_type: What happened
        session_id: Session the event belongs to
        timestamp: When it happened (UTC)
        phase_id: Phase active at the time, when relevant
        flow_variant: Variant active at the time, when relevant
        message: User-facing detail (lock reason, save warning, ...)
        metadata: Event-specific extras such as carried/dropped branch fields
    """

    model_config = ConfigDict(frozen=True)

    event_type: WorkflowEventType
    session_id: str
    timestamp: datetime
    phase_id: str | None = None
    flow_variant: FlowVariant | None = None
    message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
