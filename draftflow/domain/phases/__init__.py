"""Phase registries and completion inference."""

from draftflow.domain.phases.completion import COMPLETION_RULES, completed_phase_ids, is_complete
from draftflow.domain.phases.registry import FlowDefinition, PhaseRegistry, phases_for

__all__ = [
    "COMPLETION_RULES",
    "completed_phase_ids",
    "is_complete",
    "FlowDefinition",
    "PhaseRegistry",
    "phases_for",
]
