"""Glocal adaptation workspace: seven sequential adaptation phases."""

from draftflow.domain.models.phase import FlowKind, FlowVariant, PayloadTag, PhaseDescriptor
from draftflow.domain.phases.registry import FlowDefinition, PhaseRegistry

GLOCAL_PHASES = (
    PhaseDescriptor("phase_1", "Global Asset Context Capture", PayloadTag.CONTEXT_CAPTURE,
                    description="Upload and analyze source content"),
    PhaseDescriptor("phase_2", "Smart TM Intelligence", PayloadTag.TM_ANALYSIS,
                    description="AI translation with TM leverage and cultural context"),
    PhaseDescriptor("phase_3", "Cultural Intelligence", PayloadTag.CULTURAL_REVIEW,
                    description="Cultural adaptation analysis"),
    PhaseDescriptor("phase_4", "Regulatory Compliance", PayloadTag.REGULATORY_REVIEW,
                    description="Market-specific compliance"),
    PhaseDescriptor("phase_5", "Quality Intelligence", PayloadTag.QUALITY_REVIEW,
                    description="Quality assurance review"),
    PhaseDescriptor("phase_6", "DAM Handoff", PayloadTag.DAM_HANDOFF,
                    description="Prepare assets for DAM"),
    PhaseDescriptor("phase_7", "Integration & Lineage", PayloadTag.INTEGRATION,
                    description="Finalize and integrate"),
)


def register() -> None:
    PhaseRegistry.register(
        FlowKind.GLOCAL, FlowVariant.DEFAULT,
        FlowDefinition(phases=GLOCAL_PHASES, root=True),
    )
