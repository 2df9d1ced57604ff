"""Localization hub: the same seven-phase pipeline under hub tab ids."""

from draftflow.domain.models.phase import FlowKind, FlowVariant, PayloadTag, PhaseDescriptor
from draftflow.domain.phases.registry import FlowDefinition, PhaseRegistry

LOCALIZATION_PHASES = (
    PhaseDescriptor("phase1", "Global Context", PayloadTag.CONTEXT_CAPTURE),
    PhaseDescriptor("phase2", "Smart TM", PayloadTag.TM_ANALYSIS),
    PhaseDescriptor("phase3", "Cultural Intel", PayloadTag.CULTURAL_REVIEW),
    PhaseDescriptor("phase4", "Regulatory", PayloadTag.REGULATORY_REVIEW),
    PhaseDescriptor("phase5", "Quality Intel", PayloadTag.QUALITY_REVIEW),
    PhaseDescriptor("phase6", "DAM Handoff", PayloadTag.DAM_HANDOFF),
    PhaseDescriptor("phase7", "Integration", PayloadTag.INTEGRATION),
)


def register() -> None:
    PhaseRegistry.register(
        FlowKind.LOCALIZATION, FlowVariant.DEFAULT,
        FlowDefinition(phases=LOCALIZATION_PHASES, root=True),
    )
