"""Intake flow: the intake wizard plus its downstream branches.

default -> theme-generation -> single-asset | campaign
"""

from draftflow.domain.models.branch_seeds import (
    CampaignSeed,
    IntakeSeed,
    SingleAssetSeed,
    ThemeGenerationSeed,
)
from draftflow.domain.models.phase import FlowKind, FlowVariant, PayloadTag, PhaseDescriptor
from draftflow.domain.phases.registry import FlowDefinition, PhaseRegistry

INTAKE_PHASES = (
    PhaseDescriptor("basic", "Basic Information", PayloadTag.INTAKE_BASIC,
                    description="Project name, initiative type and indication"),
    PhaseDescriptor("assets", "Asset Selection", PayloadTag.INTAKE_ASSETS,
                    description="Deliverable types to produce"),
    PhaseDescriptor("content", "Content Strategy", PayloadTag.INTAKE_CONTENT,
                    description="Objective and key message"),
    PhaseDescriptor("regulatory", "Regulatory & Timeline", PayloadTag.INTAKE_REGULATORY,
                    description="Planned launch and regulatory flags"),
)

THEME_GENERATION_PHASES = (
    PhaseDescriptor("themes", "Theme Generation", PayloadTag.THEME_GENERATION,
                    description="Generate candidate creative themes"),
    PhaseDescriptor("selection", "Theme Selection", PayloadTag.THEME_SELECTION,
                    description="Pick the theme to build on"),
)

SINGLE_ASSET_PHASES = (
    PhaseDescriptor("asset_setup", "Asset Setup", PayloadTag.ASSET_SETUP),
    PhaseDescriptor("content_draft", "Content Draft", PayloadTag.CONTENT_DRAFT),
    PhaseDescriptor("mlr_review", "MLR Review", PayloadTag.MLR_REVIEW,
                    description="Medical, legal and regulatory review"),
)

CAMPAIGN_PHASES = (
    PhaseDescriptor("campaign_setup", "Campaign Setup", PayloadTag.CAMPAIGN_SETUP),
    PhaseDescriptor("asset_plan", "Asset Plan", PayloadTag.CAMPAIGN_ASSETS,
                    description="Deliverables planned for the campaign"),
    PhaseDescriptor("mlr_review", "MLR Review", PayloadTag.MLR_REVIEW,
                    description="Medical, legal and regulatory review"),
)


def register() -> None:
    PhaseRegistry.register(
        FlowKind.INTAKE, FlowVariant.DEFAULT,
        FlowDefinition(phases=INTAKE_PHASES, seed_model=IntakeSeed, root=True),
    )
    PhaseRegistry.register(
        FlowKind.INTAKE, FlowVariant.THEME_GENERATION,
        FlowDefinition(phases=THEME_GENERATION_PHASES, seed_model=ThemeGenerationSeed),
    )
    PhaseRegistry.register(
        FlowKind.INTAKE, FlowVariant.SINGLE_ASSET,
        FlowDefinition(phases=SINGLE_ASSET_PHASES, seed_model=SingleAssetSeed),
    )
    PhaseRegistry.register(
        FlowKind.INTAKE, FlowVariant.CAMPAIGN,
        FlowDefinition(phases=CAMPAIGN_PHASES, seed_model=CampaignSeed),
    )
