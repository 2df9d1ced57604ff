"""Static phase descriptions shared by every workflow kind."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FlowKind(str, Enum):
    """Which multi-phase workflow a session belongs to."""

    INTAKE = "intake"              # Project intake, theme generation, asset/campaign tracks
    LOCALIZATION = "localization"  # Localization hub
    GLOCAL = "glocal"              # Glocal adaptation workspace


class FlowVariant(str, Enum):
    """Mutually exclusive branch of a workflow kind."""

    DEFAULT = "default"
    THEME_GENERATION = "theme-generation"
    SINGLE_ASSET = "single-asset"
    CAMPAIGN = "campaign"


class PayloadTag(str, Enum):
    """Shape of the payload a phase produces.

    Each tag selects exactly one completion rule in
    `draftflow.domain.phases.completion`.
    """

    # Intake wizard steps
    INTAKE_BASIC = "intake_basic"
    INTAKE_ASSETS = "intake_assets"
    INTAKE_CONTENT = "intake_content"
    INTAKE_REGULATORY = "intake_regulatory"

    # Theme generation
    THEME_GENERATION = "theme_generation"
    THEME_SELECTION = "theme_selection"

    # Single asset / campaign tracks
    ASSET_SETUP = "asset_setup"
    CONTENT_DRAFT = "content_draft"
    CAMPAIGN_SETUP = "campaign_setup"
    CAMPAIGN_ASSETS = "campaign_assets"
    MLR_REVIEW = "mlr_review"

    # Localization / glocal adaptation
    CONTEXT_CAPTURE = "context_capture"
    TM_ANALYSIS = "tm_analysis"
    CULTURAL_REVIEW = "cultural_review"
    REGULATORY_REVIEW = "regulatory_review"
    QUALITY_REVIEW = "quality_review"
    DAM_HANDOFF = "dam_handoff"
    INTEGRATION = "integration"


@dataclass(frozen=True, slots=True)
class PhaseDescriptor:
    """One gated step of a workflow.

    Attributes:
        id: Stable phase identifier
        title: Human readable title
        payload_tag: Which completion rule applies to this phase's payload
        required: Optional phases never block navigation
        description: Short explanation shown alongside the title
    """

    id: str
    title: str
    payload_tag: PayloadTag
    required: bool = True
    description: str = ""

    def is_complete(self, payload: Any) -> bool:
        """Whether `payload` counts as valid output for this phase."""
        from draftflow.domain.phases.completion import is_complete

        return is_complete(self, payload)
