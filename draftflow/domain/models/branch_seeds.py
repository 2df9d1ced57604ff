"""Seed payloads for entering a flow variant.

One model per variant, each carrying only the fields valid for that stage of
the intake flow. `BranchSeed` is the discriminated union over all of them,
keyed by `variant`. Keys use the camelCase names the UI payloads carry.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _SeedBase(BaseModel):
    # Unknown keys are dropped, not rejected: they are reported as dropped fields.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    brand: str | None = None

    @classmethod
    def field_aliases(cls) -> set[str]:
        return {f.alias or name for name, f in cls.model_fields.items() if name != "variant"}

    @classmethod
    def accepted_keys(cls) -> set[str]:
        """Input keys that populate a field: aliases and field names."""
        return cls.field_aliases() | {name for name in cls.model_fields if name != "variant"}


class IntakeSeed(_SeedBase):
    """Re-entry into the intake wizard (e.g. back from theme generation)."""

    variant: Literal["default"] = "default"
    project_name: str | None = Field(default=None, alias="projectName")
    initiative_type: Literal["single-asset", "campaign"] | None = Field(
        default=None, alias="initiativeType"
    )
    indication: str | None = None
    primary_audience: str | None = Field(default=None, alias="primaryAudience")
    target_markets: list[str] = Field(default_factory=list, alias="targetMarkets")
    selected_asset_types: list[str] = Field(default_factory=list, alias="selectedAssetTypes")


class ThemeGenerationSeed(_SeedBase):
    """Completed intake data handed to theme generation."""

    variant: Literal["theme-generation"] = "theme-generation"
    project_name: NonEmptyStr = Field(alias="projectName")
    indication: NonEmptyStr
    initiative_type: Literal["single-asset", "campaign"] | None = Field(
        default=None, alias="initiativeType"
    )
    primary_audience: str | None = Field(default=None, alias="primaryAudience")
    audience_segment: list[str] = Field(default_factory=list, alias="audienceSegment")
    target_markets: list[str] = Field(default_factory=list, alias="targetMarkets")
    selected_asset_types: list[str] = Field(default_factory=list, alias="selectedAssetTypes")
    primary_objective: str | None = Field(default=None, alias="primaryObjective")
    key_message: str | None = Field(default=None, alias="keyMessage")
    call_to_action: str | None = Field(default=None, alias="callToAction")
    planned_launch: str | None = Field(default=None, alias="plannedLaunch")


class SingleAssetSeed(_SeedBase):
    """Entry into the single deliverable track."""

    variant: Literal["single-asset"] = "single-asset"
    project_name: NonEmptyStr = Field(alias="projectName")
    asset_type: str | None = Field(default=None, alias="assetType")
    indication: str | None = None
    key_message: str | None = Field(default=None, alias="keyMessage")
    selected_theme: dict[str, Any] | None = Field(default=None, alias="selectedTheme")
    selected_theme_id: str | None = Field(default=None, alias="selectedThemeId")


class CampaignSeed(_SeedBase):
    """Entry into the multi-deliverable campaign track."""

    variant: Literal["campaign"] = "campaign"
    project_name: NonEmptyStr = Field(alias="projectName")
    selected_asset_types: list[str] = Field(default_factory=list, alias="selectedAssetTypes")
    indication: str | None = None
    target_markets: list[str] = Field(default_factory=list, alias="targetMarkets")
    selected_theme: dict[str, Any] | None = Field(default=None, alias="selectedTheme")
    selected_theme_id: str | None = Field(default=None, alias="selectedThemeId")


BranchSeed = Annotated[
    Union[IntakeSeed, ThemeGenerationSeed, SingleAssetSeed, CampaignSeed],
    Field(discriminator="variant"),
]
