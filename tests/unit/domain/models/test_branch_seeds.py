"""Tests for branch seed models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from draftflow.domain.models.branch_seeds import (
    BranchSeed,
    CampaignSeed,
    IntakeSeed,
    SingleAssetSeed,
    ThemeGenerationSeed,
)

adapter = TypeAdapter(BranchSeed)


def test_discriminator_selects_model() -> None:
    seed = adapter.validate_python(
        {"variant": "campaign", "projectName": "X", "selectedAssetTypes": ["email"]}
    )
    assert isinstance(seed, CampaignSeed)
    assert seed.selected_asset_types == ["email"]


def test_unknown_variant_rejected() -> None:
    with pytest.raises(ValidationError):
        adapter.validate_python({"variant": "glocal", "projectName": "X"})


def test_theme_generation_requires_project_and_indication() -> None:
    with pytest.raises(ValidationError) as exc_info:
        ThemeGenerationSeed.model_validate({"projectName": "  "})
    locs = {err["loc"][-1] for err in exc_info.value.errors()}
    assert locs == {"projectName", "indication"}


def test_unknown_keys_are_ignored() -> None:
    seed = SingleAssetSeed.model_validate({"projectName": "X", "internalNotes": "drop me"})
    assert "internalNotes" not in seed.model_dump(by_alias=True)


def test_field_aliases_use_payload_names() -> None:
    aliases = IntakeSeed.field_aliases()
    assert "projectName" in aliases
    assert "brand" in aliases
    assert "variant" not in aliases
    assert "project_name" not in aliases


def test_accepted_keys_cover_aliases_and_field_names() -> None:
    keys = IntakeSeed.accepted_keys()
    assert {"projectName", "project_name", "brand"} <= keys
    assert "variant" not in keys


def test_populate_by_field_name() -> None:
    seed = SingleAssetSeed(project_name="X", asset_type="email")
    assert seed.model_dump(by_alias=True, exclude_unset=True) == {
        "projectName": "X",
        "assetType": "email",
    }
