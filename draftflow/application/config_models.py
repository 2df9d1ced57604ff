"""Engine configuration models.

Config structure (.draftflow/config.yml):
    drafts_root: .draftflow/drafts
    draft_version: "1.0"
    autosave:
      enabled: true
      interval_seconds: 30
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from draftflow.domain.constants import (
    DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
    DEFAULT_DRAFTS_ROOT,
    DRAFT_VERSION,
)


class AutoSaveConfig(BaseModel):
    """Auto-save timer settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    interval_seconds: float = DEFAULT_AUTOSAVE_INTERVAL_SECONDS

    @field_validator("interval_seconds")
    @classmethod
    def _interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval_seconds must be > 0")
        return v


class EngineConfig(BaseModel):
    """Top-level engine configuration."""

    model_config = ConfigDict(extra="forbid")

    drafts_root: Path = DEFAULT_DRAFTS_ROOT
    draft_version: str = DRAFT_VERSION
    autosave: AutoSaveConfig = Field(default_factory=AutoSaveConfig)
