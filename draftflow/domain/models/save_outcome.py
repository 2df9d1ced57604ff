"""Outcome of a single auto-save or forced save attempt."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SaveStatus(str, Enum):
    SAVED = "saved"            # Snapshot written
    UNCHANGED = "unchanged"    # Same content as the last write, skipped
    EMPTY = "empty"            # Nothing worth persisting yet, skipped
    FAILED = "failed"          # Storage unavailable
    CANCELLED = "cancelled"    # Scheduler torn down before the tick ran


@dataclass(frozen=True, slots=True)
class SaveOutcome:
    """Result of one persistence attempt.

    `warning` is set only for failures; callers surface it as a dismissible
    notice and keep the in-memory state as the source of truth.
    """

    status: SaveStatus
    session_id: str | None = None
    saved_at: datetime | None = None
    warning: str | None = None

    @property
    def saved(self) -> bool:
        return self.status == SaveStatus.SAVED
