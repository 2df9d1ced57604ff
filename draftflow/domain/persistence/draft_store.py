"""Draft persistence boundary.

A DraftStore offers upsert-by-session-id and read-by-session-id. A missing
draft is an ordinary result (`DraftNotFound`), not an exception; only real
infrastructure failures raise `StorageUnavailable`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from draftflow.domain.models.workflow_state import DraftSnapshot
from draftflow.domain.session_identity import SessionIdentity


@dataclass(frozen=True, slots=True)
class DraftNotFound:
    """No snapshot has been saved for `session_id`."""

    session_id: str


class DraftStore(ABC):
    """Abstract snapshot store keyed by session id."""

    @abstractmethod
    def save(self, snapshot: DraftSnapshot) -> None:
        """Persist `snapshot`, fully replacing any prior snapshot for its session.

        Raises:
            StorageUnavailable: If the underlying storage cannot be written
        """

    @abstractmethod
    def load(self, session_id: str) -> DraftSnapshot | DraftNotFound:
        """Most recently saved snapshot, or DraftNotFound.

        Raises:
            StorageUnavailable: If the underlying storage cannot be read
            ValueError: If the stored data is not a valid snapshot
        """

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Discard a draft. Returns False when there was nothing to delete."""

    @abstractmethod
    def list_sessions(self) -> list[str]:
        """Sorted ids of every stored draft."""

    def exists(self, session_id: str) -> bool:
        return isinstance(self.load(session_id), DraftSnapshot)

    # ========================================================================
    # Draft management helpers
    # ========================================================================

    def list_drafts(self) -> list[DraftSnapshot]:
        """Every readable draft, most recently saved first.

        Unreadable drafts are skipped so one corrupt file does not hide the rest.
        """
        drafts: list[DraftSnapshot] = []
        for session_id in self.list_sessions():
            try:
                result = self.load(session_id)
            except ValueError:
                continue
            if isinstance(result, DraftSnapshot):
                drafts.append(result)
        return sorted(drafts, key=lambda d: d.saved_at, reverse=True)

    def most_recent(self) -> DraftSnapshot | None:
        drafts = self.list_drafts()
        return drafts[0] if drafts else None

    def duplicate(self, session_id: str) -> DraftSnapshot | DraftNotFound:
        """Copy a draft under a freshly minted session id.

        Returns:
            The new snapshot, or DraftNotFound if the source does not exist
        """
        source = self.load(session_id)
        if isinstance(source, DraftNotFound):
            return source

        copy = source.model_copy(
            deep=True,
            update={
                "session_id": SessionIdentity().ensure(),
                "saved_at": datetime.now(timezone.utc),
            },
        )
        self.save(copy)
        return copy
