from pathlib import Path
import json
import logging
import shutil
from typing import Any

from draftflow.domain.constants import (
    DEFAULT_DRAFTS_ROOT,
    DRAFT_FILENAME,
    DRAFT_TEMP_SUFFIX,
)
from draftflow.domain.errors import StorageUnavailable
from draftflow.domain.models.workflow_state import DraftSnapshot
from draftflow.domain.persistence.draft_store import DraftNotFound, DraftStore

logger = logging.getLogger(__name__)


class FileDraftStore(DraftStore):
    """Stores each draft as <drafts_root>/<session_id>/draft.json"""

    def __init__(self, drafts_root: Path | None = None):
        """
        Initialize the draft store.

        Args:
            drafts_root: Root directory for all drafts (default: .draftflow/drafts)
        """
        self.drafts_root = Path(drafts_root) if drafts_root else DEFAULT_DRAFTS_ROOT

    def save(self, snapshot: DraftSnapshot) -> None:
        """
        Write the snapshot to draft.json, replacing any previous one.

        Args:
            snapshot: The snapshot to persist

        Raises:
            StorageUnavailable: If the file cannot be written
        """
        draft_file = self._draft_file(snapshot.session_id)
        temp_file = draft_file.with_suffix(DRAFT_TEMP_SUFFIX)

        data = self._serialize(snapshot)

        # Write atomically - write to temp, then rename
        try:
            draft_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(draft_file)
        except OSError as e:
            raise StorageUnavailable(
                f"Could not write draft '{snapshot.session_id}': {e}",
                session_id=snapshot.session_id,
            ) from e

        logger.debug(f"Saved draft {snapshot.session_id} to {draft_file}")

    def load(self, session_id: str) -> DraftSnapshot | DraftNotFound:
        """
        Load the snapshot from draft.json

        Args:
            session_id: The session identifier

        Returns:
            The stored snapshot, or DraftNotFound

        Raises:
            StorageUnavailable: If the file exists but cannot be read
            ValueError: If draft.json is invalid
        """
        draft_file = self._draft_file(session_id)

        if not draft_file.exists():
            return DraftNotFound(session_id=session_id)

        try:
            with open(draft_file, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise StorageUnavailable(
                f"Could not read draft '{session_id}': {e}", session_id=session_id
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid draft data for '{session_id}': {e}") from e

        return self._deserialize(data)

    def delete(self, session_id: str) -> bool:
        """
        Delete a draft and its directory.

        Args:
            session_id: The session identifier

        Returns:
            True if a draft was removed, False if none existed
        """
        session_dir = self._session_dir(session_id)
        if not session_dir.exists():
            return False
        try:
            shutil.rmtree(session_dir)
        except OSError as e:
            raise StorageUnavailable(
                f"Could not delete draft '{session_id}': {e}", session_id=session_id
            ) from e
        return True

    def list_sessions(self) -> list[str]:
        if not self.drafts_root.exists():
            return []

        sessions = []
        for session_dir in self.drafts_root.iterdir():
            if session_dir.is_dir() and (session_dir / DRAFT_FILENAME).exists():
                sessions.append(session_dir.name)

        return sorted(sessions)

    def _session_dir(self, session_id: str) -> Path:
        # Session ids arrive from resume links; never let them escape the root.
        if not session_id or "/" in session_id or "\\" in session_id or session_id in (".", ".."):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.drafts_root / session_id

    def _draft_file(self, session_id: str) -> Path:
        return self._session_dir(session_id) / DRAFT_FILENAME

    def _serialize(self, snapshot: DraftSnapshot) -> dict[str, Any]:
        """Convert DraftSnapshot to JSON-serializable dict."""
        return snapshot.model_dump(mode="json")

    def _deserialize(self, data: Any) -> DraftSnapshot:
        """
        Convert JSON dict to DraftSnapshot.

        Raises:
            ValueError: If data is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Invalid draft data: root must be an object")
        try:
            return DraftSnapshot.model_validate(data)
        except Exception as e:
            raise ValueError(f"Invalid draft data: {e}") from e
