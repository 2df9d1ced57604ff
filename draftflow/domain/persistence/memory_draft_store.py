import threading

from draftflow.domain.models.workflow_state import DraftSnapshot
from draftflow.domain.persistence.draft_store import DraftNotFound, DraftStore


class InMemoryDraftStore(DraftStore):
    """Process-local store holding serialized snapshots.

    Snapshots are kept as JSON text so later mutation of a saved object
    cannot leak into the stored copy.
    """

    def __init__(self) -> None:
        self._drafts: dict[str, str] = {}
        self._lock = threading.Lock()
        self.save_count = 0

    def save(self, snapshot: DraftSnapshot) -> None:
        with self._lock:
            self._drafts[snapshot.session_id] = snapshot.model_dump_json()
            self.save_count += 1

    def load(self, session_id: str) -> DraftSnapshot | DraftNotFound:
        with self._lock:
            raw = self._drafts.get(session_id)
        if raw is None:
            return DraftNotFound(session_id=session_id)
        return DraftSnapshot.model_validate_json(raw)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._drafts.pop(session_id, None) is not None

    def list_sessions(self) -> list[str]:
        with self._lock:
            return sorted(self._drafts)
