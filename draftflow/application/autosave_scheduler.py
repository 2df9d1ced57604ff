"""Periodic and on-demand draft persistence.

Every write is a whole-snapshot overwrite captured lazily at write time, and
writes are serialised through a single lock, so a scheduled tick and a forced
save can never interleave partial state. Persistence is best-effort: failures
are logged, emitted as events and retried on the next tick.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from draftflow.domain.constants import DEFAULT_AUTOSAVE_INTERVAL_SECONDS
from draftflow.domain.errors import StorageUnavailable
from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.models.save_outcome import SaveOutcome, SaveStatus
from draftflow.domain.models.workflow_state import DraftSnapshot
from draftflow.domain.persistence.draft_store import DraftStore

logger = logging.getLogger(__name__)

SnapshotAccessor = Callable[[], DraftSnapshot]
TimerFactory = Callable[[float, Callable[[], None]], Any]


def _daemon_timer(interval: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class AutoSaveScheduler:
    """Persists the live workflow snapshot on a fixed interval.

    A scheduled tick writes only when the snapshot content changed since the
    last successful write, or when it carries payload and nothing has been
    written yet. `force_save()` bypasses both checks.

    Args:
        store: Draft store to write through
        interval_seconds: Seconds between scheduled ticks
        emitter: Event emitter for save notifications
        timer_factory: Builds a one-shot timer with start()/cancel();
            defaults to a daemon threading.Timer
    """

    def __init__(
        self,
        store: DraftStore,
        *,
        interval_seconds: float = DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
        emitter: WorkflowEventEmitter | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.store = store
        self.interval_seconds = interval_seconds
        self.emitter = emitter or WorkflowEventEmitter()
        self._timer_factory = timer_factory or _daemon_timer

        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: Any = None
        self._accessor: SnapshotAccessor | None = None
        self._cancelled = False
        # Last persisted content key per session id
        self._persisted_keys: dict[str, str] = {}

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None and not self._cancelled

    def has_persisted(self, session_id: str) -> bool:
        return session_id in self._persisted_keys

    # ========================================================================
    # Scheduling
    # ========================================================================

    def schedule(self, get_snapshot: SnapshotAccessor) -> None:
        """Arm the recurring timer. Re-scheduling replaces the accessor."""
        with self._state_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._accessor = get_snapshot
            self._cancelled = False
            self._arm()

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once.

        A write already in progress is allowed to finish.
        """
        with self._state_lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _arm(self) -> None:
        self._timer = self._timer_factory(self.interval_seconds, self._on_timer)
        self._timer.start()

    def _on_timer(self) -> None:
        try:
            self.tick()
        except Exception:
            # A broken accessor must not kill the recurring timer.
            logger.exception("Scheduled auto-save tick failed")
        with self._state_lock:
            if not self._cancelled and self._accessor is not None:
                self._arm()

    # ========================================================================
    # Writes
    # ========================================================================

    def tick(self) -> SaveOutcome:
        """Run one scheduled save pass."""
        with self._write_lock:
            accessor = self._accessor
            if self._cancelled or accessor is None:
                return SaveOutcome(status=SaveStatus.CANCELLED)

            snapshot = accessor()
            key = snapshot.content_key()

            last_key = self._persisted_keys.get(snapshot.session_id)
            if last_key is None and not snapshot.has_payload():
                return SaveOutcome(status=SaveStatus.EMPTY, session_id=snapshot.session_id)
            if key == last_key:
                return SaveOutcome(status=SaveStatus.UNCHANGED, session_id=snapshot.session_id)

            return self._write(snapshot, key, forced=False)

    def force_save(self, get_snapshot: SnapshotAccessor | None = None) -> SaveOutcome:
        """Persist immediately, regardless of interval or change detection.

        Args:
            get_snapshot: Accessor to use; defaults to the scheduled one

        Returns:
            SaveOutcome; on storage failure `warning` carries a user-facing message

        Raises:
            ValueError: If no accessor was given and none is scheduled
        """
        accessor = get_snapshot or self._accessor
        if accessor is None:
            raise ValueError("force_save() needs a snapshot accessor")

        with self._write_lock:
            snapshot = accessor()
            return self._write(snapshot, snapshot.content_key(), forced=True)

    def _write(self, snapshot: DraftSnapshot, key: str, *, forced: bool) -> SaveOutcome:
        try:
            self.store.save(snapshot)
        except StorageUnavailable as e:
            warning = f"Draft could not be saved: {e}"
            logger.warning(f"Auto-save failed for session {snapshot.session_id} (forced={forced}): {e}")
            self.emitter.notify(
                WorkflowEventType.DRAFT_SAVE_FAILED,
                snapshot.session_id,
                phase_id=snapshot.current_phase_id,
                flow_variant=snapshot.flow_variant,
                message=warning,
                forced=forced,
            )
            return SaveOutcome(
                status=SaveStatus.FAILED,
                session_id=snapshot.session_id,
                warning=warning,
            )

        self._persisted_keys[snapshot.session_id] = key
        saved_at = datetime.now(timezone.utc)
        logger.debug(f"Saved draft {snapshot.session_id} (forced={forced})")
        self.emitter.notify(
            WorkflowEventType.DRAFT_SAVED,
            snapshot.session_id,
            phase_id=snapshot.current_phase_id,
            flow_variant=snapshot.flow_variant,
            forced=forced,
        )
        return SaveOutcome(status=SaveStatus.SAVED, session_id=snapshot.session_id, saved_at=saved_at)
