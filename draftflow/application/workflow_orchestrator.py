"""Workflow orchestration façade.

The only component UI surfaces call. It owns the live WorkflowState for one
session, delegates navigation to PhaseStateMachine, branching and resume to
FlowBranchController, and persistence to AutoSaveScheduler.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from draftflow.application.autosave_scheduler import AutoSaveScheduler
from draftflow.application.flow_branch_controller import FlowBranchController
from draftflow.application.phase_state_machine import PhaseStateMachine
from draftflow.domain.constants import DEFAULT_AUTOSAVE_INTERVAL_SECONDS, DRAFT_VERSION
from draftflow.domain.errors import ConfigurationError, StorageUnavailable
from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.models.navigation_result import BranchResult, NavigationResult, RejectionReason
from draftflow.domain.models.phase import FlowKind, FlowVariant
from draftflow.domain.models.save_outcome import SaveOutcome
from draftflow.domain.models.workflow_state import DraftSnapshot, WorkflowState
from draftflow.domain.persistence.draft_store import DraftNotFound, DraftStore
from draftflow.domain.phases.registry import PhaseRegistry
from draftflow.domain.session_identity import SessionIdentity

logger = logging.getLogger(__name__)


class WorkflowNotStarted(Exception):
    """Raised when an operation needs a started workflow."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation}: call start() first")


@dataclass
class WorkflowOrchestrator:
    """Top-level façade over one workflow attempt.

    Usage:
        orchestrator = WorkflowOrchestrator(draft_store=FileDraftStore())
        state = orchestrator.start("intake", resume_session_id=resume_id)
        orchestrator.update_phase_payload("basic", {...})
        result = orchestrator.advance()
        ...
        orchestrator.teardown()

    Navigation never waits on persistence; saving happens on the autosave
    timer or through save_now().
    """

    draft_store: DraftStore
    event_emitter: WorkflowEventEmitter | None = None
    autosave_enabled: bool = True
    autosave_interval_seconds: float = DEFAULT_AUTOSAVE_INTERVAL_SECONDS
    draft_version: str = DRAFT_VERSION
    scheduler: AutoSaveScheduler | None = None

    _machine: PhaseStateMachine | None = field(default=None, init=False, repr=False)
    _branches: FlowBranchController | None = field(default=None, init=False, repr=False)
    _torn_down: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.event_emitter is None:
            self.event_emitter = WorkflowEventEmitter()
        if self.scheduler is None:
            self.scheduler = AutoSaveScheduler(
                self.draft_store,
                interval_seconds=self.autosave_interval_seconds,
                emitter=self.event_emitter,
            )
        self._branches = FlowBranchController(self.draft_store, self.event_emitter)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def start(
        self,
        flow_kind: FlowKind | str,
        flow_variant: FlowVariant | str | None = None,
        resume_session_id: str | None = None,
    ) -> WorkflowState:
        """Begin a fresh attempt or resume a saved one.

        A resume id with no usable snapshot degrades to a fresh start with a
        logged notice; it never fails the call.

        Args:
            flow_kind: Workflow kind ("intake", "localization", "glocal")
            flow_variant: Variant for a fresh start (default: the kind's root)
            resume_session_id: Session to resume, as extracted from a link

        Returns:
            The live workflow state

        Raises:
            ConfigurationError: If flow_kind or flow_variant is unknown
        """
        registry = PhaseRegistry.for_variant(flow_kind, flow_variant)
        self._torn_down = False

        machine = None
        if resume_session_id:
            machine = self._resume(registry.flow_kind, resume_session_id)

        if machine is None:
            session_id = SessionIdentity().ensure()
            state = WorkflowState(
                session_id=session_id,
                flow_kind=registry.flow_kind,
                flow_variant=registry.flow_variant,
                current_phase_id=registry.first.id,
            )
            machine = PhaseStateMachine(registry, state)
            logger.info(
                f"Started {registry.flow_kind.value}/{registry.flow_variant.value} session {session_id}"
            )

        self._machine = machine
        self._emit_phase_entered()

        if self.autosave_enabled:
            self.scheduler.schedule(self.snapshot)
        return machine.state

    def _resume(self, flow_kind: FlowKind, session_id: str) -> PhaseStateMachine | None:
        try:
            resumed = self._branches.resume(session_id)
        except (StorageUnavailable, ValueError, ConfigurationError) as e:
            logger.warning(f"Could not read draft {session_id}, starting over: {e}")
            self._notify(WorkflowEventType.DRAFT_NOT_FOUND, session_id, message=str(e))
            return None

        if isinstance(resumed, DraftNotFound):
            logger.warning(f"DraftNotFound: no draft saved for session {session_id}, starting over")
            self._notify(
                WorkflowEventType.DRAFT_NOT_FOUND,
                session_id,
                message="No saved draft for this link; starting a new session",
            )
            return None

        if resumed.snapshot.flow_kind != flow_kind:
            logger.warning(
                f"Draft {session_id} belongs to flow '{resumed.snapshot.flow_kind.value}', "
                f"not '{flow_kind.value}'; starting over"
            )
            self._notify(
                WorkflowEventType.DRAFT_NOT_FOUND,
                session_id,
                message=f"Draft belongs to the {resumed.snapshot.flow_kind.value} flow",
            )
            return None

        state = resumed.machine.state
        stored = set(resumed.snapshot.completed_phase_ids)
        if stored != set(state.completed_phase_ids):
            logger.info(
                f"Session {session_id}: stored completed phases {sorted(stored)} re-derived as "
                f"{state.completed_phase_ids}"
            )
        self._notify(
            WorkflowEventType.DRAFT_RESTORED,
            session_id,
            phase_id=state.current_phase_id,
            flow_variant=state.flow_variant,
            message=resumed.reason or None,
            fell_back=resumed.fell_back,
        )
        return resumed.machine

    def teardown(self) -> None:
        """Stop auto-saving. Idempotent; call when the UI surface unmounts."""
        if self.scheduler is not None:
            self.scheduler.cancel()
        self._torn_down = True

    # ========================================================================
    # State access
    # ========================================================================

    @property
    def state(self) -> WorkflowState:
        return self._require("read state").state

    @property
    def registry(self) -> PhaseRegistry:
        return self._require("read registry").registry

    @property
    def progress_percent(self) -> int:
        return self._require("compute progress").progress_percent()

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def snapshot(self) -> DraftSnapshot:
        """Capture the live state as a full snapshot."""
        machine = self._require("snapshot")
        progress = machine.progress_percent()
        state = machine.state
        return DraftSnapshot(
            session_id=state.session_id,
            flow_kind=state.flow_kind,
            flow_variant=state.flow_variant,
            version=self.draft_version,
            saved_at=datetime.now(timezone.utc),
            current_phase_id=state.current_phase_id,
            completed_phase_ids=list(state.completed_phase_ids),
            phase_payloads=dict(state.phase_payloads),
            progress_percent=progress,
            status=state.status,
            branch_trail=list(state.branch_trail),
        )

    # ========================================================================
    # Commands
    # ========================================================================

    def update_phase_payload(self, phase_id: str, payload: Any) -> WorkflowState:
        """Replace a phase's payload. Never saves or navigates by itself.

        Raises:
            ConfigurationError: If phase_id is not in the active registry
        """
        machine = self._require("update a payload")
        machine.registry.get(phase_id)
        machine.state.phase_payloads[phase_id] = payload
        machine.state.updated_at = datetime.now(timezone.utc)
        machine.reconcile()
        return machine.state

    def advance(self) -> NavigationResult:
        result = self._require("advance").next()
        self._after_navigation(result)
        return result

    def back(self) -> NavigationResult:
        result = self._require("go back").previous()
        self._after_navigation(result)
        return result

    def jump_to(self, phase_id: str) -> NavigationResult:
        result = self._require("jump").jump_to(phase_id)
        self._after_navigation(result)
        return result

    def transition_branch(
        self,
        new_variant: FlowVariant | str,
        seed_payload: Mapping[str, Any] | None,
    ) -> BranchResult:
        """Move into another flow variant, seeding its first phase."""
        machine = self._require("switch branch")
        result = self._branches.transition_branch(machine.state, new_variant, seed_payload)
        if result.ok:
            self._machine = self._branches.machine_for(result.state)
            self._emit_phase_entered()
        return result

    def save_now(self) -> SaveOutcome:
        """Persist immediately (explicit "Save Draft" or before navigating away).

        Storage failures come back as a SaveOutcome with a warning.
        """
        self._require("save")
        return self.scheduler.force_save(self.snapshot)

    def discard(self) -> bool:
        """Delete the persisted draft and stop auto-saving."""
        machine = self._require("discard")
        self.teardown()
        return self.draft_store.delete(machine.state.session_id)

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _require(self, operation: str) -> PhaseStateMachine:
        if self._machine is None:
            raise WorkflowNotStarted(operation)
        return self._machine

    def _after_navigation(self, result: NavigationResult) -> None:
        state = result.state
        if result.rejection == RejectionReason.PHASE_LOCKED:
            self._notify(
                WorkflowEventType.PHASE_LOCKED,
                state.session_id,
                phase_id=state.current_phase_id,
                flow_variant=state.flow_variant,
                message=result.message,
            )
        elif result.completed_workflow:
            logger.info(f"Session {state.session_id} completed")
            self._notify(
                WorkflowEventType.WORKFLOW_COMPLETED,
                state.session_id,
                phase_id=state.current_phase_id,
                flow_variant=state.flow_variant,
            )
        elif result.ok:
            self._emit_phase_entered()

    def _emit_phase_entered(self) -> None:
        state = self._machine.state
        self._notify(
            WorkflowEventType.PHASE_ENTERED,
            state.session_id,
            phase_id=state.current_phase_id,
            flow_variant=state.flow_variant,
        )

    def _notify(self, event_type: WorkflowEventType, session_id: str, **kwargs: Any) -> None:
        self.event_emitter.notify(event_type, session_id, **kwargs)
