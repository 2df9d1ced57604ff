"""Phase navigation with completion gating.

Key rules:
- Completion is re-derived from payloads before every decision; stored
  flags are never trusted, because sub-features can change their own
  output after the fact.
- A phase is reachable when it is first, or its immediate predecessor is
  satisfied (complete, or not required).
- Rejections are returned as NavigationResult, never raised.
"""

from datetime import datetime, timezone

from draftflow.domain.models.navigation_result import NavigationResult, RejectionReason
from draftflow.domain.models.phase import PhaseDescriptor
from draftflow.domain.models.workflow_state import WorkflowState, WorkflowStatus
from draftflow.domain.phases.completion import completed_phase_ids, is_complete
from draftflow.domain.phases.registry import PhaseRegistry


class PhaseStateMachine:
    """Current phase pointer plus gating over one registry.

    The machine mutates the WorkflowState it is given; the orchestrator owns
    that state.
    """

    def __init__(self, registry: PhaseRegistry, state: WorkflowState) -> None:
        self.registry = registry
        self.state = state
        if not registry.contains(state.current_phase_id):
            self.state.current_phase_id = registry.first.id
        self.reconcile()

    # ========================================================================
    # Derivation
    # ========================================================================

    def reconcile(self) -> list[str]:
        """Recompute completed_phase_ids from the live payloads."""
        completed = completed_phase_ids(self.registry.phases, self.state.phase_payloads)
        self.state.completed_phase_ids = completed
        if self.state.status == WorkflowStatus.COMPLETE and self._first_unsatisfied() is not None:
            # A required phase lost its output; the workflow is open again.
            self.state.status = WorkflowStatus.IN_PROGRESS
        return completed

    def is_phase_complete(self, phase_id: str) -> bool:
        phase = self.registry.get(phase_id)
        return is_complete(phase, self.state.phase_payloads.get(phase.id))

    def _is_satisfied(self, phase: PhaseDescriptor) -> bool:
        return not phase.required or is_complete(phase, self.state.phase_payloads.get(phase.id))

    def _first_unsatisfied(self) -> PhaseDescriptor | None:
        return next((p for p in self.registry.phases if not self._is_satisfied(p)), None)

    def is_reachable(self, phase_id: str) -> bool:
        index = self.registry.index_of(phase_id)
        if index == 0:
            return True
        return self._is_satisfied(self.registry.phases[index - 1])

    def reachable_phase_ids(self) -> list[str]:
        self.reconcile()
        return [p.id for p in self.registry.phases if self.is_reachable(p.id)]

    def progress_percent(self) -> int:
        completed = self.reconcile()
        return round(100 * len(completed) / len(self.registry.phases))

    @property
    def current_phase(self) -> PhaseDescriptor:
        return self.registry.get(self.state.current_phase_id)

    @property
    def is_finished(self) -> bool:
        return self.state.status == WorkflowStatus.COMPLETE

    # ========================================================================
    # Transitions
    # ========================================================================

    def next(self) -> NavigationResult:
        """Advance past the current phase once its payload is complete.

        At the last phase this completes the workflow instead of moving,
        provided every required phase is complete.
        """
        self.reconcile()
        current = self.current_phase
        index = self.registry.index_of(current.id)
        at_last = index == len(self.registry.phases) - 1

        if at_last and self.is_finished:
            return self._reject(RejectionReason.WORKFLOW_COMPLETE, "Workflow is already complete")

        if not self._is_satisfied(current):
            return self._reject(
                RejectionReason.PHASE_INCOMPLETE,
                f"Phase '{current.title}' is not complete",
            )

        if at_last:
            pending = self._first_unsatisfied()
            if pending is not None:
                return self._reject(
                    RejectionReason.PHASE_INCOMPLETE,
                    f"Phase '{pending.title}' must be complete before finishing the workflow",
                )
            self.state.status = WorkflowStatus.COMPLETE
            self._touch()
            return NavigationResult(state=self.state, completed_workflow=True)

        self.state.current_phase_id = self.registry.phases[index + 1].id
        self._touch()
        return NavigationResult(state=self.state)

    def previous(self) -> NavigationResult:
        """Step back one phase. The completed set is left as derived."""
        self.reconcile()
        index = self.registry.index_of(self.state.current_phase_id)
        if index == 0:
            return self._reject(RejectionReason.AT_FIRST_PHASE, "Already at the first phase")

        self.state.current_phase_id = self.registry.phases[index - 1].id
        self._touch()
        return NavigationResult(state=self.state)

    def jump_to(self, phase_id: str) -> NavigationResult:
        """Move directly to a reachable phase."""
        self.reconcile()
        if not self.registry.contains(phase_id):
            return self._reject(
                RejectionReason.UNKNOWN_PHASE,
                f"Phase '{phase_id}' is not part of this workflow",
            )

        if not self.is_reachable(phase_id):
            index = self.registry.index_of(phase_id)
            predecessor = self.registry.phases[index - 1]
            return self._reject(
                RejectionReason.PHASE_LOCKED,
                f"Complete '{predecessor.title}' before opening '{self.registry.get(phase_id).title}'",
            )

        self.state.current_phase_id = phase_id
        self._touch()
        return NavigationResult(state=self.state)

    def clamp_to_reachable(self) -> str:
        """Move the pointer back to the furthest reachable phase at or before it.

        Used on resume, when out-of-band payload changes may have re-locked
        the stored phase.
        """
        self.reconcile()
        target = self.registry.index_of(self.state.current_phase_id)
        furthest = 0
        for index in range(1, target + 1):
            if not self._is_satisfied(self.registry.phases[index - 1]):
                break
            furthest = index
        self.state.current_phase_id = self.registry.phases[furthest].id
        return self.state.current_phase_id

    def _reject(self, reason: RejectionReason, message: str) -> NavigationResult:
        return NavigationResult(state=self.state, rejection=reason, message=message)

    def _touch(self) -> None:
        self.state.updated_at = datetime.now(timezone.utc)
