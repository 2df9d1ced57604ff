"""Branching between mutually exclusive flow variants.

Declared transitions are kept in a table keyed by
(flow_kind, from_variant, to_variant). A transition seeds the target's first
phase with an explicit set of carried fields; everything else in the live
state is dropped. It is not a schema migration.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, TypeAdapter, ValidationError

from draftflow.application.phase_state_machine import PhaseStateMachine
from draftflow.domain.errors import ConfigurationError
from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.models.branch_seeds import BranchSeed
from draftflow.domain.models.navigation_result import BranchResult, RejectionReason
from draftflow.domain.models.phase import FlowKind, FlowVariant
from draftflow.domain.models.workflow_state import (
    BranchTransitionRecord,
    DraftSnapshot,
    WorkflowState,
    WorkflowStatus,
)
from draftflow.domain.persistence.draft_store import DraftNotFound, DraftStore
from draftflow.domain.phases.registry import PhaseRegistry

logger = logging.getLogger(__name__)

_BranchKey = tuple[FlowKind, FlowVariant, FlowVariant]

_SEED_ADAPTER: TypeAdapter[Any] = TypeAdapter(BranchSeed)

# Business context that must never be silently defaulted.
_CONTEXT_FIELDS = ("brand",)


@dataclass(frozen=True, slots=True)
class ResumedFlow:
    """A snapshot materialised into a live state machine.

    Attributes:
        machine: State machine over the resolved registry
        snapshot: The snapshot as loaded
        fell_back: True when the stored variant could not be restored
        reason: Why the fallback happened
    """

    machine: PhaseStateMachine
    snapshot: DraftSnapshot
    fell_back: bool = False
    reason: str = ""


def _missing_fields(error: ValidationError) -> list[str]:
    return sorted({str(err["loc"][-1]) for err in error.errors() if err.get("loc")})


class FlowBranchController:
    """Resume-time variant resolution and explicit variant transitions."""

    _TRANSITIONS: dict[_BranchKey, str] = {
        (FlowKind.INTAKE, FlowVariant.DEFAULT, FlowVariant.THEME_GENERATION):
            "Intake complete, generate themes",
        (FlowKind.INTAKE, FlowVariant.DEFAULT, FlowVariant.SINGLE_ASSET):
            "Preselected theme, go straight to the asset editor",
        (FlowKind.INTAKE, FlowVariant.DEFAULT, FlowVariant.CAMPAIGN):
            "Preselected theme, go straight to the campaign dashboard",
        (FlowKind.INTAKE, FlowVariant.THEME_GENERATION, FlowVariant.SINGLE_ASSET):
            "Theme chosen for a single asset",
        (FlowKind.INTAKE, FlowVariant.THEME_GENERATION, FlowVariant.CAMPAIGN):
            "Theme chosen for a campaign",
        (FlowKind.INTAKE, FlowVariant.THEME_GENERATION, FlowVariant.DEFAULT):
            "Back to the intake wizard",
    }

    def __init__(
        self,
        store: DraftStore,
        emitter: WorkflowEventEmitter | None = None,
    ) -> None:
        self.store = store
        self.emitter = emitter or WorkflowEventEmitter()

    @classmethod
    def allowed_targets(cls, flow_kind: FlowKind, from_variant: FlowVariant) -> list[FlowVariant]:
        return [to for (k, frm, to) in cls._TRANSITIONS if k == flow_kind and frm == from_variant]

    @classmethod
    def is_allowed(cls, flow_kind: FlowKind, from_variant: FlowVariant, to_variant: FlowVariant) -> bool:
        return (flow_kind, from_variant, to_variant) in cls._TRANSITIONS

    def machine_for(self, state: WorkflowState) -> PhaseStateMachine:
        return PhaseStateMachine(
            PhaseRegistry.for_variant(state.flow_kind, state.flow_variant), state
        )

    # ========================================================================
    # Resume
    # ========================================================================

    def resume(self, session_id: str) -> ResumedFlow | DraftNotFound:
        """Load a snapshot and decide which variant to materialise.

        Raises:
            StorageUnavailable: If the store cannot be read
            ValueError: If the stored snapshot is corrupt
            ConfigurationError: If the snapshot's flow kind is unknown
        """
        loaded = self.store.load(session_id)
        if isinstance(loaded, DraftNotFound):
            return loaded
        return self.resolve_variant(loaded)

    def resolve_variant(self, snapshot: DraftSnapshot) -> ResumedFlow:
        """Materialise a snapshot, falling back to the kind's root variant
        when the stored variant cannot be restored.

        Raises:
            ConfigurationError: If the snapshot's flow kind has no variants
        """
        session_id = snapshot.session_id
        state = WorkflowState(
            session_id=snapshot.session_id,
            flow_kind=snapshot.flow_kind,
            flow_variant=snapshot.flow_variant,
            current_phase_id=snapshot.current_phase_id,
            status=snapshot.status,
            phase_payloads=dict(snapshot.phase_payloads),
            branch_trail=list(snapshot.branch_trail),
        )

        reason = self._restore_problem(snapshot)
        if reason:
            logger.warning(
                f"Cannot restore session {session_id} into variant "
                f"'{snapshot.flow_variant.value}': {reason}. Falling back to the start of the flow."
            )
            self._fall_back_to_root(state)

        machine = self.machine_for(state)
        stored_phase = snapshot.current_phase_id
        current = machine.clamp_to_reachable()
        if not reason and current != stored_phase:
            logger.warning(
                f"Session {session_id}: phase '{stored_phase}' is no longer reachable, "
                f"resuming at '{current}'"
            )
        return ResumedFlow(machine=machine, snapshot=snapshot, fell_back=bool(reason), reason=reason)

    def _restore_problem(self, snapshot: DraftSnapshot) -> str:
        """Why the stored variant cannot be materialised, or '' if it can."""
        try:
            registry = PhaseRegistry.for_variant(snapshot.flow_kind, snapshot.flow_variant)
        except ConfigurationError as e:
            return str(e)

        if snapshot.flow_variant == PhaseRegistry.root_variant(snapshot.flow_kind):
            return ""
        if registry.seed_model is None:
            return ""

        # The branch needs the data it was entered with.
        candidates: list[Mapping[str, Any]] = [
            record.seed for record in reversed(snapshot.branch_trail)
            if record.to_variant == snapshot.flow_variant
        ]
        first_payload = snapshot.phase_payloads.get(registry.first.id)
        if isinstance(first_payload, Mapping):
            candidates.append(first_payload)

        for candidate in candidates:
            try:
                _SEED_ADAPTER.validate_python({**candidate, "variant": snapshot.flow_variant.value})
            except ValidationError:
                continue
            return ""
        return f"no seed data for variant '{snapshot.flow_variant.value}'"

    def _fall_back_to_root(self, state: WorkflowState) -> None:
        root = PhaseRegistry.for_variant(state.flow_kind)
        seed: dict[str, Any] = {}
        if state.branch_trail and root.seed_model is not None:
            last_seed = state.branch_trail[-1].seed
            aliases = root.seed_model.field_aliases()
            seed = {k: v for k, v in last_seed.items() if k in aliases}

        state.flow_variant = root.flow_variant
        state.current_phase_id = root.first.id
        state.phase_payloads = {root.first.id: seed} if seed else {}
        state.status = WorkflowStatus.IN_PROGRESS

    # ========================================================================
    # Transitions
    # ========================================================================

    def transition_branch(
        self,
        state: WorkflowState,
        new_variant: FlowVariant | str,
        seed_payload: Mapping[str, Any] | None,
    ) -> BranchResult:
        """Switch `state` to another variant, seeding its first phase.

        `state` is modified only on success. Rejections carry a
        ConfigurationError describing the problem.
        """
        try:
            target = self._validate_target(state, new_variant)
            registry = PhaseRegistry.for_variant(state.flow_kind, target)
            carried, dropped = self._carry(registry, target, seed_payload)
        except ConfigurationError as e:
            logger.warning(f"Branch transition rejected for session {state.session_id}: {e}")
            return BranchResult(
                state=state,
                rejection=RejectionReason.CONFIGURATION_ERROR,
                error=e,
            )

        warnings = self._context_warnings(state, registry, carried)
        record = BranchTransitionRecord(
            from_variant=state.flow_variant,
            to_variant=target,
            carried_fields=sorted(carried),
            dropped_fields=dropped,
            seed=carried,
        )

        discarded_phases = sorted(state.phase_payloads)
        if discarded_phases:
            logger.info(
                f"Session {state.session_id}: leaving '{state.flow_variant.value}' drops live "
                f"payloads for phases {discarded_phases}"
            )

        state.flow_variant = target
        state.current_phase_id = registry.first.id
        state.phase_payloads = {registry.first.id: dict(carried)}
        state.completed_phase_ids = []
        state.status = WorkflowStatus.IN_PROGRESS
        state.branch_trail.append(record)
        state.updated_at = datetime.now(timezone.utc)

        self.emitter.notify(
            WorkflowEventType.BRANCH_TRANSITIONED,
            state.session_id,
            phase_id=registry.first.id,
            flow_variant=target,
            from_variant=record.from_variant.value,
            carried_fields=record.carried_fields,
            dropped_fields=record.dropped_fields,
        )
        return BranchResult(state=state, record=record, warnings=warnings)

    def _validate_target(self, state: WorkflowState, new_variant: FlowVariant | str) -> FlowVariant:
        try:
            target = FlowVariant(new_variant)
        except ValueError as e:
            raise ConfigurationError(f"Unknown flow variant: '{new_variant}'") from e

        if not self.is_allowed(state.flow_kind, state.flow_variant, target):
            allowed = ", ".join(v.value for v in self.allowed_targets(state.flow_kind, state.flow_variant))
            raise ConfigurationError(
                f"No branch from '{state.flow_variant.value}' to '{target.value}' in flow "
                f"'{state.flow_kind.value}'. Allowed targets: {allowed or 'none'}"
            )
        return target

    def _carry(
        self,
        registry: PhaseRegistry,
        target: FlowVariant,
        seed_payload: Mapping[str, Any] | None,
    ) -> tuple[dict[str, Any], list[str]]:
        """Split the seed into carried values and dropped keys."""
        if seed_payload is None:
            seed_payload = {}
        if not isinstance(seed_payload, Mapping):
            raise ConfigurationError(
                f"Seed for '{target.value}' must be a mapping, got {type(seed_payload).__name__}"
            )

        seed_model: type[BaseModel] | None = registry.seed_model
        if seed_model is None:
            return dict(seed_payload), []

        try:
            seed = seed_model.model_validate({**seed_payload, "variant": target.value})
        except ValidationError as e:
            missing = _missing_fields(e)
            raise ConfigurationError(
                f"Seed for '{target.value}' is missing or has invalid fields: {', '.join(missing)}",
                missing_fields=missing,
            ) from e

        aliases = seed_model.field_aliases()
        accepted = seed_model.accepted_keys()
        carried = seed.model_dump(by_alias=True, exclude_unset=True, exclude={"variant"})
        carried = {k: v for k, v in carried.items() if k in aliases}
        dropped = sorted(k for k in seed_payload if k not in accepted and k != "variant")
        return carried, dropped

    def _context_warnings(
        self,
        state: WorkflowState,
        registry: PhaseRegistry,
        carried: Mapping[str, Any],
    ) -> list[str]:
        if registry.seed_model is None:
            return []
        warnings = []
        aliases = registry.seed_model.field_aliases()
        for field in _CONTEXT_FIELDS:
            if field in aliases and not carried.get(field):
                message = (
                    f"No '{field}' supplied for '{registry.flow_variant.value}'; "
                    f"continuing without {field} context"
                )
                logger.warning(f"Session {state.session_id}: {message}")
                self.emitter.notify(
                    WorkflowEventType.CONTEXT_WARNING,
                    state.session_id,
                    flow_variant=registry.flow_variant,
                    message=message,
                    field=field,
                )
                warnings.append(message)
        return warnings
