"""Tests for PhaseStateMachine gating and navigation."""

import pytest

from draftflow.application.phase_state_machine import PhaseStateMachine
from draftflow.domain.models.navigation_result import RejectionReason
from draftflow.domain.models.phase import FlowKind, FlowVariant, PayloadTag, PhaseDescriptor
from draftflow.domain.models.workflow_state import WorkflowState, WorkflowStatus
from draftflow.domain.phases.registry import PhaseRegistry


def _machine(kind: str = "glocal", current: str | None = None, payloads: dict | None = None) -> PhaseStateMachine:
    registry = PhaseRegistry.for_variant(kind)
    state = WorkflowState(
        session_id="s1",
        flow_kind=kind,
        current_phase_id=current or registry.first.id,
        phase_payloads=payloads or {},
    )
    return PhaseStateMachine(registry, state)


class TestDerivation:
    def test_fresh_state(self) -> None:
        machine = _machine()
        assert machine.state.current_phase_id == "phase_1"
        assert machine.state.completed_phase_ids == []
        assert machine.progress_percent() == 0
        assert machine.reachable_phase_ids() == ["phase_1"]

    def test_completion_is_derived_not_trusted(self, glocal_payloads) -> None:
        machine = _machine(payloads={"phase_1": glocal_payloads["phase_1"]})
        machine.state.completed_phase_ids = ["phase_1", "phase_2", "phase_3"]
        assert machine.reconcile() == ["phase_1"]

    def test_progress_rounds(self, glocal_payloads) -> None:
        machine = _machine(payloads={"phase_1": glocal_payloads["phase_1"]})
        assert machine.progress_percent() == 14

    def test_unknown_current_phase_resets_to_first(self) -> None:
        machine = _machine(current="phase_99")
        assert machine.state.current_phase_id == "phase_1"

    def test_withdrawn_final_output_reopens_workflow(self, glocal_payloads) -> None:
        machine = _machine(current="phase_7", payloads=glocal_payloads)
        machine.state.status = WorkflowStatus.COMPLETE
        del machine.state.phase_payloads["phase_7"]
        machine.reconcile()
        assert machine.state.status == WorkflowStatus.IN_PROGRESS

    def test_withdrawn_earlier_phase_reopens_workflow(self, glocal_payloads) -> None:
        machine = _machine(current="phase_7", payloads=glocal_payloads)
        assert machine.next().completed_workflow
        del machine.state.phase_payloads["phase_2"]
        assert "phase_7" in machine.reconcile()
        assert machine.state.status == WorkflowStatus.IN_PROGRESS


class TestNext:
    def test_incomplete_current_phase_is_rejected(self) -> None:
        machine = _machine()
        result = machine.next()
        assert result.rejection == RejectionReason.PHASE_INCOMPLETE
        assert machine.state.current_phase_id == "phase_1"

    def test_advances_when_complete(self, glocal_payloads) -> None:
        machine = _machine(payloads={"phase_1": glocal_payloads["phase_1"]})
        result = machine.next()
        assert result.ok
        assert machine.state.current_phase_id == "phase_2"

    def test_last_phase_completes_workflow(self, glocal_payloads) -> None:
        machine = _machine(current="phase_7", payloads=glocal_payloads)
        result = machine.next()
        assert result.ok and result.completed_workflow
        assert machine.is_finished
        assert machine.state.current_phase_id == "phase_7"
        assert machine.progress_percent() == 100

        again = machine.next()
        assert again.rejection == RejectionReason.WORKFLOW_COMPLETE

    def test_last_phase_requires_every_required_phase(self, glocal_payloads) -> None:
        del glocal_payloads["phase_3"]
        machine = _machine(current="phase_7", payloads=glocal_payloads)
        result = machine.next()
        assert result.rejection == RejectionReason.PHASE_INCOMPLETE
        assert machine.registry.get("phase_3").title in result.message
        assert not machine.is_finished

    def test_can_revisit_and_move_forward_after_completion(self, glocal_payloads) -> None:
        machine = _machine(current="phase_7", payloads=glocal_payloads)
        machine.next()
        assert machine.previous().ok
        assert machine.next().ok
        assert machine.state.current_phase_id == "phase_7"

    def test_optional_phase_does_not_block(self) -> None:
        phases = (
            PhaseDescriptor("a", "A", PayloadTag.CONTEXT_CAPTURE, required=False),
            PhaseDescriptor("b", "B", PayloadTag.INTEGRATION),
        )
        registry = PhaseRegistry(FlowKind.GLOCAL, FlowVariant.DEFAULT, phases)
        machine = PhaseStateMachine(
            registry, WorkflowState(session_id="s1", flow_kind="glocal", current_phase_id="a")
        )
        assert machine.next().ok
        assert machine.is_reachable("b")
        # Optional phases still only count as complete with valid output
        assert machine.progress_percent() == 0


class TestPrevious:
    def test_at_first_phase(self) -> None:
        result = _machine().previous()
        assert result.rejection == RejectionReason.AT_FIRST_PHASE

    def test_back_keeps_later_completion(self, glocal_payloads) -> None:
        payloads = {k: glocal_payloads[k] for k in ("phase_1", "phase_2")}
        machine = _machine(current="phase_3", payloads=payloads)
        assert machine.previous().ok
        assert machine.state.current_phase_id == "phase_2"
        assert machine.state.completed_phase_ids == ["phase_1", "phase_2"]


class TestJump:
    def test_jump_to_locked_phase(self) -> None:
        machine = _machine()
        result = machine.jump_to("phase_3")
        assert result.rejection == RejectionReason.PHASE_LOCKED
        assert result.message == (
            "Complete 'Smart TM Intelligence' before opening 'Cultural Intelligence'"
        )
        assert machine.state.current_phase_id == "phase_1"

    def test_jump_to_unknown_phase(self) -> None:
        result = _machine().jump_to("basic")
        assert result.rejection == RejectionReason.UNKNOWN_PHASE

    def test_jump_to_reachable_phase(self, glocal_payloads) -> None:
        payloads = {k: glocal_payloads[k] for k in ("phase_1", "phase_2")}
        machine = _machine(payloads=payloads)
        assert machine.jump_to("phase_3").ok
        assert machine.jump_to("phase_1").ok

    def test_gating_uses_immediate_predecessor_only(self, glocal_payloads) -> None:
        # phase_2 done but phase_1 withdrawn: phase_3 stays reachable
        machine = _machine(payloads={"phase_2": glocal_payloads["phase_2"]})
        assert machine.is_reachable("phase_3")
        assert not machine.is_reachable("phase_2")

    @pytest.mark.parametrize("target", ["phase_1", "phase_2", "phase_3", "phase_4"])
    def test_reachability_matches_jump(self, glocal_payloads, target: str) -> None:
        payloads = {k: glocal_payloads[k] for k in ("phase_1", "phase_2")}
        machine = _machine(payloads=payloads)
        expected = target in machine.reachable_phase_ids()
        assert machine.jump_to(target).ok is expected


class TestClamp:
    def test_clamps_to_furthest_reachable(self, glocal_payloads) -> None:
        payloads = {"phase_1": glocal_payloads["phase_1"]}
        machine = _machine(current="phase_5", payloads=payloads)
        assert machine.clamp_to_reachable() == "phase_2"

    def test_keeps_reachable_pointer(self, glocal_payloads) -> None:
        machine = _machine(current="phase_4", payloads=glocal_payloads)
        assert machine.clamp_to_reachable() == "phase_4"
