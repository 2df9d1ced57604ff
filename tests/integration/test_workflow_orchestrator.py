"""Integration tests for WorkflowOrchestrator over real stores.

Covers:
1. Fresh start, payload updates and gated navigation
2. Save and resume on another orchestrator instance
3. Missing, corrupt and foreign drafts degrade to a fresh start
4. Branch transitions persist and survive resume
5. Save failures are reported, never raised
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from draftflow.application.autosave_scheduler import AutoSaveScheduler
from draftflow.application.workflow_orchestrator import WorkflowNotStarted, WorkflowOrchestrator
from draftflow.domain.constants import DRAFT_FILENAME
from draftflow.domain.errors import ConfigurationError, StorageUnavailable
from draftflow.domain.models.navigation_result import RejectionReason
from draftflow.domain.models.phase import FlowVariant
from draftflow.domain.models.save_outcome import SaveStatus
from draftflow.domain.models.workflow_state import WorkflowStatus
from draftflow.domain.persistence.draft_store import DraftStore
from draftflow.domain.persistence.file_draft_store import FileDraftStore


@pytest.fixture
def store(drafts_root: Path) -> FileDraftStore:
    return FileDraftStore(drafts_root=drafts_root)


@pytest.fixture
def make_orchestrator(store, emitter, timer_factory):
    created: list[WorkflowOrchestrator] = []

    def _make(**kwargs) -> WorkflowOrchestrator:
        kwargs.setdefault("draft_store", store)
        kwargs.setdefault("event_emitter", emitter)
        if "scheduler" not in kwargs:
            kwargs["scheduler"] = AutoSaveScheduler(
                kwargs["draft_store"], emitter=kwargs["event_emitter"], timer_factory=timer_factory
            )
        orchestrator = WorkflowOrchestrator(**kwargs)
        created.append(orchestrator)
        return orchestrator

    yield _make
    for orchestrator in created:
        orchestrator.teardown()


class TestFreshStart:
    def test_start_mints_session_and_enters_first_phase(self, make_orchestrator, recorder, timer_factory) -> None:
        orchestrator = make_orchestrator()
        state = orchestrator.start("glocal")

        assert state.session_id
        assert state.current_phase_id == "phase_1"
        assert orchestrator.progress_percent == 0
        assert recorder.types() == ["phase_entered"]
        assert timer_factory.latest.started

    def test_each_start_gets_distinct_session(self, make_orchestrator) -> None:
        a = make_orchestrator().start("intake")
        b = make_orchestrator().start("intake")
        assert a.session_id != b.session_id

    def test_unknown_flow_raises(self, make_orchestrator) -> None:
        with pytest.raises(ConfigurationError):
            make_orchestrator().start("onboarding")

    def test_operations_before_start(self, make_orchestrator) -> None:
        orchestrator = make_orchestrator()
        with pytest.raises(WorkflowNotStarted):
            orchestrator.advance()

    def test_autosave_disabled_never_arms_timer(self, make_orchestrator, timer_factory) -> None:
        make_orchestrator(autosave_enabled=False).start("glocal")
        assert timer_factory.timers == []


class TestNavigation:
    def test_full_glocal_run(self, make_orchestrator, glocal_payloads, recorder) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("glocal")

        for phase_id, payload in glocal_payloads.items():
            orchestrator.update_phase_payload(phase_id, payload)
            result = orchestrator.advance()
            assert result.ok

        assert result.completed_workflow
        assert orchestrator.state.status == WorkflowStatus.COMPLETE
        assert orchestrator.progress_percent == 100
        assert recorder.types()[-1] == "workflow_completed"

    def test_locked_jump_emits_event(self, make_orchestrator, recorder) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("intake")
        result = orchestrator.jump_to("content")

        assert result.rejection == RejectionReason.PHASE_LOCKED
        assert recorder.types()[-1] == "phase_locked"
        assert orchestrator.state.current_phase_id == "basic"

    def test_incomplete_advance_leaves_state(self, make_orchestrator) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("intake")
        orchestrator.update_phase_payload("basic", {"projectName": "X"})
        result = orchestrator.advance()
        assert result.rejection == RejectionReason.PHASE_INCOMPLETE
        assert orchestrator.state.current_phase_id == "basic"

    def test_update_unknown_phase_raises(self, make_orchestrator) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("intake")
        with pytest.raises(ConfigurationError):
            orchestrator.update_phase_payload("themes", {})

    def test_update_can_relock_completion(self, make_orchestrator, intake_payloads) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("intake")
        orchestrator.update_phase_payload("basic", intake_payloads["basic"])
        assert orchestrator.state.completed_phase_ids == ["basic"]
        orchestrator.update_phase_payload("basic", {})
        assert orchestrator.state.completed_phase_ids == []


class TestSaveAndResume:
    def test_resume_restores_state_on_new_instance(self, make_orchestrator, intake_payloads, recorder) -> None:
        first = make_orchestrator()
        session_id = first.start("intake").session_id
        first.update_phase_payload("basic", intake_payloads["basic"])
        first.update_phase_payload("assets", intake_payloads["assets"])
        first.advance()
        first.advance()
        assert first.save_now().saved
        first.teardown()

        second = make_orchestrator()
        state = second.start("intake", resume_session_id=session_id)

        assert state.session_id == session_id
        assert state.current_phase_id == "content"
        assert state.completed_phase_ids == ["basic", "assets"]
        assert state.phase_payloads["basic"] == intake_payloads["basic"]
        assert "draft_restored" in recorder.types()

    def test_scheduled_tick_persists_changes(self, make_orchestrator, store, timer_factory, glocal_payloads) -> None:
        orchestrator = make_orchestrator()
        session_id = orchestrator.start("glocal").session_id

        timer_factory.latest.fire()
        assert store.list_sessions() == []

        orchestrator.update_phase_payload("phase_1", glocal_payloads["phase_1"])
        timer_factory.latest.fire()

        saved = store.load(session_id)
        assert saved.completed_phase_ids == ["phase_1"]
        assert saved.progress_percent == 14

    def test_teardown_stops_autosave(self, make_orchestrator, store, timer_factory, glocal_payloads) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("glocal")
        orchestrator.update_phase_payload("phase_1", glocal_payloads["phase_1"])
        orchestrator.teardown()
        orchestrator.teardown()

        timer_factory.latest.fire()
        assert orchestrator.is_torn_down
        assert store.list_sessions() == []

    def test_restart_after_teardown_does_not_save_empty_session(
        self, make_orchestrator, store, timer_factory, glocal_payloads
    ) -> None:
        orchestrator = make_orchestrator()
        first = orchestrator.start("glocal").session_id
        orchestrator.update_phase_payload("phase_1", glocal_payloads["phase_1"])
        assert orchestrator.save_now().saved
        orchestrator.teardown()

        second = orchestrator.start("glocal").session_id
        timer_factory.latest.fire()

        assert second != first
        assert orchestrator.scheduler.tick().status == SaveStatus.EMPTY
        assert store.list_sessions() == [first]

    def test_missing_draft_starts_fresh_and_logs(self, make_orchestrator, recorder, caplog) -> None:
        orchestrator = make_orchestrator()
        state = orchestrator.start("intake", resume_session_id="deadbeef")

        assert state.session_id != "deadbeef"
        assert state.current_phase_id == "basic"
        assert "DraftNotFound" in caplog.text
        assert recorder.types()[:2] == ["draft_not_found", "phase_entered"]

    def test_corrupt_draft_starts_fresh(self, make_orchestrator, drafts_root, caplog) -> None:
        (drafts_root / "broken").mkdir(parents=True)
        (drafts_root / "broken" / DRAFT_FILENAME).write_text("{", encoding="utf-8")

        state = make_orchestrator().start("intake", resume_session_id="broken")

        assert state.session_id != "broken"
        assert "Could not read draft broken" in caplog.text

    def test_path_like_resume_id_starts_fresh(self, make_orchestrator) -> None:
        state = make_orchestrator().start("intake", resume_session_id="../etc")
        assert state.session_id != "../etc"

    def test_draft_of_other_flow_starts_fresh(self, make_orchestrator, glocal_payloads) -> None:
        first = make_orchestrator()
        session_id = first.start("glocal").session_id
        first.update_phase_payload("phase_1", glocal_payloads["phase_1"])
        first.save_now()

        state = make_orchestrator().start("intake", resume_session_id=session_id)
        assert state.session_id != session_id
        assert state.flow_kind.value == "intake"

    def test_discard_deletes_draft(self, make_orchestrator, store) -> None:
        orchestrator = make_orchestrator()
        session_id = orchestrator.start("glocal").session_id
        orchestrator.save_now()
        assert store.exists(session_id)

        assert orchestrator.discard() is True
        assert not store.exists(session_id)
        assert orchestrator.is_torn_down


class TestBranching:
    def test_branch_persists_and_resumes(self, make_orchestrator, intake_payloads, recorder) -> None:
        first = make_orchestrator()
        session_id = first.start("intake").session_id
        for phase_id, payload in intake_payloads.items():
            first.update_phase_payload(phase_id, payload)
            first.advance()

        seed = {**intake_payloads["basic"], "brand": "Acme", "selectedAssetTypes": ["email"]}
        result = first.transition_branch("theme-generation", seed)
        assert result.ok
        assert first.registry.flow_variant == FlowVariant.THEME_GENERATION
        assert recorder.types()[-2:] == ["branch_transitioned", "phase_entered"]
        first.save_now()

        state = make_orchestrator().start("intake", resume_session_id=session_id)
        assert state.flow_variant == FlowVariant.THEME_GENERATION
        assert state.current_phase_id == "themes"
        assert state.phase_payloads["themes"]["projectName"] == "Project X"
        assert len(state.branch_trail) == 1

    def test_rejected_branch_keeps_machine(self, make_orchestrator) -> None:
        orchestrator = make_orchestrator()
        orchestrator.start("intake")
        result = orchestrator.transition_branch("single-asset", {"brand": "Acme"})
        assert result.rejection == RejectionReason.CONFIGURATION_ERROR
        assert result.error.missing_fields == ["projectName"]
        assert orchestrator.registry.flow_variant == FlowVariant.DEFAULT

    def test_start_directly_in_variant(self, make_orchestrator) -> None:
        state = make_orchestrator().start("intake", "campaign")
        assert state.current_phase_id == "campaign_setup"


class TestSaveFailures:
    def test_save_failure_is_reported(self, emitter, recorder, timer_factory) -> None:
        store = MagicMock(spec=DraftStore)
        store.save.side_effect = StorageUnavailable("disk full")
        orchestrator = WorkflowOrchestrator(
            draft_store=store,
            event_emitter=emitter,
            scheduler=AutoSaveScheduler(store, emitter=emitter, timer_factory=timer_factory),
        )
        orchestrator.start("glocal")

        outcome = orchestrator.save_now()

        assert outcome.status == SaveStatus.FAILED
        assert "disk full" in outcome.warning
        assert "draft_save_failed" in recorder.types()
        # Live state untouched
        assert orchestrator.state.current_phase_id == "phase_1"
        orchestrator.teardown()
