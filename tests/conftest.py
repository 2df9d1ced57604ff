from pathlib import Path
from typing import Any, Callable
import pytest

from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.events.event import WorkflowEvent
from draftflow.domain.persistence.memory_draft_store import InMemoryDraftStore


@pytest.fixture
def drafts_root(tmp_path: Path) -> Path:
    """Isolated drafts root for tests.

    Tests should not write into the real .draftflow/drafts directory.
    """
    return tmp_path / "drafts"


@pytest.fixture
def memory_store() -> InMemoryDraftStore:
    return InMemoryDraftStore()


class RecordingObserver:
    """Collects every event it sees."""

    def __init__(self) -> None:
        self.events: list[WorkflowEvent] = []

    def on_event(self, event: WorkflowEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def emitter(recorder: RecordingObserver) -> WorkflowEventEmitter:
    e = WorkflowEventEmitter()
    e.subscribe(recorder)
    return e


class FakeTimer:
    """Manually fired stand-in for threading.Timer."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> FakeTimer:
        return self.timers[-1]


@pytest.fixture
def timer_factory() -> FakeTimerFactory:
    return FakeTimerFactory()


# Payloads that satisfy each intake phase's completion rule.
INTAKE_PAYLOADS: dict[str, dict[str, Any]] = {
    "basic": {"projectName": "Project X", "initiativeType": "campaign", "indication": "Oncology"},
    "assets": {"selectedAssetTypes": ["email", "banner"]},
    "content": {"primaryObjective": "Awareness", "keyMessage": "Better outcomes"},
    "regulatory": {"plannedLaunch": "2026-03-01"},
}

GLOCAL_PAYLOADS: dict[str, dict[str, Any]] = {
    "phase_1": {"capturedAt": "2026-01-01T10:00:00Z"},
    "phase_2": {"analyzedAt": "2026-01-01T11:00:00Z"},
    "phase_3": {"completedAt": "2026-01-01T12:00:00Z"},
    "phase_4": {"reviewedAt": "2026-01-01T13:00:00Z"},
    "phase_5": {"completedAt": "2026-01-01T14:00:00Z"},
    "phase_6": {"generatedAt": "2026-01-01T15:00:00Z"},
    "phase_7": {"finalizedAt": "2026-01-01T16:00:00Z"},
}


@pytest.fixture
def intake_payloads() -> dict[str, dict[str, Any]]:
    return {k: dict(v) for k, v in INTAKE_PAYLOADS.items()}


@pytest.fixture
def glocal_payloads() -> dict[str, dict[str, Any]]:
    return {k: dict(v) for k, v in GLOCAL_PAYLOADS.items()}


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep default relative paths (.draftflow/...) inside the test's tmp dir."""
    monkeypatch.chdir(tmp_path)
