"""Typed notifications for phase, draft and branch changes."""

from draftflow.domain.events.event import WorkflowEvent
from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.events.observer import WorkflowObserver
from draftflow.domain.events.stderr_observer import StderrEventObserver

__all__ = [
    "WorkflowEvent",
    "WorkflowEventType",
    "WorkflowEventEmitter",
    "WorkflowObserver",
    "StderrEventObserver",
]
