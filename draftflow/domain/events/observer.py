"""Observer protocol for workflow notifications."""

from typing import Protocol, runtime_checkable

from draftflow.domain.events.event import WorkflowEvent


@runtime_checkable
class WorkflowObserver(Protocol):
    """Anything with `on_event` can subscribe to a WorkflowEventEmitter.

    Observers run synchronously on the emitting thread, which is the autosave
    timer thread for scheduled save events, so they should return quickly.
    """

    def on_event(self, event: WorkflowEvent) -> None: ...
