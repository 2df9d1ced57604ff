"""Workflow event emitter for dispatching events to observers."""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from draftflow.domain.events.event import WorkflowEvent
from draftflow.domain.events.event_types import WorkflowEventType
from draftflow.domain.events.observer import WorkflowObserver
from draftflow.domain.models.phase import FlowVariant

logger = logging.getLogger(__name__)


class WorkflowEventEmitter:
    """Central event dispatcher for workflow events.

    Observers are notified synchronously in subscription order, global
    observers first. A failing observer is logged and skipped so that
    navigation and saving never break because of a notification.
    """

    def __init__(self) -> None:
        self._by_type: dict[WorkflowEventType, list[WorkflowObserver]] = defaultdict(list)
        self._global: list[WorkflowObserver] = []

    @property
    def has_observers(self) -> bool:
        return bool(self._global) or any(self._by_type.values())

    def subscribe(
        self,
        observer: WorkflowObserver,
        event_types: list[WorkflowEventType] | None = None,
    ) -> None:
        """Subscribe to specific event types, or all events if None."""
        if event_types is None:
            self._global.append(observer)
            return
        for event_type in event_types:
            self._by_type[event_type].append(observer)

    def unsubscribe(self, observer: WorkflowObserver) -> None:
        """Remove observer from all subscriptions."""
        self._global = [o for o in self._global if o is not observer]
        for event_type, observers in self._by_type.items():
            self._by_type[event_type] = [o for o in observers if o is not observer]

    def emit(self, event: WorkflowEvent) -> None:
        """Dispatch event to all relevant observers."""
        for observer in [*self._global, *self._by_type.get(event.event_type, [])]:
            try:
                observer.on_event(event)
            except Exception as e:
                logger.warning(f"Observer {observer} failed on {event.event_type.value}: {e}")

    def notify(
        self,
        event_type: WorkflowEventType,
        session_id: str,
        *,
        phase_id: str | None = None,
        flow_variant: FlowVariant | None = None,
        message: str | None = None,
        **metadata: Any,
    ) -> WorkflowEvent:
        """Build a timestamped event and emit it."""
        event = WorkflowEvent(
            event_type=event_type,
            session_id=session_id,
            timestamp=datetime.now(timezone.utc),
            phase_id=phase_id,
            flow_variant=flow_variant,
            message=message,
            metadata=metadata,
        )
        self.emit(event)
        return event
