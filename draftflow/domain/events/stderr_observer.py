"""Stderr event observer for CLI integration."""

import click

from draftflow.domain.events.event import WorkflowEvent


class StderrEventObserver:
    """Emits events as structured lines to stderr."""

    def on_event(self, event: WorkflowEvent) -> None:
        """Emit event as structured line to stderr."""
        parts = [f"[EVENT] {event.event_type.value}"]
        if event.phase_id:
            parts.append(f"phase={event.phase_id}")
        if event.flow_variant is not None:
            parts.append(f"variant={event.flow_variant.value}")
        if event.message:
            parts.append(f"message={event.message!r}")
        click.echo(" ".join(parts), err=True)
