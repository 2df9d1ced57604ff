import click
import json
import logging
from pathlib import Path
from typing import Any, Callable
from pydantic import BaseModel

from draftflow.application.config_loader import load_config
from draftflow.application.config_models import EngineConfig
from draftflow.application.workflow_orchestrator import WorkflowOrchestrator
from draftflow.domain.events.emitter import WorkflowEventEmitter
from draftflow.domain.models.navigation_result import BranchResult, NavigationResult
from draftflow.domain.models.phase import FlowKind, FlowVariant
from draftflow.domain.models.workflow_state import DraftSnapshot
from draftflow.domain.persistence.draft_store import DraftNotFound
from draftflow.domain.persistence.file_draft_store import FileDraftStore
from draftflow.interface.cli.output_models import (
    DiscardOutput,
    DraftsOutput,
    DraftSummary,
    DuplicateOutput,
    StateOutput,
)

logger = logging.getLogger(__name__)

# Exit code for refused navigation (locked/incomplete phase, bad seed)
EXIT_REJECTED = 2


def _json_emit(model: BaseModel) -> None:
    # Single-line JSON, omit None fields.
    click.echo(model.model_dump_json(exclude_none=True), nl=True)


def _get_json_mode(ctx: click.Context) -> bool:
    obj = ctx.obj or {}
    return bool(obj.get("json", False))


def _format_error(e: Exception) -> str:
    """Format exception into user-friendly message."""
    if isinstance(e, FileNotFoundError):
        return f"File not found: {e.filename}" if e.filename else str(e)
    if isinstance(e, json.JSONDecodeError):
        return f"Invalid JSON: {e.msg}"
    return str(e)


def _config(ctx: click.Context) -> EngineConfig:
    return ctx.obj["config"]


def _store(ctx: click.Context) -> FileDraftStore:
    return FileDraftStore(drafts_root=_config(ctx).drafts_root)


def _orchestrator(ctx: click.Context, events: bool) -> WorkflowOrchestrator:
    event_emitter = WorkflowEventEmitter()
    if events:
        from draftflow.domain.events.stderr_observer import StderrEventObserver
        event_emitter.subscribe(StderrEventObserver())

    cfg = _config(ctx)
    # One-shot commands save explicitly; no background timer.
    return WorkflowOrchestrator(
        draft_store=_store(ctx),
        event_emitter=event_emitter,
        autosave_enabled=False,
        autosave_interval_seconds=cfg.autosave.interval_seconds,
        draft_version=cfg.draft_version,
    )


def _open(ctx: click.Context, session_id: str, events: bool) -> WorkflowOrchestrator:
    """Resume an existing draft; a missing draft is an error for the CLI."""
    loaded = _store(ctx).load(session_id)
    if isinstance(loaded, DraftNotFound):
        raise click.ClickException(f"Draft not found: {session_id}")
    orchestrator = _orchestrator(ctx, events)
    orchestrator.start(loaded.flow_kind, resume_session_id=session_id)
    return orchestrator


def _parse_payload(payload: str | None, payload_file: Path | None) -> Any:
    if payload is not None and payload_file is not None:
        raise click.UsageError("Use either --payload or --payload-file, not both")
    try:
        if payload_file is not None:
            return json.loads(payload_file.read_text(encoding="utf-8"))
        if payload is None:
            return {}
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise click.ClickException(_format_error(e)) from e


def _state_output(
    command: str,
    orchestrator: WorkflowOrchestrator,
    *,
    result: NavigationResult | BranchResult | None = None,
    save_warning: str | None = None,
) -> StateOutput:
    state = orchestrator.state
    rejection = None
    message = None
    if result is not None and not result.ok:
        rejection = result.rejection.value
        if isinstance(result, BranchResult):
            message = result.error.message if result.error else None
        else:
            message = result.message
    return StateOutput(
        command=command,
        exit_code=EXIT_REJECTED if rejection else 0,
        session_id=state.session_id,
        flow_kind=state.flow_kind.value,
        flow_variant=state.flow_variant.value,
        current_phase_id=state.current_phase_id,
        completed_phase_ids=list(state.completed_phase_ids),
        progress_percent=orchestrator.progress_percent,
        status=state.status.value,
        rejection=rejection,
        message=message,
        save_warning=save_warning,
    )


def _emit_state(ctx: click.Context, output: StateOutput) -> None:
    if _get_json_mode(ctx):
        _json_emit(output)
        raise click.exceptions.Exit(output.exit_code)

    click.echo(f"session_id={output.session_id}")
    click.echo(f"flow={output.flow_kind}/{output.flow_variant}")
    click.echo(f"phase={output.current_phase_id}")
    click.echo(f"completed={','.join(output.completed_phase_ids)}")
    click.echo(f"progress={output.progress_percent}%")
    click.echo(f"status={output.status}")
    if output.save_warning:
        click.echo(f"Warning: {output.save_warning}", err=True)
    if output.rejection:
        click.echo(f"rejected={output.rejection}")
        if output.message:
            click.echo(f"message={output.message}")
        raise click.exceptions.Exit(output.exit_code)


def _run_session_command(
    ctx: click.Context,
    command: str,
    session_id: str,
    events: bool,
    action: Callable[[WorkflowOrchestrator], NavigationResult | BranchResult | None],
) -> None:
    """Resume, apply `action`, save, and report."""
    orchestrator = None
    try:
        orchestrator = _open(ctx, session_id, events)
        result = action(orchestrator)
        outcome = orchestrator.save_now()
        _emit_state(
            ctx,
            _state_output(command, orchestrator, result=result, save_warning=outcome.warning),
        )
    except (click.exceptions.Exit, click.UsageError):
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(StateOutput(command=command, exit_code=1, session_id=session_id, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e
    finally:
        if orchestrator is not None:
            orchestrator.teardown()


def _project_name(snapshot: DraftSnapshot) -> str | None:
    for payload in snapshot.phase_payloads.values():
        if isinstance(payload, dict) and isinstance(payload.get("projectName"), str):
            return payload["projectName"]
    for record in reversed(snapshot.branch_trail):
        name = record.seed.get("projectName")
        if isinstance(name, str):
            return name
    return None


@click.group(help="Resumable multi-phase workflow engine CLI.")
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON on stdout.")
@click.option(
    "--drafts-root",
    "drafts_root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Draft storage directory (overrides config).",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, drafts_root: Path | None) -> None:
    ctx.ensure_object(dict)
    ctx.obj["json"] = bool(json_output)

    try:
        cfg = load_config(project_root=Path.cwd(), user_home=Path.home())
    except Exception as e:
        raise click.ClickException(str(e)) from e
    if drafts_root is not None:
        cfg = cfg.model_copy(update={"drafts_root": drafts_root})
    logger.debug(f"Drafts root: {cfg.drafts_root}")
    ctx.obj["config"] = cfg


@cli.command("start")
@click.option(
    "--flow",
    "flow_kind",
    required=True,
    type=click.Choice([k.value for k in FlowKind]),
)
@click.option("--variant", "flow_variant", type=click.Choice([v.value for v in FlowVariant]))
@click.option("--resume", "resume_session_id", type=str, help="Session id from a resume link.")
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def start_cmd(
    ctx: click.Context,
    flow_kind: str,
    flow_variant: str | None,
    resume_session_id: str | None,
    events: bool,
) -> None:
    orchestrator = None
    try:
        orchestrator = _orchestrator(ctx, events)
        orchestrator.start(flow_kind, flow_variant, resume_session_id=resume_session_id)
        outcome = orchestrator.save_now()
        _emit_state(ctx, _state_output("start", orchestrator, save_warning=outcome.warning))
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(StateOutput(command="start", exit_code=1, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e
    finally:
        if orchestrator is not None:
            orchestrator.teardown()


@cli.command("status")
@click.argument("session_id", type=str)
@click.pass_context
def status_cmd(ctx: click.Context, session_id: str) -> None:
    orchestrator = None
    try:
        orchestrator = _open(ctx, session_id, events=False)
        _emit_state(ctx, _state_output("status", orchestrator))
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(StateOutput(command="status", exit_code=1, session_id=session_id, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e
    finally:
        if orchestrator is not None:
            orchestrator.teardown()


@cli.command("update")
@click.argument("session_id", type=str)
@click.argument("phase_id", type=str)
@click.option("--payload", type=str, help="Phase payload as inline JSON.")
@click.option(
    "--payload-file",
    "payload_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Phase payload from a JSON file.",
)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def update_cmd(
    ctx: click.Context,
    session_id: str,
    phase_id: str,
    payload: str | None,
    payload_file: Path | None,
    events: bool,
) -> None:
    data = _parse_payload(payload, payload_file)

    def action(orchestrator: WorkflowOrchestrator) -> None:
        orchestrator.update_phase_payload(phase_id, data)
        return None

    _run_session_command(ctx, "update", session_id, events, action)


@cli.command("advance")
@click.argument("session_id", type=str)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def advance_cmd(ctx: click.Context, session_id: str, events: bool) -> None:
    _run_session_command(ctx, "advance", session_id, events, lambda o: o.advance())


@cli.command("back")
@click.argument("session_id", type=str)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def back_cmd(ctx: click.Context, session_id: str, events: bool) -> None:
    _run_session_command(ctx, "back", session_id, events, lambda o: o.back())


@cli.command("jump")
@click.argument("session_id", type=str)
@click.argument("phase_id", type=str)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def jump_cmd(ctx: click.Context, session_id: str, phase_id: str, events: bool) -> None:
    _run_session_command(ctx, "jump", session_id, events, lambda o: o.jump_to(phase_id))


@cli.command("branch")
@click.argument("session_id", type=str)
@click.argument("variant", type=click.Choice([v.value for v in FlowVariant]))
@click.option("--seed", type=str, help="Seed payload as inline JSON.")
@click.option(
    "--seed-file",
    "seed_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Seed payload from a JSON file.",
)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def branch_cmd(
    ctx: click.Context,
    session_id: str,
    variant: str,
    seed: str | None,
    seed_file: Path | None,
    events: bool,
) -> None:
    seed_payload = _parse_payload(seed, seed_file)
    _run_session_command(
        ctx, "branch", session_id, events,
        lambda o: o.transition_branch(variant, seed_payload),
    )


@cli.command("save")
@click.argument("session_id", type=str)
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.pass_context
def save_cmd(ctx: click.Context, session_id: str, events: bool) -> None:
    """Re-save a draft, re-deriving its completion and progress."""
    _run_session_command(ctx, "save", session_id, events, lambda o: None)


@cli.command("drafts")
@click.option(
    "--flow",
    "flow_kind",
    type=click.Choice([k.value for k in FlowKind]),
    help="Only drafts of this flow.",
)
@click.pass_context
def drafts_cmd(ctx: click.Context, flow_kind: str | None) -> None:
    try:
        drafts = _store(ctx).list_drafts()
        if flow_kind:
            drafts = [d for d in drafts if d.flow_kind.value == flow_kind]

        summaries = [
            DraftSummary(
                session_id=d.session_id,
                flow_kind=d.flow_kind.value,
                flow_variant=d.flow_variant.value,
                project_name=_project_name(d),
                current_phase_id=d.current_phase_id,
                progress_percent=d.progress_percent,
                status=d.status.value,
                saved_at=d.saved_at.isoformat(),
            )
            for d in drafts
        ]

        if _get_json_mode(ctx):
            _json_emit(DraftsOutput(exit_code=0, drafts=summaries))
            raise click.exceptions.Exit(0)

        if not summaries:
            click.echo("No drafts found.")
            return

        header = f"{'SESSION':<34} {'FLOW':<30} {'PHASE':<16} {'PROGRESS':>8}  PROJECT"
        click.echo(header)
        for s in summaries:
            flow = f"{s.flow_kind}/{s.flow_variant}"
            click.echo(
                f"{s.session_id:<34} {flow:<30} {s.current_phase_id:<16} "
                f"{s.progress_percent:>7}%  {s.project_name or 'Untitled Project'}"
            )
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(DraftsOutput(exit_code=1, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e


@cli.command("duplicate")
@click.argument("session_id", type=str)
@click.pass_context
def duplicate_cmd(ctx: click.Context, session_id: str) -> None:
    try:
        copy = _store(ctx).duplicate(session_id)
        if isinstance(copy, DraftNotFound):
            raise click.ClickException(f"Draft not found: {session_id}")

        if _get_json_mode(ctx):
            _json_emit(DuplicateOutput(exit_code=0, source_session_id=session_id, session_id=copy.session_id))
            raise click.exceptions.Exit(0)
        click.echo(copy.session_id)
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(DuplicateOutput(exit_code=1, source_session_id=session_id, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        if isinstance(e, click.ClickException):
            raise
        raise click.ClickException(_format_error(e)) from e


@cli.command("discard")
@click.argument("session_id", type=str)
@click.pass_context
def discard_cmd(ctx: click.Context, session_id: str) -> None:
    try:
        deleted = _store(ctx).delete(session_id)
        if _get_json_mode(ctx):
            _json_emit(DiscardOutput(exit_code=0, session_id=session_id, deleted=deleted))
            raise click.exceptions.Exit(0)
        click.echo(f"deleted={str(deleted).lower()}")
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(DiscardOutput(exit_code=1, session_id=session_id, error=_format_error(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(_format_error(e)) from e


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
