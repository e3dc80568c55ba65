"""sqlcopilot CLI: headless access to the SQL copilot.

Unified entry point for SQL context inference, envelope inspection, chat
session management, chat sending and quick actions.

Usage:
    sqlcopilot infer "SELECT * FROM db.t"    Infer referenced tables
    sqlcopilot envelope "..." --tab-id t1    Build a copilot envelope
    sqlcopilot sessions list                 List global chat sessions
    sqlcopilot chat send "hello" --session s1
    sqlcopilot action run fix-sql-error --sql "..." --error "..."
"""

import asyncio
import json
import logging
import sys
import time
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape

from src.actions.executor import to_action_context
from src.actions.registry import get_quick_action_availability
from src.chat.lifecycle import GlobalSessionLifecycle
from src.chat.models import ChatMode
from src.chat.notifications import RecordingNotifier
from src.chat.panel import ChatPanel
from src.chat.store_client import SessionStoreError
from src.chat.thread import SendOptions
from src.cli.config import CopilotConfig, get_config, load_config
from src.cli.factory import (
    get_action_client,
    get_action_executor,
    get_store_client,
    get_stream_client,
    get_translator,
)
from src.cli.logging_config import configure_logging
from src.cli.output import (
    format_action_list,
    format_action_result,
    format_config,
    format_envelope,
    format_inference,
    format_prompt_context,
    format_session_detail,
    format_sessions_table,
)
from src.copilot.envelope import build_fix_input, build_sql_envelope, normalize_dialect, to_prompt_context
from src.copilot.inference import infer_sql_context
from src.errors import CopilotError, DomainError, NoSessionSelectedError, QuickActionError, format_error
from src.utils.redaction import redact_for_logging

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="sqlcopilot",
    help="SQL workbench copilot: headless CLI",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")
sessions_app = typer.Typer(help="Manage global chat sessions")
chat_app = typer.Typer(help="Send chat messages")
action_app = typer.Typer(help="Run SQL quick actions")

app.add_typer(config_app, name="config")
app.add_typer(sessions_app, name="sessions")
app.add_typer(chat_app, name="chat")
app.add_typer(action_app, name="action")

console = Console()

# --- Global state ---
_config_path: str | None = None
_base_url: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to sqlcopilot.yaml config file"
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the workbench API base URL"
    ),
):
    """sqlcopilot CLI: SQL workbench copilot."""
    global _config_path, _base_url
    _config_path = config
    _base_url = base_url


def _load() -> CopilotConfig:
    """Load config and configure logging, exiting on invalid config."""
    try:
        cfg = get_config(_config_path)
    except FileNotFoundError as e:
        _print_error("E-4002", f"Config file not found: {e}")
        raise typer.Exit(1)
    except (PydanticValidationError, ValueError) as e:
        _print_error("E-4002", f"Config validation failed: {e}")
        raise typer.Exit(1)
    configure_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)
    return cfg


def _print_error(code: str, message: str) -> None:
    """Print a coded error with its remediation."""
    error = CopilotError.from_code(code, message)
    console.print(f"[red]Error:[/red] {escape(format_error(error))}")


def _fail_on_errors(notifier: RecordingNotifier, code: str) -> None:
    if notifier.errors:
        for message in notifier.errors:
            _print_error(code, message)
        raise typer.Exit(1)


# --- Version ---


@app.command()
def version():
    """Show sqlcopilot version and dependency info."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version

    try:
        v = pkg_version("sqlcopilot")
    except PackageNotFoundError:
        v = "unknown"
    console.print(f"[bold]sqlcopilot[/bold] v{v}")
    try:
        console.print(f"  sqlglot: {pkg_version('sqlglot')}")
    except PackageNotFoundError:
        console.print("  sqlglot: [red]not installed[/red]")


# --- Config commands ---


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Display resolved configuration (secrets masked)."""
    cfg = _load()
    data = redact_for_logging(cfg.model_dump(mode="json"))
    console.print(format_config(data, as_json=json_output))


@config_app.command("validate")
def config_validate(
    config: Optional[str] = typer.Option(None, "--config", help="Config file path"),
):
    """Validate a config file."""
    path = config or _config_path
    try:
        cfg = load_config(config_path=path)
    except FileNotFoundError as e:
        console.print(f"[red]Config file not found:[/red] {e}")
        raise typer.Exit(1)
    except (PydanticValidationError, ValueError) as e:
        console.print(f"[red]Config validation failed:[/red] {e}")
        raise typer.Exit(1)
    if cfg is None:
        console.print("[red]No config file found.[/red]")
        console.print("Searched: ./sqlcopilot.yaml, ~/.sqlcopilot/config.yaml")
        raise typer.Exit(1)
    console.print("[green]Config is valid.[/green]")
    console.print(f"  API: {cfg.api.base_url}")
    console.print(f"  Model: {cfg.actions.model}")


# --- Inference and envelopes ---


@app.command()
def infer(
    sql: str = typer.Argument(help="SQL draft to analyze"),
    dialect: str = typer.Option("unknown", "--dialect", "-d", help="SQL dialect"),
    database: Optional[str] = typer.Option(None, "--database", help="Active database"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Infer the tables and database a SQL draft refers to."""
    inferred = infer_sql_context(normalize_dialect(dialect), sql, database)
    console.print(format_inference(inferred, as_json=json_output))


@app.command()
def envelope(
    sql: str = typer.Argument(help="SQL editor contents"),
    tab_id: Optional[str] = typer.Option(None, "--tab-id", help="Owning editor tab"),
    connection_id: Optional[str] = typer.Option(None, "--connection-id", help="Connection id"),
    dialect: str = typer.Option("unknown", "--dialect", "-d", help="SQL dialect"),
    database: Optional[str] = typer.Option(None, "--database", help="Active database"),
    prompt: bool = typer.Option(False, "--prompt", help="Show the reduced prompt context"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Build the copilot envelope for a SQL editor tab."""
    cfg = _load()
    env = build_sql_envelope(
        sql,
        baseline_database=database,
        dialect=dialect,
        meta={"tab_id": tab_id, "connection_id": connection_id},
        updated_at=int(time.time() * 1000),
    )
    if prompt:
        context = to_prompt_context(
            env,
            max_editor_text_length=cfg.prompt.max_editor_text_length,
            truncation_marker=cfg.prompt.truncation_marker,
        )
        console.print(format_prompt_context(context, as_json=json_output))
    else:
        console.print(format_envelope(env, as_json=json_output))


# --- Session commands ---


def _run_lifecycle(cfg: CopilotConfig, operation) -> tuple[GlobalSessionLifecycle, RecordingNotifier]:
    """Run operation(lifecycle) against a freshly loaded session list."""
    notifier = RecordingNotifier()
    t = get_translator(cfg)
    store = get_store_client(cfg, base_url=_base_url)

    rejected: list[DomainError] = []

    async def _run():
        async with store:
            lifecycle = GlobalSessionLifecycle(store, notifier=notifier, translate=t)
            await lifecycle.refresh()
            try:
                await operation(lifecycle)
            except DomainError as e:
                _log.debug("Session operation rejected: %s", e)
                rejected.append(e)
            return lifecycle

    lifecycle = asyncio.run(_run())
    if rejected:
        # the lifecycle already notified with the same message
        _print_error(rejected[0].code, rejected[0].message)
        raise typer.Exit(1)
    _fail_on_errors(notifier, "E-3001")
    return lifecycle, notifier


@sessions_app.command("list")
def sessions_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List global chat sessions, most recent first."""
    cfg = _load()

    async def _noop(_lifecycle):
        return None

    lifecycle, _ = _run_lifecycle(cfg, _noop)
    console.print(format_sessions_table(
        lifecycle.sessions_for_display(),
        get_translator(cfg)("Sessions.Untitled"),
        selected_id=lifecycle.selected_session_id,
        as_json=json_output,
    ))


@sessions_app.command("show")
def sessions_show(
    session_id: str = typer.Argument(help="Session ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a session and its messages."""
    cfg = _load()
    store = get_store_client(cfg, base_url=_base_url)

    async def _run():
        async with store:
            return await store.get_session_detail(session_id)

    try:
        detail = asyncio.run(_run())
    except SessionStoreError as e:
        _print_error("E-3001", e.message)
        raise typer.Exit(1)
    console.print(format_session_detail(
        detail, get_translator(cfg)("Sessions.Untitled"), as_json=json_output,
    ))


@sessions_app.command("create")
def sessions_create(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Create a new global session."""
    cfg = _load()
    created = {}

    async def _create(lifecycle):
        created["session"] = await lifecycle.create_session()

    _run_lifecycle(cfg, _create)
    session = created.get("session")
    if json_output:
        console.print(json.dumps({"id": session.id if session else None}, indent=2))
    elif session is not None:
        console.print(f"[green]Created session[/green] {session.id}")


@sessions_app.command("rename")
def sessions_rename(
    session_id: str = typer.Argument(help="Session ID"),
    title: str = typer.Argument(help="New title"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Rename a global session."""
    cfg = _load()

    async def _rename(lifecycle):
        lifecycle.start_rename(session_id)
        lifecycle.change_rename(title)
        await lifecycle.submit_rename()

    _run_lifecycle(cfg, _rename)
    if json_output:
        console.print(json.dumps({"id": session_id, "title": title.strip()}, indent=2))
    else:
        console.print(f"[green]Renamed[/green] {session_id} to {title.strip()!r}")


@sessions_app.command("delete")
def sessions_delete(
    session_id: str = typer.Argument(help="Session ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Delete (archive) a global session."""
    cfg = _load()

    async def _delete(lifecycle):
        lifecycle.request_delete(session_id)
        await lifecycle.confirm_delete()

    _, notifier = _run_lifecycle(cfg, _delete)
    if json_output:
        console.print(json.dumps({"id": session_id, "deleted": True}, indent=2))
    else:
        for level, message in notifier.notices:
            if level == "success":
                console.print(f"[green]{message}[/green]")


# --- Chat commands ---


@chat_app.command("send")
def chat_send(
    text: str = typer.Argument(help="Message text"),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Global session ID"),
    tab_id: Optional[str] = typer.Option(None, "--tab-id", help="Copilot tab ID"),
    sql: str = typer.Option("", "--sql", help="Copilot editor contents"),
    dialect: str = typer.Option("unknown", "--dialect", "-d", help="SQL dialect"),
    database: Optional[str] = typer.Option(None, "--database", help="Active database"),
    model: Optional[str] = typer.Option(None, "--model", help="Model override"),
    web_search: bool = typer.Option(False, "--web-search", help="Enable web search"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Send a message to a global session or a copilot tab and stream the reply."""
    if session and tab_id:
        console.print("[red]Use either --session or --tab-id, not both.[/red]")
        raise typer.Exit(1)
    cfg = _load()
    notifier = RecordingNotifier()
    store = get_store_client(cfg, base_url=_base_url)
    stream_client = get_stream_client(cfg, base_url=_base_url)

    def _echo(chunk: bytes) -> None:
        sys.stdout.write(chunk.decode("utf-8", errors="replace"))
        sys.stdout.flush()

    async def _run():
        async with store, stream_client:
            panel = ChatPanel(
                store,
                stream_client,
                mode=ChatMode.COPILOT if tab_id else ChatMode.GLOBAL,
                notifier=notifier,
                translate=get_translator(cfg),
                on_chunk=None if json_output else _echo,
            )
            if tab_id:
                await panel.on_envelope_changed(build_sql_envelope(
                    sql,
                    baseline_database=database,
                    dialect=dialect,
                    meta={"tab_id": tab_id},
                    updated_at=int(time.time() * 1000),
                ))
            else:
                panel.set_editor_context(database=database)
                await panel.start()
                if session:
                    await panel.lifecycle.select_session(session)
                if panel.lifecycle.selected_session_id is None:
                    raise NoSessionSelectedError(get_translator(cfg)("Errors.SessionNotSelected"))
            await panel.send(text, SendOptions(model=model, web_search=web_search))
            await panel.aclose()
            return panel.lifecycle.selected_session_id, panel.lifecycle.state.initial_messages

    try:
        session_id, messages = asyncio.run(_run())
    except NoSessionSelectedError as e:
        _fail_on_errors(notifier, "E-3001")
        _print_error(e.code, e.message)
        raise typer.Exit(1)
    if not json_output:
        sys.stdout.write("\n")
    _fail_on_errors(notifier, "E-3002")
    if json_output:
        console.print(json.dumps(
            {"sessionId": session_id, "messages": [m.to_api() for m in messages]}, indent=2,
        ))


# --- Quick action commands ---


@action_app.command("list")
def action_list(
    sql: str = typer.Option("", "--sql", help="SQL of the last execution"),
    error: Optional[str] = typer.Option(None, "--error", help="Error of the last execution"),
    dialect: str = typer.Option("unknown", "--dialect", "-d", help="SQL dialect"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List quick actions and whether they apply to the given SQL."""
    cfg = _load()
    t = get_translator(cfg)
    fix_input = build_fix_input(sql, error={"message": error} if error else None, dialect=dialect)
    entries = get_quick_action_availability(to_action_context(fix_input, t), t)
    console.print(format_action_list(entries, as_json=json_output))


@action_app.command("run")
def action_run(
    intent: str = typer.Argument(help="Quick action intent, e.g. fix-sql-error"),
    sql: str = typer.Option(..., "--sql", help="SQL of the last execution"),
    error: Optional[str] = typer.Option(None, "--error", help="Error of the last execution"),
    dialect: str = typer.Option("unknown", "--dialect", "-d", help="SQL dialect"),
    database: Optional[str] = typer.Option(None, "--database", help="Active database"),
    remote: bool = typer.Option(False, "--remote", help="Run on the workbench server"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Run a quick action and show the proposed SQL."""
    cfg = _load()
    fix_input = build_fix_input(
        sql,
        error={"message": error} if error else None,
        database=database,
        dialect=dialect,
        occurred_at=int(time.time() * 1000),
    )
    try:
        if remote:
            client = get_action_client(cfg, base_url=_base_url)

            async def _run():
                async with client:
                    return await client.run(intent, fix_input)

            result = asyncio.run(_run())
        else:
            result = get_action_executor(cfg).run_fix_input(intent, fix_input)
    except QuickActionError as e:
        _print_error(e.code, e.message)
        raise typer.Exit(1)
    console.print(format_action_result(result, as_json=json_output))


if __name__ == "__main__":
    app()
