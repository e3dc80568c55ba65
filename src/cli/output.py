"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich output (default) and machine-parseable JSON
output (--json flag). All formatting goes through these functions so the
CLI commands stay clean.
"""

import dataclasses
import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from src.actions.models import ActionResult
from src.actions.registry import QuickActionAvailability
from src.chat.models import ChatSession, SessionDetail, normalize_session_title
from src.copilot.models import CopilotEnvelope, InferredSqlContext

console = Console()

CONFIDENCE_COLORS = {
    "high": "green",
    "mid": "yellow",
    "low": "red",
}

RISK_COLORS = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
}


def _render(renderable) -> str:
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def _short_ts(value: str | None) -> str:
    return value[:19] if value else "—"


def format_sessions_table(
    sessions: list[ChatSession],
    fallback_title: str,
    selected_id: str | None = None,
    as_json: bool = False,
) -> str:
    """Format a session list as a Rich table or JSON.

    Args:
        sessions: Sessions in display order.
        fallback_title: Title shown for sessions without one.
        selected_id: Session to mark as selected.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps([dataclasses.asdict(s) for s in sessions], indent=2)

    if not sessions:
        return "No sessions found."

    table = Table(title="Sessions", show_lines=True)
    table.add_column("", no_wrap=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Type")
    table.add_column("Last Message")

    for session in sessions:
        table.add_row(
            "[green]●[/green]" if session.id == selected_id else "",
            session.id,
            escape(normalize_session_title(session.title, fallback_title)),
            session.type.value,
            _short_ts(session.last_message_at or session.updated_at),
        )
    return _render(table)


def format_session_detail(detail: SessionDetail, fallback_title: str, as_json: bool = False) -> str:
    """Format a session and its messages as a Rich panel or JSON."""
    if as_json:
        return json.dumps(
            {
                "session": dataclasses.asdict(detail.session) if detail.session else None,
                "messages": [m.to_api() for m in detail.messages],
            },
            indent=2,
        )

    lines = []
    session = detail.session
    if session is not None:
        lines += [
            f"[bold]Session:[/bold]   {session.id}",
            f"[bold]Title:[/bold]     {escape(normalize_session_title(session.title, fallback_title))}",
            f"[bold]Type:[/bold]      {session.type.value}",
        ]
        if session.tab_id:
            lines.append(f"[bold]Tab:[/bold]       {session.tab_id}")
        if session.active_database:
            lines.append(f"[bold]Database:[/bold]  {session.active_database}")
        lines.append(f"[bold]Created:[/bold]   {_short_ts(session.created_at)}")
        lines.append("")
    if not detail.messages:
        lines.append("[dim]No messages[/dim]")
    for message in detail.messages:
        role_color = "cyan" if message.role == "user" else "magenta"
        lines.append(f"[{role_color}]{message.role}:[/{role_color}] {escape(message.text)}")

    return _render(Panel("\n".join(lines), title="Session Detail", border_style="cyan"))


def format_inference(inferred: InferredSqlContext, as_json: bool = False) -> str:
    """Format inferred SQL context as a Rich table or JSON."""
    if as_json:
        return json.dumps(inferred.model_dump(by_alias=True, mode="json"), indent=2)

    color = CONFIDENCE_COLORS.get(inferred.confidence.value, "white")
    title = (
        f"Inferred context  database={inferred.database or '—'}  "
        f"confidence=[{color}]{inferred.confidence.value}[/{color}]"
    )
    table = Table(title=title)
    table.add_column("Raw", style="cyan")
    table.add_column("Database")
    table.add_column("Name", style="bold")
    for t in inferred.tables:
        table.add_row(escape(t.raw), t.database or "—", t.name)
    if not inferred.tables:
        table.add_row("[dim]no tables[/dim]", "", "")
    return _render(table)


def format_envelope(envelope: CopilotEnvelope, as_json: bool = False) -> str:
    """Format a full copilot envelope."""
    data = envelope.model_dump(by_alias=True, mode="json")
    if as_json:
        return json.dumps(data, indent=2)
    return _render(Panel(escape(json.dumps(data, indent=2)), title="Envelope", border_style="cyan"))


def format_prompt_context(context: dict[str, Any], as_json: bool = False) -> str:
    """Format the prompt context derived from an envelope."""
    if as_json:
        return json.dumps(context, indent=2)
    return _render(
        Panel(escape(json.dumps(context, indent=2)), title="Prompt Context", border_style="green")
    )


def format_action_list(entries: list[QuickActionAvailability], as_json: bool = False) -> str:
    """Format quick action availability as a Rich table or JSON."""
    if as_json:
        return json.dumps(
            [
                {
                    "intent": e.action.intent.value,
                    "title": e.title,
                    "description": e.description,
                    "available": e.available,
                    "reason": e.reason,
                }
                for e in entries
            ],
            indent=2,
        )

    table = Table(title="Quick Actions")
    table.add_column("Intent", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Available")
    table.add_column("Description")
    for e in entries:
        available = "[green]yes[/green]" if e.available else f"[red]no[/red] [dim]{escape(e.reason or '')}[/dim]"
        table.add_row(e.action.intent.value, e.title, available, e.description)
    return _render(table)


def format_action_result(result: ActionResult, as_json: bool = False) -> str:
    """Format a quick action proposal as a Rich panel or JSON."""
    if as_json:
        return json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2)

    color = RISK_COLORS.get(result.risk.value, "white")
    lines = [
        f"[bold]{escape(result.title)}[/bold]",
        "",
        escape(result.explanation),
        "",
        f"[bold]Risk:[/bold] [{color}]{result.risk.value}[/{color}]",
        "",
        "[bold]SQL:[/bold]",
        escape(result.fixed_sql),
    ]
    return _render(Panel("\n".join(lines), title="Quick Action", border_style=color))


def format_config(config_data: dict, as_json: bool = False) -> str:
    """Format an already-redacted config dict, one panel per section."""
    if as_json:
        return json.dumps(config_data, indent=2)

    table = Table(show_header=False, box=None)
    for section, values in config_data.items():
        if isinstance(values, dict):
            table.add_row(f"[bold]{section}[/bold]", "")
            for key, value in values.items():
                table.add_row(f"  {key}", escape(str(value)) if value is not None else "—")
        else:
            table.add_row(f"[bold]{section}[/bold]", escape(str(values)))
    return _render(Panel(table, title="[bold]Configuration[/bold]", border_style="cyan"))
