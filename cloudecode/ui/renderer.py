"""
Terminal rendering of the orchestrator snapshot.

Nothing here changes state; every function reads a Snapshot and prints it.
"""

from rich import box
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cloudecode.config.settings import settings
from cloudecode.models.explanation_models import ExplanationResult
from cloudecode.orchestrator.state import (
    ErrorDisplay,
    ErrorKind,
    Idle,
    Loading,
    Snapshot,
    SuccessDisplay,
)
from cloudecode.ui.quick_templates import QUICK_TEMPLATES


def status_line(snapshot: Snapshot) -> Text:
    """One-line system status shown above every render."""
    kind = snapshot.error_kind
    if kind is ErrorKind.LEAKED:
        return Text("● Security Alert", style="bold red")
    if kind is ErrorKind.QUOTA:
        return Text("● Quota Full", style="bold dark_orange")
    if snapshot.has_credential:
        return Text("● Cloud Nodes Ready", style="bold blue")
    return Text("● System Offline", style="dim")


def build_error_panel(
    error: ErrorDisplay, can_select: bool = True, interactive: bool = False
) -> Panel:
    """
    Error panel with a recovery hint.

    The :key hint is only offered inside the interactive session.
    """
    leaked = error.kind is ErrorKind.LEAKED
    title = "Access Denied" if leaked else "System Error"

    body = Text(error.message)
    if can_select:
        body.append("\n\nConfigure a new key with ", style="dim")
        if interactive:
            body.append(":key", style="bold cyan")
            body.append(" or ", style="dim")
        body.append("cloudecode --reset-api-key", style="bold cyan")
    return Panel(
        body,
        title=f"⚠ {title}",
        border_style="red" if leaked else "yellow",
    )


def build_result_panels(result: ExplanationResult) -> Group:
    header = Text()
    header.append("$ ", style="bold blue")
    header.append(result.issue, style="bold white")

    summary = Group(
        header,
        Text(""),
        Text("Operational Logic:", style="bold blue"),
        Text(result.cause),
        Text(""),
        Text("Architect Tip:", style="bold green"),
        Text(result.solution, style="italic"),
    )

    show_annotations = settings.get("ui", "show_annotations", True)
    patterns = Table(box=box.SIMPLE, show_header=True, expand=True)
    patterns.add_column("#", style="dim", width=3)
    patterns.add_column("Command", style="bold cyan")
    if show_annotations:
        patterns.add_column("Note", style="dim italic")

    for index, line in enumerate(result.example_lines(), start=1):
        row = [str(index), escape(line.copy_text)]
        if show_annotations:
            row.append(escape(line.annotation or ""))
        patterns.add_row(*row)

    return Group(
        Panel(summary, title="☁ Command Explanation", border_style="blue"),
        Panel(patterns, title="Implementation Patterns", border_style="green"),
    )


def render_snapshot(
    console: Console,
    snapshot: Snapshot,
    can_select: bool = True,
    interactive: bool = False,
) -> None:
    """
    Print the current state.

    Args:
        console (Console): Rich console to print to.
        snapshot (Snapshot): State to render.
        can_select (bool): Whether an interactive key selection is available,
            controlling the recovery hint on error panels.
        interactive (bool): Whether the interactive session's commands can
            be suggested.
    """
    console.print(status_line(snapshot))

    current = snapshot.state
    if isinstance(current, ErrorDisplay):
        console.print(
            build_error_panel(current, can_select=can_select, interactive=interactive)
        )
    elif isinstance(current, SuccessDisplay):
        console.print(build_result_panels(current.result))
    elif isinstance(current, Loading):
        console.print(f"[bold green]Decoding:[/] {escape(snapshot.query)}")
    elif isinstance(current, Idle):
        console.print(
            "[dim]Awaiting blueprint. Paste any shell or cloud CLI command.[/]"
        )


def render_templates(console: Console) -> None:
    table = Table(title="Cloud Blueprint Library", box=box.ROUNDED)
    table.add_column("#", style="cyan", width=3)
    table.add_column("Tool", style="bold blue")
    table.add_column("Template", style="white")
    table.add_column("Command", style="dim")

    for index, template in enumerate(QUICK_TEMPLATES, start=1):
        table.add_row(
            str(index), template.short_name, template.label, escape(template.command)
        )

    console.print(table)
