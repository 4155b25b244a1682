"""
Main entry point for CloudDecode CLI.

This module provides the command-line interface for CloudDecode, wiring the
credential gate, the explanation client and the request orchestrator to a
rich terminal presentation.
"""

import asyncio
import importlib.metadata
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cloudecode.config import api_manager
from cloudecode.config.credentials import CredentialGate, create_credential_provider
from cloudecode.config.settings import settings
from cloudecode.explainer.explanation_client import ExplanationClient
from cloudecode.explainer.openai_client import OpenAIClient
from cloudecode.orchestrator.request_orchestrator import RequestOrchestrator
from cloudecode.orchestrator.state import ErrorDisplay
from cloudecode.ui.quick_templates import find_template
from cloudecode.ui.renderer import render_snapshot, render_templates
from cloudecode.utils.logging import setup_logging
from cloudecode.utils.welcome_screen import display_welcome_screen

app = typer.Typer(
    name="cloudecode",
    help="Structured explanations for shell and cloud CLI commands",
    add_completion=False,
)

console = Console()

API_KEY_HELP = (
    "Please enter your OpenAI API key.\n"
    "Your API key will be stored securely in your system's keyring.\n"
    "You can find your API key at: [link]https://platform.openai.com/api-keys[/link]"
)


def show_main_help() -> None:
    """Display custom formatted main help."""
    console.print(
        Panel.fit(
            "[bold blue]☁ CloudDecode - Shell & Cloud CLI Explainer[/]",
            border_style="blue",
        )
    )

    commands_table = Table(
        title="Available Commands", show_header=True, box=box.ROUNDED
    )
    commands_table.add_column("Command", style="cyan", width=25)
    commands_table.add_column("Description", style="white")
    commands_table.add_row("explain", "Explain a shell or cloud CLI command")
    commands_table.add_row("templates", "List the quick templates")
    commands_table.add_row("run", "Start the interactive explainer")
    console.print(commands_table)

    console.print(
        Panel(
            "[cyan]--version, -v[/]       Show application version\n"
            "[cyan]--reset-api-key[/]     Reset stored OpenAI API key\n"
            "[cyan]--help, -h[/]          Show this help message",
            title="Global Options",
            border_style="blue",
        )
    )

    console.print(
        Panel(
            '[green]cloudecode explain "aws s3 sync . s3://my-bucket --delete"[/]\n'
            "[green]cloudecode explain --template 4[/]\n"
            "[green]cloudecode run[/]",
            title="Usage Examples",
            border_style="green",
        )
    )


def get_version() -> str:
    """Get the installed version of CloudDecode."""
    try:
        return importlib.metadata.version("cloudecode")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def prompt_for_api_key() -> Optional[str]:
    """
    Ask the user for an API key.

    Returns:
        Optional[str]: The entered key, or None if the prompt was aborted.
    """
    console.print(Panel(API_KEY_HELP, title="Set API Key", border_style="green"))
    try:
        return typer.prompt("Enter your OpenAI API key", hide_input=True)
    except typer.Abort:
        return None


def configure_session_logging(debug: bool) -> None:
    """Quiet (WARNING) sessions by default, DEBUG with --debug."""
    if debug:
        settings.set("advanced", "debug_mode", True)
        log_file = settings.get_log_file_path()
        setup_logging(log_level="DEBUG", log_file=log_file, use_colors=True)
    else:
        setup_logging(
            log_level="WARNING",
            log_file=settings.get("advanced", "log_file", None) or None,
            use_colors=True,
        )


def build_orchestrator(
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    interactive: bool = True,
) -> RequestOrchestrator:
    """
    Assemble the credential gate, explanation client and orchestrator.

    Args:
        api_key (Optional[str]): Explicit key overriding stored credentials.
        model (Optional[str]): OpenAI model override.
        interactive (bool): Whether the user can be prompted for a key.

    Returns:
        RequestOrchestrator: Ready to refresh credentials and submit.
    """
    provider = create_credential_provider(
        settings.get_credential_provider_mode(),
        prompt=prompt_for_api_key if interactive else None,
        api_key=api_key,
    )
    remote = OpenAIClient(key_source=provider.get_api_key, model=model)
    return RequestOrchestrator(CredentialGate(provider), ExplanationClient(remote))


def ensure_credential(orchestrator: RequestOrchestrator) -> bool:
    """
    Make sure a credential is selected, offering selection when possible.

    Returns:
        bool: True if the orchestrator may submit.
    """
    if asyncio.run(orchestrator.refresh_credentials()):
        return True

    if not orchestrator.gate.supports_selection:
        console.print(
            Panel(
                "No OpenAI API key found.\n\n"
                f"Set [bold]{api_manager.ENV_VAR_NAME}[/] or pass [bold]--api-key[/].",
                title="API Key Required",
                border_style="yellow",
            )
        )
        return False

    if not typer.confirm("Would you like to set up your API key now?", default=True):
        console.print("[yellow]CloudDecode requires an API key to function.[/]")
        return False

    return asyncio.run(orchestrator.request_credential_selection())


def explain_rejection(orchestrator: RequestOrchestrator) -> None:
    snapshot = orchestrator.snapshot
    if snapshot.is_blocked:
        console.print(
            "[bold red]Submissions are blocked:[/] your API key is disabled. "
            "Select a new key first."
        )
    elif not snapshot.has_credential:
        console.print("[bold red]No API key selected.[/] Select a key first.")


def show_snapshot(orchestrator: RequestOrchestrator, interactive: bool = False) -> None:
    render_snapshot(
        console,
        orchestrator.snapshot,
        can_select=orchestrator.gate.supports_selection,
        interactive=interactive,
    )


def submit_and_render(
    orchestrator: RequestOrchestrator,
    text: str,
    template: bool = False,
    interactive: bool = False,
) -> bool:
    """
    Submit one query, then render the resulting state.

    Returns:
        bool: False if the submission was rejected.
    """
    with console.status("[bold green]Decoding infrastructure...[/]", spinner="dots"):
        if template:
            submitted = asyncio.run(orchestrator.use_quick_template(text))
        else:
            submitted = asyncio.run(orchestrator.submit(text))

    if not submitted:
        explain_rejection(orchestrator)
        return False

    show_snapshot(orchestrator, interactive=interactive)
    return True


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show the application version and exit."
    ),
    reset_api_key: bool = typer.Option(
        False, "--reset-api-key", help="Reset the stored OpenAI API key."
    ),
    show_help: bool = typer.Option(
        False, "--help", "-h", help="Show help message and exit."
    ),
) -> None:
    """CloudDecode - structured explanations for shell and cloud CLI commands."""
    if ctx.invoked_subcommand is not None:
        return

    if version:
        console.print(f"[bold blue]CloudDecode CLI Version:[/] {get_version()}")
        raise typer.Exit()

    if reset_api_key:
        if not api_manager.delete_api_key():
            console.print("[bold red]Failed to delete API key.[/]")
            raise typer.Exit(1)
        console.print("[bold green]API key deleted successfully.[/]")

        if typer.confirm("Do you want to set a new API key now?", default=True):
            new_key = prompt_for_api_key()
            if not api_manager.is_api_key_valid(new_key):
                console.print("[bold red]Invalid API key format.[/]")
                raise typer.Exit(1)
            if not api_manager.save_api_key(new_key):
                console.print("[bold red]Failed to save new API key.[/]")
                raise typer.Exit(1)
            console.print("[bold green]New API key saved successfully![/]")
        raise typer.Exit()

    show_main_help()
    raise typer.Exit()


# Define typer arguments at module level to avoid B008
_EXPLAIN_COMMAND_ARG = typer.Argument(None, help="The command to explain.")


@app.command()
def explain(
    command: List[str] = _EXPLAIN_COMMAND_ARG,
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help="Explain a quick template (number or label)."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="OpenAI API key (overrides stored key)."
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="OpenAI model to use. Defaults to the api.model setting.",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging."),
) -> None:
    """
    Explain a shell or cloud CLI command.

    Prints what the command does, how it works, how to improve it, and
    equivalent command variants.
    """
    configure_session_logging(debug)

    if template:
        quick = find_template(template)
        if quick is None:
            console.print(f"[bold red]Error:[/] Unknown template '{template}'.")
            raise typer.Exit(1)
        command_text = quick.command
    else:
        command_text = " ".join(command or [])

    if not command_text.strip():
        console.print("[bold red]Error:[/] No command provided.")
        console.print('Usage: [bold]cloudecode explain "kubectl get pods"[/]')
        raise typer.Exit(1)

    if api_key and not api_manager.is_api_key_valid(api_key):
        console.print("[bold red]Invalid API key format.[/]")
        raise typer.Exit(1)

    orchestrator = build_orchestrator(api_key=api_key, model=model)
    if not ensure_credential(orchestrator):
        raise typer.Exit(1)

    submitted = submit_and_render(orchestrator, command_text, template=bool(template))
    if not submitted or isinstance(orchestrator.snapshot.state, ErrorDisplay):
        raise typer.Exit(1)


@app.command()
def templates() -> None:
    """List the quick templates."""
    render_templates(console)


INTERACTIVE_HELP = (
    "[bold]Paste a command[/] to explain it.\n"
    "[cyan]:t N[/]          explain quick template N\n"
    "[cyan]:templates[/]    list quick templates\n"
    "[cyan]:key[/]          select a new API key\n"
    "[cyan]:status[/]       show the current state\n"
    "[cyan]exit[/]          quit"
)


def handle_interactive_input(orchestrator: RequestOrchestrator, user_input: str) -> None:
    """Dispatch one line typed in interactive mode."""
    text = user_input.strip()
    parts = text.split(maxsplit=1)

    if text in (":templates", ":list"):
        render_templates(console)
    elif text in (":help", "?"):
        console.print(Panel(INTERACTIVE_HELP, title="Commands", border_style="blue"))
    elif text == ":status":
        show_snapshot(orchestrator, interactive=True)
    elif text == ":key":
        if not orchestrator.gate.supports_selection:
            console.print(
                "[yellow]Key selection is not available. "
                f"Set {api_manager.ENV_VAR_NAME} instead.[/]"
            )
            return
        asyncio.run(orchestrator.request_credential_selection())
        show_snapshot(orchestrator, interactive=True)
    elif parts and parts[0] in (":t", ":template"):
        if len(parts) < 2:
            console.print("Usage: [bold]:t N[/] (see :templates)")
            return
        quick = find_template(parts[1])
        if quick is None:
            console.print("[bold red]Unknown template.[/] Use :templates to list them.")
            return
        console.print(f"[bold]{quick.label}:[/] {quick.command}")
        submit_and_render(orchestrator, quick.command, template=True, interactive=True)
    else:
        submit_and_render(orchestrator, user_input, interactive=True)


@app.command()
def run(
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="OpenAI API key (overrides stored key)."
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="OpenAI model to use."
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging."),
) -> None:
    """
    Start the interactive explainer.

    Paste commands one at a time; type 'exit' or press Ctrl+D to leave.
    """
    configure_session_logging(debug)

    if api_key and not api_manager.is_api_key_valid(api_key):
        console.print("[bold red]Invalid API key format.[/]")
        raise typer.Exit(1)

    orchestrator = build_orchestrator(api_key=api_key, model=model)
    display_welcome_screen(console)
    asyncio.run(orchestrator.refresh_credentials())
    show_snapshot(orchestrator, interactive=True)
    console.print(Panel(INTERACTIVE_HELP, title="Commands", border_style="blue"))

    while True:
        try:
            user_input = console.input("[bold blue]>[/] ")
        except (EOFError, KeyboardInterrupt):
            break

        if user_input.strip().lower() in ("exit", "quit"):
            break
        if not user_input.strip():
            continue

        try:
            handle_interactive_input(orchestrator, user_input)
        except KeyboardInterrupt:
            console.print("\n[yellow]Request cancelled.[/]")
        except Exception as e:
            console.print(f"\n[bold red]Error:[/] {str(e)}")

    console.print("\n[bold]Exiting CloudDecode. Goodbye![/]")
