"""Switchboard command line interface."""

from __future__ import annotations

import asyncio

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from .app import DEFAULT_SESSION_ID, Assistant
from .config import Settings, get_settings
from .errors import ConfigurationError, SwitchboardError
from .logging_utils import configure_logging

app = typer.Typer(
    name="switchboard",
    help="Route a message to skills and answer with their results.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _exit_with_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def _load_settings(model: str | None, **overrides: object) -> Settings:
    if model:
        overrides["model"] = model
    settings = get_settings(**overrides)
    configure_logging(level=settings.log_level)
    return settings


@app.command()
def run(
    message: str = typer.Argument(..., help="User message for this turn"),
    session_id: str = typer.Option(DEFAULT_SESSION_ID, "--session-id", "-s", help="Conversation to continue"),
    model: str | None = typer.Option(None, "--model", "-m", help="Override model (provider:model)"),
    ephemeral: bool = typer.Option(
        False, "--ephemeral", help="Keep the conversation in memory only instead of under SWITCHBOARD_HOME/sessions"
    ),
) -> None:
    """Run one conversation turn and print the reply.

    Conversations are saved between runs, so `--session-id` picks up where
    the previous run of that session left off.
    """

    settings = _load_settings(model, session_store="memory" if ephemeral else "file")
    try:
        settings.validate_model()
    except ConfigurationError as exc:
        _exit_with_error(str(exc))

    assistant = Assistant(settings)
    try:
        reply = asyncio.run(assistant.chat(message, session_id))
    except SwitchboardError as exc:
        logger.error("cli.turn.failed session={} error={}", session_id, exc)
        _exit_with_error(str(exc))
    except Exception as exc:
        logger.opt(exception=True).error("cli.turn.crashed session={} error={}", session_id, exc)
        _exit_with_error(f"{type(exc).__name__}: {exc}")
    else:
        console.print(reply)


@app.command()
def skills() -> None:
    """List the skills available with the current configuration."""

    settings = _load_settings(None)
    registry_view = Assistant(settings, llm=_NoModel()).skills_info()
    if not registry_view:
        typer.echo("(no skills available)")
        return

    table = Table(title="Skills")
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Description")
    for entry in registry_view:
        table.add_row(entry["icon"], entry["name"], entry["description"])
    console.print(table)


class _NoModel:
    """Placeholder model for commands that never start a turn."""

    async def invoke(self, messages):  # type: ignore[no-untyped-def]
        raise SwitchboardError("no model configured for this command")

    async def invoke_structured(self, messages, schema):  # type: ignore[no-untyped-def]
        raise SwitchboardError("no model configured for this command")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
