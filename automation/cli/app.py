from __future__ import annotations

import asyncio

import typer

from automation import __version__
from automation.commands import Command
from automation.core.errors import AutomationError, ErrorCode
from automation.dispatcher import Dispatcher
from automation.output.console import RichConsole

_COMMANDS_HELP = "Commands to run in order: " + ", ".join(c.value for c in Command)

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
)


@app.command()
def run(
    commands: list[str] | None = typer.Argument(None, help=_COMMANDS_HELP, show_default=False),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Run build and release commands.

    Every command is validated before the first one starts; the first
    failure stops the run.
    """
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))

    console = RichConsole()
    dispatcher = Dispatcher(console=console)
    try:
        asyncio.run(dispatcher.run(commands or []))
    except AutomationError as e:
        console.error(str(e))
        raise typer.Exit(code=int(e.exit_code))


def main() -> None:
    app()
