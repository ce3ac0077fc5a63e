"""Command registration utilities for the YouCra CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from youcra import __version__
from youcra.cli.commands import stats, watch


def register_commands(app: typer.Typer, console: Console) -> None:
    """Attach command groups to the provided Typer application."""

    watch.register(app, console)
    stats.register(app, console)

    def _show_version(value: bool) -> None:
        if value:
            console.print(f"youcra {__version__}")
            raise typer.Exit()

    @app.callback(invoke_without_command=True)
    def main_callback(
        ctx: typer.Context,
        version: bool = typer.Option(
            False,
            "--version",
            callback=_show_version,
            is_eager=True,
            help="Show the installed version and exit.",
        ),
    ) -> None:
        """Watch certification, rewatch cooldowns, and popularity statistics."""

        if ctx.invoked_subcommand is None:
            console.print("[bold green]YouCra CLI ready for commands.[/bold green]")


__all__ = ["register_commands"]
