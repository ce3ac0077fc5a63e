"""CLI entry point and application wiring."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from youcra.cli.commands import register_commands
from youcra.db.connection import close_pool
from youcra.utils.logging import create_console


class CLIApplication:
    """Builds the YouCra Typer app around one filtered console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or create_console()
        self._app = typer.Typer(add_completion=False, rich_markup_mode="rich")
        register_commands(self._app, self.console)

    @property
    def app(self) -> typer.Typer:
        return self._app

    def run(self, *, prog_name: Optional[str] = None, args: Optional[list[str]] = None) -> None:
        """Invoke the Typer application, closing the database pool on the way out."""

        try:
            self._app(prog_name=prog_name, args=args)
        finally:
            close_pool()


def create_app(console: Optional[Console] = None) -> typer.Typer:
    return CLIApplication(console=console).app


def main() -> None:
    """Console script entry point for `python -m youcra` or the installed `youcra`."""

    CLIApplication().run(prog_name="youcra")


__all__ = ["CLIApplication", "create_app", "main"]
