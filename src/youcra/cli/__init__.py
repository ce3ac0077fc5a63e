"""Command-line interface package for YouCra."""

from youcra.cli.main import CLIApplication, create_app

__all__ = ["CLIApplication", "create_app"]
