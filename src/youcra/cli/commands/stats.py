"""CLI commands backed by the Postgres statistics tables."""

from __future__ import annotations

import json

import typer
from psycopg2 import Error as PsycopgError
from rich.console import Console
from rich.table import Table

from youcra.cli.commands.common import AppServices, ExitCode
from youcra.db.connection import DatabaseNotConfiguredError
from youcra.db.migrate import run_migrations
from youcra.services.ranking import rank_videos
from youcra.services.stats import AggregationWriteError


def register(app: typer.Typer, console: Console) -> None:
    """Register commands backed by the Postgres statistics store."""

    services = AppServices(console)

    def _require_database() -> None:
        if not services.database_configured:
            console.print("[red]Error:[/red] DATABASE_URL is not set.")
            raise typer.Exit(code=ExitCode.DATABASE_ERROR)

    @app.command("migrate")
    def migrate() -> None:
        """Apply the SQL migrations for watch rows and aggregates."""

        _require_database()
        try:
            run_migrations(console=console)
        except (DatabaseNotConfiguredError, PsycopgError) as exc:
            raise typer.Exit(code=ExitCode.DATABASE_ERROR) from exc

    @app.command("stats-sync")
    def stats_sync(json_output: bool = typer.Option(False, "--json", help="Output as JSON")) -> None:
        """Rebuild every aggregate from the complete set of watch rows."""

        _require_database()
        try:
            written = services.aggregator.recompute_all()
        except AggregationWriteError as exc:
            console.print(f"[red]Aggregation failed:[/red] {exc}")
            raise typer.Exit(code=ExitCode.AGGREGATION_ERROR) from exc
        except PsycopgError as exc:
            console.print(f"[red]Database error:[/red] {exc}")
            raise typer.Exit(code=ExitCode.DATABASE_ERROR) from exc

        if json_output:
            typer.echo(json.dumps([item.model_dump(mode="json") for item in written], ensure_ascii=False, indent=2))
            return
        console.print(f"[green]Recomputed {len(written)} video aggregate(s).[/green]")

    @app.command("stats-show")
    def stats_show(
        video_id: str = typer.Argument(..., help="YouTube video id"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Show the aggregate statistics of one video."""

        _require_database()
        try:
            stats = services.stats_repository.find_by_video_id(video_id)
        except PsycopgError as exc:
            console.print(f"[red]Database error:[/red] {exc}")
            raise typer.Exit(code=ExitCode.DATABASE_ERROR) from exc

        if stats is None:
            console.print(f"[yellow]No statistics recorded for {video_id}.[/yellow]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT)

        if json_output:
            typer.echo(json.dumps(stats.model_dump(mode="json"), ensure_ascii=False, indent=2))
            return

        table = Table(title=f"Statistics {video_id}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Total views", str(stats.total_views))
        table.add_row("Total likes", str(stats.total_likes))
        table.add_row("Unique viewers", str(stats.unique_viewers))
        table.add_row("Last updated", stats.last_updated.isoformat() if stats.last_updated else "-")
        console.print(table)

    @app.command("ranking")
    def ranking(
        limit: int = typer.Option(10, "--limit", min=1, help="Number of videos to show"),
        with_metadata: bool = typer.Option(
            False, "--with-metadata", help="Include YouTube likes and views in the score"
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Rank videos by popularity score."""

        _require_database()
        try:
            candidates = services.stats_repository.top_by_views(limit=limit * 3)
        except PsycopgError as exc:
            console.print(f"[red]Database error:[/red] {exc}")
            raise typer.Exit(code=ExitCode.DATABASE_ERROR) from exc

        metadata = {}
        if with_metadata:
            for item in candidates:
                metadata[item.video_id] = services.metadata.fetch_metadata_or_default(item.video_id)

        entries = rank_videos(candidates, metadata, limit=limit)
        if json_output:
            payload = [{**entry.model_dump(mode="json"), "score": entry.score} for entry in entries]
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
            return

        table = Table(title="Video Ranking")
        table.add_column("#", justify="right")
        table.add_column("Video", style="cyan")
        table.add_column("Certifications", justify="right")
        table.add_column("Viewers", justify="right")
        table.add_column("Score", justify="right", style="green")
        for position, entry in enumerate(entries, start=1):
            table.add_row(
                str(position),
                entry.title or entry.video_id,
                str(entry.certification_count),
                str(entry.watcher_count),
                f"{entry.score:,.1f}",
            )
        console.print(table)


__all__ = ["register"]
