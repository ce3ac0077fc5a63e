"""CLI commands operating on the local viewer state."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from youcra.cli.commands.common import AppServices, ExitCode
from youcra.models.watch import CertificationStatus, WatchRecord
from youcra.services.certification import classify_video, get_certification_status, remaining_seconds
from youcra.services.metadata import MetadataFetchError
from youcra.services.rewatch import RewatchCooldownError
from youcra.services.session import AsyncioTicker, WatchSession
from youcra.services.sync import RemoteCertificationSync
from youcra.utils.time_format import format_seconds, seconds_from_duration_value
from youcra.utils.validation import InvalidVideoIdError


def register(app: typer.Typer, console: Console) -> None:
    """Register commands that operate on a single viewer's local state."""

    services = AppServices(console)

    @app.command("duration")
    def duration(
        value: str = typer.Argument(..., help="ISO-8601 duration (PT1H2M3S) or a number of seconds"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Convert a duration to seconds and its display form."""

        seconds = seconds_from_duration_value(value)
        if json_output:
            typer.echo(json.dumps({"seconds": seconds, "display": format_seconds(seconds)}))
            return
        console.print(f"{value} = [bold]{seconds}[/bold]s ({format_seconds(seconds)})")

    @app.command("certification-status")
    def certification_status(
        duration_value: str = typer.Option(..., "--duration", "-d", help="Video length (ISO-8601 or seconds)"),
        watched: int = typer.Option(0, "--watched", "-w", min=0, help="Seconds watched so far"),
        ended: bool = typer.Option(False, "--ended", help="The player reported the video ended"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Show certification progress for a viewing."""

        threshold = services.settings.long_video_threshold_seconds
        duration_seconds = seconds_from_duration_value(duration_value)
        status = get_certification_status(duration_seconds, watched, ended, threshold_seconds=threshold)
        remaining = remaining_seconds(duration_seconds, watched, ended, threshold_seconds=threshold)
        category = classify_video(duration_seconds, threshold_seconds=threshold)

        if json_output:
            payload = status.model_dump(mode="json")
            payload.update({"remaining_seconds": remaining, "category": category.value})
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
            return

        console.print(_status_panel(status, remaining, title=f"{category.value} video ({category.label})"))

    @app.command("watch-status")
    def watch_status(
        video_id: str = typer.Argument(..., help="YouTube video id"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Show the local watch record and rewatch eligibility of a video."""

        record = services.watch_counts.get_watch_count(video_id)
        certified = services.certified_videos.is_certified(video_id)
        can_rewatch = services.rewatch_policy.can_rewatch(record)
        minutes = services.rewatch_policy.minutes_until_rewatch(record)

        if json_output:
            payload = {
                "video_id": video_id,
                "record": record.to_storage(),
                "certified": certified,
                "can_rewatch": can_rewatch,
                "minutes_until_rewatch": minutes,
            }
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
            return

        console.print(_record_table(video_id, record, certified))
        if can_rewatch:
            console.print("[green]Can be watched for certification now.[/green]")
        else:
            console.print(f"[yellow]Rewatch available in {minutes} minute(s).[/yellow]")

    @app.command("today")
    def today(json_output: bool = typer.Option(False, "--json", help="Output as JSON")) -> None:
        """Count certifications completed today."""

        count = services.watch_counts.get_today_watch_count()
        if json_output:
            typer.echo(json.dumps({"today": count}))
            return
        console.print(f"Certified today: [bold]{count}[/bold]")

    @app.command("reset-watch-counts")
    def reset_watch_counts(
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    ) -> None:
        """Delete every local watch record."""

        if not yes and not typer.confirm("Delete all local watch records?"):
            raise typer.Exit(code=ExitCode.SUCCESS)
        services.watch_counts.reset()
        console.print("[green]Watch records cleared.[/green]")

    @app.command("metadata")
    def metadata(
        video_id: str = typer.Argument(..., help="YouTube video id or URL"),
        timeout: Optional[float] = typer.Option(None, "--timeout", help="Provider timeout in seconds"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Fetch normalised metadata for a video."""

        try:
            result = services.metadata.fetch_metadata(video_id, timeout=timeout)
        except InvalidVideoIdError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc
        except MetadataFetchError as exc:
            console.print(f"[red]Metadata unavailable:[/red] {exc}")
            raise typer.Exit(code=ExitCode.METADATA_ERROR) from exc

        if json_output:
            typer.echo(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
            return

        table = Table(title=result.title or result.video_id)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Channel", result.channel_title or "Unknown")
        table.add_row("Duration", f"{format_seconds(result.duration_seconds)} ({result.duration_encoded})")
        table.add_row("Views", f"{result.view_count:,}")
        table.add_row("Likes", f"{result.like_count:,}")
        table.add_row("Thumbnail", result.thumbnail_url)
        console.print(table)

    @app.command("watch")
    def watch(  # pylint: disable=too-many-arguments
        video_id: str = typer.Argument(..., help="YouTube video id"),
        seconds: int = typer.Option(10, "--seconds", "-s", min=0, help="Ticks to play before stopping"),
        duration_value: Optional[str] = typer.Option(
            None, "--duration", "-d", help="Video length; fetched from the provider when omitted"
        ),
        tick_interval: Optional[float] = typer.Option(
            None, "--tick-interval", help="Seconds per tick (defaults to TICK_INTERVAL_SECONDS)"
        ),
        ended: bool = typer.Option(False, "--ended", help="Signal that the video ended after playing"),
        user_id: Optional[str] = typer.Option(None, "--user-id", help="Mirror certification to the database"),
    ) -> None:
        """Play a video in a live session and report certification progress."""

        if duration_value is not None:
            duration_seconds = seconds_from_duration_value(duration_value)
        else:
            try:
                duration_seconds = services.metadata.fetch_metadata_or_default(video_id).duration_seconds
            except InvalidVideoIdError as exc:
                console.print(f"[red]Error:[/red] {exc}")
                raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc

        interval = tick_interval or services.settings.tick_interval_seconds
        session = WatchSession(
            watch_counts=services.watch_counts,
            certified_videos=services.certified_videos,
            rewatch_policy=services.rewatch_policy,
            ticker=AsyncioTicker(interval),
            settings=services.settings,
            console=console,
            user_id=user_id,
        )
        if user_id and services.database_configured:
            session.add_listener(
                RemoteCertificationSync(
                    writer=services.watched_repository,
                    aggregator=services.aggregator,
                    console=console,
                )
            )

        async def _play() -> None:
            with session:
                try:
                    session.open(video_id, duration_seconds=duration_seconds, autoplay=True)
                except InvalidVideoIdError as exc:
                    console.print(f"[red]Error:[/red] {exc}")
                    raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc
                except RewatchCooldownError as exc:
                    console.print(f"[yellow]Not yet:[/yellow] {exc}")
                    raise typer.Exit(code=ExitCode.REWATCH_COOLDOWN) from exc
                session.player_ready()
                await asyncio.sleep(seconds * interval + interval / 2)
                session.pause()
                if ended:
                    session.on_ended()
                console.print(
                    _status_panel(session.status(), session.remaining_seconds(), title=f"{video_id} [{session.state.value}]")
                )

        asyncio.run(_play())


def _status_panel(status: CertificationStatus, remaining: int, *, title: str) -> Panel:
    colour = "green" if status.is_completed else "yellow"
    body = (
        f"{status.message}\n"
        f"Progress: {status.progress_percent:.1f}%\n"
        f"Required: {format_seconds(status.required_seconds)}\n"
        f"Remaining: {format_seconds(remaining)}\n"
        f"Completed: [{colour}]{'yes' if status.is_completed else 'no'}[/{colour}]"
    )
    return Panel.fit(body, title=title, border_style=colour)


def _record_table(video_id: str, record: WatchRecord, certified: bool) -> Table:
    table = Table(title=f"Watch record {video_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Certified", "yes" if certified else "no")
    table.add_row("Watch count", str(record.watch_count))
    table.add_row("Last watched", _format_millis(record.last_watched_at))
    table.add_row("History", ", ".join(_format_millis(item) for item in record.watch_history) or "-")
    return table


def _format_millis(value: Optional[int]) -> str:
    if value is None:
        return "never"
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M:%S")


__all__ = ["register"]
