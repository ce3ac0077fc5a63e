"""Quick connectivity check for the Postgres instance holding watch statistics."""

from __future__ import annotations

from psycopg2 import Error as PsycopgError
from psycopg2 import connect
from rich.console import Console

from youcra.db.connection import DatabaseNotConfiguredError, configured_dsn


def main() -> None:
    """Connect with DATABASE_URL and count the rows of both statistics tables."""

    console = Console()
    try:
        dsn = configured_dsn()
    except DatabaseNotConfiguredError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc

    try:
        with connect(dsn) as conn:
            with conn.cursor() as cur:
                for table in ("watched_videos", "video_stats"):
                    cur.execute(f"SELECT COUNT(*) FROM {table};")
                    console.print(f"{table}: [bold]{cur.fetchone()[0]}[/bold] row(s)")
    except PsycopgError as exc:
        console.print(f"[red]Connection failed:[/red] {exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
