"""Apply the SQL files under `db/migrations`, recording each one once applied."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Set, Tuple

from psycopg2.extensions import cursor as PsycopgCursor
from rich.console import Console
from rich.table import Table

from youcra.db.connection import configured_dsn, connection_from_dsn

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"
MIGRATIONS_TABLE = "schema_migrations"

APPLIED = "applied"
SKIPPED = "skipped"


def load_migration_files(directory: Path = MIGRATIONS_ROOT) -> List[Path]:
    return sorted(directory.glob("*.sql"))


def _applied_migrations(db_cursor: PsycopgCursor) -> Set[str]:
    db_cursor.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} ("
        "name TEXT PRIMARY KEY, applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
    )
    db_cursor.execute(f"SELECT name FROM {MIGRATIONS_TABLE}")
    return {row[0] for row in db_cursor.fetchall()}


def _apply(db_cursor: PsycopgCursor, migration_file: Path) -> None:
    db_cursor.execute(migration_file.read_text(encoding="utf-8"))
    db_cursor.execute(
        f"INSERT INTO {MIGRATIONS_TABLE} (name) VALUES (%(name)s)",
        {"name": migration_file.name},
    )


def run_migrations(
    console: Optional[Console] = None,
    *,
    directory: Path = MIGRATIONS_ROOT,
) -> List[Tuple[str, str]]:
    """Apply pending migrations in file-name order inside one transaction.

    Files already listed in ``schema_migrations`` are skipped. Returns one
    ``(file name, status)`` pair per migration file.
    """

    console = console or Console()
    migrations = load_migration_files(directory)

    if not migrations:
        console.print("[yellow]No migrations found.[/yellow]")
        return []

    connection = connection_from_dsn(configured_dsn())
    results: List[Tuple[str, str]] = []

    try:
        with connection.cursor() as db_cursor:
            applied = _applied_migrations(db_cursor)
            for migration in migrations:
                if migration.name in applied:
                    results.append((migration.name, SKIPPED))
                    continue
                _apply(db_cursor, migration)
                results.append((migration.name, APPLIED))
        connection.commit()
    except Exception as exc:
        connection.rollback()
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise
    finally:
        connection.close()

    table = Table(title="Database Migrations")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    for name, status in results:
        table.add_row(name, f"[green]{status}[/green]" if status == APPLIED else f"[dim]{status}[/dim]")
    console.print(table)
    return results


def main() -> None:
    """Entry point for running migrations via `python -m youcra.db.migrate`."""

    run_migrations()


if __name__ == "__main__":  # pragma: no cover
    main()
