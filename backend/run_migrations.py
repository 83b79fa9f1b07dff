#!/usr/bin/env python3
"""
Database migration runner for Supabase.

Applies the SQL files in migrations/ (document table and the optimistic
commit function) directly against the Supabase PostgreSQL database.

Usage:
    python run_migrations.py              # Run pending migrations
    python run_migrations.py --status     # Show migration status
    python run_migrations.py --dry-run    # Show what would run

Configuration:
    Set SUPABASE_DB_URL in your .env file (Supabase Dashboard → Settings →
    Database → Connection string → URI).
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from pathlib import Path

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_migrations"


@dataclass
class Migration:
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        content = path.read_text()
        return cls(path.name, path, hashlib.sha256(content.encode()).hexdigest()[:16])


def connect():
    settings = get_settings()
    if not settings.supabase_db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        sys.exit(1)
    try:
        return psycopg2.connect(settings.supabase_db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def applied_checksums(conn) -> dict[str, str]:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL(
                "CREATE TABLE IF NOT EXISTS {} ("
                " name VARCHAR(255) PRIMARY KEY,"
                " checksum VARCHAR(64) NOT NULL,"
                " applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
            ).format(sql.Identifier(MIGRATIONS_TABLE))
        )
        cur.execute(
            sql.SQL("SELECT name, checksum FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        rows = cur.fetchall()
    conn.commit()
    return {name: checksum for name, checksum in rows}


def discover() -> list[Migration]:
    if not MIGRATIONS_DIR.exists():
        return []
    return [Migration.from_file(p) for p in sorted(MIGRATIONS_DIR.glob("*.sql"))]


def apply(conn, migration: Migration) -> None:
    console.print(f"[blue]Running:[/blue] {migration.name}...")
    try:
        with conn.cursor() as cur:
            cur.execute(migration.path.read_text())
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
        console.print(f"[green]✓[/green] {migration.name} applied")
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]✗[/red] {migration.name} failed: {e}")
        raise


def main():
    parser = argparse.ArgumentParser(description="Run Consult Ledger database migrations")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations only")
    args = parser.parse_args()

    conn = connect()
    try:
        applied = applied_checksums(conn)
        migrations = discover()

        if args.status:
            table = Table(title="Migration Status")
            table.add_column("Migration", style="cyan")
            table.add_column("Status")
            table.add_column("Checksum")
            for m in migrations:
                if m.name not in applied:
                    state = "[yellow]Pending[/yellow]"
                elif applied[m.name] != m.checksum:
                    state = "[red]Changed[/red]"
                else:
                    state = "[green]Applied[/green]"
                table.add_row(m.name, state, m.checksum)
            console.print(table)
            return

        pending = [m for m in migrations if m.name not in applied]
        if not pending:
            console.print("[green]All migrations are up to date![/green]")
            return

        for m in pending:
            if args.dry_run:
                console.print(f"[cyan]Would run:[/cyan] {m.name}")
            else:
                apply(conn, m)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
