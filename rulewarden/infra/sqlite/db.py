"""SQLite connection and schema helpers for the registry database.

Responsibilities:
  - Open read-write connections and bring the schema up to date.
  - Open read-only connections for query tools.
Must not:
  - Embed business logic; migrations only.
"""

from __future__ import annotations

import datetime
import sqlite3
from pathlib import Path

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def get_connection(db_path: str, migrate: bool = True) -> sqlite3.Connection:
    # Transactions are managed explicitly with BEGIN/COMMIT by callers.
    conn = sqlite3.connect(db_path, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    if migrate:
        apply_migrations(conn)
    return conn


def get_readonly_connection(db_path: str) -> sqlite3.Connection:
    if not Path(db_path).exists():
        raise ValueError(f"Registry database not found: {db_path}")
    conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    return conn


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    """Run pending migrations/*.sql in name order; return the names applied."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS rw_schema_migration (
            name TEXT PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
        """
    )
    done = {row[0] for row in conn.execute("SELECT name FROM rw_schema_migration").fetchall()}
    applied: list[str] = []
    for migration in sorted(MIGRATIONS_DIR.glob("*.sql")):
        if migration.name in done:
            continue
        conn.executescript(migration.read_text(encoding="utf-8"))
        conn.execute(
            "INSERT INTO rw_schema_migration (name, applied_at) VALUES (?, ?)",
            (migration.name, datetime.datetime.now(datetime.timezone.utc).isoformat()),
        )
        applied.append(migration.name)
    return applied
