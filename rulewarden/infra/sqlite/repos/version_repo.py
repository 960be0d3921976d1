"""SQLite repository for registered language versions (rw_version)."""

from __future__ import annotations

import json
import sqlite3

from rulewarden.app_api.dto import VersionEntry


class VersionRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_versions(self, versions: list[VersionEntry]) -> None:
        for seq, entry in enumerate(versions):
            self._conn.execute(
                """
                INSERT INTO rw_version (version, predecessors_json, registration_seq)
                VALUES (?, ?, ?)
                ON CONFLICT(version) DO UPDATE SET
                    predecessors_json=excluded.predecessors_json,
                    registration_seq=excluded.registration_seq
                """,
                (
                    entry.version,
                    json.dumps(sorted(entry.predecessors), separators=(",", ":"), ensure_ascii=False),
                    seq,
                ),
            )

    def list_versions(self) -> list[VersionEntry]:
        rows = self._conn.execute(
            """
            SELECT version, predecessors_json
            FROM rw_version
            ORDER BY registration_seq, version
            """
        ).fetchall()
        return [
            VersionEntry(version=row[0], predecessors=tuple(json.loads(row[1])))
            for row in rows
        ]
