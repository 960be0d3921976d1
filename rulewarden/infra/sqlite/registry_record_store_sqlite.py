from __future__ import annotations

import sqlite3
from typing import Any

from rulewarden.app_api.dto import VersionEntry
from rulewarden.app_api.ports import RegistryRecordStore
from .repos.decision_record_repo import DecisionRecordRepo
from .repos.version_repo import VersionRepo


class RegistryRecordStoreSqlite(RegistryRecordStore):
    """SQLite-backed persistence port for a DecisionRegistry.

    Transaction contract: begin/commit/rollback wrap a full save; the connection
    must be opened in autocommit mode (isolation_level=None) so BEGIN is explicit.
    Versions are written before decisions so the version foreign key holds.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._versions = VersionRepo(conn)
        self._decisions = DecisionRecordRepo(conn)

    def begin(self) -> None:
        self._conn.execute("BEGIN")

    def commit(self) -> None:
        self._conn.execute("COMMIT")

    def rollback(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    def save_versions(self, versions: list[VersionEntry]) -> None:
        self._versions.upsert_versions(versions)

    def save_records(self, records: list[dict[str, Any]]) -> None:
        for record in records:
            self._decisions.upsert_record(record)

    def load_versions(self) -> list[VersionEntry]:
        return self._versions.list_versions()

    def load_records(self) -> list[dict[str, Any]]:
        return self._decisions.list_records()
