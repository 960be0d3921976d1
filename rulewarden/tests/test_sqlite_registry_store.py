"""Tests for SQLite persistence of the registry."""

from __future__ import annotations

import json
import sqlite3

import pytest

from rulewarden.app_api.facade import DecisionRegistry
from rulewarden.core.domain.enums import DecisionStatus
from rulewarden.core.domain.models import CompatibilityException, Option
from rulewarden.infra.sqlite.db import apply_migrations, get_connection, get_readonly_connection
from rulewarden.infra.sqlite.registry_record_store_sqlite import RegistryRecordStoreSqlite
from rulewarden.infra.sqlite.repos.decision_record_repo import DecisionRecordRepo


def _populated() -> DecisionRegistry:
    registry = DecisionRegistry()
    registry.register_version("6.0")
    registry.register_version("7.0", ["6.0"])
    registry.register_version("7.2")
    registry.register_version("7.2", ["7.0"])
    registry.propose("D1", "tuple-name-matching", [Option("lenient", "No matching")], "6.0")
    registry.start_debate("D1")
    registry.resolve("D1", "lenient")
    registry.propose(
        "D2",
        "tuple-name-matching",
        [Option("strict", "Match names", forbids=frozenset({"zero-names-declared"}))],
        "7.2",
        depends_on=["D1"],
    )
    registry.start_debate("D2")
    registry.resolve("D2", "strict", [CompatibilityException("6.0", "zero-names-declared")])
    registry.propose("D3", "attribute-in-source", [Option("error", "Keep the error")], "7.0", depends_on=["D2"])
    return registry


def test_save_and_load_round_trip(tmp_path) -> None:
    db_path = tmp_path / "registry.db"
    registry = _populated()

    conn = get_connection(str(db_path))
    registry.save(RegistryRecordStoreSqlite(conn))
    conn.close()

    conn = get_connection(str(db_path))
    loaded = DecisionRegistry.load(RegistryRecordStoreSqlite(conn))
    conn.close()

    assert loaded.records() == registry.records()
    assert loaded.get("D1").status == DecisionStatus.SUPERSEDED
    assert loaded.resolver.depends_on("D3") == ["D2"]
    assert loaded.lattice.precedes("6.0", "7.2")
    assert loaded.effective_rule("tuple-name-matching", "6.0").allows("zero-names-declared")


def test_save_is_idempotent_upsert(tmp_path) -> None:
    conn = get_connection(str(tmp_path / "registry.db"))
    registry = _populated()
    store = RegistryRecordStoreSqlite(conn)
    registry.save(store)
    registry.start_debate("D3")
    registry.save(store)

    rows = conn.execute("SELECT decision_id, status FROM rw_decision ORDER BY decision_id").fetchall()
    assert [(row[0], row[1]) for row in rows] == [
        ("D1", "SUPERSEDED"),
        ("D2", "ACCEPTED"),
        ("D3", "DEBATED"),
    ]
    conn.close()


def test_save_rolls_back_on_failure(tmp_path) -> None:
    conn = get_connection(str(tmp_path / "registry.db"))
    registry = _populated()

    class _FailingStore(RegistryRecordStoreSqlite):
        def save_records(self, records):
            super().save_records(records[:1])
            raise sqlite3.OperationalError("disk full")

    with pytest.raises(sqlite3.OperationalError):
        registry.save(_FailingStore(conn))

    assert conn.execute("SELECT COUNT(*) FROM rw_decision").fetchone()[0] == 0
    assert conn.execute("SELECT COUNT(*) FROM rw_version").fetchone()[0] == 0
    conn.close()


def test_repo_stores_json_columns(tmp_path) -> None:
    conn = get_connection(str(tmp_path / "registry.db"))
    registry = _populated()
    registry.save(RegistryRecordStoreSqlite(conn))

    stored = conn.execute(
        "SELECT exceptions_json, depends_on_json FROM rw_decision WHERE decision_id=?",
        ("D2",),
    ).fetchone()
    assert json.loads(stored[0]) == [{"predicate": "zero-names-declared", "priorVersion": "6.0"}]
    assert json.loads(stored[1]) == ["D1"]

    records = {r["id"]: r for r in DecisionRecordRepo(conn).list_records()}
    assert records["D2"]["chosenOption"] == "strict"
    assert records["D3"]["construct"] == "attribute-in-source"
    conn.close()


def test_migrations_are_recorded_and_applied_once(tmp_path) -> None:
    db_path = str(tmp_path / "registry.db")
    conn = get_connection(db_path)
    names = [row[0] for row in conn.execute("SELECT name FROM rw_schema_migration").fetchall()]
    assert names == ["0001_registry_schema.sql"]
    assert apply_migrations(conn) == []
    conn.close()


def test_readonly_connection_requires_existing_database(tmp_path) -> None:
    with pytest.raises(ValueError, match="Registry database not found"):
        get_readonly_connection(str(tmp_path / "missing.db"))
