"""SQLite repository for decision records (rw_decision).

Responsibilities:
  - Upsert and read structured decision records deterministically.
Must not:
  - Validate lifecycle rules; the core owns them.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, sort_keys=True)


class DecisionRecordRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_record(self, record: dict[str, Any]) -> None:
        self._conn.execute(
            """
            INSERT INTO rw_decision (
                decision_id,
                construct,
                version,
                status,
                options_json,
                chosen_option,
                exceptions_json,
                depends_on_json,
                supersedes,
                superseded_by,
                proposed_seq,
                proposed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(decision_id) DO UPDATE SET
                construct=excluded.construct,
                version=excluded.version,
                status=excluded.status,
                options_json=excluded.options_json,
                chosen_option=excluded.chosen_option,
                exceptions_json=excluded.exceptions_json,
                depends_on_json=excluded.depends_on_json,
                supersedes=excluded.supersedes,
                superseded_by=excluded.superseded_by,
                proposed_seq=excluded.proposed_seq,
                proposed_at=excluded.proposed_at
            """,
            (
                record["id"],
                record["construct"],
                record["version"],
                record["status"],
                _dumps(record["options"]),
                record.get("chosenOption"),
                _dumps(record.get("exceptions") or []),
                _dumps(record.get("dependsOn") or []),
                record.get("supersedes"),
                record.get("supersededBy"),
                record.get("proposedSeq") or 0,
                record.get("proposedAt"),
            ),
        )

    def list_records(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM rw_decision ORDER BY proposed_seq, decision_id"
        ).fetchall()
        return [_row_to_record(row) for row in rows]


_COLUMNS = (
    "decision_id, construct, version, status, options_json, chosen_option, "
    "exceptions_json, depends_on_json, supersedes, superseded_by, proposed_seq, proposed_at"
)


def _row_to_record(row: Any) -> dict[str, Any]:
    return {
        "id": row[0],
        "construct": row[1],
        "version": row[2],
        "status": row[3],
        "options": json.loads(row[4]),
        "chosenOption": row[5],
        "exceptions": json.loads(row[6]),
        "dependsOn": json.loads(row[7]),
        "supersedes": row[8],
        "supersededBy": row[9],
        "proposedSeq": row[10],
        "proposedAt": row[11],
    }
