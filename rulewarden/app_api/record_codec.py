"""Structured record form of a Decision.

Responsibilities:
  - Convert Decision snapshots to plain dict records and back.
Must not:
  - Choose a storage medium or encoding; callers do that.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from rulewarden.core.domain.enums import RULE_BEARING_STATUSES, DecisionStatus
from rulewarden.core.domain.models import CompatibilityException, Decision, Option

RECORD_FIELDS = (
    "id",
    "construct",
    "version",
    "status",
    "options",
    "chosenOption",
    "exceptions",
    "dependsOn",
)


def option_to_record(option: Option) -> dict[str, Any]:
    return {
        "id": option.option_id,
        "description": option.description,
        "tags": sorted(option.tags),
        "permits": sorted(option.permits),
        "forbids": sorted(option.forbids),
    }


def option_from_record(record: dict[str, Any]) -> Option:
    return Option(
        option_id=_require(record, "id", str),
        description=_require(record, "description", str),
        tags=frozenset(_string_list(record, "tags")),
        permits=frozenset(_string_list(record, "permits")),
        forbids=frozenset(_string_list(record, "forbids")),
    )


def decision_to_record(decision: Decision, depends_on: Iterable[str] = ()) -> dict[str, Any]:
    return {
        "id": decision.decision_id,
        "construct": decision.construct,
        "version": decision.version,
        "status": decision.status.value,
        "options": [option_to_record(option) for option in decision.options],
        "chosenOption": decision.chosen_option,
        "exceptions": [
            {"priorVersion": exc.prior_version, "predicate": exc.predicate}
            for exc in decision.exceptions
        ],
        "dependsOn": sorted(depends_on),
        "supersedes": decision.supersedes,
        "supersededBy": decision.superseded_by,
        "proposedSeq": decision.proposed_seq,
        "proposedAt": decision.proposed_at,
    }


def decision_from_record(record: dict[str, Any]) -> tuple[Decision, list[str]]:
    if not isinstance(record, dict):
        raise ValueError("Decision record must be a JSON object")
    status_raw = _require(record, "status", str)
    try:
        status = DecisionStatus(status_raw)
    except ValueError as exc:
        raise ValueError(f"Unknown decision status: {status_raw}") from exc

    options_raw = _require(record, "options", list)
    exceptions_raw = record.get("exceptions") or []
    if not isinstance(exceptions_raw, list):
        raise ValueError("Field 'exceptions' must be list")

    decision = Decision(
        decision_id=_require(record, "id", str),
        construct=_require(record, "construct", str),
        version=_require(record, "version", str),
        options=tuple(option_from_record(item) for item in options_raw),
        status=status,
        chosen_option=_optional(record, "chosenOption", str),
        exceptions=tuple(
            CompatibilityException(
                prior_version=_require(item, "priorVersion", str),
                predicate=_require(item, "predicate", str),
            )
            for item in exceptions_raw
        ),
        supersedes=_optional(record, "supersedes", str),
        superseded_by=_optional(record, "supersededBy", str),
        proposed_seq=_optional(record, "proposedSeq", int) or 0,
        proposed_at=_optional(record, "proposedAt", str),
    )
    if decision.status in RULE_BEARING_STATUSES and decision.chosen_option is None:
        raise ValueError(f"Decision {decision.decision_id} is {status.value} without chosenOption")
    if decision.chosen_option is not None and decision.chosen is None:
        raise ValueError(
            f"chosenOption {decision.chosen_option!r} is not among the options of {decision.decision_id}"
        )
    return decision, _string_list(record, "dependsOn")


def _require(payload: dict[str, Any], key: str, expected_type: type) -> Any:
    if not isinstance(payload, dict):
        raise ValueError(f"Expected object containing '{key}'")
    if key not in payload:
        raise ValueError(f"Missing required field '{key}' in decision record")
    value = payload[key]
    if expected_type is int and isinstance(value, bool):
        raise ValueError(f"Field '{key}' must be int")
    if not isinstance(value, expected_type):
        raise ValueError(f"Field '{key}' must be {expected_type.__name__}")
    return value


def _optional(payload: dict[str, Any], key: str, expected_type: type) -> Optional[Any]:
    if payload.get(key) is None:
        return None
    return _require(payload, key, expected_type)


def _string_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"Field '{key}' must be a list of strings")
    return list(value)
