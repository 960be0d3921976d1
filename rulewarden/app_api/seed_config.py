from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .dto import RegistrySeed, VersionEntry


def _require(payload: dict[str, Any], key: str, expected_type: type) -> Any:
    if key not in payload:
        raise ValueError(f"Missing required field '{key}' in registry seed")
    value = payload[key]
    if not isinstance(value, expected_type):
        raise ValueError(f"Field '{key}' must be {expected_type.__name__}")
    return value


def parse_registry_seed(payload: Any) -> RegistrySeed:
    if not isinstance(payload, dict):
        raise ValueError("Registry seed must be a JSON object")

    versions: list[VersionEntry] = []
    seen: set[str] = set()
    for item in _require(payload, "versions", list):
        if not isinstance(item, dict):
            raise ValueError("Each version entry must be a JSON object")
        version = _require(item, "id", str).strip()
        if not version:
            raise ValueError("Version id must be non-empty")
        if version in seen:
            raise ValueError(f"Duplicate version id in seed: {version}")
        seen.add(version)
        predecessors = item.get("predecessors", [])
        if not isinstance(predecessors, list) or not all(isinstance(p, str) for p in predecessors):
            raise ValueError(f"Field 'predecessors' of version {version} must be a list of strings")
        versions.append(VersionEntry(version=version, predecessors=tuple(predecessors)))

    decisions = payload.get("decisions", [])
    if not isinstance(decisions, list):
        raise ValueError("Field 'decisions' must be list")
    for item in decisions:
        if not isinstance(item, dict):
            raise ValueError("Each decision record must be a JSON object")

    return RegistrySeed(versions=versions, decisions=decisions)


def load_registry_seed(path: Path) -> RegistrySeed:
    if not path.exists():
        raise ValueError(f"Registry seed not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    return parse_registry_seed(payload)
