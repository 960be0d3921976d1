"""Port definitions for app-level dependencies.

Responsibilities:
  - Define interface contracts for record persistence.
Must not:
  - Implement logic; interfaces only.
"""

from __future__ import annotations

from typing import Any, Protocol

from .dto import VersionEntry


class RegistryRecordStore(Protocol):
    def save_versions(self, versions: list[VersionEntry]) -> None:
        ...

    def save_records(self, records: list[dict[str, Any]]) -> None:
        ...

    def load_versions(self) -> list[VersionEntry]:
        ...

    def load_records(self) -> list[dict[str, Any]]:
        ...

    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...
