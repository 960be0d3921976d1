"""DTO definitions for app-level data exchange.

Responsibilities:
  - Define stable, typed structures for app inputs/outputs.
Must not:
  - Implement business logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

QueryMode = Literal["rule", "history", "both"]


@dataclass(frozen=True)
class VersionEntry:
    version: str
    predecessors: tuple[str, ...] = ()


@dataclass(frozen=True)
class RegistrySeed:
    versions: list[VersionEntry]
    decisions: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class RegistryQuery:
    construct: str
    version: Optional[str] = None
    mode: QueryMode = "both"
    require_rule: bool = False

    def validate(self) -> None:
        if not self.construct or not self.construct.strip():
            raise ValueError("construct must be non-empty")
        object.__setattr__(self, "construct", self.construct.strip())

        if self.mode not in ("rule", "history", "both"):
            raise ValueError("mode must be 'rule', 'history' or 'both'")

        if self.mode == "rule" and self.version is None:
            raise ValueError("version must be provided for mode 'rule'")

        if self.version is not None:
            if not self.version.strip():
                raise ValueError("version must be non-empty")
            object.__setattr__(self, "version", self.version.strip())

        if self.require_rule and self.version is None:
            raise ValueError("require_rule needs a version")
