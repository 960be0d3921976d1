"""Domain models for recorded language-design decisions.

Responsibilities:
  - Define immutable data carriers for options, exceptions, decisions and rules.

Inputs/Outputs:
  - Decision is owned by the Decision Store and persisted by infra layers.
  - Rule is produced by the Query Engine for callers.

Invariants:
  - Models are frozen; the store replaces a Decision instead of mutating it.
  - An Option never both permits and forbids the same predicate class.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .enums import DecisionStatus


@dataclass(frozen=True)
class Option:
    option_id: str
    description: str
    tags: frozenset[str] = frozenset()
    permits: frozenset[str] = frozenset()
    forbids: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.option_id or not self.option_id.strip():
            raise ValueError("option_id must be non-empty")
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "permits", frozenset(self.permits))
        object.__setattr__(self, "forbids", frozenset(self.forbids))
        overlap = self.permits & self.forbids
        if overlap:
            raise ValueError(
                f"Option {self.option_id} both permits and forbids: {sorted(overlap)}"
            )


@dataclass(frozen=True)
class CompatibilityException:
    prior_version: str
    predicate: str


@dataclass(frozen=True)
class Decision:
    decision_id: str
    construct: str
    version: str
    options: tuple[Option, ...]
    status: DecisionStatus = DecisionStatus.PROPOSED
    chosen_option: Optional[str] = None
    exceptions: tuple[CompatibilityException, ...] = ()
    supersedes: Optional[str] = None
    superseded_by: Optional[str] = None
    proposed_seq: int = 0
    proposed_at: Optional[str] = None

    def option(self, option_id: str) -> Optional[Option]:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None

    @property
    def chosen(self) -> Optional[Option]:
        if self.chosen_option is None:
            return None
        return self.option(self.chosen_option)


@dataclass(frozen=True)
class DependencyEdge:
    dependent: str
    prerequisite: str


@dataclass(frozen=True)
class Rule:
    construct: str
    decision_id: Optional[str]
    version: Optional[str]
    option_id: Optional[str]
    permits: frozenset[str] = frozenset()
    forbids: frozenset[str] = frozenset()
    exempted: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def unconstrained(cls, construct: str) -> "Rule":
        return cls(construct=construct, decision_id=None, version=None, option_id=None)

    @classmethod
    def from_option(cls, decision: Decision, option: Option, exempted: frozenset[str] = frozenset()) -> "Rule":
        return cls(
            construct=decision.construct,
            decision_id=decision.decision_id,
            version=decision.version,
            option_id=option.option_id,
            permits=option.permits,
            forbids=option.forbids,
            exempted=frozenset(exempted),
        )

    @property
    def is_unconstrained(self) -> bool:
        return self.decision_id is None

    @property
    def effective_forbids(self) -> frozenset[str]:
        return self.forbids - self.exempted

    def allows(self, predicate_class: str) -> bool:
        return predicate_class not in self.effective_forbids


@dataclass(frozen=True)
class BreakingReport:
    decision_id: str
    prior_version: str
    prior_decision_id: Optional[str]
    violations: frozenset[str]
    exempted: frozenset[str]
    unexempted: frozenset[str]

    @property
    def breaking(self) -> bool:
        return bool(self.violations)

    @property
    def blocking(self) -> bool:
        return bool(self.unexempted)
