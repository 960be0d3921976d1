"""Error taxonomy for the decision registry.

Responsibilities:
  - Name every caller-visible failure with the identifiers involved.

Invariants:
  - RegistryError subclasses are ordinary, caller-recoverable outcomes.
  - InvariantViolation is a consistency bug and is never caught in-package.
"""

from __future__ import annotations

from typing import Iterable


class RegistryError(ValueError):
    pass


class UnknownVersion(RegistryError):
    def __init__(self, version: str) -> None:
        super().__init__(f"Unknown version: {version}")
        self.version = version


class CycleDetected(RegistryError):
    def __init__(self, source: str, target: str, kind: str) -> None:
        super().__init__(f"Cycle detected adding {kind} edge {source} -> {target}")
        self.source = source
        self.target = target
        self.kind = kind


class DuplicateId(RegistryError):
    def __init__(self, decision_id: str) -> None:
        super().__init__(f"Duplicate decision id: {decision_id}")
        self.decision_id = decision_id


class NotFound(RegistryError):
    def __init__(self, decision_id: str) -> None:
        super().__init__(f"Decision not found: {decision_id}")
        self.decision_id = decision_id


class InvalidTransition(RegistryError):
    def __init__(self, decision_id: str, current: object, target: object) -> None:
        super().__init__(
            f"Invalid transition for {decision_id}: {_label(current)} -> {_label(target)}"
        )
        self.decision_id = decision_id
        self.current = current
        self.target = target


class DependenciesUnresolved(InvalidTransition):
    def __init__(self, decision_id: str, current: object, target: object, pending: Iterable[str]) -> None:
        super().__init__(decision_id, current, target)
        self.pending = sorted(pending)
        self.args = (
            f"Decision {decision_id} cannot move to {_label(target)}; "
            f"unsettled dependencies: {', '.join(self.pending)}",
        )


class UnknownOption(RegistryError):
    def __init__(self, decision_id: str, option_id: str) -> None:
        super().__init__(f"Unknown option {option_id!r} for decision {decision_id}")
        self.decision_id = decision_id
        self.option_id = option_id


class UnresolvedBreakingChange(RegistryError):
    def __init__(self, decision_id: str, prior_version: str, predicate_classes: Iterable[str]) -> None:
        self.predicate_classes = sorted(predicate_classes)
        super().__init__(
            f"Decision {decision_id} breaks constructs valid under {prior_version} "
            f"without a compatibility exception: {', '.join(self.predicate_classes)}"
        )
        self.decision_id = decision_id
        self.prior_version = prior_version


class NoRuleDefined(RegistryError):
    def __init__(self, construct: str, version: str) -> None:
        super().__init__(f"No rule defined for {construct} at version {version}")
        self.construct = construct
        self.version = version


class InvariantViolation(RuntimeError):
    def __init__(self, construct: str, decision_ids: Iterable[str]) -> None:
        self.decision_ids = sorted(decision_ids)
        super().__init__(
            f"Multiple current effective decisions for {construct}: {', '.join(self.decision_ids)}"
        )
        self.construct = construct


def _label(status: object) -> str:
    return str(getattr(status, "value", status))
