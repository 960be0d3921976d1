"""Allowed status transitions for the decision lifecycle.

Responsibilities:
  - Define legal next statuses per current status.
  - The Decision Store must respect this graph.

Invariants:
  - Must remain stable for auditability; changes require coordinated migration.
  - SUPERSEDED is only entered as a side effect of accepting a later decision.
"""

from __future__ import annotations

from .enums import STATUS_METADATA, DecisionStatus

ALLOWED_TRANSITIONS: dict[DecisionStatus, set[DecisionStatus]] = {
    DecisionStatus.PROPOSED: {DecisionStatus.DEBATED},
    DecisionStatus.DEBATED: {DecisionStatus.ACCEPTED, DecisionStatus.REJECTED},
    DecisionStatus.ACCEPTED: {DecisionStatus.SUPERSEDED},
    DecisionStatus.REJECTED: set(),
    DecisionStatus.SUPERSEDED: set(),
}


def is_allowed(current: DecisionStatus, target: DecisionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


_terminal_with_exits = [
    status.value
    for status, targets in ALLOWED_TRANSITIONS.items()
    if STATUS_METADATA[status]["terminal"] and targets
]
if _terminal_with_exits:
    raise RuntimeError(f"Terminal statuses must not have transitions: {_terminal_with_exits}")
