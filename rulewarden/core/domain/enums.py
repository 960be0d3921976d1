"""Domain enums for the decision lifecycle.

Responsibilities:
  - Define DecisionStatus identifiers persisted in decision records.
  - Provide audit metadata per status.

Invariants:
  - Enum values must remain stable for persistence and audits.
  - STATUS_METADATA must be complete and deterministic.
"""

from __future__ import annotations

from enum import Enum


class DecisionStatus(Enum):
    PROPOSED = "PROPOSED"
    DEBATED = "DEBATED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    SUPERSEDED = "SUPERSEDED"


# Statuses whose chosen option has been in force at some point.
RULE_BEARING_STATUSES = frozenset({DecisionStatus.ACCEPTED, DecisionStatus.SUPERSEDED})

# A prerequisite in one of these statuses no longer gates its dependents.
SETTLED_STATUSES = frozenset(
    {DecisionStatus.ACCEPTED, DecisionStatus.REJECTED, DecisionStatus.SUPERSEDED}
)


STATUS_METADATA: dict[DecisionStatus, dict[str, object]] = {
    DecisionStatus.PROPOSED: {
        "terminal": False,
        "message": "Agenda item recorded; options may still be added by re-proposal.",
    },
    DecisionStatus.DEBATED: {
        "terminal": False,
        "message": "Options are under discussion; prerequisites are settled.",
    },
    DecisionStatus.ACCEPTED: {
        "terminal": False,
        "message": "Chosen option is the current effective rule for its construct.",
    },
    DecisionStatus.REJECTED: {
        "terminal": True,
        "message": "Agenda item closed without adopting any option.",
    },
    DecisionStatus.SUPERSEDED: {
        "terminal": True,
        "message": "A later accepted decision on the same construct replaced this rule.",
    },
}


_missing = [s for s in DecisionStatus if s not in STATUS_METADATA]
if _missing:
    raise RuntimeError(f"Missing STATUS_METADATA for: {[m.value for m in _missing]}")
