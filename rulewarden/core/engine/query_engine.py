"""Query Engine: effective rule per construct and version.

Responsibilities:
  - Order a construct's decisions by version (lattice order, then proposal).
  - Resolve the rule in force at a version, most-specific-version-wins.
  - Narrow a later rule by the compatibility exceptions that cover the version.

Inputs/Outputs:
  - Inputs: DecisionStore snapshots and the VersionLattice, both passed in.
  - Outputs: Rule values; decisions are never mutated here.

Invariants:
  - Read-only; safe to call concurrently with resolve.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..domain.enums import RULE_BEARING_STATUSES, DecisionStatus
from ..domain.errors import NoRuleDefined
from ..domain.models import CompatibilityException, Decision, Rule
from ..store.decision_store import DecisionStore
from ..versions.lattice import VersionLattice


def exception_covers(lattice: VersionLattice, exception: CompatibilityException, version: str) -> bool:
    """An exception for prior version P covers P and every version preceding P."""
    return lattice.precedes_or_equal(version, exception.prior_version)


class QueryEngine:
    def __init__(self, store: DecisionStore, lattice: VersionLattice) -> None:
        self._store = store
        self._lattice = lattice

    def history(self, construct: str) -> list[Decision]:
        order = {version: idx for idx, version in enumerate(self._lattice.linear_order())}
        return sorted(
            self._store.decisions_for(construct),
            key=lambda d: (order[d.version], d.proposed_seq, d.decision_id),
        )

    def effective_rule(
        self,
        construct: str,
        version: str,
        required: bool = True,
        exclude: Iterable[str] = (),
    ) -> Rule:
        self._lattice.require(version)
        excluded = set(exclude)
        newest_first = [d for d in reversed(self.history(construct)) if d.decision_id not in excluded]
        by_id = {d.decision_id: d for d in newest_first}

        narrowed = self._narrowed_rule(newest_first, version)
        if narrowed is not None:
            return narrowed

        for decision in newest_first:
            if not self._lattice.precedes_or_equal(decision.version, version):
                continue
            if decision.status == DecisionStatus.ACCEPTED:
                return self._rule_of(decision)
            if decision.status == DecisionStatus.SUPERSEDED:
                successor_id = decision.superseded_by
                if successor_id is None or successor_id in excluded:
                    return self._rule_of(decision)
                successor = by_id.get(successor_id)
                if successor is None or not self._lattice.precedes_or_equal(successor.version, version):
                    return self._rule_of(decision)

        if required:
            raise NoRuleDefined(construct, version)
        return Rule.unconstrained(construct)

    def _narrowed_rule(self, newest_first: list[Decision], version: str) -> Optional[Rule]:
        # A later rule still governs code written for an older version, minus its carve-outs.
        for decision in newest_first:
            if decision.status not in RULE_BEARING_STATUSES:
                continue
            if not self._lattice.precedes(version, decision.version):
                continue
            exempted = frozenset(
                exc.predicate
                for exc in decision.exceptions
                if exception_covers(self._lattice, exc, version)
            )
            if exempted:
                return self._rule_of(decision, exempted)
        return None

    def _rule_of(self, decision: Decision, exempted: frozenset[str] = frozenset()) -> Rule:
        option = decision.chosen
        if option is None:
            raise RuntimeError(f"Rule-bearing decision {decision.decision_id} has no chosen option")
        return Rule.from_option(decision, option, exempted)
