"""Compatibility Checker: breaking-change gate for new decisions.

Responsibilities:
  - Compare the rule a candidate implies against the rule in force at a prior version.
  - Split regressions into exempted and unexempted predicate classes.
  - Act as the ResolutionGuard that blocks unexempted breaking changes.

Inputs/Outputs:
  - Inputs: candidate Decision (chosen option and exceptions attached), prior version.
  - Outputs: BreakingReport; UnresolvedBreakingChange from check().

Invariants:
  - Dominance is evaluated over explicit predicate classes only.
  - A predicate class allowed by the old rule and forbidden by the new one is a violation.
"""

from __future__ import annotations

from typing import Optional

from ..domain.enums import RULE_BEARING_STATUSES
from ..domain.errors import UnknownOption, UnresolvedBreakingChange
from ..domain.models import BreakingReport, Decision
from ..versions.lattice import VersionLattice
from .query_engine import QueryEngine, exception_covers


class CompatibilityChecker:
    def __init__(self, lattice: VersionLattice, query: QueryEngine) -> None:
        self._lattice = lattice
        self._query = query

    def check_breaking(
        self,
        candidate: Decision,
        prior_version: str,
        option_id: Optional[str] = None,
    ) -> BreakingReport:
        self._lattice.require(prior_version)
        if option_id is not None:
            option = candidate.option(option_id)
            if option is None:
                raise UnknownOption(candidate.decision_id, option_id)
        else:
            option = candidate.chosen
            if option is None:
                raise ValueError(
                    f"Decision {candidate.decision_id} has no chosen option; pass option_id"
                )

        old_rule = self._query.effective_rule(
            candidate.construct,
            prior_version,
            required=False,
            exclude=(candidate.decision_id,),
        )
        violations = frozenset(c for c in option.forbids if old_rule.allows(c))
        exempted = frozenset(
            exc.predicate
            for exc in candidate.exceptions
            if exc.predicate in violations and exception_covers(self._lattice, exc, prior_version)
        )
        return BreakingReport(
            decision_id=candidate.decision_id,
            prior_version=prior_version,
            prior_decision_id=old_rule.decision_id,
            violations=violations,
            exempted=exempted,
            unexempted=violations - exempted,
        )

    def gate_versions(self, candidate: Decision) -> list[str]:
        """Versions at which an earlier rule for the construct was in force."""
        versions = {
            d.version
            for d in self._query.history(candidate.construct)
            if d.decision_id != candidate.decision_id
            and d.status in RULE_BEARING_STATUSES
            and self._lattice.precedes_or_equal(d.version, candidate.version)
        }
        return [v for v in self._lattice.linear_order() if v in versions]

    def check(self, candidate: Decision) -> None:
        for version in self.gate_versions(candidate):
            report = self.check_breaking(candidate, version)
            if report.blocking:
                raise UnresolvedBreakingChange(candidate.decision_id, version, report.unexempted)
