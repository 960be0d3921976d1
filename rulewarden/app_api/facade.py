from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence

from rulewarden.core.domain.enums import RULE_BEARING_STATUSES, DecisionStatus
from rulewarden.core.domain.errors import CycleDetected
from rulewarden.core.domain.models import (
    BreakingReport,
    CompatibilityException,
    Decision,
    DependencyEdge,
    Option,
    Rule,
)
from rulewarden.core.engine.compatibility_checker import CompatibilityChecker
from rulewarden.core.engine.dependency_resolver import DependencyResolver
from rulewarden.core.engine.query_engine import QueryEngine
from rulewarden.core.store.decision_store import DecisionStore
from rulewarden.core.versions.lattice import VersionLattice
from .dto import RegistrySeed, VersionEntry
from .ports import RegistryRecordStore
from .record_codec import decision_from_record, decision_to_record


class DecisionRegistry:
    def __init__(self, lattice: Optional[VersionLattice] = None) -> None:
        self.lattice = lattice if lattice is not None else VersionLattice()
        self.store = DecisionStore(self.lattice)
        self.resolver = DependencyResolver(self.store)
        self.query = QueryEngine(self.store, self.lattice)
        self.checker = CompatibilityChecker(self.lattice, self.query)
        self.store.add_guard(self.resolver, on_debate=True)
        self.store.add_guard(self.checker)

    def register_version(self, version: str, predecessors: Iterable[str] = ()) -> None:
        self.lattice.register(version, predecessors)

    def propose(
        self,
        decision_id: str,
        construct: str,
        options: Sequence[Option],
        version: str,
        depends_on: Iterable[str] = (),
        supersedes: Optional[str] = None,
    ) -> Decision:
        prerequisites = list(depends_on)
        for prerequisite in prerequisites:
            self.store.get(prerequisite)
        decision = self.store.propose(decision_id, construct, options, version, supersedes=supersedes)
        for prerequisite in prerequisites:
            self.resolver.add_edge(decision_id, prerequisite)
        return decision

    def start_debate(self, decision_id: str) -> Decision:
        return self.store.start_debate(decision_id)

    def reject(self, decision_id: str) -> Decision:
        return self.store.reject(decision_id)

    def resolve(
        self,
        decision_id: str,
        chosen_option: str,
        exceptions: Iterable[CompatibilityException] = (),
    ) -> Decision:
        return self.store.resolve(decision_id, chosen_option, exceptions)

    def get(self, decision_id: str) -> Decision:
        return self.store.get(decision_id)

    def current_effective(self, construct: str) -> Optional[Decision]:
        return self.store.current_effective(construct)

    def add_dependency(self, dependent: str, prerequisite: str) -> DependencyEdge:
        return self.resolver.add_edge(dependent, prerequisite)

    def ready_to_resolve(self, decision_id: str) -> bool:
        return self.resolver.ready_to_resolve(decision_id)

    def resolution_order(self, decision_ids: Iterable[str]) -> list[Decision]:
        return self.resolver.resolution_order(decision_ids)

    def check_breaking(
        self,
        decision_id: str,
        prior_version: str,
        option_id: Optional[str] = None,
        exceptions: Optional[Iterable[CompatibilityException]] = None,
    ) -> BreakingReport:
        candidate = self.store.get(decision_id)
        if exceptions is not None:
            candidate = replace(candidate, exceptions=tuple(exceptions))
        return self.checker.check_breaking(candidate, prior_version, option_id=option_id)

    def effective_rule(self, construct: str, version: str, required: bool = True) -> Rule:
        return self.query.effective_rule(construct, version, required=required)

    def history(self, construct: str) -> list[Decision]:
        return self.query.history(construct)

    def version_entries(self) -> list[VersionEntry]:
        return [
            VersionEntry(version=v, predecessors=tuple(sorted(self.lattice.predecessors(v))))
            for v in self.lattice.versions()
        ]

    def records(self) -> list[dict[str, Any]]:
        return [
            decision_to_record(decision, self.resolver.depends_on(decision.decision_id))
            for decision in self.store.all()
        ]

    def save(self, record_store: RegistryRecordStore) -> None:
        record_store.begin()
        try:
            record_store.save_versions(self.version_entries())
            record_store.save_records(self.records())
            record_store.commit()
        except Exception:
            record_store.rollback()
            raise

    @classmethod
    def load(cls, record_store: RegistryRecordStore) -> "DecisionRegistry":
        registry = cls()
        entries = record_store.load_versions()
        # Predecessors may have been attached after registration, so link in a second pass.
        for entry in entries:
            registry.register_version(entry.version)
        for entry in entries:
            registry.register_version(entry.version, entry.predecessors)
        edges: list[tuple[str, str]] = []
        for record in record_store.load_records():
            decision, depends_on = decision_from_record(record)
            registry.store.restore(decision)
            edges.extend((decision.decision_id, prerequisite) for prerequisite in depends_on)
        for dependent, prerequisite in edges:
            registry.resolver.add_edge(dependent, prerequisite)
        return registry

    @classmethod
    def from_seed(cls, seed: RegistrySeed) -> "DecisionRegistry":
        """Replay seed records through the status machine and every guard.

        Recorded proposedSeq/proposedAt values are kept. Acceptance follows the
        supersededBy chain, so records exported by records() replay to the
        same registry.
        """
        registry = cls()
        for entry in seed.versions:
            registry.register_version(entry.version, entry.predecessors)

        parsed = [decision_from_record(record) for record in seed.decisions]
        for decision in _proposal_order([decision for decision, _ in parsed]):
            registry.store.propose(
                decision.decision_id,
                decision.construct,
                decision.options,
                decision.version,
                supersedes=decision.supersedes,
                proposed_seq=decision.proposed_seq or None,
                proposed_at=decision.proposed_at,
            )
        for decision, depends_on in parsed:
            for prerequisite in depends_on:
                registry.resolver.add_edge(decision.decision_id, prerequisite)

        targets = {decision.decision_id: decision for decision, _ in parsed}
        for proposed in registry.resolver.resolution_order(targets, _supersession_edges(targets)):
            target = targets[proposed.decision_id]
            if target.status == DecisionStatus.PROPOSED:
                continue
            registry.start_debate(target.decision_id)
            if target.status == DecisionStatus.REJECTED:
                registry.reject(target.decision_id)
            elif target.status in RULE_BEARING_STATUSES:
                registry.resolve(target.decision_id, target.chosen_option, target.exceptions)

        for decision_id, target in targets.items():
            replayed = registry.get(decision_id)
            if replayed.status != target.status:
                raise ValueError(
                    f"Seed decision {decision_id} replayed as {replayed.status.value}, "
                    f"record says {target.status.value}"
                )
            if target.superseded_by is not None and replayed.superseded_by != target.superseded_by:
                raise ValueError(
                    f"Seed decision {decision_id} superseded by {replayed.superseded_by}, "
                    f"record says {target.superseded_by}"
                )
        return registry


def _proposal_order(decisions: list[Decision]) -> list[Decision]:
    """Recorded sequence, then list position; a reopening follows the decision it names."""
    pending = [d for _, d in sorted(enumerate(decisions), key=lambda item: (item[1].proposed_seq, item[0]))]
    known = {d.decision_id for d in decisions}
    placed: set[str] = set()
    ordered: list[Decision] = []
    while pending:
        for idx, decision in enumerate(pending):
            if decision.supersedes is None or decision.supersedes in placed or decision.supersedes not in known:
                break
        else:
            raise CycleDetected(pending[0].decision_id, pending[0].supersedes or "", "supersedes")
        ordered.append(pending.pop(idx))
        placed.add(decision.decision_id)
    return ordered


def _supersession_edges(targets: dict[str, Decision]) -> list[DependencyEdge]:
    # A superseded decision must be accepted before whatever replaced it.
    accepted = {t.construct: t.decision_id for t in targets.values() if t.status == DecisionStatus.ACCEPTED}
    edges: list[DependencyEdge] = []
    for target in targets.values():
        if target.status != DecisionStatus.SUPERSEDED:
            continue
        successor = target.superseded_by or accepted.get(target.construct)
        if successor is not None and successor != target.decision_id:
            edges.append(DependencyEdge(dependent=successor, prerequisite=target.decision_id))
    return edges
