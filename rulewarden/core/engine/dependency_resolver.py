"""Dependency Resolver for decisions that gate one another.

Responsibilities:
  - Hold depends-on edges as an explicit edge list keyed by decision id.
  - Reject edges that would close a cycle.
  - Report readiness and a deterministic resolution order.

Inputs/Outputs:
  - Inputs: a DecisionStore used for id lookups only (back-references, no ownership).
  - Outputs: readiness flags, ordered Decision snapshots.

Invariants:
  - The depends-on graph is acyclic at all times.
  - Order ties are broken by proposal sequence, then id.
"""

from __future__ import annotations

import heapq
import threading
from typing import Iterable

from ..domain.enums import SETTLED_STATUSES
from ..domain.errors import CycleDetected, DependenciesUnresolved, NotFound
from ..domain.models import Decision, DependencyEdge
from ..store.decision_store import DecisionStore


class DependencyResolver:
    def __init__(self, store: DecisionStore) -> None:
        self._store = store
        self._edges: list[DependencyEdge] = []
        self._prerequisites: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def add_edge(self, dependent: str, prerequisite: str) -> DependencyEdge:
        for decision_id in (dependent, prerequisite):
            if not self._store.exists(decision_id):
                raise NotFound(decision_id)
        if dependent == prerequisite:
            raise CycleDetected(dependent, prerequisite, "depends-on")
        with self._lock:
            edge = DependencyEdge(dependent=dependent, prerequisite=prerequisite)
            if prerequisite in self._prerequisites.get(dependent, set()):
                return edge
            if self._depends_transitively(prerequisite, dependent):
                raise CycleDetected(dependent, prerequisite, "depends-on")
            self._edges.append(edge)
            self._prerequisites.setdefault(dependent, set()).add(prerequisite)
            return edge

    def edges(self) -> list[DependencyEdge]:
        with self._lock:
            return list(self._edges)

    def depends_on(self, decision_id: str) -> list[str]:
        with self._lock:
            return sorted(self._prerequisites.get(decision_id, set()))

    def pending(self, decision_id: str) -> list[str]:
        self._store.get(decision_id)
        pending: list[str] = []
        for prerequisite in self.depends_on(decision_id):
            if self._store.get(prerequisite).status not in SETTLED_STATUSES:
                pending.append(prerequisite)
        return pending

    def ready_to_resolve(self, decision_id: str) -> bool:
        return not self.pending(decision_id)

    def check(self, candidate: Decision) -> None:
        pending = self.pending(candidate.decision_id)
        if pending:
            current = self._store.get(candidate.decision_id).status
            raise DependenciesUnresolved(candidate.decision_id, current, candidate.status, pending)

    def resolution_order(
        self,
        decision_ids: Iterable[str],
        extra: Iterable[DependencyEdge] = (),
    ) -> list[Decision]:
        """Topologically order the given decisions, prerequisites first.

        Edges to decisions outside the requested set are ignored. ``extra``
        edges constrain this ordering only and are never stored.
        """
        requested = {decision_id: self._store.get(decision_id) for decision_id in decision_ids}
        with self._lock:
            incoming: dict[str, set[str]] = {
                decision_id: {
                    prereq
                    for prereq in self._prerequisites.get(decision_id, set())
                    if prereq in requested
                }
                for decision_id in requested
            }
        for edge in extra:
            if edge.dependent in requested and edge.prerequisite in requested:
                incoming[edge.dependent].add(edge.prerequisite)
        dependents: dict[str, set[str]] = {decision_id: set() for decision_id in requested}
        for decision_id, prereqs in incoming.items():
            for prereq in prereqs:
                dependents[prereq].add(decision_id)

        heap: list[tuple[int, str]] = []
        for decision_id, prereqs in incoming.items():
            if not prereqs:
                heapq.heappush(heap, _sort_key(requested[decision_id]))

        ordered: list[Decision] = []
        while heap:
            _, decision_id = heapq.heappop(heap)
            ordered.append(requested[decision_id])
            for dependent in sorted(dependents[decision_id]):
                incoming[dependent].discard(decision_id)
                if not incoming[dependent]:
                    heapq.heappush(heap, _sort_key(requested[dependent]))
        if len(ordered) != len(requested):
            blocked = sorted(decision_id for decision_id, prereqs in incoming.items() if prereqs)
            raise CycleDetected(blocked[0], sorted(incoming[blocked[0]])[0], "ordering")
        return ordered

    def _depends_transitively(self, start: str, target: str) -> bool:
        stack = [start]
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current == target:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._prerequisites.get(current, ()))
        return False


def _sort_key(decision: Decision) -> tuple[int, str]:
    return (decision.proposed_seq, decision.decision_id)


__all__ = ["DependencyResolver"]
