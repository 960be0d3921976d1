"""Partially ordered set of language versions.

Responsibilities:
  - Register versions with their immediate predecessors.
  - Answer strict precedence queries and provide a deterministic linear order.

Invariants:
  - The predecessor graph stays acyclic; registration never partially applies.
  - Registration order breaks ties between incomparable versions.
"""

from __future__ import annotations

import threading
from typing import Iterable

from ..domain.errors import CycleDetected, UnknownVersion


class VersionLattice:
    def __init__(self) -> None:
        self._predecessors: dict[str, set[str]] = {}
        self._order: dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, version: str, predecessors: Iterable[str] = ()) -> None:
        if not version or not version.strip():
            raise ValueError("version must be non-empty")
        preds = set(predecessors)
        with self._lock:
            for pred in sorted(preds):
                if pred == version:
                    raise CycleDetected(pred, version, "version")
                if pred not in self._predecessors:
                    raise UnknownVersion(pred)
            if version in self._predecessors:
                # Re-registration may only add predecessors that keep the order acyclic.
                for pred in sorted(preds):
                    if self._reaches(version, pred):
                        raise CycleDetected(pred, version, "version")
                self._predecessors[version].update(preds)
                return
            self._predecessors[version] = preds
            self._order[version] = len(self._order)

    def require(self, version: str) -> None:
        if version not in self._predecessors:
            raise UnknownVersion(version)

    def predecessors(self, version: str) -> frozenset[str]:
        self.require(version)
        return frozenset(self._predecessors[version])

    def versions(self) -> list[str]:
        return sorted(self._order, key=self._order.__getitem__)

    def precedes(self, v1: str, v2: str) -> bool:
        self.require(v1)
        self.require(v2)
        if v1 == v2:
            return False
        return self._reaches(v1, v2)

    def precedes_or_equal(self, v1: str, v2: str) -> bool:
        self.require(v1)
        self.require(v2)
        return v1 == v2 or self._reaches(v1, v2)

    def linear_order(self) -> list[str]:
        """Topological order of all versions, oldest first.

        Ties between versions whose predecessors are all placed are broken by
        registration order, so the result is stable across runs.
        """
        placed: list[str] = []
        placed_set: set[str] = set()
        remaining = self.versions()
        while remaining:
            for version in remaining:
                if self._predecessors[version] <= placed_set:
                    placed.append(version)
                    placed_set.add(version)
                    remaining.remove(version)
                    break
        return placed

    def _reaches(self, ancestor: str, descendant: str) -> bool:
        # Walk predecessor links from the descendant back towards the ancestor.
        stack = [descendant]
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            for pred in self._predecessors.get(current, ()):
                if pred == ancestor:
                    return True
                stack.append(pred)
        return False
