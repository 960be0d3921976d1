"""Resolution guard port.

Responsibilities:
  - Define the contract for checks that run inside DecisionStore.resolve.

Invariants:
  - A guard either returns None (allowed) or raises a RegistryError.
  - Guards must not mutate the store; they see the candidate before commit.
"""

from __future__ import annotations

from typing import Protocol

from ..domain.models import Decision


class ResolutionGuard(Protocol):
    def check(self, candidate: Decision) -> None:
        ...
