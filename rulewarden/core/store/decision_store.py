"""Decision Store: exclusive owner of decision records.

Responsibilities:
  - Create decisions and drive them through the status transition graph.
  - Run resolution guards and commit acceptance together with supersession.
  - Answer current-effective lookups per construct.

Inputs/Outputs:
  - Inputs: a VersionLattice passed in explicitly; guards registered by the caller.
  - Outputs: frozen Decision snapshots; callers never receive a mutable record.

Invariants:
  - At most one ACCEPTED decision per construct.
  - resolve on one construct is serialized; the prior effective decision turns
    SUPERSEDED in the same commit in which the new one turns ACCEPTED.
"""

from __future__ import annotations

import datetime
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence

from ..domain.enums import DecisionStatus
from ..domain.errors import (
    DuplicateId,
    InvalidTransition,
    InvariantViolation,
    NotFound,
    RegistryError,
    UnknownOption,
)
from ..domain.models import CompatibilityException, Decision, Option
from ..domain.transition_graph import is_allowed
from ..versions.lattice import VersionLattice
from .guards import ResolutionGuard

_DEBUG_FN: Callable[[str], None] | None = None


def set_registry_debug(fn: Callable[[str], None] | None) -> None:
    global _DEBUG_FN
    _DEBUG_FN = fn


def _debug(msg: str) -> None:
    if _DEBUG_FN is not None:
        _DEBUG_FN(msg)


class DecisionStore:
    def __init__(self, lattice: VersionLattice) -> None:
        self._lattice = lattice
        self._decisions: dict[str, Decision] = {}
        self._guards: list[ResolutionGuard] = []
        self._debate_guards: list[ResolutionGuard] = []
        self._next_seq = 1
        self._lock = threading.RLock()
        self._construct_locks: dict[str, threading.Lock] = {}

    @property
    def lattice(self) -> VersionLattice:
        return self._lattice

    def add_guard(self, guard: ResolutionGuard, on_debate: bool = False) -> None:
        self._guards.append(guard)
        if on_debate:
            self._debate_guards.append(guard)

    def propose(
        self,
        decision_id: str,
        construct: str,
        options: Sequence[Option],
        version: str,
        supersedes: Optional[str] = None,
        proposed_seq: Optional[int] = None,
        proposed_at: Optional[str] = None,
    ) -> Decision:
        if not decision_id or not decision_id.strip():
            raise ValueError("decision_id must be non-empty")
        if not construct or not construct.strip():
            raise ValueError("construct must be non-empty")
        self._lattice.require(version)
        option_ids = [option.option_id for option in options]
        if len(set(option_ids)) != len(option_ids):
            raise ValueError(f"Duplicate option ids in proposal {decision_id}")

        with self._lock:
            if decision_id in self._decisions:
                raise DuplicateId(decision_id)
            if supersedes is not None and supersedes not in self._decisions:
                raise NotFound(supersedes)
            decision = Decision(
                decision_id=decision_id,
                construct=construct,
                version=version,
                options=tuple(options),
                status=DecisionStatus.PROPOSED,
                supersedes=supersedes,
                proposed_seq=self._next_seq if proposed_seq is None else proposed_seq,
                proposed_at=proposed_at or datetime.datetime.now(datetime.timezone.utc).isoformat(),
            )
            self._next_seq = max(self._next_seq, decision.proposed_seq + 1)
            self._decisions[decision_id] = decision
            return decision

    def get(self, decision_id: str) -> Decision:
        with self._lock:
            decision = self._decisions.get(decision_id)
        if decision is None:
            raise NotFound(decision_id)
        return decision

    def exists(self, decision_id: str) -> bool:
        with self._lock:
            return decision_id in self._decisions

    def all(self) -> list[Decision]:
        with self._lock:
            decisions = list(self._decisions.values())
        return sorted(decisions, key=lambda d: (d.proposed_seq, d.decision_id))

    def decisions_for(self, construct: str) -> list[Decision]:
        return [d for d in self.all() if d.construct == construct]

    def constructs(self) -> list[str]:
        return sorted({d.construct for d in self.all()})

    def start_debate(self, decision_id: str) -> Decision:
        with self._lock:
            decision = self.get(decision_id)
            self._require_transition(decision, DecisionStatus.DEBATED)
            candidate = replace(decision, status=DecisionStatus.DEBATED)
            for guard in self._debate_guards:
                guard.check(candidate)
            self._decisions[decision_id] = candidate
            return candidate

    def reject(self, decision_id: str) -> Decision:
        with self._lock:
            decision = self.get(decision_id)
            self._require_transition(decision, DecisionStatus.REJECTED)
            rejected = replace(decision, status=DecisionStatus.REJECTED)
            self._decisions[decision_id] = rejected
            return rejected

    def resolve(
        self,
        decision_id: str,
        chosen_option: str,
        exceptions: Iterable[CompatibilityException] = (),
    ) -> Decision:
        decision = self.get(decision_id)
        with self._construct_lock(decision.construct):
            decision = self.get(decision_id)
            self._require_transition(decision, DecisionStatus.ACCEPTED)
            if decision.option(chosen_option) is None:
                raise UnknownOption(decision_id, chosen_option)
            attached = tuple(exceptions)
            for exception in attached:
                self._lattice.require(exception.prior_version)

            candidate = replace(
                decision,
                status=DecisionStatus.ACCEPTED,
                chosen_option=chosen_option,
                exceptions=attached,
            )
            for guard in self._guards:
                try:
                    guard.check(candidate)
                except RegistryError as exc:
                    _debug(f"GUARD_REJECTED decision={decision_id} error={exc}")
                    raise

            with self._lock:
                # reject() does not take the construct lock.
                self._require_transition(self.get(decision_id), DecisionStatus.ACCEPTED)
                prior = self.current_effective(decision.construct)
                if prior is not None:
                    self._decisions[prior.decision_id] = replace(
                        prior,
                        status=DecisionStatus.SUPERSEDED,
                        superseded_by=decision_id,
                    )
                    _debug(
                        f"SUPERSEDED decision={prior.decision_id} by={decision_id} "
                        f"construct={decision.construct}"
                    )
                self._decisions[decision_id] = candidate
            return candidate

    def current_effective(self, construct: str) -> Optional[Decision]:
        with self._lock:
            accepted = [
                d
                for d in self._decisions.values()
                if d.construct == construct and d.status == DecisionStatus.ACCEPTED
            ]
        if len(accepted) > 1:
            raise InvariantViolation(construct, [d.decision_id for d in accepted])
        if not accepted:
            return None
        return accepted[0]

    def restore(self, decision: Decision) -> None:
        """Insert a previously persisted decision as-is.

        Bypasses the transition graph; only identity and uniqueness are checked.
        """
        self._lattice.require(decision.version)
        with self._lock:
            if decision.decision_id in self._decisions:
                raise DuplicateId(decision.decision_id)
            self._decisions[decision.decision_id] = decision
            self._next_seq = max(self._next_seq, decision.proposed_seq + 1)
            self.current_effective(decision.construct)

    def _require_transition(self, decision: Decision, target: DecisionStatus) -> None:
        if not is_allowed(decision.status, target):
            raise InvalidTransition(decision.decision_id, decision.status, target)

    def _construct_lock(self, construct: str) -> threading.Lock:
        with self._lock:
            lock = self._construct_locks.get(construct)
            if lock is None:
                lock = threading.Lock()
                self._construct_locks[construct] = lock
            return lock
