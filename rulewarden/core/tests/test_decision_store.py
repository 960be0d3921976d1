"""Tests for decision store lifecycle and supersession."""

from __future__ import annotations

import pytest

from rulewarden.core.domain.enums import DecisionStatus
from rulewarden.core.domain.errors import (
    DuplicateId,
    InvalidTransition,
    InvariantViolation,
    NotFound,
    UnknownOption,
    UnknownVersion,
)
from rulewarden.core.domain.models import CompatibilityException, Decision, Option
from rulewarden.core.store.decision_store import DecisionStore, set_registry_debug
from rulewarden.core.versions.lattice import VersionLattice


def _store() -> DecisionStore:
    lattice = VersionLattice()
    lattice.register("6.0")
    lattice.register("7.0", {"6.0"})
    return DecisionStore(lattice)


def _options() -> list[Option]:
    return [
        Option("keep", "Keep current behavior"),
        Option("error", "Report an error", tags=frozenset({"breaking"})),
    ]


def _accept(store: DecisionStore, decision_id: str, version: str = "6.0", option: str = "keep") -> Decision:
    store.propose(decision_id, "attribute-in-source", _options(), version)
    store.start_debate(decision_id)
    return store.resolve(decision_id, option)


def test_propose_and_get() -> None:
    store = _store()
    decision = store.propose("D1", "attribute-in-source", _options(), "6.0")
    assert decision.status == DecisionStatus.PROPOSED
    assert decision.chosen_option is None
    assert store.get("D1") == decision
    with pytest.raises(NotFound):
        store.get("missing")


def test_propose_duplicate_and_unknown_version() -> None:
    store = _store()
    store.propose("D1", "attribute-in-source", _options(), "6.0")
    with pytest.raises(DuplicateId):
        store.propose("D1", "attribute-in-source", _options(), "6.0")
    with pytest.raises(UnknownVersion):
        store.propose("D2", "attribute-in-source", _options(), "9.0")


def test_proposal_sequence_is_monotonic() -> None:
    store = _store()
    first = store.propose("B", "c", _options(), "6.0")
    second = store.propose("A", "c", _options(), "6.0")
    assert first.proposed_seq < second.proposed_seq
    assert [d.decision_id for d in store.all()] == ["B", "A"]


def test_resolve_requires_debated_status() -> None:
    store = _store()
    store.propose("D1", "attribute-in-source", _options(), "6.0")
    with pytest.raises(InvalidTransition):
        store.resolve("D1", "keep")


def test_resolve_unknown_option() -> None:
    store = _store()
    store.propose("D1", "attribute-in-source", _options(), "6.0")
    store.start_debate("D1")
    with pytest.raises(UnknownOption):
        store.resolve("D1", "nope")
    assert store.get("D1").status == DecisionStatus.DEBATED


def test_resolve_rejects_exception_for_unknown_version() -> None:
    store = _store()
    store.propose("D1", "attribute-in-source", _options(), "6.0")
    store.start_debate("D1")
    with pytest.raises(UnknownVersion):
        store.resolve("D1", "keep", [CompatibilityException("5.0", "anything")])


def test_reject_keeps_options_and_is_terminal() -> None:
    store = _store()
    store.propose("D1", "attribute-in-source", _options(), "6.0")
    store.start_debate("D1")
    rejected = store.reject("D1")
    assert rejected.status == DecisionStatus.REJECTED
    assert len(rejected.options) == 2
    with pytest.raises(InvalidTransition):
        store.start_debate("D1")
    with pytest.raises(InvalidTransition):
        store.reject("D1")


def test_accepting_later_decision_supersedes_prior() -> None:
    store = _store()
    _accept(store, "D1")
    assert store.current_effective("attribute-in-source").decision_id == "D1"

    accepted = _accept(store, "D2", version="7.0", option="error")

    prior = store.get("D1")
    assert prior.status == DecisionStatus.SUPERSEDED
    assert prior.superseded_by == "D2"
    assert accepted.status == DecisionStatus.ACCEPTED
    assert store.current_effective("attribute-in-source").decision_id == "D2"


def test_current_effective_is_unique_after_many_resolves() -> None:
    store = _store()
    for idx in range(5):
        _accept(store, f"D{idx}", version="6.0" if idx % 2 == 0 else "7.0")
        accepted = [
            d for d in store.decisions_for("attribute-in-source") if d.status == DecisionStatus.ACCEPTED
        ]
        assert len(accepted) == 1
    assert store.current_effective("other-construct") is None


def test_restore_detects_invariant_violation() -> None:
    store = _store()
    _accept(store, "D1")
    broken = Decision(
        decision_id="D9",
        construct="attribute-in-source",
        version="7.0",
        options=tuple(_options()),
        status=DecisionStatus.ACCEPTED,
        chosen_option="error",
        proposed_seq=9,
    )
    with pytest.raises(InvariantViolation):
        store.restore(broken)


def test_reopen_keeps_prior_accepted() -> None:
    store = _store()
    _accept(store, "D1")
    reopened = store.propose("D1-revisit", "attribute-in-source", _options(), "7.0", supersedes="D1")
    assert reopened.supersedes == "D1"
    assert store.get("D1").status == DecisionStatus.ACCEPTED
    with pytest.raises(NotFound):
        store.propose("D2", "attribute-in-source", _options(), "7.0", supersedes="missing")


def test_debug_hook_reports_supersession() -> None:
    lines: list[str] = []
    set_registry_debug(lines.append)
    try:
        store = _store()
        _accept(store, "D1")
        _accept(store, "D2", version="7.0")
    finally:
        set_registry_debug(None)
    assert any(line.startswith("SUPERSEDED decision=D1 by=D2") for line in lines)


def test_option_rejects_overlapping_predicates() -> None:
    with pytest.raises(ValueError):
        Option("bad", "contradictory", permits=frozenset({"x"}), forbids=frozenset({"x"}))


def test_propose_keeps_recorded_sequence_and_timestamp() -> None:
    store = _store()
    restored = store.propose(
        "D1", "c", _options(), "6.0", proposed_seq=10, proposed_at="2024-01-01T00:00:00+00:00"
    )
    assert restored.proposed_seq == 10
    assert restored.proposed_at == "2024-01-01T00:00:00+00:00"
    assert store.propose("D2", "c", _options(), "6.0").proposed_seq == 11
