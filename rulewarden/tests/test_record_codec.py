"""Tests for decision record conversion."""

from __future__ import annotations

import pytest

from rulewarden.app_api.record_codec import RECORD_FIELDS, decision_from_record, decision_to_record
from rulewarden.core.domain.enums import DecisionStatus
from rulewarden.core.domain.models import CompatibilityException, Decision, Option


def _decision() -> Decision:
    return Decision(
        decision_id="D2",
        construct="tuple-name-matching",
        version="7.0",
        options=(
            Option(
                "match-all",
                "All names must match",
                tags=frozenset({"breaking"}),
                permits=frozenset({"all-names-matched"}),
                forbids=frozenset({"zero-names-declared", "partial-names-declared"}),
            ),
            Option("ignore", "Ignore names"),
        ),
        status=DecisionStatus.ACCEPTED,
        chosen_option="match-all",
        exceptions=(CompatibilityException("6.0", "zero-names-declared"),),
        supersedes="D1",
        proposed_seq=2,
        proposed_at="2026-10-19T00:00:00+00:00",
    )


def test_record_carries_documented_fields() -> None:
    record = decision_to_record(_decision(), depends_on=["D0"])
    for name in RECORD_FIELDS:
        assert name in record
    assert record["status"] == "ACCEPTED"
    assert record["dependsOn"] == ["D0"]
    assert record["options"][0]["forbids"] == ["partial-names-declared", "zero-names-declared"]


def test_record_reconstructs_equal_decision() -> None:
    original = _decision()
    rebuilt, depends_on = decision_from_record(decision_to_record(original, depends_on=["D0"]))
    assert rebuilt == original
    assert depends_on == ["D0"]


def test_record_rejects_unknown_chosen_option() -> None:
    record = decision_to_record(_decision())
    record["chosenOption"] = "missing"
    with pytest.raises(ValueError):
        decision_from_record(record)


def test_record_rejects_bad_status_and_missing_fields() -> None:
    record = decision_to_record(_decision())
    record["status"] = "MAYBE"
    with pytest.raises(ValueError):
        decision_from_record(record)
    record = decision_to_record(_decision())
    del record["construct"]
    with pytest.raises(ValueError):
        decision_from_record(record)
