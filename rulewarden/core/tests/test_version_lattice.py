"""Tests for the version lattice."""

from __future__ import annotations

import pytest

from rulewarden.core.domain.errors import CycleDetected, UnknownVersion
from rulewarden.core.versions.lattice import VersionLattice


def _diamond() -> VersionLattice:
    lattice = VersionLattice()
    lattice.register("6.0")
    lattice.register("7.0", {"6.0"})
    lattice.register("7.1", {"7.0"})
    lattice.register("7.2", {"6.0"})
    lattice.register("8.0", {"7.1", "7.2"})
    return lattice


def test_precedes_is_transitive_and_strict() -> None:
    lattice = _diamond()
    assert lattice.precedes("6.0", "7.1")
    assert lattice.precedes("6.0", "8.0")
    assert not lattice.precedes("8.0", "6.0")
    assert not lattice.precedes("7.0", "7.0")
    assert lattice.precedes_or_equal("7.0", "7.0")


def test_partial_order_leaves_branches_incomparable() -> None:
    lattice = _diamond()
    assert not lattice.precedes("7.1", "7.2")
    assert not lattice.precedes("7.2", "7.1")
    assert not lattice.precedes_or_equal("7.0", "7.2")
    assert lattice.precedes("7.2", "8.0")


def test_unknown_version_raises() -> None:
    lattice = _diamond()
    with pytest.raises(UnknownVersion):
        lattice.precedes("6.0", "9.9")
    with pytest.raises(UnknownVersion):
        lattice.register("9.0", {"missing"})


def test_register_rejects_cycles() -> None:
    lattice = _diamond()
    with pytest.raises(CycleDetected):
        lattice.register("6.0", {"8.0"})
    with pytest.raises(CycleDetected):
        lattice.register("9.0", {"9.0"})
    # The failed re-registration must not have attached anything.
    assert lattice.predecessors("6.0") == frozenset()


def test_reregistration_adds_predecessors() -> None:
    lattice = VersionLattice()
    lattice.register("6.0")
    lattice.register("7.2")
    assert not lattice.precedes("6.0", "7.2")
    lattice.register("7.2", {"6.0"})
    assert lattice.precedes("6.0", "7.2")


def test_linear_order_respects_precedence_and_registration() -> None:
    lattice = _diamond()
    order = lattice.linear_order()
    assert order == ["6.0", "7.0", "7.1", "7.2", "8.0"]
