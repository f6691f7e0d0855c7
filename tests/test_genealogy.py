"""Tests for Genealogy — reads, create, connect, remove, and rollback."""

from __future__ import annotations

import copy
import pickle
from collections.abc import Callable
from typing import Any

import pytest

from lineagectl import (
    AlreadyExists,
    CycleDetected,
    EmptyParents,
    Genealogy,
    NotFound,
    RemoveStemForbidden,
    Virus,
)

Check = Callable[[Genealogy[Any, Any]], None]
Shape = Callable[[Genealogy[Any, Any]], dict[Any, Any]]


class TestReads:
    def test_new_genealogy_has_only_stem(self, genealogy: Genealogy[str, Any]) -> None:
        assert genealogy.get_stem_id() == "S"
        assert genealogy.stem_id == "S"
        assert genealogy.exists("S")
        assert not genealogy.exists("A")
        assert len(genealogy) == 1
        assert genealogy.get_parents("S") == []
        assert genealogy.get_children("S") == []

    def test_lookup_materializes_payload(self, diamond: Genealogy[str, Any]) -> None:
        value = diamond.lookup("C")
        assert isinstance(value, Virus)
        assert value.get_id() == "C"
        assert diamond["C"] is value

    def test_lookup_missing_raises(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(NotFound):
            genealogy.lookup("nope")
        with pytest.raises(LookupError):
            genealogy["nope"]

    def test_get_parents_missing_raises(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(NotFound):
            genealogy.get_parents("nope")

    def test_get_parents_returns_copy(self, diamond: Genealogy[str, Any]) -> None:
        parents = diamond.get_parents("C")
        parents.append("Z")
        assert diamond.get_parents("C") == ["A", "B"]

    def test_iteration_is_ascending(self, diamond: Genealogy[str, Any]) -> None:
        assert list(diamond) == ["A", "B", "C", "S"]
        assert "C" in diamond
        assert "Z" not in diamond

    def test_custom_factory(self) -> None:
        class Strain:
            def __init__(self, strain_id: int) -> None:
                self.strain_id = strain_id

            def get_id(self) -> int:
                return self.strain_id

        g: Genealogy[int, Strain] = Genealogy(0, Strain)
        g.create(1, 0)
        assert g.lookup(1).get_id() == 1


class TestCreate:
    def test_single_parent(self, genealogy: Genealogy[str, Any], check: Check) -> None:
        genealogy.create("A", "S")
        assert genealogy.exists("A")
        assert genealogy.get_parents("A") == ["S"]
        assert genealogy.get_children("S") == ["A"]
        check(genealogy)

    def test_multiple_parents_sorted(self, diamond: Genealogy[str, Any], check: Check) -> None:
        assert diamond.get_parents("C") == ["A", "B"]
        assert diamond.get_children("S") == ["A", "B"]
        assert diamond.get_children("A") == ["C"]
        assert diamond.get_children("B") == ["C"]
        check(diamond)

    def test_parents_given_out_of_order(self, genealogy: Genealogy[str, Any]) -> None:
        genealogy.create("B", "S")
        genealogy.create("A", "S")
        genealogy.create_many("C", ["B", "S", "A"])
        assert genealogy.get_parents("C") == ["A", "B", "S"]

    def test_duplicate_parents_collapse(self, genealogy: Genealogy[str, Any]) -> None:
        genealogy.create("A", "S")
        genealogy.create_many("B", ["A", "A", "S"])
        assert genealogy.get_parents("B") == ["A", "S"]
        assert genealogy.get_children("A") == ["B"]

    def test_existing_id_raises_and_changes_nothing(
        self, genealogy: Genealogy[str, Any], shape: Shape
    ) -> None:
        genealogy.create("X", "S")
        genealogy.create("Y", "S")
        before = shape(genealogy)
        with pytest.raises(AlreadyExists):
            genealogy.create("X", "Y")
        assert shape(genealogy) == before
        assert genealogy.get_parents("X") == ["S"]

    def test_existing_id_checked_before_parents(self, genealogy: Genealogy[str, Any]) -> None:
        genealogy.create("X", "S")
        with pytest.raises(AlreadyExists):
            genealogy.create("X", "missing")

    def test_stem_id_already_exists(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(AlreadyExists):
            genealogy.create("S", "S")

    def test_missing_parent_inserts_nothing(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(NotFound):
            genealogy.create("A", "missing")
        assert not genealogy.exists("A")

    def test_any_missing_parent_inserts_nothing(
        self, genealogy: Genealogy[str, Any], shape: Shape
    ) -> None:
        genealogy.create("A", "S")
        before = shape(genealogy)
        with pytest.raises(NotFound):
            genealogy.create_many("B", ["A", "missing", "S"])
        assert not genealogy.exists("B")
        assert shape(genealogy) == before

    def test_empty_parent_list_rejected(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(EmptyParents):
            genealogy.create("A", [])
        with pytest.raises(ValueError):
            genealogy.create_many("A", iter(()))
        assert not genealogy.exists("A")

    def test_list_overload_dispatches(self, genealogy: Genealogy[str, Any]) -> None:
        genealogy.create("A", ["S"])
        assert genealogy.get_parents("A") == ["S"]

    def test_tuple_identifiers_are_single_parents(self) -> None:
        g: Genealogy[tuple[int, int], Any] = Genealogy((0, 0))
        g.create((1, 0), (0, 0))
        assert g.get_parents((1, 0)) == [(0, 0)]


class TestConnect:
    def test_adds_both_sides(self, genealogy: Genealogy[str, Any], check: Check) -> None:
        genealogy.create("A", "S")
        genealogy.create("B", "S")
        genealogy.connect("B", "A")
        assert genealogy.get_parents("B") == ["A", "S"]
        assert genealogy.get_children("A") == ["B"]
        check(genealogy)

    def test_idempotent(self, genealogy: Genealogy[str, Any], shape: Shape) -> None:
        genealogy.create("A", "S")
        genealogy.create("B", "S")
        genealogy.connect("B", "A")
        once = shape(genealogy)
        genealogy.connect("B", "A")
        assert shape(genealogy) == once

    def test_existing_link_is_noop(self, genealogy: Genealogy[str, Any], shape: Shape) -> None:
        genealogy.create("B", "S")
        before = shape(genealogy)
        genealogy.connect("B", "S")
        assert shape(genealogy) == before

    @pytest.mark.parametrize(("child", "parent"), [("missing", "S"), ("A", "missing")])
    def test_missing_raises(
        self, genealogy: Genealogy[str, Any], shape: Shape, child: str, parent: str
    ) -> None:
        genealogy.create("A", "S")
        before = shape(genealogy)
        with pytest.raises(NotFound):
            genealogy.connect(child, parent)
        assert shape(genealogy) == before

    def test_cycle_rejected(self, genealogy: Genealogy[str, Any], shape: Shape) -> None:
        genealogy.create("A", "S")
        genealogy.create("B", "A")
        genealogy.create("C", "B")
        before = shape(genealogy)
        with pytest.raises(CycleDetected):
            genealogy.connect("A", "C")
        with pytest.raises(CycleDetected):
            genealogy.connect("A", "A")
        with pytest.raises(CycleDetected):
            genealogy.connect("S", "A")
        assert shape(genealogy) == before

    def test_permissive_allows_cycle(self, check: Check) -> None:
        g: Genealogy[str, Any] = Genealogy("S", enforce_acyclic=False)
        g.create("A", "S")
        g.create("B", "A")
        g.connect("A", "B")
        assert g.get_parents("A") == ["B", "S"]
        assert g.get_children("B") == ["A"]
        check(g)

    def test_sibling_link_is_not_a_cycle(self, diamond: Genealogy[str, Any]) -> None:
        diamond.connect("B", "A")
        assert diamond.get_parents("B") == ["A", "S"]


class TestRemove:
    def test_stem_forbidden(self, diamond: Genealogy[str, Any], shape: Shape) -> None:
        before = shape(diamond)
        with pytest.raises(RemoveStemForbidden):
            diamond.remove("S")
        assert shape(diamond) == before

    def test_missing_raises(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(NotFound):
            genealogy.remove("missing")

    def test_child_with_other_parent_survives(
        self, diamond: Genealogy[str, Any], check: Check
    ) -> None:
        removed = diamond.remove("A")
        assert removed == ["A"]
        assert not diamond.exists("A")
        assert diamond.get_parents("C") == ["B"]
        assert diamond.get_parents("B") == ["S"]
        assert diamond.get_children("B") == ["C"]
        assert diamond.get_children("S") == ["B"]
        check(diamond)

    def test_sole_parent_cascades(self, genealogy: Genealogy[str, Any], check: Check) -> None:
        genealogy.create("A", "S")
        genealogy.create("B", "A")
        assert genealogy.remove("A") == ["A", "B"]
        assert not genealogy.exists("A")
        assert not genealogy.exists("B")
        check(genealogy)

    def test_cascade_through_shared_descendant(
        self, genealogy: Genealogy[str, Any], check: Check
    ) -> None:
        genealogy.create("T", "S")
        genealogy.create("A", "T")
        genealogy.create("B", "T")
        genealogy.create("C", ["A", "B"])
        genealogy.create("D", ["C", "S"])
        removed = genealogy.remove("T")
        assert sorted(removed) == ["A", "B", "C", "T"]
        assert removed[0] == "T"
        assert genealogy.get_parents("D") == ["S"]
        assert list(genealogy) == ["D", "S"]
        check(genealogy)

    def test_removed_id_leaves_no_trace(self, diamond: Genealogy[str, Any]) -> None:
        diamond.remove("B")
        for record in diamond.records():
            assert "B" not in record.parents
            assert "B" not in record.children

    def test_id_can_be_reused_after_removal(self, diamond: Genealogy[str, Any]) -> None:
        diamond.remove("A")
        diamond.create("A", "C")
        assert diamond.get_parents("A") == ["C"]

    def test_deep_chain_has_no_recursion_limit(self, check: Check) -> None:
        g: Genealogy[int, Any] = Genealogy(0)
        depth = 3000
        for node_id in range(1, depth + 1):
            g.create(node_id, node_id - 1)
        removed = g.remove(1)
        assert len(removed) == depth
        assert list(g) == [0]
        check(g)

    def test_permissive_cycle_removed_together(self, check: Check) -> None:
        g: Genealogy[str, Any] = Genealogy("S", enforce_acyclic=False)
        g.create("A", "S")
        g.create("B", "A")
        g.connect("A", "B")
        assert sorted(g.remove("A")) == ["A", "B"]
        assert list(g) == ["S"]
        check(g)

    def test_permissive_stem_parent_never_cascades_stem(self) -> None:
        g: Genealogy[str, Any] = Genealogy("S", enforce_acyclic=False)
        g.create("A", "S")
        g.connect("S", "A")
        assert g.remove("A") == ["A"]
        assert g.exists("S")
        assert g.get_parents("S") == []
        assert g.get_children("S") == []

    def test_self_loop_removed(self) -> None:
        g: Genealogy[str, Any] = Genealogy("S", enforce_acyclic=False)
        g.create("A", "S")
        g.connect("A", "A")
        assert g.get_parents("A") == ["A", "S"]
        assert g.remove("A") == ["A"]
        assert g.get_children("S") == []


class TestRollback:
    """A comparison that raises mid-operation leaves everything unchanged."""

    def test_create_rolls_back(
        self, flaky: Callable[[str], Any], switch: Any, shape: Shape
    ) -> None:
        g: Genealogy[Any, Any] = Genealogy(flaky("S"))
        g.create(flaky("A"), flaky("S"))
        before = shape(g)

        switch.armed = True
        with pytest.raises(RuntimeError, match="comparison failed"):
            g.create(flaky("B"), flaky("S"))
        switch.armed = False

        assert not g.exists(flaky("B"))
        assert shape(g) == before

    def test_create_many_rolls_back(
        self, flaky: Callable[[str], Any], switch: Any, shape: Shape
    ) -> None:
        g: Genealogy[Any, Any] = Genealogy(flaky("S"))
        g.create(flaky("A"), flaky("S"))
        before = shape(g)

        switch.armed = True
        with pytest.raises(RuntimeError):
            g.create_many(flaky("B"), [flaky("S"), flaky("A")])
        switch.armed = False

        assert not g.exists(flaky("B"))
        assert shape(g) == before

    def test_connect_rolls_back(
        self, flaky: Callable[[str], Any], switch: Any, shape: Shape
    ) -> None:
        g: Genealogy[Any, Any] = Genealogy(flaky("S"))
        g.create(flaky("A"), flaky("S"))
        g.create(flaky("B"), flaky("S"))
        before = shape(g)

        switch.armed = True
        with pytest.raises(RuntimeError):
            g.connect(flaky("B"), flaky("A"))
        switch.armed = False

        assert shape(g) == before

    def test_connect_rolls_back_after_staging_one_side(
        self, flaky: Callable[[str], Any], switch: Any, shape: Shape
    ) -> None:
        g: Genealogy[Any, Any] = Genealogy(flaky("S"))
        g.create(flaky("A"), flaky("S"))
        g.create(flaky("B"), flaky("S"))
        g.create(flaky("C"), flaky("A"))
        before = shape(g)

        # One comparison for the existing-link check, one to stage B's new
        # parent; the third, staging A's new child, fails.
        switch.armed = True
        switch.allow = 2
        with pytest.raises(RuntimeError):
            g.connect(flaky("B"), flaky("A"))
        switch.armed = False

        assert switch.allow == 0
        assert g.get_parents(flaky("B")) == [flaky("S")]
        assert g.get_children(flaky("A")) == [flaky("C")]
        assert shape(g) == before

    def test_remove_rolls_back(
        self, flaky: Callable[[str], Any], switch: Any, shape: Shape
    ) -> None:
        g: Genealogy[Any, Any] = Genealogy(flaky("S"))
        g.create(flaky("A"), flaky("S"))
        g.create(flaky("B"), flaky("S"))
        g.create(flaky("C"), flaky("A"))
        before = shape(g)

        switch.armed = True
        with pytest.raises(RuntimeError):
            g.remove(flaky("A"))
        switch.armed = False

        assert g.exists(flaky("A"))
        assert g.exists(flaky("C"))
        assert shape(g) == before

    def test_failing_factory_propagates(self) -> None:
        calls: list[str] = []

        def factory(node_id: str) -> Virus:
            calls.append(node_id)
            if len(calls) == 1:
                raise RuntimeError("factory failed")
            return Virus(node_id)

        g: Genealogy[str, Virus] = Genealogy("S", factory)
        with pytest.raises(RuntimeError, match="factory failed"):
            g.lookup("S")
        assert g.lookup("S") == Virus("S")
        assert g.lookup("S") is g.lookup("S")
        assert calls == ["S", "S"]


class TestScenarios:
    def test_scenario_diamond(self, diamond: Genealogy[str, Any]) -> None:
        assert diamond.get_parents("C") == ["A", "B"]
        assert [v.get_id() for v in diamond.children("S")] == ["A", "B"]

    def test_scenario_duplicate_create(self, genealogy: Genealogy[str, Any]) -> None:
        genealogy.create("X", "S")
        with pytest.raises(AlreadyExists):
            genealogy.create("X", "S")
        assert genealogy.get_parents("X") == ["S"]

    def test_children_have_parent(self, diamond: Genealogy[str, Any]) -> None:
        for node_id in diamond:
            for child in diamond.children(node_id):
                assert node_id in diamond.get_parents(child.get_id())


class TestOwnership:
    def test_cannot_copy(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(TypeError):
            copy.copy(genealogy)
        with pytest.raises(TypeError):
            copy.deepcopy(genealogy)

    def test_cannot_pickle(self, genealogy: Genealogy[str, Any]) -> None:
        with pytest.raises(TypeError):
            pickle.dumps(genealogy)

    def test_repr(self, diamond: Genealogy[str, Any]) -> None:
        assert repr(diamond) == "Genealogy(stem_id='S', size=4)"
