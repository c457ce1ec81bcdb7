"""Tests for full / half / step sibling classification."""

import pytest

from kinship.inference.errors import MemberNotFoundError
from kinship.inference.siblings import (
    SiblingCheck,
    SiblingKind,
    SiblingPair,
    are_siblings,
    classify_sibling,
    sibling_pairs,
    siblings_of,
)


class TestClassifySibling:

    def test_two_shared_parents_is_full(self, family):
        assert classify_sibling(family, "c1", "c2") == SiblingKind.FULL

    def test_one_shared_parent_is_half(self, blended_family):
        assert classify_sibling(blended_family, "a", "j") == SiblingKind.HALF

    def test_parents_married_is_step(self, blended_family):
        assert classify_sibling(blended_family, "a", "b") == SiblingKind.STEP
        assert classify_sibling(blended_family, "b", "a") == SiblingKind.STEP

    def test_adopted_counts_as_blood(self, blended_family):
        assert classify_sibling(blended_family, "j", "x") == SiblingKind.FULL

    def test_shared_foster_parent_is_step(self, blended_family):
        assert classify_sibling(blended_family, "a", "f") == SiblingKind.STEP

    def test_self_is_not_a_sibling(self, family):
        assert classify_sibling(family, "c1", "c1") is None

    def test_unrelated_is_none(self, family):
        assert classify_sibling(family, "g1", "g2") is None

    def test_divorced_parents_still_make_step_siblings(self, make_snapshot):
        snap = make_snapshot([("m1", "a"), ("m2", "b")], [("m1", "m2", "divorced")])
        assert classify_sibling(snap, "a", "b") == SiblingKind.STEP

    def test_step_edge_to_second_parent_still_full(self, make_snapshot):
        """Both parents shared, one of them only by a step edge: still full siblings."""
        snap = make_snapshot(
            [("m1", "a"), ("m2", "a", "step"), ("m1", "b"), ("m2", "b")],
            [("m1", "m2")],
        )
        assert classify_sibling(snap, "a", "b") == SiblingKind.FULL
        assert classify_sibling(snap, "b", "a") == SiblingKind.FULL

    def test_only_step_edges_shared_is_step(self, make_snapshot):
        snap = make_snapshot([("m1", "a", "step"), ("m1", "b")])
        assert classify_sibling(snap, "a", "b") == SiblingKind.STEP


class TestSiblingsOf:

    def test_full_siblings(self, family):
        sibs = siblings_of(family, "c1")
        assert [(s.sibling_id, s.kind, s.shared_parent_ids) for s in sibs] == [
            ("c2", SiblingKind.FULL, ("p1", "p2")),
        ]

    def test_blended_family_sorted_by_id(self, blended_family):
        sibs = siblings_of(blended_family, "a")
        assert [(s.sibling_id, s.kind, s.shared_parent_ids) for s in sibs] == [
            ("b", SiblingKind.STEP, ()),
            ("f", SiblingKind.STEP, ("m1",)),
            ("j", SiblingKind.HALF, ("m1",)),
            ("x", SiblingKind.HALF, ("m1",)),
        ]

    def test_no_parents_no_siblings(self, family):
        assert siblings_of(family, "p1") == []

    def test_only_child(self, family):
        assert siblings_of(family, "g1") == []


class TestAreSiblings:

    def test_full(self, family):
        assert are_siblings(family, "c1", "c2") == SiblingCheck(True, SiblingKind.FULL)

    def test_step(self, blended_family):
        assert are_siblings(blended_family, "a", "b") == SiblingCheck(True, SiblingKind.STEP)

    def test_not_siblings(self, family):
        check = are_siblings(family, "g1", "g2")
        assert not check.are_siblings
        assert check.kind is None

    def test_unknown_member_raises(self, family):
        with pytest.raises(MemberNotFoundError):
            are_siblings(family, "c1", "ghost")


class TestSiblingPairs:

    def test_each_pair_once(self, family):
        assert sibling_pairs(family) == [SiblingPair("c1", "c2", SiblingKind.FULL)]

    def test_blended_family(self, blended_family):
        pairs = {(p.member1_id, p.member2_id): p.kind for p in sibling_pairs(blended_family)}
        assert pairs == {
            ("a", "b"): SiblingKind.STEP,
            ("a", "f"): SiblingKind.STEP,
            ("a", "j"): SiblingKind.HALF,
            ("a", "x"): SiblingKind.HALF,
            ("b", "f"): SiblingKind.STEP,
            ("b", "j"): SiblingKind.HALF,
            ("b", "x"): SiblingKind.HALF,
            ("f", "j"): SiblingKind.STEP,
            ("f", "x"): SiblingKind.STEP,
            ("j", "x"): SiblingKind.FULL,
        }

    def test_no_siblings(self, make_snapshot):
        assert sibling_pairs(make_snapshot([("p", "c")])) == []
