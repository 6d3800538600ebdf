"""Tests for sibling classification."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kinship import (
    KinshipInputError,
    MarriageEdge,
    Member,
    ParentChildEdge,
    ParentChildType,
    SiblingType,
    all_sibling_pairs,
    build_family_graph,
    find_siblings_of_member,
    sibling_type,
)


def _pairs(classifications):
    return {frozenset((c.member1_id, c.member2_id)): c.sibling_type for c in classifications}


class TestSiblingType:
    """Tests for classifying one pair."""

    def test_full_siblings(self, family_graph):
        result = sibling_type(family_graph, "h1", "i1")
        assert result.sibling_type == SiblingType.FULL
        assert result.shared_parent_ids == ["c1", "f1"]
        assert result.are_siblings

    def test_half_siblings(self, family_graph):
        result = sibling_type(family_graph, "h1", "n1")
        assert result.sibling_type == SiblingType.HALF
        assert result.shared_parent_ids == ["f1"]

    def test_step_siblings_through_marriage(self, family_graph):
        # Nora's father Oscar married Vera's mother Uma
        result = sibling_type(family_graph, "n1", "v1")
        assert result.sibling_type == SiblingType.STEP
        assert result.shared_parent_ids == []

    def test_step_siblings_through_step_edge(self):
        members = [Member(id=mid, tree_id="t1", first_name=mid) for mid in ("p", "a", "b")]
        edges = [
            ParentChildEdge(parent_id="p", child_id="a"),
            ParentChildEdge(parent_id="p", child_id="b", relationship_type=ParentChildType.STEP),
        ]
        graph = build_family_graph(members, edges)
        result = sibling_type(graph, "a", "b")
        assert result.sibling_type == SiblingType.STEP
        assert result.shared_parent_ids == ["p"]

    def test_adopted_counts_as_lineal(self):
        members = [Member(id=mid, tree_id="t1", first_name=mid) for mid in ("p", "q", "a", "b")]
        edges = [
            ParentChildEdge(parent_id="p", child_id="a"),
            ParentChildEdge(parent_id="q", child_id="a"),
            ParentChildEdge(parent_id="p", child_id="b", relationship_type=ParentChildType.ADOPTED),
            ParentChildEdge(parent_id="q", child_id="b", relationship_type=ParentChildType.ADOPTED),
        ]
        graph = build_family_graph(members, edges)
        assert sibling_type(graph, "a", "b").sibling_type == SiblingType.FULL

    def test_cousins_are_not_siblings(self, family_graph):
        result = sibling_type(family_graph, "h1", "j1")
        assert result.sibling_type == SiblingType.NONE
        assert not result.are_siblings

    def test_symmetric(self, family_graph):
        for a, b in [("h1", "i1"), ("h1", "n1"), ("n1", "v1"), ("h1", "j1")]:
            assert sibling_type(family_graph, a, b).sibling_type == sibling_type(family_graph, b, a).sibling_type

    def test_self_comparison_rejected(self, family_graph):
        with pytest.raises(KinshipInputError) as exc_info:
            sibling_type(family_graph, "h1", "h1")
        assert exc_info.value.code == "SELF_COMPARISON"


class TestFindSiblings:
    """Tests for listing the siblings of one member."""

    def test_all_sibling_kinds(self, family_graph):
        siblings = {s.member2_id: s.sibling_type for s in find_siblings_of_member(family_graph, "n1")}
        assert siblings == {
            "h1": SiblingType.HALF,
            "i1": SiblingType.HALF,
            "v1": SiblingType.STEP,
        }

    def test_only_child(self, family_graph):
        assert find_siblings_of_member(family_graph, "m1") == []

    def test_no_parents(self, family_graph):
        assert find_siblings_of_member(family_graph, "gg1") == []


class TestAllSiblingPairs:
    """Tests for tree-wide sibling enumeration."""

    def test_sample_family(self, family_graph):
        assert _pairs(all_sibling_pairs(family_graph)) == {
            frozenset(("a1", "b1")): SiblingType.FULL,
            frozenset(("c1", "c2")): SiblingType.FULL,
            frozenset(("h1", "i1")): SiblingType.FULL,
            frozenset(("h1", "n1")): SiblingType.HALF,
            frozenset(("i1", "n1")): SiblingType.HALF,
            frozenset(("n1", "v1")): SiblingType.STEP,
        }

    def test_each_pair_reported_once(self, family_graph):
        pairs = all_sibling_pairs(family_graph)
        keys = [frozenset((p.member1_id, p.member2_id)) for p in pairs]
        assert len(keys) == len(set(keys))

    def test_matches_pairwise_classification(self, family_graph):
        expected = {}
        ids = family_graph.member_ids
        for i, a in enumerate(ids):
            for b in ids[i + 1:]:
                kind = sibling_type(family_graph, a, b).sibling_type
                if kind != SiblingType.NONE:
                    expected[frozenset((a, b))] = kind
        assert _pairs(all_sibling_pairs(family_graph)) == expected

    def test_superset_parent_signature(self):
        # Three listed parents for one child, two for the other: still full
        members = [Member(id=mid, tree_id="t1", first_name=mid) for mid in ("p", "q", "r", "a", "b")]
        edges = [
            ParentChildEdge(parent_id="p", child_id="a"),
            ParentChildEdge(parent_id="q", child_id="a"),
            ParentChildEdge(parent_id="r", child_id="a"),
            ParentChildEdge(parent_id="p", child_id="b"),
            ParentChildEdge(parent_id="q", child_id="b"),
        ]
        graph = build_family_graph(members, edges, [MarriageEdge(spouse1_id="p", spouse2_id="q")])
        assert _pairs(all_sibling_pairs(graph)) == {frozenset(("a", "b")): SiblingType.FULL}
