"""Tests for graph building and generation levels."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from kinship import (
    MarriageEdge,
    MarriageStatus,
    Member,
    ParentChildEdge,
    ParentChildType,
    assign_generation_levels,
    build_family_graph,
)
from kinship.graph import find_root_ancestors


def _member(member_id, first="Test"):
    return Member(id=member_id, tree_id="t1", first_name=first)


# ============================================================================
# Entity Validation Tests
# ============================================================================

class TestEntities:
    """Tests for input entity validation."""

    def test_self_parentage_rejected(self):
        with pytest.raises(ValidationError):
            ParentChildEdge(parent_id="x", child_id="x")

    def test_self_marriage_rejected(self):
        with pytest.raises(ValidationError):
            MarriageEdge(spouse1_id="x", spouse2_id="x")

    @pytest.mark.parametrize("value", ["1850", "1850-03", "1850-03-15"])
    def test_partial_dates_accepted(self, value):
        member = Member(id="x", tree_id="t1", first_name="A", birth_date=value)
        assert member.birth_date == value

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError):
            Member(id="x", tree_id="t1", first_name="A", birth_date="15 MAR 1850")

    def test_names(self):
        member = Member(id="x", tree_id="t1", first_name="John", middle_name="Paul", last_name="Jones", nickname="JP")
        assert member.full_name == "John Paul Jones"
        assert member.display_name == 'John "JP" Jones'

    def test_marriage_other(self):
        marriage = MarriageEdge(spouse1_id="a", spouse2_id="b")
        assert marriage.other("a") == "b"
        assert marriage.other("b") == "a"


# ============================================================================
# Graph Building Tests
# ============================================================================

class TestBuildGraph:
    """Tests for adjacency map construction."""

    def test_adjacency_maps(self, family_graph):
        assert family_graph.parent_ids("h1") == ["c1", "f1"]
        assert family_graph.child_ids("c1") == ["h1", "i1"]
        assert family_graph.spouse_ids("f1") == ["c1", "o1"]
        assert family_graph.spouse_ids("o1") == ["f1", "u1"]

    def test_spouse_status_filter(self, family_graph):
        assert family_graph.spouse_ids("f1", [MarriageStatus.MARRIED]) == ["c1"]
        assert family_graph.spouse_ids("f1", [MarriageStatus.DIVORCED]) == ["o1"]

    def test_duplicate_edges_collapsed(self):
        edge = ParentChildEdge(parent_id="p", child_id="c")
        graph = build_family_graph([_member("p"), _member("c")], [edge, edge])
        assert graph.parents_of["c"] == [("p", ParentChildType.BIOLOGICAL)]
        assert graph.children_of["p"] == [("c", ParentChildType.BIOLOGICAL)]

    def test_lineal_parents_exclude_step_and_foster(self):
        edges = [
            ParentChildEdge(parent_id="bio", child_id="c"),
            ParentChildEdge(parent_id="adopt", child_id="c", relationship_type=ParentChildType.ADOPTED),
            ParentChildEdge(parent_id="step", child_id="c", relationship_type=ParentChildType.STEP),
            ParentChildEdge(parent_id="foster", child_id="c", relationship_type=ParentChildType.FOSTER),
        ]
        graph = build_family_graph([_member("c")], edges)
        assert graph.lineal_parent_ids("c") == ["bio", "adopt"]
        assert graph.parent_ids("c") == ["bio", "adopt", "step", "foster"]

    def test_unknown_members_kept_as_opaque_ids(self):
        graph = build_family_graph(
            [_member("c", "Child")],
            [ParentChildEdge(parent_id="ghost", child_id="c")],
        )
        assert graph.parent_ids("c") == ["ghost"]
        assert not graph.is_known("ghost")
        assert graph.unknown_references() == ["ghost"]
        assert graph.name_of("ghost") == "ghost"
        assert graph.name_of("c") == "Child"

    def test_empty_graph(self):
        graph = build_family_graph([])
        assert graph.member_ids == []
        assert graph.unknown_references() == []

    def test_fingerprint_tracks_content(self, family_snapshot):
        first = build_family_graph(family_snapshot.members, family_snapshot.parent_child_edges, tree_id="t1")
        again = build_family_graph(
            list(reversed(family_snapshot.members)),
            list(reversed(family_snapshot.parent_child_edges)),
            tree_id="t1",
        )
        changed = build_family_graph(family_snapshot.members, family_snapshot.parent_child_edges[:-1], tree_id="t1")
        other_tree = build_family_graph(family_snapshot.members, family_snapshot.parent_child_edges, tree_id="t2")

        assert first.fingerprint == again.fingerprint
        assert first.fingerprint != changed.fingerprint
        assert first.fingerprint != other_tree.fingerprint


# ============================================================================
# Generation Level Tests
# ============================================================================

class TestGenerationLevels:
    """Tests for the generation-level heuristic."""

    def test_root_ancestors_exclude_married_in(self, family_graph):
        roots = find_root_ancestors(family_graph)
        assert "gg1" in roots
        assert "gg2" in roots
        # Married into the family: no parents, spouse has parents
        assert "a2" not in roots
        assert "g1" not in roots
        assert "k1" not in roots

    def test_levels_follow_deepest_parent(self, family_graph):
        levels = assign_generation_levels(family_graph)
        assert levels["gg1"] == 0
        assert levels["a1"] == 1
        assert levels["c1"] == 2
        assert levels["h1"] == 3
        assert levels["m1"] == 4

    def test_married_in_spouse_shares_level(self, family_graph):
        levels = assign_generation_levels(family_graph)
        assert levels["a2"] == levels["a1"]
        assert levels["g1"] == levels["c2"]
        assert levels["k1"] == levels["e1"]

    def test_every_member_gets_a_level(self, family_graph):
        levels = assign_generation_levels(family_graph)
        assert list(levels) == family_graph.member_ids

    def test_cyclic_data_terminates(self):
        edges = [
            ParentChildEdge(parent_id="a", child_id="b"),
            ParentChildEdge(parent_id="b", child_id="a"),
        ]
        graph = build_family_graph([_member("a"), _member("b")], edges)
        levels = assign_generation_levels(graph)
        assert set(levels) == {"a", "b"}
        assert all(level == 0 for level in levels.values())
