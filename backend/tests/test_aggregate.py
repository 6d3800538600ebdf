"""Tests for tree-wide aggregate queries."""

import os
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kinship import LRUTTLCache, TreeAggregator


class TestCousinPairs:
    """Tests for all_cousin_pairs."""

    def test_known_cousins(self, family_graph):
        pairs = {
            (p.member1_id, p.member2_id): p
            for p in TreeAggregator(family_graph).all_cousin_pairs()
        }
        assert pairs[("h1", "j1")].relationship_type == "first-cousin"
        assert pairs[("h1", "j1")].common_ancestor_id == "a1"
        assert pairs[("c1", "e1")].relationship_type == "first-cousin"
        assert pairs[("h1", "l1")].relationship_type == "second-cousin"
        assert pairs[("h1", "l1")].cousin_degree == 2
        assert pairs[("h1", "l1")].removal == 0
        assert pairs[("e1", "h1")].relationship_type == "first-cousin-once-removed"

    def test_only_cousins_listed(self, family_graph):
        pairs = TreeAggregator(family_graph).all_cousin_pairs()
        ids = {mid for p in pairs for mid in (p.member1_id, p.member2_id)}
        assert "g1" not in ids
        assert "n1" not in ids
        assert ("h1", "i1") not in {(p.member1_id, p.member2_id) for p in pairs}

    def test_each_pair_once(self, family_graph):
        pairs = TreeAggregator(family_graph).all_cousin_pairs()
        keys = [frozenset((p.member1_id, p.member2_id)) for p in pairs]
        assert len(keys) == len(set(keys))

    def test_cap_hides_distant_cousins(self, family_graph):
        pairs = TreeAggregator(family_graph, max_generations=2).all_cousin_pairs()
        types = {p.relationship_type for p in pairs}
        assert types == {"first-cousin"}


class TestInLaws:
    """Tests for all_in_laws."""

    def test_includes_parent_in_law(self, family_graph):
        in_laws = {
            (r.from_member_id, r.to_member_id): r.relationship_type
            for r in TreeAggregator(family_graph).all_in_laws()
        }
        assert in_laws[("f1", "a1")] == "parent-in-law"
        assert in_laws[("a1", "f1")] == "child-in-law"
        assert in_laws[("n1", "u1")] == "step-parent"

    def test_all_marked_in_law(self, family_graph):
        assert all(not r.is_blood_relative for r in TreeAggregator(family_graph).all_in_laws())


class TestSummary:
    """Tests for relationship_summary."""

    def test_totals(self, family_graph):
        summary = TreeAggregator(family_graph).relationship_summary()
        assert summary.tree_id == "t1"
        assert summary.total_members == 21
        assert summary.relationship_counts["spouse"] == 8
        assert summary.blood_relatives > 0
        assert summary.in_laws > 0

    def test_counts_are_consistent(self, family_graph):
        summary = TreeAggregator(family_graph).relationship_summary()
        assert sum(summary.category_counts.values()) == summary.related_pairs
        assert sum(summary.relationship_counts.values()) == summary.related_pairs
        assert summary.blood_relatives + summary.in_laws <= summary.related_pairs

    def test_step_siblings_counted(self, family_graph):
        summary = TreeAggregator(family_graph).relationship_summary()
        assert summary.relationship_counts["step-sibling"] == 1
        assert summary.relationship_counts["half-sibling"] == 2
        assert summary.relationship_counts["sibling"] == 3


class TestMemo:
    """Each aggregate call gets its own traversal memo."""

    def test_fresh_memo_per_call(self, family_graph):
        cache = LRUTTLCache()
        aggregator = TreeAggregator(family_graph, cache=cache)

        aggregator.all_cousin_pairs()
        assert cache.hits == 0
        first_misses = cache.misses
        assert first_misses == len(family_graph.members)

        # A second call starts a new memo and reads through the shared cache
        aggregator.all_cousin_pairs()
        assert cache.hits == len(family_graph.members)
        assert cache.misses == first_misses
