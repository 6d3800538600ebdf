"""Tree-wide batch queries that share ancestor traversals across pairs."""

import logging
from collections import Counter

from .ancestry import AncestryIndex
from .cache import LRUTTLCache
from .config import check_generation_cap
from .graph import FamilyGraph
from .in_laws import in_laws_for_member, spouse_relationship
from .models import CousinPair, InferredRelationship, RelationshipSummary, SiblingType
from .resolver import infer, relationship_category
from .siblings import all_sibling_pairs

logger = logging.getLogger("kingraph.kinship.aggregate")


class TreeAggregator:
    """
    Batch entry points over one graph.

    Every public method builds its own `AncestryIndex`, so the per-member
    memo lasts for exactly one aggregate call. A caller-owned cache, when
    given, is shared through that index.
    """

    def __init__(self, graph: FamilyGraph, max_generations: int | None = None, cache: LRUTTLCache | None = None):
        self.graph = graph
        self.max_generations = check_generation_cap(max_generations)
        self.cache = cache
        self._position = {member_id: i for i, member_id in enumerate(graph.members)}

    def _new_index(self) -> AncestryIndex:
        return AncestryIndex(self.graph, self.max_generations, self.cache)

    def _ordered(self, a: str, b: str) -> tuple[str, str]:
        return (a, b) if self._position[a] < self._position[b] else (b, a)

    def _pairs_sharing_ancestor(self, index: AncestryIndex) -> list[tuple[str, str]]:
        """
        Unordered member pairs with at least one common ancestor (self
        included), found by inverting ancestor -> members instead of
        comparing every pair.
        """
        position = self._position
        by_ancestor: dict[str, list[str]] = {}
        for member_id in self.graph.members:
            for ancestor_id in index.ancestors(member_id):
                by_ancestor.setdefault(ancestor_id, []).append(member_id)

        pairs: dict[tuple[str, str], None] = {}
        for group in by_ancestor.values():
            for i, first in enumerate(group):
                for second in group[i + 1:]:
                    pair = (first, second) if position[first] < position[second] else (second, first)
                    pairs[pair] = None
        return sorted(pairs, key=lambda p: (position[p[0]], position[p[1]]))

    def all_cousin_pairs(self) -> list[CousinPair]:
        index = self._new_index()
        cousins = []
        for first, second in self._pairs_sharing_ancestor(index):
            rel = infer(self.graph, first, second, index=index)
            if rel is None or rel.cousin_degree is None:
                continue
            cousins.append(CousinPair(
                member1_id=first,
                member2_id=second,
                relationship_type=rel.relationship_type,
                relationship_label=rel.relationship_label,
                cousin_degree=rel.cousin_degree,
                removal=rel.removal,
                common_ancestor_id=rel.common_ancestor_id,
                degree_of_separation=rel.degree_of_separation,
            ))
        logger.info(f"Found {len(cousins)} cousin pairs in tree {self.graph.tree_id}")
        return cousins

    def all_in_laws(self) -> list[InferredRelationship]:
        """In-law relationships of every member, as seen from that member."""
        index = self._new_index()
        in_laws = []
        for member_id in self.graph.members:
            in_laws.extend(
                rel for rel in in_laws_for_member(self.graph, member_id, index=index)
                if rel.to_member_id in self.graph.members
            )
        logger.info(f"Found {len(in_laws)} in-law relationships in tree {self.graph.tree_id}")
        return in_laws

    def relationship_summary(self) -> RelationshipSummary:
        """
        Count every related pair once, by the relationship seen from the member
        listed first. Lookup order matches single-pair queries: spouse, then
        blood, then in-law.
        """
        index = self._new_index()
        found: dict[tuple[str, str], InferredRelationship] = {}

        for member_id in self.graph.members:
            for spouse_id in self.graph.spouse_ids(member_id):
                if spouse_id in self.graph.members:
                    pair = self._ordered(member_id, spouse_id)
                    if pair not in found:
                        found[pair] = spouse_relationship(self.graph, *pair)

        candidates = self._pairs_sharing_ancestor(index)
        candidates.extend(
            (s.member1_id, s.member2_id) for s in all_sibling_pairs(self.graph)
            if s.sibling_type == SiblingType.STEP
        )
        for first, second in candidates:
            pair = self._ordered(first, second)
            if pair in found:
                continue
            rel = infer(self.graph, *pair, index=index)
            if rel is not None:
                found[pair] = rel

        # Members are visited in order, so a pair linked both ways keeps the
        # earlier member's view
        for member_id in self.graph.members:
            for rel in in_laws_for_member(self.graph, member_id, index=index):
                if rel.to_member_id not in self.graph.members:
                    continue
                pair = self._ordered(member_id, rel.to_member_id)
                if pair not in found:
                    found[pair] = rel

        relationships = list(found.values())
        type_counts = Counter(rel.relationship_type for rel in relationships)
        category_counts = Counter(relationship_category(rel.relationship_type) for rel in relationships)

        return RelationshipSummary(
            tree_id=self.graph.tree_id,
            total_members=len(self.graph.members),
            related_pairs=len(relationships),
            blood_relatives=sum(1 for rel in relationships if rel.is_blood_relative),
            in_laws=sum(1 for rel in relationships if rel.is_in_law),
            relationship_counts=dict(type_counts),
            category_counts=dict(category_counts),
        )
