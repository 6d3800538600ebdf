"""
Kinship Engine

One entry point per tree snapshot: builds the family graph once and answers
relationship, sibling, in-law, marriage-validation and tree-wide queries
against it. The engine never mutates the snapshot.
"""

import logging
from typing import Iterable

from .aggregate import TreeAggregator
from .ancestry import AncestryIndex
from .cache import LRUTTLCache
from .config import ConsanguinityRules, check_generation_cap
from .consanguinity import validate_marriage as _validate_marriage
from .errors import KinshipInputError
from .graph import assign_generation_levels, build_family_graph
from .in_laws import in_law_between, in_laws_for_member, spouse_relationship
from .models import (
    GroupedRelationships,
    InferredRelationship,
    KnownConnections,
    MarriageStatus,
    RelationshipWithMembers,
    SiblingClassification,
    TreeSnapshot,
    ValidationResult,
)
from .resolver import infer, infer_all_for_member, relationship_category
from .siblings import all_sibling_pairs, find_siblings_of_member, sibling_type

logger = logging.getLogger("kingraph.kinship.engine")

# Suggestions below this confidence are not offered
SUGGESTION_MIN_CONFIDENCE = 0.8


class KinshipEngine:
    """
    Relationship queries over one `TreeSnapshot`.

    Args:
        snapshot: Members and edges of a single tree
        max_generations: Default traversal cap for queries (1-10, default 4)
        rules: Consanguinity flags used by marriage validation
        cache: Optional caller-owned cache shared by traversals
        strict: Reject snapshots that mix trees or reference unknown members
    """

    def __init__(
        self,
        snapshot: TreeSnapshot,
        max_generations: int | None = None,
        rules: ConsanguinityRules | None = None,
        cache: LRUTTLCache | None = None,
        strict: bool = True,
    ):
        self.snapshot = snapshot
        self.max_generations = check_generation_cap(max_generations)
        self.rules = rules or ConsanguinityRules()
        self.cache = cache
        self.strict = strict

        if strict:
            self._check_single_tree()

        self.graph = build_family_graph(
            snapshot.members,
            snapshot.parent_child_edges,
            snapshot.marriage_edges,
            tree_id=snapshot.tree_id,
        )

        if strict:
            unknown = self.graph.unknown_references()
            if unknown:
                raise KinshipInputError(
                    f"Edges reference members not in tree {snapshot.tree_id}: {', '.join(unknown)}",
                    "UNKNOWN_MEMBER_REFERENCE",
                )

    # ========================================================================
    # Input checks
    # ========================================================================

    def _check_single_tree(self) -> None:
        tree_id = self.snapshot.tree_id
        for member in self.snapshot.members:
            if member.tree_id != tree_id:
                raise KinshipInputError(
                    f"Member {member.id} belongs to tree {member.tree_id}, not {tree_id}",
                    "CROSS_TREE",
                )
        edges = [*self.snapshot.parent_child_edges, *self.snapshot.marriage_edges]
        for edge in edges:
            if edge.tree_id is not None and edge.tree_id != tree_id:
                raise KinshipInputError(
                    f"Edge {edge.id or edge} belongs to tree {edge.tree_id}, not {tree_id}",
                    "CROSS_TREE",
                )

    def _require(self, *member_ids: str) -> None:
        for member_id in member_ids:
            if not self.graph.is_known(member_id):
                raise KinshipInputError(
                    f"Family member with ID {member_id} not found in tree {self.snapshot.tree_id}",
                    "MEMBER_NOT_FOUND",
                )

    def _require_pair(self, member1_id: str, member2_id: str) -> None:
        self._require(member1_id, member2_id)
        if member1_id == member2_id:
            raise KinshipInputError(
                f"Cannot relate member {member1_id} to themselves",
                "SELF_COMPARISON",
            )

    def _index(self, max_generations: int | None = None) -> AncestryIndex:
        cap = self.max_generations if max_generations is None else check_generation_cap(max_generations)
        return AncestryIndex(self.graph, cap, self.cache)

    # ========================================================================
    # Relationships
    # ========================================================================

    def relationship_between(
        self, member1_id: str, member2_id: str, max_generations: int | None = None
    ) -> InferredRelationship | None:
        """What member2 is to member1: spouse first, then blood, then in-law."""
        self._require_pair(member1_id, member2_id)

        spouse = spouse_relationship(self.graph, member1_id, member2_id)
        if spouse is not None:
            return spouse

        index = self._index(max_generations)
        blood = infer(self.graph, member1_id, member2_id, index=index)
        if blood is not None:
            return blood
        return in_law_between(self.graph, member1_id, member2_id, index=index)

    def blood_relationship(
        self, member1_id: str, member2_id: str, max_generations: int | None = None
    ) -> InferredRelationship | None:
        self._require_pair(member1_id, member2_id)
        return infer(self.graph, member1_id, member2_id, index=self._index(max_generations))

    def relationships_for_member(
        self,
        member_id: str,
        max_generations: int | None = None,
        include_in_laws: bool = True,
    ) -> list[InferredRelationship]:
        """Spouses, blood relatives and (optionally) in-laws of a member, closest first."""
        self._require(member_id)
        index = self._index(max_generations)

        relationships = [
            spouse_relationship(self.graph, member_id, spouse_id)
            for spouse_id in self.graph.spouse_ids(member_id)
        ]
        relationships.extend(infer_all_for_member(self.graph, member_id, index=index))
        if include_in_laws:
            relationships.extend(in_laws_for_member(self.graph, member_id, index=index))

        relationships.sort(key=lambda r: (r.degree_of_separation, r.relationship_label))
        return relationships

    def grouped_relationships(self, member_id: str, max_generations: int | None = None) -> GroupedRelationships:
        grouped = GroupedRelationships()
        for rel in self.relationships_for_member(member_id, max_generations):
            category = relationship_category(rel.relationship_type)
            if category == "immediate":
                grouped.immediate.append(rel)
            elif category == "in-law":
                grouped.in_laws.append(rel)
            else:
                grouped.extended.append(rel)
        return grouped

    def relationships_with_details(
        self, member_id: str, max_generations: int | None = None
    ) -> list[RelationshipWithMembers]:
        """Relationships of a member with both member records attached."""
        relationships = self.relationships_for_member(member_id, max_generations)
        from_member = self.graph.members[member_id]
        return [
            RelationshipWithMembers(
                **rel.model_dump(),
                from_member=from_member,
                to_member=self.graph.members.get(rel.to_member_id),
            )
            for rel in relationships
        ]

    def suggest_relationships(
        self,
        member_id: str,
        known: KnownConnections | None = None,
        max_generations: int | None = None,
    ) -> list[InferredRelationship]:
        """
        Relationships of a newly added member to everyone it is not already
        directly linked to, most confident first.
        """
        self._require(member_id)
        skip = known.member_ids if known is not None else set()
        index = self._index(max_generations)

        # Same precedence as relationship_between: spouse, then blood, then in-law
        best: dict[str, InferredRelationship] = {}
        candidates = [
            *(spouse_relationship(self.graph, member_id, s) for s in self.graph.spouse_ids(member_id)),
            *infer_all_for_member(self.graph, member_id, index=index),
            *in_laws_for_member(self.graph, member_id, index=index),
        ]
        for rel in candidates:
            other_id = rel.to_member_id
            if other_id in skip or other_id not in self.graph.members:
                continue
            best.setdefault(other_id, rel)

        suggestions = [rel for rel in best.values() if rel.confidence >= SUGGESTION_MIN_CONFIDENCE]

        suggestions.sort(key=lambda r: r.confidence, reverse=True)
        logger.debug(f"Suggested {len(suggestions)} relationships for {member_id}")
        return suggestions

    # ========================================================================
    # Siblings and in-laws
    # ========================================================================

    def sibling_type(self, member1_id: str, member2_id: str) -> SiblingClassification:
        self._require_pair(member1_id, member2_id)
        return sibling_type(self.graph, member1_id, member2_id)

    def siblings_of(self, member_id: str) -> list[SiblingClassification]:
        self._require(member_id)
        return find_siblings_of_member(self.graph, member_id)

    def all_sibling_pairs(self) -> list[SiblingClassification]:
        return all_sibling_pairs(self.graph)

    def in_laws_for_member(
        self,
        member_id: str,
        max_generations: int | None = None,
        statuses: Iterable[MarriageStatus] | None = None,
    ) -> list[InferredRelationship]:
        self._require(member_id)
        return in_laws_for_member(self.graph, member_id, index=self._index(max_generations), statuses=statuses)

    # ========================================================================
    # Marriage validation
    # ========================================================================

    def _validate(
        self, member1_id: str, member2_id: str, rules: ConsanguinityRules, index: AncestryIndex
    ) -> ValidationResult:
        self._require(member1_id, member2_id)
        sibling_info = None
        if member1_id != member2_id:
            sibling_info = sibling_type(self.graph, member1_id, member2_id)
        return _validate_marriage(
            self.graph.members[member1_id],
            self.graph.members[member2_id],
            index.ancestors(member1_id),
            index.ancestors(member2_id),
            sibling_info,
            rules,
        )

    def validate_marriage(
        self, member1_id: str, member2_id: str, rules: ConsanguinityRules | None = None
    ) -> ValidationResult:
        rules = rules or self.rules
        index = AncestryIndex(self.graph, rules.max_kinship_degree, self.cache)
        result = self._validate(member1_id, member2_id, rules, index)
        if not result.is_valid:
            logger.info(
                f"Marriage {member1_id} + {member2_id} blocked: "
                f"{', '.join(e.code for e in result.errors)}"
            )
        return result

    def validate_marriages(
        self, pairs: Iterable[tuple[str, str]], rules: ConsanguinityRules | None = None
    ) -> list[ValidationResult]:
        """Validate several proposed marriages, sharing ancestor traversals."""
        rules = rules or self.rules
        index = AncestryIndex(self.graph, rules.max_kinship_degree, self.cache)
        return [self._validate(a, b, rules, index) for a, b in pairs]

    def can_marry(self, member1_id: str, member2_id: str) -> bool:
        return self.validate_marriage(member1_id, member2_id).is_valid

    # ========================================================================
    # Tree-wide
    # ========================================================================

    def generation_levels(self) -> dict[str, int]:
        return assign_generation_levels(self.graph)

    def aggregator(self, max_generations: int | None = None) -> TreeAggregator:
        cap = self.max_generations if max_generations is None else max_generations
        return TreeAggregator(self.graph, cap, self.cache)
