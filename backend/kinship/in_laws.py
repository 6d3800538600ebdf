"""In-law relationships layered on top of blood relationships via marriages."""

import logging
from typing import Iterable

from .ancestry import AncestryIndex
from .errors import KinshipInputError
from .graph import FamilyGraph
from .models import InferredRelationship, MarriageStatus
from .resolver import infer_all_for_member, relationship_label

logger = logging.getLogger("kingraph.kinship.in_laws")


_SIBLING_KINDS = {"sibling", "half-sibling", "step-sibling"}


def _is_descendant(rel: InferredRelationship) -> bool:
    return rel.from_generation == 0 and rel.to_generation > 0


def _is_ancestor(rel: InferredRelationship) -> bool:
    return rel.to_generation == 0 and rel.from_generation > 0


def _through_spouse_type(rel: InferredRelationship) -> str:
    """What the spouse's relative becomes: the spouse's R is my R-in-law."""
    if _is_descendant(rel):
        return f"step-{rel.relationship_type}"
    if rel.relationship_type in _SIBLING_KINDS:
        return "sibling-in-law"
    return f"{rel.relationship_type}-in-law"


def _through_relative_type(rel: InferredRelationship) -> str:
    """What a relative's spouse becomes: my R's spouse is my R-in-law."""
    if _is_ancestor(rel):
        return f"step-{rel.relationship_type}"
    if rel.relationship_type in _SIBLING_KINDS:
        return "sibling-in-law"
    return f"{rel.relationship_type}-in-law"


def _in_law(
    graph: FamilyGraph,
    from_id: str,
    to_id: str,
    rel_type: str,
    via: InferredRelationship,
    path: list[str],
    description: str,
) -> InferredRelationship:
    to_member = graph.members.get(to_id)
    return InferredRelationship(
        from_member_id=from_id,
        to_member_id=to_id,
        relationship_type=rel_type,
        relationship_label=relationship_label(rel_type, to_member.gender if to_member else None),
        from_generation=via.from_generation,
        to_generation=via.to_generation,
        common_ancestor_id=via.common_ancestor_id,
        generational_distance=via.generational_distance,
        degree_of_separation=len(path) - 1,
        cousin_degree=via.cousin_degree,
        removal=via.removal,
        is_blood_relative=False,
        is_in_law=True,
        confidence=via.confidence,
        path=path,
        path_description=description,
    )


def spouse_relationship(graph: FamilyGraph, from_id: str, to_id: str) -> InferredRelationship | None:
    """The marriage between two members, if any (first marriage edge wins)."""
    for spouse_id, marriage in graph.spouses_of.get(from_id, []):
        if spouse_id != to_id:
            continue
        to_member = graph.members.get(to_id)
        return InferredRelationship(
            from_member_id=from_id,
            to_member_id=to_id,
            relationship_type="spouse",
            relationship_label=relationship_label("spouse", to_member.gender if to_member else None),
            from_generation=0,
            to_generation=0,
            degree_of_separation=1,
            is_blood_relative=False,
            path=[from_id, to_id],
            path_description=f"Marriage ({marriage.status.value})",
        )
    return None


def in_laws_for_member(
    graph: FamilyGraph,
    member_id: str,
    max_generations: int | None = None,
    index: AncestryIndex | None = None,
    statuses: Iterable[MarriageStatus] | None = None,
) -> list[InferredRelationship]:
    """
    Relationships to `member_id` that run through at least one marriage.

    Both directions are covered: relatives of the member's spouses (spouse's
    parent -> parent-in-law, spouse's child -> step-child) and spouses of the
    member's relatives (child's spouse -> child-in-law, a parent's other
    spouse -> step-parent). Marriages of every status count unless
    `statuses` narrows them. Blood relatives and spouses of the member are
    never reported, and duplicates by (from, to, type) are dropped.
    """
    if index is None:
        index = AncestryIndex(graph, max_generations)
    statuses = list(statuses) if statuses is not None else None

    relatives = infer_all_for_member(graph, member_id, index=index)
    excluded = {member_id, *graph.spouse_ids(member_id)}
    excluded.update(rel.to_member_id for rel in relatives)

    found: dict[tuple[str, str, str], InferredRelationship] = {}

    def add(relationship: InferredRelationship) -> None:
        key = (relationship.from_member_id, relationship.to_member_id, relationship.relationship_type)
        if key not in found:
            found[key] = relationship

    # Relatives of each spouse
    for spouse_id in graph.spouse_ids(member_id, statuses):
        for rel in infer_all_for_member(graph, spouse_id, index=index):
            if rel.to_member_id in excluded:
                continue
            base = relationship_label(rel.relationship_type).lower()
            add(_in_law(
                graph, member_id, rel.to_member_id,
                _through_spouse_type(rel),
                via=rel,
                path=[member_id] + rel.path,
                description=f"Spouse's {base}: {graph.name_of(spouse_id)} -> {graph.name_of(rel.to_member_id)}",
            ))

    # Spouses of each relative
    for rel in relatives:
        relative_id = rel.to_member_id
        for spouse_id in graph.spouse_ids(relative_id, statuses):
            if spouse_id in excluded:
                continue
            base = relationship_label(rel.relationship_type)
            add(_in_law(
                graph, member_id, spouse_id,
                _through_relative_type(rel),
                via=rel,
                path=rel.path + [spouse_id],
                description=f"{base}'s spouse: {graph.name_of(relative_id)} -> {graph.name_of(spouse_id)}",
            ))

    in_laws = sorted(found.values(), key=lambda r: (r.degree_of_separation, r.relationship_label))
    logger.debug(f"Found {len(in_laws)} in-law relationships for {member_id}")
    return in_laws


def in_law_between(
    graph: FamilyGraph,
    from_id: str,
    to_id: str,
    max_generations: int | None = None,
    index: AncestryIndex | None = None,
    statuses: Iterable[MarriageStatus] | None = None,
) -> InferredRelationship | None:
    """Closest in-law relationship of `to_id` to `from_id`, or None."""
    if from_id == to_id:
        raise KinshipInputError(
            f"Cannot infer a relationship between member {from_id} and themselves",
            "SELF_COMPARISON",
        )
    for relationship in in_laws_for_member(graph, from_id, max_generations, index, statuses):
        if relationship.to_member_id == to_id:
            return relationship
    return None
