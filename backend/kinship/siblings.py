"""Full/half/step sibling classification from parent sets."""

import logging

from .errors import KinshipInputError
from .graph import FamilyGraph
from .models import SiblingClassification, SiblingType

logger = logging.getLogger("kingraph.kinship.siblings")


def sibling_type(graph: FamilyGraph, member1_id: str, member2_id: str) -> SiblingClassification:
    """
    Classify how two members are siblings.

    - full: two or more shared biological/adopted parents
    - half: exactly one shared biological/adopted parent
    - step: no shared lineal parent, but they share a parent through step or
      foster edges, or a parent of one is or was married to a parent of the other
    - none: anything else
    """
    if member1_id == member2_id:
        raise KinshipInputError(
            f"Cannot classify member {member1_id} as their own sibling",
            "SELF_COMPARISON",
        )

    lineal1 = graph.lineal_parent_ids(member1_id)
    lineal2 = set(graph.lineal_parent_ids(member2_id))
    shared = [p for p in lineal1 if p in lineal2]

    if len(shared) >= 2:
        kind = SiblingType.FULL
    elif len(shared) == 1:
        kind = SiblingType.HALF
    else:
        parents1 = graph.parent_ids(member1_id)
        parents2 = graph.parent_ids(member2_id)
        parents2_set = set(parents2)
        shared = [p for p in parents1 if p in parents2_set]
        if shared:
            kind = SiblingType.STEP
        elif any(
            spouse_id in parents2_set
            for parent_id in parents1
            for spouse_id in graph.spouse_ids(parent_id)
        ):
            kind = SiblingType.STEP
        else:
            kind = SiblingType.NONE

    return SiblingClassification(
        member1_id=member1_id,
        member2_id=member2_id,
        sibling_type=kind,
        shared_parent_ids=shared,
    )


def _sibling_candidates(graph: FamilyGraph, member_id: str) -> list[str]:
    """Children of the member's parents and of those parents' spouses."""
    candidates: dict[str, None] = {}
    for parent_id in graph.parent_ids(member_id):
        for child_id in graph.child_ids(parent_id):
            candidates[child_id] = None
        for spouse_id in graph.spouse_ids(parent_id):
            for child_id in graph.child_ids(spouse_id):
                candidates[child_id] = None
    candidates.pop(member_id, None)
    return list(candidates)


def find_siblings_of_member(graph: FamilyGraph, member_id: str) -> list[SiblingClassification]:
    """Every full, half and step sibling of a member, in discovery order."""
    siblings = []
    for candidate_id in _sibling_candidates(graph, member_id):
        classification = sibling_type(graph, member_id, candidate_id)
        if classification.are_siblings:
            siblings.append(classification)
    return siblings


def all_sibling_pairs(graph: FamilyGraph) -> list[SiblingClassification]:
    """
    Every sibling pair in the tree, each unordered pair reported once.

    Pairs are found in three passes so the whole tree is never compared
    pairwise:
      1. members with the same lineal parent set (two or more parents) are
         mutual full siblings;
      2. the parent -> children index yields the remaining shared-parent pairs;
      3. step and foster edges and parents' marriages yield step pairs.
    """
    pairs: list[SiblingClassification] = []
    seen: set[frozenset[str]] = set()

    def add(classification: SiblingClassification) -> None:
        key = frozenset((classification.member1_id, classification.member2_id))
        if key not in seen and classification.are_siblings:
            seen.add(key)
            pairs.append(classification)

    # Pass 1: identical parent-set signatures
    groups: dict[frozenset[str], list[str]] = {}
    for member_id in graph.members:
        parents = graph.lineal_parent_ids(member_id)
        if len(parents) >= 2:
            groups.setdefault(frozenset(parents), []).append(member_id)

    for group in groups.values():
        shared = graph.lineal_parent_ids(group[0])
        for i, first in enumerate(group):
            for second in group[i + 1:]:
                add(SiblingClassification(
                    member1_id=first,
                    member2_id=second,
                    sibling_type=SiblingType.FULL,
                    shared_parent_ids=shared,
                ))

    # Pass 2: shared lineal parents with differing signatures
    for member_id in graph.members:
        for parent_id in graph.lineal_parent_ids(member_id):
            for other_id in graph.child_ids(parent_id):
                if other_id == member_id or other_id not in graph.members:
                    continue
                if frozenset((member_id, other_id)) in seen:
                    continue
                add(sibling_type(graph, member_id, other_id))

    # Pass 3: step relationships
    for member_id in graph.members:
        for other_id in _sibling_candidates(graph, member_id):
            if other_id not in graph.members or frozenset((member_id, other_id)) in seen:
                continue
            add(sibling_type(graph, member_id, other_id))

    logger.debug(f"Found {len(pairs)} sibling pairs across {len(graph.members)} members")
    return pairs
