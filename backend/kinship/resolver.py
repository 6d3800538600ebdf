"""
Relationship Resolver

Turns the generation distances of two members to their closest common
ancestor into a relationship tag and a readable label:

    (g, 0)  -> parent, grandparent, great-grandparent, ...
    (0, g)  -> child, grandchild, great-grandchild, ...
    (1, 1)  -> sibling / half-sibling / step-sibling
    (2, 1)  -> aunt-or-uncle, (k, 1) -> great-...-aunt-or-uncle
    (1, 2)  -> niece-or-nephew, (1, k) -> great-...-niece-or-nephew
    (g1, g2), both >= 2 -> (min - 1)th cousin |g1 - g2| times removed

The first number is the distance from the member asking, the second from the
member being described. Only blood relationships are produced here; marriages
are layered on by the in-law extender.
"""

import logging

from .ancestry import AncestryIndex, CommonAncestor, closest_common_ancestor, find_common_ancestors
from .errors import KinshipInputError
from .graph import FamilyGraph
from .models import Gender, InferredRelationship, SiblingType
from .siblings import sibling_type

logger = logging.getLogger("kingraph.kinship.resolver")


_ORDINALS = [
    "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
]

# key -> (male, female, unknown)
_WORDS = {
    "parent": ("Father", "Mother", "Parent"),
    "child": ("Son", "Daughter", "Child"),
    "sibling": ("Brother", "Sister", "Sibling"),
    "spouse": ("Husband", "Wife", "Spouse"),
    "aunt-or-uncle": ("Uncle", "Aunt", "Aunt/Uncle"),
    "niece-or-nephew": ("Nephew", "Niece", "Niece/Nephew"),
}

_SIBLING_TYPES = {
    SiblingType.FULL: "sibling",
    SiblingType.HALF: "half-sibling",
    SiblingType.STEP: "step-sibling",
}

# Cousin relationships are inferred over longer paths with more room for gaps
COUSIN_CONFIDENCE = 0.95


# ============================================================================
# Naming
# ============================================================================

def ordinal(n: int) -> str:
    """1 -> 'first' ... 10 -> 'tenth', then '11th', '21st', ..."""
    if 1 <= n <= len(_ORDINALS):
        return _ORDINALS[n - 1]
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def removal_phrase(removal: int) -> str:
    if removal == 1:
        return "once"
    if removal == 2:
        return "twice"
    return f"{removal}-times"


def cousin_type(degree: int, removal: int = 0) -> str:
    """Tag such as 'first-cousin' or 'second-cousin-twice-removed'."""
    tag = f"{ordinal(degree)}-cousin"
    if removal:
        tag += f"-{removal_phrase(removal)}-removed"
    return tag


def _lineal_type(base: str, generations: int) -> str:
    if generations == 1:
        return base
    return "great-" * (generations - 2) + "grand" + base


def classify_generations(from_generation: int, to_generation: int) -> str | None:
    """
    Relationship tag for what the 'to' member is to the 'from' member, given
    each one's distance to their closest common ancestor.
    """
    if from_generation < 0 or to_generation < 0:
        return None
    if from_generation == 0 and to_generation == 0:
        return None
    if to_generation == 0:
        return _lineal_type("parent", from_generation)
    if from_generation == 0:
        return _lineal_type("child", to_generation)
    if from_generation == 1 and to_generation == 1:
        return "sibling"
    if to_generation == 1:
        return "great-" * (from_generation - 2) + "aunt-or-uncle"
    if from_generation == 1:
        return "great-" * (to_generation - 2) + "niece-or-nephew"

    nearest = min(from_generation, to_generation)
    return cousin_type(nearest - 1, abs(from_generation - to_generation))


def _gendered(key: str, gender: Gender | None) -> str:
    male, female, neutral = _WORDS[key]
    if gender == Gender.MALE:
        return male
    if gender == Gender.FEMALE:
        return female
    return neutral


def relationship_label(relationship_type: str, gender: Gender | None = None) -> str:
    """
    Readable label for a relationship tag, e.g. 'great-grandparent' ->
    'Great-Grandparent', or 'Great-Grandmother' when the gender is known.
    Cousin labels never depend on gender.
    """
    if relationship_type.endswith("-in-law"):
        return f"{relationship_label(relationship_type[:-len('-in-law')], gender)}-in-Law"
    if relationship_type.startswith("step-"):
        return "Step-" + relationship_label(relationship_type[len("step-"):], gender)
    if relationship_type.startswith("half-"):
        return "Half-" + relationship_label(relationship_type[len("half-"):], gender)

    rest = relationship_type
    greats = 0
    while rest.startswith("great-"):
        greats += 1
        rest = rest[len("great-"):]

    if rest in ("grandparent", "grandchild"):
        word = "Grand" + _gendered(rest[len("grand"):], gender).lower()
    elif rest in _WORDS:
        word = _gendered(rest, gender)
    else:
        word = " ".join(part.capitalize() for part in rest.split("-"))
    return "Great-" * greats + word


_IMMEDIATE_TYPES = {"parent", "child", "spouse", "sibling", "half-sibling", "step-sibling"}


def relationship_category(relationship_type: str) -> str:
    """Bucket a relationship tag into 'immediate', 'extended' or 'in-law'."""
    if relationship_type in _IMMEDIATE_TYPES:
        return "immediate"
    if relationship_type.endswith("-in-law") or relationship_type.startswith("step-"):
        return "in-law"
    return "extended"


def _generations(n: int) -> str:
    return "1 generation" if n == 1 else f"{n} generations"


# ============================================================================
# Inference
# ============================================================================

def _gender_of(graph: FamilyGraph, member_id: str) -> Gender | None:
    member = graph.members.get(member_id)
    return member.gender if member is not None else None


def _from_common_ancestor(
    graph: FamilyGraph,
    from_id: str,
    to_id: str,
    closest: CommonAncestor,
) -> InferredRelationship:
    gen_from, gen_to = closest.generation_a, closest.generation_b
    rel_type = classify_generations(gen_from, gen_to)
    ancestor_id = closest.ancestor_id
    path = list(closest.path_a) + list(reversed(closest.path_b[:-1]))
    is_blood = closest.lineal
    sibling = None

    if gen_from == 1 and gen_to == 1:
        classification = sibling_type(graph, from_id, to_id)
        sibling = classification.sibling_type
        rel_type = _SIBLING_TYPES.get(sibling, "step-sibling")
        is_blood = sibling in (SiblingType.FULL, SiblingType.HALF)
        if is_blood:
            ancestor_id = classification.shared_parent_ids[0]
            path = [from_id, ancestor_id, to_id]

    cousin_degree = removal = None
    if gen_from >= 2 and gen_to >= 2:
        cousin_degree = min(gen_from, gen_to) - 1
        removal = abs(gen_from - gen_to)

    chain = " -> ".join(graph.name_of(mid) for mid in path)
    if gen_from == 0 or gen_to == 0:
        description = f"Direct line: {chain}"
    else:
        description = (
            f"Through common ancestor {graph.name_of(ancestor_id)}, "
            f"{_generations(gen_from)} above {graph.name_of(from_id)} and "
            f"{_generations(gen_to)} above {graph.name_of(to_id)}: {chain}"
        )

    return InferredRelationship(
        from_member_id=from_id,
        to_member_id=to_id,
        relationship_type=rel_type,
        relationship_label=relationship_label(rel_type, _gender_of(graph, to_id)),
        from_generation=gen_from,
        to_generation=gen_to,
        common_ancestor_id=ancestor_id,
        generational_distance=gen_from - gen_to,
        degree_of_separation=len(path) - 1,
        cousin_degree=cousin_degree,
        removal=removal,
        sibling_type=sibling,
        is_blood_relative=is_blood,
        confidence=COUSIN_CONFIDENCE if cousin_degree is not None else 1.0,
        path=path,
        path_description=description,
    )


def _step_sibling_by_marriage(graph: FamilyGraph, from_id: str, to_id: str) -> InferredRelationship | None:
    """Step-siblings whose parents are or were married share no ancestor at all."""
    if sibling_type(graph, from_id, to_id).sibling_type != SiblingType.STEP:
        return None

    path = [from_id, to_id]
    to_parents = set(graph.parent_ids(to_id))
    for parent_id in graph.parent_ids(from_id):
        linked = [s for s in graph.spouse_ids(parent_id) if s in to_parents]
        if linked:
            path = [from_id, parent_id, linked[0], to_id]
            break

    chain = " -> ".join(graph.name_of(mid) for mid in path)
    return InferredRelationship(
        from_member_id=from_id,
        to_member_id=to_id,
        relationship_type="step-sibling",
        relationship_label=relationship_label("step-sibling", _gender_of(graph, to_id)),
        from_generation=1,
        to_generation=1,
        degree_of_separation=len(path) - 1,
        sibling_type=SiblingType.STEP,
        is_blood_relative=False,
        path=path,
        path_description=f"Parents are or were married: {chain}",
    )


def infer(
    graph: FamilyGraph,
    from_id: str,
    to_id: str,
    max_generations: int | None = None,
    index: AncestryIndex | None = None,
) -> InferredRelationship | None:
    """
    Infer the blood relationship of `to_id` to `from_id`.

    Returns None when no common ancestor lies within the generation cap.
    Pass a shared `index` to reuse ancestor traversals across calls; its cap
    then takes precedence over `max_generations`.
    """
    if from_id == to_id:
        raise KinshipInputError(
            f"Cannot infer a relationship between member {from_id} and themselves",
            "SELF_COMPARISON",
        )
    if index is None:
        index = AncestryIndex(graph, max_generations)

    ancestors_from = index.ancestors(from_id)
    ancestors_to = index.ancestors(to_id)

    if to_id in ancestors_from:
        entry = ancestors_from[to_id]
        closest = CommonAncestor(to_id, entry.generation, 0, entry.path, (to_id,), entry.is_lineal)
    elif from_id in ancestors_to:
        entry = ancestors_to[from_id]
        closest = CommonAncestor(from_id, 0, entry.generation, (from_id,), entry.path, entry.is_lineal)
    else:
        closest = closest_common_ancestor(find_common_ancestors(ancestors_from, ancestors_to))

    if closest is None:
        return _step_sibling_by_marriage(graph, from_id, to_id)

    relationship = _from_common_ancestor(graph, from_id, to_id, closest)
    logger.debug(
        f"{from_id} -> {to_id}: {relationship.relationship_type} "
        f"via {relationship.common_ancestor_id} ({closest.generation_a}, {closest.generation_b})"
    )
    return relationship


def infer_all_for_member(
    graph: FamilyGraph,
    member_id: str,
    max_generations: int | None = None,
    index: AncestryIndex | None = None,
) -> list[InferredRelationship]:
    """Blood relationships of every other member to `member_id`, closest first."""
    if index is None:
        index = AncestryIndex(graph, max_generations)

    relationships = []
    for other_id in graph.members:
        if other_id == member_id:
            continue
        relationship = infer(graph, member_id, other_id, index=index)
        if relationship is not None:
            relationships.append(relationship)

    relationships.sort(key=lambda r: (r.degree_of_separation, r.relationship_label))
    return relationships


def describe_relationship(relationship: InferredRelationship, from_name: str, to_name: str) -> str:
    """One sentence such as "Dana is Ann's first cousin." followed by the path."""
    sentence = f"{to_name} is {from_name}'s {relationship.relationship_label.lower()}."
    if relationship.path_description:
        sentence += f" {relationship.path_description}"
    return sentence
