"""
Consanguinity Validator

Checks a proposed marriage against an ordered rule table. The first rule
that applies decides the outcome, so a half-sibling pair that are also
cousins through another line is reported as a sibling marriage.
"""

import logging
from typing import Any

from .ancestry import Lineage, closest_common_ancestor, find_common_ancestors
from .config import ConsanguinityRules
from .models import Member, SiblingClassification, SiblingType, ValidationIssue, ValidationResult
from .resolver import classify_generations, relationship_label

logger = logging.getLogger("kingraph.kinship.consanguinity")

__all__ = [
    "ConsanguinityRules",
    "validate_marriage",
    "format_validation_errors",
]


def _identify(spouse: Member | str) -> tuple[str, str]:
    if isinstance(spouse, Member):
        return spouse.id, spouse.full_name or spouse.id
    return spouse, spouse


def _error(code: str, message: str, **details: Any) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        errors=[ValidationIssue(code=code, message=message, details=details)],
    )


def _warning(code: str, message: str, **details: Any) -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        warnings=[ValidationIssue(code=code, message=message, details=details)],
    )


def _error_or_warning(blocked: bool, code: str, message: str, **details: Any) -> ValidationResult:
    if blocked:
        return _error(code, message, **details)
    return _warning(code, message, **details)


def _within(lineage: Lineage, max_degree: int) -> Lineage:
    return {mid: entry for mid, entry in lineage.items() if entry.generation <= max_degree}


def validate_marriage(
    spouse1: Member | str,
    spouse2: Member | str,
    ancestors1: Lineage,
    ancestors2: Lineage,
    sibling_info: SiblingClassification | None = None,
    rules: ConsanguinityRules | None = None,
) -> ValidationResult:
    """
    Validate a proposed marriage between two members.

    `ancestors1`/`ancestors2` are the lineages of each spouse (self included
    at generation 0) and `sibling_info` is their sibling classification.
    Common ancestors further than `rules.max_kinship_degree` generations from
    either spouse are ignored. Never raises for consanguinity findings.
    """
    rules = rules or ConsanguinityRules()
    id1, name1 = _identify(spouse1)
    id2, name2 = _identify(spouse2)
    names = {"person1_name": name1, "person2_name": name2}

    if id1 == id2:
        return _error("SELF_RELATIONSHIP", "A person cannot marry themselves", **names)

    # Siblings
    if sibling_info is not None and sibling_info.are_siblings:
        kind = sibling_info.sibling_type
        if kind == SiblingType.FULL:
            return _error(
                "SIBLING_MARRIAGE",
                f"{name1} and {name2} cannot marry because they are full siblings.",
                relationship="full siblings", **names,
            )
        if kind == SiblingType.HALF:
            verb = "cannot marry because they are" if rules.block_half_sibling_marriage else "are"
            return _error_or_warning(
                rules.block_half_sibling_marriage,
                "HALF_SIBLING_MARRIAGE",
                f"{name1} and {name2} {verb} half-siblings.",
                relationship="half siblings", **names,
            )
        if kind == SiblingType.STEP:
            if rules.block_step_sibling_marriage:
                message = f"{name1} and {name2} cannot marry because they are step-siblings."
            else:
                message = f"{name1} and {name2} are step-siblings. This marriage is allowed but may be unusual."
            return _error_or_warning(
                rules.block_step_sibling_marriage,
                "STEP_SIBLING_MARRIAGE",
                message,
                relationship="step siblings", **names,
            )

    ancestors1 = _within(ancestors1, rules.max_kinship_degree)
    ancestors2 = _within(ancestors2, rules.max_kinship_degree)

    # Direct lineage
    if id2 in ancestors1 or id1 in ancestors2:
        generations = ancestors1[id2].generation if id2 in ancestors1 else ancestors2[id1].generation
        details = {"generations": generations, **names}
        if generations == 1:
            return _error(
                "PARENT_CHILD_MARRIAGE",
                f"{name1} and {name2} cannot marry because one is the parent of the other.",
                relationship="parent-child", **details,
            )
        if generations == 2:
            return _error(
                "GRANDPARENT_GRANDCHILD_MARRIAGE",
                f"{name1} and {name2} cannot marry because one is the grandparent of the other.",
                relationship="grandparent-grandchild", **details,
            )
        return _error(
            "ANCESTOR_DESCENDANT_MARRIAGE",
            f"{name1} and {name2} cannot marry because one is a direct ancestor of the other "
            f"({generations} generations apart).",
            relationship="ancestor-descendant", **details,
        )

    closest = closest_common_ancestor(find_common_ancestors(ancestors1, ancestors2))
    if closest is None:
        return ValidationResult()

    gen1, gen2 = closest.generation_a, closest.generation_b
    details = {
        "common_ancestor_id": closest.ancestor_id,
        "generation_from_person1": gen1,
        "generation_from_person2": gen2,
        **names,
    }

    if gen1 == 1 and gen2 == 1:
        # Shared parent without sibling information from the caller
        return _error(
            "SIBLING_MARRIAGE",
            f"{name1} and {name2} cannot marry because they share a parent.",
            relationship="siblings", **details,
        )

    if (gen1, gen2) in ((1, 2), (2, 1)):
        return _error(
            "AUNT_UNCLE_NIECE_NEPHEW_MARRIAGE",
            f"{name1} and {name2} cannot marry because one is the aunt/uncle of the other.",
            relationship="aunt/uncle and niece/nephew", **details,
        )

    if gen1 == 2 and gen2 == 2:
        if rules.block_first_cousin_marriage:
            return _error(
                "FIRST_COUSIN_MARRIAGE",
                f"{name1} and {name2} cannot marry because they are first cousins.",
                relationship="first cousins", **details,
            )
        return _warning(
            "DISTANT_RELATIVE_MARRIAGE",
            f"{name1} and {name2} are first cousins. This marriage may be restricted in some jurisdictions.",
            relationship="first cousins", **details,
        )

    relationship = relationship_label(classify_generations(gen1, gen2)).lower()
    if gen1 >= 3 and gen2 >= 3:
        return _warning(
            "SECOND_COUSIN_MARRIAGE",
            f"{name2} is {name1}'s {relationship}. This marriage is typically allowed.",
            relationship=relationship, **details,
        )

    return _warning(
        "COLLATERAL_RELATIVE_MARRIAGE",
        f"{name2} is {name1}'s {relationship} through a shared ancestor.",
        relationship=relationship, **details,
    )


def format_validation_errors(result: ValidationResult) -> str:
    """Join error messages into one string; empty when the marriage is valid."""
    if result.is_valid:
        return ""
    return " ".join(error.message for error in result.errors)
