"""Data classes for family tree entities and the relationship facts derived from them."""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Partial dates: year only, year-month, or a full ISO date
_PARTIAL_DATE = re.compile(r"^\d{4}(-\d{2}(-\d{2})?)?$")


# ============================================================================
# Enums
# ============================================================================

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class ParentChildType(str, Enum):
    BIOLOGICAL = "biological"
    ADOPTED = "adopted"
    STEP = "step"
    FOSTER = "foster"


class MarriageStatus(str, Enum):
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"
    SEPARATED = "separated"
    ANNULLED = "annulled"


class SiblingType(str, Enum):
    FULL = "full"
    HALF = "half"
    STEP = "step"
    NONE = "none"


# Edge types that make a parent part of a member's lineage
LINEAL_TYPES = frozenset({ParentChildType.BIOLOGICAL, ParentChildType.ADOPTED})


# ============================================================================
# Graph Entities (read-only inputs)
# ============================================================================

class Member(BaseModel):
    """A person in one family tree."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    tree_id: str = Field(min_length=1)
    first_name: str
    middle_name: str | None = None
    last_name: str = ""
    nickname: str | None = None
    gender: Gender = Gender.UNKNOWN
    birth_date: str | None = Field(
        default=None,
        description="Partial ISO date: 'YYYY', 'YYYY-MM' or 'YYYY-MM-DD'."
    )
    death_date: str | None = None

    @field_validator("birth_date", "death_date")
    @classmethod
    def _check_partial_date(cls, value: str | None) -> str | None:
        if value is not None and not _PARTIAL_DATE.match(value):
            raise ValueError(f"Expected YYYY, YYYY-MM or YYYY-MM-DD, got '{value}'")
        return value

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p).strip()

    @property
    def display_name(self) -> str:
        """Full name with the nickname in quotes when one is set."""
        if self.nickname:
            return f"{self.first_name} \"{self.nickname}\" {self.last_name}".strip()
        return self.full_name


class ParentChildEdge(BaseModel):
    """Directed edge parent -> child."""
    model_config = ConfigDict(frozen=True)

    parent_id: str = Field(min_length=1)
    child_id: str = Field(min_length=1)
    relationship_type: ParentChildType = ParentChildType.BIOLOGICAL
    id: str | None = None
    tree_id: str | None = None

    @model_validator(mode="after")
    def _no_self_parentage(self) -> "ParentChildEdge":
        if self.parent_id == self.child_id:
            raise ValueError(f"Member {self.parent_id} cannot be their own parent")
        return self


class MarriageEdge(BaseModel):
    """Unordered marriage edge between two members."""
    model_config = ConfigDict(frozen=True)

    spouse1_id: str = Field(min_length=1)
    spouse2_id: str = Field(min_length=1)
    status: MarriageStatus = MarriageStatus.MARRIED
    marriage_date: str | None = None
    divorce_date: str | None = None
    id: str | None = None
    tree_id: str | None = None

    @model_validator(mode="after")
    def _distinct_spouses(self) -> "MarriageEdge":
        if self.spouse1_id == self.spouse2_id:
            raise ValueError(f"Member {self.spouse1_id} cannot be married to themselves")
        return self

    def other(self, member_id: str) -> str:
        """Return the spouse on the other side of this edge."""
        return self.spouse2_id if member_id == self.spouse1_id else self.spouse1_id


class TreeSnapshot(BaseModel):
    """A consistent, already-fetched copy of one tree's members and edges."""
    model_config = ConfigDict(frozen=True)

    tree_id: str = Field(min_length=1)
    members: list[Member] = Field(default_factory=list)
    parent_child_edges: list[ParentChildEdge] = Field(default_factory=list)
    marriage_edges: list[MarriageEdge] = Field(default_factory=list)


# ============================================================================
# Derived Facts (engine output)
# ============================================================================

class InferredRelationship(BaseModel):
    """What `to_member_id` is to `from_member_id`, and how that was derived."""
    from_member_id: str
    to_member_id: str
    relationship_type: str
    relationship_label: str
    from_generation: int = Field(description="Generations from the 'from' member up to the common ancestor.")
    to_generation: int = Field(description="Generations from the 'to' member up to the common ancestor.")
    common_ancestor_id: str | None = None
    generational_distance: int = Field(
        default=0,
        description="Positive when the 'to' member belongs to an older generation."
    )
    degree_of_separation: int = 0
    cousin_degree: int | None = None
    removal: int | None = None
    sibling_type: SiblingType | None = None
    is_blood_relative: bool = True
    is_in_law: bool = False
    confidence: float = 1.0
    path: list[str] = Field(default_factory=list)
    path_description: str = ""


class SiblingClassification(BaseModel):
    member1_id: str
    member2_id: str
    sibling_type: SiblingType
    shared_parent_ids: list[str] = Field(default_factory=list)

    @property
    def are_siblings(self) -> bool:
        return self.sibling_type != SiblingType.NONE


class ValidationIssue(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class CousinPair(BaseModel):
    member1_id: str
    member2_id: str
    relationship_type: str
    relationship_label: str
    cousin_degree: int
    removal: int
    common_ancestor_id: str | None
    degree_of_separation: int


class RelationshipSummary(BaseModel):
    tree_id: str | None = None
    total_members: int
    related_pairs: int = 0
    blood_relatives: int = 0
    in_laws: int = 0
    relationship_counts: dict[str, int] = Field(default_factory=dict)
    category_counts: dict[str, int] = Field(default_factory=dict)


class GroupedRelationships(BaseModel):
    immediate: list[InferredRelationship] = Field(default_factory=list)
    extended: list[InferredRelationship] = Field(default_factory=list)
    in_laws: list[InferredRelationship] = Field(default_factory=list)


class RelationshipWithMembers(InferredRelationship):
    from_member: Member
    to_member: Member | None = None


class KnownConnections(BaseModel):
    """Members a newly added member is already directly linked to."""
    parent_ids: list[str] = Field(default_factory=list)
    child_ids: list[str] = Field(default_factory=list)
    spouse_ids: list[str] = Field(default_factory=list)

    @property
    def member_ids(self) -> set[str]:
        return {*self.parent_ids, *self.child_ids, *self.spouse_ids}
