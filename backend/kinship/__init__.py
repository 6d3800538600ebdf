from .errors import KinshipError, KinshipInputError
from .models import (
    Gender,
    ParentChildType,
    MarriageStatus,
    SiblingType,
    Member,
    ParentChildEdge,
    MarriageEdge,
    TreeSnapshot,
    InferredRelationship,
    SiblingClassification,
    ValidationIssue,
    ValidationResult,
    CousinPair,
    RelationshipSummary,
    GroupedRelationships,
    RelationshipWithMembers,
    KnownConnections,
)
from .config import ConsanguinityRules, EngineSettings, load_settings
from .cache import LRUTTLCache
from .graph import FamilyGraph, build_family_graph, assign_generation_levels
from .ancestry import AncestryIndex, ancestors_of, descendants_of, find_common_ancestors, closest_common_ancestor
from .siblings import sibling_type, find_siblings_of_member, all_sibling_pairs
from .resolver import infer, infer_all_for_member, describe_relationship, relationship_category
from .in_laws import in_laws_for_member, in_law_between
from .consanguinity import validate_marriage, format_validation_errors
from .aggregate import TreeAggregator
from .engine import KinshipEngine

__all__ = [
    "KinshipError",
    "KinshipInputError",
    # Entities
    "Gender",
    "ParentChildType",
    "MarriageStatus",
    "SiblingType",
    "Member",
    "ParentChildEdge",
    "MarriageEdge",
    "TreeSnapshot",
    # Derived facts
    "InferredRelationship",
    "SiblingClassification",
    "ValidationIssue",
    "ValidationResult",
    "CousinPair",
    "RelationshipSummary",
    "GroupedRelationships",
    "RelationshipWithMembers",
    "KnownConnections",
    # Configuration
    "ConsanguinityRules",
    "EngineSettings",
    "load_settings",
    "LRUTTLCache",
    # Engine components
    "FamilyGraph",
    "build_family_graph",
    "assign_generation_levels",
    "AncestryIndex",
    "ancestors_of",
    "descendants_of",
    "find_common_ancestors",
    "closest_common_ancestor",
    "sibling_type",
    "find_siblings_of_member",
    "all_sibling_pairs",
    "infer",
    "infer_all_for_member",
    "describe_relationship",
    "relationship_category",
    "in_laws_for_member",
    "in_law_between",
    "validate_marriage",
    "format_validation_errors",
    "TreeAggregator",
    "KinshipEngine",  # One engine per loaded snapshot
]
