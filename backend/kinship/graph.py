"""Adjacency structures built from one tree snapshot."""

import hashlib
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from .models import (
    LINEAL_TYPES,
    MarriageEdge,
    MarriageStatus,
    Member,
    ParentChildEdge,
    ParentChildType,
)

logger = logging.getLogger("kingraph.kinship.graph")


@dataclass
class FamilyGraph:
    """
    Adjacency maps for one tree:

    - parents_of:  child id  -> [(parent id, edge type)]
    - children_of: parent id -> [(child id, edge type)]
    - spouses_of:  member id -> [(spouse id, marriage edge)]

    Lists keep insertion order so traversals are deterministic. IDs that show
    up only on edges are kept as opaque IDs; `members` only holds real records.
    """
    members: dict[str, Member] = field(default_factory=dict)
    parents_of: dict[str, list[tuple[str, ParentChildType]]] = field(default_factory=dict)
    children_of: dict[str, list[tuple[str, ParentChildType]]] = field(default_factory=dict)
    spouses_of: dict[str, list[tuple[str, MarriageEdge]]] = field(default_factory=dict)
    tree_id: str | None = None
    fingerprint: str = ""

    @property
    def member_ids(self) -> list[str]:
        return list(self.members)

    def is_known(self, member_id: str) -> bool:
        return member_id in self.members

    def unknown_references(self) -> list[str]:
        """IDs referenced by edges that have no member record."""
        referenced: dict[str, None] = {}
        for adjacency in (self.parents_of, self.children_of, self.spouses_of):
            for member_id, links in adjacency.items():
                referenced[member_id] = None
                for other_id, _ in links:
                    referenced[other_id] = None
        return [mid for mid in referenced if mid not in self.members]

    def parent_ids(self, member_id: str, types: Iterable[ParentChildType] | None = None) -> list[str]:
        allowed = set(types) if types is not None else None
        result: list[str] = []
        for parent_id, edge_type in self.parents_of.get(member_id, []):
            if (allowed is None or edge_type in allowed) and parent_id not in result:
                result.append(parent_id)
        return result

    def lineal_parent_ids(self, member_id: str) -> list[str]:
        """Parents linked by biological or adopted edges."""
        return self.parent_ids(member_id, LINEAL_TYPES)

    def child_ids(self, member_id: str, types: Iterable[ParentChildType] | None = None) -> list[str]:
        allowed = set(types) if types is not None else None
        result: list[str] = []
        for child_id, edge_type in self.children_of.get(member_id, []):
            if (allowed is None or edge_type in allowed) and child_id not in result:
                result.append(child_id)
        return result

    def spouse_ids(self, member_id: str, statuses: Iterable[MarriageStatus] | None = None) -> list[str]:
        """Spouses of a member across all marriages (any status unless filtered)."""
        allowed = set(statuses) if statuses is not None else None
        result: list[str] = []
        for spouse_id, marriage in self.spouses_of.get(member_id, []):
            if (allowed is None or marriage.status in allowed) and spouse_id not in result:
                result.append(spouse_id)
        return result

    def name_of(self, member_id: str) -> str:
        member = self.members.get(member_id)
        if member is None:
            return member_id
        return member.full_name or member_id


def _append_unique(adjacency: dict[str, list], key: str, entry: tuple) -> None:
    links = adjacency.setdefault(key, [])
    if entry not in links:
        links.append(entry)


def _fingerprint(
    tree_id: str | None,
    members: list[Member],
    parent_child_edges: list[ParentChildEdge],
    marriage_edges: list[MarriageEdge],
) -> str:
    digest = hashlib.sha1((tree_id or "").encode("utf-8"))
    for member_id in sorted(m.id for m in members):
        digest.update(f"m:{member_id};".encode("utf-8"))
    for parent_id, child_id, edge_type in sorted(
        (e.parent_id, e.child_id, e.relationship_type.value) for e in parent_child_edges
    ):
        digest.update(f"p:{parent_id}:{child_id}:{edge_type};".encode("utf-8"))
    for a, b, status in sorted(
        (*sorted((e.spouse1_id, e.spouse2_id)), e.status.value) for e in marriage_edges
    ):
        digest.update(f"s:{a}:{b}:{status};".encode("utf-8"))
    return digest.hexdigest()


def build_family_graph(
    members: Iterable[Member],
    parent_child_edges: Iterable[ParentChildEdge] = (),
    marriage_edges: Iterable[MarriageEdge] = (),
    tree_id: str | None = None,
) -> FamilyGraph:
    """Build adjacency maps in one pass over the edges. Never raises."""
    members = list(members)
    parent_child_edges = list(parent_child_edges)
    marriage_edges = list(marriage_edges)

    graph = FamilyGraph(
        members={m.id: m for m in members},
        tree_id=tree_id,
        fingerprint=_fingerprint(tree_id, members, parent_child_edges, marriage_edges),
    )

    for edge in parent_child_edges:
        _append_unique(graph.parents_of, edge.child_id, (edge.parent_id, edge.relationship_type))
        _append_unique(graph.children_of, edge.parent_id, (edge.child_id, edge.relationship_type))

    for marriage in marriage_edges:
        _append_unique(graph.spouses_of, marriage.spouse1_id, (marriage.spouse2_id, marriage))
        _append_unique(graph.spouses_of, marriage.spouse2_id, (marriage.spouse1_id, marriage))

    logger.debug(
        f"Built graph: {len(graph.members)} members, {len(parent_child_edges)} parent-child edges, "
        f"{len(marriage_edges)} marriages"
    )
    return graph


# ============================================================================
# Generation Levels (best-effort heuristic for partial trees)
# ============================================================================

def find_root_ancestors(graph: FamilyGraph) -> list[str]:
    """
    Members with no parents in the tree, excluding members who married into
    the tree (no parents themselves, but married to someone who has parents).
    """
    roots = []
    for member_id in graph.members:
        if graph.parent_ids(member_id):
            continue
        married_in = any(graph.parent_ids(s) for s in graph.spouse_ids(member_id))
        if not married_in:
            roots.append(member_id)
    return roots


def assign_generation_levels(graph: FamilyGraph) -> dict[str, int]:
    """
    Assign a display generation to every member (0 = oldest generation).

    Heuristic steps, in order:
      1. root ancestors (see `find_root_ancestors`) start at level 0, together
         with their parentless spouses;
      2. BFS down parent -> child edges, a child sits one level below its
         deepest parent, and spouses of a child share the child's level;
      3. married-in members still unplaced take their spouse's level;
      4. anything left (disconnected or cyclic data) falls back to level 0.

    Levels never exceed the member count, so cyclic data still terminates.
    """
    levels: dict[str, int] = {}
    limit = max(len(graph.members), 1)
    queue: deque[tuple[str, int]] = deque()

    for root_id in find_root_ancestors(graph):
        if root_id not in levels:
            levels[root_id] = 0
            queue.append((root_id, 0))
        for spouse_id in graph.spouse_ids(root_id):
            if spouse_id not in levels and not graph.parent_ids(spouse_id):
                levels[spouse_id] = 0
                queue.append((spouse_id, 0))

    while queue:
        member_id, level = queue.popleft()
        if levels.get(member_id, -1) > level:
            continue  # A deeper placement was already queued
        for child_id in graph.child_ids(member_id):
            child_level = level + 1
            if child_level > limit or levels.get(child_id, -1) >= child_level:
                continue
            levels[child_id] = child_level
            queue.append((child_id, child_level))
            for spouse_id in graph.spouse_ids(child_id):
                if spouse_id not in levels and not graph.parent_ids(spouse_id):
                    levels[spouse_id] = child_level
                    queue.append((spouse_id, child_level))

    for member_id in graph.members:
        if member_id in levels:
            continue
        placed_spouses = [levels[s] for s in graph.spouse_ids(member_id) if s in levels]
        levels[member_id] = placed_spouses[0] if placed_spouses else 0

    return {member_id: levels[member_id] for member_id in graph.members}
