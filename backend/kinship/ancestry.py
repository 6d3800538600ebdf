"""Bounded ancestor/descendant traversal and common-ancestor lookup."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable

from .cache import LRUTTLCache
from .config import check_generation_cap
from .graph import FamilyGraph
from .models import LINEAL_TYPES, ParentChildType

logger = logging.getLogger("kingraph.kinship.ancestry")


@dataclass(frozen=True)
class LineageEntry:
    """
    One member reached by a traversal.

    `path` runs from the starting member to this one (both included) and
    `edge_types` holds the type of each parent-child edge along it.
    """
    member_id: str
    generation: int
    path: tuple[str, ...]
    edge_types: tuple[ParentChildType, ...] = ()

    @property
    def is_lineal(self) -> bool:
        """True when every edge on the path is biological or adopted."""
        return all(t in LINEAL_TYPES for t in self.edge_types)


@dataclass(frozen=True)
class CommonAncestor:
    ancestor_id: str
    generation_a: int
    generation_b: int
    path_a: tuple[str, ...]
    path_b: tuple[str, ...]
    lineal: bool = True

    @property
    def total_distance(self) -> int:
        return self.generation_a + self.generation_b


Lineage = dict[str, LineageEntry]


def _walk(
    member_id: str,
    max_generations: int,
    neighbours: Callable[[str], list[tuple[str, ParentChildType]]],
) -> Lineage:
    """
    Level-order walk from `member_id`, stopping at `max_generations`.

    BFS reaches every member first at its minimum distance; the first path
    discovered is the one kept. Visited members are never re-expanded, so
    cyclic data cannot loop.
    """
    found: Lineage = {member_id: LineageEntry(member_id, 0, (member_id,))}
    queue: deque[str] = deque([member_id])

    while queue:
        current_id = queue.popleft()
        current = found[current_id]
        if current.generation >= max_generations:
            continue

        for next_id, edge_type in neighbours(current_id):
            if next_id in found:
                continue
            found[next_id] = LineageEntry(
                member_id=next_id,
                generation=current.generation + 1,
                path=current.path + (next_id,),
                edge_types=current.edge_types + (edge_type,),
            )
            queue.append(next_id)

    return found


def ancestors_of(graph: FamilyGraph, member_id: str, max_generations: int | None = None) -> Lineage:
    """
    Ancestors of a member up to `max_generations`, keyed by ancestor id.

    The member itself is included at generation 0 so that ancestor-descendant
    pairs fall out of the common-ancestor search naturally.
    """
    cap = check_generation_cap(max_generations)
    return _walk(member_id, cap, lambda mid: graph.parents_of.get(mid, []))


def descendants_of(graph: FamilyGraph, member_id: str, max_generations: int | None = None) -> Lineage:
    """Mirror of `ancestors_of` over parent -> child edges."""
    cap = check_generation_cap(max_generations)
    return _walk(member_id, cap, lambda mid: graph.children_of.get(mid, []))


def find_common_ancestors(ancestors_a: Lineage, ancestors_b: Lineage) -> list[CommonAncestor]:
    """Members present in both lineages, in the order they were discovered from `a`."""
    common = []
    for ancestor_id, entry_a in ancestors_a.items():
        entry_b = ancestors_b.get(ancestor_id)
        if entry_b is None:
            continue
        common.append(CommonAncestor(
            ancestor_id=ancestor_id,
            generation_a=entry_a.generation,
            generation_b=entry_b.generation,
            path_a=entry_a.path,
            path_b=entry_b.path,
            lineal=entry_a.is_lineal and entry_b.is_lineal,
        ))
    return common


def closest_common_ancestor(common: list[CommonAncestor]) -> CommonAncestor | None:
    """
    Pick the common ancestor with the smallest combined distance; ties go to
    the smallest generation gap, then to the first discovered.
    """
    best = None
    for candidate in common:
        if best is None:
            best = candidate
            continue
        key = (candidate.total_distance, abs(candidate.generation_a - candidate.generation_b))
        best_key = (best.total_distance, abs(best.generation_a - best.generation_b))
        if key < best_key:
            best = candidate
    return best


class AncestryIndex:
    """
    Memoized ancestor/descendant lookups for one request or aggregate call.

    The memo lives and dies with the index. An optional caller-owned
    `LRUTTLCache` is read through, keyed by the graph fingerprint so entries
    never leak between trees or snapshot versions.
    """

    def __init__(self, graph: FamilyGraph, max_generations: int | None = None, cache: LRUTTLCache | None = None):
        self.graph = graph
        self.max_generations = check_generation_cap(max_generations)
        self._cache = cache
        self._memo: dict[tuple[str, str], Lineage] = {}

    def _lookup(self, direction: str, member_id: str, compute: Callable[[], Lineage]) -> Lineage:
        memo_key = (direction, member_id)
        if memo_key in self._memo:
            return self._memo[memo_key]

        cache_key = (self.graph.fingerprint, direction, member_id, self.max_generations)
        result = self._cache.get(cache_key) if self._cache is not None else None
        if result is None:
            result = compute()
            if self._cache is not None:
                self._cache.set(cache_key, result)

        self._memo[memo_key] = result
        return result

    def ancestors(self, member_id: str) -> Lineage:
        return self._lookup(
            "up", member_id, lambda: ancestors_of(self.graph, member_id, self.max_generations)
        )

    def descendants(self, member_id: str) -> Lineage:
        return self._lookup(
            "down", member_id, lambda: descendants_of(self.graph, member_id, self.max_generations)
        )

    @property
    def computed(self) -> int:
        """Number of traversals held in the memo."""
        return len(self._memo)
