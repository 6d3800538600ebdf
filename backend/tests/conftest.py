"""Shared fixtures for kinship engine tests.

The sample family (tree "t1"):

    George + Grace
    ├── Arthur + Alice
    │   ├── Carl + Fiona            (Fiona was first married to Oscar, divorced)
    │   │   ├── Henry
    │   │   │   └── Mia
    │   │   └── Iris
    │   └── Diana + Greg
    │       └── Jack
    └── Beatrice + Bob
        └── Edward + Kate
            └── Liam

    Oscar + Fiona (divorced) -> Nora
    Oscar + Uma              Uma -> Vera
"""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kinship import (
    Gender,
    KinshipEngine,
    MarriageEdge,
    MarriageStatus,
    Member,
    ParentChildEdge,
    TreeSnapshot,
    build_family_graph,
)


M, F = Gender.MALE, Gender.FEMALE

MEMBERS = [
    ("gg1", "George", "Smith", M),
    ("gg2", "Grace", "Smith", F),
    ("a1", "Arthur", "Smith", M),
    ("a2", "Alice", "Smith", F),
    ("b1", "Beatrice", "Jones", F),
    ("b2", "Bob", "Jones", M),
    ("c1", "Carl", "Smith", M),
    ("c2", "Diana", "Brown", F),
    ("e1", "Edward", "Jones", M),
    ("f1", "Fiona", "Smith", F),
    ("o1", "Oscar", "Gray", M),
    ("g1", "Greg", "Brown", M),
    ("k1", "Kate", "Jones", F),
    ("h1", "Henry", "Smith", M),
    ("i1", "Iris", "Smith", F),
    ("n1", "Nora", "Gray", F),
    ("j1", "Jack", "Brown", M),
    ("l1", "Liam", "Jones", M),
    ("m1", "Mia", "Smith", F),
    ("u1", "Uma", "Gray", F),
    ("v1", "Vera", "Gray", F),
]

PARENT_CHILD = [
    ("gg1", "a1"), ("gg2", "a1"),
    ("gg1", "b1"), ("gg2", "b1"),
    ("a1", "c1"), ("a2", "c1"),
    ("a1", "c2"), ("a2", "c2"),
    ("b1", "e1"), ("b2", "e1"),
    ("c1", "h1"), ("f1", "h1"),
    ("c1", "i1"), ("f1", "i1"),
    ("o1", "n1"), ("f1", "n1"),
    ("c2", "j1"), ("g1", "j1"),
    ("e1", "l1"), ("k1", "l1"),
    ("h1", "m1"),
    ("u1", "v1"),
]

MARRIAGES = [
    ("gg1", "gg2", MarriageStatus.MARRIED),
    ("a1", "a2", MarriageStatus.MARRIED),
    ("b1", "b2", MarriageStatus.WIDOWED),
    ("c1", "f1", MarriageStatus.MARRIED),
    ("o1", "f1", MarriageStatus.DIVORCED),
    ("c2", "g1", MarriageStatus.MARRIED),
    ("e1", "k1", MarriageStatus.MARRIED),
    ("o1", "u1", MarriageStatus.MARRIED),
]


@pytest.fixture
def family_snapshot():
    """The sample family as a tree snapshot."""
    return TreeSnapshot(
        tree_id="t1",
        members=[
            Member(id=mid, tree_id="t1", first_name=first, last_name=last, gender=gender)
            for mid, first, last, gender in MEMBERS
        ],
        parent_child_edges=[
            ParentChildEdge(parent_id=parent, child_id=child, tree_id="t1")
            for parent, child in PARENT_CHILD
        ],
        marriage_edges=[
            MarriageEdge(spouse1_id=a, spouse2_id=b, status=status, tree_id="t1")
            for a, b, status in MARRIAGES
        ],
    )


@pytest.fixture
def family_graph(family_snapshot):
    """Adjacency graph of the sample family."""
    return build_family_graph(
        family_snapshot.members,
        family_snapshot.parent_child_edges,
        family_snapshot.marriage_edges,
        tree_id=family_snapshot.tree_id,
    )


@pytest.fixture
def engine(family_snapshot):
    """Strict engine over the sample family."""
    return KinshipEngine(family_snapshot)
