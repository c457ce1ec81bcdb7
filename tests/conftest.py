"""Shared snapshot fixtures.

The main family, used across most tests:

    p1 = p2                  (married)
      |-- c1 = s1  -> g1
      `-- c2 = s2  -> g2

``deep_family`` adds gg1 (child of g1) and gg2 (child of g2).
"""

from __future__ import annotations

import pytest

from kinship.inference.graph import (
    GraphSnapshot,
    MarriageEdge,
    MarriageStatus,
    Member,
    ParentChildEdge,
    ParentChildKind,
)

FAMILY_EDGES = [
    ("p1", "c1"), ("p2", "c1"),
    ("p1", "c2"), ("p2", "c2"),
    ("c1", "g1"), ("s1", "g1"),
    ("c2", "g2"), ("s2", "g2"),
]
FAMILY_MARRIAGES = [("p1", "p2"), ("c1", "s1"), ("c2", "s2")]


def build_snapshot(edges=(), marriages=(), members=(), tree_id="tree-1") -> GraphSnapshot:
    """Snapshot from ``(parent, child[, kind])`` and ``(spouse1, spouse2[, status])`` tuples."""
    ids = set(members)
    parent_child = []
    for parent, child, *kind in edges:
        parent_child.append(
            ParentChildEdge(parent, child, ParentChildKind(kind[0]) if kind else ParentChildKind.BIOLOGICAL)
        )
        ids.update((parent, child))
    marriage_edges = []
    for a, b, *status in marriages:
        marriage_edges.append(
            MarriageEdge(a, b, MarriageStatus(status[0]) if status else MarriageStatus.MARRIED)
        )
        ids.update((a, b))
    return GraphSnapshot(
        tree_id=tree_id,
        members=[Member(id=i, name=i.upper()) for i in sorted(ids)],
        parent_child=parent_child,
        marriages=marriage_edges,
    )


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def family() -> GraphSnapshot:
    return build_snapshot(FAMILY_EDGES, FAMILY_MARRIAGES)


@pytest.fixture
def deep_family() -> GraphSnapshot:
    return build_snapshot(FAMILY_EDGES + [("g1", "gg1"), ("g2", "gg2")], FAMILY_MARRIAGES)


@pytest.fixture
def blended_family() -> GraphSnapshot:
    """m1 and m2 each bring a child into their marriage, then have one together.

    m1 -> a (bio), m2 -> b (bio), m1 + m2 -> j, m1 -> f (foster), x adopted by m1 + m2.
    """
    return build_snapshot(
        [
            ("m1", "a"),
            ("m2", "b"),
            ("m1", "j"), ("m2", "j"),
            ("m1", "f", "foster"),
            ("m1", "x", "adopted"), ("m2", "x", "adopted"),
        ],
        [("m1", "m2")],
    )
