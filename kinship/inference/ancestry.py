"""Ancestor/descendant index: generation-bounded breadth-first walks.

Edge kinds are not filtered here; adopted, step and foster links count the
same as biological ones. Whether a relation is "blood" is decided by callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from kinship.inference.graph import GraphSnapshot

DEFAULT_MAX_GENERATIONS = 4


@dataclass(frozen=True)
class LineageInfo:
    member_id: str
    generation: int  # 1 = parent/child, 2 = grandparent/grandchild, ...
    path: tuple[str, ...]  # start member first, this member last


AncestorInfo = LineageInfo
DescendantInfo = LineageInfo


def _walk(
    start_id: str,
    step: Callable[[str], list[str]],
    max_generations: int,
) -> dict[str, LineageInfo]:
    found: dict[str, LineageInfo] = {}
    visited = {start_id}
    frontier: list[tuple[str, tuple[str, ...]]] = [(start_id, (start_id,))]
    generation = 0

    while frontier and generation < max_generations:
        generation += 1
        next_frontier: list[tuple[str, tuple[str, ...]]] = []
        for member_id, path in frontier:
            for nxt in sorted(step(member_id)):
                # First time reached is the closest; cycles stop here too
                if nxt in visited:
                    continue
                visited.add(nxt)
                info = LineageInfo(member_id=nxt, generation=generation, path=path + (nxt,))
                found[nxt] = info
                next_frontier.append((nxt, info.path))
        frontier = next_frontier

    return found


def ancestors_of(
    snapshot: GraphSnapshot,
    member_id: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
) -> dict[str, AncestorInfo]:
    """Ancestors of ``member_id`` keyed by id, each with its closest generation."""
    snapshot.require(member_id)
    return _walk(member_id, snapshot.parents_of, max_generations)


def descendants_of(
    snapshot: GraphSnapshot,
    member_id: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
) -> dict[str, DescendantInfo]:
    """Mirror of :func:`ancestors_of` following child edges."""
    snapshot.require(member_id)
    return _walk(member_id, snapshot.children_of, max_generations)


# ---------------------------------------------------------------------------
# Shared ancestry between two members
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommonAncestor:
    ancestor_id: str
    generation_from_first: int
    generation_from_second: int


@dataclass(frozen=True)
class GeneticRelationship:
    are_related: bool
    common_ancestors: tuple[CommonAncestor, ...] = ()
    is_ancestor_descendant: bool = False
    generations: int | None = None  # set only when one is the other's ancestor


def genetic_relationship(
    snapshot: GraphSnapshot,
    first_id: str,
    second_id: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
) -> GeneticRelationship:
    """Shared ancestors of two members, closest first.

    A direct line short-circuits: when one member is an ancestor of the other
    the report carries that generation and no common ancestors.
    """
    first = ancestors_of(snapshot, first_id, max_generations)
    second = ancestors_of(snapshot, second_id, max_generations)

    for ancestors, other_id in ((first, second_id), (second, first_id)):
        if other_id in ancestors:
            return GeneticRelationship(
                are_related=True,
                is_ancestor_descendant=True,
                generations=ancestors[other_id].generation,
            )

    common = sorted(
        (
            CommonAncestor(aid, info.generation, second[aid].generation)
            for aid, info in first.items()
            if aid in second
        ),
        key=lambda c: (c.generation_from_first + c.generation_from_second, c.ancestor_id),
    )
    return GeneticRelationship(are_related=bool(common), common_ancestors=tuple(common))
