"""Relationship classifier: ordered rule cascade over one snapshot.

Given two member ids, the cascade runs direct → grandparental → collateral →
cousin → in-law checks top to bottom and returns the first match. Some
relationships are specializations of others (siblings would also look like
"cousins" through a shared parent), so the order is load-bearing.

No DB, no I/O: pure functions on in-memory data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union

from kinship.inference.ancestry import DEFAULT_MAX_GENERATIONS
from kinship.inference.cache import MemberCache
from kinship.inference.graph import GraphSnapshot
from kinship.inference.siblings import SiblingKind

COUSIN_CONFIDENCE = 0.95


class RelationshipType(str, Enum):
    # Direct
    SPOUSE = "spouse"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    HALF_SIBLING = "half-sibling"
    STEP_SIBLING = "step-sibling"
    # Lineal
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    GREAT_GRANDPARENT = "great-grandparent"
    GREAT_GRANDCHILD = "great-grandchild"
    # Collateral
    UNCLE = "uncle"
    NEPHEW = "nephew"
    # Cousins
    FIRST_COUSIN = "first-cousin"
    SECOND_COUSIN = "second-cousin"
    THIRD_COUSIN = "third-cousin"
    FIRST_COUSIN_ONCE_REMOVED = "first-cousin-once-removed"
    FIRST_COUSIN_TWICE_REMOVED = "first-cousin-twice-removed"
    SECOND_COUSIN_ONCE_REMOVED = "second-cousin-once-removed"
    COUSIN = "cousin"  # any other degree/removed, see CousinDetail
    # In-laws
    PARENT_IN_LAW = "parent-in-law"
    CHILD_IN_LAW = "child-in-law"
    SIBLING_IN_LAW = "sibling-in-law"
    GRANDPARENT_IN_LAW = "grandparent-in-law"
    GRANDCHILD_IN_LAW = "grandchild-in-law"


COUSIN_TYPES: frozenset[RelationshipType] = frozenset({
    RelationshipType.FIRST_COUSIN,
    RelationshipType.SECOND_COUSIN,
    RelationshipType.THIRD_COUSIN,
    RelationshipType.FIRST_COUSIN_ONCE_REMOVED,
    RelationshipType.FIRST_COUSIN_TWICE_REMOVED,
    RelationshipType.SECOND_COUSIN_ONCE_REMOVED,
    RelationshipType.COUSIN,
})

IN_LAW_TYPES: frozenset[RelationshipType] = frozenset({
    RelationshipType.PARENT_IN_LAW,
    RelationshipType.CHILD_IN_LAW,
    RelationshipType.SIBLING_IN_LAW,
    RelationshipType.GRANDPARENT_IN_LAW,
    RelationshipType.GRANDCHILD_IN_LAW,
})

_LABELS: dict[RelationshipType, str] = {
    RelationshipType.SPOUSE: "Spouse",
    RelationshipType.PARENT: "Parent",
    RelationshipType.CHILD: "Child",
    RelationshipType.SIBLING: "Sibling",
    RelationshipType.HALF_SIBLING: "Half-Sibling",
    RelationshipType.STEP_SIBLING: "Step-Sibling",
    RelationshipType.GRANDPARENT: "Grandparent",
    RelationshipType.GRANDCHILD: "Grandchild",
    RelationshipType.GREAT_GRANDPARENT: "Great-Grandparent",
    RelationshipType.GREAT_GRANDCHILD: "Great-Grandchild",
    RelationshipType.UNCLE: "Uncle/Aunt",
    RelationshipType.NEPHEW: "Nephew/Niece",
    RelationshipType.PARENT_IN_LAW: "Parent-in-Law",
    RelationshipType.CHILD_IN_LAW: "Child-in-Law",
    RelationshipType.SIBLING_IN_LAW: "Sibling-in-Law",
    RelationshipType.GRANDPARENT_IN_LAW: "Grandparent-in-Law",
    RelationshipType.GRANDCHILD_IN_LAW: "Grandchild-in-Law",
}

_SIBLING_TYPES: dict[SiblingKind, RelationshipType] = {
    SiblingKind.FULL: RelationshipType.SIBLING,
    SiblingKind.HALF: RelationshipType.HALF_SIBLING,
    SiblingKind.STEP: RelationshipType.STEP_SIBLING,
}

_NAMED_COUSINS: dict[tuple[int, int], RelationshipType] = {
    (1, 0): RelationshipType.FIRST_COUSIN,
    (2, 0): RelationshipType.SECOND_COUSIN,
    (3, 0): RelationshipType.THIRD_COUSIN,
    (1, 1): RelationshipType.FIRST_COUSIN_ONCE_REMOVED,
    (1, 2): RelationshipType.FIRST_COUSIN_TWICE_REMOVED,
    (2, 1): RelationshipType.SECOND_COUSIN_ONCE_REMOVED,
}


# ---------------------------------------------------------------------------
# Variant payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiblingDetail:
    kind: SiblingKind
    shared_parent_ids: tuple[str, ...]


@dataclass(frozen=True)
class CousinDetail:
    degree: int
    removed: int
    common_ancestor_id: str
    gen_from: int  # generations from the "from" member to the common ancestor
    gen_to: int


@dataclass(frozen=True)
class LineDetail:
    """Uncle/nephew: the parent or sibling the relation runs through."""
    via_member_id: str


@dataclass(frozen=True)
class InLawDetail:
    """The spouse, child, sibling or grandchild the in-law link runs through."""
    via_member_id: str


Detail = Union[SiblingDetail, CousinDetail, LineDetail, InLawDetail, None]


@dataclass(frozen=True)
class InferredRelationship:
    from_id: str
    to_id: str
    type: RelationshipType
    label: str
    is_blood_relative: bool
    is_in_law: bool
    # Lineal: >0 "to" is older, <0 younger. Cousins: gen_to - gen_from.
    generational_distance: int
    degree_of_separation: int
    confidence: float
    path_description: str
    detail: Detail = None

    @property
    def is_cousin(self) -> bool:
        return self.type in COUSIN_TYPES


# ---------------------------------------------------------------------------
# Cousin arithmetic
# ---------------------------------------------------------------------------

class CousinInfo(NamedTuple):
    type: RelationshipType
    label: str
    degree: int
    removed: int


def ordinal(n: int) -> str:
    return {1: "First", 2: "Second", 3: "Third"}.get(n, f"{n}th")


def removed_word(removed: int) -> str:
    if removed == 1:
        return "Once"
    if removed == 2:
        return "Twice"
    return f"{removed} Times"


def cousin_relationship(gen1: int, gen2: int) -> CousinInfo:
    """Cousin type and label from each person's distance to the shared ancestor."""
    removed = abs(gen1 - gen2)
    degree = min(gen1, gen2) - 1
    if removed == 0:
        label = f"{ordinal(degree)} Cousin"
    else:
        label = f"{ordinal(degree)} Cousin {removed_word(removed)} Removed"
    rtype = _NAMED_COUSINS.get((degree, removed), RelationshipType.COUSIN)
    return CousinInfo(type=rtype, label=label, degree=degree, removed=removed)


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------

def _rel(
    a: str,
    b: str,
    rtype: RelationshipType,
    distance: int,
    degree: int,
    path: str,
    *,
    blood: bool = True,
    in_law: bool = False,
    confidence: float = 1.0,
    detail: Detail = None,
    label: str | None = None,
) -> InferredRelationship:
    return InferredRelationship(
        from_id=a,
        to_id=b,
        type=rtype,
        label=label or _LABELS[rtype],
        is_blood_relative=blood,
        is_in_law=in_law,
        generational_distance=distance,
        degree_of_separation=degree,
        confidence=confidence,
        path_description=path,
        detail=detail,
    )


def _direct(snapshot: GraphSnapshot, cache: MemberCache, a: str, b: str) -> InferredRelationship | None:
    if b in snapshot.spouses_of(a):
        return _rel(a, b, RelationshipType.SPOUSE, 0, 1, "Directly married", blood=False)
    if b in snapshot.parents_of(a):
        return _rel(a, b, RelationshipType.PARENT, 1, 1, "Direct parent")
    if b in snapshot.children_of(a):
        return _rel(a, b, RelationshipType.CHILD, -1, 1, "Direct child")

    sibling = cache.siblings(a).get(b)
    if sibling is not None:
        rtype = _SIBLING_TYPES[sibling.kind]
        label = _LABELS[rtype]
        return _rel(
            a, b, rtype, 0, 1,
            f"{label} (shares {len(sibling.shared_parent_ids)} parent(s))",
            blood=sibling.kind != SiblingKind.STEP,
            detail=SiblingDetail(sibling.kind, sibling.shared_parent_ids),
        )
    return None


def _lineal(cache: MemberCache, a: str, b: str, max_generations: int) -> InferredRelationship | None:
    up = cache.ancestors(a, max_generations).get(b)
    if up is not None:
        if up.generation == 2:
            return _rel(a, b, RelationshipType.GRANDPARENT, 2, 2, "Parent's parent")
        if up.generation == 3:
            return _rel(a, b, RelationshipType.GREAT_GRANDPARENT, 3, 3, "Grandparent's parent")

    down = cache.descendants(a, max_generations).get(b)
    if down is not None:
        if down.generation == 2:
            return _rel(a, b, RelationshipType.GRANDCHILD, -2, 2, "Child's child")
        if down.generation == 3:
            return _rel(a, b, RelationshipType.GREAT_GRANDCHILD, -3, 3, "Grandchild's child")
    return None


def _collateral(snapshot: GraphSnapshot, cache: MemberCache, a: str, b: str) -> InferredRelationship | None:
    # One hop only: great-uncles and great-nephews are not classified here
    for pid in snapshot.parents_of(a):
        link = cache.siblings(pid).get(b)
        if link is not None:
            return _rel(
                a, b, RelationshipType.UNCLE, 1, 2, "Parent's sibling",
                blood=link.kind != SiblingKind.STEP,
                detail=LineDetail(pid),
            )

    for sib in cache.siblings(a).values():
        if b in snapshot.children_of(sib.sibling_id):
            return _rel(
                a, b, RelationshipType.NEPHEW, -1, 2, "Sibling's child",
                blood=sib.kind != SiblingKind.STEP,
                detail=LineDetail(sib.sibling_id),
            )
    return None


def closest_common_ancestor(
    cache: MemberCache, a: str, b: str, max_generations: int
) -> tuple[str, int, int] | None:
    """(ancestor_id, gen_from_a, gen_from_b) minimizing the combined generation.

    Ties resolve to the lowest ancestor id so results never depend on
    dict ordering.
    """
    anc_a = cache.ancestors(a, max_generations)
    anc_b = cache.ancestors(b, max_generations)
    common = [
        (info.generation + anc_b[aid].generation, aid, info.generation, anc_b[aid].generation)
        for aid, info in anc_a.items()
        if aid in anc_b
    ]
    if not common:
        return None
    _, ancestor_id, gen1, gen2 = min(common)
    return ancestor_id, gen1, gen2


def _cousin(a: str, b: str, closest: tuple[str, int, int]) -> InferredRelationship | None:
    ancestor_id, gen1, gen2 = closest

    if gen1 == 1 and gen2 == 1:
        # Siblings should have matched earlier; do not double-classify
        return None

    # Degree 0 covers great-uncle/great-nephew shapes: "0th Cousin Twice Removed"
    info = cousin_relationship(gen1, gen2)
    return _rel(
        a, b, info.type, gen2 - gen1, gen1 + gen2,
        f"Through common ancestor {gen1} and {gen2} generations back",
        confidence=COUSIN_CONFIDENCE,
        label=info.label,
        detail=CousinDetail(
            degree=info.degree,
            removed=info.removed,
            common_ancestor_id=ancestor_id,
            gen_from=gen1,
            gen_to=gen2,
        ),
    )


def _in_law(snapshot: GraphSnapshot, cache: MemberCache, a: str, b: str) -> InferredRelationship | None:
    def in_law(rtype: RelationshipType, distance: int, degree: int, path: str, via: str):
        return _rel(
            a, b, rtype, distance, degree, path,
            blood=False, in_law=True, detail=InLawDetail(via),
        )

    for sp in snapshot.spouses_of(a):
        if b in snapshot.parents_of(sp):
            return in_law(RelationshipType.PARENT_IN_LAW, 1, 2, "Spouse's parent", sp)
        if b in cache.siblings(sp):
            return in_law(RelationshipType.SIBLING_IN_LAW, 0, 2, "Spouse's sibling", sp)
        grand = cache.ancestors(sp, 2).get(b)
        if grand is not None and grand.generation == 2:
            return in_law(RelationshipType.GRANDPARENT_IN_LAW, 2, 3, "Spouse's grandparent", sp)

    for child in snapshot.children_of(a):
        if b in snapshot.spouses_of(child):
            return in_law(RelationshipType.CHILD_IN_LAW, -1, 2, "Child's spouse", child)

    for sib in cache.siblings(a):
        if b in snapshot.spouses_of(sib):
            return in_law(RelationshipType.SIBLING_IN_LAW, 0, 2, "Sibling's spouse", sib)

    for gid, info in cache.descendants(a, 2).items():
        if info.generation == 2 and b in snapshot.spouses_of(gid):
            return in_law(RelationshipType.GRANDCHILD_IN_LAW, -2, 3, "Grandchild's spouse", gid)
    return None


def classify(
    snapshot: GraphSnapshot,
    id_a: str,
    id_b: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
    cache: MemberCache | None = None,
) -> InferredRelationship | None:
    """Classify how ``id_b`` is related to ``id_a``, or None if unrelated.

    Raises MemberNotFoundError when either id is not in the snapshot. Pass a
    shared ``cache`` when classifying many pairs from the same snapshot.
    """
    snapshot.require(id_a)
    snapshot.require(id_b)
    if id_a == id_b:
        return None
    if cache is None:
        cache = MemberCache(snapshot)

    found = (
        _direct(snapshot, cache, id_a, id_b)
        or _lineal(cache, id_a, id_b, max_generations)
        or _collateral(snapshot, cache, id_a, id_b)
    )
    if found is not None:
        return found

    # A shared ancestor settles the pair: cousin or nothing, never in-law
    closest = closest_common_ancestor(cache, id_a, id_b, max_generations)
    if closest is not None:
        return _cousin(id_a, id_b, closest)

    return _in_law(snapshot, cache, id_a, id_b)
