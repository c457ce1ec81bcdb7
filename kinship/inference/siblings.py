"""Sibling classifier: full / half / step from shared parents."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kinship.inference.graph import BLOOD_KINDS, GraphSnapshot


class SiblingKind(str, Enum):
    FULL = "full"
    HALF = "half"
    STEP = "step"


@dataclass(frozen=True)
class SiblingRelationship:
    member_id: str
    sibling_id: str
    kind: SiblingKind
    shared_parent_ids: tuple[str, ...]


def _blood_shared(snapshot: GraphSnapshot, a: str, b: str, shared: set[str]) -> set[str]:
    return {
        pid
        for pid in shared
        if snapshot.parent_kind(a, pid) in BLOOD_KINDS
        and snapshot.parent_kind(b, pid) in BLOOD_KINDS
    }


def _parents_married(snapshot: GraphSnapshot, parents_a: set[str], parents_b: set[str]) -> bool:
    for pid in parents_a:
        for spouse in snapshot.spouses_of(pid):
            if spouse in parents_b and spouse != pid:
                return True
    return False


def classify_sibling(snapshot: GraphSnapshot, member_id: str, other_id: str) -> SiblingKind | None:
    """Sibling kind between two members, or None when they are not siblings."""
    if member_id == other_id:
        return None
    parents = set(snapshot.parents_of(member_id))
    other_parents = set(snapshot.parents_of(other_id))
    if not parents or not other_parents:
        return None

    shared = parents & other_parents
    # One blood link makes them blood siblings; the count of shared parents decides full or half
    if _blood_shared(snapshot, member_id, other_id, shared):
        return SiblingKind.FULL if len(shared) >= 2 else SiblingKind.HALF
    # Shared only through step/foster edges, or raised together via a parent's marriage
    if shared or _parents_married(snapshot, parents, other_parents):
        return SiblingKind.STEP
    return None


def siblings_of(snapshot: GraphSnapshot, member_id: str) -> list[SiblingRelationship]:
    """All siblings of ``member_id``, sorted by sibling id."""
    snapshot.require(member_id)
    parents = snapshot.parents_of(member_id)
    if not parents:
        return []

    candidates: set[str] = set()
    for pid in parents:
        candidates.update(snapshot.children_of(pid))
        for spouse in snapshot.spouses_of(pid):
            candidates.update(snapshot.children_of(spouse))
    candidates.discard(member_id)

    parent_set = set(parents)
    results: list[SiblingRelationship] = []
    for sid in sorted(candidates):
        kind = classify_sibling(snapshot, member_id, sid)
        if kind is None:
            continue
        shared = parent_set & set(snapshot.parents_of(sid))
        results.append(
            SiblingRelationship(
                member_id=member_id,
                sibling_id=sid,
                kind=kind,
                shared_parent_ids=tuple(sorted(shared)),
            )
        )
    return results


@dataclass(frozen=True)
class SiblingCheck:
    are_siblings: bool
    kind: SiblingKind | None = None


@dataclass(frozen=True)
class SiblingPair:
    member1_id: str
    member2_id: str
    kind: SiblingKind


def are_siblings(snapshot: GraphSnapshot, member_id: str, other_id: str) -> SiblingCheck:
    snapshot.require(member_id)
    snapshot.require(other_id)
    kind = classify_sibling(snapshot, member_id, other_id)
    return SiblingCheck(are_siblings=kind is not None, kind=kind)


def sibling_pairs(snapshot: GraphSnapshot) -> list[SiblingPair]:
    """Every sibling pair in the tree once, lower id first."""
    pairs: list[SiblingPair] = []
    for member_id in snapshot.member_ids():
        for sib in siblings_of(snapshot, member_id):
            if member_id < sib.sibling_id:
                pairs.append(SiblingPair(member_id, sib.sibling_id, sib.kind))
    return pairs
