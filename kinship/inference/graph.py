"""Graph snapshot: immutable in-memory read of one family tree.

Members, parent-child edges and marriages are loaded once by the caller and
indexed into adjacency maps. Every traversal in the engine reads from here;
nothing in this package writes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from kinship.inference.errors import MemberNotFoundError

logger = logging.getLogger("kinship.inference.graph")


class ParentChildKind(str, Enum):
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


# Edge kinds that make two children of the same parent blood siblings.
BLOOD_KINDS: frozenset[ParentChildKind] = frozenset(
    {ParentChildKind.BIOLOGICAL, ParentChildKind.ADOPTED}
)


@dataclass(frozen=True)
class Member:
    id: str
    name: str | None = None


@dataclass(frozen=True)
class ParentChildEdge:
    parent_id: str
    child_id: str
    kind: ParentChildKind = ParentChildKind.BIOLOGICAL


@dataclass(frozen=True)
class MarriageEdge:
    spouse1_id: str
    spouse2_id: str
    status: MarriageStatus = MarriageStatus.MARRIED


@dataclass(frozen=True)
class GraphSnapshot:
    """Read-only family graph for one tree.

    Inputs are stored as tuples. Edges that reference an id missing from
    ``members`` are left out of the indexes.
    """

    tree_id: str | None
    members: tuple[Member, ...]
    parent_child: tuple[ParentChildEdge, ...] = ()
    marriages: tuple[MarriageEdge, ...] = ()

    def __post_init__(self) -> None:
        for name in ("members", "parent_child", "marriages"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        members = {m.id: m for m in self.members}
        # child_id -> {parent_id: kind}, parent_id -> [child_ids], id -> [spouse_ids]
        parents: dict[str, dict[str, ParentChildKind]] = {}
        children: dict[str, list[str]] = {}
        spouses: dict[str, list[str]] = {}
        skipped = 0

        for e in self.parent_child:
            if e.parent_id not in members or e.child_id not in members:
                skipped += 1
                continue
            kinds = parents.setdefault(e.child_id, {})
            if e.parent_id not in kinds:
                kinds[e.parent_id] = ParentChildKind(e.kind)
                children.setdefault(e.parent_id, []).append(e.child_id)

        for m in self.marriages:
            if m.spouse1_id == m.spouse2_id:
                continue
            if m.spouse1_id not in members or m.spouse2_id not in members:
                skipped += 1
                continue
            for a, b in ((m.spouse1_id, m.spouse2_id), (m.spouse2_id, m.spouse1_id)):
                linked = spouses.setdefault(a, [])
                if b not in linked:
                    linked.append(b)

        for ids in children.values():
            ids.sort()
        for ids in spouses.values():
            ids.sort()
        if skipped:
            logger.debug("Snapshot %s: skipped %d edges to unknown members", self.tree_id, skipped)

        object.__setattr__(self, "_members", members)
        object.__setattr__(self, "_parents", parents)
        object.__setattr__(self, "_children", children)
        object.__setattr__(self, "_spouses", spouses)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._members

    def __len__(self) -> int:
        return len(self._members)

    def member_ids(self) -> list[str]:
        """All member ids, sorted."""
        return sorted(self._members)

    def get(self, member_id: str) -> Member | None:
        return self._members.get(member_id)

    def require(self, member_id: str) -> Member:
        """Return the member or raise if it is not part of this snapshot."""
        member = self._members.get(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def parents_of(self, member_id: str) -> list[str]:
        return sorted(self._parents.get(member_id, {}))

    def parent_kind(self, child_id: str, parent_id: str) -> ParentChildKind | None:
        return self._parents.get(child_id, {}).get(parent_id)

    def children_of(self, member_id: str) -> list[str]:
        return self._children.get(member_id, [])

    def spouses_of(self, member_id: str) -> list[str]:
        return self._spouses.get(member_id, [])

    def stats(self) -> dict:
        return {
            "tree_id": self.tree_id,
            "members": len(self._members),
            "parent_child_edges": sum(len(p) for p in self._parents.values()),
            "marriages": sum(len(s) for s in self._spouses.values()) // 2,
        }
