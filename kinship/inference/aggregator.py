"""Tree-wide aggregator: batch operations built on the classifier.

Every batch owns one BatchContext: the snapshot, a per-member cache shared by
all pairs of the batch, and the explicit set of pairs already processed.
Pair loops can be spread over worker threads; the cache is warmed for every
member first so workers only read it.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Iterable, TypeVar

from kinship.inference.ancestry import DEFAULT_MAX_GENERATIONS
from kinship.inference.cache import MemberCache
from kinship.inference.classifier import (
    COUSIN_TYPES,
    IN_LAW_TYPES,
    InferredRelationship,
    RelationshipType,
    classify,
)
from kinship.inference.graph import GraphSnapshot

logger = logging.getLogger("kinship.inference.aggregator")

SUGGESTION_MIN_CONFIDENCE = 0.8

T = TypeVar("T")

IMMEDIATE_TYPES: frozenset[RelationshipType] = frozenset({
    RelationshipType.PARENT,
    RelationshipType.CHILD,
    RelationshipType.SPOUSE,
    RelationshipType.SIBLING,
    RelationshipType.HALF_SIBLING,
    RelationshipType.STEP_SIBLING,
})


# ---------------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CousinPair:
    member1_id: str
    member2_id: str
    cousin_label: str
    combined_generation: int


@dataclass
class RelationshipSummary:
    total_members: int
    counts_by_type: dict[str, int]
    blood_relative_count: int
    in_law_count: int


@dataclass
class GroupedRelationships:
    immediate: list[InferredRelationship] = field(default_factory=list)
    extended: list[InferredRelationship] = field(default_factory=list)
    in_laws: list[InferredRelationship] = field(default_factory=list)


@dataclass(frozen=True)
class BatchResult:
    to_member_id: str
    relationship: InferredRelationship | None


@dataclass(frozen=True)
class PairDescription:
    found: bool
    description: str
    category: str | None = None
    relationship: InferredRelationship | None = None


@dataclass
class KnownConnections:
    """Relatives the caller has already linked to a new member."""

    parent_ids: list[str] = field(default_factory=list)
    child_ids: list[str] = field(default_factory=list)
    spouse_ids: list[str] = field(default_factory=list)

    def all_ids(self) -> set[str]:
        return {*self.parent_ids, *self.child_ids, *self.spouse_ids}


# ---------------------------------------------------------------------------
# Batch context
# ---------------------------------------------------------------------------

class BatchContext:
    """State scoped to one batch invocation."""

    def __init__(
        self,
        snapshot: GraphSnapshot,
        max_generations: int = DEFAULT_MAX_GENERATIONS,
        workers: int = 1,
    ) -> None:
        self.snapshot = snapshot
        self.max_generations = max_generations
        self.workers = max(1, workers)
        self.cache = MemberCache(snapshot)
        self.processed: set[tuple[str, str]] = set()
        self._lock = Lock()

    def claim(self, a: str, b: str) -> bool:
        """Mark an unordered pair processed; False if it already was."""
        key = (a, b) if a < b else (b, a)
        with self._lock:
            if key in self.processed:
                return False
            self.processed.add(key)
            return True

    def classify(self, a: str, b: str) -> InferredRelationship | None:
        return classify(self.snapshot, a, b, self.max_generations, cache=self.cache)

    def unordered_pairs(self) -> list[list[tuple[str, str]]]:
        """Pairs (i, j) with i < j, partitioned by first member."""
        ids = self.snapshot.member_ids()
        return [[(a, b) for b in ids[i + 1:]] for i, a in enumerate(ids)]

    def run(
        self,
        partitions: list[list[tuple[str, str]]],
        visit: Callable[[str, str, InferredRelationship], T | None],
    ) -> list[T]:
        """Classify every unclaimed pair and collect non-None ``visit`` results.

        Results keep partition order whatever the worker count.
        """
        def work(chunk: list[tuple[str, str]]) -> list[T]:
            out: list[T] = []
            for a, b in chunk:
                if not self.claim(a, b):
                    continue
                rel = self.classify(a, b)
                if rel is None:
                    continue
                item = visit(a, b, rel)
                if item is not None:
                    out.append(item)
            return out

        if self.workers == 1 or len(partitions) < 2:
            chunks = [work(c) for c in partitions]
        else:
            self.cache.warm(self.snapshot.member_ids(), self.max_generations)
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                chunks = list(pool.map(work, partitions))
        return [item for chunk in chunks for item in chunk]


def _timed(name: str, ctx: BatchContext, started: float) -> None:
    logger.info(
        "%s: tree=%s members=%d pairs=%d workers=%d elapsed=%.3fs cache=%s",
        name,
        ctx.snapshot.tree_id,
        len(ctx.snapshot),
        len(ctx.processed),
        ctx.workers,
        time.perf_counter() - started,
        ctx.cache.stats(),
    )


# ---------------------------------------------------------------------------
# Per-member operations
# ---------------------------------------------------------------------------

def relationships_for(
    snapshot: GraphSnapshot,
    member_id: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
    workers: int = 1,
) -> list[InferredRelationship]:
    """Every relationship of one member, closest first."""
    snapshot.require(member_id)
    started = time.perf_counter()
    ctx = BatchContext(snapshot, max_generations, workers)
    others = [mid for mid in snapshot.member_ids() if mid != member_id]

    # Ordered pairs here: direction matters for the label
    results = ctx.run(
        [[(member_id, other)] for other in others],
        lambda a, b, rel: rel,
    )
    results.sort(key=lambda r: (r.degree_of_separation, r.label))
    _timed("relationships_for", ctx, started)
    return results


def suggest_relationships(
    snapshot: GraphSnapshot,
    new_member_id: str,
    known_connections: KnownConnections | None = None,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
    min_confidence: float = SUGGESTION_MIN_CONFIDENCE,
    workers: int = 1,
) -> list[InferredRelationship]:
    """Relationships a user has probably not declared yet for a new member."""
    snapshot.require(new_member_id)
    started = time.perf_counter()
    known = known_connections.all_ids() if known_connections else set()
    ctx = BatchContext(snapshot, max_generations, workers)
    others = [
        mid for mid in snapshot.member_ids()
        if mid != new_member_id and mid not in known
    ]

    results = ctx.run(
        [[(new_member_id, other)] for other in others],
        lambda a, b, rel: rel if rel.confidence >= min_confidence else None,
    )
    results.sort(key=lambda r: r.confidence, reverse=True)
    _timed("suggest_relationships", ctx, started)
    return results


def classify_many(
    snapshot: GraphSnapshot,
    from_id: str,
    to_ids: Iterable[str],
    max_generations: int = DEFAULT_MAX_GENERATIONS,
) -> list[BatchResult]:
    """Classify one member against each target, in request order.

    Targets outside the snapshot come back with no relationship.
    """
    snapshot.require(from_id)
    started = time.perf_counter()
    ctx = BatchContext(snapshot, max_generations)
    results = [
        BatchResult(
            to_member_id=to_id,
            relationship=ctx.classify(from_id, to_id) if to_id in snapshot else None,
        )
        for to_id in to_ids
    ]
    _timed("classify_many", ctx, started)
    return results


# ---------------------------------------------------------------------------
# Tree-wide scans
# ---------------------------------------------------------------------------

def find_all_cousins(snapshot: GraphSnapshot, workers: int = 1) -> list[CousinPair]:
    started = time.perf_counter()
    ctx = BatchContext(snapshot, DEFAULT_MAX_GENERATIONS, workers)

    def visit(a: str, b: str, rel: InferredRelationship) -> CousinPair | None:
        if rel.type not in COUSIN_TYPES:
            return None
        return CousinPair(
            member1_id=a,
            member2_id=b,
            cousin_label=rel.label,
            combined_generation=rel.degree_of_separation,
        )

    results = ctx.run(ctx.unordered_pairs(), visit)
    _timed("find_all_cousins", ctx, started)
    return results


def find_all_in_laws(snapshot: GraphSnapshot, workers: int = 1) -> list[InferredRelationship]:
    started = time.perf_counter()
    ctx = BatchContext(snapshot, DEFAULT_MAX_GENERATIONS, workers)
    results = ctx.run(
        ctx.unordered_pairs(),
        lambda a, b, rel: rel if rel.is_in_law else None,
    )
    _timed("find_all_in_laws", ctx, started)
    return results


def relationship_summary(snapshot: GraphSnapshot, workers: int = 1) -> RelationshipSummary:
    started = time.perf_counter()
    ctx = BatchContext(snapshot, DEFAULT_MAX_GENERATIONS, workers)
    found = ctx.run(ctx.unordered_pairs(), lambda a, b, rel: rel)

    counts: dict[str, int] = {}
    for rel in found:
        counts[rel.type.value] = counts.get(rel.type.value, 0) + 1

    summary = RelationshipSummary(
        total_members=len(snapshot),
        counts_by_type=counts,
        blood_relative_count=sum(1 for r in found if r.is_blood_relative),
        in_law_count=sum(1 for r in found if r.is_in_law),
    )
    _timed("relationship_summary", ctx, started)
    return summary


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

def relationship_category(rtype: RelationshipType) -> str:
    if rtype in IMMEDIATE_TYPES:
        return "immediate"
    if rtype in IN_LAW_TYPES:
        return "in-law"
    return "extended"


def group_relationships(relationships: Iterable[InferredRelationship]) -> GroupedRelationships:
    grouped = GroupedRelationships()
    buckets = {
        "immediate": grouped.immediate,
        "extended": grouped.extended,
        "in-law": grouped.in_laws,
    }
    for rel in relationships:
        buckets[relationship_category(rel.type)].append(rel)
    return grouped


def describe_relationship(rel: InferredRelationship, from_name: str, to_name: str) -> str:
    """e.g. "Ann is Bob's first cousin. Through common ancestor 2 and 2 generations back"."""
    return f"{from_name} is {to_name}'s {rel.label.lower()}. {rel.path_description}"


def describe_pair(
    rel: InferredRelationship | None, from_name: str, to_name: str
) -> PairDescription:
    if rel is None:
        return PairDescription(
            found=False,
            description=f"No known relationship found between {from_name} and {to_name}",
        )
    return PairDescription(
        found=True,
        description=describe_relationship(rel, from_name, to_name),
        category=relationship_category(rel.type),
        relationship=rel,
    )
