"""Relationship inference service: loads a tree once, then runs the engine.

Validates that trees and members exist, keeps both members of a pair inside
one tree, and moves batch work off the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from kinship.inference import aggregator
from kinship.inference import db as idb
from kinship.inference.ancestry import (
    GeneticRelationship,
    LineageInfo,
    ancestors_of,
    descendants_of,
    genetic_relationship,
)
from kinship.inference.classifier import InferredRelationship, classify
from kinship.inference.config import config
from kinship.inference.errors import InferenceError, MemberNotFoundError, TreeNotFoundError
from kinship.inference.graph import GraphSnapshot, Member
from kinship.inference.siblings import (
    SiblingCheck,
    SiblingPair,
    SiblingRelationship,
    are_siblings,
    sibling_pairs,
    siblings_of,
)

logger = logging.getLogger("kinship.inference.service")


@dataclass
class DetailedRelationship:
    relationship: InferredRelationship
    from_member: Member
    to_member: Member
    description: str


async def tree_snapshot(tree_id: str) -> GraphSnapshot:
    """Load a tree's snapshot, raising TreeNotFoundError for unknown trees."""
    tree = await idb.get_tree(tree_id)
    if tree is None:
        raise TreeNotFoundError(tree_id)
    return await idb.load_snapshot(tree_id)


async def member_snapshot(tree_id: str, member_id: str) -> GraphSnapshot:
    snapshot = await tree_snapshot(tree_id)
    snapshot.require(member_id)
    return snapshot


# ---------------------------------------------------------------------------
# Pairs
# ---------------------------------------------------------------------------

async def _member_tree(member_id: str) -> str:
    row = await idb.get_member(member_id)
    if row is None:
        raise MemberNotFoundError(member_id)
    return str(row["family_tree_id"])


async def pair_snapshot(member_a: str, member_b: str) -> GraphSnapshot:
    """Snapshot of the tree both members belong to."""
    tree_id = await _member_tree(member_a)
    if tree_id != await _member_tree(member_b):
        raise InferenceError("Members must belong to the same family tree")
    return await tree_snapshot(tree_id)


async def relationship_between(
    member_a: str,
    member_b: str,
    max_generations: int | None = None,
) -> InferredRelationship | None:
    """Classify two members, resolving their tree from the members themselves."""
    snapshot = await pair_snapshot(member_a, member_b)
    return classify(
        snapshot,
        member_a,
        member_b,
        max_generations or config.default_max_generations,
    )


async def describe_between(
    member_a: str,
    member_b: str,
    max_generations: int | None = None,
) -> aggregator.PairDescription:
    snapshot = await pair_snapshot(member_a, member_b)
    rel = classify(
        snapshot, member_a, member_b, max_generations or config.default_max_generations
    )
    a, b = snapshot.require(member_a), snapshot.require(member_b)
    return aggregator.describe_pair(rel, a.name or a.id, b.name or b.id)


async def genetic_relationship_between(
    member_a: str,
    member_b: str,
    max_generations: int | None = None,
) -> GeneticRelationship:
    snapshot = await pair_snapshot(member_a, member_b)
    return genetic_relationship(
        snapshot, member_a, member_b, max_generations or config.default_max_generations
    )


async def siblings_check(member_a: str, member_b: str) -> SiblingCheck:
    snapshot = await pair_snapshot(member_a, member_b)
    return are_siblings(snapshot, member_a, member_b)


async def batch_relationships(
    from_member: str,
    to_members: list[str],
    max_generations: int | None = None,
) -> list[aggregator.BatchResult]:
    """Classify one member against many; targets in other trees get no relationship."""
    snapshot = await tree_snapshot(await _member_tree(from_member))
    return await asyncio.to_thread(
        aggregator.classify_many,
        snapshot,
        from_member,
        to_members,
        max_generations or config.default_max_generations,
    )


# ---------------------------------------------------------------------------
# One member
# ---------------------------------------------------------------------------

async def relationships_for_member(
    tree_id: str,
    member_id: str,
    max_generations: int | None = None,
) -> list[InferredRelationship]:
    snapshot = await member_snapshot(tree_id, member_id)
    return await asyncio.to_thread(
        aggregator.relationships_for,
        snapshot,
        member_id,
        max_generations or config.default_max_generations,
        config.batch_workers,
    )


async def grouped_relationships_for_member(
    tree_id: str,
    member_id: str,
    max_generations: int | None = None,
) -> aggregator.GroupedRelationships:
    rels = await relationships_for_member(tree_id, member_id, max_generations)
    return aggregator.group_relationships(rels)


async def relationships_with_details(
    tree_id: str,
    member_id: str,
    max_generations: int | None = None,
) -> list[DetailedRelationship]:
    snapshot = await member_snapshot(tree_id, member_id)
    rels = await asyncio.to_thread(
        aggregator.relationships_for,
        snapshot,
        member_id,
        max_generations or config.default_max_generations,
        config.batch_workers,
    )
    me = snapshot.require(member_id)
    out: list[DetailedRelationship] = []
    for rel in rels:
        other = snapshot.require(rel.to_id)
        out.append(
            DetailedRelationship(
                relationship=rel,
                from_member=me,
                to_member=other,
                description=aggregator.describe_relationship(
                    rel, me.name or me.id, other.name or other.id
                ),
            )
        )
    return out


async def member_ancestors(
    tree_id: str, member_id: str, max_generations: int | None = None
) -> dict[str, LineageInfo]:
    snapshot = await member_snapshot(tree_id, member_id)
    return ancestors_of(snapshot, member_id, max_generations or config.default_max_generations)


async def member_descendants(
    tree_id: str, member_id: str, max_generations: int | None = None
) -> dict[str, LineageInfo]:
    snapshot = await member_snapshot(tree_id, member_id)
    return descendants_of(snapshot, member_id, max_generations or config.default_max_generations)


async def member_siblings(tree_id: str, member_id: str) -> list[SiblingRelationship]:
    snapshot = await member_snapshot(tree_id, member_id)
    return siblings_of(snapshot, member_id)


async def suggestions_for_member(
    tree_id: str,
    member_id: str,
    known: aggregator.KnownConnections,
) -> list[InferredRelationship]:
    snapshot = await member_snapshot(tree_id, member_id)
    return await asyncio.to_thread(
        aggregator.suggest_relationships,
        snapshot,
        member_id,
        known,
        config.default_max_generations,
        config.suggestion_min_confidence,
        config.batch_workers,
    )


# ---------------------------------------------------------------------------
# Whole tree
# ---------------------------------------------------------------------------

async def cousins_in_tree(tree_id: str) -> list[aggregator.CousinPair]:
    snapshot = await tree_snapshot(tree_id)
    return await asyncio.to_thread(aggregator.find_all_cousins, snapshot, config.batch_workers)


async def in_laws_in_tree(tree_id: str) -> list[InferredRelationship]:
    snapshot = await tree_snapshot(tree_id)
    return await asyncio.to_thread(aggregator.find_all_in_laws, snapshot, config.batch_workers)


async def tree_summary(tree_id: str) -> aggregator.RelationshipSummary:
    snapshot = await tree_snapshot(tree_id)
    return await asyncio.to_thread(aggregator.relationship_summary, snapshot, config.batch_workers)


async def sibling_pairs_in_tree(tree_id: str) -> list[SiblingPair]:
    snapshot = await tree_snapshot(tree_id)
    return await asyncio.to_thread(sibling_pairs, snapshot)
