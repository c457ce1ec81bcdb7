"""Database query helpers that load one tree into a GraphSnapshot.

The whole tree is read in four queries; traversal then happens in memory.
"""

from __future__ import annotations

import logging

import asyncpg

from kinship.db import get_pool
from kinship.inference.graph import (
    GraphSnapshot,
    MarriageEdge,
    MarriageStatus,
    Member,
    ParentChildEdge,
    ParentChildKind,
)

logger = logging.getLogger("kinship.inference.db")


# ---------------------------------------------------------------------------
# Trees and members
# ---------------------------------------------------------------------------

async def get_tree(tree_id: str) -> asyncpg.Record | None:
    p = get_pool()
    return await p.fetchrow(
        "SELECT id, name FROM family_tree WHERE id = $1",
        tree_id,
    )


async def get_member(member_id: str) -> asyncpg.Record | None:
    p = get_pool()
    return await p.fetchrow(
        "SELECT id, family_tree_id, first_name, last_name "
        "FROM family_member WHERE id = $1",
        member_id,
    )


async def list_members(tree_id: str) -> list[asyncpg.Record]:
    p = get_pool()
    return await p.fetch(
        "SELECT id, first_name, last_name FROM family_member "
        "WHERE family_tree_id = $1 ORDER BY id",
        tree_id,
    )


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

async def list_parent_child(tree_id: str) -> list[asyncpg.Record]:
    p = get_pool()
    return await p.fetch(
        "SELECT parent_id, child_id, relationship_type::text AS kind "
        "FROM parent_child_relationship WHERE family_tree_id = $1",
        tree_id,
    )


async def list_marriages(tree_id: str) -> list[asyncpg.Record]:
    p = get_pool()
    return await p.fetch(
        "SELECT spouse1_id, spouse2_id, status::text AS status "
        "FROM marriage_connection WHERE family_tree_id = $1",
        tree_id,
    )


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

def member_name(row) -> str | None:
    parts = [row["first_name"], row["last_name"]]
    name = " ".join(p for p in parts if p)
    return name or None


async def load_snapshot(tree_id: str) -> GraphSnapshot:
    """Read members, parent-child edges and marriages of one tree."""
    members = await list_members(tree_id)
    edges = await list_parent_child(tree_id)
    marriages = await list_marriages(tree_id)

    snapshot = GraphSnapshot(
        tree_id=tree_id,
        members=[Member(id=str(r["id"]), name=member_name(r)) for r in members],
        parent_child=[
            ParentChildEdge(
                parent_id=str(r["parent_id"]),
                child_id=str(r["child_id"]),
                kind=ParentChildKind(r["kind"] or "biological"),
            )
            for r in edges
        ],
        marriages=[
            MarriageEdge(
                spouse1_id=str(r["spouse1_id"]),
                spouse2_id=str(r["spouse2_id"]),
                status=MarriageStatus(r["status"] or "married"),
            )
            for r in marriages
        ],
    )
    logger.info("Loaded snapshot %s", snapshot.stats())
    return snapshot
