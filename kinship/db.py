"""Database pool management and stats helpers for kinship-engine."""

from __future__ import annotations

import os

import asyncpg

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_DB_HOST = os.environ.get("KIN_DB_HOST", "localhost")
_DB_PORT = os.environ.get("KIN_DB_PORT", "5432")
_DB_USER = os.environ.get("KIN_DB_USER", "postgres")
_DB_PASSWORD = os.environ.get("KIN_DB_PASSWORD", "postgres")
_DB_NAME = os.environ.get("KIN_DB_NAME", "family_tree")

DATABASE_URL = os.environ.get(
    "KIN_DATABASE_URL",
    f"postgresql://{_DB_USER}:{_DB_PASSWORD}@{_DB_HOST}:{_DB_PORT}/{_DB_NAME}",
)

# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------

_pool: asyncpg.Pool | None = None


async def init_pool() -> asyncpg.Pool:
    """Create the global asyncpg connection pool."""
    global _pool
    _pool = await asyncpg.create_pool(
        DATABASE_URL,
        min_size=2,
        max_size=10,
    )
    return _pool


async def close_pool() -> None:
    """Gracefully close the connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None


def get_pool() -> asyncpg.Pool:
    """Return the pool, raising if not initialized."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized")
    return _pool


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

async def get_stats() -> dict:
    """Aggregate row counts for the metrics endpoint."""
    p = get_pool()
    return {
        "total_trees": await p.fetchval("SELECT COUNT(*) FROM family_tree"),
        "total_members": await p.fetchval("SELECT COUNT(*) FROM family_member"),
        "total_parent_child": await p.fetchval("SELECT COUNT(*) FROM parent_child_relationship"),
        "total_marriages": await p.fetchval("SELECT COUNT(*) FROM marriage_connection"),
    }
