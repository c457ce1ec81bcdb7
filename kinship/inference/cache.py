"""Request-scoped per-member cache of ancestor/descendant/sibling lookups.

One cache lives for a single classify call or a single batch; it is never
shared across requests. Entries are built once and then only read, so a
warmed cache can be handed to worker threads.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Iterable, TypeVar

from kinship.inference.ancestry import LineageInfo, ancestors_of, descendants_of
from kinship.inference.graph import GraphSnapshot
from kinship.inference.siblings import SiblingRelationship, siblings_of

logger = logging.getLogger("kinship.inference.cache")

T = TypeVar("T")


class MemberCache:
    """Memoizes traversals per (member, generation bound)."""

    def __init__(self, snapshot: GraphSnapshot) -> None:
        self.snapshot = snapshot
        self._lock = Lock()
        self._ancestors: dict[tuple[str, int], dict[str, LineageInfo]] = {}
        self._descendants: dict[tuple[str, int], dict[str, LineageInfo]] = {}
        self._siblings: dict[str, dict[str, SiblingRelationship]] = {}
        self.hits = 0
        self.misses = 0

    def _memo(self, store: dict, key, build: Callable[[], T]) -> T:
        with self._lock:
            if key in store:
                self.hits += 1
                return store[key]
        value = build()
        with self._lock:
            self.misses += 1
            return store.setdefault(key, value)

    def ancestors(self, member_id: str, max_generations: int) -> dict[str, LineageInfo]:
        return self._memo(
            self._ancestors,
            (member_id, max_generations),
            lambda: ancestors_of(self.snapshot, member_id, max_generations),
        )

    def descendants(self, member_id: str, max_generations: int) -> dict[str, LineageInfo]:
        return self._memo(
            self._descendants,
            (member_id, max_generations),
            lambda: descendants_of(self.snapshot, member_id, max_generations),
        )

    def siblings(self, member_id: str) -> dict[str, SiblingRelationship]:
        """Siblings keyed by sibling id (insertion order = sorted id)."""
        return self._memo(
            self._siblings,
            member_id,
            lambda: {s.sibling_id: s for s in siblings_of(self.snapshot, member_id)},
        )

    def warm(self, member_ids: Iterable[str], max_generations: int) -> None:
        """Pre-compute every lookup a classify call can make for these members."""
        count = 0
        for mid in member_ids:
            self.ancestors(mid, max_generations)
            self.ancestors(mid, 2)
            self.descendants(mid, max_generations)
            self.descendants(mid, 2)
            self.siblings(mid)
            count += 1
        logger.debug("Warmed member cache for %d members (max_generations=%d)", count, max_generations)

    def stats(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "ancestor_entries": len(self._ancestors),
            "descendant_entries": len(self._descendants),
            "sibling_entries": len(self._siblings),
        }
