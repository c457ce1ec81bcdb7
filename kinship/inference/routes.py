"""Relationship inference API endpoints (read-only)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from kinship.inference import service
from kinship.inference.aggregator import KnownConnections, relationship_category
from kinship.inference.classifier import (
    CousinDetail,
    InferredRelationship,
    InLawDetail,
    LineDetail,
    SiblingDetail,
)
from kinship.inference.config import config
from kinship.inference.errors import InferenceError, MemberNotFoundError, TreeNotFoundError
from kinship.inference.models import (
    BatchRelationshipIn,
    BatchRelationshipOut,
    CommonAncestorOut,
    CousinPairOut,
    GeneticRelationshipOut,
    GroupedRelationshipsOut,
    InferredRelationshipOut,
    KnownConnectionsIn,
    LineageOut,
    MemberOut,
    PairDescriptionOut,
    RelationshipBetweenOut,
    RelationshipDetailOut,
    RelationshipSummaryOut,
    RelationshipWithDetailsOut,
    SiblingCheckOut,
    SiblingOut,
    SiblingPairOut,
)

logger = logging.getLogger("kinship.inference.routes")

router = APIRouter(prefix="/api/v1", tags=["relationships"])


def _generations():
    return Query(
        None,
        ge=1,
        le=config.max_generations_limit,
        description="How many generations to walk up/down (default from KIN_MAX_GENERATIONS)",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _http_error(exc: InferenceError) -> HTTPException:
    if isinstance(exc, (MemberNotFoundError, TreeNotFoundError)):
        return HTTPException(404, str(exc))
    logger.warning("Inference failed (%s): %s", exc.code, exc)
    return HTTPException(400, str(exc))


def _detail_out(detail) -> RelationshipDetailOut | None:
    if isinstance(detail, SiblingDetail):
        return RelationshipDetailOut(
            variant="sibling",
            kind=detail.kind.value,
            shared_parent_ids=list(detail.shared_parent_ids),
        )
    if isinstance(detail, CousinDetail):
        return RelationshipDetailOut(
            variant="cousin",
            degree=detail.degree,
            removed=detail.removed,
            common_ancestor_id=detail.common_ancestor_id,
            gen_from=detail.gen_from,
            gen_to=detail.gen_to,
        )
    if isinstance(detail, LineDetail):
        return RelationshipDetailOut(variant="line", via_member_id=detail.via_member_id)
    if isinstance(detail, InLawDetail):
        return RelationshipDetailOut(variant="in_law", via_member_id=detail.via_member_id)
    return None


def _rel_out(rel: InferredRelationship) -> InferredRelationshipOut:
    return InferredRelationshipOut(
        from_id=rel.from_id,
        to_id=rel.to_id,
        type=rel.type.value,
        label=rel.label,
        category=relationship_category(rel.type),
        is_blood_relative=rel.is_blood_relative,
        is_in_law=rel.is_in_law,
        generational_distance=rel.generational_distance,
        degree_of_separation=rel.degree_of_separation,
        confidence=rel.confidence,
        path_description=rel.path_description,
        detail=_detail_out(rel.detail),
    )


# ---------------------------------------------------------------------------
# Pairs
# ---------------------------------------------------------------------------

@router.get("/relationships/between")
async def relationship_between(
    member_a: str = Query(..., min_length=1),
    member_b: str = Query(..., min_length=1),
    max_generations: int | None = _generations(),
) -> RelationshipBetweenOut:
    """Classify how member_b is related to member_a."""
    try:
        rel = await service.relationship_between(member_a, member_b, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return RelationshipBetweenOut(
        member_a=member_a,
        member_b=member_b,
        relationship=_rel_out(rel) if rel else None,
    )


@router.get("/relationships/describe")
async def relationship_description(
    member_a: str = Query(..., min_length=1),
    member_b: str = Query(..., min_length=1),
    max_generations: int | None = _generations(),
) -> PairDescriptionOut:
    """Readable sentence for how member_b is related to member_a."""
    try:
        d = await service.describe_between(member_a, member_b, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return PairDescriptionOut(
        found=d.found,
        description=d.description,
        category=d.category,
        relationship=_rel_out(d.relationship) if d.relationship else None,
    )


@router.get("/relationships/genetic")
async def relationship_genetic(
    member_a: str = Query(..., min_length=1),
    member_b: str = Query(..., min_length=1),
    max_generations: int | None = _generations(),
) -> GeneticRelationshipOut:
    """Common ancestors of two members, or the generation gap on a direct line."""
    try:
        g = await service.genetic_relationship_between(member_a, member_b, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return GeneticRelationshipOut(
        are_related=g.are_related,
        common_ancestors=[
            CommonAncestorOut(
                ancestor_id=c.ancestor_id,
                generation_from_first=c.generation_from_first,
                generation_from_second=c.generation_from_second,
            )
            for c in g.common_ancestors
        ],
        is_ancestor_descendant=g.is_ancestor_descendant,
        generations=g.generations,
    )


@router.post("/relationships/batch")
async def relationships_batch(body: BatchRelationshipIn) -> list[BatchRelationshipOut]:
    """Classify one member against a list of others, in request order."""
    if not body.to_member_ids:
        raise HTTPException(400, "to_member_ids must not be empty")
    if body.max_generations is not None and not (
        1 <= body.max_generations <= config.max_generations_limit
    ):
        raise HTTPException(
            400, f"max_generations must be between 1 and {config.max_generations_limit}"
        )
    try:
        results = await service.batch_relationships(
            body.from_member_id, body.to_member_ids, body.max_generations
        )
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        BatchRelationshipOut(
            to_member_id=r.to_member_id,
            relationship=_rel_out(r.relationship) if r.relationship else None,
        )
        for r in results
    ]


@router.get("/siblings/check")
async def sibling_check(
    member_a: str = Query(..., min_length=1),
    member_b: str = Query(..., min_length=1),
) -> SiblingCheckOut:
    try:
        check = await service.siblings_check(member_a, member_b)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return SiblingCheckOut(
        are_siblings=check.are_siblings,
        kind=check.kind.value if check.kind else None,
    )


# ---------------------------------------------------------------------------
# One member
# ---------------------------------------------------------------------------

@router.get("/trees/{tree_id}/members/{member_id}/relationships")
async def member_relationships(
    tree_id: str,
    member_id: str,
    max_generations: int | None = _generations(),
    grouped: bool = Query(False, description="Group into immediate / extended / in-laws"),
) -> list[InferredRelationshipOut] | GroupedRelationshipsOut:
    """All relationships of a member, closest first."""
    try:
        if grouped:
            g = await service.grouped_relationships_for_member(tree_id, member_id, max_generations)
            return GroupedRelationshipsOut(
                immediate=[_rel_out(r) for r in g.immediate],
                extended=[_rel_out(r) for r in g.extended],
                in_laws=[_rel_out(r) for r in g.in_laws],
            )
        rels = await service.relationships_for_member(tree_id, member_id, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [_rel_out(r) for r in rels]


@router.get("/trees/{tree_id}/members/{member_id}/relationships/details")
async def member_relationships_with_details(
    tree_id: str,
    member_id: str,
    max_generations: int | None = _generations(),
) -> list[RelationshipWithDetailsOut]:
    """All relationships of a member with both members' names."""
    try:
        rows = await service.relationships_with_details(tree_id, member_id, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        RelationshipWithDetailsOut(
            relationship=_rel_out(d.relationship),
            from_member=MemberOut(id=d.from_member.id, name=d.from_member.name),
            to_member=MemberOut(id=d.to_member.id, name=d.to_member.name),
            description=d.description,
        )
        for d in rows
    ]


@router.get("/trees/{tree_id}/members/{member_id}/ancestors")
async def member_ancestors(
    tree_id: str,
    member_id: str,
    max_generations: int | None = _generations(),
) -> list[LineageOut]:
    try:
        found = await service.member_ancestors(tree_id, member_id, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        LineageOut(member_id=i.member_id, generation=i.generation, path=list(i.path))
        for i in sorted(found.values(), key=lambda i: (i.generation, i.member_id))
    ]


@router.get("/trees/{tree_id}/members/{member_id}/descendants")
async def member_descendants(
    tree_id: str,
    member_id: str,
    max_generations: int | None = _generations(),
) -> list[LineageOut]:
    try:
        found = await service.member_descendants(tree_id, member_id, max_generations)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        LineageOut(member_id=i.member_id, generation=i.generation, path=list(i.path))
        for i in sorted(found.values(), key=lambda i: (i.generation, i.member_id))
    ]


@router.get("/trees/{tree_id}/members/{member_id}/siblings")
async def member_siblings(tree_id: str, member_id: str) -> list[SiblingOut]:
    try:
        sibs = await service.member_siblings(tree_id, member_id)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        SiblingOut(
            sibling_id=s.sibling_id,
            kind=s.kind.value,
            shared_parent_ids=list(s.shared_parent_ids),
        )
        for s in sibs
    ]


@router.post("/trees/{tree_id}/members/{member_id}/suggestions")
async def member_suggestions(
    tree_id: str,
    member_id: str,
    body: KnownConnectionsIn | None = None,
) -> list[InferredRelationshipOut]:
    """Relationships a newly linked member probably also has."""
    known = KnownConnections(
        parent_ids=body.parent_ids if body else [],
        child_ids=body.child_ids if body else [],
        spouse_ids=body.spouse_ids if body else [],
    )
    try:
        rels = await service.suggestions_for_member(tree_id, member_id, known)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [_rel_out(r) for r in rels]


# ---------------------------------------------------------------------------
# Whole tree
# ---------------------------------------------------------------------------

@router.get("/trees/{tree_id}/siblings")
async def tree_siblings(tree_id: str) -> list[SiblingPairOut]:
    """Every sibling pair in the tree, lower id first."""
    try:
        pairs = await service.sibling_pairs_in_tree(tree_id)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        SiblingPairOut(member1_id=p.member1_id, member2_id=p.member2_id, kind=p.kind.value)
        for p in pairs
    ]


@router.get("/trees/{tree_id}/cousins")
async def tree_cousins(tree_id: str) -> list[CousinPairOut]:
    """Every cousin pair in the tree."""
    try:
        pairs = await service.cousins_in_tree(tree_id)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [
        CousinPairOut(
            member1_id=p.member1_id,
            member2_id=p.member2_id,
            cousin_label=p.cousin_label,
            combined_generation=p.combined_generation,
        )
        for p in pairs
    ]


@router.get("/trees/{tree_id}/in-laws")
async def tree_in_laws(tree_id: str) -> list[InferredRelationshipOut]:
    """Every in-law pair in the tree."""
    try:
        rels = await service.in_laws_in_tree(tree_id)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return [_rel_out(r) for r in rels]


@router.get("/trees/{tree_id}/relationships/summary")
async def tree_relationship_summary(tree_id: str) -> RelationshipSummaryOut:
    """Relationship counts across all member pairs."""
    try:
        s = await service.tree_summary(tree_id)
    except InferenceError as exc:
        raise _http_error(exc) from exc
    return RelationshipSummaryOut(
        total_members=s.total_members,
        counts_by_type=s.counts_by_type,
        blood_relative_count=s.blood_relative_count,
        in_law_count=s.in_law_count,
    )
