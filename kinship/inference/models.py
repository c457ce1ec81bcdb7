"""Pydantic models for the relationship inference API."""

from __future__ import annotations

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

class RelationshipDetailOut(BaseModel):
    variant: str  # sibling, cousin, line, in_law
    kind: str | None = None
    shared_parent_ids: list[str] | None = None
    degree: int | None = None
    removed: int | None = None
    common_ancestor_id: str | None = None
    gen_from: int | None = None
    gen_to: int | None = None
    via_member_id: str | None = None


class InferredRelationshipOut(BaseModel):
    from_id: str
    to_id: str
    type: str
    label: str
    category: str  # immediate, extended, in-law
    is_blood_relative: bool
    is_in_law: bool
    generational_distance: int
    degree_of_separation: int
    confidence: float
    path_description: str
    detail: RelationshipDetailOut | None = None


class RelationshipBetweenOut(BaseModel):
    member_a: str
    member_b: str
    relationship: InferredRelationshipOut | None = None


class GroupedRelationshipsOut(BaseModel):
    immediate: list[InferredRelationshipOut]
    extended: list[InferredRelationshipOut]
    in_laws: list[InferredRelationshipOut]


class MemberOut(BaseModel):
    id: str
    name: str | None = None


class RelationshipWithDetailsOut(BaseModel):
    relationship: InferredRelationshipOut
    from_member: MemberOut
    to_member: MemberOut
    description: str


class PairDescriptionOut(BaseModel):
    found: bool
    description: str
    category: str | None = None
    relationship: InferredRelationshipOut | None = None


class BatchRelationshipIn(BaseModel):
    from_member_id: str
    to_member_ids: list[str]
    max_generations: int | None = None


class BatchRelationshipOut(BaseModel):
    to_member_id: str
    relationship: InferredRelationshipOut | None = None


# ---------------------------------------------------------------------------
# Lineage and siblings
# ---------------------------------------------------------------------------

class LineageOut(BaseModel):
    member_id: str
    generation: int
    path: list[str]


class SiblingOut(BaseModel):
    sibling_id: str
    kind: str  # full, half, step
    shared_parent_ids: list[str]


class SiblingCheckOut(BaseModel):
    are_siblings: bool
    kind: str | None = None


class SiblingPairOut(BaseModel):
    member1_id: str
    member2_id: str
    kind: str


class CommonAncestorOut(BaseModel):
    ancestor_id: str
    generation_from_first: int
    generation_from_second: int


class GeneticRelationshipOut(BaseModel):
    are_related: bool
    common_ancestors: list[CommonAncestorOut]
    is_ancestor_descendant: bool
    generations: int | None = None


# ---------------------------------------------------------------------------
# Tree-wide
# ---------------------------------------------------------------------------

class CousinPairOut(BaseModel):
    member1_id: str
    member2_id: str
    cousin_label: str
    combined_generation: int


class RelationshipSummaryOut(BaseModel):
    total_members: int
    counts_by_type: dict[str, int]
    blood_relative_count: int
    in_law_count: int


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

class KnownConnectionsIn(BaseModel):
    parent_ids: list[str] = []
    child_ids: list[str] = []
    spouse_ids: list[str] = []
