"""HTTP tests for the inference router against a stubbed snapshot loader."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kinship.inference import db as idb
from kinship.inference.routes import router

from conftest import FAMILY_EDGES, FAMILY_MARRIAGES, build_snapshot


@pytest.fixture
def client(monkeypatch):
    snap = build_snapshot(FAMILY_EDGES, FAMILY_MARRIAGES, tree_id="tree-1")

    async def get_tree(tree_id):
        return {"id": tree_id, "name": "Family"} if tree_id == "tree-1" else None

    async def get_member(member_id):
        return {"id": member_id, "family_tree_id": "tree-1"} if member_id in snap else None

    async def load_snapshot(tree_id):
        return snap

    monkeypatch.setattr(idb, "get_tree", get_tree)
    monkeypatch.setattr(idb, "get_member", get_member)
    monkeypatch.setattr(idb, "load_snapshot", load_snapshot)

    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


class TestBetween:

    def test_cousins(self, client):
        r = client.get("/api/v1/relationships/between", params={"member_a": "g1", "member_b": "g2"})
        assert r.status_code == 200
        rel = r.json()["relationship"]
        assert rel["type"] == "first-cousin"
        assert rel["category"] == "extended"
        assert rel["detail"]["variant"] == "cousin"
        assert rel["detail"]["common_ancestor_id"] == "p1"

    def test_unrelated(self, client):
        r = client.get("/api/v1/relationships/between", params={"member_a": "s1", "member_b": "s2"})
        assert r.status_code == 200
        assert r.json()["relationship"] is None

    def test_unknown_member_is_404(self, client):
        r = client.get("/api/v1/relationships/between", params={"member_a": "g1", "member_b": "ghost"})
        assert r.status_code == 404

    def test_max_generations_validated(self, client):
        r = client.get(
            "/api/v1/relationships/between",
            params={"member_a": "g1", "member_b": "g2", "max_generations": 0},
        )
        assert r.status_code == 422


class TestPairEndpoints:

    def test_describe(self, client):
        r = client.get("/api/v1/relationships/describe", params={"member_a": "c1", "member_b": "c2"})
        assert r.status_code == 200
        body = r.json()
        assert body["found"] is True
        assert body["category"] == "immediate"
        assert body["description"] == "C1 is C2's sibling. Sibling (shares 2 parent(s))"
        assert body["relationship"]["type"] == "sibling"

    def test_describe_unrelated(self, client):
        body = client.get(
            "/api/v1/relationships/describe", params={"member_a": "s1", "member_b": "s2"}
        ).json()
        assert body == {
            "found": False,
            "description": "No known relationship found between S1 and S2",
            "category": None,
            "relationship": None,
        }

    def test_genetic(self, client):
        r = client.get("/api/v1/relationships/genetic", params={"member_a": "g1", "member_b": "g2"})
        body = r.json()
        assert body["are_related"] is True
        assert body["is_ancestor_descendant"] is False
        assert body["common_ancestors"] == [
            {"ancestor_id": "p1", "generation_from_first": 2, "generation_from_second": 2},
            {"ancestor_id": "p2", "generation_from_first": 2, "generation_from_second": 2},
        ]

    def test_genetic_direct_line(self, client):
        body = client.get(
            "/api/v1/relationships/genetic", params={"member_a": "g1", "member_b": "p2"}
        ).json()
        assert body["is_ancestor_descendant"] is True
        assert body["generations"] == 2
        assert body["common_ancestors"] == []

    def test_batch(self, client):
        r = client.post(
            "/api/v1/relationships/batch",
            json={"from_member_id": "g1", "to_member_ids": ["g2", "s2", "ghost"]},
        )
        assert r.status_code == 200
        body = r.json()
        assert [x["to_member_id"] for x in body] == ["g2", "s2", "ghost"]
        assert body[0]["relationship"]["type"] == "first-cousin"
        assert body[1]["relationship"] is None
        assert body[2]["relationship"] is None

    def test_batch_empty_targets_is_400(self, client):
        r = client.post("/api/v1/relationships/batch", json={"from_member_id": "g1", "to_member_ids": []})
        assert r.status_code == 400

    def test_batch_max_generations_is_400(self, client):
        r = client.post(
            "/api/v1/relationships/batch",
            json={"from_member_id": "g1", "to_member_ids": ["g2"], "max_generations": 0},
        )
        assert r.status_code == 400

    def test_batch_unknown_source_is_404(self, client):
        r = client.post(
            "/api/v1/relationships/batch", json={"from_member_id": "ghost", "to_member_ids": ["g1"]}
        )
        assert r.status_code == 404

    def test_sibling_check(self, client):
        r = client.get("/api/v1/siblings/check", params={"member_a": "c1", "member_b": "c2"})
        assert r.json() == {"are_siblings": True, "kind": "full"}
        r = client.get("/api/v1/siblings/check", params={"member_a": "g1", "member_b": "g2"})
        assert r.json() == {"are_siblings": False, "kind": None}

    def test_sibling_check_unknown_member_is_404(self, client):
        r = client.get("/api/v1/siblings/check", params={"member_a": "c1", "member_b": "ghost"})
        assert r.status_code == 404


class TestMemberEndpoints:

    def test_relationships(self, client):
        r = client.get("/api/v1/trees/tree-1/members/g1/relationships")
        assert r.status_code == 200
        assert [x["to_id"] for x in r.json()] == ["c1", "s1", "p1", "p2", "c2", "g2"]

    def test_relationships_grouped(self, client):
        r = client.get("/api/v1/trees/tree-1/members/s1/relationships", params={"grouped": True})
        body = r.json()
        assert {x["to_id"] for x in body["in_laws"]} == {"p1", "p2", "c2"}
        assert body["extended"] == []

    def test_relationship_details(self, client):
        r = client.get("/api/v1/trees/tree-1/members/c1/relationships/details")
        spouse = next(x for x in r.json() if x["to_member"]["id"] == "s1")
        assert spouse["description"].startswith("C1 is S1's spouse.")

    def test_ancestors(self, client):
        r = client.get("/api/v1/trees/tree-1/members/g1/ancestors")
        assert [(x["member_id"], x["generation"]) for x in r.json()] == [
            ("c1", 1), ("s1", 1), ("p1", 2), ("p2", 2),
        ]

    def test_descendants(self, client):
        r = client.get("/api/v1/trees/tree-1/members/p2/descendants", params={"max_generations": 1})
        assert [x["member_id"] for x in r.json()] == ["c1", "c2"]

    def test_siblings(self, client):
        r = client.get("/api/v1/trees/tree-1/members/c2/siblings")
        assert r.json() == [{"sibling_id": "c1", "kind": "full", "shared_parent_ids": ["p1", "p2"]}]

    def test_suggestions(self, client):
        r = client.post(
            "/api/v1/trees/tree-1/members/g1/suggestions",
            json={"parent_ids": ["c1", "s1"]},
        )
        assert r.status_code == 200
        assert [x["to_id"] for x in r.json()] == ["c2", "p1", "p2", "g2"]

    def test_unknown_member_is_404(self, client):
        assert client.get("/api/v1/trees/tree-1/members/ghost/siblings").status_code == 404


class TestTreeEndpoints:

    def test_cousins(self, client):
        r = client.get("/api/v1/trees/tree-1/cousins")
        assert r.json() == [
            {"member1_id": "g1", "member2_id": "g2", "cousin_label": "First Cousin", "combined_generation": 4},
        ]

    def test_in_laws(self, client):
        r = client.get("/api/v1/trees/tree-1/in-laws")
        assert all(x["is_in_law"] for x in r.json())
        assert len(r.json()) == 6

    def test_summary(self, client):
        body = client.get("/api/v1/trees/tree-1/relationships/summary").json()
        assert body["total_members"] == 8
        assert body["in_law_count"] == 6

    def test_unknown_tree_is_404(self, client):
        assert client.get("/api/v1/trees/nope/cousins").status_code == 404

    def test_sibling_pairs(self, client):
        r = client.get("/api/v1/trees/tree-1/siblings")
        assert r.status_code == 200
        assert r.json() == [{"member1_id": "c1", "member2_id": "c2", "kind": "full"}]
