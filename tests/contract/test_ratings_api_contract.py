"""Contract tests for the rating endpoints.

POST /api/{artifacts|skills}/{subject_id}/ratings
GET  /api/{artifacts|skills}/{subject_id}/ratings/summary
"""

import pytest


class TestPostRating:
    """Contract tests for creating and updating ratings."""

    def test_first_rating_created_then_updated(self, client, alice_headers):
        first = client.post("/api/artifacts/art_1/ratings", json={"score": 4}, headers=alice_headers)

        assert first.status_code == 201
        created = first.json()
        assert created["status"] == "success"
        assert created["created"] is True
        assert created["rating"]["id"].startswith("rat_")
        assert created["rating"]["score"] == 4

        second = client.post("/api/artifacts/art_1/ratings", json={"score": 3}, headers=alice_headers)

        assert second.status_code == 200
        updated = second.json()
        assert updated["created"] is False
        assert updated["rating"]["id"] == created["rating"]["id"]
        assert updated["rating"]["created_at"] == created["rating"]["created_at"]

        summary = client.get("/api/artifacts/art_1/ratings/summary").json()
        assert summary["count"] == 1
        assert summary["avg"] == 3

    def test_artifact_dims_and_notes(self, client, alice_headers):
        response = client.post(
            "/api/artifacts/art_1/ratings",
            json={"score": 4.5, "dims": {"usefulness": 5, "correctness": 4}, "notes": "Clear write-up"},
            headers=alice_headers,
        )

        assert response.status_code == 201
        rating = response.json()["rating"]
        assert rating["score"] == 4.5
        assert rating["dims"] == {"usefulness": 5, "correctness": 4}
        assert rating["notes"] == "Clear write-up"
        assert rating["rater"]["agent_id"] == "agt_alice"

    def test_skill_rejects_fractional_score_and_dims(self, client, alice_headers):
        response = client.post(
            "/api/skills/skill_1/ratings",
            json={"score": 4.5, "dims": {"speed": 3}},
            headers=alice_headers,
        )

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["details"]}
        assert fields == {"score", "dims"}

    def test_artifact_score_out_of_range(self, client, alice_headers):
        response = client.post("/api/artifacts/art_1/ratings", json={"score": 6}, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "score"

    @pytest.mark.parametrize("path", ["/api/artifacts/art_1/ratings", "/api/skills/skill_1/ratings"])
    def test_huge_integer_score_is_validation_error(self, client, alice_headers, path):
        response = client.post(
            path,
            content=b'{"score": 1' + b"0" * 400 + b"}",
            headers={**alice_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "score"

    def test_oversized_body_is_rejected(self, client, alice_headers):
        response = client.post(
            "/api/artifacts/art_1/ratings",
            json={"score": 4, "notes": "x" * 100_000},
            headers=alice_headers,
        )

        assert response.status_code == 413

    def test_malformed_json(self, client, alice_headers):
        response = client.post(
            "/api/artifacts/art_1/ratings",
            content=b"{score",
            headers={**alice_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"

    def test_missing_score(self, client, alice_headers):
        response = client.post("/api/artifacts/art_1/ratings", json={"notes": "no score"}, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "score"

    def test_requires_bearer_token(self, client):
        response = client.post("/api/artifacts/art_1/ratings", json={"score": 4})

        assert response.status_code == 401

    def test_owner_is_notified(self, client, alice_headers, carol_headers):
        client.post("/api/artifacts/art_1/ratings", json={"score": 5}, headers=alice_headers)

        inbox = client.get("/api/inbox", headers=carol_headers).json()

        assert [e["type"] for e in inbox["items"]] == ["rating.created_or_updated"]
        assert inbox["items"][0]["rating"]["score"] == 5


class TestRatingSummary:
    """Contract tests for rating summaries."""

    def test_empty_summary(self, client):
        response = client.get("/api/skills/skill_1/ratings/summary")

        assert response.status_code == 200
        assert response.json() == {
            "subject_id": "skill_1",
            "subject_kind": "skill",
            "count": 0,
            "avg": None,
            "dims_avg": {},
        }

    def test_averages_across_raters(self, client, alice_headers, bob_headers):
        client.post(
            "/api/artifacts/art_1/ratings",
            json={"score": 4, "dims": {"usefulness": 5}},
            headers=alice_headers,
        )
        client.post("/api/artifacts/art_1/ratings", json={"score": 2}, headers=bob_headers)

        summary = client.get("/api/artifacts/art_1/ratings/summary").json()

        assert summary["count"] == 2
        assert summary["avg"] == 3
        assert summary["dims_avg"] == {"usefulness": 5}
