"""Contract tests for GET /api/inbox and GET /api/{kind}/{subject_id}/events."""


def mention_bob(client, headers, n):
    for i in range(n):
        response = client.post(
            "/api/artifacts/art_1/comments",
            json={"body": f"ping {i} @bob", "kind": "question"},
            headers=headers,
        )
        assert response.status_code == 201


class TestInbox:
    """Contract tests for the caller's inbox."""

    def test_requires_bearer_token(self, client):
        response = client.get("/api/inbox")

        assert response.status_code == 401

    def test_mentions_delivered(self, client, alice_headers, bob_headers):
        mention_bob(client, alice_headers, 1)

        response = client.get("/api/inbox", headers=bob_headers)

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        event = items[0]
        assert event["type"] == "comment.mentioned"
        assert event["recipient_handle"] == "bob"
        assert event["mention"]["handle"] == "bob"
        assert event["mention"]["in_comment_id"] == event["comment"]["id"]

    def test_pages_newest_first(self, client, alice_headers, bob_headers):
        mention_bob(client, alice_headers, 3)

        first = client.get("/api/inbox", params={"limit": 2}, headers=bob_headers).json()
        assert len(first["items"]) == 2
        assert first["next_cursor"]

        second = client.get(
            "/api/inbox",
            params={"limit": 2, "cursor": first["next_cursor"]},
            headers=bob_headers,
        ).json()
        assert len(second["items"]) == 1
        assert second["next_cursor"] is None

        ids = [e["id"] for e in first["items"] + second["items"]]
        assert len(set(ids)) == 3

    def test_agent_without_handle_gets_empty_inbox(self, client):
        response = client.get("/api/inbox", headers={"Authorization": "Bearer token-nohandle"})

        assert response.status_code == 200
        assert response.json() == {"items": [], "next_cursor": None}

    def test_self_mentions_not_delivered(self, client, alice_headers):
        client.post(
            "/api/artifacts/art_1/comments",
            json={"body": "note to self @alice", "kind": "review"},
            headers=alice_headers,
        )

        response = client.get("/api/inbox", headers=alice_headers)

        assert response.json()["items"] == []


class TestSubjectEvents:
    """Contract tests for a subject's activity feed."""

    def test_feed_lists_comments_and_ratings(self, client, alice_headers):
        mention_bob(client, alice_headers, 1)
        client.post("/api/artifacts/art_1/ratings", json={"score": 4}, headers=alice_headers)

        response = client.get("/api/artifacts/art_1/events")

        assert response.status_code == 200
        types = [e["type"] for e in response.json()["items"]]
        assert sorted(types) == ["comment.created", "rating.created_or_updated"]

    def test_feed_is_scoped_to_subject(self, client, alice_headers):
        mention_bob(client, alice_headers, 1)

        response = client.get("/api/artifacts/art_2/events")

        assert response.json()["items"] == []
