"""Contract tests for per-client rate limiting."""


class TestRateLimits:

    def test_limit_applies_before_authentication(self, client, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_COMMENTS_POST_MAX", "1")

        first = client.post("/api/artifacts/art_1/comments", json={"body": "Hi", "kind": "review"})
        second = client.post("/api/artifacts/art_1/comments", json={"body": "Hi", "kind": "review"})

        assert first.status_code == 401
        assert second.status_code == 429
        data = second.json()
        assert data["status"] == "error"
        assert int(second.headers["Retry-After"]) >= 1

    def test_actions_are_counted_separately(self, client, alice_headers, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_RATINGS_POST_MAX", "1")

        assert client.post("/api/artifacts/art_1/ratings", json={"score": 4}, headers=alice_headers).status_code == 201
        assert client.post("/api/artifacts/art_1/ratings", json={"score": 4}, headers=alice_headers).status_code == 429
        assert client.get("/api/artifacts/art_1/ratings/summary").status_code == 200

    def test_clients_are_counted_separately(self, client, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_READS_MAX", "1")

        assert client.get("/api/artifacts/art_1/comments", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
        assert client.get("/api/artifacts/art_1/comments", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/api/artifacts/art_1/comments", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200

    def test_health_is_not_limited(self, client, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_READS_MAX", "1")

        for _ in range(3):
            assert client.get("/health").status_code == 200
