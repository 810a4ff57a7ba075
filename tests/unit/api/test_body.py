"""Unit tests for the bounded request body readers."""

import pytest
from starlette.requests import Request

from agent_feedback.api.body import parse_json_model, read_body_with_limit
from agent_feedback.lib.exceptions import PayloadTooLargeError, ValidationError
from agent_feedback.schemas.ratings import RatingRequest


def make_request(chunks, headers=None):
    """Build a Request whose body arrives in ``chunks``, plus a log of receive calls."""
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]
    received = []

    async def receive():
        received.append(1)
        return messages.pop(0)

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/skills/skill_1/comments",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    return Request(scope, receive), received


class TestReadBodyWithLimit:

    @pytest.mark.asyncio
    async def test_reads_body_within_limit(self):
        request, _ = make_request([b"hello ", b"world"])

        assert await read_body_with_limit(request, 11) == b"hello world"

    @pytest.mark.asyncio
    async def test_declared_length_over_limit_is_rejected_unread(self):
        request, received = make_request([b"x" * 10], headers={"Content-Length": "5000000"})

        with pytest.raises(PayloadTooLargeError) as exc_info:
            await read_body_with_limit(request, 2000)

        assert exc_info.value.HTTP_STATUS == 413
        assert exc_info.value.details == {"max_bytes": 2000}
        assert received == []

    @pytest.mark.asyncio
    async def test_streamed_body_stops_at_limit(self):
        request, received = make_request([b"x" * 1500, b"x" * 1500, b"x" * 1500])

        with pytest.raises(PayloadTooLargeError):
            await read_body_with_limit(request, 2000)

        assert len(received) == 2


class TestParseJsonModel:

    def test_valid_object(self):
        submission = parse_json_model(b'{"score": 4, "notes": "ok"}', RatingRequest)

        assert submission.score == 4
        assert submission.notes == "ok"

    def test_empty_body_reports_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_model(b"", RatingRequest)

        assert [e.field for e in exc_info.value.errors] == ["score"]

    @pytest.mark.parametrize("raw", [b"{broken", b"\xff\xfe", b"[" * 100000])
    def test_undecodable_body(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_model(raw, RatingRequest)

        assert exc_info.value.errors[0].field == "body"
