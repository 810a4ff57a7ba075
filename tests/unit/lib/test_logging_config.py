"""Unit tests for log formatting and request context."""

import json
import logging
import sys

from agent_feedback.lib.context import request_id_var, set_current_agent_id
from agent_feedback.lib.logging_config import (
    ContextFilter,
    JsonFormatter,
    SimpleFormatter,
    configure_logging,
)


def make_record(msg="Created comment %s", args=("cmt_1",), **extra):
    record = logging.LogRecord("agent_feedback.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextFilter:

    def test_stamps_request_and_agent(self):
        token = request_id_var.set("req-1")
        set_current_agent_id("agt_alice")
        try:
            record = make_record()
            ContextFilter().filter(record)
        finally:
            request_id_var.reset(token)
            set_current_agent_id(None)

        assert record.request_id == "req-1"
        assert record.agent_id == "agt_alice"


class TestJsonFormatter:

    def test_includes_context_and_feedback_fields(self):
        record = make_record(request_id="req-1", agent_id="agt_alice", subject_id="art_1", comment_id="cmt_1")

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "Created comment cmt_1"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
        assert entry["agent_id"] == "agt_alice"
        assert entry["subject_id"] == "art_1"
        assert entry["comment_id"] == "cmt_1"
        assert "rating_id" not in entry

    def test_includes_traceback(self):
        try:
            raise RuntimeError("disk full")
        except RuntimeError:
            record = make_record(exc_info=sys.exc_info())

        entry = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: disk full" in entry["exc_info"]


class TestSimpleFormatter:

    def test_missing_context_shows_dashes(self):
        line = SimpleFormatter().format(make_record())

        assert "[- -] - Created comment cmt_1" in line


class TestConfigureLogging:

    def test_unknown_format_falls_back_to_json(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            configure_logging("xml")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
