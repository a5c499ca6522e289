import json
import logging

from content_governance.context import set_request_context
from content_governance.ext.events.listeners import ListenerEventSink
from content_governance.logging import JsonFormatter


def test_json_formatter_includes_context_and_fields():
    set_request_context("rid-1", user_id="userA")
    record = logging.LogRecord("content_governance", logging.ERROR, __file__, 1, "moderation.scorer_failed", None, None)
    record.event = "moderation.scorer_failed"
    record.fields = {"content": "abc...", "error": "timeout"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "error"
    assert payload["event"] == "moderation.scorer_failed"
    assert payload["request_id"] == "rid-1"
    assert payload["user_id"] == "userA"
    assert payload["fields"] == {"content": "abc...", "error": "timeout"}
    assert payload["backend"] == "sqlite"
    set_request_context(None)


def test_listener_failure_is_isolated():
    sink = ListenerEventSink()
    seen = []

    def broken(event, payload):
        raise RuntimeError("listener bug")

    sink.register(broken)
    sink.register(lambda event, payload: seen.append(event))
    sink.emit("content.flagged", {})
    assert seen == ["content.flagged"]
