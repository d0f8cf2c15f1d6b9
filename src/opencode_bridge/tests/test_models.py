"""Tests for the wire models and event decoding."""

import json

import pytest

from opencode_bridge.errors import StreamDecodeError
from opencode_bridge.models import (
    ChatRequest,
    Message,
    MessagePartUpdated,
    MessageUpdated,
    ServerInfo,
    ServerStatus,
    Session,
    SessionError,
    SessionIdle,
    ToolPart,
    UnknownEvent,
    decode_event,
)
from opencode_bridge.models.message import ToolStateCompleted, ToolStateRunning

from .conftest import MESSAGE_JSON, SESSION_JSON


class TestServerInfo:
    def test_base_url_while_starting(self):
        info = ServerInfo(port=41234, hostname="127.0.0.1")
        assert info.status == ServerStatus.STARTING
        assert info.base_url == "http://127.0.0.1:41234"

    def test_base_url_empty_once_stopped(self):
        info = ServerInfo(port=41234, hostname="127.0.0.1").mark_running().mark_stopped()
        assert info.status == ServerStatus.STOPPED
        assert info.base_url == ""
        assert not info.is_active

    def test_error_state_carries_message(self):
        info = ServerInfo(port=41234, hostname="127.0.0.1").mark_error("boom")
        assert info.status == ServerStatus.ERROR
        assert info.error == "boom"
        assert info.base_url == ""

    def test_mark_stopped_clears_error(self):
        info = ServerInfo(port=1, hostname="h").mark_error("boom").mark_stopped()
        assert info.status == ServerStatus.STOPPED
        assert info.error is None

    def test_mark_running_clears_error(self):
        info = ServerInfo(port=1, hostname="h").mark_error("boom").mark_running()
        assert info.error is None
        assert info.is_active

    def test_transitions_return_new_values(self):
        info = ServerInfo(port=1, hostname="h")
        running = info.mark_running()
        assert info.status == ServerStatus.STARTING
        assert running.status == ServerStatus.RUNNING

    def test_dump_includes_base_url(self):
        dumped = ServerInfo(port=41234, hostname="127.0.0.1").model_dump(mode="json")
        assert dumped["base_url"] == "http://127.0.0.1:41234"
        assert dumped["status"] == "starting"


class TestWireModels:
    def test_session_ignores_unknown_fields(self):
        session = Session.model_validate({**SESSION_JSON, "somethingNew": True})
        assert session.id == "ses_1"
        assert session.parent_id is None

    def test_message_aliases(self):
        message = Message.model_validate(MESSAGE_JSON)
        assert message.session_id == "ses_1"
        assert message.parts[0].text == "Hello"

    def test_tool_part_states(self):
        running = ToolPart.model_validate({
            "type": "tool",
            "tool": "bash",
            "id": "call_1",
            "state": {"status": "running", "input": {"cmd": "ls"}, "time": {"start": 1}},
        })
        assert isinstance(running.state, ToolStateRunning)
        assert not running.is_terminal

        completed = ToolPart.model_validate({
            "type": "tool",
            "tool": "bash",
            "id": "call_1",
            "state": {"status": "completed", "output": "ok", "time": {"start": 1, "end": 2}},
        })
        assert isinstance(completed.state, ToolStateCompleted)
        assert completed.is_terminal

    def test_chat_request_uses_camel_case(self):
        request = ChatRequest.from_text("hi", provider_id="anthropic", model_id="claude-sonnet-4")
        assert request.to_wire() == {
            "providerID": "anthropic",
            "modelID": "claude-sonnet-4",
            "parts": [{"type": "text", "text": "hi"}],
        }


class TestDecodeEvent:
    def test_session_idle_with_properties(self):
        event = decode_event('{"type":"session.idle","properties":{"sessionID":"abc"}}')
        assert isinstance(event, SessionIdle)
        assert event.session_id == "abc"

    def test_flat_payload(self):
        event = decode_event('{"type":"session.idle","sessionID":"abc"}')
        assert isinstance(event, SessionIdle)
        assert event.session_id == "abc"

    def test_message_updated(self):
        event = decode_event(json.dumps({"type": "message.updated", "properties": {"info": MESSAGE_JSON}}))
        assert isinstance(event, MessageUpdated)
        assert event.info.session_id == "ses_1"

    def test_message_part_updated(self):
        event = decode_event(json.dumps({
            "type": "message.part.updated",
            "properties": {
                "sessionID": "abc",
                "messageID": "msg_1",
                "part": {"type": "text", "text": "partial"},
            },
        }))
        assert isinstance(event, MessagePartUpdated)
        assert event.message_id == "msg_1"
        assert event.part.text == "partial"

    def test_session_error_without_session(self):
        event = decode_event('{"type":"session.error","properties":{"error":{"name":"ProviderAuthError"}}}')
        assert isinstance(event, SessionError)
        assert event.session_id is None
        assert event.error == {"name": "ProviderAuthError"}

    def test_unknown_type_is_preserved(self):
        event = decode_event('{"type":"lsp.diagnostics","properties":{"path":"a.py"}}')
        assert isinstance(event, UnknownEvent)
        assert event.type == "lsp.diagnostics"
        assert event.data == {"path": "a.py"}

    @pytest.mark.parametrize("data", ["not-json", "[1, 2]", '{"no":"type"}', '{"type": 3}'])
    def test_undecodable_payloads(self, data):
        with pytest.raises(StreamDecodeError) as exc_info:
            decode_event(data)
        assert exc_info.value.data == data

    def test_known_type_with_bad_shape(self):
        with pytest.raises(StreamDecodeError):
            decode_event('{"type":"message.updated","properties":{"info":{"id":1}}}')
