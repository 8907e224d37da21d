"""Unit tests for StreamChunk construction from decoded frames."""


class TestStreamChunkFromFrame:
    """Tests for StreamChunk.from_frame()."""

    def test_message_event(self):
        from agentflow_client.messages import Role
        from agentflow_client.streaming.events import StreamChunk, StreamEventType

        chunk = StreamChunk.from_frame(
            {
                "event": "message",
                "message": {"role": "assistant", "content": "Hi there", "message_id": 7},
                "thread_id": 12,
                "run_id": "run-1",
                "metadata": {"is_new_thread": True},
            }
        )

        assert chunk.event is StreamEventType.MESSAGE
        assert chunk.message.role is Role.ASSISTANT
        assert chunk.message.text() == "Hi there"
        assert chunk.message.message_id == 7
        assert chunk.thread_id == 12
        assert chunk.metadata == {"is_new_thread": True}

    def test_unknown_event_kept_as_string(self):
        from agentflow_client.streaming.events import StreamChunk

        chunk = StreamChunk.from_frame({"event": "interrupt", "data": {"node": "review"}})
        assert chunk.event == "interrupt"
        assert chunk.data == {"node": "review"}

    def test_missing_event_defaults_to_other(self):
        from agentflow_client.streaming.events import OTHER_EVENT, StreamChunk

        assert StreamChunk.from_frame({"state": {}}).event == OTHER_EVENT

    def test_extra_fields_preserved(self):
        from agentflow_client.streaming.events import StreamChunk

        chunk = StreamChunk.from_frame({"event": "updates", "node": "agent"})
        assert chunk.model_extra == {"node": "agent"}

    def test_invalid_message_falls_back_to_raw_data(self):
        from agentflow_client.streaming.events import StreamChunk

        frame = {"event": "message", "message": {"content": "no role"}}
        chunk = StreamChunk.from_frame(frame)

        assert chunk.event == "message"
        assert chunk.message is None
        assert chunk.data == frame

    def test_non_string_event_dropped(self):
        from agentflow_client.streaming.events import StreamChunk

        chunk = StreamChunk.from_frame({"event": 3, "data": "x"})
        assert chunk.event == "other"
        assert chunk.data == "x"

    def test_non_object_frame(self):
        from agentflow_client.streaming.events import StreamChunk

        chunk = StreamChunk.from_frame(["a", "b"])
        assert chunk.event == "other"
        assert chunk.data == ["a", "b"]

    def test_numeric_run_id_keeps_message(self):
        from agentflow_client.streaming.events import StreamChunk

        chunk = StreamChunk.from_frame(
            {
                "event": "message",
                "run_id": 123,
                "message": {
                    "role": "assistant",
                    "content": [{"type": "remote_tool_call", "name": "add", "id": "c1", "args": {}}],
                },
            }
        )

        assert chunk.run_id == 123
        assert [b.name for b in chunk.message.tool_call_blocks()] == ["add"]

    def test_malformed_envelope_field_keeps_message(self, caplog):
        import logging

        from agentflow_client.streaming.events import StreamChunk

        frame = {
            "event": "message",
            "metadata": ["not", "a", "mapping"],
            "message": {"role": "assistant", "content": "still here"},
        }
        with caplog.at_level(logging.WARNING, logger="agentflow_client.streaming.events"):
            chunk = StreamChunk.from_frame(frame)

        assert chunk.event == "message"
        assert chunk.message.text() == "still here"
        assert chunk.data == frame
        assert "expected shape" in caplog.text
