"""Unit tests for StreamSession.

Exercises one streaming exchange against httpx.MockTransport: live
chunk delivery, error statuses, timeout mapping and response release.
"""

import json

import httpx
import pytest

from tests.helpers.http import BASE_URL, assistant_text, byte_chunks, ndjson

STREAM_URL = f"{BASE_URL}/v1/graph/stream"


def _session(handler, **kwargs):
    from agentflow_client.streaming.session import STREAM_ACCEPT, StreamSession

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    headers = {"Content-Type": "application/json", "Accept": STREAM_ACCEPT}
    return StreamSession(http, STREAM_URL, {"messages": []}, headers=headers, timeout=kwargs.get("timeout", 5.0))


class TestStreamSessionChunks:
    """Tests for chunk delivery."""

    @pytest.mark.asyncio
    async def test_yields_chunks_and_collects_messages(self):
        from agentflow_client.streaming.events import StreamEventType

        body = ndjson(
            {"event": "message", "message": assistant_text("Hello")},
            {"event": "updates", "state": {"step": 1}},
            {"event": "custom_progress", "data": {"pct": 50}},
        )

        session = _session(lambda request: httpx.Response(200, content=body))
        async with session:
            chunks = [chunk async for chunk in session]

        assert [c.event for c in chunks] == [
            StreamEventType.MESSAGE,
            StreamEventType.UPDATES,
            "custom_progress",
        ]
        assert chunks[0].message.text() == "Hello"
        assert chunks[1].state == {"step": 1}
        assert [m.text() for m in session.messages] == ["Hello"]
        assert session.chunk_count == 3
        assert session.closed

    @pytest.mark.asyncio
    async def test_chunk_available_before_body_finishes(self):
        """The first frame is handed out while later body chunks are still unread."""
        reads = []

        async def body():
            reads.append(1)
            yield ndjson({"event": "message", "message": assistant_text("first")})
            reads.append(2)
            yield ndjson({"event": "message", "message": assistant_text("second", "m-2")})

        session = _session(lambda request: httpx.Response(200, content=body()))
        async with session:
            first = await session.__anext__()
            assert first.message.text() == "first"
            assert reads == [1]
            rest = [chunk async for chunk in session]

        assert [c.message.text() for c in rest] == ["second"]

    @pytest.mark.asyncio
    async def test_fragmented_body_reassembled(self):
        payload = ndjson({"event": "message", "message": assistant_text("split me")})
        pieces = [payload[i : i + 7] for i in range(0, len(payload), 7)]

        session = _session(lambda request: httpx.Response(200, content=byte_chunks(*pieces)))
        async with session:
            chunks = [chunk async for chunk in session]

        assert len(chunks) == 1
        assert chunks[0].message.text() == "split me"

    @pytest.mark.asyncio
    async def test_non_object_frame_becomes_other_event(self):
        session = _session(lambda request: httpx.Response(200, content=b'[1,2]\n"note"\n'))
        async with session:
            chunks = [chunk async for chunk in session]

        assert [(c.event, c.data) for c in chunks] == [("other", [1, 2]), ("other", "note")]

    @pytest.mark.asyncio
    async def test_malformed_frames_skipped(self):
        body = b'{"event":"updates"}\n{broken\n{"event":"state"}\n{"tail": '
        session = _session(lambda request: httpx.Response(200, content=body))
        async with session:
            chunks = [chunk async for chunk in session]

        assert [c.event for c in chunks] == ["updates", "state"]
        assert session.discarded_frames == 2

    @pytest.mark.asyncio
    async def test_message_collected_despite_odd_envelope(self):
        body = ndjson({"event": "message", "run_id": 9, "metadata": "x", "message": assistant_text("kept")})
        session = _session(lambda request: httpx.Response(200, content=body))
        async with session:
            [chunk async for chunk in session]

        assert [m.text() for m in session.messages] == ["kept"]

    @pytest.mark.asyncio
    async def test_sends_body_and_headers(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["accept"] = request.headers["accept"]
            seen["body"] = request.content
            return httpx.Response(200, content=b"")

        session = _session(handler)
        async with session:
            assert [chunk async for chunk in session] == []

        assert seen["method"] == "POST"
        assert seen["accept"] == "application/x-ndjson, application/json"
        assert json.loads(seen["body"]) == {"messages": []}


class TestStreamSessionErrors:
    """Tests for failure mapping."""

    @pytest.mark.asyncio
    async def test_error_status_raises_before_parsing(self):
        from agentflow_client.exceptions import ServerError

        session = _session(
            lambda request: httpx.Response(500, json={"error": {"message": "graph crashed"}}),
        )
        with pytest.raises(ServerError) as exc_info:
            async with session:
                pytest.fail("context body must not run")

        assert exc_info.value.status_code == 500
        assert "graph crashed" in str(exc_info.value)
        assert session.closed
        assert session.chunk_count == 0

    @pytest.mark.asyncio
    async def test_unreadable_error_body_still_maps_and_releases(self):
        """A failing error body yields a status error and the response is still released."""
        from agentflow_client.exceptions import ServerError

        class BrokenBody(httpx.AsyncByteStream):
            closed = False

            async def __aiter__(self):
                raise httpx.ReadError("connection reset")
                yield b""

            async def aclose(self):
                self.closed = True

        body = BrokenBody()
        session = _session(lambda request: httpx.Response(502, stream=body))

        with pytest.raises(ServerError) as exc_info:
            await session.open()

        assert exc_info.value.status_code == 502
        assert str(exc_info.value) == "Stream request failed: HTTP 502"
        assert session.closed
        assert body.closed

    @pytest.mark.asyncio
    async def test_unauthorized_maps_to_authentication_error(self):
        from agentflow_client.exceptions import AuthenticationError

        session = _session(lambda request: httpx.Response(401, text="nope"))
        with pytest.raises(AuthenticationError):
            await session.open()

    @pytest.mark.asyncio
    async def test_connect_timeout_maps_to_request_timeout(self):
        from agentflow_client.exceptions import RequestTimeoutError

        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        session = _session(handler, timeout=2.5)
        with pytest.raises(RequestTimeoutError) as exc_info:
            async with session:
                pass

        assert exc_info.value.timeout == 2.5
        assert "2.5s" in str(exc_info.value)
        assert session.closed

    @pytest.mark.asyncio
    async def test_read_timeout_mid_stream(self):
        from agentflow_client.exceptions import RequestTimeoutError

        async def body():
            yield ndjson({"event": "updates"})
            raise httpx.ReadTimeout("stalled")

        session = _session(lambda request: httpx.Response(200, content=body()))
        received = []
        with pytest.raises(RequestTimeoutError):
            async with session:
                async for chunk in session:
                    received.append(chunk)

        assert [c.event for c in received] == ["updates"]
        assert session.closed

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_transport_error(self):
        from agentflow_client.exceptions import TransportError

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        session = _session(handler)
        with pytest.raises(TransportError) as exc_info:
            await session.open()

        assert exc_info.value.status_code is None
        assert "ConnectError" in str(exc_info.value)


class TestStreamSessionRelease:
    """The response is released on every exit path."""

    @pytest.mark.asyncio
    async def test_early_exit_releases_response(self):
        body = ndjson(*({"event": "updates", "data": i} for i in range(10)))
        session = _session(lambda request: httpx.Response(200, content=body))

        async with session:
            async for chunk in session:
                break
            response = session._response

        assert session.closed
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_consumer_exception_releases_response(self):
        session = _session(lambda request: httpx.Response(200, content=ndjson({"event": "updates"})))

        with pytest.raises(RuntimeError):
            async with session:
                async for _chunk in session:
                    raise RuntimeError("consumer failed")

        assert session.closed
        assert session._response.is_closed

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        session = _session(lambda request: httpx.Response(200, content=b""))
        await session.open()
        await session.aclose()
        await session.aclose()

        assert session.closed
        with pytest.raises(StopAsyncIteration):
            await session.__anext__()

    @pytest.mark.asyncio
    async def test_iterating_without_context_opens_lazily(self):
        session = _session(lambda request: httpx.Response(200, content=ndjson({"event": "state"})))

        chunks = [chunk async for chunk in session]

        assert [c.event for c in chunks] == ["state"]
        assert session.closed
